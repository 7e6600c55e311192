"""
Order writer API routes.

Download a personalized order workbook and upload a completed one.
Turning a valid import into an order is the caller's job.
"""

from io import BytesIO
from typing import Optional

import structlog
from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse

from config import settings
from exceptions import (
    AppError,
    EmptyOrderError,
    OrderValidationFailedError,
    WorkbookUploadError,
)
from models.base import CamelSchema
from models.catalog import OrderType
from models.order_workbook import (
    ImportStats,
    ParsedLineItem,
    ProvenanceMetadata,
    ValidationResult,
)
from services.order_workbook_service import XLSX_CONTENT_TYPE, get_order_workbook_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/orders/order-writer", tags=["Order Writer"])

ACCEPTED_CONTENT_TYPES = {
    XLSX_CONTENT_TYPE,
    "application/vnd.ms-excel",
    "application/octet-stream",  # Some browsers send this for .xlsx
}


# ===================
# RESPONSE MODELS
# ===================


class OrderImportResponse(CamelSchema):
    """Successful import: validated items ready to become an order."""

    success: bool = True
    message: str
    items: list[ParsedLineItem]
    metadata: ProvenanceMetadata
    validation: ValidationResult
    stats: ImportStats


class SkuCheckResponse(CamelSchema):
    sku: str
    valid: bool


# ===================
# EXCEPTION HANDLER
# ===================


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# ===================
# ROUTES
# ===================


@router.get("/template")
async def download_template(
    company_id: str = Query(..., min_length=1, description="Company the form is for"),
    order_type: OrderType = Query(OrderType.AT_ONCE, description="at-once, prebook or closeout"),
    product_ids: Optional[str] = Query(None, description="Comma-separated product IDs"),
    season: Optional[str] = Query(None, description="Prebook season"),
):
    """
    Download a personalized order workbook.

    Raises:
        404: Company not found
    """
    ids = [p.strip() for p in product_ids.split(",") if p.strip()] if product_ids else None

    try:
        service = get_order_workbook_service()
        content = service.export_workbook(
            company_id,
            order_type,
            product_ids=ids,
            season=season,
        )
        filename = service.export_filename(order_type)

        logger.info(
            "order_template_downloaded",
            company_id=company_id,
            order_type=order_type.value,
            filename=filename,
        )

        return StreamingResponse(
            BytesIO(content),
            media_type=XLSX_CONTENT_TYPE,
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Content-Length": str(len(content)),
                "Cache-Control": "no-cache, no-store, must-revalidate",
                "Pragma": "no-cache",
                "Expires": "0",
            },
        )

    except Exception as e:
        return handle_error(e)


@router.post("/import", response_model=OrderImportResponse)
async def import_order(
    file: UploadFile = File(..., description="Completed order workbook (.xlsx)"),
    company_id: str = Form(..., min_length=1),
):
    """
    Upload a completed order workbook.

    Raises:
        400: Not an .xlsx file, too large, or no items ordered
        422: Row-level validation errors (listed with row numbers)
    """
    logger.info(
        "order_import_started",
        filename=file.filename,
        content_type=file.content_type,
        company_id=company_id,
    )

    try:
        filename = file.filename or ""
        if file.content_type not in ACCEPTED_CONTENT_TYPES and not filename.lower().endswith(".xlsx"):
            raise WorkbookUploadError(
                "Invalid file type. Please upload an Excel (.xlsx) file",
                details={"filename": filename, "content_type": file.content_type},
            )

        # Size is known from the multipart parse; reject before buffering
        if file.size is not None and file.size > settings.max_upload_bytes:
            raise WorkbookUploadError(
                f"File too large. Maximum size is {settings.order_writer_max_upload_mb}MB",
                details={"size_bytes": file.size},
            )

        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise WorkbookUploadError(
                f"File too large. Maximum size is {settings.order_writer_max_upload_mb}MB",
                details={"size_bytes": len(content)},
            )

        # openpyxl parsing is blocking
        result = await run_in_threadpool(
            get_order_workbook_service().import_workbook, content, company_id
        )

        if not result.validation.valid:
            logger.warning(
                "order_import_validation_failed",
                company_id=company_id,
                error_count=len(result.validation.errors),
            )
            raise OrderValidationFailedError(
                validation=result.validation.model_dump(mode="json", by_alias=True),
                items=[item.model_dump(mode="json", by_alias=True) for item in result.items],
            )

        if not result.items:
            raise EmptyOrderError()

        stats = result.stats()

        logger.info(
            "order_import_completed",
            company_id=company_id,
            export_id=result.metadata.export_id,
            item_count=stats.item_count,
            total_quantity=stats.total_quantity,
        )

        return OrderImportResponse(
            message="Order workbook imported successfully",
            items=result.items,
            metadata=result.metadata,
            validation=result.validation,
            stats=stats,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/sku/{sku}", response_model=SkuCheckResponse)
async def check_sku(sku: str):
    """Check whether a SKU can be ordered through a workbook."""
    try:
        valid = get_order_workbook_service().validate_sku(sku)
        return SkuCheckResponse(sku=sku, valid=valid)
    except Exception as e:
        return handle_error(e)
