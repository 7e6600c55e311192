"""
Order workbook service — export and import entry points.

Ties the catalog and company lookups to the workbook builder and parser.
Callers own what happens next: a valid import becomes an order elsewhere.
"""

from datetime import date
from typing import Optional
import structlog

from models.catalog import OrderType
from models.order_workbook import (
    ErrorCode,
    OrderValidationError,
    ParsedOrderResult,
    ValidationResult,
)
from parsers.order_workbook_parser import parse_order_workbook
from services import metadata_codec
from services.catalog_service import (
    CatalogService,
    build_sku_index,
    get_catalog_service,
)
from services.company_service import CompanyService, get_company_service
from services.workbook_builder_service import WorkbookBuilderService

logger = structlog.get_logger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class OrderWorkbookService:
    """Export and import of order workbooks."""

    def __init__(
        self,
        catalog_service: Optional[CatalogService] = None,
        company_service: Optional[CompanyService] = None,
    ):
        self.catalog = catalog_service or get_catalog_service()
        self.companies = company_service or get_company_service()
        self.builder = WorkbookBuilderService(self.catalog, self.companies)

    # ===================
    # EXPORT
    # ===================

    def export_workbook(
        self,
        company_id: str,
        order_type: OrderType,
        product_ids: Optional[list[str]] = None,
        season: Optional[str] = None,
    ) -> bytes:
        """
        Build the order workbook for a company.

        Raises:
            CompanyNotFoundError: If company doesn't exist
        """
        logger.info(
            "order_workbook_export_started",
            company_id=company_id,
            order_type=order_type.value,
            season=season,
        )
        return self.builder.build(company_id, order_type, product_ids=product_ids, season=season)

    @staticmethod
    def export_filename(order_type: OrderType, on: Optional[date] = None) -> str:
        """order-prebook-20260115.xlsx"""
        on = on or date.today()
        return f"order-{order_type.value}-{on.strftime('%Y%m%d')}.xlsx"

    # ===================
    # IMPORT
    # ===================

    def import_workbook(self, content: bytes, company_id: str) -> ParsedOrderResult:
        """
        Parse and validate an uploaded workbook.

        Never raises: lookup failures are reported as a PARSE_ERROR result.
        """
        logger.info("order_workbook_import_started", company_id=company_id, size_bytes=len(content))

        try:
            products = self.catalog.get_all_products()
            company = self.companies.find_company(company_id)
        except Exception as e:
            logger.error("order_workbook_lookup_failed", company_id=company_id, error=str(e))
            return ParsedOrderResult(
                items=[],
                metadata=metadata_codec.default_metadata(company_id, export_id="ERROR"),
                validation=ValidationResult(errors=[
                    OrderValidationError(
                        row=0,
                        field="file",
                        message="Catalog is unavailable; try the upload again",
                        code=ErrorCode.PARSE_ERROR,
                    )
                ]),
            )

        return parse_order_workbook(content, company_id, products, company)

    def validate_sku(self, sku: str) -> bool:
        """True if the SKU belongs to a product, a variant or a generated variant SKU."""
        return sku.strip() in build_sku_index(self.catalog.get_all_products())


_order_workbook_service: Optional[OrderWorkbookService] = None


def get_order_workbook_service() -> OrderWorkbookService:
    """Get or create OrderWorkbookService instance."""
    global _order_workbook_service
    if _order_workbook_service is None:
        _order_workbook_service = OrderWorkbookService()
    return _order_workbook_service
