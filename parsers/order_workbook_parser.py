"""
Order workbook parser.

Reads a customer-edited order workbook back into priced line items.

Row problems are collected, never raised: the result always carries the
items that passed, the metadata used, and the errors and warnings found.
"""

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union

from openpyxl import load_workbook
from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet
import structlog

from exceptions import MetadataDecodeError
from models.catalog import Company, Product, ProductVariant
from models.order_workbook import (
    META_BLOB_CELL,
    META_SHEET,
    ORDER_SHEET,
    ErrorCode,
    LogicalField,
    OrderValidationError,
    OrderValidationWarning,
    ParsedLineItem,
    ParsedOrderResult,
    ProvenanceMetadata,
    Severity,
    ValidationResult,
    WarningCode,
)
from services import metadata_codec
from services.catalog_service import build_sku_index
from services.order_validator import OrderValidator, check_credit
from services.pricing_service import resolve_unit_price, to_money

logger = structlog.get_logger(__name__)

FIRST_DATA_ROW = 2

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

WorkbookSource = Union[bytes, BytesIO, str, Path]


@dataclass
class _Issues:
    errors: list[OrderValidationError] = field(default_factory=list)
    warnings: list[OrderValidationWarning] = field(default_factory=list)

    def result(self) -> ValidationResult:
        return ValidationResult(errors=self.errors, warnings=self.warnings)


def parse_order_workbook(
    file: WorkbookSource,
    company_id: str,
    products: list[Product],
    company: Optional[Company] = None,
) -> ParsedOrderResult:
    """
    Parse an uploaded order workbook.

    Args:
        file: Workbook bytes, file-like object or path
        company_id: Company the order is being placed for
        products: Full catalog, used to resolve SKUs and prices
        company: Current company record; None if it no longer exists

    Returns:
        ParsedOrderResult. Unreadable files produce a single PARSE_ERROR.
    """
    logger.info("parsing_order_workbook", company_id=company_id, file_type=type(file).__name__)

    try:
        result = _parse(file, company_id, products, company)
    except Exception as e:
        logger.error(
            "order_workbook_parse_failed",
            company_id=company_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return ParsedOrderResult(
            items=[],
            metadata=metadata_codec.default_metadata(company_id, export_id="ERROR"),
            validation=ValidationResult(errors=[
                OrderValidationError(
                    row=0,
                    field="file",
                    message=f"Failed to parse file: {e}" if str(e) else "Failed to parse file",
                    code=ErrorCode.PARSE_ERROR,
                )
            ]),
        )

    logger.info(
        "order_workbook_parsed",
        company_id=company_id,
        export_id=result.metadata.export_id,
        order_type=result.metadata.order_type.value,
        item_count=len(result.items),
        error_count=len(result.validation.errors),
        warning_count=len(result.validation.warnings),
        valid=result.validation.valid,
    )

    return result


def _parse(
    file: WorkbookSource,
    company_id: str,
    products: list[Product],
    company: Optional[Company],
) -> ParsedOrderResult:
    if isinstance(file, (bytes, bytearray)):
        file = BytesIO(file)

    # Streams rows; a stray cell far down the sheet must not materialize the gap
    wb = load_workbook(file, read_only=True, data_only=True)
    try:
        return _parse_workbook(wb, company_id, products, company)
    finally:
        wb.close()


def _parse_workbook(
    wb: Workbook,
    company_id: str,
    products: list[Product],
    company: Optional[Company],
) -> ParsedOrderResult:
    issues = _Issues()

    metadata = _read_metadata(wb, company_id, issues)

    if metadata.company.id != company_id:
        issues.warnings.append(OrderValidationWarning(
            row=0,
            field="company",
            message="This order form was generated for a different company",
            code=WarningCode.COMPANY_MISMATCH,
            severity=Severity.WARNING,
        ))

    if ORDER_SHEET not in wb.sheetnames:
        issues.errors.append(OrderValidationError(
            row=0,
            field="sheet",
            message=f"{ORDER_SHEET} sheet not found",
            code=ErrorCode.MISSING_SHEET,
        ))
        return ParsedOrderResult(items=[], metadata=metadata, validation=issues.result())

    if company is None:
        issues.warnings.append(OrderValidationWarning(
            row=0,
            field="company",
            message="Company not found; prices use the tier recorded in the file",
            code=WarningCode.UNKNOWN_COMPANY,
            severity=Severity.WARNING,
        ))

    items = _parse_order_sheet(wb[ORDER_SHEET], metadata, products, company, issues)

    if company is not None:
        order_total = sum((item.line_total for item in items), Decimal("0"))
        warning = check_credit(company, order_total)
        if warning is not None:
            issues.warnings.append(warning)

    return ParsedOrderResult(items=items, metadata=metadata, validation=issues.result())


def _read_metadata(wb: Workbook, company_id: str, issues: _Issues) -> ProvenanceMetadata:
    """Decode the _Meta blob, or fall back to default metadata with a warning."""
    blob = None
    if META_SHEET in wb.sheetnames:
        blob = _read_cell(wb[META_SHEET], META_BLOB_CELL)

    if blob is None or (isinstance(blob, str) and not blob.strip()):
        logger.debug("workbook_metadata_missing", company_id=company_id)
        issues.warnings.append(OrderValidationWarning(
            row=0,
            field="metadata",
            message="Order form metadata not found; using default at-once rules",
            code=WarningCode.METADATA_MISSING,
            severity=Severity.INFO,
        ))
        return metadata_codec.default_metadata(company_id)

    try:
        return metadata_codec.decode(blob)
    except MetadataDecodeError as e:
        logger.warning(
            "workbook_metadata_invalid",
            company_id=company_id,
            reason=e.message,
            details=e.details,
        )
        issues.warnings.append(OrderValidationWarning(
            row=0,
            field="metadata",
            message=f"{e.message}; using default at-once rules",
            code=WarningCode.METADATA_INVALID,
            severity=Severity.WARNING,
        ))
        return metadata_codec.default_metadata(company_id)


def _parse_order_sheet(
    ws: Worksheet,
    metadata: ProvenanceMetadata,
    products: list[Product],
    company: Optional[Company],
    issues: _Issues,
) -> list[ParsedLineItem]:
    """Walk data rows in file order, validate, price and merge them."""
    sku_index = build_sku_index(products)
    validator = OrderValidator(metadata)
    pricing_tier = company.pricing_tier if company else metadata.company.pricing_tier

    # Tuple positions for each logical column under this file's column map
    positions = {
        logical: column_index_from_string(metadata.column_letter(logical)) - 1
        for logical in LogicalField
    }
    max_col = max(positions.values()) + 1

    # Dimensions written by other tools can be stale and cut rows off
    ws.reset_dimensions()
    logger.debug("parsing_order_sheet", max_col=max_col)

    # Keyed by (product_id, variant_id); dicts keep first-seen order
    merged: dict[tuple[str, Optional[str]], ParsedLineItem] = {}
    variants: dict[tuple[str, Optional[str]], Optional[ProductVariant]] = {}

    rows = ws.iter_rows(min_row=FIRST_DATA_ROW, min_col=1, max_col=max_col, values_only=True)
    for row_num, values in enumerate(rows, start=FIRST_DATA_ROW):
        # Blank and decorative rows carry no quantity
        quantity = _parse_quantity(_value_at(values, positions[LogicalField.QUANTITY]))
        if quantity == 0:
            continue

        def cell(logical: LogicalField) -> Any:
            return _value_at(values, positions[logical])

        sku = _cell_text(cell(LogicalField.SKU))
        match = sku_index.get(sku) if sku else None

        error = validator.check_row(row_num, sku, match, quantity)
        if error is not None:
            issues.errors.append(error)
            continue

        product, variant = match
        unit_price = resolve_unit_price(product, pricing_tier, metadata.order_type)
        if metadata.features.allow_price_override:
            file_price = _parse_price(cell(LogicalField.UNIT_PRICE))
            if file_price is not None:
                unit_price = file_price

        notes = _cell_text(cell(LogicalField.NOTES))
        key = (product.id, variant.id if variant else None)

        existing = merged.get(key)
        if existing is not None:
            existing.quantity += quantity
            existing.notes = "; ".join(n for n in (existing.notes, notes) if n) or None
            continue

        variants[key] = variant
        merged[key] = ParsedLineItem(
            product_id=product.id,
            variant_id=variant.id if variant else None,
            sku=sku,
            name=product.name,
            quantity=quantity,
            unit_price=unit_price,
            description=_cell_text(cell(LogicalField.PRODUCT_NAME)) or product.name,
            variant=_cell_text(cell(LogicalField.VARIANT)),
            upc=_cell_text(cell(LogicalField.UPC)),
            notes=notes,
            row=row_num,
        )

    # Stock is compared against the merged quantity, reported at the first row
    for key, item in merged.items():
        warning = validator.check_inventory(item.row, variants[key], item.quantity)
        if warning is not None:
            issues.warnings.append(warning)

    return list(merged.values())


def _read_cell(ws: Worksheet, coordinate: str) -> Any:
    """Single cell value through the row iterator (read-only sheets)."""
    column, row = coordinate_from_string(coordinate)
    col = column_index_from_string(column)
    values = next(ws.iter_rows(min_row=row, max_row=row, min_col=col, max_col=col, values_only=True), (None,))
    return _value_at(values, 0)


def _value_at(values: tuple, index: int) -> Any:
    return values[index] if index < len(values) else None


# ===================
# HELPER FUNCTIONS
# ===================

def _cell_text(value: Any) -> Optional[str]:
    """
    Cell value as trimmed text, None if blank.

    Whole-number floats lose their ".0" (Excel stores 10042 as 10042.0).
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _parse_quantity(value: Any) -> int:
    """
    Leading integer of a quantity cell; 0 if there is none.

    12 -> 12, 2.9 -> 2, "5 pcs" -> 5, "-3" -> -3, "abc" -> 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        found = _LEADING_INT.match(value)
        return int(found.group(1)) if found else 0
    return 0


def _parse_price(value: Any) -> Optional[Decimal]:
    """Positive price from a cell ("$1,234.50" allowed), else None."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().replace("$", "").replace(",", "")
    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    if not price.is_finite() or price <= 0:
        return None
    return to_money(price)
