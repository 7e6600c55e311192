"""
Workbook builder — generate personalized order workbooks.

One workbook per company and order type, with three sheets:
    Order    Editable line items; line totals are live formulas
    _Meta    Hidden; serialized ProvenanceMetadata at A4
    Summary  Account details, instructions and terms
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side
from openpyxl.worksheet.worksheet import Worksheet
import structlog

from models.catalog import Company, OrderType, Product
from models.order_workbook import (
    COLUMN_HEADERS,
    META_BLOB_CELL,
    META_SHEET,
    ORDER_SHEET,
    SUMMARY_SHEET,
    LogicalField,
    ProvenanceMetadata,
)
from services import metadata_codec
from services.catalog_service import CatalogService, get_catalog_service, row_sku, variant_skus
from services.company_service import CompanyService, get_company_service
from services.pricing_service import format_currency, resolve_unit_price, to_money

logger = structlog.get_logger(__name__)

CURRENCY_FORMAT = "$#,##0.00"

COLUMN_WIDTHS = {
    LogicalField.SKU: 15,
    LogicalField.PRODUCT_NAME: 30,
    LogicalField.CATEGORY: 15,
    LogicalField.VARIANT: 15,
    LogicalField.UPC: 15,
    LogicalField.MSRP: 12,
    LogicalField.UNIT_PRICE: 12,
    LogicalField.QUANTITY: 10,
    LogicalField.LINE_TOTAL: 12,
    LogicalField.NOTES: 25,
}

CURRENCY_FIELDS = (LogicalField.MSRP, LogicalField.UNIT_PRICE, LogicalField.LINE_TOTAL)

CLOSEOUT_TERMS = [
    "- All sales final",
    "- No returns or exchanges",
    "- Limited quantities available",
]


@dataclass
class OrderRow:
    """One purchasable unit on the Order sheet."""
    sku: str
    product_name: str
    category: str
    variant: str
    upc: str
    msrp: Decimal
    unit_price: Decimal


def expand_rows(
    products: list[Product],
    pricing_tier: Optional[str],
    order_type: OrderType,
) -> list[OrderRow]:
    """
    One row per variant, or one row for a product without variants.

    Every row of a product shares the product's resolved unit price.
    """
    rows = []
    for product in products:
        price = resolve_unit_price(product, pricing_tier, order_type)
        msrp = to_money(product.msrp)

        if not product.variants:
            rows.append(OrderRow(
                sku=row_sku(product),
                product_name=product.name,
                category=product.category,
                variant="",
                upc=product.upc or "",
                msrp=msrp,
                unit_price=price,
            ))
            continue

        for variant, sku in variant_skus(product):
            rows.append(OrderRow(
                sku=sku,
                product_name=product.name,
                category=product.category,
                variant=variant.label,
                upc=variant.upc or product.upc or "",
                msrp=msrp,
                unit_price=price,
            ))

    return rows


class WorkbookBuilderService:
    """Service for generating order workbooks."""

    def __init__(
        self,
        catalog_service: Optional[CatalogService] = None,
        company_service: Optional[CompanyService] = None,
    ):
        self.catalog = catalog_service or get_catalog_service()
        self.companies = company_service or get_company_service()

    def build(
        self,
        company_id: str,
        order_type: OrderType,
        product_ids: Optional[list[str]] = None,
        season: Optional[str] = None,
    ) -> bytes:
        """
        Generate the order workbook for a company.

        Args:
            company_id: Company the form is personalized for
            order_type: at-once, prebook or closeout
            product_ids: Optional product whitelist (unknown IDs ignored)
            season: Prebook season filter

        Returns:
            .xlsx file contents

        Raises:
            CompanyNotFoundError: If company doesn't exist
        """
        company = self.companies.get_company(company_id)
        products = self.catalog.get_eligible_products(
            order_type,
            product_ids=product_ids,
            season=season,
        )
        return self.render(company, products, order_type)

    def render(
        self,
        company: Company,
        products: list[Product],
        order_type: OrderType,
        metadata: Optional[ProvenanceMetadata] = None,
    ) -> bytes:
        """Lay out the three sheets for already-resolved inputs."""
        if metadata is None:
            metadata = metadata_codec.create_export_metadata(company, order_type)

        rows = expand_rows(products, company.pricing_tier, order_type)

        logger.info(
            "generating_order_workbook",
            company_id=company.id,
            order_type=order_type.value,
            export_id=metadata.export_id,
            product_count=len(products),
            row_count=len(rows),
        )

        wb = Workbook()
        ws_order = wb.active
        ws_order.title = ORDER_SHEET
        self._write_order_sheet(ws_order, rows, metadata)

        ws_meta = wb.create_sheet(META_SHEET)
        self._write_meta_sheet(ws_meta, metadata)

        ws_summary = wb.create_sheet(SUMMARY_SHEET)
        self._write_summary_sheet(ws_summary, company, order_type, metadata.generated_at)

        output = BytesIO()
        wb.save(output)

        logger.info(
            "order_workbook_generated",
            export_id=metadata.export_id,
            size_bytes=output.tell(),
        )

        return output.getvalue()

    # ===================
    # SHEETS
    # ===================

    def _write_order_sheet(
        self,
        ws: Worksheet,
        rows: list[OrderRow],
        metadata: ProvenanceMetadata,
    ) -> None:
        bold_font = Font(bold=True)
        thin_border = Border(bottom=Side(style="thin", color="000000"))

        col = {field: metadata.column_letter(field) for field in LogicalField}

        for field, letter in col.items():
            ws[f"{letter}1"] = COLUMN_HEADERS[field]
            ws[f"{letter}1"].font = bold_font
            ws[f"{letter}1"].border = thin_border
            ws.column_dimensions[letter].width = COLUMN_WIDTHS[field]

        ws.freeze_panes = "A2"

        for r, row in enumerate(rows, start=2):
            ws[f"{col[LogicalField.SKU]}{r}"] = row.sku
            ws[f"{col[LogicalField.PRODUCT_NAME]}{r}"] = row.product_name
            ws[f"{col[LogicalField.CATEGORY]}{r}"] = row.category or None
            ws[f"{col[LogicalField.VARIANT]}{r}"] = row.variant or None
            ws[f"{col[LogicalField.UPC]}{r}"] = row.upc or None
            ws[f"{col[LogicalField.MSRP]}{r}"] = float(row.msrp)
            ws[f"{col[LogicalField.UNIT_PRICE]}{r}"] = float(row.unit_price)
            # Quantity and notes left blank for the customer
            ws[f"{col[LogicalField.LINE_TOTAL]}{r}"] = (
                f"={col[LogicalField.UNIT_PRICE]}{r}*{col[LogicalField.QUANTITY]}{r}"
            )

            for field in CURRENCY_FIELDS:
                ws[f"{col[field]}{r}"].number_format = CURRENCY_FORMAT

    def _write_meta_sheet(self, ws: Worksheet, metadata: ProvenanceMetadata) -> None:
        ws["A1"] = "Metadata"
        ws["A2"] = "DO NOT MODIFY THIS SHEET"
        ws[META_BLOB_CELL] = metadata_codec.encode(metadata)
        ws.sheet_state = "hidden"

    def _write_summary_sheet(
        self,
        ws: Worksheet,
        company: Company,
        order_type: OrderType,
        generated_at: datetime,
    ) -> None:
        title_font = Font(bold=True, size=14)
        bold_font = Font(bold=True)

        ws.column_dimensions["A"].width = 20
        ws.column_dimensions["B"].width = 40

        lines: list[tuple] = [
            ("Order Summary",),
            (),
            ("Company:", company.name),
            ("Account #:", company.account_number),
            ("Order Type:", order_type.value.upper()),
            ("Generated:", generated_at.strftime("%Y-%m-%d")),
            (),
            ("Instructions:",),
            ('1. Enter quantities in the "Order Qty" column',),
            ("2. Line totals will calculate automatically",),
            ('3. Add any special notes in the "Notes" column',),
            ("4. Save and upload this file to complete your order",),
            (),
            ("Terms:",),
            ("Payment Terms:", company.payment_terms),
            ("Credit Limit:", format_currency(company.credit_limit)),
            ("Credit Available:", format_currency(company.credit_available)),
        ]

        if order_type == OrderType.CLOSEOUT:
            lines.append(())
            lines.append(("CLOSEOUT TERMS:",))
            lines.extend((term,) for term in CLOSEOUT_TERMS)

        for line in lines:
            ws.append(list(line))

        ws["A1"].font = title_font
        for cell in ws["A"]:
            if isinstance(cell.value, str) and cell.value.endswith(":") and cell.row > 1:
                cell.font = bold_font


_workbook_builder_service: Optional[WorkbookBuilderService] = None


def get_workbook_builder_service() -> WorkbookBuilderService:
    """Get or create WorkbookBuilderService instance."""
    global _workbook_builder_service
    if _workbook_builder_service is None:
        _workbook_builder_service = WorkbookBuilderService()
    return _workbook_builder_service
