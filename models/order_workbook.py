"""
Order workbook schemas.

ProvenanceMetadata is embedded in every exported workbook; the rest describe
what an import produces. All of these serialize with camelCase keys.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, ConfigDict, Field, computed_field, field_validator

from models.base import CamelSchema
from models.catalog import OrderType

METADATA_KIND = "order-workbook-metadata"
SCHEMA_VERSION = "1.0.0"

ORDER_SHEET = "Order"
META_SHEET = "_Meta"
SUMMARY_SHEET = "Summary"

# Metadata blob lives at a fixed cell so older files stay readable
META_BLOB_CELL = "A4"

_COLUMN_LETTER = re.compile(r"^[A-Z]{1,3}$")


class LogicalField(str, Enum):
    """Columns of the Order sheet, independent of their position."""
    SKU = "sku"
    PRODUCT_NAME = "productName"
    CATEGORY = "category"
    VARIANT = "variant"
    UPC = "upc"
    MSRP = "msrp"
    UNIT_PRICE = "unitPrice"
    QUANTITY = "quantity"
    LINE_TOTAL = "lineTotal"
    NOTES = "notes"


CANONICAL_COLUMN_MAP: dict[str, str] = {
    LogicalField.SKU.value: "A",
    LogicalField.PRODUCT_NAME.value: "B",
    LogicalField.CATEGORY.value: "C",
    LogicalField.VARIANT.value: "D",
    LogicalField.UPC.value: "E",
    LogicalField.MSRP.value: "F",
    LogicalField.UNIT_PRICE.value: "G",
    LogicalField.QUANTITY.value: "H",
    LogicalField.LINE_TOTAL.value: "I",
    LogicalField.NOTES.value: "J",
}

COLUMN_HEADERS: dict[LogicalField, str] = {
    LogicalField.SKU: "SKU",
    LogicalField.PRODUCT_NAME: "Product Name",
    LogicalField.CATEGORY: "Category",
    LogicalField.VARIANT: "Color/Size",
    LogicalField.UPC: "UPC",
    LogicalField.MSRP: "MSRP",
    LogicalField.UNIT_PRICE: "Your Price",
    LogicalField.QUANTITY: "Order Qty",
    LogicalField.LINE_TOTAL: "Line Total",
    LogicalField.NOTES: "Notes",
}


# ===================
# PROVENANCE METADATA
# ===================

class CompanySnapshot(CamelSchema):
    """Company as it was when the workbook was exported."""
    id: str
    name: str
    pricing_tier: str


class WorkbookFeatures(CamelSchema):
    """Behavior toggles resolved at export time."""
    allow_price_override: bool = False
    enforce_minimums: bool = False
    validate_inventory: bool = False

    @classmethod
    def for_order_type(cls, order_type: OrderType) -> "WorkbookFeatures":
        """Closeout enforces minimums; at-once validates inventory."""
        return cls(
            allow_price_override=False,
            enforce_minimums=order_type == OrderType.CLOSEOUT,
            validate_inventory=order_type == OrderType.AT_ONCE,
        )


class ProvenanceMetadata(CamelSchema):
    """
    Self-describing record embedded in the hidden _Meta sheet.

    Created once per export and never modified. `column_map` maps logical
    field names to column letters on the Order sheet.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["order-workbook-metadata"] = METADATA_KIND
    schema_version: str = Field(
        default=SCHEMA_VERSION,
        alias="schemaVersion",
        validation_alias=AliasChoices("schemaVersion", "schema_version", "version"),
    )
    generated_at: datetime
    export_id: str = Field(..., min_length=1)
    company: CompanySnapshot
    order_type: OrderType
    column_map: dict[str, str] = Field(default_factory=lambda: dict(CANONICAL_COLUMN_MAP))
    features: WorkbookFeatures = Field(default_factory=WorkbookFeatures)

    @field_validator("column_map")
    @classmethod
    def column_letters_valid(cls, v: dict[str, str]) -> dict[str, str]:
        """Keep known fields with well-formed letters; drop the rest."""
        known = {f.value for f in LogicalField}
        cleaned = {}
        for name, letter in v.items():
            letter = str(letter).strip().upper()
            if name in known and _COLUMN_LETTER.match(letter):
                cleaned[name] = letter
        return cleaned

    def column_letter(self, field: LogicalField) -> str:
        """Column letter for a field, canonical position if the map omits it."""
        return self.column_map.get(field.value, CANONICAL_COLUMN_MAP[field.value])


# ===================
# IMPORT RESULTS
# ===================

class ErrorCode(str, Enum):
    """Blocking problems."""
    MISSING_SHEET = "MISSING_SHEET"
    PARSE_ERROR = "PARSE_ERROR"
    MISSING_SKU = "MISSING_SKU"
    INVALID_SKU = "INVALID_SKU"
    INVALID_ORDER_TYPE = "INVALID_ORDER_TYPE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    BELOW_MINIMUM = "BELOW_MINIMUM"


class WarningCode(str, Enum):
    """Advisory problems."""
    METADATA_MISSING = "METADATA_MISSING"
    METADATA_INVALID = "METADATA_INVALID"
    COMPANY_MISMATCH = "COMPANY_MISMATCH"
    UNKNOWN_COMPANY = "UNKNOWN_COMPANY"
    LOW_INVENTORY = "LOW_INVENTORY"
    CREDIT_WARNING = "CREDIT_WARNING"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"


class OrderValidationError(CamelSchema):
    """Row-addressable error. Row 0 means the whole file."""
    row: int = Field(..., ge=0)
    field: str
    message: str
    code: ErrorCode


class OrderValidationWarning(CamelSchema):
    """Row-addressable warning. Never blocks the order."""
    row: int = Field(..., ge=0)
    field: str
    message: str
    code: WarningCode
    severity: Severity = Severity.WARNING


class ValidationResult(CamelSchema):
    errors: list[OrderValidationError] = Field(default_factory=list)
    warnings: list[OrderValidationWarning] = Field(default_factory=list)

    @computed_field
    @property
    def valid(self) -> bool:
        """Warnings never affect validity."""
        return len(self.errors) == 0


class ParsedLineItem(CamelSchema):
    """One order line recovered from the workbook, after merging."""
    product_id: str
    variant_id: Optional[str] = None
    sku: str
    name: str
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    variant: Optional[str] = None
    upc: Optional[str] = None
    notes: Optional[str] = None
    row: int = Field(..., ge=2, description="First sheet row this item came from")

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ParsedOrderResult(CamelSchema):
    """What an import hands back to the caller."""
    items: list[ParsedLineItem] = Field(default_factory=list)
    metadata: ProvenanceMetadata
    validation: ValidationResult = Field(default_factory=ValidationResult)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_value(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def stats(self) -> "ImportStats":
        """Summary numbers for the import response."""
        return ImportStats(
            item_count=len(self.items),
            total_quantity=self.total_quantity,
            total_value=self.total_value,
        )


class ImportStats(CamelSchema):
    item_count: int
    total_quantity: int
    total_value: Decimal
