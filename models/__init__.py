"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, CamelSchema
from models.catalog import (
    OrderType,
    TierPrice,
    ProductVariant,
    DeliveryWindow,
    PrebookMetadata,
    CloseoutMetadata,
    OrderTypeMetadata,
    Product,
    Company,
)
from models.order_workbook import (
    LogicalField,
    CANONICAL_COLUMN_MAP,
    CompanySnapshot,
    WorkbookFeatures,
    ProvenanceMetadata,
    ErrorCode,
    WarningCode,
    Severity,
    OrderValidationError,
    OrderValidationWarning,
    ValidationResult,
    ParsedLineItem,
    ParsedOrderResult,
    ImportStats,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",

    # Catalog
    "OrderType",
    "TierPrice",
    "ProductVariant",
    "DeliveryWindow",
    "PrebookMetadata",
    "CloseoutMetadata",
    "OrderTypeMetadata",
    "Product",
    "Company",

    # Order workbook
    "LogicalField",
    "CANONICAL_COLUMN_MAP",
    "CompanySnapshot",
    "WorkbookFeatures",
    "ProvenanceMetadata",
    "ErrorCode",
    "WarningCode",
    "Severity",
    "OrderValidationError",
    "OrderValidationWarning",
    "ValidationResult",
    "ParsedLineItem",
    "ParsedOrderResult",
    "ImportStats",
]
