"""
Order-type business rules for imported workbook rows.

Errors block order creation; warnings are advisory. Row checks stop at the
first failure so one bad row produces one error.
"""

from decimal import Decimal
from typing import Optional

from models.catalog import Company, OrderType, ProductVariant
from models.order_workbook import (
    ErrorCode,
    OrderValidationError,
    OrderValidationWarning,
    ProvenanceMetadata,
    Severity,
    WarningCode,
)
from services.catalog_service import SkuMatch
from services.pricing_service import format_currency


class OrderValidator:
    """Validates rows against the rules the workbook was exported under."""

    def __init__(self, metadata: ProvenanceMetadata):
        self.metadata = metadata
        self.order_type = metadata.order_type
        self.features = metadata.features

    def check_row(
        self,
        row: int,
        sku: Optional[str],
        match: Optional[SkuMatch],
        quantity: int,
    ) -> Optional[OrderValidationError]:
        """
        First blocking problem with a row, or None.

        Checks, in order: SKU present, SKU known, product sold for this
        order type, quantity at least 1, closeout minimum met.
        """
        if not sku:
            return OrderValidationError(
                row=row,
                field="sku",
                message="SKU is required",
                code=ErrorCode.MISSING_SKU,
            )

        if match is None:
            return OrderValidationError(
                row=row,
                field="sku",
                message=f'SKU "{sku}" not found',
                code=ErrorCode.INVALID_SKU,
            )

        product, _ = match

        if product.order_types is not None and self.order_type not in product.order_types:
            return OrderValidationError(
                row=row,
                field="orderType",
                message=f'Product "{sku}" not available for {self.order_type.value} orders',
                code=ErrorCode.INVALID_ORDER_TYPE,
            )

        if quantity < 1:
            return OrderValidationError(
                row=row,
                field="quantity",
                message="Quantity must be at least 1",
                code=ErrorCode.INVALID_QUANTITY,
            )

        closeout = product.order_type_metadata.closeout
        if (
            self.order_type == OrderType.CLOSEOUT
            and closeout is not None
            and closeout.minimum_order_quantity
            and quantity < closeout.minimum_order_quantity
        ):
            return OrderValidationError(
                row=row,
                field="quantity",
                message=(
                    f"Minimum order quantity is {closeout.minimum_order_quantity} "
                    "for closeout items"
                ),
                code=ErrorCode.BELOW_MINIMUM,
            )

        return None

    def check_inventory(
        self,
        row: int,
        variant: Optional[ProductVariant],
        quantity: int,
    ) -> Optional[OrderValidationWarning]:
        """Warn when an at-once variant row asks for more than is in stock."""
        if variant is None:
            return None
        if not self.features.validate_inventory or self.order_type != OrderType.AT_ONCE:
            return None
        if quantity <= variant.inventory:
            return None

        return OrderValidationWarning(
            row=row,
            field="inventory",
            message=f"Only {variant.inventory} units available",
            code=WarningCode.LOW_INVENTORY,
            severity=Severity.WARNING,
        )


def check_credit(company: Company, order_total: Decimal) -> Optional[OrderValidationWarning]:
    """Account-level notice when the order would exceed the credit limit."""
    if company.credit_used + order_total <= company.credit_limit:
        return None

    return OrderValidationWarning(
        row=0,
        field="credit",
        message=(
            f"Order total ({format_currency(order_total)}) may exceed available "
            f"credit ({format_currency(company.credit_available)})"
        ),
        code=WarningCode.CREDIT_WARNING,
        severity=Severity.INFO,
    )
