"""
Pricing rules shared by the workbook builder and parser.

Priority for a row's unit price:
    1. Closeout discount, for closeout orders carrying both original price
       and discount percent
    2. The company's pricing-tier entry
    3. MSRP
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from models.catalog import OrderType, Product

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def closeout_price(product: Product) -> Optional[Decimal]:
    """
    Discounted closeout price, or None if the product lacks closeout terms.

    original_price * (1 - discount_percent / 100)
    """
    closeout = product.order_type_metadata.closeout
    if closeout is None:
        return None
    if not closeout.original_price or not closeout.discount_percent:
        return None
    discount = Decimal(1) - closeout.discount_percent / Decimal(100)
    return to_money(closeout.original_price * discount)


def tier_price(product: Product, pricing_tier: Optional[str]) -> Optional[Decimal]:
    """Price for the company's tier, or None if the product has no entry."""
    if not pricing_tier:
        return None
    entry = product.pricing.get(pricing_tier)
    if entry is None:
        return None
    return to_money(entry.price)


def resolve_unit_price(
    product: Product,
    pricing_tier: Optional[str],
    order_type: OrderType,
) -> Decimal:
    """
    Authoritative unit price for a product.

    Closeout economics override tier pricing.

    Args:
        product: Catalog product
        pricing_tier: Company pricing tier (e.g. "tier-1")
        order_type: Order type the workbook was generated for

    Returns:
        Unit price rounded to cents
    """
    if order_type == OrderType.CLOSEOUT:
        price = closeout_price(product)
        if price is not None:
            return price

    price = tier_price(product, pricing_tier)
    if price is not None:
        return price

    return to_money(product.msrp)


def format_currency(value: Decimal) -> str:
    """
    Format as US dollars.

    Decimal("1234.5") -> "$1,234.50"
    Decimal("-20") -> "-$20.00"
    """
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
