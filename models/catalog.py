"""
Catalog and company schemas.

Rows come from the Supabase `products` and `companies` tables. Nested
pricing, variant and order-type metadata are stored as JSON columns.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from models.base import BaseSchema


class OrderType(str, Enum):
    """Wholesale order types."""
    AT_ONCE = "at-once"      # Ships now from stock
    PREBOOK = "prebook"      # Future season, deposit up front
    CLOSEOUT = "closeout"    # Clearance, usually final sale


class TierPrice(BaseSchema):
    """Price for one pricing tier."""
    price: Decimal = Field(..., ge=0)
    min_quantity: int = Field(default=1, ge=0)


class ProductVariant(BaseSchema):
    """Purchasable color/size combination of a product."""
    id: str
    color: str = ""
    size: str = ""
    sku: Optional[str] = None
    upc: Optional[str] = None
    inventory: int = Field(default=0, description="Units available to ship now")

    @property
    def label(self) -> str:
        """Human-readable descriptor, e.g. 'Black / M'."""
        return f"{self.color} / {self.size}"


class DeliveryWindow(BaseSchema):
    start: date
    end: date


class PrebookMetadata(BaseSchema):
    """Prebook terms for a product."""
    season: Optional[str] = None
    collection: Optional[str] = None
    delivery_window: Optional[DeliveryWindow] = None
    deposit_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    minimum_units: Optional[int] = Field(None, ge=0)


class CloseoutMetadata(BaseSchema):
    """Closeout terms for a product."""
    original_price: Optional[Decimal] = Field(None, ge=0)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    available_quantity: Optional[int] = Field(None, ge=0)
    expires_at: Optional[date] = None
    final_sale: bool = True
    minimum_order_quantity: Optional[int] = Field(None, ge=0)


class OrderTypeMetadata(BaseSchema):
    prebook: Optional[PrebookMetadata] = None
    closeout: Optional[CloseoutMetadata] = None


class Product(BaseSchema):
    """
    Catalog product with tier pricing and variants.

    A product with no `order_types` is sold at-once only.
    """
    id: str
    sku: str = Field(..., min_length=1)
    name: str
    category: str = ""
    msrp: Decimal = Field(..., ge=0)
    upc: Optional[str] = None
    pricing: dict[str, TierPrice] = Field(default_factory=dict)
    variants: list[ProductVariant] = Field(default_factory=list)
    order_types: Optional[list[OrderType]] = None
    order_type_metadata: OrderTypeMetadata = Field(default_factory=OrderTypeMetadata)


class Company(BaseSchema):
    """Customer account as seen by the order writer."""
    id: str
    name: str
    account_number: str = ""
    pricing_tier: str
    payment_terms: str = ""
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    credit_used: Decimal = Field(default=Decimal("0"), ge=0)

    @computed_field
    @property
    def credit_available(self) -> Decimal:
        return self.credit_limit - self.credit_used
