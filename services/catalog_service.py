"""
Catalog lookup for the order writer.

Reads products from Supabase and decides which of them belong on an
order form. The filtering and SKU helpers are plain functions so the
builder and parser agree on them.
"""

import re
from typing import Optional, Iterable
import structlog

from config import get_supabase_client
from models.catalog import OrderType, Product, ProductVariant
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

# (product, variant) pair a SKU resolves to; variant is None for plain products
SkuMatch = tuple[Product, Optional[ProductVariant]]


# ===================
# ELIGIBILITY
# ===================

def is_eligible(product: Product, order_type: OrderType) -> bool:
    """A product without explicit order types is sold at-once only."""
    if product.order_types is None:
        return order_type == OrderType.AT_ONCE
    return order_type in product.order_types


def filter_eligible_products(
    products: Iterable[Product],
    order_type: OrderType,
    product_ids: Optional[list[str]] = None,
    season: Optional[str] = None,
) -> list[Product]:
    """
    Products that belong on an order form.

    Args:
        products: Full catalog
        order_type: Requested order type
        product_ids: Optional whitelist; unknown IDs are ignored
        season: Prebook season filter (ignored for other order types)

    Returns:
        Eligible products in catalog order
    """
    eligible = [p for p in products if is_eligible(p, order_type)]

    if product_ids:
        wanted = set(product_ids)
        eligible = [p for p in eligible if p.id in wanted]

    if order_type == OrderType.PREBOOK and season:
        eligible = [
            p for p in eligible
            if p.order_type_metadata.prebook is not None
            and p.order_type_metadata.prebook.season == season
        ]

    return eligible


# ===================
# SKUS
# ===================

def row_sku(product: Product, variant: Optional[ProductVariant] = None) -> str:
    """
    SKU printed on an order form row.

    Variants without their own SKU get baseSku-color-size, whitespace removed:
    ("TEE", "Heather Grey", "X L") -> "TEE-HeatherGrey-XL"
    """
    if variant is None:
        return product.sku
    if variant.sku:
        return variant.sku
    return re.sub(r"\s+", "", f"{product.sku}-{variant.color}-{variant.size}")


def variant_skus(product: Product) -> list[tuple[ProductVariant, str]]:
    """
    Row SKU for each variant of a product, in variant order.

    A generated SKU that collides with an earlier one, or with a variant's
    own SKU, gets a "-2", "-3" ... suffix: "Navy Blue"/M and "NavyBlue"/M
    become "S-NavyBlue-M" and "S-NavyBlue-M-2".
    """
    seen = {variant.sku for variant in product.variants if variant.sku}
    skus = []
    for variant in product.variants:
        sku = row_sku(product, variant)
        if not variant.sku:
            base, suffix = sku, 2
            while sku in seen:
                sku = f"{base}-{suffix}"
                suffix += 1
            seen.add(sku)
        skus.append((variant, sku))
    return skus


def build_sku_index(products: Iterable[Product]) -> dict[str, SkuMatch]:
    """
    Map every SKU a workbook row may carry to its product and variant.

    Variant SKUs win over a product SKU that happens to collide with them.
    """
    products = list(products)
    index: dict[str, SkuMatch] = {}
    for product in products:
        index.setdefault(product.sku, (product, None))
    for product in products:
        for variant, sku in variant_skus(product):
            existing = index.get(sku)
            if existing is not None and existing[1] is not None and existing[1].id != variant.id:
                logger.warning(
                    "duplicate_variant_sku",
                    sku=sku,
                    product_id=product.id,
                    variant_id=variant.id,
                    replaced_variant_id=existing[1].id,
                )
            index[sku] = (product, variant)
    return index


# ===================
# SERVICE
# ===================

class CatalogService:
    """
    Product catalog reads.

    Nested pricing, variants and order-type metadata live in JSON columns
    of the `products` table.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    def get_all_products(self) -> list[Product]:
        """
        Get every active product.

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("getting_catalog")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("active", True)
                .order("sku")
                .execute()
            )
        except Exception as e:
            logger.error("get_catalog_failed", error=str(e))
            raise DatabaseError("select", str(e))

        products = [Product(**row) for row in result.data]

        logger.info("catalog_retrieved", count=len(products))

        return products

    def get_eligible_products(
        self,
        order_type: OrderType,
        product_ids: Optional[list[str]] = None,
        season: Optional[str] = None,
    ) -> list[Product]:
        """Active products eligible for an order form."""
        products = filter_eligible_products(
            self.get_all_products(),
            order_type,
            product_ids=product_ids,
            season=season,
        )

        logger.info(
            "eligible_products_retrieved",
            order_type=order_type.value,
            season=season,
            requested_ids=len(product_ids) if product_ids else None,
            count=len(products),
        )

        return products


_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
