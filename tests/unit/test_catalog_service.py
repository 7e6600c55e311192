"""
Unit tests for catalog lookup and SKU helpers.

Run: pytest tests/unit/test_catalog_service.py -v
"""

import pytest

from exceptions import DatabaseError
from models.catalog import OrderType, Product
from services.catalog_service import (
    CatalogService,
    build_sku_index,
    filter_eligible_products,
    is_eligible,
    row_sku,
    variant_skus,
)
from tests.factories import ProductFactory, VariantFactory


def by_id(products: list[Product], product_id: str) -> Product:
    return next(p for p in products if p.id == product_id)


# ===================
# ELIGIBILITY
# ===================

class TestEligibility:
    """Tests for is_eligible() and filter_eligible_products()"""

    def test_product_without_order_types_is_at_once_only(self, catalog):
        """A product with no declared order types only appears on at-once forms."""
        tee = by_id(catalog, "prod-tee")

        assert is_eligible(tee, OrderType.AT_ONCE) is True
        assert is_eligible(tee, OrderType.PREBOOK) is False
        assert is_eligible(tee, OrderType.CLOSEOUT) is False

    def test_filter_by_order_type(self, catalog):
        at_once = filter_eligible_products(catalog, OrderType.AT_ONCE)
        closeout = filter_eligible_products(catalog, OrderType.CLOSEOUT)

        assert [p.id for p in at_once] == ["prod-tee", "prod-cap"]
        assert [p.id for p in closeout] == ["prod-jkt"]

    def test_product_ids_filter_ignores_unknown_ids(self, catalog):
        """Unknown or ineligible IDs are silently dropped."""
        result = filter_eligible_products(
            catalog,
            OrderType.AT_ONCE,
            product_ids=["prod-cap", "prod-jkt", "does-not-exist"],
        )

        assert [p.id for p in result] == ["prod-cap"]

    def test_season_filter_applies_to_prebook(self, catalog):
        fall = filter_eligible_products(catalog, OrderType.PREBOOK, season="Fall 2026")
        spring = filter_eligible_products(catalog, OrderType.PREBOOK, season="Spring 2027")
        every_season = filter_eligible_products(catalog, OrderType.PREBOOK)

        assert [p.id for p in fall] == ["prod-cap"]
        assert [p.id for p in spring] == ["prod-bag"]
        assert [p.id for p in every_season] == ["prod-cap", "prod-bag"]

    def test_season_filter_ignored_for_at_once(self, catalog):
        result = filter_eligible_products(catalog, OrderType.AT_ONCE, season="Spring 2027")

        assert len(result) == 2


# ===================
# SKUS
# ===================

class TestSkus:
    """Tests for row_sku(), variant_skus() and build_sku_index()"""

    def test_variant_sku_used_when_present(self, catalog):
        tee = by_id(catalog, "prod-tee")

        assert row_sku(tee, tee.variants[0]) == "TEE-001-BLK-M"

    def test_synthetic_sku_strips_whitespace(self, catalog):
        """Variants without a SKU get baseSku-color-size with no spaces."""
        tee = by_id(catalog, "prod-tee")

        assert row_sku(tee, tee.variants[1]) == "TEE-001-HeatherGrey-XL"

    def test_product_without_variant_uses_product_sku(self, catalog):
        assert row_sku(by_id(catalog, "prod-cap")) == "CAP-002"

    def test_index_covers_products_variants_and_synthetic_skus(self, catalog):
        index = build_sku_index(catalog)

        product, variant = index["TEE-001-HeatherGrey-XL"]
        assert product.id == "prod-tee"
        assert variant.id == "var-tee-hg-xl"

        product, variant = index["CAP-002"]
        assert product.id == "prod-cap"
        assert variant is None

        assert "TEE-001" in index
        assert "UNKNOWN" not in index

    def test_variant_sku_wins_over_colliding_product_sku(self):
        """A variant carrying another product's SKU resolves to the variant."""
        plain = Product(**ProductFactory.create(id="plain", sku="SHARED-1"))
        with_variant = Product(**ProductFactory.create(
            id="varied",
            sku="BASE",
            variants=[VariantFactory.create(id="v1", sku="SHARED-1")],
        ))

        product, variant = build_sku_index([plain, with_variant])["SHARED-1"]

        assert product.id == "varied"
        assert variant.id == "v1"

    def test_colliding_synthetic_skus_get_suffixes(self):
        """Colors that differ only by spaces still yield one SKU per variant."""
        shirt = Product(**ProductFactory.create(sku="S", variants=[
            VariantFactory.create(id="v-navy-blue", color="Navy Blue", size="M", sku=None),
            VariantFactory.create(id="v-navyblue", color="NavyBlue", size="M", sku=None),
        ]))

        assert [(v.id, sku) for v, sku in variant_skus(shirt)] == [
            ("v-navy-blue", "S-NavyBlue-M"),
            ("v-navyblue", "S-NavyBlue-M-2"),
        ]

        index = build_sku_index([shirt])
        assert index["S-NavyBlue-M"][1].id == "v-navy-blue"
        assert index["S-NavyBlue-M-2"][1].id == "v-navyblue"

    def test_synthetic_sku_skips_explicit_variant_sku(self):
        """A generated SKU never shadows another variant's own SKU."""
        shirt = Product(**ProductFactory.create(sku="S", variants=[
            VariantFactory.create(id="v-generated", color="Red", size="L", sku=None),
            VariantFactory.create(id="v-explicit", color="Crimson", size="L", sku="S-Red-L"),
        ]))

        assert [sku for _, sku in variant_skus(shirt)] == ["S-Red-L-2", "S-Red-L"]
        assert build_sku_index([shirt])["S-Red-L"][1].id == "v-explicit"


# ===================
# SERVICE
# ===================

class TestCatalogService:
    """Tests for CatalogService database reads."""

    def test_get_all_products_returns_active_products(self, mock_db, mock_supabase, product_rows):
        """Should parse rows into Products and skip inactive ones."""
        inactive = ProductFactory.create(id="prod-old", sku="OLD-1", active=False)
        mock_supabase.set_table_data("products", product_rows + [inactive])
        service = CatalogService()

        products = service.get_all_products()

        assert len(products) == 4
        assert "prod-old" not in [p.id for p in products]
        assert by_id(products, "prod-jkt").order_type_metadata.closeout.minimum_order_quantity == 10

    def test_get_eligible_products(self, mock_db, mock_supabase, product_rows):
        mock_supabase.set_table_data("products", product_rows)
        service = CatalogService()

        products = service.get_eligible_products(OrderType.PREBOOK, season="Fall 2026")

        assert [p.sku for p in products] == ["CAP-002"]

    def test_query_failure_raises_database_error(self, mock_db, mock_supabase):
        mock_supabase.set_table_error("products", RuntimeError("connection reset"))
        service = CatalogService()

        with pytest.raises(DatabaseError) as exc_info:
            service.get_all_products()

        assert exc_info.value.status_code == 500
        assert "connection reset" in exc_info.value.message
