"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings load at import time; tests never reach a real database
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import MagicMock, patch
from typing import Generator

from models.catalog import Company, Product
from tests.factories import CompanyFactory, ProductFactory, VariantFactory


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods and eq() filtering."""

    def __init__(self, data: list = None, error: Exception = None):
        self._data = data or []
        self._error = error

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column, value) == value]
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(data=self._data)


class MockSupabaseTable:
    """Mock Supabase table with configurable rows."""

    def __init__(self, data: list = None, error: Exception = None):
        self._data = data or []
        self._error = error

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(list(self._data), self._error)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure mock rows for a table."""
        self._tables[table_name] = {"data": data, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = {"data": [], "error": error}

    def table(self, name: str) -> MockSupabaseTable:
        config = self._tables.get(name, {"data": [], "error": None})
        return MockSupabaseTable(config["data"], config["error"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """Patch the database client used by the lookup services."""
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.company_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase


@pytest.fixture
def product_rows() -> list[dict]:
    """
    Catalog rows covering every order type.

    TEE-001  at-once only (no order_types); two variants, one without a SKU
    CAP-002  at-once and prebook (Fall 2026); no variants
    JKT-003  closeout only; tier price 50, closeout 100 at 40% off, minimum 10
    BAG-004  prebook only (Spring 2027); no tier pricing
    """
    return [
        ProductFactory.create(
            id="prod-tee",
            sku="TEE-001",
            name="Classic Tee",
            category="Tops",
            msrp="40.00",
            pricing={"tier-1": {"price": "20.00", "min_quantity": 1}, "tier-2": {"price": "25.00"}},
            variants=[
                VariantFactory.create(id="var-tee-blk-m", color="Black", size="M", sku="TEE-001-BLK-M", inventory=10),
                VariantFactory.create(id="var-tee-hg-xl", color="Heather Grey", size="X L", sku=None, inventory=2),
            ],
        ),
        ProductFactory.create(
            id="prod-cap",
            sku="CAP-002",
            name="Logo Cap",
            category="Accessories",
            msrp="30.00",
            pricing={"tier-1": {"price": "15.00"}},
            order_types=["at-once", "prebook"],
            order_type_metadata={"prebook": {"season": "Fall 2026", "deposit_percent": "30"}},
        ),
        ProductFactory.create(
            id="prod-jkt",
            sku="JKT-003",
            name="Rain Jacket",
            category="Outerwear",
            msrp="120.00",
            pricing={"tier-1": {"price": "50.00"}},
            order_types=["closeout"],
            order_type_metadata={
                "closeout": {
                    "original_price": "100.00",
                    "discount_percent": "40",
                    "minimum_order_quantity": 10,
                }
            },
        ),
        ProductFactory.create(
            id="prod-bag",
            sku="BAG-004",
            name="Tote Bag",
            category="Accessories",
            msrp="25.00",
            pricing={},
            order_types=["prebook"],
            order_type_metadata={"prebook": {"season": "Spring 2027", "minimum_units": 12}},
        ),
    ]


@pytest.fixture
def catalog(product_rows) -> list[Product]:
    return [Product(**row) for row in product_rows]


@pytest.fixture
def company_row() -> dict:
    return CompanyFactory.create(
        id="company-1",
        name="Mountain Outfitters",
        account_number="ACC-1001",
        pricing_tier="tier-1",
        payment_terms="Net 30",
        credit_limit="10000.00",
        credit_used="2500.00",
    )


@pytest.fixture
def company(company_row) -> Company:
    return Company(**company_row)


@pytest.fixture
def mock_catalog_service(catalog):
    """CatalogService stand-in serving the fixture catalog."""
    from services.catalog_service import filter_eligible_products

    service = MagicMock()
    service.get_all_products.return_value = catalog
    service.get_eligible_products.side_effect = (
        lambda order_type, product_ids=None, season=None:
            filter_eligible_products(catalog, order_type, product_ids=product_ids, season=season)
    )
    return service


@pytest.fixture
def mock_company_service(company):
    """CompanyService stand-in that knows only the fixture company."""
    from exceptions import CompanyNotFoundError

    def get_company(company_id):
        if company_id != company.id:
            raise CompanyNotFoundError(company_id)
        return company

    service = MagicMock()
    service.get_company.side_effect = get_company
    service.find_company.side_effect = lambda company_id: company if company_id == company.id else None
    return service


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
