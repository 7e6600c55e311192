"""
Unit tests for OrderWorkbookService.

Run: pytest tests/unit/test_order_workbook_service.py -v
"""

from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook

from exceptions import CompanyNotFoundError, DatabaseError
from models.catalog import OrderType
from models.order_workbook import ErrorCode, WarningCode
from services.order_workbook_service import OrderWorkbookService


@pytest.fixture
def service(mock_catalog_service, mock_company_service) -> OrderWorkbookService:
    return OrderWorkbookService(mock_catalog_service, mock_company_service)


def fill(content: bytes, cells: dict) -> bytes:
    wb = load_workbook(BytesIO(content))
    for ref, value in cells.items():
        wb["Order"][ref] = value
    output = BytesIO()
    wb.save(output)
    return output.getvalue()


class TestExport:
    """Tests for export_workbook() and export_filename()"""

    def test_export_workbook(self, service):
        content = service.export_workbook("company-1", OrderType.AT_ONCE)

        assert load_workbook(BytesIO(content)).sheetnames == ["Order", "_Meta", "Summary"]

    def test_export_unknown_company(self, service):
        with pytest.raises(CompanyNotFoundError):
            service.export_workbook("company-404", OrderType.AT_ONCE)

    def test_export_filename(self):
        filename = OrderWorkbookService.export_filename(OrderType.PREBOOK, on=date(2026, 1, 15))

        assert filename == "order-prebook-20260115.xlsx"


class TestImport:
    """Tests for import_workbook()"""

    def test_import_round_trip(self, service):
        content = fill(service.export_workbook("company-1", OrderType.AT_ONCE), {"H2": 2, "H4": 1})

        result = service.import_workbook(content, "company-1")

        assert result.validation.valid is True
        stats = result.stats()
        assert stats.item_count == 2
        assert stats.total_quantity == 3
        assert str(stats.total_value) == "55.00"

    def test_import_for_deleted_company(self, service, mock_company_service):
        content = fill(service.export_workbook("company-1", OrderType.AT_ONCE), {"H2": 1})
        mock_company_service.find_company.side_effect = None
        mock_company_service.find_company.return_value = None

        result = service.import_workbook(content, "company-1")

        assert result.validation.valid is True
        assert WarningCode.UNKNOWN_COMPANY in [w.code for w in result.validation.warnings]

    def test_catalog_outage_reported_as_parse_error(self, service, mock_catalog_service):
        mock_catalog_service.get_all_products.side_effect = DatabaseError("select", "timeout")

        result = service.import_workbook(b"irrelevant", "company-1")

        assert result.items == []
        assert [e.code for e in result.validation.errors] == [ErrorCode.PARSE_ERROR]
        assert result.metadata.export_id == "ERROR"


class TestValidateSku:
    """Tests for validate_sku()"""

    @pytest.mark.parametrize("sku,expected", [
        ("TEE-001", True),
        ("TEE-001-BLK-M", True),
        ("TEE-001-HeatherGrey-XL", True),
        ("  CAP-002 ", True),
        ("BAG-004", True),
        ("NOPE", False),
    ])
    def test_validate_sku(self, service, sku, expected):
        assert service.validate_sku(sku) is expected
