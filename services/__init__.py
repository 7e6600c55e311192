"""
Business logic services.

Each service handles one domain area. The order workbook facade depends on
parsers and is imported from services.order_workbook_service directly.
"""

from services.catalog_service import CatalogService, get_catalog_service
from services.company_service import CompanyService, get_company_service
from services.workbook_builder_service import (
    WorkbookBuilderService,
    get_workbook_builder_service,
)

__all__ = [
    "CatalogService",
    "get_catalog_service",
    "CompanyService",
    "get_company_service",
    "WorkbookBuilderService",
    "get_workbook_builder_service",
]
