"""
Company lookup for the order writer.

Only the fields needed for pricing, the summary sheet and credit checks.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.catalog import Company
from exceptions import CompanyNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class CompanyService:
    """Company account reads."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "companies"

    def get_company(self, company_id: str) -> Company:
        """
        Get a company by ID.

        Args:
            company_id: Company identifier

        Returns:
            Company

        Raises:
            CompanyNotFoundError: If company doesn't exist
            DatabaseError: If the query fails
        """
        logger.debug("getting_company", company_id=company_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", company_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_company_failed", company_id=company_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            logger.warning("company_not_found", company_id=company_id)
            raise CompanyNotFoundError(company_id)

        return Company(**result.data[0])

    def find_company(self, company_id: str) -> Optional[Company]:
        """Like get_company, but None when the company doesn't exist."""
        try:
            return self.get_company(company_id)
        except CompanyNotFoundError:
            return None


_company_service: Optional[CompanyService] = None


def get_company_service() -> CompanyService:
    """Get or create CompanyService instance."""
    global _company_service
    if _company_service is None:
        _company_service = CompanyService()
    return _company_service
