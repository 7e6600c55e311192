"""
Custom exception classes for the application.

Row-level order problems are returned as data (see models.order_workbook),
not raised. These exceptions cover lookups, the metadata codec and the
HTTP boundary.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "COMPANY_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# LOOKUP ERRORS
# ===================

class CompanyNotFoundError(NotFoundError):
    """Company not found."""

    def __init__(self, company_id: str):
        super().__init__(
            resource="Company",
            identifier=company_id,
            code="COMPANY_NOT_FOUND"
        )


# ===================
# METADATA CODEC ERRORS
# ===================

class MetadataDecodeError(ValidationError):
    """Embedded workbook metadata could not be decoded."""

    def __init__(self, reason: str, details: Optional[dict] = None):
        super().__init__(
            code="METADATA_DECODE_ERROR",
            message=f"Invalid workbook metadata: {reason}",
            details=details
        )


class MetadataEncodeError(AppError):
    """Workbook metadata does not fit in a single cell."""

    def __init__(self, length: int, limit: int):
        super().__init__(
            code="METADATA_ENCODE_ERROR",
            message="Workbook metadata is too large to embed",
            status_code=500,
            details={"length": length, "limit": limit}
        )


# ===================
# ORDER WRITER UPLOAD ERRORS
# ===================

class WorkbookUploadError(ValidationError):
    """Uploaded file rejected before parsing."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_UPLOAD",
            message=message,
            details=details,
            status_code=400
        )


class OrderValidationFailedError(ValidationError):
    """Parsed workbook carries blocking row errors."""

    def __init__(self, validation: dict, items: list[dict]):
        super().__init__(
            code="ORDER_VALIDATION_FAILED",
            message=f"Validation failed with {len(validation.get('errors', []))} errors",
            details={"validation": validation, "items": items}
        )


class EmptyOrderError(ValidationError):
    """Parsed workbook is valid but has no items."""

    def __init__(self):
        super().__init__(
            code="EMPTY_ORDER",
            message="No valid items found in the order",
            status_code=400
        )
