"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Lookups
    CompanyNotFoundError,

    # Metadata codec
    MetadataDecodeError,
    MetadataEncodeError,

    # Order writer uploads
    WorkbookUploadError,
    OrderValidationFailedError,
    EmptyOrderError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Lookups
    "CompanyNotFoundError",

    # Metadata codec
    "MetadataDecodeError",
    "MetadataEncodeError",

    # Order writer uploads
    "WorkbookUploadError",
    "OrderValidationFailedError",
    "EmptyOrderError",
]
