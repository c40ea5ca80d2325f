"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
    DatabaseError,

    # Bulk order session
    BulkSessionNotFoundError,
    BulkSessionClosedError,
    BulkRowNotFoundError,
    InvalidSKUError,
    ValidationInProgressError,
    CommitInProgressError,

    # Catalog validation
    CatalogValidationError,
    ValidationTimeoutError,

    # Commit
    NothingToCommitError,
    CommitInterruptedError,

    # Rate limiting
    RateLimitError,

    # Cart
    CartLoginRequiredError,
    CartPricingError,
    CartItemNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",
    "DatabaseError",

    # Bulk order session
    "BulkSessionNotFoundError",
    "BulkSessionClosedError",
    "BulkRowNotFoundError",
    "InvalidSKUError",
    "ValidationInProgressError",
    "CommitInProgressError",

    # Catalog validation
    "CatalogValidationError",
    "ValidationTimeoutError",

    # Commit
    "NothingToCommitError",
    "CommitInterruptedError",

    # Rate limiting
    "RateLimitError",

    # Cart
    "CartLoginRequiredError",
    "CartPricingError",
    "CartItemNotFoundError",
]
