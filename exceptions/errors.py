"""
Application errors.

Every error maps to one HTTP response: a stable machine-readable code,
a message safe to show the shopper, a status and a details dict. Routes
turn them into the envelope {"error": {code, message, details, timestamp}}.
"""

from datetime import datetime
from typing import Any, Optional


class AppError(Exception):
    """
    Base for all errors this API returns on purpose.

    Attributes:
        code: Stable error code, e.g. "BULK_ROW_NOT_FOUND"
        message: Text the storefront can show as-is
        status_code: HTTP status
        details: Extra context for the client (ids, counts)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp,
            }
        }

    @property
    def headers(self) -> Optional[dict[str, str]]:
        """Response headers to send with the error, if any."""
        return None


class NotFoundError(AppError):
    """404 for a missing session, row or cart item."""

    def __init__(self, resource: str, identifier: str, code: str):
        super().__init__(code, f"{resource} not found", 404, {"id": identifier})


class ValidationError(AppError):
    """422 for input the API cannot act on."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: Optional[dict] = None):
        super().__init__(code, message, 422, details)


class ConflictError(AppError):
    """409 when the session is in a state that forbids the request."""

    def __init__(self, message: str, code: str, details: Optional[dict] = None):
        super().__init__(code, message, 409, details)


class ExternalServiceError(AppError):
    """503 when Supabase (catalog or pricing) fails."""

    def __init__(self, service: str, message: str, details: Optional[dict] = None):
        super().__init__(
            f"{service.upper()}_ERROR",
            message,
            503,
            {"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """500 when the Supabase client cannot be created."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            "DATABASE_ERROR",
            f"Database {operation} failed: {message}",
            500,
            {"operation": operation}
        )


# ===================
# BULK ORDER SESSION ERRORS
# ===================

class BulkSessionNotFoundError(NotFoundError):
    """Bulk order session not found (or expired)."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Bulk order session",
            identifier=session_id,
            code="BULK_SESSION_NOT_FOUND"
        )


class BulkSessionClosedError(ConflictError):
    """Operation attempted on a closed session."""

    def __init__(self, session_id: str):
        super().__init__(
            code="BULK_SESSION_CLOSED",
            message="This bulk order session has been closed",
            details={"session_id": session_id}
        )


class BulkRowNotFoundError(NotFoundError):
    """Row id not present in the session."""

    def __init__(self, row_id: str):
        super().__init__(
            resource="Bulk order row",
            identifier=row_id,
            code="BULK_ROW_NOT_FOUND"
        )


class InvalidSKUError(ValidationError):
    """SKU is empty once normalized."""

    def __init__(self, sku: str):
        super().__init__(
            code="INVALID_SKU",
            message="Part number must contain letters or digits",
            details={"sku": sku}
        )


class ValidationInProgressError(ConflictError):
    """A validation round-trip is already outstanding."""

    def __init__(self, session_id: str):
        super().__init__(
            code="VALIDATION_IN_PROGRESS",
            message="Validation is already running for this order",
            details={"session_id": session_id}
        )


class CommitInProgressError(ConflictError):
    """The session is being added to the cart."""

    def __init__(self, session_id: str):
        super().__init__(
            code="COMMIT_IN_PROGRESS",
            message="Items from this order are being added to the cart",
            details={"session_id": session_id}
        )


# ===================
# CATALOG VALIDATION ERRORS
# ===================

class CatalogValidationError(ExternalServiceError):
    """The validation round-trip itself failed."""

    def __init__(self, message: str = "Validation failed. Please check your connection and try again.", details: Optional[dict] = None):
        super().__init__(
            service="catalog_validation",
            message=message,
            details=details
        )


class ValidationTimeoutError(AppError):
    """Validation round-trip exceeded the configured timeout (504)."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            code="CATALOG_VALIDATION_TIMEOUT",
            message="Validation took too long. Please try again.",
            status_code=504,
            details={"timeout_seconds": timeout_seconds}
        )


# ===================
# COMMIT ERRORS
# ===================

class NothingToCommitError(ValidationError):
    """No row is valid or warning."""

    def __init__(self, counts: Optional[dict] = None):
        super().__init__(
            code="NOTHING_TO_COMMIT",
            message="No valid items to add to cart",
            details={"counts": counts or {}}
        )


class CommitInterruptedError(AppError):
    """Cart insertion failed part-way through a commit."""

    def __init__(self, cause: AppError, committed_row_ids: list[str], failed_row_id: str):
        super().__init__(
            code="BULK_COMMIT_INTERRUPTED",
            message=f"Failed to add items to cart: {cause.message}",
            status_code=cause.status_code,
            details={
                "cause": cause.code,
                "committed_row_ids": committed_row_ids,
                "failed_row_id": failed_row_id,
            }
        )
        self.cause = cause
        self.committed_row_ids = committed_row_ids


# ===================
# RATE LIMIT ERRORS
# ===================

def _humanize_seconds(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} second{'' if seconds == 1 else 's'}"
    minutes = -(-seconds // 60)
    return f"{minutes} minute{'' if minutes == 1 else 's'}"


class RateLimitError(AppError):
    """Too many requests in the current window (429)."""

    def __init__(self, retry_after: int, limit: int, action: str = "processing another bulk order"):
        super().__init__(
            code="RATE_LIMITED",
            message=f"Please wait {_humanize_seconds(retry_after)} before {action}.",
            status_code=429,
            details={"retry_after": retry_after, "limit": limit}
        )
        self.retry_after = retry_after
        self.limit = limit

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
        }


# ===================
# CART ERRORS
# ===================

class CartLoginRequiredError(AppError):
    """Cart operations need a signed-in user (401)."""

    def __init__(self):
        super().__init__(
            code="CART_LOGIN_REQUIRED",
            message="User must be logged in to add items to cart",
            status_code=401
        )


class CartPricingError(ExternalServiceError):
    """Secure pricing RPC failed."""

    def __init__(self, catalog_id: str, message: str):
        super().__init__(
            service="cart_pricing",
            message=f"Could not price item: {message}",
            details={"catalog_id": catalog_id}
        )


class CartItemNotFoundError(NotFoundError):
    """Catalog id not present in the user's cart."""

    def __init__(self, catalog_id: str):
        super().__init__(
            resource="Cart item",
            identifier=catalog_id,
            code="CART_ITEM_NOT_FOUND"
        )
