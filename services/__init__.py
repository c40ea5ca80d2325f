"""
Business logic services.

Each service handles one domain area.
"""

from services.catalog_validation_service import (
    CatalogValidationService,
    get_catalog_validation_service,
)
from services.cart_service import CartService, get_cart_service
from services.rate_limit_service import RateLimiter, get_bulk_rate_limiter, rate_limit_key
from services.bulk_order_service import (
    BulkOrderSession,
    validate_rows,
    commit_rows,
    apply_validation_results,
    count_statuses,
    to_cart_line,
)
from services import bulk_session_store

__all__ = [
    "CatalogValidationService",
    "get_catalog_validation_service",
    "CartService",
    "get_cart_service",
    "RateLimiter",
    "get_bulk_rate_limiter",
    "rate_limit_key",
    "BulkOrderSession",
    "validate_rows",
    "commit_rows",
    "apply_validation_results",
    "count_statuses",
    "to_cart_line",
    "bulk_session_store",
]
