"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.bulk_order import (
    RowStatus,
    COMMITTABLE_STATUSES,
    UNMATCHED_SKU_MESSAGE,
    ValidationResult,
    BulkRow,
    ReadinessCounts,
    BulkOrderCreate,
    BulkTextReplace,
    BulkRowPatch,
    BulkSessionResponse,
)
from models.cart import (
    CartLine,
    CartItem,
    CartQuantityUpdate,
    CartResponse,
    CommitResponse,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "RowStatus",
    "COMMITTABLE_STATUSES",
    "UNMATCHED_SKU_MESSAGE",
    "ValidationResult",
    "BulkRow",
    "ReadinessCounts",
    "BulkOrderCreate",
    "BulkTextReplace",
    "BulkRowPatch",
    "BulkSessionResponse",
    "CartLine",
    "CartItem",
    "CartQuantityUpdate",
    "CartResponse",
    "CommitResponse",
]
