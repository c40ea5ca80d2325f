"""
Bulk order schemas: pasted rows, validation results and session views.

A BulkRow is immutable. Its status only changes through the named
transitions below, each of which returns a new row.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import AliasChoices, Field, computed_field, field_validator

from models.base import BaseSchema, FrozenSchema
from utils.pricing import to_money
from utils.text_utils import coerce_quantity, normalize_sku

UNMATCHED_SKU_MESSAGE = "Validation failed"


class RowStatus(str, Enum):
    """Lifecycle of a bulk row."""
    PENDING = "pending"
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


COMMITTABLE_STATUSES = frozenset({RowStatus.VALID, RowStatus.WARNING})

# Fields that only mean something after a validation round-trip
_VALIDATION_FIELDS = {
    "description": None,
    "unit_price": None,
    "discounted_price": None,
    "in_stock": None,
    "error_message": None,
    "resolved_catalog_id": None,
}


class ValidationResult(BaseSchema):
    """
    One entry of the catalog validation response.

    Accepts the RPC's column names (part_number, part_id) as aliases.
    """

    sku: str = Field(
        ...,
        validation_alias=AliasChoices("sku", "part_number"),
        description="Part number the result answers for"
    )
    catalog_id: str = Field(
        "",
        validation_alias=AliasChoices("catalog_id", "part_id"),
        description="Canonical catalog identifier"
    )
    description: Optional[str] = Field(None, description="Catalog description")
    price: Decimal = Field(Decimal("0.00"), description="List price")
    discounted_price: Optional[Decimal] = Field(None, description="Price after customer discount")
    in_stock: bool = Field(False, description="Stock flag")
    status: str = Field(..., description="ok, warn, or anything else for error")
    message: Optional[str] = Field(None, description="Soft issue or error text")

    @field_validator("price", mode="before")
    @classmethod
    def price_to_money(cls, v: Any) -> Decimal:
        return to_money(v)

    @field_validator("discounted_price", mode="before")
    @classmethod
    def discounted_to_money(cls, v: Any) -> Optional[Decimal]:
        if v is None:
            return None
        return to_money(v)

    @field_validator("catalog_id", mode="before")
    @classmethod
    def catalog_id_to_str(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def row_status(self) -> RowStatus:
        """Map the RPC status onto a row status."""
        status = (self.status or "").lower()
        if status == "ok":
            return RowStatus.VALID
        if status == "warn":
            return RowStatus.WARNING
        return RowStatus.ERROR


class BulkRow(FrozenSchema):
    """One (part number, quantity) line awaiting validation or cart insertion."""

    id: str = Field(..., description="Row id, unique within the session")
    sku_text: str = Field(..., min_length=1, description="Normalized part number")
    quantity: int = Field(..., ge=1, description="Requested quantity")
    status: RowStatus = Field(RowStatus.PENDING, description="Row lifecycle status")
    description: Optional[str] = None
    unit_price: Optional[Decimal] = None
    discounted_price: Optional[Decimal] = None
    in_stock: Optional[bool] = None
    error_message: Optional[str] = None
    resolved_catalog_id: Optional[str] = None

    @classmethod
    def new(cls, sku_text: str, quantity: int) -> "BulkRow":
        """Create a pending row with a fresh id."""
        return cls(id=f"bulk-{uuid4().hex[:12]}", sku_text=sku_text, quantity=quantity)

    def _transition(self, **changes) -> "BulkRow":
        # model_copy skips validation; rebuild so invariants are rechecked
        return type(self).model_validate({**self.model_dump(), **changes})

    # ===================
    # TRANSITIONS
    # ===================

    def mark_pending(self) -> "BulkRow":
        """Back to pending with every validation field cleared."""
        return self._transition(status=RowStatus.PENDING, **_VALIDATION_FIELDS)

    def edit(self, sku_text: Optional[str] = None, quantity: Any = None) -> "BulkRow":
        """
        Apply a manual correction.

        Always resets the row to pending, even when nothing changed, so a
        stale validation can never be shown against edited input.

        Raises:
            ValueError: If the SKU normalizes to an empty string
        """
        changes: dict[str, Any] = {}
        if sku_text is not None:
            sku = normalize_sku(sku_text)
            if not sku:
                raise ValueError("SKU must contain letters or digits")
            changes["sku_text"] = sku
        if quantity is not None:
            changes["quantity"] = coerce_quantity(quantity)
        return self._transition(**changes).mark_pending()

    def apply_validation_result(self, result: ValidationResult) -> "BulkRow":
        """
        Populate the row from its catalog validation result.

        A result without a catalog id cannot be added to a cart, so it is
        treated as an error whatever its status says.
        """
        if not result.catalog_id and result.row_status in COMMITTABLE_STATUSES:
            return self.mark_error(result.message or UNMATCHED_SKU_MESSAGE)
        return self._transition(
            status=result.row_status,
            description=result.description,
            unit_price=result.price,
            discounted_price=result.discounted_price,
            in_stock=result.in_stock,
            error_message=result.message or None,
            resolved_catalog_id=result.catalog_id or None,
        )

    def mark_error(self, message: str) -> "BulkRow":
        """Terminal error until the row is edited or revalidated."""
        return self._transition(
            **{**_VALIDATION_FIELDS, "status": RowStatus.ERROR, "error_message": message}
        )

    @property
    def is_committable(self) -> bool:
        return self.status in COMMITTABLE_STATUSES


class ReadinessCounts(BaseSchema):
    """Per-status row counts for the summary bar."""

    pending: int = 0
    valid: int = 0
    warning: int = 0
    error: int = 0
    total: int = 0

    @property
    def committable(self) -> int:
        return self.valid + self.warning

    @computed_field
    @property
    def can_commit(self) -> bool:
        """Adding to the cart needs at least one valid or warning row."""
        return self.committable > 0


# ===================
# REQUEST MODELS
# ===================

class BulkOrderCreate(BaseSchema):
    """Start a session from pasted text."""

    text: str = Field(
        "",
        max_length=200_000,
        description="Pasted part list",
        examples=["ABC123\t5\nDEF-456,10"]
    )
    user_id: Optional[str] = Field(
        None,
        description="Acting user (anonymous when omitted)"
    )
    discount_percentage: Optional[Decimal] = Field(
        None,
        ge=0,
        le=100,
        description="Customer discount used when the fallback validation path prices parts"
    )


class BulkTextReplace(BaseSchema):
    """Replace the row set with a new paste."""

    text: str = Field("", max_length=200_000, description="Pasted part list")


class BulkRowPatch(BaseSchema):
    """
    Manual correction of one row.

    Quantity is clamped to at least 1; junk input becomes 1.
    """

    sku_text: Optional[str] = Field(None, description="New part number")
    quantity: Optional[int] = Field(None, description="New quantity")

    @field_validator("sku_text")
    @classmethod
    def sku_normalized(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        sku = normalize_sku(v)
        if not sku:
            raise ValueError("SKU must contain letters or digits")
        return sku

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_clamped(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return coerce_quantity(v)


# ===================
# RESPONSE MODELS
# ===================

class BulkSessionResponse(BaseSchema):
    """Full view of a bulk order session."""

    session_id: str = Field(..., description="Session id")
    user_id: Optional[str] = Field(None, description="Acting user")
    rows: list[BulkRow] = Field(default_factory=list, description="Rows in input order")
    counts: ReadinessCounts = Field(..., description="Per-status counts")
    validating: bool = Field(False, description="A validation round-trip is outstanding")
    validation_complete: bool = Field(False, description="Rows reflect the latest validation")
