"""
Cart schemas.

CartLine is what a bulk order hands to the cart; CartItem is what the
cart stores after server-side pricing.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class CartLine(BaseSchema):
    """One line handed to the cart for insertion."""

    catalog_id: str = Field(..., min_length=1, description="Catalog identifier")
    sku: str = Field(..., description="Part number")
    description: Optional[str] = Field(None, description="Catalog description")
    price: Decimal = Field(Decimal("0.00"), description="List price")
    quantity: int = Field(..., ge=1, description="Quantity to add")
    discounted_price: Decimal = Field(Decimal("0.00"), description="Customer price shown at validation")
    in_stock: bool = Field(False, description="Stock flag")


class CartItem(CartLine):
    """Cart line priced by the secure pricing RPC."""

    unit_price: Decimal = Field(..., description="Server-computed unit price")
    line_total: Decimal = Field(..., description="unit_price * quantity")


class CartQuantityUpdate(BaseSchema):
    quantity: int = Field(..., description="New quantity; 0 or less removes the item")


class CartResponse(BaseSchema):
    """A user's cart."""

    user_id: str
    items: list[CartItem] = Field(default_factory=list)
    subtotal: Decimal = Field(Decimal("0.00"), description="Sum of line totals")
    count: int = Field(0, description="Sum of quantities")


class CommitResponse(BaseSchema):
    """Result of adding a bulk order to the cart."""

    session_id: str
    added: list[CartItem] = Field(default_factory=list)
    skipped: int = Field(0, description="Pending or error rows left out")
    cart: Optional[CartResponse] = None
