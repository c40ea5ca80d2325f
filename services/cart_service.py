"""
Cart service.

Per-user carts kept in memory. Every insertion is priced by the
calculate_secure_pricing RPC so the customer price never comes from
the client.
"""

from decimal import Decimal
from threading import Lock
from typing import Optional
import structlog

from config import get_supabase_client
from exceptions import (
    CartItemNotFoundError,
    CartLoginRequiredError,
    CartPricingError,
)
from models.cart import CartItem, CartLine, CartResponse
from utils.pricing import line_total, to_money

logger = structlog.get_logger(__name__)

PRICING_RPC = "calculate_secure_pricing"


class CartService:
    """
    Cart business logic.

    Handles add / update / remove for each user's cart.
    """

    def __init__(self, client=None):
        self.db = client if client is not None else get_supabase_client()
        self._carts: dict[str, dict[str, CartItem]] = {}
        self._lock = Lock()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_cart(self, user_id: str) -> CartResponse:
        """Current cart for a user (empty if none)."""
        with self._lock:
            items = list(self._carts.get(user_id, {}).values())

        return CartResponse(
            user_id=user_id,
            items=items,
            subtotal=sum((i.line_total for i in items), Decimal("0.00")),
            count=sum(i.quantity for i in items),
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def add_line(self, user_id: Optional[str], line: CartLine) -> CartItem:
        """
        Add a line to the user's cart.

        If the catalog id is already in the cart the quantities merge and
        the line total is recomputed at the server price.

        Args:
            user_id: Signed-in user
            line: Line handed over by the bulk order

        Returns:
            The cart item after insertion

        Raises:
            CartLoginRequiredError: If there is no user
            CartPricingError: If the pricing RPC fails
        """
        if not user_id:
            logger.warning("cart_add_without_user", catalog_id=line.catalog_id)
            raise CartLoginRequiredError()

        unit_price = self._secure_unit_price(user_id, line)

        with self._lock:
            cart = self._carts.setdefault(user_id, {})
            existing = cart.get(line.catalog_id)

            if existing:
                quantity = existing.quantity + line.quantity
                item = existing.model_copy(update={
                    "quantity": quantity,
                    "unit_price": unit_price,
                    "line_total": line_total(unit_price, quantity),
                })
            else:
                item = CartItem(
                    **line.model_dump(),
                    unit_price=unit_price,
                    line_total=line_total(unit_price, line.quantity),
                )
            cart[line.catalog_id] = item

        logger.info(
            "cart_item_added",
            user_id=user_id,
            catalog_id=line.catalog_id,
            quantity=item.quantity,
            merged=existing is not None
        )
        return item

    def update_quantity(self, user_id: str, catalog_id: str, quantity: int) -> CartResponse:
        """
        Change an item's quantity; 0 or less removes it.

        Raises:
            CartItemNotFoundError: If the item is not in the cart
        """
        with self._lock:
            cart = self._carts.get(user_id, {})
            existing = cart.get(catalog_id)
            if existing is None:
                raise CartItemNotFoundError(catalog_id)

            if quantity <= 0:
                del cart[catalog_id]
            else:
                cart[catalog_id] = existing.model_copy(update={
                    "quantity": quantity,
                    "line_total": line_total(existing.unit_price, quantity),
                })

        logger.info("cart_quantity_updated", user_id=user_id, catalog_id=catalog_id, quantity=quantity)
        return self.get_cart(user_id)

    def remove(self, user_id: str, catalog_id: str) -> CartResponse:
        """Remove one item (no-op if absent)."""
        with self._lock:
            self._carts.get(user_id, {}).pop(catalog_id, None)
        logger.info("cart_item_removed", user_id=user_id, catalog_id=catalog_id)
        return self.get_cart(user_id)

    def clear(self, user_id: str) -> None:
        """Empty the user's cart."""
        with self._lock:
            self._carts.pop(user_id, None)
        logger.info("cart_cleared", user_id=user_id)

    # ===================
    # PRICING
    # ===================

    def _secure_unit_price(self, user_id: str, line: CartLine) -> Decimal:
        try:
            response = self.db.rpc(
                PRICING_RPC,
                {
                    "part_id_input": line.catalog_id,
                    "user_id_input": user_id,
                    "quantity_input": line.quantity,
                }
            ).execute()

            data = response.data
            if isinstance(data, list):
                data = data[0] if data else None
            raw_price = data.get("unit_price") if data else None
            unit_price = None if raw_price is None else to_money(raw_price)
        except Exception as e:
            logger.error(
                "cart_pricing_failed",
                catalog_id=line.catalog_id,
                error=str(e),
                error_type=type(e).__name__
            )
            raise CartPricingError(line.catalog_id, str(e)) from e

        if unit_price is None:
            logger.error("cart_pricing_empty", catalog_id=line.catalog_id)
            raise CartPricingError(line.catalog_id, "no price returned")

        return unit_price


# Singleton instance for convenience
_cart_service: Optional[CartService] = None


def get_cart_service() -> CartService:
    """Get or create CartService instance."""
    global _cart_service
    if _cart_service is None:
        _cart_service = CartService()
    return _cart_service
