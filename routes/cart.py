"""
Cart API routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from models.cart import CartQuantityUpdate, CartResponse
from routes.errors import handle_error
from services.cart_service import CartService, get_cart_service

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("/{user_id}", response_model=CartResponse)
async def get_cart(user_id: str, cart: CartService = Depends(get_cart_service)):
    """Get a user's cart with subtotal and item count."""
    try:
        return cart.get_cart(user_id)
    except Exception as e:
        return handle_error(e)


@router.patch("/{user_id}/items/{catalog_id}", response_model=CartResponse)
async def update_cart_item(
    user_id: str,
    catalog_id: str,
    data: CartQuantityUpdate,
    cart: CartService = Depends(get_cart_service),
):
    """
    Change an item's quantity. 0 or less removes it.

    Raises:
        404: Item not in cart
    """
    try:
        return cart.update_quantity(user_id, catalog_id, data.quantity)
    except Exception as e:
        return handle_error(e)


@router.delete("/{user_id}/items/{catalog_id}", response_model=CartResponse)
async def remove_cart_item(user_id: str, catalog_id: str, cart: CartService = Depends(get_cart_service)):
    """Remove an item from the cart."""
    try:
        return cart.remove(user_id, catalog_id)
    except Exception as e:
        return handle_error(e)


@router.delete("/{user_id}", status_code=204, response_class=Response)
async def clear_cart(user_id: str, cart: CartService = Depends(get_cart_service)):
    """Empty the cart."""
    try:
        cart.clear(user_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)
