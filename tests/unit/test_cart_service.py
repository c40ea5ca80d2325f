"""
Unit tests for CartService.
"""

from decimal import Decimal
import pytest

from exceptions import CartItemNotFoundError, CartLoginRequiredError, CartPricingError
from models.cart import CartLine
from services.cart_service import CartService, get_cart_service


def make_line(catalog_id: str = "part-1", quantity: int = 2, **overrides) -> CartLine:
    defaults = {
        "catalog_id": catalog_id,
        "sku": "ABC123",
        "description": "Door gasket",
        "price": Decimal("10.00"),
        "quantity": quantity,
        "discounted_price": Decimal("9.50"),
        "in_stock": True,
    }
    return CartLine(**{**defaults, **overrides})


@pytest.fixture
def cart(mock_supabase, pricing_rpc) -> CartService:
    return CartService(client=mock_supabase)


class TestAddLine:

    def test_add_prices_with_rpc(self, cart, mock_supabase):
        item = cart.add_line("user-1", make_line(quantity=2))

        assert item.unit_price == Decimal("9.50")
        assert item.line_total == Decimal("19.00")
        assert mock_supabase.calls_to("calculate_secure_pricing") == [{
            "part_id_input": "part-1",
            "user_id_input": "user-1",
            "quantity_input": 2,
        }]

    def test_same_catalog_id_merges(self, cart):
        cart.add_line("user-1", make_line(quantity=2))
        item = cart.add_line("user-1", make_line(quantity=3))

        assert item.quantity == 5
        assert item.line_total == Decimal("47.50")
        assert len(cart.get_cart("user-1").items) == 1

    def test_carts_are_per_user(self, cart):
        cart.add_line("user-1", make_line())
        assert cart.get_cart("user-2").items == []

    def test_requires_user(self, cart, mock_supabase):
        with pytest.raises(CartLoginRequiredError):
            cart.add_line(None, make_line())
        assert mock_supabase.rpc_calls == []

    def test_pricing_rpc_error(self, mock_supabase):
        mock_supabase.set_rpc_result("calculate_secure_pricing", RuntimeError("connection reset"))
        cart = CartService(client=mock_supabase)

        with pytest.raises(CartPricingError) as exc_info:
            cart.add_line("user-1", make_line())

        assert exc_info.value.details["catalog_id"] == "part-1"
        assert cart.get_cart("user-1").items == []

    def test_pricing_rpc_without_price(self, mock_supabase):
        mock_supabase.set_rpc_result("calculate_secure_pricing", [])
        cart = CartService(client=mock_supabase)

        with pytest.raises(CartPricingError):
            cart.add_line("user-1", make_line())

    def test_pricing_rpc_list_response(self, mock_supabase):
        mock_supabase.set_rpc_result("calculate_secure_pricing", [{"unit_price": "4.2"}])
        cart = CartService(client=mock_supabase)

        assert cart.add_line("user-1", make_line(quantity=1)).unit_price == Decimal("4.20")


    @pytest.mark.parametrize("data", [7, {"unit_price": "n/a"}, [{"unit_price": "n/a"}]])
    def test_malformed_pricing_response(self, mock_supabase, data):
        mock_supabase.set_rpc_result("calculate_secure_pricing", data)
        cart = CartService(client=mock_supabase)

        with pytest.raises(CartPricingError):
            cart.add_line("user-1", make_line())

        assert cart.get_cart("user-1").items == []


class TestCartQueries:

    def test_get_cart_totals(self, cart):
        cart.add_line("user-1", make_line("part-1", quantity=2))
        cart.add_line("user-1", make_line("part-2", quantity=1, sku="DEF456"))

        result = cart.get_cart("user-1")

        assert result.count == 3
        assert result.subtotal == Decimal("28.50")

    def test_update_quantity(self, cart):
        cart.add_line("user-1", make_line(quantity=2))

        result = cart.update_quantity("user-1", "part-1", 4)

        assert result.items[0].quantity == 4
        assert result.items[0].line_total == Decimal("38.00")

    def test_update_to_zero_removes(self, cart):
        cart.add_line("user-1", make_line())
        assert cart.update_quantity("user-1", "part-1", 0).items == []

    def test_update_missing_item(self, cart):
        with pytest.raises(CartItemNotFoundError):
            cart.update_quantity("user-1", "nope", 1)

    def test_remove_and_clear(self, cart):
        cart.add_line("user-1", make_line("part-1"))
        cart.add_line("user-1", make_line("part-2"))

        assert len(cart.remove("user-1", "part-1").items) == 1
        cart.clear("user-1")
        assert cart.get_cart("user-1").count == 0


class TestGetCartService:

    def test_singleton(self, mock_db):
        assert get_cart_service() is get_cart_service()
