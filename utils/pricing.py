"""
Price helpers shared by catalog validation and the cart.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, float, int, str]

CENTS = Decimal("0.01")


def to_money(value: Optional[Number]) -> Decimal:
    """
    Coerce a DB/RPC price (float, str, None) to a 2-decimal Decimal.

    Raises:
        ValueError: If the value is not a finite number
    """
    if value is None or value == "":
        return Decimal("0.00")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a price: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"not a price: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def calc_discounted(unit: Optional[Number], pct: Optional[Number]) -> Decimal:
    """
    Apply a customer discount percentage to a unit price.

    calc_discounted(10, 15) → Decimal("8.50")
    A missing percentage means no discount.
    """
    unit_price = to_money(unit)
    discount = Decimal(str(pct)) if pct else Decimal("0")
    return (unit_price * (1 - discount / 100)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(unit_price: Number, quantity: int) -> Decimal:
    """Unit price times quantity, in cents."""
    return (to_money(unit_price) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
