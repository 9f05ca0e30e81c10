"""
Valuation of a single asset position.

All arithmetic is done on ``decimal.Decimal``. Floats are converted through
their string form so that ``0.1`` stays ``Decimal("0.1")`` and not its binary
approximation. Prices carry 4 fractional digits and quantities up to 8; values
are their exact product and are never rounded.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

PRICE_PLACES = 4
QUANTITY_PLACES = 8

PRICE_QUANTUM = Decimal(1).scaleb(-PRICE_PLACES)  # 0.0001
QUANTITY_QUANTUM = Decimal(1).scaleb(-QUANTITY_PLACES)  # 0.00000001
PERCENT_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """
    Convert a number to Decimal, leaving None untouched.

    Raises:
        ValueError: if the value is not a finite number
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")
    else:
        raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def decimal_places(value: Decimal) -> int:
    """Number of significant fractional digits (trailing zeros ignored)."""
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent)


def is_whole(value: Decimal) -> bool:
    return value == value.to_integral_value()


def quantize_price(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def compute_current_value(
    quantity: Optional[Number],
    purchase_price: Optional[Number],
    current_price: Optional[Number] = None,
) -> Optional[Decimal]:
    """
    Current value of a position: quantity times the best known price.

    Uses current_price when present, otherwise purchase_price.

    Returns:
        The exact product, or None when the quantity or the selected price
        is unset. A None result is a
        precondition failure for the caller to report, never a zero.
    """
    quantity = to_decimal(quantity)
    price = to_decimal(current_price) if current_price is not None else to_decimal(purchase_price)
    if quantity is None or price is None:
        return None
    return quantity * price


def cost_basis(purchase_price: Optional[Number], quantity: Optional[Number]) -> Optional[Decimal]:
    """Purchase price times quantity, or None if either is unset."""
    purchase_price = to_decimal(purchase_price)
    quantity = to_decimal(quantity)
    if purchase_price is None or quantity is None:
        return None
    return purchase_price * quantity


def profit_loss(
    current_value: Optional[Number],
    purchase_price: Optional[Number],
    quantity: Optional[Number],
) -> Decimal:
    """Current value minus cost basis; zero when any input is absent."""
    current_value = to_decimal(current_value)
    basis = cost_basis(purchase_price, quantity)
    if current_value is None or basis is None:
        return ZERO
    return current_value - basis


def profit_loss_percentage(
    profit_loss_amount: Optional[Number],
    purchase_price: Optional[Number],
    quantity: Optional[Number],
) -> Decimal:
    """
    Profit/loss as a percentage of the cost basis.

    Rounded half-up to 4 fractional digits. Yields exactly zero when the
    cost basis is zero or any input is absent; division by zero never raises.
    """
    profit_loss_amount = to_decimal(profit_loss_amount)
    basis = cost_basis(purchase_price, quantity)
    if profit_loss_amount is None or basis is None or basis == ZERO:
        return ZERO
    return (profit_loss_amount / basis * HUNDRED).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
