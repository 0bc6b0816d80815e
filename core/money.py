# core/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Iterable, Optional, Union

from core.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# numeric(10,2)
MAX_AMOUNT = Decimal("99999999.99")

MoneyLike = Union[Decimal, int, float, str]


def parse_amount(value: MoneyLike) -> Decimal:
    """
    Validate a monetary input and return it with exactly two decimal places.

    Values with more than two fractional digits are rejected rather than
    rounded. Floats are read through their shortest repr, so 0.1 is 0.10.
    """
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value).strip()) if isinstance(value, (float, str)) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"amount '{value}' is not a valid decimal")

    if not amount.is_finite():
        raise ValidationError("amount must be finite")
    # range first: quantize needs the result to fit the context precision
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"amount '{value}' exceeds {MAX_AMOUNT}")
    if amount.as_tuple().exponent < -2 and amount != amount.quantize(CENT):
        raise ValidationError(f"amount '{value}' has more than 2 decimal places")
    return amount.quantize(CENT)


def from_store(value: Optional[MoneyLike]) -> Decimal:
    """Normalize a numeric(10,2) value read back from the store. NULL counts as zero."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_EVEN)


def total(values: Iterable[Optional[MoneyLike]]) -> Decimal:
    return sum((from_store(v) for v in values), ZERO)


def to_wire(amount: Decimal) -> str:
    return str(amount.quantize(CENT))
