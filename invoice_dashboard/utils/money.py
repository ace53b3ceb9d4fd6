from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..core.exceptions import InvalidArgumentError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def _to_decimal(value, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidArgumentError(f"{field} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidArgumentError(f"{field} must be a finite number")
    return amount


def to_money(value, field: str = "amount") -> Decimal:
    """
    Convert a user or database value to a Decimal with two fractional digits.
    Floats go through str() so their binary expansion never leaks into sums.
    """
    amount = _to_decimal(value, field)
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgumentError(f"{field} is out of range, got {value!r}")


def _to_stored_money(value, field: str) -> Decimal:
    """An amount about to be written: fits the column and has at most two decimals."""
    amount = _to_decimal(value, field)
    if abs(amount) > MAX_AMOUNT:
        raise InvalidArgumentError(f"{field} must not exceed {MAX_AMOUNT}")
    if amount.quantize(CENTS) != amount:
        raise InvalidArgumentError(f"{field} must have at most two decimal places, got {value!r}")
    return amount.quantize(CENTS)


def to_positive_money(value, field: str = "amount") -> Decimal:
    amount = _to_stored_money(value, field)
    if amount <= ZERO:
        raise InvalidArgumentError(f"{field} must be greater than zero")
    return amount


def to_non_negative_money(value, field: str = "amount") -> Decimal:
    amount = _to_stored_money(value, field)
    if amount < ZERO:
        raise InvalidArgumentError(f"{field} must not be negative")
    return amount
