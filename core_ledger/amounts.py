"""
Fixed-Point Amount Module

All monetary values are Decimal with scale 2, stored as decimal(20,2).
NEVER uses float arithmetic for balances or transaction amounts.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from .errors import InvalidAmountError

SCALE = 2
QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")
# 18 integer digits + 2 fractional digits
MAX_AMOUNT = Decimal("999999999999999999.99")

AmountLike = Union[Decimal, int, str, float]


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert an incoming amount to Decimal without losing precision.

    Floats go through ``str()`` so 100.1 becomes Decimal('100.1') rather
    than its binary expansion. Booleans and non-finite values are rejected.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Amount must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(f"Amount must be numeric, got {value!r}")
    else:
        raise InvalidAmountError(f"Amount must be numeric, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")
    return result


def parse_amount(value: AmountLike) -> Decimal:
    """
    Validate a transaction amount: positive, at most two decimal places,
    and within decimal(20,2). Returns the amount quantized to scale 2.
    """
    amount = to_decimal(value)

    if amount <= 0:
        raise InvalidAmountError()

    if amount > MAX_AMOUNT:
        raise InvalidAmountError(f"Amount exceeds maximum of {MAX_AMOUNT}")

    if _has_excess_places(amount):
        raise InvalidAmountError(
            f"Amount must have at most {SCALE} decimal places, got {value!r}"
        )

    return amount.quantize(QUANTUM)


def parse_delta(value: AmountLike) -> Decimal:
    """
    Validate a signed balance delta: any sign, at most two decimal places,
    magnitude within decimal(20,2). Never rounds.
    """
    delta = to_decimal(value)

    if not fits_precision(delta):
        raise InvalidAmountError(f"Balance change exceeds maximum of {MAX_AMOUNT}")

    if _has_excess_places(delta):
        raise InvalidAmountError(
            f"Balance change must have at most {SCALE} decimal places, got {value!r}"
        )

    return delta.quantize(QUANTUM)


def _has_excess_places(value: Decimal) -> bool:
    return value.as_tuple().exponent < -SCALE and value != value.quantize(QUANTUM)


def quantize(value: Decimal) -> Decimal:
    """Round to scale 2 (used for values read back from storage)"""
    return Decimal(value).quantize(QUANTUM, rounding=ROUND_HALF_UP)


def fits_precision(value: Decimal) -> bool:
    """Check that a value fits in decimal(20,2)"""
    return abs(value) <= MAX_AMOUNT


def format_amount(value: Decimal) -> str:
    """Canonical string form, always two decimal places"""
    return str(quantize(value))
