"""Conversions between integer minor units and DECIMAL major units.

Prices are computed in integer minor units (grosze/cents). Conversion to and
from the decimal representation happens only at the edges: persistence,
display, and payment-provider calls. Every conversion rounds half-up.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


def to_decimal(value: object) -> Decimal:
    """Coerce a number or numeric string to Decimal without float artefacts.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e
    else:
        raise ValueError(f"Not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def decimal_to_cents(value: object) -> int:
    """Convert a major-unit amount (e.g. ``"149.99"``) to minor units.

    ``None`` is treated as zero, matching DECIMAL columns left empty.
    """
    if value is None:
        return 0
    return round_half_up(to_decimal(value) * 100)


def cents_to_decimal(cents: int) -> Decimal:
    """Convert minor units to a two-place major-unit Decimal."""
    return (Decimal(cents) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(cents: int, currency: str) -> str:
    """Human-readable amount, e.g. ``"1250.00 PLN"``."""
    return f"{cents_to_decimal(cents)} {currency.upper()}"
