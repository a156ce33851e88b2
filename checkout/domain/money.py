# checkout/domain/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from checkout.domain.errors import ValidationError

CENT = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Parsuje kwotę (int/float/str/Decimal) do Decimal, odrzuca NaN/inf i bool."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"Invalid {field}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}")
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    # ROUND_HALF_UP w Decimal = half away from zero
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value: Any) -> int:
    """
    Kwota dodatnia -> int w jednostkach minor (centy).
    19.945 -> 1995, 19.99 -> 1999. Zero i ujemne -> ValidationError.
    """
    amount = to_decimal(value, "total")
    if amount <= 0:
        raise ValidationError("Invalid total: must be greater than 0")
    minor = int(quantize_cents(amount) * MINOR_UNITS_PER_MAJOR)
    if minor <= 0:
        raise ValidationError("Invalid total: rounds to zero")
    return minor


def from_minor_units(minor: int) -> Decimal:
    return quantize_cents(Decimal(int(minor)) / MINOR_UNITS_PER_MAJOR)


def format_major(minor: int) -> str:
    # format "12.34" oczekiwany np. przez PayPal
    return f"{from_minor_units(minor):.2f}"
