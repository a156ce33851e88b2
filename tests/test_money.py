from decimal import Decimal

import pytest

from checkout.domain.errors import ValidationError
from checkout.domain.money import format_major, from_minor_units, to_minor_units


@pytest.mark.parametrize(
    "value, expected",
    [
        (19.99, 1999),
        ("19.99", 1999),
        (19.945, 1995),
        (Decimal("0.005"), 1),
        (80, 8000),
        ("  12.5 ", 1250),
    ],
)
def test_to_minor_units_rounds_half_away_from_zero(value, expected):
    assert to_minor_units(value) == expected


@pytest.mark.parametrize(
    "value",
    [0, -1, "-0.01", 0.004, None, True, "abc", "", float("nan"), float("inf"), "Infinity"],
)
def test_to_minor_units_rejects_invalid_amounts(value):
    with pytest.raises(ValidationError):
        to_minor_units(value)


def test_from_minor_units_and_format():
    assert from_minor_units(1999) == Decimal("19.99")
    assert format_major(8000) == "80.00"
    assert format_major(5) == "0.05"
