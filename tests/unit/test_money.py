"""Unit tests for money and percentage value types"""

import pytest
from decimal import Decimal
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.exceptions import (
    CurrencyMismatchError,
    InvalidAllocationError,
    InvalidPercentageError,
)


def test_of_converts_major_units_exactly():
    """Floats go through str() so 0.1 stays 0.1"""
    assert Money.of("100.01").minor_units == 10001
    assert Money.of(0.1).minor_units == 10
    assert Money.of(Decimal("2.005")).minor_units == 201  # half-up
    assert Money.of(1_000_000).amount == Decimal("1000000")


def test_money_rejects_non_integer_minor_units():
    with pytest.raises(TypeError):
        Money(10.5)


def test_arithmetic_requires_same_currency():
    with pytest.raises(CurrencyMismatchError):
        Money.of(10, "KES") + Money.of(10, "USD")
    with pytest.raises(CurrencyMismatchError):
        Money.of(10, "KES") < Money.of(10, "USD")


def test_percentage_of_amount_rounds_half_up():
    # 10% of 100.05 = 10.005 -> 10.01
    assert Money.of("100.05").percentage(Percentage(10)) == Money.of("10.01")


@pytest.mark.parametrize("parts", [1, 2, 3, 7, 100])
@pytest.mark.parametrize("amount", ["100.01", "1000000", "0.05", "333333.33"])
def test_allocate_sums_exactly(amount, parts):
    """Split exactness: n parts always sum to the original amount"""
    money = Money.of(amount)
    allocated = money.allocate(parts)

    assert len(allocated) == parts
    assert Money.sum(allocated) == money
    assert max(a.minor_units for a in allocated) - min(a.minor_units for a in allocated) <= 1


def test_allocate_gives_remainder_to_first_parts():
    """100.01 split 3 ways -> [33.34, 33.34, 33.33]"""
    assert Money.of("100.01").allocate(3) == [Money.of("33.34"), Money.of("33.34"), Money.of("33.33")]


def test_allocate_rejects_zero_parts():
    with pytest.raises(InvalidAllocationError):
        Money.of(100).allocate(0)


def test_allocate_by_ratios_is_proportional_and_exact():
    # 1,000,000 over units [3, 1] -> 750,000 / 250,000
    parts = Money.of(1_000_000).allocate_by_ratios([3, 1])
    assert parts == [Money.of(750_000), Money.of(250_000)]

    # 100.00 over [1, 1, 1] -> remainder cent to the first part
    parts = Money.of(100).allocate_by_ratios([1, 1, 1])
    assert parts == [Money.of("33.34"), Money.of("33.33"), Money.of("33.33")]


def test_allocate_by_ratios_skips_zero_ratio_for_remainder():
    parts = Money.of("0.01").allocate_by_ratios([0, 1])
    assert parts == [Money.zero(), Money.of("0.01")]


def test_allocate_by_ratios_rejects_unusable_ratios():
    with pytest.raises(InvalidAllocationError):
        Money.of(100).allocate_by_ratios([0, 0])
    with pytest.raises(InvalidAllocationError):
        Money.of(100).allocate_by_ratios([2, -1])


def test_floor_at_zero():
    assert Money.of(-5).floor_at_zero() == Money.zero()
    assert Money.of(5).floor_at_zero() == Money.of(5)


def test_percentage_bounds():
    with pytest.raises(InvalidPercentageError):
        Percentage(-1)
    with pytest.raises(InvalidPercentageError):
        Percentage(Decimal("100.0001"))
    assert Percentage(100).fraction == Decimal(1)


def test_percentage_ratio():
    assert Percentage.ratio(Money.of(250_000), Money.of(1_000_000)) == Percentage(25)
    assert Percentage.ratio(Money.of(5), Money.zero()) == Percentage.zero()


def test_money_serializes_as_decimal_string():
    assert Money.of("1234.5").to_dict() == {"amount": "1234.50", "currency": "KES"}
