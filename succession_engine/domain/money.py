"""Exact money and percentage value types backed by integer minor units"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_HALF_UP
from functools import total_ordering
from typing import List, Sequence

from succession_engine.domain.exceptions import (
    CurrencyMismatchError,
    InvalidAllocationError,
    InvalidPercentageError,
)

DEFAULT_CURRENCY = "KES"
MINOR_UNITS_PER_MAJOR = 100

# Ten decimal places keeps repeated share/estate ratios from drifting across passes
PERCENTAGE_QUANTUM = Decimal("0.0000000001")


@total_ordering
@dataclass(frozen=True)
class Money:
    """Amount in integer minor units (cents) plus ISO currency code"""

    minor_units: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.minor_units, int) or isinstance(self.minor_units, bool):
            raise TypeError(f"Money requires integer minor units, got {self.minor_units!r}")

    @classmethod
    def of(cls, amount, currency: str = DEFAULT_CURRENCY) -> "Money":
        """
        Build from a major-unit amount ("100.01", 100, Decimal("100.01")).

        Floats are converted through str() so 0.1 stays 0.1. Sub-cent input is
        rounded half-up to the nearest minor unit.
        """
        if isinstance(amount, float):
            amount = str(amount)
        major = Decimal(amount)
        minor = (major * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(int(minor), currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    @classmethod
    def sum(cls, amounts: Sequence["Money"], currency: str = DEFAULT_CURRENCY) -> "Money":
        total = cls.zero(currency)
        for amount in amounts:
            total = total + amount
        return total

    @property
    def amount(self) -> Decimal:
        """Major-unit decimal value"""
        return Decimal(self.minor_units) / MINOR_UNITS_PER_MAJOR

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(f"Cannot combine {self.currency} with {other.currency}")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor_units - other.minor_units, self.currency)

    def __neg__(self) -> "Money":
        return Money(-self.minor_units, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor_units < other.minor_units

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def floor_at_zero(self) -> "Money":
        return self if self.minor_units >= 0 else Money.zero(self.currency)

    def multiply(self, factor) -> "Money":
        """Scale by a decimal factor, rounding half-up to whole minor units"""
        scaled = Decimal(self.minor_units) * Decimal(str(factor) if isinstance(factor, float) else factor)
        return Money(int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP)), self.currency)

    def percentage(self, pct: "Percentage") -> "Money":
        return self.multiply(pct.fraction)

    def allocate(self, parts: int) -> List["Money"]:
        """
        Split into `parts` amounts that sum exactly to this amount.

        The remainder (in minor units) goes one unit each to the first parts:
            100.01 split 3 ways -> [33.34, 33.34, 33.33]
        """
        if parts <= 0:
            raise InvalidAllocationError(f"Cannot allocate into {parts} parts")

        sign = -1 if self.minor_units < 0 else 1
        base_amount, remainder = divmod(abs(self.minor_units), parts)

        return [
            Money(sign * (base_amount + (1 if i < remainder else 0)), self.currency)
            for i in range(parts)
        ]

    def allocate_by_ratios(self, ratios: Sequence[int]) -> List["Money"]:
        """
        Split proportionally to integer ratios; parts sum exactly to this amount.

        Each part is floor(total * ratio / sum(ratios)); leftover minor units go one
        each to the first parts with a non-zero ratio, so every part is within one
        minor unit of its exact proportional value.
        """
        if not ratios or any(r < 0 for r in ratios):
            raise InvalidAllocationError(f"Invalid allocation ratios: {list(ratios)}")
        total_ratio = sum(ratios)
        if total_ratio == 0:
            raise InvalidAllocationError("Allocation ratios sum to zero")

        sign = -1 if self.minor_units < 0 else 1
        total = abs(self.minor_units)
        amounts = [total * r // total_ratio for r in ratios]
        remainder = total - sum(amounts)

        for i, ratio in enumerate(ratios):
            if remainder == 0:
                break
            if ratio > 0:
                amounts[i] += 1
                remainder -= 1

        return [Money(sign * a, self.currency) for a in amounts]

    def to_dict(self) -> dict:
        return {"amount": f"{self.amount:.2f}", "currency": self.currency}

    def __str__(self) -> str:
        return f"{self.amount:,.2f} {self.currency}"


@dataclass(frozen=True)
class Percentage:
    """Percentage constrained to [0, 100]"""

    value: Decimal

    def __post_init__(self) -> None:
        raw = self.value
        if isinstance(raw, float):
            raw = str(raw)
        value = Decimal(raw).quantize(PERCENTAGE_QUANTUM, rounding=ROUND_HALF_EVEN)
        if value < 0 or value > 100:
            raise InvalidPercentageError(f"Percentage must be between 0 and 100, got {value}")
        object.__setattr__(self, "value", value)

    @classmethod
    def zero(cls) -> "Percentage":
        return cls(Decimal(0))

    @classmethod
    def ratio(cls, part: Money, whole: Money) -> "Percentage":
        """part / whole as a percentage; zero when the whole is zero"""
        if whole.minor_units <= 0:
            return cls.zero()
        return cls(Decimal(part.minor_units) * 100 / Decimal(whole.minor_units))

    @property
    def fraction(self) -> Decimal:
        return self.value / 100

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return f"{self.value.normalize():f}%"
