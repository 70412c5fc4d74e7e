"""Scenario quality heuristics - fairness, tax efficiency and structural compliance checks

These scores compare what-if distributions against each other. They are not
statutory computations and must not be presented as legal advice.
"""

from decimal import Decimal
from typing import Dict, List, Mapping, Sequence

from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.shares import ComputedShare, Relationship, ShareType

# Kenya levies no inheritance tax; the flat rate only scales the efficiency score
ILLUSTRATIVE_FLAT_TAX_RATE = Percentage(15)
EFFECTIVE_INHERITANCE_TAX_RATE = Percentage(0)

FAIRNESS_BASELINE = 80.0
FAIRNESS_VARIATION_WEIGHT = 20.0
FAIRNESS_BONUS_PER_DEPENDANT = 5.0
FAIRNESS_MAX_DEPENDANT_BONUS = 20.0


def coefficient_of_variation(values: Sequence[int]) -> float:
    """Population standard deviation over mean; 0.0 for empty or zero-mean input"""
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 0.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return variance ** 0.5 / mean


def calculate_fairness_score(shares: Sequence[ComputedShare]) -> float:
    """
    Fairness from 0 (least even) to 100.

    Scoring:
    - Baseline 80
    - Minus coefficient of variation of share values x 20 (uneven splits)
    - Plus 5 per dependant actually provided for, capped at +20
    """
    if not shares:
        return 0.0

    score = FAIRNESS_BASELINE
    score -= coefficient_of_variation([s.final_value.minor_units for s in shares]) * FAIRNESS_VARIATION_WEIGHT

    dependants_covered = sum(
        1 for s in shares
        if s.relationship == Relationship.DEPENDANT and s.final_value.minor_units > 0
    )
    score += min(dependants_covered * FAIRNESS_BONUS_PER_DEPENDANT, FAIRNESS_MAX_DEPENDANT_BONUS)

    return round(max(0.0, min(100.0, score)), 3)


def calculate_tax_efficiency(
    shares: Sequence[ComputedShare],
    effective_rate: Percentage = EFFECTIVE_INHERITANCE_TAX_RATE,
    flat_rate: Percentage = ILLUSTRATIVE_FLAT_TAX_RATE,
) -> float:
    """100 - (tax payable / tax at the flat rate) x 100; 100 when nothing is taxable"""
    max_possible = sum(s.final_value.percentage(flat_rate).minor_units for s in shares)
    if max_possible == 0:
        return 100.0
    payable = sum(s.final_value.percentage(effective_rate).minor_units for s in shares)
    return round(100.0 - (payable / max_possible) * 100.0, 3)


def check_s35_compliance(shares: Sequence[ComputedShare]) -> bool:
    """
    Exactly one spouse share, held as a life interest, and equal children
    entitlements (within one minor unit). Checked on the opening entitlement so
    later hotchpot or dependant adjustments do not mask the statutory shape.
    """
    spouse_shares = [s for s in shares if s.relationship == Relationship.SPOUSE]
    child_shares = [s for s in shares if s.relationship == Relationship.CHILD]

    if len(spouse_shares) != 1:
        return False
    if spouse_shares[0].share_type != ShareType.LIFE_INTEREST:
        return False
    if len(child_shares) > 1:
        first = child_shares[0].statutory_value.minor_units
        return all(abs(s.statutory_value.minor_units - first) <= 1 for s in child_shares)
    return True


def house_totals(shares: Sequence[ComputedShare]) -> Dict[str, Money]:
    totals: Dict[str, Money] = {}
    for share in shares:
        if share.house_id is None:
            continue
        current = totals.get(share.house_id, Money.zero(share.final_value.currency))
        totals[share.house_id] = current + share.statutory_value
    return totals


def check_s40_compliance(
    shares: Sequence[ComputedShare],
    house_units: Mapping[str, int],
    net_estate: Money,
) -> bool:
    """Each house's opening total equals estate x (units / total units) within one minor unit"""
    total_units = sum(house_units.values())
    if len(house_units) < 2 or total_units == 0:
        return False

    totals = house_totals(shares)
    for house_id, units in house_units.items():
        expected = Decimal(net_estate.minor_units) * units / total_units
        actual = totals.get(house_id, Money.zero(net_estate.currency)).minor_units
        if abs(Decimal(actual) - expected) > 1:
            return False
    return True


def check_s29_addressed(shares: Sequence[ComputedShare], dependants_expected: bool) -> bool:
    """Dependant claims are addressed when none are expected or at least one is provided for"""
    if not dependants_expected:
        return True
    return any(
        s.relationship == Relationship.DEPENDANT and s.final_value.minor_units > 0
        for s in shares
    )


def share_value_stats(shares: Sequence[ComputedShare], currency: str) -> Dict[str, Money]:
    """Total, average, largest and smallest share values"""
    values: List[int] = [s.final_value.minor_units for s in shares]
    if not values:
        zero = Money.zero(currency)
        return {"total": zero, "average": zero, "largest": zero, "smallest": zero}
    total = sum(values)
    return {
        "total": Money(total, currency),
        "average": Money(total // len(values), currency),
        "largest": Money(max(values), currency),
        "smallest": Money(min(values), currency),
    }
