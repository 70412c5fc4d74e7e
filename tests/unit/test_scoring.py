"""Unit tests for scenario scoring heuristics"""

import pytest
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.scoring import (
    calculate_fairness_score,
    calculate_tax_efficiency,
    check_s29_addressed,
    check_s35_compliance,
    coefficient_of_variation,
    share_value_stats,
)
from succession_engine.domain.shares import ComputedShare, LifeInterest, Relationship, ShareType
from succession_engine.domain.statutory import calculate_section_35
from conftest import kes


def share(beneficiary_id, relationship, amount, share_type=ShareType.ABSOLUTE) -> ComputedShare:
    return ComputedShare.create(
        beneficiary_id=beneficiary_id,
        relationship=relationship,
        value=kes(amount),
        percentage=Percentage.zero(),
        share_type=share_type,
        legal_citation="test",
        life_interest=LifeInterest() if share_type == ShareType.LIFE_INTEREST else None,
    )


def test_coefficient_of_variation():
    assert coefficient_of_variation([]) == 0.0
    assert coefficient_of_variation([5, 5, 5]) == 0.0
    # mean 2, population std 1 -> 0.5
    assert coefficient_of_variation([1, 3]) == pytest.approx(0.5)


def test_fairness_equal_shares_scores_baseline():
    shares = [share("a", Relationship.CHILD, 100), share("b", Relationship.CHILD, 100)]
    assert calculate_fairness_score(shares) == 80.0


def test_fairness_penalizes_uneven_shares():
    # values 100 and 300: mean 200, std 100, CV 0.5 -> 80 - 10 = 70
    shares = [share("a", Relationship.CHILD, 100), share("b", Relationship.CHILD, 300)]
    assert calculate_fairness_score(shares) == pytest.approx(70.0)


def test_fairness_bonus_for_provided_dependants_is_capped():
    shares = [share(f"d{i}", Relationship.DEPENDANT, 100) for i in range(6)]
    # CV 0; 6 dependants x 5 = 30, capped at 20
    assert calculate_fairness_score(shares) == 100.0


def test_fairness_without_shares_is_zero():
    assert calculate_fairness_score([]) == 0.0


def test_tax_efficiency_is_full_without_inheritance_tax():
    shares = [share("a", Relationship.CHILD, 1_000)]
    assert calculate_tax_efficiency(shares) == 100.0


def test_tax_efficiency_at_flat_rate_scores_zero():
    shares = [share("a", Relationship.CHILD, 1_000)]
    assert calculate_tax_efficiency(shares, effective_rate=Percentage(15)) == 0.0


def test_s35_compliance(monogamous_family):
    result = calculate_section_35(kes(1_000_000), monogamous_family.spouses[0], monogamous_family.children)
    assert check_s35_compliance(result.shares)


def test_s35_compliance_fails_without_life_interest():
    shares = [share("spouse", Relationship.SPOUSE, 100), share("c1", Relationship.CHILD, 0)]
    assert not check_s35_compliance(shares)


def test_s35_compliance_fails_for_unequal_children():
    shares = [
        share("spouse", Relationship.SPOUSE, 100, ShareType.LIFE_INTEREST),
        share("c1", Relationship.CHILD, 10),
        share("c2", Relationship.CHILD, 20),
    ]
    assert not check_s35_compliance(shares)


def test_s29_addressed():
    assert check_s29_addressed([], dependants_expected=False)
    assert not check_s29_addressed([share("c1", Relationship.CHILD, 10)], dependants_expected=True)
    assert check_s29_addressed([share("d1", Relationship.DEPENDANT, 10)], dependants_expected=True)


def test_share_value_stats():
    stats = share_value_stats(
        [share("a", Relationship.CHILD, 100), share("b", Relationship.CHILD, 300)],
        "KES",
    )
    assert stats["total"] == kes(400)
    assert stats["average"] == kes(200)
    assert stats["largest"] == kes(300)
    assert stats["smallest"] == kes(100)
    assert share_value_stats([], "KES")["total"] == Money.zero()
