"""Unit tests for the customary-law rule engine"""

from datetime import date
import pytest
from succession_engine.domain.customary import apply_customary_rules, find_eldest_son
from succession_engine.domain.exceptions import ValidationError
from succession_engine.domain.models import (
    CustomaryLawProfile,
    CustomaryRuleType,
    EldestSonExtraShare,
    FamilyStructure,
    Gender,
    PatrilinealOnly,
    Role,
)
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.shares import AdjustmentKind
from conftest import kes, member


@pytest.fixture
def family() -> FamilyStructure:
    return FamilyStructure(
        children=(
            member("daughter", Role.CHILD, Gender.FEMALE, date_of_birth=date(1985, 1, 1)),
            member("younger-son", Role.CHILD, date_of_birth=date(1995, 1, 1)),
            member("elder-son", Role.CHILD, date_of_birth=date(1988, 6, 30)),
        ),
    )


def test_find_eldest_son_orders_by_birth_date(family):
    assert find_eldest_son(family.children).member_id == "elder-son"


def test_find_eldest_son_puts_unknown_birth_dates_last():
    children = [
        member("unknown", Role.CHILD),
        member("known", Role.CHILD, date_of_birth=date(2000, 1, 1)),
    ]
    assert find_eldest_son(children).member_id == "known"


def test_eldest_son_extra_share_is_carved_out_first(family):
    """10% of 900,000 = 90,000 to the eldest son, 810,000 split three ways"""
    profile = CustomaryLawProfile(tribe="Kikuyu", rules=(EldestSonExtraShare(),))
    result = apply_customary_rules(kes(900_000), family, profile)

    values = {}
    for share in result.shares:
        values[share.beneficiary_id] = values.get(share.beneficiary_id, Money.zero()) + share.final_value

    assert values == {
        "elder-son": kes(90_000) + kes(270_000),
        "daughter": kes(270_000),
        "younger-son": kes(270_000),
    }
    assert result.basis == "CUSTOMARY_KIKUYU"
    assert result.unallocated.is_zero()


def test_customary_shares_are_booked_as_customary_adjustments(family):
    profile = CustomaryLawProfile(tribe="Kikuyu", rules=(EldestSonExtraShare(percent=Percentage(20)),))
    result = apply_customary_rules(kes(100_000), family, profile)

    extra = result.shares[0]
    assert extra.breakdown.component(AdjustmentKind.CUSTOMARY) == kes(20_000)
    assert extra.breakdown.statutory_entitlement.is_zero()
    assert extra.statutory_value == kes(20_000)


def test_patrilineal_only_excludes_daughters_and_warns(family):
    profile = CustomaryLawProfile(tribe="Luo", rules=(PatrilinealOnly(),))
    result = apply_customary_rules(kes(100_000), family, profile)

    assert {s.beneficiary_id for s in result.shares} == {"younger-son", "elder-son"}
    assert all(s.final_value == kes(50_000) for s in result.shares)
    assert [w.code for w in result.warnings] == ["PATRILINEAL_EXCLUSION_APPLIED"]


def test_patrilineal_only_without_sons_leaves_estate_unallocated():
    family = FamilyStructure(children=(member("d1", Role.CHILD, Gender.FEMALE),))
    profile = CustomaryLawProfile(tribe="Luo", rules=(PatrilinealOnly(),))
    result = apply_customary_rules(kes(100_000), family, profile)

    assert result.shares == []
    assert result.unallocated == kes(100_000)
    assert "NO_ELIGIBLE_CHILDREN" in [w.code for w in result.warnings]


def test_disabled_rule_is_ignored(family):
    profile = CustomaryLawProfile(tribe="Kikuyu", rules=(EldestSonExtraShare(enabled=False),))
    assert profile.active_rule(CustomaryRuleType.ELDEST_SON_EXTRA_SHARE) is None

    result = apply_customary_rules(kes(90_000), family, profile)
    assert all(s.final_value == kes(30_000) for s in result.shares)


def test_duplicate_rules_are_rejected():
    with pytest.raises(ValidationError):
        CustomaryLawProfile(tribe="Kikuyu", rules=(PatrilinealOnly(), PatrilinealOnly(enabled=False)))
