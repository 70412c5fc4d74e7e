"""Unit tests for distribution regime selection"""

from succession_engine.domain.models import (
    CustomaryLawProfile,
    EldestSonExtraShare,
    FamilyStructure,
    Gender,
    Role,
)
from succession_engine.domain.regime import Regime, select_regime
from conftest import member


def test_customary_profile_wins_over_family_shape(monogamous_family):
    profile = CustomaryLawProfile(tribe="Kikuyu", rules=(EldestSonExtraShare(),))
    assert select_regime(monogamous_family, profile) == Regime.CUSTOMARY


def test_polygamous_flag_selects_section_40(polygamous_family):
    """Only one wife survives, but the flag alone is enough"""
    assert select_regime(polygamous_family) == Regime.S40_POLYGAMOUS


def test_two_surviving_spouses_select_section_40():
    family = FamilyStructure(
        spouses=(member("w1", Role.SPOUSE, Gender.FEMALE), member("w2", Role.SPOUSE, Gender.FEMALE)),
    )
    assert select_regime(family) == Regime.S40_POLYGAMOUS


def test_spouse_and_children_select_section_35(monogamous_family):
    assert select_regime(monogamous_family) == Regime.S35_MONOGAMOUS_WITH_ISSUE


def test_spouse_only_selects_section_36():
    family = FamilyStructure(spouses=(member("w1", Role.SPOUSE, Gender.FEMALE),))
    assert select_regime(family) == Regime.S36_SPOUSE_ONLY


def test_children_only_selects_section_38(children_only_family):
    assert select_regime(children_only_family) == Regime.S38_ISSUE_ONLY


def test_no_spouse_or_children_selects_section_39():
    family = FamilyStructure(parents=(member("mother", Role.PARENT, Gender.FEMALE),))
    assert select_regime(family) == Regime.S39_RESIDUAL_KIN


def test_predeceased_members_are_not_counted():
    family = FamilyStructure(
        spouses=(member("w1", Role.SPOUSE, Gender.FEMALE, is_deceased=True),),
        children=(member("c1", Role.CHILD),),
    )
    assert select_regime(family) == Regime.S38_ISSUE_ONLY


def test_selection_ignores_list_order(monogamous_family):
    reversed_family = FamilyStructure(
        spouses=monogamous_family.spouses,
        children=tuple(reversed(monogamous_family.children)),
    )
    assert select_regime(reversed_family) == select_regime(monogamous_family)


def test_testate_flag_does_not_change_regime(monogamous_family):
    assert select_regime(monogamous_family, is_testate=True) == Regime.S35_MONOGAMOUS_WITH_ISSUE


def test_regime_citation():
    assert Regime.S40_POLYGAMOUS.citation == "LSA Section 40"
    assert Regime.CUSTOMARY.citation == "Customary Law"
