"""End-to-end walkthroughs of the distribution engine, from estate facts to scenario results"""

from dataclasses import replace
from datetime import date
import pytest
from succession_engine.domain.calculation import CalculationStatus, InheritanceCalculation
from succession_engine.domain.dependants import apply_dependant_provision
from succession_engine.domain.events import EventOutbox, EventType
from succession_engine.domain.models import (
    CustomaryLawProfile,
    Dependant,
    DependencyLevel,
    EldestSonExtraShare,
    FamilyContext,
    HotchpotContext,
    LegalContext,
    LifetimeGift,
)
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.scenario import ScenarioParameters, ScenarioType
from succession_engine.domain.shares import ComputedShare, Relationship, ShareType
from conftest import kes


def run_scenario(estate, family, hotchpot=None, parameters=None, legal=None):
    outbox = EventOutbox()
    calculation = InheritanceCalculation.create(
        estate, legal or LegalContext(), FamilyContext(structure=family), hotchpot or HotchpotContext(), outbox
    )
    scenario = calculation.create_distribution_scenario(
        "Walkthrough", ScenarioType.INTESTATE_AUTO, "advocate-1", "Grace Muthoni", outbox, parameters=parameters
    )
    calculation.calculate_intestate_scenario(scenario.id, outbox)
    return calculation, scenario, outbox.drain()


def assert_conserved(scenario):
    """Every breakdown balances and shares plus residual make up the net estate"""
    assert all(s.breakdown.is_balanced() for s in scenario.shares)
    total = Money.sum([s.final_value for s in scenario.shares])
    assert total + scenario.results.residual_amount == scenario.parameters.net_estate_value


def test_monogamous_estate_spouse_takes_life_interest(estate, monogamous_family):
    """1,000,000 KES, one spouse and two children, no gifts"""
    calculation, scenario, events = run_scenario(estate, monogamous_family)

    assert calculation.status == CalculationStatus.COMPLETED
    spouse = next(s for s in scenario.shares if s.relationship == Relationship.SPOUSE)
    assert spouse.share_type == ShareType.LIFE_INTEREST
    assert spouse.final_value == kes(1_000_000)

    children = [s for s in scenario.shares if s.relationship == Relationship.CHILD]
    assert len(children) == 2
    assert all(c.final_value.is_zero() for c in children)

    assert scenario.results.is_s35_compliant
    assert_conserved(scenario)
    assert [e.event_type for e in events][-1] == EventType.SCENARIO_CALCULATED


def test_polygamous_estate_splits_by_house_units(estate, polygamous_family):
    """House A: wife + 2 children (3 units). House B: wife deceased, 1 child (1 unit)."""
    calculation, scenario, _ = run_scenario(estate, polygamous_family)

    assert scenario.house_units == {"A": 3, "B": 1}
    wife_a = next(s for s in scenario.shares if s.beneficiary_id == "wife-a")
    assert wife_a.share_type == ShareType.LIFE_INTEREST
    assert wife_a.final_value == kes(750_000)

    child_b = next(s for s in scenario.shares if s.beneficiary_id == "child-b1")
    assert child_b.share_type == ShareType.ABSOLUTE
    assert child_b.final_value == kes(250_000)

    assert scenario.results.is_s40_compliant
    assert_conserved(scenario)


def test_hotchpot_reduces_gifted_child_by_gift_value(estate, children_only_family):
    """500,000 estate, one child received 50,000 during the deceased's lifetime, 0% inflation"""
    small_estate = replace(estate, gross_value=kes(500_000), net_value=kes(500_000))
    gift = LifetimeGift("g1", "otieno", kes(50_000), date(2019, 12, 1))
    parameters = ScenarioParameters(
        gross_estate_value=small_estate.gross_value,
        net_estate_value=small_estate.net_value,
        include_hotchpot=True,
        hotchpot_gift_ids=("g1",),
    )

    _, scenario, events = run_scenario(
        small_estate,
        children_only_family,
        hotchpot=HotchpotContext(gifts=(gift,), inflation_rate=Percentage(0)),
        parameters=parameters,
    )

    values = {s.beneficiary_id: s for s in scenario.shares}
    assert values["otieno"].statutory_value == kes(250_000)
    assert values["otieno"].final_value == kes(200_000)
    assert values["otieno"].breakdown.hotchpot_adjustment == kes(-50_000)
    assert values["akinyi"].final_value == kes(250_000)
    assert scenario.results.is_hotchpot_applied
    assert_conserved(scenario)
    assert EventType.HOTCHPOT_APPLIED in [e.event_type for e in events]


def test_dependant_provision_burden_split():
    """60,000 provision against spouse 500,000 and two children at 250,000 each"""
    net = kes(1_000_000)

    def share(beneficiary_id, relationship, amount):
        return ComputedShare.create(
            beneficiary_id=beneficiary_id,
            relationship=relationship,
            value=kes(amount),
            percentage=Percentage.ratio(kes(amount), net),
            share_type=ShareType.ABSOLUTE,
            legal_citation="LSA Section 35",
        )

    shares = [
        share("spouse", Relationship.SPOUSE, 500_000),
        share("child-1", Relationship.CHILD, 250_000),
        share("child-2", Relationship.CHILD, 250_000),
    ]
    dependant = Dependant("d1", "Wambui", "niece", DependencyLevel.FULL, entitlement=kes(60_000))

    outcome = apply_dependant_provision(shares, [dependant], net)

    spouse, child_1, child_2, provided = outcome.shares
    assert spouse.breakdown.dependant_provision == kes(-18_000)
    assert child_1.breakdown.dependant_provision == kes(-21_000)
    assert child_2.breakdown.dependant_provision == kes(-21_000)
    assert provided.relationship == Relationship.DEPENDANT
    assert provided.final_value == kes(60_000)
    assert Money.sum([s.final_value for s in outcome.shares]) == net


@pytest.mark.parametrize(
    "net_amount",
    ["1000000.00", "999999.99", "100.01", "0.07"],
)
def test_polygamous_conservation_across_amounts(estate, polygamous_family, net_amount):
    amount = Money.of(net_amount)
    valued = replace(estate, net_value=amount)
    _, scenario, _ = run_scenario(valued, polygamous_family)

    assert scenario.results.residual_amount.is_zero()
    assert_conserved(scenario)


def test_customary_walkthrough_then_statutory_comparison(estate, monogamous_family):
    """Customary scenario alongside the statutory default; both conserve the estate"""
    legal = LegalContext(customary_profile=CustomaryLawProfile(tribe="Kikuyu", rules=(EldestSonExtraShare(),)))
    outbox = EventOutbox()
    calculation = InheritanceCalculation.create(
        estate, legal, FamilyContext(structure=monogamous_family), HotchpotContext(), outbox
    )
    customary = calculation.create_distribution_scenario(
        "Customary", ScenarioType.INTESTATE_AUTO, "advocate-1", "Grace Muthoni", outbox
    )
    statutory = calculation.create_distribution_scenario(
        "Statutory", ScenarioType.INTESTATE_S35_MONOGAMOUS, "advocate-1", "Grace Muthoni", outbox
    )

    report = calculation.recalculate_all_scenarios("initial", outbox)

    assert report.calculated == [customary.id, statutory.id]
    assert customary.basis == "CUSTOMARY_KIKUYU"
    kamau = [s.final_value for s in customary.shares if s.beneficiary_id == "kamau"]
    assert Money.sum(kamau) == kes(100_000) + kes(450_000)
    assert statutory.basis == "STATUTORY_S35"
    assert customary.results.customary_compliance == 85.0
    assert_conserved(customary)
    assert_conserved(statutory)
    assert calculation.recommend_scenario() in {customary.id, statutory.id}
