"""Unit tests for the hotchpot adjustment pass"""

from datetime import date
import pytest
from succession_engine.domain.exceptions import AdjustmentAlreadyAppliedError
from succession_engine.domain.hotchpot import apply_hotchpot, inflate_gift, select_hotchpot_gifts
from succession_engine.domain.models import HotchpotContext, InflationMode, LifetimeGift, Role
from succession_engine.domain.money import Percentage
from succession_engine.domain.statutory import calculate_section_38
from succession_engine.domain.shares import AdjustmentKind, ComputedShare, Relationship, ShareType
from conftest import kes, member


def gift(gift_id: str, recipient_id: str, amount, gift_date=date(2020, 1, 1), **kwargs) -> LifetimeGift:
    return LifetimeGift(gift_id=gift_id, recipient_id=recipient_id, value=kes(amount), gift_date=gift_date, **kwargs)


@pytest.fixture
def base_shares():
    """Two children, 250,000 each"""
    children = [member("c1", Role.CHILD), member("c2", Role.CHILD)]
    return calculate_section_38(kes(500_000), children).shares


def test_gift_is_deducted_from_recipient_share(base_shares):
    context = HotchpotContext(gifts=(gift("g1", "c1", 50_000),))
    outcome = apply_hotchpot(base_shares, context, kes(500_000))

    c1, c2 = outcome.shares
    assert c1.final_value == kes(200_000)
    assert c1.breakdown.hotchpot_adjustment == kes(-50_000)
    assert c1.breakdown.is_balanced()
    assert c2.final_value == kes(250_000)
    assert outcome.adjustments[0].applied_total == kes(-50_000)


def test_deduction_is_floored_at_zero(base_shares):
    """A gift larger than the share never leaves the beneficiary owing the estate"""
    context = HotchpotContext(gifts=(gift("g1", "c1", 400_000),))
    outcome = apply_hotchpot(base_shares, context, kes(500_000))

    c1 = outcome.shares[0]
    assert c1.final_value.is_zero()
    assert c1.breakdown.hotchpot_adjustment == kes(-250_000)
    assert outcome.adjustments[0].inflated_total == kes(400_000)
    assert outcome.adjustments[0].applied_total == kes(-250_000)


def test_simple_inflation_is_applied_once_regardless_of_years():
    context = HotchpotContext(inflation_rate=Percentage(10))
    old_gift = gift("g1", "c1", 100_000, gift_date=date(2000, 1, 1))

    assert inflate_gift(old_gift, context, date(2024, 1, 1)) == kes(110_000)


def test_annual_compound_inflation_uses_completed_years():
    context = HotchpotContext(inflation_rate=Percentage(10), inflation_mode=InflationMode.ANNUAL_COMPOUND)
    two_years = gift("g1", "c1", 100_000, gift_date=date(2022, 1, 1))

    # 100,000 x 1.1^2 = 121,000 (the second year completes on 2024-01-01)
    assert inflate_gift(two_years, context, date(2024, 1, 1)) == kes(121_000)
    assert inflate_gift(two_years, context, date(2023, 12, 31)) == kes(110_000)


def test_non_applicable_and_unselected_gifts_are_ignored():
    context = HotchpotContext(
        gifts=(
            gift("g1", "c1", 10_000),
            gift("g2", "c1", 20_000, is_subject_to_hotchpot=False, exemption_reason="wedding gift"),
            gift("g3", "c2", 30_000),
        )
    )
    assert [g.gift_id for g in select_hotchpot_gifts(context)] == ["g1", "g3"]
    assert [g.gift_id for g in select_hotchpot_gifts(context, ["g3"])] == ["g3"]


def test_gifts_to_non_beneficiaries_are_flagged(base_shares):
    context = HotchpotContext(gifts=(gift("g1", "stranger", 10_000),))
    outcome = apply_hotchpot(base_shares, context, kes(500_000))

    assert [w.code for w in outcome.warnings] == ["HOTCHPOT_RECIPIENT_NOT_BENEFICIARY"]
    assert all(s.final_value == kes(250_000) for s in outcome.shares)


def test_no_gifts_produces_warning(base_shares):
    outcome = apply_hotchpot(base_shares, HotchpotContext(), kes(500_000))
    assert [w.code for w in outcome.warnings] == ["HOTCHPOT_NO_GIFTS"]


def test_reapplying_hotchpot_is_rejected(base_shares):
    context = HotchpotContext(gifts=(gift("g1", "c1", 50_000),))
    apply_hotchpot(base_shares, context, kes(500_000))

    with pytest.raises(AdjustmentAlreadyAppliedError):
        apply_hotchpot(base_shares, context, kes(500_000))
    assert base_shares[0].final_value == kes(200_000)
    assert AdjustmentKind.HOTCHPOT in base_shares[0].applied_passes


def test_beneficiary_with_two_shares_is_charged_once(base_shares):
    """Deduction carries over to the recipient's next share when the first hits zero"""
    extra = ComputedShare.create(
        beneficiary_id="c1",
        relationship=Relationship.CHILD,
        value=kes(100_000),
        percentage=Percentage(20),
        share_type=ShareType.ABSOLUTE,
        legal_citation="test",
    )
    shares = [extra] + base_shares
    context = HotchpotContext(gifts=(gift("g1", "c1", 150_000),))
    apply_hotchpot(shares, context, kes(500_000))

    assert extra.final_value.is_zero()
    assert shares[1].final_value == kes(200_000)
