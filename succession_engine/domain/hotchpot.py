"""Hotchpot pass: offset lifetime advancements against the recipients' shares (S.35(3))"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from succession_engine.domain.exceptions import AdjustmentAlreadyAppliedError
from succession_engine.domain.models import HotchpotContext, InflationMode, LifetimeGift
from succession_engine.domain.money import Money
from succession_engine.domain.shares import AdjustmentKind, CalculationWarning, ComputedShare
from succession_engine.utils.date_utils import whole_years_between


@dataclass(frozen=True)
class HotchpotAdjustment:
    """Offset booked against one beneficiary"""

    beneficiary_id: str
    gift_ids: List[str]
    nominal_total: Money
    inflated_total: Money
    applied_total: Money  # negative; smaller than inflated_total when the zero floor bites


@dataclass
class HotchpotOutcome:
    shares: List[ComputedShare]
    adjustments: List[HotchpotAdjustment] = field(default_factory=list)
    warnings: List[CalculationWarning] = field(default_factory=list)


def inflate_gift(
    gift: LifetimeGift,
    context: HotchpotContext,
    valuation_date: Optional[date] = None,
) -> Money:
    """
    Value of a gift brought into hotchpot.

    SIMPLE applies (1 + rate) once regardless of elapsed time. ANNUAL_COMPOUND
    applies (1 + rate) ** completed years between the gift and valuation dates.
    """
    factor = 1 + context.inflation_rate.fraction
    if context.inflation_mode == InflationMode.ANNUAL_COMPOUND:
        years = whole_years_between(gift.gift_date, valuation_date or date.today())
        factor = factor ** years
    return gift.value.multiply(factor)


def select_hotchpot_gifts(
    context: HotchpotContext,
    gift_ids: Sequence[str] = (),
) -> List[LifetimeGift]:
    """Hotchpot-applicable gifts, narrowed to `gift_ids` when any are given"""
    wanted = set(gift_ids)
    return [
        g for g in context.gifts
        if g.is_subject_to_hotchpot and (not wanted or g.gift_id in wanted)
    ]


def apply_hotchpot(
    shares: List[ComputedShare],
    context: HotchpotContext,
    estate_value: Money,
    gift_ids: Sequence[str] = (),
    valuation_date: Optional[date] = None,
) -> HotchpotOutcome:
    """
    Deduct each recipient's inflated advancements from their share(s).

    Deductions are floored at zero: a beneficiary never owes the estate money
    through hotchpot. A beneficiary holding several shares (e.g. an eldest son's
    customary extra share plus his equal share) is charged once in total, share
    by share in list order.

    Must run against unadjusted base shares; re-running on shares this pass
    already touched raises AdjustmentAlreadyAppliedError.
    """
    already = [s.share_id for s in shares if AdjustmentKind.HOTCHPOT in s.applied_passes]
    if already:
        raise AdjustmentAlreadyAppliedError(f"Hotchpot already applied to shares {already}")

    outcome = HotchpotOutcome(shares=shares)
    gifts = select_hotchpot_gifts(context, gift_ids)
    if not gifts:
        outcome.warnings.append(
            CalculationWarning("HOTCHPOT_NO_GIFTS", "Hotchpot enabled but no applicable gifts recorded")
        )

    gifts_by_recipient: Dict[str, List[LifetimeGift]] = {}
    for gift in gifts:
        gifts_by_recipient.setdefault(gift.recipient_id, []).append(gift)

    beneficiaries = {s.beneficiary_id for s in shares}
    for recipient_id in gifts_by_recipient:
        if recipient_id not in beneficiaries:
            outcome.warnings.append(
                CalculationWarning(
                    "HOTCHPOT_RECIPIENT_NOT_BENEFICIARY",
                    f"Gift recipient {recipient_id} holds no share in this distribution",
                )
            )

    for recipient_id, recipient_gifts in gifts_by_recipient.items():
        recipient_shares = [s for s in shares if s.beneficiary_id == recipient_id]
        if not recipient_shares:
            continue

        currency = estate_value.currency
        nominal = Money.sum([g.value for g in recipient_gifts], currency)
        inflated = Money.sum([inflate_gift(g, context, valuation_date) for g in recipient_gifts], currency)
        gift_list = ", ".join(g.gift_id for g in recipient_gifts)

        outstanding = inflated
        applied_total = Money.zero(currency)
        for share in recipient_shares:
            applied = share.apply_adjustment(
                AdjustmentKind.HOTCHPOT,
                -outstanding,
                f"advancements {gift_list} brought into hotchpot",
                estate_value,
            )
            applied_total = applied_total + applied
            outstanding = outstanding + applied
            if outstanding.is_zero():
                break

        outcome.adjustments.append(
            HotchpotAdjustment(
                beneficiary_id=recipient_id,
                gift_ids=[g.gift_id for g in recipient_gifts],
                nominal_total=nominal,
                inflated_total=inflated,
                applied_total=applied_total,
            )
        )

    for share in shares:
        share.applied_passes.add(AdjustmentKind.HOTCHPOT)

    return outcome
