"""Dependant provision pass: fund S.26/S.29 dependants out of the primary shares"""

from dataclasses import dataclass, field
from typing import List, Sequence

from succession_engine.domain.exceptions import AdjustmentAlreadyAppliedError
from succession_engine.domain.models import Dependant, DependencyLevel
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.shares import (
    AdjustmentKind,
    CalculationWarning,
    ComputedShare,
    Relationship,
    ShareType,
    share_percentage,
)

SPOUSE_BURDEN_PERCENT = Percentage(30)  # remaining 70% falls on the children
ASSUMED_ANNUAL_RETURN_PERCENT = Percentage(5)
DEPENDANT_INCOME_SHARE_PERCENT = Percentage(30)
MONTHS_PER_YEAR = 12
DEPENDENCY_FACTORS = {
    DependencyLevel.FULL: Percentage(100),
    DependencyLevel.PARTIAL: Percentage(50),
}

DEPENDANT_CITATION = "LSA Section 26/29 - Reasonable Provision for Dependants"


@dataclass(frozen=True)
class DependantProvision:
    dependant_id: str
    entitlement: Money
    funded: Money
    share_id: str


@dataclass
class DependantOutcome:
    shares: List[ComputedShare]
    provisions: List[DependantProvision] = field(default_factory=list)
    warnings: List[CalculationWarning] = field(default_factory=list)


def compute_dependant_entitlement(net_estate: Money, dependant: Dependant) -> Money:
    """
    Entitlement for one dependant.

    A pre-computed entitlement wins. Documented monthly support gives one year
    of that support. Otherwise the deceased's income is taken as an assumed 5%
    annual return on the net estate and the provision is 30% of it. Both
    estimates are scaled by dependency level (full 100%, partial 50%).
    """
    if dependant.entitlement is not None:
        return dependant.entitlement
    if dependant.monthly_support is not None:
        provision = dependant.monthly_support.multiply(MONTHS_PER_YEAR)
    else:
        annual_income = net_estate.percentage(ASSUMED_ANNUAL_RETURN_PERCENT)
        provision = annual_income.percentage(DEPENDANT_INCOME_SHARE_PERCENT)
    return provision.percentage(DEPENDENCY_FACTORS[dependant.dependency_level])


def _deduct_pro_rata(
    shares: Sequence[ComputedShare],
    burden: Money,
    estate_value: Money,
) -> Money:
    """Deduct `burden` across shares in proportion to their values; returns the amount actually raised"""
    raised = Money.zero(burden.currency)
    if not shares or burden.is_zero():
        return raised

    ratios = [s.final_value.minor_units for s in shares]
    if sum(ratios) == 0:
        ratios = [1] * len(shares)

    for share, part in zip(shares, burden.allocate_by_ratios(ratios)):
        applied = share.apply_adjustment(
            AdjustmentKind.DEPENDANT_PROVISION,
            -part,
            "contribution to dependant provision",
            estate_value,
        )
        raised = raised - applied
    return raised


def apply_dependant_provision(
    shares: List[ComputedShare],
    dependants: Sequence[Dependant],
    estate_value: Money,
) -> DependantOutcome:
    """
    Create an ABSOLUTE share per dependant, funded by redistribution.

    The total provision is raised 30% from the spouse share(s) and 70% pro-rata
    from the children's shares; when only one side exists it carries the whole
    burden, and with neither every existing share contributes pro-rata. Each
    deduction is floored at zero. A side that cannot meet its part passes the
    shortfall to shares that still hold value; anything still unfunded reduces
    the dependant shares and is reported as a warning, so no money is created.

    Runs strictly after the hotchpot pass, on shares not yet touched by this pass.
    """
    already = [s.share_id for s in shares if AdjustmentKind.DEPENDANT_PROVISION in s.applied_passes]
    if already:
        raise AdjustmentAlreadyAppliedError(f"Dependant provision already applied to shares {already}")

    outcome = DependantOutcome(shares=list(shares))
    if not dependants:
        return outcome

    currency = estate_value.currency
    entitlements = [compute_dependant_entitlement(estate_value, d) for d in dependants]
    total = Money.sum(entitlements, currency)

    spouse_shares = [s for s in shares if s.relationship == Relationship.SPOUSE]
    child_shares = [s for s in shares if s.relationship == Relationship.CHILD]

    if spouse_shares and child_shares:
        spouse_burden = total.percentage(SPOUSE_BURDEN_PERCENT)
        raised = _deduct_pro_rata(spouse_shares, spouse_burden, estate_value)
        raised = raised + _deduct_pro_rata(child_shares, total - spouse_burden, estate_value)
    elif spouse_shares or child_shares:
        raised = _deduct_pro_rata(spouse_shares or child_shares, total, estate_value)
    else:
        raised = _deduct_pro_rata(shares, total, estate_value)

    shortfall = total - raised
    if shortfall.minor_units > 0:
        with_value = [s for s in shares if s.final_value.minor_units > 0]
        if with_value:
            raised = raised + _deduct_pro_rata(with_value, shortfall, estate_value)

    if raised < total:
        outcome.warnings.append(
            CalculationWarning(
                "DEPENDANT_PROVISION_SHORTFALL",
                f"Only {raised} of {total} could be raised for dependants",
            )
        )

    ratios = [e.minor_units for e in entitlements]
    funded_parts = raised.allocate_by_ratios(ratios) if sum(ratios) > 0 else [Money.zero(currency)] * len(ratios)

    for dependant, entitlement, funded in zip(dependants, entitlements, funded_parts):
        share = ComputedShare.create(
            beneficiary_id=dependant.dependant_id,
            relationship=Relationship.DEPENDANT,
            value=funded,
            percentage=share_percentage(funded, estate_value),
            share_type=ShareType.ABSOLUTE,
            legal_citation=DEPENDANT_CITATION,
            booked_as=AdjustmentKind.DEPENDANT_PROVISION,
            beneficiary_name=dependant.full_name,
            description=f"Provision for {dependant.dependency_level.value.lower()} dependant ({dependant.relationship})",
            is_minor=dependant.is_minor,
            requires_guardian=dependant.is_minor,
        )
        outcome.shares.append(share)
        outcome.provisions.append(
            DependantProvision(
                dependant_id=dependant.dependant_id,
                entitlement=entitlement,
                funded=funded,
                share_id=share.share_id,
            )
        )

    for share in outcome.shares:
        share.applied_passes.add(AdjustmentKind.DEPENDANT_PROVISION)

    return outcome
