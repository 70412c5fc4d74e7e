"""Customary-law rule engine, applied instead of the statutory calculators"""

from datetime import date
from typing import List, Optional, Sequence

from succession_engine.domain.models import (
    CustomaryLawProfile,
    CustomaryRuleType,
    FamilyMember,
    FamilyStructure,
    Gender,
)
from succession_engine.domain.money import Money
from succession_engine.domain.shares import (
    AdjustmentKind,
    CalculationWarning,
    ComputedShare,
    DistributionResult,
    Relationship,
    ShareType,
    share_percentage,
)


def find_eldest_son(children: Sequence[FamilyMember]) -> Optional[FamilyMember]:
    """
    Eldest male child by date of birth.

    Sons without a recorded birth date rank after those with one and tie-break
    on member id, so the choice never depends on list order.
    """
    sons = [c for c in children if c.gender == Gender.MALE]
    if not sons:
        return None
    return min(sons, key=lambda c: (c.date_of_birth is None, c.date_of_birth or date.max, c.member_id))


def apply_customary_rules(
    net_estate: Money,
    family: FamilyStructure,
    profile: CustomaryLawProfile,
) -> DistributionResult:
    """
    Distribute under the community's customary rules.

    Supported rules:
    - ELDEST_SON_EXTRA_SHARE: carve a percentage (default 10%) out for the
      eldest son before anything else is shared
    - PATRILINEAL_ONLY: daughters are excluded from the remainder

    The remainder is split equally and exactly among the eligible children.
    Patrilineal exclusion is computed as configured and flagged; whether it may
    be relied on (Constitution Art. 27) is for the calling service to decide.
    """
    warnings: List[CalculationWarning] = []
    shares: List[ComputedShare] = []
    children = family.surviving_children
    remaining = net_estate
    citation = f"{profile.tribe} Customary Law"

    eldest_rule = profile.active_rule(CustomaryRuleType.ELDEST_SON_EXTRA_SHARE)
    if eldest_rule is not None:
        eldest_son = find_eldest_son(children)
        if eldest_son is None:
            warnings.append(
                CalculationWarning("NO_ELIGIBLE_ELDEST_SON", "Eldest-son extra share configured but no son survives")
            )
        else:
            extra = net_estate.percentage(eldest_rule.percent)
            shares.append(
                ComputedShare.create(
                    beneficiary_id=eldest_son.member_id,
                    relationship=Relationship.CHILD,
                    value=extra,
                    percentage=eldest_rule.percent,
                    share_type=ShareType.ABSOLUTE,
                    legal_citation=f"{citation} - Eldest Son Extra Share",
                    booked_as=AdjustmentKind.CUSTOMARY,
                    beneficiary_name=eldest_son.full_name,
                    description="Extra share for head-of-household duties",
                    is_minor=eldest_son.is_minor,
                    requires_guardian=eldest_son.requires_guardian,
                )
            )
            remaining = remaining - extra

    eligible = list(children)
    if profile.active_rule(CustomaryRuleType.PATRILINEAL_ONLY) is not None:
        eligible = [c for c in children if c.gender == Gender.MALE]
        excluded = len(children) - len(eligible)
        if excluded:
            warnings.append(
                CalculationWarning(
                    "PATRILINEAL_EXCLUSION_APPLIED",
                    f"{excluded} daughter(s) excluded; contestable under Constitution Art. 27",
                )
            )

    unallocated = Money.zero(net_estate.currency)
    reason = None
    if eligible:
        for child, part in zip(eligible, remaining.allocate(len(eligible))):
            shares.append(
                ComputedShare.create(
                    beneficiary_id=child.member_id,
                    relationship=Relationship.CHILD,
                    value=part,
                    percentage=share_percentage(part, net_estate),
                    share_type=ShareType.ABSOLUTE,
                    legal_citation=citation,
                    booked_as=AdjustmentKind.CUSTOMARY,
                    beneficiary_name=child.full_name,
                    description="Equal customary share",
                    is_minor=child.is_minor,
                    requires_guardian=child.requires_guardian,
                )
            )
    else:
        unallocated = remaining
        reason = "No child eligible under the customary rules"
        warnings.append(CalculationWarning("NO_ELIGIBLE_CHILDREN", reason))

    return DistributionResult(
        shares,
        unallocated,
        f"CUSTOMARY_{profile.tribe.upper()}",
        unallocated_reason=reason,
        warnings=warnings,
    )
