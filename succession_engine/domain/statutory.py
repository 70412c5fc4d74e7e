"""Intestate distribution calculators under the Law of Succession Act (Cap. 160)"""

from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from succession_engine.domain.exceptions import ComputationError, NoSurvivingUnitsError
from succession_engine.domain.models import FamilyMember, FamilyStructure
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.shares import (
    CalculationWarning,
    ComputedShare,
    DistributionResult,
    LifeInterest,
    Relationship,
    ShareType,
    share_percentage,
)

PERSONAL_EFFECTS_PERCENT = Percentage(10)

S35_CITATION = "LSA Section 35(1)(b)"
S36_CITATION = "LSA Section 36"
S38_CITATION = "LSA Section 38"
S39_CITATION = "LSA Section 39"


def calculate_section_35(
    net_estate: Money,
    spouse: FamilyMember,
    children: Sequence[FamilyMember],
) -> DistributionResult:
    """
    Surviving spouse with children.

    Personal and household effects (10% of net value) plus a life interest in
    the remaining residue go to the spouse as one LIFE_INTEREST share over the
    whole estate. Children are remaindermen: they are recorded with a zero
    current share until the life interest ends (death or remarriage), which
    triggers a fresh calculation outside this calculator.
    """
    personal_effects = net_estate.percentage(PERSONAL_EFFECTS_PERCENT)
    residue = net_estate - personal_effects

    spouse_share = ComputedShare.create(
        beneficiary_id=spouse.member_id,
        relationship=Relationship.SPOUSE,
        value=personal_effects + residue,
        percentage=Percentage(100),
        share_type=ShareType.LIFE_INTEREST,
        legal_citation=S35_CITATION,
        beneficiary_name=spouse.full_name,
        description="Personal and household effects plus life interest in the whole residue",
        life_interest=LifeInterest(
            remaindermen=tuple(c.member_id for c in children),
            description="Terminates on death or remarriage of the surviving spouse",
        ),
        is_minor=spouse.is_minor,
        requires_guardian=spouse.requires_guardian,
    )
    spouse_share.record("PERSONAL_EFFECTS", f"{personal_effects} carved out absolutely (S.35(1)(a))")
    spouse_share.record("LIFE_INTEREST_RESIDUE", f"{residue} held for life (S.35(1)(b))")

    shares = [spouse_share]
    shares.extend(_remaindermen(net_estate, children, S35_CITATION))
    return DistributionResult(shares, Money.zero(net_estate.currency), "STATUTORY_S35")


def calculate_section_36(net_estate: Money, spouse: FamilyMember) -> DistributionResult:
    """Surviving spouse and no children: spouse takes everything absolutely"""
    share = ComputedShare.create(
        beneficiary_id=spouse.member_id,
        relationship=Relationship.SPOUSE,
        value=net_estate,
        percentage=Percentage(100),
        share_type=ShareType.ABSOLUTE,
        legal_citation=S36_CITATION,
        beneficiary_name=spouse.full_name,
        description="Spouse takes the whole estate absolutely (no children)",
        is_minor=spouse.is_minor,
        requires_guardian=spouse.requires_guardian,
    )
    return DistributionResult([share], Money.zero(net_estate.currency), "STATUTORY_S36")


def calculate_section_38(net_estate: Money, children: Sequence[FamilyMember]) -> DistributionResult:
    """No spouse: the estate is split exactly and equally among the children"""
    if not children:
        raise ComputationError("S.38 distribution requires at least one surviving child")

    parts = net_estate.allocate(len(children))
    shares = [
        ComputedShare.create(
            beneficiary_id=child.member_id,
            relationship=Relationship.CHILD,
            value=part,
            percentage=share_percentage(part, net_estate),
            share_type=ShareType.ABSOLUTE,
            legal_citation=S38_CITATION,
            beneficiary_name=child.full_name,
            description="Equal share among children",
            is_minor=child.is_minor,
            requires_guardian=child.requires_guardian,
        )
        for child, part in zip(children, parts)
    ]
    return DistributionResult(shares, Money.zero(net_estate.currency), "STATUTORY_S38")


def calculate_section_39(net_estate: Money, family: FamilyStructure) -> DistributionResult:
    """
    No spouse and no children.

    The parents -> siblings -> half-siblings -> relatives -> State chain is not
    settled for this engine, so the whole net estate is reported unallocated
    and nothing is distributed.
    """
    # TODO: implement the S.39 priority chain once its shares are signed off by legal
    warning = CalculationWarning(
        code="S39_CHAIN_UNRESOLVED",
        message=(
            f"Residual-kin distribution not computed; {len(family.parents)} parent(s) and "
            f"{len(family.siblings)} sibling(s) on record"
        ),
    )
    return DistributionResult(
        shares=[],
        unallocated=net_estate,
        basis="STATUTORY_S39_PENDING",
        unallocated_reason="Residual-kin (S.39) distribution pending legal sign-off",
        warnings=[warning],
    )


def calculate_section_40(
    net_estate: Money,
    family: FamilyStructure,
    recognized_house_ids: Optional[Sequence[str]] = None,
) -> DistributionResult:
    """
    Polygamous estate divided among houses (S.40).

    1. Group spouses and children by house id (members without one are skipped)
    2. Units per house = children in the house + 1 if the house's wife survives
    3. The estate is allocated to houses in proportion to units / total units
    4. A house with a surviving wife follows the S.35 pattern: she takes a life
       interest over the house allocation; an orphaned house is split equally
       and absolutely among its children

    Houses are processed in house-id order so remainder minor units land
    deterministically.
    """
    warnings: List[CalculationWarning] = []
    houses: Dict[str, Dict] = {}
    allowed = set(recognized_house_ids) if recognized_house_ids is not None else None

    # Deceased wives still define their house; predeceased children take nothing here
    members = [(m, True) for m in family.spouses] + [(m, False) for m in family.surviving_children]
    for member, is_spouse in members:
        if not member.house_id:
            warnings.append(
                CalculationWarning("MEMBER_WITHOUT_HOUSE", f"{member.member_id} has no house id; skipped")
            )
            continue
        if allowed is not None and member.house_id not in allowed:
            warnings.append(
                CalculationWarning(
                    "UNRECOGNIZED_HOUSE",
                    f"{member.member_id} belongs to unrecognised house {member.house_id}; skipped",
                )
            )
            continue
        house = houses.setdefault(member.house_id, {"spouse": None, "children": []})
        if is_spouse:
            house["spouse"] = member
        else:
            house["children"].append(member)

    house_units: Dict[str, int] = {}
    for house_id in sorted(houses):
        house = houses[house_id]
        units = len(house["children"])
        if house["spouse"] is not None and not house["spouse"].is_deceased:
            units += 1
        house_units[house_id] = units

    total_units = sum(house_units.values())
    if total_units == 0:
        raise NoSurvivingUnitsError("Polygamous estate has no surviving units (wives or children)")

    house_ids = list(house_units)
    allocations = net_estate.allocate_by_ratios([house_units[h] for h in house_ids])

    shares: List[ComputedShare] = []
    for house_id, allocation in zip(house_ids, allocations):
        units = house_units[house_id]
        if units == 0:
            continue
        house = houses[house_id]
        spouse = house["spouse"]
        children = house["children"]
        citation = f"LSA Section 40 - House {house_id}"
        house_ratio = Percentage(Decimal(units) * 100 / Decimal(total_units))

        if spouse is not None and not spouse.is_deceased:
            shares.append(
                ComputedShare.create(
                    beneficiary_id=spouse.member_id,
                    relationship=Relationship.SPOUSE,
                    value=allocation,
                    percentage=house_ratio,
                    share_type=ShareType.LIFE_INTEREST,
                    legal_citation=citation,
                    beneficiary_name=spouse.full_name,
                    description=f"Life interest in house share ({units}/{total_units} units)",
                    house_id=house_id,
                    life_interest=LifeInterest(
                        remaindermen=tuple(c.member_id for c in children),
                        description="Terminates on death or remarriage; passes to the house's children",
                    ),
                    is_minor=spouse.is_minor,
                    requires_guardian=spouse.requires_guardian,
                )
            )
            shares.extend(_remaindermen(net_estate, children, citation, house_id))
        else:
            parts = allocation.allocate(len(children))
            for child, part in zip(children, parts):
                shares.append(
                    ComputedShare.create(
                        beneficiary_id=child.member_id,
                        relationship=Relationship.CHILD,
                        value=part,
                        percentage=share_percentage(part, net_estate),
                        share_type=ShareType.ABSOLUTE,
                        legal_citation=f"LSA Section 40 - Orphaned House {house_id}",
                        beneficiary_name=child.full_name,
                        description=f"Absolute share of house {house_id}",
                        house_id=house_id,
                        is_minor=child.is_minor,
                        requires_guardian=child.requires_guardian,
                    )
                )

    return DistributionResult(
        shares,
        Money.zero(net_estate.currency),
        "STATUTORY_S40",
        house_units=house_units,
        warnings=warnings,
    )


def _remaindermen(
    net_estate: Money,
    children: Sequence[FamilyMember],
    citation: str,
    house_id: Optional[str] = None,
) -> List[ComputedShare]:
    zero = Money.zero(net_estate.currency)
    return [
        ComputedShare.create(
            beneficiary_id=child.member_id,
            relationship=Relationship.CHILD,
            value=zero,
            percentage=Percentage.zero(),
            share_type=ShareType.CONDITIONAL_TRUST,
            legal_citation=citation,
            beneficiary_name=child.full_name,
            description="Remainderman; capital vests when the life interest ends",
            house_id=house_id,
            is_minor=child.is_minor,
            requires_guardian=child.requires_guardian,
        )
        for child in children
    ]
