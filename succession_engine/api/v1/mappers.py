"""Translate validated request schemas into domain contexts"""

from datetime import date
from typing import Optional, Tuple

from succession_engine.api.v1.schemas import (
    CalculationRequest,
    CustomaryProfileSchema,
    FamilySchema,
    HotchpotSchema,
    ScenarioRequest,
)
from succession_engine.config import settings
from succession_engine.domain.models import (
    CourtOrder,
    CustomaryLawProfile,
    Dependant,
    EldestSonExtraShare,
    EstateContext,
    FamilyContext,
    FamilyMember,
    FamilyStructure,
    HotchpotContext,
    InflationMode,
    LegalContext,
    LifetimeGift,
    PatrilinealOnly,
    PolygamousHouse,
    Role,
)
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.scenario import ScenarioParameters, ScenarioType


def build_customary_profile(schema: Optional[CustomaryProfileSchema]) -> Optional[CustomaryLawProfile]:
    if schema is None:
        return None
    rules = []
    if schema.eldest_son_extra_share_percent is not None:
        rules.append(EldestSonExtraShare(percent=Percentage(schema.eldest_son_extra_share_percent)))
    if schema.patrilineal_only:
        rules.append(PatrilinealOnly())
    return CustomaryLawProfile(tribe=schema.tribe, clan=schema.clan, rules=tuple(rules))


def build_family(schema: FamilySchema, currency: str) -> FamilyContext:
    members = {role: [] for role in Role}
    for m in schema.members:
        members[m.role].append(
            FamilyMember(
                member_id=m.member_id,
                role=m.role,
                gender=m.gender,
                full_name=m.full_name,
                is_minor=m.is_minor,
                house_id=m.house_id,
                is_deceased=m.is_deceased,
                date_of_birth=m.date_of_birth,
            )
        )

    structure = FamilyStructure(
        spouses=tuple(members[Role.SPOUSE]),
        children=tuple(members[Role.CHILD]),
        parents=tuple(members[Role.PARENT]),
        siblings=tuple(members[Role.SIBLING]),
        is_polygamous=schema.is_polygamous,
    )
    houses = tuple(
        PolygamousHouse(h.house_id, h.house_name, h.house_order, h.is_recognized)
        for h in sorted(schema.houses, key=lambda h: h.house_order)
    )
    dependants = tuple(
        Dependant(
            dependant_id=d.dependant_id,
            full_name=d.full_name,
            relationship=d.relationship,
            dependency_level=d.dependency_level,
            monthly_support=Money.of(d.monthly_support, currency) if d.monthly_support is not None else None,
            entitlement=Money.of(d.entitlement, currency) if d.entitlement is not None else None,
            is_minor=d.is_minor,
        )
        for d in schema.dependants
    )
    return FamilyContext(structure=structure, houses=houses, dependants=dependants)


def build_hotchpot(schema: HotchpotSchema, currency: str) -> HotchpotContext:
    gifts = tuple(
        LifetimeGift(
            gift_id=g.gift_id,
            recipient_id=g.recipient_id,
            value=Money.of(g.value, currency),
            gift_date=g.gift_date,
            is_subject_to_hotchpot=g.is_subject_to_hotchpot,
            recipient_name=g.recipient_name,
            exemption_reason=g.exemption_reason,
        )
        for g in schema.gifts
    )
    return HotchpotContext(
        gifts=gifts,
        inflation_rate=Percentage(schema.inflation_rate),
        inflation_mode=schema.inflation_mode or InflationMode(settings.hotchpot_inflation_mode),
    )


def build_contexts(body: CalculationRequest) -> Tuple[EstateContext, LegalContext, FamilyContext, HotchpotContext]:
    currency = (body.estate.currency or settings.default_currency).upper()
    estate = EstateContext(
        estate_id=body.estate.estate_id,
        deceased_id=body.estate.deceased_id,
        deceased_full_name=body.estate.deceased_full_name,
        date_of_death=body.estate.date_of_death,
        gross_value=Money.of(body.estate.gross_value, currency),
        net_value=Money.of(body.estate.net_value, currency),
        is_testate=body.estate.is_testate,
        will_id=body.estate.will_id,
    )
    legal = LegalContext(
        applicable_law=body.legal.applicable_law,
        customary_profile=build_customary_profile(body.legal.customary_profile),
        court_orders=tuple(
            CourtOrder(o.order_number, o.order_date, o.description, o.impact) for o in body.legal.court_orders
        ),
        pending_litigation=body.legal.pending_litigation,
        litigation_details=body.legal.litigation_details,
    )
    return estate, legal, build_family(body.family, currency), build_hotchpot(body.hotchpot, currency)


def build_parameters(
    request: ScenarioRequest,
    estate: EstateContext,
    legal: LegalContext,
    family: FamilyContext,
) -> ScenarioParameters:
    profile = legal.customary_profile
    declared = request.scenario_type.declared_regime
    customary = profile is not None and request.scenario_type in (ScenarioType.CUSTOMARY_LAW, ScenarioType.INTESTATE_AUTO)
    return ScenarioParameters(
        gross_estate_value=estate.gross_value,
        net_estate_value=estate.net_value,
        applied_law_section=declared.value if declared else None,
        include_hotchpot=request.include_hotchpot,
        hotchpot_gift_ids=tuple(request.hotchpot_gift_ids),
        hotchpot_inflation_rate=(
            Percentage(request.hotchpot_inflation_rate) if request.hotchpot_inflation_rate is not None else None
        ),
        customary_law_applicable=customary,
        customary_law_type=profile.tribe if customary else None,
        polygamous_house_count=len(family.houses) or len(family.structure.house_ids()),
        include_dependant_provision=request.include_dependant_provision,
        assume_all_debts_paid=request.debt_adjustment_percentage is None,
        debt_adjustment_percentage=(
            Percentage(request.debt_adjustment_percentage) if request.debt_adjustment_percentage is not None else None
        ),
        court_order_exists=bool(legal.court_orders),
        valuation_date=request.valuation_date or date.today(),
    )
