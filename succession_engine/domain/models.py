"""Domain models - pure Python dataclasses describing the estate, family and applicable law"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from succession_engine.domain.exceptions import ValidationError
from succession_engine.domain.money import Money, Percentage


@dataclass(frozen=True)
class EntityIdentity:
    """Identity of an entity plus the id of the aggregate that owns it"""

    id: str
    owner_id: Optional[str] = None

    @classmethod
    def new(cls, owner_id: Optional[str] = None) -> "EntityIdentity":
        return cls(str(uuid.uuid4()), owner_id)


class Role(str, Enum):
    SPOUSE = "SPOUSE"
    CHILD = "CHILD"
    PARENT = "PARENT"
    SIBLING = "SIBLING"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


@dataclass(frozen=True)
class FamilyMember:
    """Family node as supplied by the family-management subsystem (referenced, not owned)"""

    member_id: str
    role: Role
    gender: Gender
    full_name: str = ""
    is_minor: bool = False
    house_id: Optional[str] = None  # polygamous house membership (S.40)
    is_deceased: bool = False  # predeceased; issue would take by representation (S.41)
    date_of_birth: Optional[date] = None

    @property
    def requires_guardian(self) -> bool:
        return self.is_minor


@dataclass(frozen=True)
class FamilyStructure:
    """Point-in-time snapshot of the deceased's family"""

    spouses: Tuple[FamilyMember, ...] = ()
    children: Tuple[FamilyMember, ...] = ()
    parents: Tuple[FamilyMember, ...] = ()
    siblings: Tuple[FamilyMember, ...] = ()
    is_polygamous: bool = False

    def __post_init__(self) -> None:
        # A member id may appear in several role lists but only ever in one house
        houses_by_member: Dict[str, str] = {}
        for member in self.members():
            if member.house_id is None:
                continue
            known = houses_by_member.setdefault(member.member_id, member.house_id)
            if known != member.house_id:
                raise ValidationError(
                    f"Member {member.member_id} assigned to houses {known} and {member.house_id}"
                )

    def members(self) -> List[FamilyMember]:
        return [*self.spouses, *self.children, *self.parents, *self.siblings]

    @property
    def surviving_spouses(self) -> List[FamilyMember]:
        return [s for s in self.spouses if not s.is_deceased]

    @property
    def surviving_children(self) -> List[FamilyMember]:
        return [c for c in self.children if not c.is_deceased]

    def house_ids(self) -> List[str]:
        return sorted({m.house_id for m in (*self.spouses, *self.children) if m.house_id})


class CustomaryRuleType(str, Enum):
    ELDEST_SON_EXTRA_SHARE = "ELDEST_SON_EXTRA_SHARE"
    PATRILINEAL_ONLY = "PATRILINEAL_ONLY"


@dataclass(frozen=True)
class EldestSonExtraShare:
    """Carve-out for the eldest male child before any other distribution (e.g. Kikuyu muramati)"""

    percent: Percentage = field(default_factory=lambda: Percentage(10))
    enabled: bool = True
    rule_type: CustomaryRuleType = field(default=CustomaryRuleType.ELDEST_SON_EXTRA_SHARE, init=False)


@dataclass(frozen=True)
class PatrilinealOnly:
    """Exclude female children from the equal-split remainder"""

    enabled: bool = True
    rule_type: CustomaryRuleType = field(default=CustomaryRuleType.PATRILINEAL_ONLY, init=False)


CustomaryRule = Union[EldestSonExtraShare, PatrilinealOnly]


@dataclass(frozen=True)
class CustomaryLawProfile:
    """Community identity plus independently toggleable inheritance rules"""

    tribe: str
    clan: Optional[str] = None
    rules: Tuple[CustomaryRule, ...] = ()

    def __post_init__(self) -> None:
        if not self.tribe:
            raise ValidationError("Customary law profile requires a tribe")
        seen = set()
        for rule in self.rules:
            if rule.rule_type in seen:
                raise ValidationError(f"Duplicate customary rule: {rule.rule_type.value}")
            seen.add(rule.rule_type)

    def active_rule(self, rule_type: CustomaryRuleType) -> Optional[CustomaryRule]:
        for rule in self.rules:
            if rule.rule_type == rule_type and rule.enabled:
                return rule
        return None


class ApplicableLaw(str, Enum):
    LSA_2009 = "LSA_2009"
    CUSTOMARY_LAW = "CUSTOMARY_LAW"
    ISLAMIC_LAW = "ISLAMIC_LAW"
    MIXED = "MIXED"


class CourtOrderImpact(str, Enum):
    REDISTRIBUTION = "REDISTRIBUTION"
    PROVISION = "PROVISION"
    RESTRICTION = "RESTRICTION"


class DependencyLevel(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"


@dataclass(frozen=True)
class EstateContext:
    estate_id: str
    deceased_id: str
    deceased_full_name: str
    date_of_death: date
    gross_value: Money
    net_value: Money
    is_testate: bool = False
    will_id: Optional[str] = None


@dataclass(frozen=True)
class CourtOrder:
    order_number: str
    order_date: date
    description: str
    impact: CourtOrderImpact


@dataclass(frozen=True)
class LegalContext:
    applicable_law: ApplicableLaw = ApplicableLaw.LSA_2009
    customary_profile: Optional[CustomaryLawProfile] = None
    court_orders: Tuple[CourtOrder, ...] = ()
    pending_litigation: bool = False
    litigation_details: Optional[str] = None


@dataclass(frozen=True)
class PolygamousHouse:
    house_id: str
    house_name: str
    house_order: int
    is_recognized: bool = True


@dataclass(frozen=True)
class Dependant:
    """Person financially dependent on the deceased outside the primary beneficiary class (S.29)"""

    dependant_id: str
    full_name: str
    relationship: str
    dependency_level: DependencyLevel
    monthly_support: Optional[Money] = None  # support the deceased was paying
    entitlement: Optional[Money] = None  # pre-computed entitlement, when supplied
    is_minor: bool = False


@dataclass(frozen=True)
class FamilyContext:
    structure: FamilyStructure
    houses: Tuple[PolygamousHouse, ...] = ()
    dependants: Tuple[Dependant, ...] = ()

    def recognized_house_ids(self) -> Optional[List[str]]:
        """Recognised house ids, or None when no houses were declared"""
        if not self.houses:
            return None
        return sorted(h.house_id for h in self.houses if h.is_recognized)


@dataclass(frozen=True)
class LifetimeGift:
    """Gift inter vivos that may be brought into hotchpot"""

    gift_id: str
    recipient_id: str
    value: Money
    gift_date: date
    is_subject_to_hotchpot: bool = True
    recipient_name: str = ""
    exemption_reason: Optional[str] = None


class InflationMode(str, Enum):
    SIMPLE = "SIMPLE"  # single multiplicative step regardless of elapsed time
    ANNUAL_COMPOUND = "ANNUAL_COMPOUND"


@dataclass(frozen=True)
class HotchpotContext:
    gifts: Tuple[LifetimeGift, ...] = ()
    inflation_rate: Percentage = field(default_factory=Percentage.zero)
    inflation_mode: InflationMode = InflationMode.SIMPLE

    def total_gift_value(self, currency: str) -> Money:
        return Money.sum([g.value for g in self.gifts], currency)
