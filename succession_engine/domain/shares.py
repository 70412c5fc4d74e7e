"""Computed beneficiary shares and their itemised breakdown"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from succession_engine.domain.exceptions import ValidationError
from succession_engine.domain.money import Money, Percentage

AUDIT_TRAIL_LIMIT = 50


class ShareType(str, Enum):
    ABSOLUTE = "ABSOLUTE"
    LIFE_INTEREST = "LIFE_INTEREST"
    CONDITIONAL_TRUST = "CONDITIONAL_TRUST"


class Relationship(str, Enum):
    SPOUSE = "SPOUSE"
    CHILD = "CHILD"
    PARENT = "PARENT"
    SIBLING = "SIBLING"
    DEPENDANT = "DEPENDANT"


class AdjustmentKind(str, Enum):
    HOTCHPOT = "HOTCHPOT"
    DEPENDANT_PROVISION = "DEPENDANT_PROVISION"
    CUSTOMARY = "CUSTOMARY"
    COURT_ORDER = "COURT_ORDER"


class WarningSeverity(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CalculationWarning:
    """Advisory finding that never blocks a calculation"""

    code: str
    message: str
    severity: WarningSeverity = WarningSeverity.WARNING

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "severity": self.severity.value}


_ADJUSTMENT_FIELDS: Dict[AdjustmentKind, str] = {
    AdjustmentKind.HOTCHPOT: "hotchpot_adjustment",
    AdjustmentKind.DEPENDANT_PROVISION: "dependant_provision",
    AdjustmentKind.CUSTOMARY: "customary_adjustment",
    AdjustmentKind.COURT_ORDER: "court_order_adjustment",
}


@dataclass(frozen=True)
class ShareBreakdown:
    """
    Itemised composition of a share.

    The five components must sum to `net_share` (within one minor unit).
    Adjustments are signed: deductions are negative.
    """

    statutory_entitlement: Money
    hotchpot_adjustment: Money
    dependant_provision: Money
    customary_adjustment: Money
    court_order_adjustment: Money
    net_share: Money

    @classmethod
    def opening(cls, value: Money, kind: Optional[AdjustmentKind] = None) -> "ShareBreakdown":
        """Breakdown for a freshly computed share; `kind` books it outside the statutory line"""
        zero = Money.zero(value.currency)
        breakdown = cls(zero, zero, zero, zero, zero, value)
        if kind is None:
            return replace(breakdown, statutory_entitlement=value)
        return replace(breakdown, **{_ADJUSTMENT_FIELDS[kind]: value})

    def components(self) -> Tuple[Money, ...]:
        return (
            self.statutory_entitlement,
            self.hotchpot_adjustment,
            self.dependant_provision,
            self.customary_adjustment,
            self.court_order_adjustment,
        )

    def component(self, kind: AdjustmentKind) -> Money:
        return getattr(self, _ADJUSTMENT_FIELDS[kind])

    def is_balanced(self) -> bool:
        total = Money.sum(self.components(), self.net_share.currency)
        return abs(total.minor_units - self.net_share.minor_units) <= 1

    def with_adjustment(self, kind: AdjustmentKind, delta: Money) -> "ShareBreakdown":
        name = _ADJUSTMENT_FIELDS[kind]
        return replace(
            self,
            **{name: getattr(self, name) + delta},
            net_share=self.net_share + delta,
        )

    def to_dict(self) -> dict:
        return {
            "statutory_entitlement": self.statutory_entitlement.to_dict(),
            "hotchpot_adjustment": self.hotchpot_adjustment.to_dict(),
            "dependant_provision": self.dependant_provision.to_dict(),
            "customary_adjustment": self.customary_adjustment.to_dict(),
            "court_order_adjustment": self.court_order_adjustment.to_dict(),
            "net_share": self.net_share.to_dict(),
        }


@dataclass(frozen=True)
class LifeInterest:
    """Life interest terms; termination is recorded here, not enforced by the calculators"""

    terminates_on: Tuple[str, ...] = ("DEATH", "REMARRIAGE")
    remaindermen: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class AuditEntry:
    timestamp: datetime
    action: str
    details: str


def share_percentage(value: Money, estate_value: Money) -> Percentage:
    """Share of the estate as a percentage, capped at 100"""
    if value.minor_units >= estate_value.minor_units > 0:
        return Percentage(100)
    return Percentage.ratio(value.floor_at_zero(), estate_value)


@dataclass
class ComputedShare:
    """One beneficiary's outcome within a distribution scenario"""

    beneficiary_id: str
    relationship: Relationship
    gross_percentage: Percentage
    final_percentage: Percentage
    share_type: ShareType
    breakdown: ShareBreakdown
    legal_citation: str
    beneficiary_name: str = ""
    description: str = ""
    house_id: Optional[str] = None
    is_minor: bool = False
    requires_guardian: bool = False
    life_interest: Optional[LifeInterest] = None
    share_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    audit_trail: List[AuditEntry] = field(default_factory=list)
    applied_passes: Set[AdjustmentKind] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def create(
        cls,
        beneficiary_id: str,
        relationship: Relationship,
        value: Money,
        percentage: Percentage,
        share_type: ShareType,
        legal_citation: str,
        booked_as: Optional[AdjustmentKind] = None,
        **extra,
    ) -> "ComputedShare":
        """New share whose whole value is its opening entitlement"""
        share = cls(
            beneficiary_id=beneficiary_id,
            relationship=relationship,
            gross_percentage=percentage,
            final_percentage=percentage,
            share_type=share_type,
            breakdown=ShareBreakdown.opening(value, booked_as),
            legal_citation=legal_citation,
            **extra,
        )
        share.record("SHARE_COMPUTED", f"{value} under {legal_citation}")
        return share

    def validate(self) -> None:
        if not self.beneficiary_id:
            raise ValidationError("Computed share must have a beneficiary")
        if self.breakdown.net_share.is_negative():
            raise ValidationError(f"Share for {self.beneficiary_id} cannot be negative")
        if not self.breakdown.is_balanced():
            raise ValidationError(
                f"Breakdown for {self.beneficiary_id} does not sum to net share "
                f"{self.breakdown.net_share}"
            )
        if self.share_type == ShareType.LIFE_INTEREST and self.life_interest is None:
            raise ValidationError("Life interest share must carry life interest details")
        if self.share_type != ShareType.LIFE_INTEREST and self.life_interest is not None:
            raise ValidationError("Only life interest shares may carry life interest details")

    @property
    def final_value(self) -> Money:
        return self.breakdown.net_share

    @property
    def statutory_value(self) -> Money:
        """Opening entitlement before any adjustment pass"""
        return self.breakdown.statutory_entitlement + self.breakdown.customary_adjustment

    def apply_adjustment(
        self,
        kind: AdjustmentKind,
        delta: Money,
        reason: str,
        estate_value: Money,
    ) -> Money:
        """
        Book a signed adjustment, flooring the net share at zero.

        Returns the delta actually applied, which is smaller in magnitude than
        requested when the floor bites.
        """
        applied = (self.final_value + delta).floor_at_zero() - self.final_value
        self.breakdown = self.breakdown.with_adjustment(kind, applied)
        self.final_percentage = share_percentage(self.final_value, estate_value)
        self.record(f"{kind.value}_APPLIED", f"{applied} ({reason})")
        self.validate()
        return applied

    def record(self, action: str, details: str) -> None:
        self.audit_trail.append(AuditEntry(datetime.now(timezone.utc), action, details))
        if len(self.audit_trail) > AUDIT_TRAIL_LIMIT:
            del self.audit_trail[: len(self.audit_trail) - AUDIT_TRAIL_LIMIT]

    def to_dict(self) -> dict:
        return {
            "share_id": self.share_id,
            "beneficiary": {
                "id": self.beneficiary_id,
                "name": self.beneficiary_name,
                "relationship": self.relationship.value,
                "is_minor": self.is_minor,
                "requires_guardian": self.requires_guardian,
            },
            "share": {
                "gross_percentage": str(self.gross_percentage.value),
                "final_percentage": str(self.final_percentage.value),
                "final_value": self.final_value.to_dict(),
                "type": self.share_type.value,
            },
            "breakdown": self.breakdown.to_dict(),
            "legal_citation": self.legal_citation,
            "description": self.description,
            "house_id": self.house_id,
            "life_interest": (
                {
                    "terminates_on": list(self.life_interest.terminates_on),
                    "remaindermen": list(self.life_interest.remaindermen),
                    "description": self.life_interest.description,
                }
                if self.life_interest
                else None
            ),
            "audit_trail": [
                {"timestamp": e.timestamp.isoformat(), "action": e.action, "details": e.details}
                for e in self.audit_trail
            ],
        }


@dataclass
class DistributionResult:
    """Output of a regime calculator before any adjustment pass"""

    shares: List[ComputedShare]
    unallocated: Money
    basis: str
    unallocated_reason: Optional[str] = None
    house_units: Dict[str, int] = field(default_factory=dict)
    warnings: List[CalculationWarning] = field(default_factory=list)
