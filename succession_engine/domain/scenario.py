"""Distribution scenarios - one named what-if distribution of an estate"""

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from succession_engine.domain.exceptions import ShareNotFoundError, ValidationError
from succession_engine.domain.models import EntityIdentity
from succession_engine.domain.money import Money, Percentage
from succession_engine.domain.regime import Regime
from succession_engine.domain.scoring import (
    calculate_fairness_score,
    calculate_tax_efficiency,
    check_s29_addressed,
    check_s35_compliance,
    check_s40_compliance,
    share_value_stats,
)
from succession_engine.domain.shares import CalculationWarning, ComputedShare


class ScenarioType(str, Enum):
    INTESTATE_AUTO = "INTESTATE_AUTO"
    INTESTATE_S35_MONOGAMOUS = "INTESTATE_S35_MONOGAMOUS"
    INTESTATE_S40_POLYGAMOUS = "INTESTATE_S40_POLYGAMOUS"
    INTESTATE_S36_SPOUSE_ONLY = "INTESTATE_S36_SPOUSE_ONLY"
    INTESTATE_S38_CHILDREN_ONLY = "INTESTATE_S38_CHILDREN_ONLY"
    INTESTATE_S39_RESIDUAL_KIN = "INTESTATE_S39_RESIDUAL_KIN"
    CUSTOMARY_LAW = "CUSTOMARY_LAW"
    TESTATE_WILL_BASED = "TESTATE_WILL_BASED"
    COURT_ORDERED = "COURT_ORDERED"
    CUSTOM_HYBRID = "CUSTOM_HYBRID"

    @property
    def is_intestate(self) -> bool:
        return self.value.startswith("INTESTATE") or self is ScenarioType.CUSTOMARY_LAW

    @property
    def declared_regime(self) -> Optional[Regime]:
        """Regime fixed by the scenario type; None for auto-selected or non-intestate types"""
        return _DECLARED_REGIMES.get(self)


_DECLARED_REGIMES = {
    ScenarioType.INTESTATE_S35_MONOGAMOUS: Regime.S35_MONOGAMOUS_WITH_ISSUE,
    ScenarioType.INTESTATE_S40_POLYGAMOUS: Regime.S40_POLYGAMOUS,
    ScenarioType.INTESTATE_S36_SPOUSE_ONLY: Regime.S36_SPOUSE_ONLY,
    ScenarioType.INTESTATE_S38_CHILDREN_ONLY: Regime.S38_ISSUE_ONLY,
    ScenarioType.INTESTATE_S39_RESIDUAL_KIN: Regime.S39_RESIDUAL_KIN,
    ScenarioType.CUSTOMARY_LAW: Regime.CUSTOMARY,
}


class OverallImpact(str, Enum):
    INCREASED_EQUITY = "INCREASED_EQUITY"
    REDUCED_EQUITY = "REDUCED_EQUITY"
    MINIMAL_CHANGE = "MINIMAL_CHANGE"
    MAJOR_RESTRUCTURING = "MAJOR_RESTRUCTURING"


@dataclass(frozen=True)
class ScenarioParameters:
    """Inputs a scenario is created with; replaced wholesale on update"""

    gross_estate_value: Money
    net_estate_value: Money
    applied_law_section: Optional[str] = None
    include_hotchpot: bool = False
    hotchpot_gift_ids: Tuple[str, ...] = ()
    hotchpot_inflation_rate: Optional[Percentage] = None  # None uses the estate hotchpot context rate
    customary_law_applicable: bool = False
    customary_law_type: Optional[str] = None
    polygamous_house_count: int = 0
    include_dependant_provision: bool = True
    assume_all_debts_paid: bool = True
    debt_adjustment_percentage: Optional[Percentage] = None
    court_order_exists: bool = False
    valuation_date: date = field(default_factory=date.today)


@dataclass(frozen=True)
class ScenarioResults:
    total_distributable: Money
    total_shares_calculated: int
    average_share_value: Money
    largest_share: Money
    smallest_share: Money
    is_s35_compliant: bool
    is_s40_compliant: bool
    is_s29_addressed: bool
    is_hotchpot_applied: bool
    distribution_efficiency: float
    tax_efficiency: float
    fairness_score: float
    customary_compliance: float
    residual_amount: Money
    residual_reason: Optional[str] = None

    @property
    def legal_compliance(self) -> float:
        return 100.0 if (self.is_s35_compliant and self.is_s40_compliant and self.is_s29_addressed) else 50.0

    def to_dict(self) -> Dict[str, Any]:
        return {k: _plain(v) for k, v in asdict(self).items()} | {
            "total_distributable": self.total_distributable.to_dict(),
            "average_share_value": self.average_share_value.to_dict(),
            "largest_share": self.largest_share.to_dict(),
            "smallest_share": self.smallest_share.to_dict(),
            "residual_amount": self.residual_amount.to_dict(),
            "legal_compliance": self.legal_compliance,
        }


@dataclass(frozen=True)
class ParameterDifference:
    field: str
    previous_value: Any
    new_value: Any
    impact_description: str


@dataclass(frozen=True)
class ScenarioComparison:
    base_scenario_id: str
    differences: List[ParameterDifference]
    overall_impact: OverallImpact

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_scenario_id": self.base_scenario_id,
            "differences": [asdict(d) for d in self.differences],
            "overall_impact": self.overall_impact.value,
        }


SIGNIFICANT_FIELDS = ("debt_adjustment_percentage", "include_hotchpot", "polygamous_house_count", "scenario_type")
COMPARED_RESULTS = ("total_distributable", "fairness_score", "tax_efficiency", "residual_amount")


def validate_parameters(
    name: str,
    scenario_type: ScenarioType,
    created_by_user_id: str,
    parameters: ScenarioParameters,
) -> List[CalculationWarning]:
    """Raise ValidationError for unusable input; return advisory warnings"""
    if not name or len(name.strip()) < 3:
        raise ValidationError("Scenario name must be at least 3 characters")
    if not created_by_user_id:
        raise ValidationError("Scenario must have a creator")
    if parameters.gross_estate_value.minor_units <= 0:
        raise ValidationError("Gross estate value must be positive")
    if parameters.net_estate_value.is_negative():
        raise ValidationError("Net estate value cannot be negative")
    if parameters.net_estate_value > parameters.gross_estate_value:
        raise ValidationError("Net estate value cannot exceed gross value")
    if scenario_type == ScenarioType.INTESTATE_S40_POLYGAMOUS and parameters.polygamous_house_count < 2:
        raise ValidationError("Polygamous scenarios require at least 2 houses")
    if scenario_type == ScenarioType.CUSTOMARY_LAW and not parameters.customary_law_applicable:
        raise ValidationError("Customary law scenarios must have customary law applicable")

    warnings = []
    if parameters.include_hotchpot and not parameters.hotchpot_gift_ids:
        warnings.append(
            CalculationWarning(
                "HOTCHPOT_NO_GIFTS_SPECIFIED",
                "Hotchpot enabled but no gifts specified; all applicable gifts will be considered",
            )
        )
    return warnings


class DistributionScenario:
    """
    Named hypothesis about how an estate is divided.

    Lifecycle: created -> (parameters edited: results cleared, version bumped)
    -> calculated -> optionally archived (terminal, excluded from comparison).
    Owns its ComputedShares exclusively.
    """

    def __init__(
        self,
        identity: EntityIdentity,
        name: str,
        scenario_type: ScenarioType,
        created_by_user_id: str,
        created_by_full_name: str,
        parameters: ScenarioParameters,
        description: Optional[str] = None,
    ):
        self.warnings = validate_parameters(name, scenario_type, created_by_user_id, parameters)
        self.identity = identity
        self.name = name.strip()
        self.scenario_type = scenario_type
        self.created_by_user_id = created_by_user_id
        self.created_by_full_name = created_by_full_name
        self.description = description
        self._parameters = parameters
        self._shares: List[ComputedShare] = []
        self.results: Optional[ScenarioResults] = None
        self.applied_regime: Optional[Regime] = None
        self.basis: Optional[str] = None
        self.house_units: Dict[str, int] = {}
        self.calculation_warnings: List[CalculationWarning] = []
        self.is_default = False
        self.is_archived = False
        self.archive_reason: Optional[str] = None
        self.version = 1
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at
        self.last_calculated_at: Optional[datetime] = None
        self._unallocated: Optional[Money] = None
        self._unallocated_reason: Optional[str] = None
        self._dependants_expected = False

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def parameters(self) -> ScenarioParameters:
        return self._parameters

    @property
    def shares(self) -> List[ComputedShare]:
        return list(self._shares)

    @property
    def is_calculated(self) -> bool:
        return self.results is not None

    def _ensure_not_archived(self) -> None:
        if self.is_archived:
            raise ValidationError(f"Scenario {self.id} is archived")

    def update_parameters(self, updates: Mapping[str, Any]) -> ScenarioParameters:
        """Apply parameter changes, invalidating results. Returns the previous parameters."""
        self._ensure_not_archived()
        known = {f.name for f in fields(ScenarioParameters)}
        unknown = set(updates) - known
        if unknown:
            raise ValidationError(f"Unknown scenario parameters: {sorted(unknown)}")

        new_parameters = replace(self._parameters, **dict(updates))
        warnings = validate_parameters(self.name, self.scenario_type, self.created_by_user_id, new_parameters)

        previous = self._parameters
        self._parameters = new_parameters
        self.warnings = warnings
        self._clear_calculation()
        self.version += 1
        self.updated_at = datetime.now(timezone.utc)
        return previous

    def _clear_calculation(self) -> None:
        self._shares = []
        self.results = None
        self.last_calculated_at = None
        self.applied_regime = None
        self.basis = None
        self.house_units = {}
        self.calculation_warnings = []
        self._unallocated = None
        self._unallocated_reason = None
        self._dependants_expected = False

    def record_calculation(
        self,
        regime: Regime,
        basis: str,
        shares: List[ComputedShare],
        unallocated: Money,
        unallocated_reason: Optional[str],
        house_units: Mapping[str, int],
        warnings: List[CalculationWarning],
        dependants_expected: bool,
    ) -> ScenarioResults:
        """Replace the owned shares with a fresh calculation and derive results"""
        self._ensure_not_archived()
        self._shares = list(shares)
        self.applied_regime = regime
        self.basis = basis
        self.house_units = dict(house_units)
        self.calculation_warnings = list(warnings)
        self._unallocated = unallocated
        self._unallocated_reason = unallocated_reason
        self._dependants_expected = dependants_expected
        results = self.calculate_results()
        self.last_calculated_at = datetime.now(timezone.utc)
        return results

    def calculate_results(self) -> ScenarioResults:
        """
        Aggregate the current shares into a results snapshot.

        residual = net estate - sum(final share values); a positive residual
        carries the calculator's reason or a generic one.
        """
        net = self._parameters.net_estate_value
        currency = net.currency
        stats = share_value_stats(self._shares, currency)
        residual = net - stats["total"]

        reason = None
        if residual.minor_units > 0:
            reason = self._unallocated_reason or "Undistributed due to rounding, unallocated assets, or court hold"
        elif residual.is_negative():
            reason = "Adjusted shares exceed the net estate"

        regime = self.applied_regime
        is_s35 = True
        if regime == Regime.S35_MONOGAMOUS_WITH_ISSUE:
            is_s35 = check_s35_compliance(self._shares)
        is_s40 = True
        if regime == Regime.S40_POLYGAMOUS:
            is_s40 = check_s40_compliance(self._shares, self.house_units, net)

        dependants_expected = self._dependants_expected and self._parameters.include_dependant_provision
        distributed = Percentage.ratio(stats["total"], net) if stats["total"] <= net else Percentage(100)

        self.results = ScenarioResults(
            total_distributable=stats["total"],
            total_shares_calculated=len(self._shares),
            average_share_value=stats["average"],
            largest_share=stats["largest"],
            smallest_share=stats["smallest"],
            is_s35_compliant=is_s35,
            is_s40_compliant=is_s40,
            is_s29_addressed=check_s29_addressed(self._shares, dependants_expected),
            is_hotchpot_applied=self._parameters.include_hotchpot
            and any(not s.breakdown.hotchpot_adjustment.is_zero() for s in self._shares),
            distribution_efficiency=round(float(distributed), 3),
            tax_efficiency=calculate_tax_efficiency(self._shares),
            fairness_score=calculate_fairness_score(self._shares),
            customary_compliance=85.0 if self._parameters.customary_law_applicable else 100.0,
            residual_amount=residual,
            residual_reason=reason,
        )
        self.updated_at = datetime.now(timezone.utc)
        return self.results

    def find_share(self, share_id: str) -> ComputedShare:
        for share in self._shares:
            if share.share_id == share_id:
                return share
        raise ShareNotFoundError(f"Share {share_id} not found in scenario {self.id}")

    def set_as_default(self) -> None:
        self._ensure_not_archived()
        self.is_default = True
        self.updated_at = datetime.now(timezone.utc)

    def clear_default(self) -> None:
        self.is_default = False

    def archive(self, reason: str) -> None:
        self._ensure_not_archived()
        self.is_archived = True
        self.is_default = False
        self.archive_reason = reason
        self.updated_at = datetime.now(timezone.utc)

    def compare_with(self, other: "DistributionScenario") -> ScenarioComparison:
        """Differences from this scenario (previous) to `other` (new)"""
        differences: List[ParameterDifference] = []

        if self.scenario_type != other.scenario_type:
            differences.append(
                ParameterDifference(
                    "scenario_type",
                    self.scenario_type.value,
                    other.scenario_type.value,
                    f"Distribution basis changed from {self.scenario_type.value} to {other.scenario_type.value}",
                )
            )

        differences.extend(diff_parameters(self._parameters, other.parameters))

        if self.results is not None and other.results is not None:
            for name in COMPARED_RESULTS:
                previous = getattr(self.results, name)
                new = getattr(other.results, name)
                if previous != new:
                    differences.append(
                        ParameterDifference(f"results.{name}", _plain(previous), _plain(new), "Changes distribution outcomes")
                    )

        return ScenarioComparison(
            base_scenario_id=other.id,
            differences=differences,
            overall_impact=classify_impact(differences, self._parameters, other.parameters),
        )

    def get_share_summary(self) -> Dict[str, Any]:
        by_relationship: Dict[str, int] = {}
        by_share_type: Dict[str, int] = {}
        for share in self._shares:
            by_relationship[share.relationship.value] = by_relationship.get(share.relationship.value, 0) + 1
            by_share_type[share.share_type.value] = by_share_type.get(share.share_type.value, 0) + 1
        total = Money.sum([s.final_value for s in self._shares], self._parameters.net_estate_value.currency)
        return {
            "total_beneficiaries": len(self._shares),
            "by_relationship": by_relationship,
            "by_share_type": by_share_type,
            "total_value": total.to_dict(),
        }

    def generate_report(self) -> Dict[str, Any]:
        """Fields a court-filing renderer needs; rendering happens elsewhere"""
        results = self.results

        def status(flag: Optional[bool], partial: bool = False) -> str:
            if flag:
                return "COMPLIANT"
            return "PARTIAL" if partial else "NON_COMPLIANT"

        legal_compliance = [
            {
                "aspect": "Section 35 Compliance",
                "status": status(results and results.is_s35_compliant),
                "notes": "Spouse life interest with equal children's entitlements",
            },
            {
                "aspect": "Section 40 Compliance",
                "status": status(results and results.is_s40_compliant),
                "notes": "House allocations proportional to units",
            },
            {
                "aspect": "Dependant Provision",
                "status": status(results and results.is_s29_addressed, partial=True),
                "notes": "Dependant claims under S.26/S.29",
            },
        ]

        recommendations = []
        if results and results.fairness_score < 70:
            recommendations.append({
                "priority": "HIGH",
                "recommendation": "Review distribution for fairness improvements",
                "rationale": f"Fairness score of {results.fairness_score} indicates potential inequities",
            })
        if self._parameters.include_hotchpot and not self._parameters.hotchpot_gift_ids:
            recommendations.append({
                "priority": "MEDIUM",
                "recommendation": "Document any inter vivos gifts for hotchpot calculation",
                "rationale": "Hotchpot enabled but no gifts recorded",
            })
        if any(s.requires_guardian and s.final_value.minor_units > 0 for s in self._shares):
            recommendations.append({
                "priority": "HIGH",
                "recommendation": "Appoint guardians for minor beneficiaries",
                "rationale": "Minors require legal guardians for inheritance management",
            })
        if results and results.residual_amount.minor_units > 0:
            recommendations.append({
                "priority": "MEDIUM",
                "recommendation": "Resolve undistributed residue",
                "rationale": f"{results.residual_amount} undistributed: {results.residual_reason}",
            })
        if self._parameters.court_order_exists:
            recommendations.append({
                "priority": "HIGH",
                "recommendation": "Reconcile shares with existing court orders",
                "rationale": "Court orders on the estate take precedence over the intestate distribution",
            })

        total = results.total_distributable if results else Money.zero(self._parameters.net_estate_value.currency)
        fairness = results.fairness_score if results else 0
        return {
            "executive_summary": (
                f'Distribution scenario "{self.name}" allocates {total} among '
                f"{len(self._shares)} beneficiaries with a fairness score of {fairness}."
            ),
            "legal_compliance": legal_compliance,
            "recommendations": recommendations,
            "share_summary": self.get_share_summary(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "calculation_id": self.identity.owner_id,
            "name": self.name,
            "description": self.description,
            "scenario_type": self.scenario_type.value,
            "created_by": {"user_id": self.created_by_user_id, "full_name": self.created_by_full_name},
            "parameters": {f.name: _plain(getattr(self._parameters, f.name)) for f in fields(ScenarioParameters)},
            "applied_regime": self.applied_regime.value if self.applied_regime else None,
            "basis": self.basis,
            "house_units": dict(self.house_units),
            "shares": [s.to_dict() for s in self._shares],
            "results": self.results.to_dict() if self.results else None,
            "warnings": [w.to_dict() for w in (*self.warnings, *self.calculation_warnings)],
            "status": {
                "is_default": self.is_default,
                "is_archived": self.is_archived,
                "archive_reason": self.archive_reason,
            },
            "version": self.version,
            "timestamps": {
                "created_at": self.created_at.isoformat(),
                "updated_at": self.updated_at.isoformat(),
                "last_calculated_at": self.last_calculated_at.isoformat() if self.last_calculated_at else None,
            },
            "report": self.generate_report(),
        }


def _plain(value: Any) -> Any:
    """JSON-ready form of a parameter or result value"""
    if isinstance(value, Money):
        return value.to_dict()
    if isinstance(value, Percentage):
        return str(value.value)
    if isinstance(value, dict) and set(value) == {"minor_units", "currency"}:
        return Money(value["minor_units"], value["currency"]).to_dict()
    if isinstance(value, dict) and set(value) == {"value"}:
        return str(value["value"])
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def _describe_impact(field_name: str, previous: Any, new: Any) -> str:
    if field_name == "debt_adjustment_percentage":
        old_pct = previous if previous else "100%"
        new_pct = new if new else "100%"
        return f"Debt payment changed from {old_pct} to {new_pct}"
    if field_name == "include_hotchpot":
        return "Hotchpot rule now applied" if new else "Hotchpot rule removed"
    if field_name == "customary_law_applicable":
        return "Customary law considerations added" if new else "Customary law considerations removed"
    if field_name == "polygamous_house_count":
        return f"Polygamous house count changed from {previous} to {new}"
    if field_name == "net_estate_value":
        return f"Net estate value changed from {previous} to {new}"
    return f'Parameter "{field_name}" was modified'


def classify_impact(
    differences: List[ParameterDifference],
    previous: ScenarioParameters,
    new: ScenarioParameters,
) -> OverallImpact:
    significant = [d for d in differences if d.field in SIGNIFICANT_FIELDS]
    if len(significant) >= 2:
        return OverallImpact.MAJOR_RESTRUCTURING
    if len(significant) == 1:
        if significant[0].field == "debt_adjustment_percentage":
            old_pct = previous.debt_adjustment_percentage.value if previous.debt_adjustment_percentage else 100
            new_pct = new.debt_adjustment_percentage.value if new.debt_adjustment_percentage else 100
            return OverallImpact.REDUCED_EQUITY if new_pct > old_pct else OverallImpact.INCREASED_EQUITY
        return OverallImpact.MAJOR_RESTRUCTURING
    return OverallImpact.MINIMAL_CHANGE


def diff_parameters(previous: ScenarioParameters, new: ScenarioParameters) -> List[ParameterDifference]:
    differences = []
    for f in fields(ScenarioParameters):
        old_value = getattr(previous, f.name)
        new_value = getattr(new, f.name)
        if old_value != new_value:
            differences.append(
                ParameterDifference(f.name, _plain(old_value), _plain(new_value), _describe_impact(f.name, old_value, new_value))
            )
    return differences
