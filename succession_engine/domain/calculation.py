"""InheritanceCalculation aggregate - orchestrates regime calculators and adjustment passes"""

import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set

from succession_engine.domain.customary import apply_customary_rules
from succession_engine.domain.dependants import apply_dependant_provision
from succession_engine.domain.events import DomainEvent, EventOutbox, EventType
from succession_engine.domain.exceptions import (
    ComputationError,
    ScenarioNotFoundError,
    ValidationError,
)
from succession_engine.domain.hotchpot import apply_hotchpot
from succession_engine.domain.models import (
    EntityIdentity,
    EstateContext,
    FamilyContext,
    HotchpotContext,
    LegalContext,
)
from succession_engine.domain.money import Money
from succession_engine.domain.regime import Regime, select_regime
from succession_engine.domain.scenario import (
    DistributionScenario,
    ScenarioParameters,
    ScenarioResults,
    ScenarioType,
    classify_impact,
    diff_parameters,
)
from succession_engine.domain.shares import (
    AdjustmentKind,
    CalculationWarning,
    DistributionResult,
    WarningSeverity,
)
from succession_engine.domain.statutory import (
    calculate_section_35,
    calculate_section_36,
    calculate_section_38,
    calculate_section_39,
    calculate_section_40,
)

HISTORY_LIMIT = 100
ERROR_LIMIT = 50


class CalculationStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    NEEDS_REVIEW = "NEEDS_REVIEW"


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    action: str
    details: str
    scenario_id: Optional[str] = None
    performed_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
            "details": self.details,
            "scenario_id": self.scenario_id,
            "performed_by": self.performed_by,
        }


@dataclass
class RecalculationReport:
    """Outcome of a batch recalculation; one failing scenario does not stop the rest"""

    trigger: str
    calculated: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.trigger,
            "calculated": list(self.calculated),
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
        }


def validate_facts(
    estate: EstateContext,
    family: FamilyContext,
    hotchpot: HotchpotContext,
) -> None:
    """Reject estate facts that no calculation could be run against"""
    if estate.gross_value.minor_units <= 0:
        raise ValidationError("Gross estate value must be positive")
    if estate.net_value.is_negative():
        raise ValidationError("Net estate value cannot be negative")
    if estate.net_value > estate.gross_value:
        raise ValidationError("Net estate value cannot exceed gross value")

    currency = estate.gross_value.currency
    if any(g.value.is_negative() for g in hotchpot.gifts):
        raise ValidationError("Lifetime gift values cannot be negative")
    if hotchpot.total_gift_value(currency) > estate.gross_value:
        raise ValidationError("Total lifetime gifts cannot exceed the gross estate value")

    structure = family.structure
    if structure.is_polygamous or len(structure.surviving_spouses) > 1:
        declared = family.houses
        house_count = len(declared) if declared else len(structure.house_ids())
        if house_count < 2:
            raise ValidationError("Polygamous family requires at least 2 houses")
        if declared and not any(h.is_recognized for h in declared):
            raise ValidationError("Polygamous family requires at least one recognised house")

    for dependant in family.dependants:
        if dependant.entitlement is not None and dependant.entitlement.is_negative():
            raise ValidationError(f"Dependant {dependant.dependant_id} entitlement cannot be negative")
        if dependant.monthly_support is not None and dependant.monthly_support.is_negative():
            raise ValidationError(f"Dependant {dependant.dependant_id} monthly support cannot be negative")


class InheritanceCalculation:
    """
    Aggregate root for one estate's intestate distribution work.

    Owns its scenarios exclusively. Every state-changing operation increments
    `version` for optimistic concurrency and takes the EventOutbox it should
    publish to; events are only added once the operation has succeeded.
    """

    def __init__(
        self,
        identity: EntityIdentity,
        estate: EstateContext,
        legal: LegalContext,
        family: FamilyContext,
        hotchpot: HotchpotContext,
    ):
        self.identity = identity
        self.estate = estate
        self.legal = legal
        self.family = family
        self.hotchpot = hotchpot
        self.status = CalculationStatus.PENDING
        self.errors: List[CalculationWarning] = []
        self.history: List[HistoryEntry] = []
        self._scenarios: Dict[str, DistributionScenario] = {}
        self._failed_scenario_ids: Set[str] = set()  # failed and not yet recalculated or archived
        self.active_scenario_id: Optional[str] = None
        self.default_scenario_id: Optional[str] = None
        self.summary: Dict[str, Any] = {}
        self.last_recalculation_trigger: Optional[str] = None
        self.version = 1
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at
        self.last_calculated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        estate: EstateContext,
        legal: LegalContext,
        family: FamilyContext,
        hotchpot: HotchpotContext,
        outbox: EventOutbox,
        calculation_id: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> "InheritanceCalculation":
        validate_facts(estate, family, hotchpot)
        identity = EntityIdentity(calculation_id) if calculation_id else EntityIdentity.new()
        calculation = cls(identity, estate, legal, family, hotchpot)
        calculation._record_history(
            "CALCULATION_CREATED",
            f"Inheritance calculation created for estate {estate.estate_id}",
            performed_by=performed_by,
        )
        outbox.extend([
            calculation._event(
                EventType.CALCULATION_CREATED,
                {
                    "estate_id": estate.estate_id,
                    "deceased_id": estate.deceased_id,
                    "net_value": estate.net_value.to_dict(),
                },
            )
        ])
        return calculation

    @property
    def id(self) -> str:
        return self.identity.id

    @property
    def scenarios(self) -> List[DistributionScenario]:
        """Scenarios in creation order"""
        return list(self._scenarios.values())

    def get_scenario(self, scenario_id: str) -> DistributionScenario:
        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(f"Scenario {scenario_id} not found in calculation {self.id}")
        return scenario

    @property
    def active_scenario(self) -> Optional[DistributionScenario]:
        return self._scenarios.get(self.active_scenario_id) if self.active_scenario_id else None

    @property
    def default_scenario(self) -> Optional[DistributionScenario]:
        return self._scenarios.get(self.default_scenario_id) if self.default_scenario_id else None

    # -- bookkeeping ---------------------------------------------------------

    def _touch(self) -> None:
        self.version += 1
        self.updated_at = datetime.now(timezone.utc)

    def _record_history(
        self,
        action: str,
        details: str,
        scenario_id: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> None:
        self.history.append(
            HistoryEntry(datetime.now(timezone.utc), action, details, scenario_id, performed_by)
        )
        if len(self.history) > HISTORY_LIMIT:
            del self.history[: len(self.history) - HISTORY_LIMIT]

    def _record_error(self, code: str, message: str, severity: WarningSeverity) -> None:
        self.errors.append(CalculationWarning(code, message, severity))
        if len(self.errors) > ERROR_LIMIT:
            del self.errors[: len(self.errors) - ERROR_LIMIT]

    def _record_warnings(self, warnings: List[CalculationWarning], scenario_id: Optional[str] = None) -> None:
        for warning in warnings:
            self._record_error(warning.code, warning.message, WarningSeverity.WARNING)
            logging.warning(
                warning.message,
                extra={
                    "calculation_id": self.id,
                    "scenario_id": scenario_id,
                    "warning_code": warning.code,
                },
            )

    def _event(
        self,
        event_type: EventType,
        payload: Dict[str, Any],
        subject_id: Optional[str] = None,
    ) -> DomainEvent:
        return DomainEvent(
            event_type=event_type,
            aggregate_id=self.id,
            payload=payload,
            subject_id=subject_id,
            aggregate_version=self.version,
        )

    # -- scenarios -----------------------------------------------------------

    def create_distribution_scenario(
        self,
        name: str,
        scenario_type: ScenarioType,
        created_by_user_id: str,
        created_by_full_name: str,
        outbox: EventOutbox,
        parameters: Optional[ScenarioParameters] = None,
        description: Optional[str] = None,
    ) -> DistributionScenario:
        """
        Add a scenario; the aggregate moves to NEEDS_REVIEW.

        Parameters default to the estate's gross and net values. Rejected while
        a calculation is in progress.
        """
        if self.status == CalculationStatus.IN_PROGRESS:
            raise ValidationError("Cannot create a scenario while a calculation is in progress")
        if parameters is None:
            parameters = ScenarioParameters(
                gross_estate_value=self.estate.gross_value,
                net_estate_value=self.estate.net_value,
                customary_law_applicable=self.legal.customary_profile is not None,
                customary_law_type=self.legal.customary_profile.tribe if self.legal.customary_profile else None,
                polygamous_house_count=len(self.family.houses) or len(self.family.structure.house_ids()),
            )

        scenario = DistributionScenario(
            identity=EntityIdentity.new(owner_id=self.id),
            name=name,
            scenario_type=scenario_type,
            created_by_user_id=created_by_user_id,
            created_by_full_name=created_by_full_name,
            parameters=parameters,
            description=description,
        )
        self._scenarios[scenario.id] = scenario
        if self.active_scenario_id is None:
            self.active_scenario_id = scenario.id

        self.status = CalculationStatus.NEEDS_REVIEW
        self._touch()
        self._record_warnings(scenario.warnings, scenario.id)
        self._record_history(
            "SCENARIO_CREATED",
            f'Created scenario "{scenario.name}" ({scenario_type.value})',
            scenario.id,
            created_by_user_id,
        )
        outbox.extend([
            self._event(
                EventType.SCENARIO_CREATED,
                {"name": scenario.name, "scenario_type": scenario_type.value},
                scenario.id,
            )
        ])
        return scenario

    def update_scenario_parameters(
        self,
        scenario_id: str,
        updates: Mapping[str, Any],
        outbox: EventOutbox,
        performed_by: Optional[str] = None,
    ) -> DistributionScenario:
        scenario = self.get_scenario(scenario_id)
        previous = scenario.update_parameters(updates)
        differences = diff_parameters(previous, scenario.parameters)

        self.status = CalculationStatus.NEEDS_REVIEW
        self._touch()
        self._record_warnings(scenario.warnings, scenario.id)
        self._record_history(
            "SCENARIO_UPDATED",
            f'Updated parameters of "{scenario.name}": {sorted(updates)}',
            scenario.id,
            performed_by,
        )
        outbox.extend([
            self._event(
                EventType.SCENARIO_UPDATED,
                {
                    "differences": [asdict(d) for d in differences],
                    "overall_impact": classify_impact(differences, previous, scenario.parameters).value,
                    "scenario_version": scenario.version,
                },
                scenario.id,
            )
        ])
        return scenario

    def _resolve_regime(self, scenario: DistributionScenario) -> Regime:
        if not scenario.scenario_type.is_intestate:
            raise ValidationError(
                f"Scenario type {scenario.scenario_type.value} is not calculable by the intestacy engine"
            )
        regime = scenario.scenario_type.declared_regime
        if regime is None:
            regime = select_regime(
                self.family.structure,
                self.legal.customary_profile,
                self.estate.is_testate,
            )
        if regime == Regime.CUSTOMARY and self.legal.customary_profile is None:
            raise ValidationError("Customary law scenario requires a customary law profile")
        return regime

    def _distribute(self, regime: Regime, net: Money) -> DistributionResult:
        structure = self.family.structure
        spouses = structure.surviving_spouses
        children = structure.surviving_children

        if regime == Regime.CUSTOMARY:
            return apply_customary_rules(net, structure, self.legal.customary_profile)
        if regime == Regime.S40_POLYGAMOUS:
            return calculate_section_40(net, structure, self.family.recognized_house_ids())
        if regime == Regime.S35_MONOGAMOUS_WITH_ISSUE:
            if len(spouses) != 1 or not children:
                raise ComputationError("S.35 requires exactly one surviving spouse and at least one child")
            return calculate_section_35(net, spouses[0], children)
        if regime == Regime.S36_SPOUSE_ONLY:
            if len(spouses) != 1:
                raise ComputationError("S.36 requires exactly one surviving spouse")
            return calculate_section_36(net, spouses[0])
        if regime == Regime.S38_ISSUE_ONLY:
            return calculate_section_38(net, children)
        return calculate_section_39(net, structure)

    def _run_pipeline(self, scenario: DistributionScenario, regime: Regime) -> List[DomainEvent]:
        """Regime calculator, then hotchpot, then dependant provision; strictly in that order"""
        params = scenario.parameters
        net = params.net_estate_value
        result = self._distribute(regime, net)
        shares = result.shares
        warnings = list(result.warnings)
        events: List[DomainEvent] = []

        if params.include_hotchpot:
            context = self.hotchpot
            if params.hotchpot_inflation_rate is not None:
                context = replace(context, inflation_rate=params.hotchpot_inflation_rate)
            outcome = apply_hotchpot(shares, context, net, params.hotchpot_gift_ids, params.valuation_date)
            shares = outcome.shares
            warnings.extend(outcome.warnings)
            if outcome.adjustments:
                events.append(
                    self._event(
                        EventType.HOTCHPOT_APPLIED,
                        {
                            "adjustments": [
                                {
                                    "beneficiary_id": a.beneficiary_id,
                                    "gift_ids": list(a.gift_ids),
                                    "inflated_total": a.inflated_total.to_dict(),
                                    "applied_total": a.applied_total.to_dict(),
                                }
                                for a in outcome.adjustments
                            ]
                        },
                        scenario.id,
                    )
                )

        dependants = self.family.dependants
        if params.include_dependant_provision and dependants:
            outcome = apply_dependant_provision(shares, dependants, net)
            shares = outcome.shares
            warnings.extend(outcome.warnings)
            for provision in outcome.provisions:
                events.append(
                    self._event(
                        EventType.DEPENDANT_PROVISION_CALCULATED,
                        {
                            "scenario_id": scenario.id,
                            "share_id": provision.share_id,
                            "entitlement": provision.entitlement.to_dict(),
                            "funded": provision.funded.to_dict(),
                        },
                        provision.dependant_id,
                    )
                )

        results = scenario.record_calculation(
            regime=regime,
            basis=result.basis,
            shares=shares,
            unallocated=result.unallocated,
            unallocated_reason=result.unallocated_reason,
            house_units=result.house_units,
            warnings=warnings,
            dependants_expected=bool(dependants),
        )
        self._record_warnings(warnings, scenario.id)
        events.insert(
            0,
            self._event(
                EventType.SCENARIO_CALCULATED,
                {
                    "regime": regime.value,
                    "basis": result.basis,
                    "total_distributable": results.total_distributable.to_dict(),
                    "residual_amount": results.residual_amount.to_dict(),
                    "share_count": results.total_shares_calculated,
                },
                scenario.id,
            ),
        )
        return events

    def calculate_intestate_scenario(
        self,
        scenario_id: str,
        outbox: EventOutbox,
        performed_by: Optional[str] = None,
    ) -> ScenarioResults:
        """
        Calculate one scenario.

        Validation failures (unknown id, archived or non-intestate scenario,
        missing customary profile) are raised before any state change. Failures
        inside the calculators move the aggregate to ERROR with a recorded
        error and are re-raised; no events are published for them.
        """
        return self._calculate(self.get_scenario(scenario_id), outbox, performed_by)

    def _calculate(
        self,
        scenario: DistributionScenario,
        outbox: EventOutbox,
        performed_by: Optional[str],
        record_history: bool = True,
    ) -> ScenarioResults:
        if scenario.is_archived:
            raise ValidationError(f"Scenario {scenario.id} is archived")
        regime = self._resolve_regime(scenario)

        self.status = CalculationStatus.IN_PROGRESS
        try:
            events = self._run_pipeline(scenario, regime)
        except (ComputationError, ValidationError) as exc:
            self.status = CalculationStatus.ERROR
            self._failed_scenario_ids.add(scenario.id)
            self._record_error(type(exc).__name__, str(exc), WarningSeverity.ERROR)
            self._touch()
            if record_history:
                self._record_history(
                    "CALCULATION_FAILED",
                    f'Scenario "{scenario.name}" failed under {regime.citation}: {exc}',
                    scenario.id,
                    performed_by,
                )
            logging.error(
                "Scenario calculation failed",
                extra={"calculation_id": self.id, "scenario_id": scenario.id, "regime": regime.value, "error": str(exc)},
            )
            raise

        self._failed_scenario_ids.discard(scenario.id)
        self.status = CalculationStatus.ERROR if self._failed_scenario_ids else CalculationStatus.COMPLETED
        self.last_calculated_at = datetime.now(timezone.utc)
        self._touch()
        if record_history:
            self._record_history(
                "SCENARIO_CALCULATED",
                f'Calculated "{scenario.name}" under {regime.citation}',
                scenario.id,
                performed_by,
            )
        outbox.extend(events)
        return scenario.results

    def recalculate_all_scenarios(
        self,
        trigger: str,
        outbox: EventOutbox,
        performed_by: Optional[str] = None,
    ) -> RecalculationReport:
        """
        Re-run every non-archived intestate scenario in creation order.

        A failing scenario is recorded in the report and the batch continues;
        the aggregate ends COMPLETED only when nothing failed. Non-intestate and
        archived scenarios are skipped. One history entry covers the batch.
        """
        report = RecalculationReport(trigger=trigger)
        batch_events: List[DomainEvent] = []

        for scenario in self.scenarios:
            if scenario.is_archived or not scenario.scenario_type.is_intestate:
                report.skipped.append(scenario.id)
                continue
            try:
                self._resolve_regime(scenario)
            except ValidationError as exc:
                # rejected before _calculate could record the error
                self._failed_scenario_ids.add(scenario.id)
                self._record_error(type(exc).__name__, str(exc), WarningSeverity.ERROR)
                report.failed[scenario.id] = str(exc)
                continue
            scenario_outbox = EventOutbox()
            try:
                self._calculate(scenario, scenario_outbox, performed_by, record_history=False)
            except (ComputationError, ValidationError) as exc:
                report.failed[scenario.id] = str(exc)
                continue
            report.calculated.append(scenario.id)
            batch_events.extend(scenario_outbox.drain())

        self.status = CalculationStatus.ERROR if report.failed else CalculationStatus.COMPLETED
        self.last_recalculation_trigger = trigger
        self._touch()
        self._record_history(
            "RECALCULATION",
            f"Recalculated {len(report.calculated)} scenario(s), {len(report.failed)} failed, "
            f"{len(report.skipped)} skipped. Trigger: {trigger}",
            performed_by=performed_by,
        )
        batch_events.append(
            self._event(
                EventType.RECALCULATION_TRIGGERED,
                report.to_dict(),
            )
        )
        outbox.extend(batch_events)
        return report

    def adjust_share_in_scenario(
        self,
        scenario_id: str,
        share_id: str,
        delta: Money,
        reason: str,
        outbox: EventOutbox,
        performed_by: Optional[str] = None,
    ) -> ScenarioResults:
        """Apply a signed court-order adjustment to one share, floored at zero"""
        scenario = self.get_scenario(scenario_id)
        if scenario.is_archived:
            raise ValidationError(f"Scenario {scenario_id} is archived")
        if not scenario.is_calculated:
            raise ValidationError(f"Scenario {scenario_id} has not been calculated")
        if not reason:
            raise ValidationError("Share adjustments require a reason")
        share = scenario.find_share(share_id)

        previous_value = share.final_value
        applied = share.apply_adjustment(
            AdjustmentKind.COURT_ORDER,
            delta,
            reason,
            scenario.parameters.net_estate_value,
        )
        results = scenario.calculate_results()

        self._touch()
        self._record_history(
            "SHARE_ADJUSTED",
            f"Share {share_id} adjusted by {applied}: {reason}",
            scenario_id,
            performed_by,
        )
        outbox.extend([
            self._event(
                EventType.SHARE_ADJUSTED,
                {
                    "scenario_id": scenario_id,
                    "beneficiary_id": share.beneficiary_id,
                    "previous_value": previous_value.to_dict(),
                    "requested_delta": delta.to_dict(),
                    "applied_delta": applied.to_dict(),
                    "new_value": share.final_value.to_dict(),
                    "reason": reason,
                },
                share_id,
            )
        ])
        return results

    def set_active_scenario(self, scenario_id: str, performed_by: Optional[str] = None) -> None:
        scenario = self.get_scenario(scenario_id)
        if scenario.is_archived:
            raise ValidationError(f"Scenario {scenario_id} is archived")
        self.active_scenario_id = scenario_id
        self._touch()
        self._record_history("ACTIVE_SCENARIO_SET", f'Active scenario set to "{scenario.name}"', scenario_id, performed_by)

    def set_default_scenario(self, scenario_id: str, performed_by: Optional[str] = None) -> None:
        scenario = self.get_scenario(scenario_id)
        scenario.set_as_default()
        previous = self.default_scenario
        if previous is not None and previous is not scenario:
            previous.clear_default()
        self.default_scenario_id = scenario_id
        self._touch()
        self._record_history("DEFAULT_SCENARIO_SET", f'Default scenario set to "{scenario.name}"', scenario_id, performed_by)

    def archive_scenario(
        self,
        scenario_id: str,
        reason: str,
        outbox: EventOutbox,
        performed_by: Optional[str] = None,
    ) -> None:
        scenario = self.get_scenario(scenario_id)
        scenario.archive(reason)
        self._failed_scenario_ids.discard(scenario_id)
        if self.active_scenario_id == scenario_id:
            self.active_scenario_id = None
        if self.default_scenario_id == scenario_id:
            self.default_scenario_id = None
        self._touch()
        self._record_history(
            "SCENARIO_ARCHIVED",
            f'Archived scenario "{scenario.name}". Reason: {reason}',
            scenario_id,
            performed_by,
        )
        outbox.extend([self._event(EventType.SCENARIO_ARCHIVED, {"reason": reason}, scenario_id)])

    def update_facts(
        self,
        outbox: EventOutbox,
        estate: Optional[EstateContext] = None,
        legal: Optional[LegalContext] = None,
        family: Optional[FamilyContext] = None,
        hotchpot: Optional[HotchpotContext] = None,
        performed_by: Optional[str] = None,
    ) -> None:
        """Replace any of the estate contexts; existing results need review afterwards"""
        new_estate = estate or self.estate
        new_family = family or self.family
        new_hotchpot = hotchpot or self.hotchpot
        validate_facts(new_estate, new_family, new_hotchpot)

        changed = [
            name
            for name, value in (("estate", estate), ("legal", legal), ("family", family), ("hotchpot", hotchpot))
            if value is not None
        ]
        self.estate = new_estate
        self.legal = legal or self.legal
        self.family = new_family
        self.hotchpot = new_hotchpot
        self.status = CalculationStatus.NEEDS_REVIEW
        self._touch()
        self._record_history("FACTS_CHANGED", f"Updated {', '.join(changed) or 'no'} context(s)", performed_by=performed_by)
        outbox.extend([self._event(EventType.FACTS_CHANGED, {"changed": changed})])

    # -- analysis ------------------------------------------------------------

    def generate_comparative_analysis(self) -> Dict[str, Any]:
        """
        Compare calculated, non-archived scenarios.

        The recommended scenario has the highest legal compliance, then fairness,
        then tax efficiency; ties go to the earliest created. It is also stored
        in `summary`.
        """
        rows = []
        for order, scenario in enumerate(self.scenarios):
            if scenario.is_archived or scenario.results is None:
                continue
            results = scenario.results
            rows.append({
                "id": scenario.id,
                "name": scenario.name,
                "type": scenario.scenario_type.value,
                "fairness_score": results.fairness_score,
                "tax_efficiency": results.tax_efficiency,
                "legal_compliance": results.legal_compliance,
                "implementation_complexity": round(100.0 - results.distribution_efficiency, 3),
                "total_value": results.total_distributable.to_dict(),
                "beneficiary_count": results.total_shares_calculated,
                "_order": order,
            })

        if not rows:
            self._set_summary({"total_scenarios": len(self._scenarios), "recommended_scenario_id": None})
            return {"scenarios": [], "recommendations": [], "summary": dict(self.summary)}

        recommended = max(
            rows,
            key=lambda r: (r["legal_compliance"], r["fairness_score"], r["tax_efficiency"], -r["_order"]),
        )
        best_fairness = _best(rows, "fairness_score")
        best_tax = _best(rows, "tax_efficiency")
        best_compliance = _best(rows, "legal_compliance")
        easiest = _best(rows, "implementation_complexity", lowest=True)

        recommendations = []
        for row in rows:
            if row["fairness_score"] < 70:
                recommendations.append({
                    "scenario_id": row["id"],
                    "recommendation": "Improve distribution fairness",
                    "priority": "HIGH",
                    "rationale": f"Fairness score of {row['fairness_score']} indicates potential inequities",
                })
            if row["tax_efficiency"] < 60:
                recommendations.append({
                    "scenario_id": row["id"],
                    "recommendation": "Optimize for tax efficiency",
                    "priority": "MEDIUM",
                    "rationale": f"Tax efficiency score of {row['tax_efficiency']} suggests potential tax savings",
                })
            if row["legal_compliance"] < 80:
                recommendations.append({
                    "scenario_id": row["id"],
                    "recommendation": "Address legal compliance gaps",
                    "priority": "HIGH",
                    "rationale": f"Legal compliance score of {row['legal_compliance']} indicates potential legal risks",
                })

        overall = None
        active = next((r for r in rows if r["id"] == self.active_scenario_id), None)
        if active is not None:
            if active["fairness_score"] >= 80 and active["legal_compliance"] >= 90:
                overall = "Current active scenario is well-balanced and legally sound"
            elif best_fairness["id"] != active["id"] and best_fairness["fairness_score"] > active["fairness_score"] + 10:
                overall = f'Consider switching to "{best_fairness["name"]}" for better fairness'
            elif best_tax["id"] != active["id"] and best_tax["tax_efficiency"] > active["tax_efficiency"] + 15:
                overall = f'Consider switching to "{best_tax["name"]}" for significant tax savings'

        for row in rows:
            row["recommended"] = row["id"] == recommended["id"]
            del row["_order"]

        self._set_summary({
            "total_scenarios": len(self._scenarios),
            "most_equitable_scenario_id": best_fairness["id"],
            "most_tax_efficient_scenario_id": best_tax["id"],
            "fastest_distribution_scenario_id": easiest["id"],
            "recommended_scenario_id": recommended["id"],
            "scenarios_comparison": {
                r["id"]: {
                    "fairness_score": r["fairness_score"],
                    "tax_efficiency": r["tax_efficiency"],
                    "legal_compliance": r["legal_compliance"],
                    "implementation_complexity": r["implementation_complexity"],
                }
                for r in rows
            },
        })
        return {
            "scenarios": rows,
            "recommendations": recommendations,
            "summary": {
                "best_fairness": best_fairness["name"],
                "best_tax_efficiency": best_tax["name"],
                "best_legal_compliance": best_compliance["name"],
                "easiest_implementation": easiest["name"],
                "overall_recommendation": overall,
                "recommended_scenario_id": recommended["id"],
            },
        }

    def _set_summary(self, summary: Dict[str, Any]) -> None:
        if summary != self.summary:
            self.summary = summary
            self._touch()

    def recommend_scenario(self) -> Optional[str]:
        return self.generate_comparative_analysis()["summary"].get("recommended_scenario_id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "estate": {
                "estate_id": self.estate.estate_id,
                "deceased_id": self.estate.deceased_id,
                "deceased_full_name": self.estate.deceased_full_name,
                "date_of_death": self.estate.date_of_death.isoformat(),
                "gross_value": self.estate.gross_value.to_dict(),
                "net_value": self.estate.net_value.to_dict(),
                "is_testate": self.estate.is_testate,
            },
            "legal": {
                "applicable_law": self.legal.applicable_law.value,
                "customary_tribe": self.legal.customary_profile.tribe if self.legal.customary_profile else None,
                "court_orders": [
                    {
                        "order_number": o.order_number,
                        "order_date": o.order_date.isoformat(),
                        "description": o.description,
                        "impact": o.impact.value,
                    }
                    for o in self.legal.court_orders
                ],
                "pending_litigation": self.legal.pending_litigation,
            },
            "status": self.status.value,
            "errors": [e.to_dict() for e in self.errors],
            "scenarios": [s.to_dict() for s in self.scenarios],
            "active_scenario_id": self.active_scenario_id,
            "default_scenario_id": self.default_scenario_id,
            "summary": dict(self.summary),
            "history": [h.to_dict() for h in self.history],
            "last_recalculation_trigger": self.last_recalculation_trigger,
            "version": self.version,
            "timestamps": {
                "created_at": self.created_at.isoformat(),
                "updated_at": self.updated_at.isoformat(),
                "last_calculated_at": self.last_calculated_at.isoformat() if self.last_calculated_at else None,
            },
        }


def _best(rows: List[Dict[str, Any]], key: str, lowest: bool = False) -> Dict[str, Any]:
    """First row with the best value for `key`"""
    best = rows[0]
    for row in rows[1:]:
        if (row[key] < best[key]) if lowest else (row[key] > best[key]):
            best = row
    return best
