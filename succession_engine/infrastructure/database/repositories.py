"""Data access layer for inheritance calculation snapshots"""

from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from succession_engine.infrastructure.database.models import (
    DistributionScenarioSnapshot,
    InheritanceCalculationRecord,
)
from succession_engine.domain.calculation import InheritanceCalculation
from succession_engine.domain.exceptions import ConcurrencyConflictError


class CalculationRepository:
    """Repository for InheritanceCalculation snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, calculation: InheritanceCalculation) -> InheritanceCalculationRecord:
        """
        Persist the aggregate snapshot.

        Optimistic concurrency: the write is refused when the stored version is
        not older than the aggregate's version (someone else saved first, or
        this state was already written).
        """
        snapshot = calculation.to_dict()
        record = self.db.get(InheritanceCalculationRecord, calculation.id)

        if record is None:
            record = InheritanceCalculationRecord(id=calculation.id)
            self.db.add(record)
        elif record.version >= calculation.version:
            raise ConcurrencyConflictError(
                f"Calculation {calculation.id} is at version {record.version}; "
                f"refusing to write version {calculation.version}"
            )

        record.estate_id = calculation.estate.estate_id
        record.deceased_id = calculation.estate.deceased_id
        record.status = calculation.status.value
        record.version = calculation.version
        record.recommended_scenario_id = calculation.summary.get("recommended_scenario_id")
        record.snapshot = snapshot

        existing = {s.id: s for s in record.scenarios}
        for scenario in snapshot["scenarios"]:
            row = existing.get(scenario["id"])
            if row is None:
                row = DistributionScenarioSnapshot(id=scenario["id"])
                record.scenarios.append(row)
            row.name = scenario["name"]
            row.scenario_type = scenario["scenario_type"]
            row.applied_regime = scenario["applied_regime"]
            row.version = scenario["version"]
            row.is_default = scenario["status"]["is_default"]
            row.is_archived = scenario["status"]["is_archived"]
            row.results = scenario["results"]
            row.shares = scenario["shares"]

        self.db.flush()  # Surface constraint errors before commit
        return record

    def get_snapshot(self, calculation_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the latest stored snapshot"""
        record = self.db.get(InheritanceCalculationRecord, calculation_id)
        return record.snapshot if record else None

    def get_history(self, calculation_id: str) -> Optional[List[Dict[str, Any]]]:
        snapshot = self.get_snapshot(calculation_id)
        return snapshot["history"] if snapshot else None

    def get_calculations_by_estate(self, estate_id: str, limit: int = 10) -> List[InheritanceCalculationRecord]:
        """Fetch recent calculations for an estate"""
        return (
            self.db.query(InheritanceCalculationRecord)
            .filter(InheritanceCalculationRecord.estate_id == estate_id)
            .order_by(InheritanceCalculationRecord.updated_at.desc())
            .limit(limit)
            .all()
        )

    def get_scenario_snapshots(self, calculation_id: str) -> List[DistributionScenarioSnapshot]:
        return (
            self.db.query(DistributionScenarioSnapshot)
            .filter(DistributionScenarioSnapshot.calculation_id == calculation_id)
            .all()
        )
