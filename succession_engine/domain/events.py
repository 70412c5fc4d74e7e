"""Domain events and the outbox they are collected in"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class EventType(str, Enum):
    CALCULATION_CREATED = "InheritanceCalculationCreated"
    SCENARIO_CREATED = "DistributionScenarioCreated"
    SCENARIO_UPDATED = "DistributionScenarioUpdated"
    SCENARIO_CALCULATED = "DistributionScenarioCalculated"
    SCENARIO_ARCHIVED = "DistributionScenarioArchived"
    HOTCHPOT_APPLIED = "HotchpotApplied"
    DEPENDANT_PROVISION_CALCULATED = "DependantProvisionCalculated"
    RECALCULATION_TRIGGERED = "InheritanceRecalculationTriggered"
    SHARE_ADJUSTED = "ShareAdjusted"
    FACTS_CHANGED = "EstateFactsChanged"


@dataclass(frozen=True)
class DomainEvent:
    """Notification of a significant state transition on one aggregate"""

    event_type: EventType
    aggregate_id: str
    payload: Dict[str, Any]
    subject_id: Optional[str] = None  # scenario, share or dependant id the event is about
    aggregate_version: int = 0
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event": self.event_type.value,
            "aggregate_id": self.aggregate_id,
            "subject_id": self.subject_id,
            "aggregate_version": self.aggregate_version,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }


class EventOutbox:
    """
    Collects events for later publication.

    Passed explicitly into aggregate operations; an operation only adds its
    events once it has succeeded.
    """

    def __init__(self) -> None:
        self._events: List[DomainEvent] = []

    def extend(self, events: Iterable[DomainEvent]) -> None:
        self._events.extend(events)

    def drain(self) -> List[DomainEvent]:
        events, self._events = self._events, []
        return events

    @property
    def pending(self) -> List[DomainEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)
