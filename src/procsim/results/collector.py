"""Event logging during simulation runs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from procsim.core.entities import EventPhase


@dataclass(frozen=True)
class SimulationEvent:
    """One start or complete record in the event log.

    Attributes:
        case_id: Case the event belongs to (1..N within a run).
        activity_id: Id of the executed activity.
        activity_name: Name of the executed activity.
        phase: START or COMPLETE.
        timestamp: Simulated calendar time.
        performer: Role that performed the activity.
        cost: 0 on start, the activity cost on complete.
        duration: Sampled duration in minutes, only on complete.
    """
    case_id: int
    activity_id: str
    activity_name: str
    phase: EventPhase
    timestamp: datetime
    performer: str
    cost: float = 0.0
    duration: Optional[float] = None

    @property
    def is_start(self) -> bool:
        return self.phase is EventPhase.START

    @property
    def is_complete(self) -> bool:
        return self.phase is EventPhase.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "caseId": self.case_id,
            "activity": self.activity_name,
            "activityId": self.activity_id,
            "event": self.phase.value,
            "timestamp": self.timestamp.isoformat(),
            "resource": self.performer,
            "cost": self.cost,
        }
        if self.duration is not None:
            data["duration"] = self.duration
        return data


@dataclass
class ResultsCollector:
    """Accumulate the event log and role busy time of one scenario run.

    Each case produces its own trace; the run merges traces here in
    case order, so the log is ordered by emission, not by timestamp.

    Attributes:
        events: Event log, append-only.
        busy_minutes: Total sampled minutes per performer role. A
            bookkeeping sum; overlaps and idle time are not modelled.
        cases: Number of cases merged.
    """

    events: List[SimulationEvent] = field(default_factory=list)
    busy_minutes: Dict[str, float] = field(default_factory=dict)
    cases: int = 0

    def record_event(self, event: SimulationEvent) -> None:
        """Append an event and book its duration against the performer."""
        self.events.append(event)
        if event.is_complete and event.duration is not None:
            self.record_busy_time(event.performer, event.duration)

    def record_busy_time(self, role: str, minutes: float) -> None:
        self.busy_minutes[role] = self.busy_minutes.get(role, 0.0) + minutes

    def record_case(self, events: List[SimulationEvent]) -> None:
        """Merge one case's events, in emission order."""
        for event in events:
            self.record_event(event)
        self.cases += 1

    def merge(self, other: "ResultsCollector") -> None:
        """Append another collector's log and busy time to this one."""
        self.events.extend(other.events)
        for role, minutes in other.busy_minutes.items():
            self.record_busy_time(role, minutes)
        self.cases += other.cases

    def events_for_case(self, case_id: int) -> List[SimulationEvent]:
        return [e for e in self.events if e.case_id == case_id]

    def discard_events(self) -> None:
        """Drop the event log, keeping the busy-time totals."""
        self.events = []
