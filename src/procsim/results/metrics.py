"""Performance metrics computed from a scenario's event log.

Metrics are a pure function of the event log, the per-role busy-minute
totals and the owning process (for role capacities); nothing is cached.

Utilization uses a business-day heuristic, not an occupancy calendar::

    available = WORKDAY_MINUTES * (cases_completed / WORKDAYS_PER_WEEK) * capacity
    utilization = busy_minutes / available * 100
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np

from procsim.core.process import ProcessStructure
from procsim.results.collector import SimulationEvent

logger = logging.getLogger(__name__)

WORKDAY_MINUTES = 8 * 60
WORKDAYS_PER_WEEK = 5


@dataclass
class CaseRecord:
    """A case reconstructed from its events."""
    case_id: int
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    cost: float = 0.0
    activities: int = 0

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def throughput_hours(self) -> float:
        if not self.is_complete:
            return 0.0
        return (self.end - self.start).total_seconds() / 3600.0


@dataclass
class ThroughputMetrics:
    """Case duration statistics, in hours."""
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    median: float = 0.0


@dataclass
class CostMetrics:
    """Per-case cost statistics."""
    avg: float = 0.0
    total: float = 0.0


@dataclass
class PerformanceMetrics:
    """Metrics record for one scenario run.

    A run with no completed cases produces an empty record: all numeric
    fields zero, empty maps, and ``is_empty`` True.

    Attributes:
        throughput: Case duration statistics (hours).
        cost: Per-case cost statistics.
        waiting_time: Mean wait before each activity (minutes), keyed
            by activity name.
        utilization: Heuristic utilization per role (percent).
        cases_completed: Cases with both a start and an end.
    """
    throughput: ThroughputMetrics = field(default_factory=ThroughputMetrics)
    cost: CostMetrics = field(default_factory=CostMetrics)
    waiting_time: Dict[str, float] = field(default_factory=dict)
    utilization: Dict[str, float] = field(default_factory=dict)
    cases_completed: int = 0

    @property
    def is_empty(self) -> bool:
        return self.cases_completed == 0

    @classmethod
    def empty(cls) -> "PerformanceMetrics":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "throughput": {
                "avg": self.throughput.avg,
                "min": self.throughput.min,
                "max": self.throughput.max,
                "median": self.throughput.median,
            },
            "cost": {"avg": self.cost.avg, "total": self.cost.total},
            "waitingTime": dict(self.waiting_time),
            "utilization": dict(self.utilization),
            "casesCompleted": self.cases_completed,
            "empty": self.is_empty,
        }


def reconstruct_cases(events: Iterable[SimulationEvent]) -> Dict[int, CaseRecord]:
    """Group events into cases.

    A case starts at its first start event and ends at its last
    complete event, both in emission order. Its cost is the sum of its
    complete-event costs.
    """
    cases: Dict[int, CaseRecord] = {}
    for event in events:
        case = cases.get(event.case_id)
        if case is None:
            case = cases[event.case_id] = CaseRecord(case_id=event.case_id)
        if event.is_start:
            if case.start is None:
                case.start = event.timestamp
        elif event.is_complete:
            case.end = event.timestamp
            case.cost += event.cost
            case.activities += 1
    return cases


def completed_cases(events: Iterable[SimulationEvent]) -> List[CaseRecord]:
    """Cases with both a start and an end, ordered by case id."""
    cases = reconstruct_cases(events)
    return [cases[cid] for cid in sorted(cases) if cases[cid].is_complete]


def calculate_waiting_times(events: Iterable[SimulationEvent]) -> Dict[str, float]:
    """Mean wait before each activity, in minutes, keyed by activity name.

    Events are replayed in timestamp order (stable, so emission order
    breaks ties). For each case the latest complete timestamp seen so
    far is tracked; each later start of that case records the gap since
    it. On a single path the gap is zero; interleaved branches of the
    same case produce non-zero gaps.
    """
    waits: Dict[str, List[float]] = {}
    last_complete: Dict[int, datetime] = {}

    for event in sorted(events, key=lambda e: e.timestamp):
        if event.is_start and event.case_id in last_complete:
            gap = (event.timestamp - last_complete[event.case_id]).total_seconds() / 60.0
            waits.setdefault(event.activity_name, []).append(gap)
        if event.is_complete:
            last_complete[event.case_id] = event.timestamp

    return {name: float(np.mean(values)) for name, values in waits.items()}


def calculate_utilization(
    busy_minutes: Mapping[str, float],
    process: ProcessStructure,
    cases_completed: int,
) -> Dict[str, float]:
    """Heuristic utilization per declared role, as a percentage.

    Only roles declared in ``process.resources`` are reported; busy time
    booked against undeclared or blank performers is ignored. Roles with
    no busy time, zero capacity, or a run with no completed cases report
    0.0.
    """
    utilization: Dict[str, float] = {}
    for resource in process.resources:
        available = WORKDAY_MINUTES * (cases_completed / WORKDAYS_PER_WEEK) * resource.capacity
        busy = busy_minutes.get(resource.role, 0.0)
        if busy <= 0 or available <= 0:
            utilization[resource.role] = 0.0
        else:
            utilization[resource.role] = busy / available * 100.0
    return utilization


def calculate_performance_metrics(
    events: List[SimulationEvent],
    busy_minutes: Mapping[str, float],
    process: ProcessStructure,
) -> PerformanceMetrics:
    """Reduce an event log to a metrics record.

    Args:
        events: Event log of one scenario run (may be empty).
        busy_minutes: Total sampled minutes per performer role.
        process: Owning process, for role capacities.

    Returns:
        PerformanceMetrics; the empty record when no case completed.
    """
    cases = completed_cases(events)
    if not cases:
        logger.warning("No completed cases in event log, returning empty metrics")
        return PerformanceMetrics.empty()

    throughput = np.array([c.throughput_hours for c in cases])
    costs = np.array([c.cost for c in cases])

    return PerformanceMetrics(
        throughput=ThroughputMetrics(
            avg=float(np.mean(throughput)),
            min=float(np.min(throughput)),
            max=float(np.max(throughput)),
            median=float(np.median(throughput)),
        ),
        cost=CostMetrics(
            avg=float(np.mean(costs)),
            total=float(np.sum(costs)),
        ),
        waiting_time=calculate_waiting_times(events),
        utilization=calculate_utilization(busy_minutes, process, len(cases)),
        cases_completed=len(cases),
    )
