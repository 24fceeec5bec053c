"""Single-case replay through a process graph."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Deque, Dict, Iterable, List, Optional, Tuple

import numpy as np

from procsim.core.entities import EventPhase
from procsim.core.exceptions import ValidationError
from procsim.core.process import Activity, Flow
from procsim.results.collector import SimulationEvent

logger = logging.getLogger(__name__)


def sample_uniform(rng: np.random.Generator, low: float, high: float) -> float:
    """Sample a duration uniformly from [low, high].

    Returns ``low`` exactly when the range is degenerate.
    """
    if low == high:
        return float(low)
    return float(rng.uniform(low, high))


@dataclass
class CaseTrace:
    """Events produced by one case, in emission order.

    There is no separate case-completion record: the end of a case is
    the timestamp of its last complete event.
    """
    case_id: int
    events: List[SimulationEvent] = field(default_factory=list)

    @property
    def visited(self) -> List[str]:
        """Activity ids executed by this case, in execution order."""
        return [e.activity_id for e in self.events if e.is_start]

    @property
    def busy_minutes(self) -> Dict[str, float]:
        totals: Dict[str, float] = {}
        for event in self.events:
            if event.is_complete and event.duration is not None:
                totals[event.performer] = totals.get(event.performer, 0.0) + event.duration
        return totals

    @property
    def end_time(self) -> Optional[datetime]:
        completes = [e for e in self.events if e.is_complete]
        return completes[-1].timestamp if completes else None


class CaseSimulator:
    """Replays cases through a (possibly scenario-modified) activity list.

    The activities are held in an arena indexed by id, with outgoing
    flows grouped per source in declaration order. Each case walks the
    graph with a FIFO worklist seeded at the first activity:

    1. pop the head item (breadth-first, not by time);
    2. discard it if its activity id is unknown or already visited;
    3. emit a start event at the item's arrival time;
    4. sample a duration uniformly from the activity's range (minutes);
    5. emit a complete event at arrival + duration;
    6. mark the activity visited;
    7. enqueue the target of each outgoing flow that has no condition,
       or whose independent uniform draw is below its probability.

    Each activity therefore fires at most once per case, and cycles or
    re-converging branches collapse to a single execution. The walk
    terminates because the visited set only grows.

    Args:
        activities: Effective activities; the first is the entry point.
        flows: Directed flows. Endpoints need not resolve.
        rng_duration: Generator used for duration sampling.
        rng_routing: Generator used for flow gating.
    """

    def __init__(
        self,
        activities: Iterable[Activity],
        flows: Iterable[Flow],
        rng_duration: np.random.Generator,
        rng_routing: np.random.Generator,
    ):
        self.activities: Tuple[Activity, ...] = tuple(activities)
        if not self.activities:
            raise ValidationError("CaseSimulator requires at least one activity")
        self.rng_duration = rng_duration
        self.rng_routing = rng_routing

        self._index: Dict[str, int] = {}
        for i, activity in enumerate(self.activities):
            self._index.setdefault(activity.id, i)

        self._outgoing: List[List[Flow]] = [[] for _ in self.activities]
        for flow in flows:
            source = self._index.get(flow.source)
            if source is None:
                logger.debug(f"Flow {flow.source} -> {flow.target} has no source activity")
                continue
            self._outgoing[source].append(flow)

    def _should_traverse(self, flow: Flow) -> bool:
        if not flow.is_conditional:
            return True
        return self.rng_routing.random() < flow.probability

    def simulate_case(self, case_id: int, start_time: datetime) -> CaseTrace:
        """Run one case from the entry activity.

        Args:
            case_id: Identifier stamped on every event of the case.
            start_time: Arrival time of the entry activity.

        Returns:
            CaseTrace with two events per executed activity.
        """
        trace = CaseTrace(case_id=case_id)
        visited = [False] * len(self.activities)
        queue: Deque[Tuple[str, datetime]] = deque([(self.activities[0].id, start_time)])

        while queue:
            activity_id, arrival = queue.popleft()

            idx = self._index.get(activity_id)
            if idx is None:
                logger.debug(f"Case {case_id}: skipping unknown activity '{activity_id}'")
                continue
            if visited[idx]:
                continue

            activity = self.activities[idx]
            trace.events.append(SimulationEvent(
                case_id=case_id,
                activity_id=activity.id,
                activity_name=activity.name,
                phase=EventPhase.START,
                timestamp=arrival,
                performer=activity.performer,
                cost=0.0,
            ))

            duration = sample_uniform(
                self.rng_duration, activity.duration.min, activity.duration.max
            )
            completed = arrival + timedelta(minutes=duration)
            trace.events.append(SimulationEvent(
                case_id=case_id,
                activity_id=activity.id,
                activity_name=activity.name,
                phase=EventPhase.COMPLETE,
                timestamp=completed,
                performer=activity.performer,
                cost=activity.cost,
                duration=duration,
            ))

            visited[idx] = True

            for flow in self._outgoing[idx]:
                if self._should_traverse(flow):
                    queue.append((flow.target, completed))

        return trace
