"""Process graph model: activities, flows, resource roles.

A ProcessStructure is pure data plus validation. It is never mutated
once built; scenarios produce modified copies of the activity list and
the simulator only reads from it, so one instance can be shared by
concurrently running scenario simulations.

The dict form used by ``from_dict``/``to_dict`` is the JSON shape
produced by the process-extraction service::

    {
      "processName": "Purchase request",
      "activities": [
        {"id": "A1", "name": "Submit", "type": "task", "performer": "Clerk",
         "duration": {"min": 5, "max": 10, "unit": "minutes"},
         "cost": 50, "resources": 1, "probability": 1.0}
      ],
      "flows": [{"from": "A1", "to": "A2", "condition": null, "probability": 1.0}],
      "resources": [{"role": "Clerk", "capacity": 5, "costPerHour": 25}]
    }
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from procsim.core.entities import ActivityKind
from procsim.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    """Fetch a required key from an input mapping."""
    if not isinstance(data, dict):
        raise ValidationError(f"{where} must be a mapping, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise ValidationError(f"{where} is missing required field '{key}'")
    return data[key]


def _number(data: Dict[str, Any], key: str, default: float) -> float:
    """Fetch an optional numeric field, falling back when absent or null."""
    value = data.get(key)
    return default if value is None else float(value)


@dataclass(frozen=True)
class DurationRange:
    """Execution time range of an activity.

    Attributes:
        min: Shortest execution time.
        max: Longest execution time.
        unit: Unit label. Informational only, the simulator treats
            every duration as minutes.
    """
    min: float
    max: float
    unit: str = "minutes"

    def __post_init__(self) -> None:
        if self.min < 0 or self.max < 0:
            raise ValidationError(
                f"duration bounds must be non-negative, got ({self.min}, {self.max})"
            )
        if self.min > self.max:
            raise ValidationError(
                f"duration min must not exceed max, got ({self.min}, {self.max})"
            )

    @property
    def is_fixed(self) -> bool:
        return self.min == self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DurationRange":
        return cls(
            min=float(_require(data, "min", "duration")),
            max=float(_require(data, "max", "duration")),
            unit=str(data.get("unit") or "minutes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max, "unit": self.unit}


@dataclass(frozen=True)
class Activity:
    """A unit of work in the process graph.

    Attributes:
        id: Identifier, unique within a graph.
        name: Display name, also the key for waiting-time metrics.
        kind: Descriptive activity type.
        performer: Role that carries out the activity. Need not match a
            declared Resource.
        duration: Execution time range (minutes).
        cost: Nominal cost charged once per execution.
        resource_units: Units of the performer consumed per execution.
        weight: Legacy informational weight. Not read by the simulator.
    """
    id: str
    name: str
    duration: DurationRange
    kind: ActivityKind = ActivityKind.TASK
    performer: str = ""
    cost: float = 0.0
    resource_units: float = 1.0
    weight: float = 1.0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("activity id must be a non-empty string")
        if self.cost < 0:
            raise ValidationError(f"activity '{self.id}' has negative cost {self.cost}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        activity_id = str(_require(data, "id", "activity"))
        where = f"activity '{activity_id}'"
        kind_value = data.get("type") or ActivityKind.TASK.value
        try:
            kind = ActivityKind(kind_value)
        except ValueError:
            allowed = ", ".join(k.value for k in ActivityKind)
            raise ValidationError(
                f"{where} has unknown type '{kind_value}' (expected one of: {allowed})"
            )
        return cls(
            id=activity_id,
            name=str(data.get("name") or activity_id),
            kind=kind,
            performer=str(data.get("performer") or ""),
            duration=DurationRange.from_dict(_require(data, "duration", where)),
            cost=_number(data, "cost", 0.0),
            resource_units=_number(data, "resources", 1.0),
            weight=_number(data, "probability", 1.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "performer": self.performer,
            "duration": self.duration.to_dict(),
            "cost": self.cost,
            "resources": self.resource_units,
            "probability": self.weight,
        }


@dataclass(frozen=True)
class Flow:
    """Directed, probabilistically gated edge between two activities.

    Endpoints are activity ids by value and are not required to exist.
    The condition is a label only. A flow without a condition is always
    traversed; a flow with one is traversed when an independent uniform
    draw falls below ``probability``. Sibling flows are not normalised,
    so zero, one or several outgoing flows may fire for a given case.

    Constructing a flow with a probability outside (0, 1] raises
    ValidationError. ``from_dict`` reads a missing, null or zero
    probability as 1.0, so a zero left by the extraction service does
    not reject the whole process; negative or above-one values still do.
    """
    source: str
    target: str
    condition: Optional[str] = None
    probability: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.probability <= 1.0:
            raise ValidationError(
                f"flow {self.source} -> {self.target} probability must be in (0, 1], "
                f"got {self.probability}"
            )

    @property
    def is_conditional(self) -> bool:
        return bool(self.condition)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Flow":
        source = str(_require(data, "from", "flow"))
        target = str(_require(data, "to", "flow"))
        probability = data.get("probability")
        if probability is not None and float(probability) == 0.0:
            logger.warning(f"Flow {source} -> {target} has probability 0, treating as 1.0")
            probability = None
        return cls(
            source=source,
            target=target,
            condition=data.get("condition") or None,
            probability=1.0 if probability is None else float(probability),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "condition": self.condition,
            "probability": self.probability,
        }


@dataclass(frozen=True)
class Resource:
    """Resource role. Declarative only, capacity is never enforced.

    Attributes:
        role: Role name, unique within a graph.
        capacity: Concurrent units available (used by the utilization
            heuristic).
        cost_per_hour: Hourly cost rate.
    """
    role: str
    capacity: int = 1
    cost_per_hour: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not float(self.capacity).is_integer():
            raise ValidationError(
                f"resource '{self.role}' capacity must be a whole number, got {self.capacity!r}"
            )
        object.__setattr__(self, "capacity", int(self.capacity))
        if self.capacity < 0:
            raise ValidationError(
                f"resource '{self.role}' capacity must be non-negative, got {self.capacity}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resource":
        return cls(
            role=str(_require(data, "role", "resource")),
            capacity=_number(data, "capacity", 1),
            cost_per_hour=_number(data, "costPerHour", 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "capacity": self.capacity,
            "costPerHour": self.cost_per_hour,
        }


@dataclass(frozen=True)
class ProcessStructure:
    """Immutable description of a business process.

    The first activity is the implicit entry point of every simulated
    case. Flow endpoints are stored as given; dangling references are
    skipped at simulation time.

    Raises:
        ValidationError: If the activity list is empty, or activity ids
            or resource roles are not unique.
    """
    name: str
    activities: Tuple[Activity, ...]
    flows: Tuple[Flow, ...] = field(default_factory=tuple)
    resources: Tuple[Resource, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "activities", tuple(self.activities))
        object.__setattr__(self, "flows", tuple(self.flows))
        object.__setattr__(self, "resources", tuple(self.resources))

        if not self.activities:
            raise ValidationError(
                f"process '{self.name}' has no activities, so there is no entry point"
            )

        seen = set()
        for activity in self.activities:
            if activity.id in seen:
                raise ValidationError(f"duplicate activity id '{activity.id}'")
            seen.add(activity.id)

        roles = set()
        for resource in self.resources:
            if resource.role in roles:
                raise ValidationError(f"duplicate resource role '{resource.role}'")
            roles.add(resource.role)

    @property
    def entry(self) -> Activity:
        return self.activities[0]

    def activity_index(self) -> Dict[str, int]:
        """Map activity id to its position in the activity list."""
        return {a.id: i for i, a in enumerate(self.activities)}

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None

    def outgoing(self, activity_id: str) -> List[Flow]:
        """Flows leaving an activity, in declaration order."""
        return [f for f in self.flows if f.source == activity_id]

    def get_resource(self, role: str) -> Optional[Resource]:
        for resource in self.resources:
            if resource.role == role:
                return resource
        return None

    def dangling_flows(self) -> List[Flow]:
        """Flows with an endpoint that does not name a known activity."""
        ids = self.activity_index()
        return [f for f in self.flows if f.source not in ids or f.target not in ids]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessStructure":
        """Build a validated process from the extraction-service JSON shape."""
        activities = _require(data, "activities", "process")
        return cls(
            name=str(data.get("processName") or "Unnamed process"),
            activities=tuple(Activity.from_dict(a) for a in activities),
            flows=tuple(Flow.from_dict(f) for f in data.get("flows") or []),
            resources=tuple(Resource.from_dict(r) for r in data.get("resources") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processName": self.name,
            "activities": [a.to_dict() for a in self.activities],
            "flows": [f.to_dict() for f in self.flows],
            "resources": [r.to_dict() for r in self.resources],
        }
