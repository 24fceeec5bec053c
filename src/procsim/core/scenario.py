"""Scenario configuration and the scenario modifier."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple

from procsim.core.exceptions import ValidationError
from procsim.core.process import Activity, DurationRange, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivityModification:
    """Per-activity override. Fields left as None are inherited."""
    activity_id: str
    duration: Optional[DurationRange] = None
    cost: Optional[float] = None
    resource_units: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityModification":
        if not isinstance(data, dict) or data.get("id") is None:
            raise ValidationError("activity modification is missing required field 'id'")
        duration = data.get("duration")
        cost = data.get("cost")
        units = data.get("resources")
        return cls(
            activity_id=str(data["id"]),
            duration=DurationRange.from_dict(duration) if duration is not None else None,
            cost=float(cost) if cost is not None else None,
            resource_units=float(units) if units is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.activity_id}
        if self.duration is not None:
            data["duration"] = self.duration.to_dict()
        if self.cost is not None:
            data["cost"] = self.cost
        if self.resource_units is not None:
            data["resources"] = self.resource_units
        return data


@dataclass(frozen=True)
class Scenario:
    """A named bundle of parameter overrides for one experiment.

    Only activity modifications take effect. Resource overrides are
    accepted and kept so they round-trip to the caller, but the
    simulator does not apply them.

    Attributes:
        name: Scenario name (e.g. "Baseline", "Automated intake").
        description: Optional free text.
        activity_modifications: Overrides keyed by activity id.
        resource_overrides: Replacement resource declarations (unused).
    """
    name: str
    description: str = ""
    activity_modifications: Tuple[ActivityModification, ...] = field(default_factory=tuple)
    resource_overrides: Tuple[Resource, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "activity_modifications", tuple(self.activity_modifications))
        object.__setattr__(self, "resource_overrides", tuple(self.resource_overrides))

    def modification_for(self, activity_id: str) -> Optional[ActivityModification]:
        """First modification targeting ``activity_id``, if any."""
        for mod in self.activity_modifications:
            if mod.activity_id == activity_id:
                return mod
        return None

    @classmethod
    def baseline(cls) -> "Scenario":
        return cls(name="Baseline", description="Current state, no modifications")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Scenario":
        if not isinstance(data, dict) or not data.get("scenarioName"):
            raise ValidationError("scenario is missing required field 'scenarioName'")
        modifications = data.get("modifications") or {}
        return cls(
            name=str(data["scenarioName"]),
            description=str(data.get("description") or ""),
            activity_modifications=tuple(
                ActivityModification.from_dict(m)
                for m in modifications.get("activities") or []
            ),
            resource_overrides=tuple(
                Resource.from_dict(r) for r in modifications.get("resources") or []
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"scenarioName": self.name}
        if self.description:
            data["description"] = self.description
        modifications: Dict[str, Any] = {}
        if self.activity_modifications:
            modifications["activities"] = [m.to_dict() for m in self.activity_modifications]
        if self.resource_overrides:
            modifications["resources"] = [r.to_dict() for r in self.resource_overrides]
        if modifications:
            data["modifications"] = modifications
        return data


def apply_scenario(
    activities: Iterable[Activity], scenario: Optional[Scenario]
) -> Tuple[Activity, ...]:
    """Apply a scenario's activity overrides.

    Activities with a matching modification are copied with the
    overridden duration, cost and resource units; the others pass
    through unchanged. Input order is preserved and the originals are
    never mutated. Modifications naming unknown ids are unused.

    Args:
        activities: Activities of the process, in graph order.
        scenario: Scenario to apply. None means no modifications.

    Returns:
        The effective activity tuple for this scenario.
    """
    activities = tuple(activities)
    if scenario is None:
        return activities

    if scenario.resource_overrides:
        logger.debug(
            f"Scenario '{scenario.name}': {len(scenario.resource_overrides)} "
            f"resource override(s) are not applied"
        )

    modified = []
    for activity in activities:
        mod = scenario.modification_for(activity.id)
        if mod is None:
            modified.append(activity)
            continue
        modified.append(replace(
            activity,
            duration=mod.duration if mod.duration is not None else activity.duration,
            cost=mod.cost if mod.cost is not None else activity.cost,
            resource_units=(
                mod.resource_units if mod.resource_units is not None
                else activity.resource_units
            ),
        ))
    return tuple(modified)
