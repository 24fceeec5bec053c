"""Core foundation layer: process graph, scenarios, entities."""

from procsim.core.entities import ActivityKind, EventPhase
from procsim.core.exceptions import ConfigError, ProcsimError, ValidationError
from procsim.core.process import (
    Activity,
    DurationRange,
    Flow,
    ProcessStructure,
    Resource,
)
from procsim.core.scenario import ActivityModification, Scenario, apply_scenario

__all__ = [
    "ActivityKind",
    "EventPhase",
    "ProcsimError",
    "ValidationError",
    "ConfigError",
    "Activity",
    "DurationRange",
    "Flow",
    "ProcessStructure",
    "Resource",
    "ActivityModification",
    "Scenario",
    "apply_scenario",
]
