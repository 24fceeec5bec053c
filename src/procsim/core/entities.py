"""Core entity definitions for the simulation.

This module contains enums that are used across the codebase,
placed here to avoid circular imports.
"""

from enum import Enum


class ActivityKind(Enum):
    """Activity types in a process graph.

    Descriptive only: the kind never changes how a case traverses
    the graph.
    """
    TASK = "task"
    DECISION = "decision"
    PARALLEL = "parallel"
    APPROVAL = "approval"


class EventPhase(Enum):
    """Lifecycle phase recorded for an activity execution."""
    START = "start"
    COMPLETE = "complete"
