"""Pytest fixtures for procsim tests."""

import pytest

from procsim.core.process import Activity, DurationRange, Flow, ProcessStructure, Resource


def _make_activity(activity_id, duration=(10.0, 10.0), cost=0.0, performer="Clerk", **kwargs):
    """Build an activity with a fixed or ranged duration."""
    return Activity(
        id=activity_id,
        name=kwargs.pop("name", f"Activity {activity_id}"),
        duration=DurationRange(*duration),
        cost=cost,
        performer=performer,
        **kwargs,
    )


@pytest.fixture
def default_seed() -> int:
    """Default random seed for reproducible tests."""
    return 42


@pytest.fixture
def two_step_process() -> ProcessStructure:
    """A1 (10 min, cost 5) -> A2 (5 min, cost 3), always traversed."""
    return ProcessStructure(
        name="Two step",
        activities=(
            _make_activity("A1", duration=(10.0, 10.0), cost=5.0),
            _make_activity("A2", duration=(5.0, 5.0), cost=3.0),
        ),
        flows=(Flow("A1", "A2", condition=None, probability=1.0),),
        resources=(Resource("Clerk", capacity=2, cost_per_hour=25.0),),
    )


@pytest.fixture
def process_dict() -> dict:
    """Process in the extraction-service JSON shape."""
    return {
        "processName": "Invoice handling",
        "activities": [
            {
                "id": "A1", "name": "Receive invoice", "type": "task",
                "performer": "Clerk",
                "duration": {"min": 5, "max": 10, "unit": "minutes"},
                "cost": 20, "resources": 1, "probability": 1.0,
            },
            {
                "id": "A2", "name": "Approve invoice", "type": "approval",
                "performer": "Manager",
                "duration": {"min": 15, "max": 30, "unit": "minutes"},
                "cost": 40, "resources": 1, "probability": 0.9,
            },
        ],
        "flows": [
            {"from": "A1", "to": "A2", "condition": None, "probability": 1.0},
        ],
        "resources": [
            {"role": "Clerk", "capacity": 3, "costPerHour": 25},
            {"role": "Manager", "capacity": 1, "costPerHour": 45},
        ],
    }


@pytest.fixture
def make_activity():
    """Factory for activities: make_activity(id, duration=(min, max), cost=...)."""
    return _make_activity
