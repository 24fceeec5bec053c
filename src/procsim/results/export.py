"""Tabular views of an event log (pandas).

These frames are the hand-off format for report and spreadsheet
exporters; writing files is left to the caller.
"""

from typing import Iterable

import pandas as pd

from procsim.results.collector import SimulationEvent
from procsim.results.metrics import reconstruct_cases

EVENT_COLUMNS = [
    "case_id",
    "activity",
    "activity_id",
    "event",
    "timestamp",
    "resource",
    "cost",
    "duration",
]

CASE_COLUMNS = ["case_id", "start", "end", "throughput_hours", "cost", "n_activities"]


def events_to_dataframe(events: Iterable[SimulationEvent]) -> pd.DataFrame:
    """One row per event, in log order.

    ``duration`` is NaN on start events.
    """
    rows = [
        {
            "case_id": e.case_id,
            "activity": e.activity_name,
            "activity_id": e.activity_id,
            "event": e.phase.value,
            "timestamp": e.timestamp,
            "resource": e.performer,
            "cost": e.cost,
            "duration": e.duration,
        }
        for e in events
    ]
    df = pd.DataFrame(rows, columns=EVENT_COLUMNS)
    df["duration"] = df["duration"].astype(float)
    return df


def case_table(events: Iterable[SimulationEvent]) -> pd.DataFrame:
    """One row per case, ordered by case id."""
    cases = reconstruct_cases(events)
    rows = [
        {
            "case_id": c.case_id,
            "start": c.start,
            "end": c.end,
            "throughput_hours": c.throughput_hours,
            "cost": c.cost,
            "n_activities": c.activities,
        }
        for _, c in sorted(cases.items())
    ]
    return pd.DataFrame(rows, columns=CASE_COLUMNS)
