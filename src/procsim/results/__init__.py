"""Results and metrics layer: event logging, KPI computation, tables."""

from procsim.results.collector import ResultsCollector, SimulationEvent
from procsim.results.metrics import (
    CaseRecord,
    CostMetrics,
    PerformanceMetrics,
    ThroughputMetrics,
    calculate_performance_metrics,
    calculate_utilization,
    calculate_waiting_times,
    completed_cases,
    reconstruct_cases,
)
from procsim.results.export import case_table, events_to_dataframe

__all__ = [
    "ResultsCollector",
    "SimulationEvent",
    "CaseRecord",
    "CostMetrics",
    "PerformanceMetrics",
    "ThroughputMetrics",
    "calculate_performance_metrics",
    "calculate_utilization",
    "calculate_waiting_times",
    "completed_cases",
    "reconstruct_cases",
    "case_table",
    "events_to_dataframe",
]
