"""
procsim - Business process simulation.

A discrete-event simulator for process graphs: replays synthetic cases
through activities and probabilistic flows under what-if scenarios and
reduces the resulting event logs to throughput, cost, waiting-time and
utilization metrics.
"""

__version__ = "0.1.0"

from procsim.core.exceptions import ValidationError
from procsim.core.process import ProcessStructure
from procsim.core.scenario import Scenario
from procsim.experiment.runner import SimulationResult, simulate_scenarios
from procsim.model.processes import run_simulation
from procsim.results.metrics import PerformanceMetrics, calculate_performance_metrics

__all__ = [
    "ProcessStructure",
    "Scenario",
    "ValidationError",
    "SimulationResult",
    "simulate_scenarios",
    "run_simulation",
    "PerformanceMetrics",
    "calculate_performance_metrics",
    "__version__",
]
