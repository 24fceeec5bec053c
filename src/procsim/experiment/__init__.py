"""Experimentation layer: scenario runners, CI analysis, comparison."""

from procsim.experiment.runner import (
    SimulationResult,
    simulate_scenario,
    simulate_scenarios,
)
from procsim.experiment.analysis import (
    activity_frequencies,
    compute_ci,
    estimate_required_instances,
    result_summary_ci,
    run_until_precision,
)
from procsim.experiment.comparison import (
    ComparisonResult,
    compare_to_baseline,
    scenario_summary_table,
)

__all__ = [
    "SimulationResult",
    "simulate_scenario",
    "simulate_scenarios",
    "activity_frequencies",
    "compute_ci",
    "estimate_required_instances",
    "result_summary_ci",
    "run_until_precision",
    "ComparisonResult",
    "compare_to_baseline",
    "scenario_summary_table",
]
