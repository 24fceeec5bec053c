"""Confidence intervals, precision control and frequency analysis."""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
from scipy import stats

from procsim.core.process import ProcessStructure
from procsim.core.scenario import Scenario
from procsim.experiment.runner import SimulationResult, simulate_scenario
from procsim.results.collector import SimulationEvent

logger = logging.getLogger(__name__)


def compute_ci(values: List[float], confidence: float = 0.95) -> Dict:
    """Compute confidence interval for a metric.

    Args:
        values: Sample values (e.g. per-case throughput hours).
        confidence: Confidence level (default 0.95 for 95% CI).

    Returns:
        Dictionary containing:
        - mean: Sample mean
        - std: Sample standard deviation
        - se: Standard error
        - ci_lower: Lower bound of CI
        - ci_upper: Upper bound of CI
        - ci_half_width: Half-width of CI
        - n: Sample size
    """
    n = len(values)
    if n < 2:
        mean = float(values[0]) if n == 1 else 0.0
        return {
            "mean": mean,
            "std": 0.0,
            "se": 0.0,
            "ci_lower": mean,
            "ci_upper": mean,
            "ci_half_width": 0.0,
            "n": n,
        }

    arr = np.array(values, dtype=float)
    mean = float(np.mean(arr))
    std = float(np.std(arr, ddof=1))
    if std == 0.0:
        # Constant samples (fixed durations): no spread, no interval
        return {
            "mean": mean,
            "std": 0.0,
            "se": 0.0,
            "ci_lower": mean,
            "ci_upper": mean,
            "ci_half_width": 0.0,
            "n": n,
        }
    se = float(stats.sem(arr))

    t_crit = stats.t.ppf((1 + confidence) / 2, df=n - 1)
    half_width = float(t_crit * se)

    return {
        "mean": mean,
        "std": std,
        "se": se,
        "ci_lower": mean - half_width,
        "ci_upper": mean + half_width,
        "ci_half_width": half_width,
        "n": n,
    }


def estimate_required_instances(
    pilot_values: List[float],
    target_half_width: float,
    confidence: float = 0.95,
) -> int:
    """Estimate the instance count needed to reach a target precision.

    Uses the pilot sample variance: n = (t * std / target) ** 2.

    Args:
        pilot_values: Per-case values from a pilot run.
        target_half_width: Desired CI half-width.
        confidence: Confidence level.

    Returns:
        Estimated number of instances, never below the pilot size.
    """
    if len(pilot_values) < 2:
        return 100

    n = len(pilot_values)
    std = float(np.std(pilot_values, ddof=1))

    if target_half_width <= 0:
        return 1000

    t_crit = stats.t.ppf((1 + confidence) / 2, df=n - 1)
    required_n = (t_crit * std / target_half_width) ** 2
    return max(int(np.ceil(required_n)), n)


def run_until_precision(
    process: ProcessStructure,
    scenario: Scenario,
    target_half_width: float = 0.05,
    initial_instances: int = 50,
    max_instances: int = 5000,
    random_seed: Optional[int] = 42,
    confidence: float = 0.95,
) -> Dict:
    """Grow the instance count until mean throughput is precise enough.

    Starts with a pilot run, estimates the required instance count from
    the pilot spread and re-runs with that count (capped at
    ``max_instances``) until the throughput CI half-width (hours) is
    within target.

    Returns:
        Dictionary containing:
        - converged: Whether target precision was achieved
        - num_instances: Instance count of the final run
        - result: Final SimulationResult
        - ci: Throughput CI of the final run
    """
    num_instances = max(1, min(initial_instances, max_instances))

    while True:
        result = simulate_scenario(
            process, scenario, num_instances=num_instances, random_seed=random_seed
        )
        ci = compute_ci(result.case_throughputs, confidence)

        if ci["n"] >= 2 and ci["ci_half_width"] <= target_half_width:
            return {
                "converged": True,
                "num_instances": num_instances,
                "result": result,
                "ci": ci,
            }

        if num_instances >= max_instances:
            logger.warning(
                f"Scenario '{scenario.name}' did not reach half-width "
                f"{target_half_width} within {max_instances} instances"
            )
            return {
                "converged": False,
                "num_instances": num_instances,
                "result": result,
                "ci": ci,
            }

        required = estimate_required_instances(
            result.case_throughputs, target_half_width, confidence
        )
        num_instances = min(max(required, num_instances * 2), max_instances)
        logger.debug(f"Scenario '{scenario.name}': increasing to {num_instances} instances")


def activity_frequencies(events: Iterable[SimulationEvent]) -> Dict[str, float]:
    """Fraction of cases in which each activity executed, keyed by id.

    With each activity firing at most once per case, this is also the
    empirical traversal rate of the paths leading to it.
    """
    case_ids = set()
    executed: Dict[str, set] = {}
    for event in events:
        case_ids.add(event.case_id)
        if event.is_start:
            executed.setdefault(event.activity_id, set()).add(event.case_id)

    if not case_ids:
        return {}
    n_cases = len(case_ids)
    return {aid: len(cases) / n_cases for aid, cases in executed.items()}


def result_summary_ci(result: SimulationResult, confidence: float = 0.95) -> Dict[str, Dict]:
    """Throughput and cost confidence intervals for one scenario result."""
    return {
        "throughput": compute_ci(result.case_throughputs, confidence),
        "cost": compute_ci(result.case_costs, confidence),
    }
