"""Scenario comparison against a baseline, with statistical testing.

Each scenario result carries its per-case throughput and cost samples;
alternatives are compared to the baseline (the first result) with a
Mann-Whitney U test and a Cohen's d effect size.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from procsim.experiment.runner import SimulationResult

# metric name -> attribute holding the per-case samples
COMPARED_METRICS: Dict[str, str] = {
    "throughput_hours": "case_throughputs",
    "cost": "case_costs",
}


@dataclass
class ComparisonResult:
    """Result of comparing scenarios with a baseline.

    Attributes:
        baseline: Name of the baseline scenario.
        metrics: DataFrame with one row per (scenario, metric).
        summary: Plain language summary of the comparison.
    """
    baseline: str
    metrics: pd.DataFrame
    summary: str

    def significant_differences(self, alpha: float = 0.05) -> pd.DataFrame:
        """Return only rows where p_value < alpha."""
        if self.metrics.empty:
            return self.metrics
        return self.metrics[self.metrics["p_value"] < alpha]


def _effect_magnitude(d: float) -> str:
    """Interpret Cohen's d effect size.

    Args:
        d: Cohen's d value.

    Returns:
        String description of effect magnitude.
    """
    d = abs(d)
    if d < 0.2:
        return "negligible"
    elif d < 0.5:
        return "small"
    elif d < 0.8:
        return "medium"
    else:
        return "large"


def _mann_whitney_p(values_a: List[float], values_b: List[float]) -> float:
    """Two-sided Mann-Whitney U p-value for two samples.

    Args:
        values_a: Baseline sample.
        values_b: Scenario sample.

    Returns:
        The p-value, or 1.0 when the samples hold a single common value
        or scipy cannot produce a finite result.
    """
    if len(set(values_a) | set(values_b)) <= 1:
        return 1.0
    try:
        _, p_value = stats.mannwhitneyu(values_a, values_b, alternative="two-sided")
    except ValueError:
        return 1.0
    p_value = float(p_value)
    return p_value if np.isfinite(p_value) else 1.0


def _compare_samples(
    scenario: str, metric: str, values_a: List[float], values_b: List[float], alpha: float
) -> Dict:
    """Compare one metric's per-case samples between baseline and scenario.

    Args:
        scenario: Name of the compared scenario.
        metric: Metric name.
        values_a: Baseline sample.
        values_b: Scenario sample.
        alpha: Significance level.

    Returns:
        Dictionary forming one row of the comparison DataFrame.
    """
    mean_a = float(np.mean(values_a))
    mean_b = float(np.mean(values_b))
    std_a = float(np.std(values_a, ddof=1)) if len(values_a) > 1 else 0.0
    std_b = float(np.std(values_b, ddof=1)) if len(values_b) > 1 else 0.0

    p_value = _mann_whitney_p(values_a, values_b)

    pooled_std = np.sqrt((std_a**2 + std_b**2) / 2)
    effect_size = float((mean_b - mean_a) / pooled_std) if pooled_std > 0 else 0.0

    diff = mean_b - mean_a
    pct_diff = (diff / mean_a * 100) if mean_a != 0 else 0.0

    return {
        "scenario": scenario,
        "metric": metric,
        "baseline_mean": mean_a,
        "baseline_std": std_a,
        "scenario_mean": mean_b,
        "scenario_std": std_b,
        "difference": diff,
        "pct_difference": pct_diff,
        "p_value": p_value,
        "significant": p_value < alpha,
        "effect_size": effect_size,
        "effect_magnitude": _effect_magnitude(effect_size),
    }


def _generate_summary(df: pd.DataFrame, baseline: str) -> str:
    """Generate plain language summary of comparison.

    Args:
        df: Comparison results DataFrame.
        baseline: Name of the baseline scenario.

    Returns:
        Summary string, one block per compared scenario.
    """
    lines = [f"Comparison against baseline '{baseline}'\n"]
    if df.empty:
        lines.append("No alternative scenarios with completed cases to compare.\n")
        return "".join(lines)

    for scenario, rows in df.groupby("scenario", sort=False):
        lines.append(f"\n{scenario}:\n")
        for _, row in rows.iterrows():
            if not row["significant"]:
                lines.append(f"  - {row['metric']}: no significant change\n")
                continue
            direction = "reduction" if row["difference"] < 0 else "increase"
            lines.append(
                f"  - {row['metric']}: {abs(row['pct_difference']):.1f}% {direction} "
                f"({row['effect_magnitude']} effect)\n"
            )
    return "".join(lines)


def compare_to_baseline(
    results: Sequence[SimulationResult], alpha: float = 0.05
) -> ComparisonResult:
    """Compare every scenario result with the first one.

    Scenarios (including the baseline) without completed cases are
    skipped rather than compared against empty samples.

    Args:
        results: Results in run order; the first is the baseline.
        alpha: Significance level (default 0.05).

    Returns:
        ComparisonResult with a per-metric DataFrame and summary.

    Raises:
        ValueError: If no results are supplied.
    """
    if not results:
        raise ValueError("No simulation results available for comparison")

    baseline = results[0]
    rows = []
    for result in results[1:]:
        for metric, attr in COMPARED_METRICS.items():
            values_a = getattr(baseline, attr)
            values_b = getattr(result, attr)
            if not values_a or not values_b:
                continue
            rows.append(_compare_samples(result.scenario, metric, values_a, values_b, alpha))

    df = pd.DataFrame(rows)
    return ComparisonResult(
        baseline=baseline.scenario,
        metrics=df,
        summary=_generate_summary(df, baseline.scenario),
    )


def scenario_summary_table(results: Sequence[SimulationResult]) -> pd.DataFrame:
    """One row per scenario with its headline metrics."""
    rows = [
        {
            "scenario": r.scenario,
            "throughput_avg_hours": r.metrics.throughput.avg,
            "throughput_median_hours": r.metrics.throughput.median,
            "cost_avg": r.metrics.cost.avg,
            "cost_total": r.metrics.cost.total,
            "cases_completed": r.metrics.cases_completed,
        }
        for r in results
    ]
    return pd.DataFrame(rows).set_index("scenario") if rows else pd.DataFrame()
