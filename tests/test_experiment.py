"""Tests for the experimentation module."""

import numpy as np
import pytest

from procsim.core.process import DurationRange, Flow, ProcessStructure
from procsim.core.scenario import ActivityModification, Scenario
from procsim.experiment.analysis import (
    activity_frequencies,
    compute_ci,
    estimate_required_instances,
    result_summary_ci,
    run_until_precision,
)
from procsim.experiment.runner import SimulationResult, simulate_scenario, simulate_scenarios


@pytest.fixture
def variable_process(make_activity) -> ProcessStructure:
    """Process with random durations and a conditional branch."""
    return ProcessStructure(
        name="Variable",
        activities=(
            make_activity("A1", duration=(5.0, 15.0), cost=10.0),
            make_activity("A2", duration=(20.0, 40.0), cost=20.0, performer="Manager"),
            make_activity("A3", duration=(5.0, 5.0), cost=5.0),
        ),
        flows=(
            Flow("A1", "A2", condition="needs approval", probability=0.3),
            Flow("A1", "A3"),
        ),
    )


class TestComputeCI:
    """Test confidence interval computation."""

    def test_ci_known_values(self):
        """CI computed correctly for known data."""
        ci = compute_ci([10.0, 12.0, 14.0, 16.0, 18.0], confidence=0.95)

        assert ci["mean"] == 14.0
        assert ci["n"] == 5
        assert ci["ci_lower"] < ci["mean"] < ci["ci_upper"]

    def test_ci_single_value(self):
        """CI handles single value."""
        ci = compute_ci([5.0])
        assert ci["mean"] == 5.0
        assert ci["ci_half_width"] == 0.0

    def test_ci_empty(self):
        """CI handles empty list."""
        ci = compute_ci([])
        assert ci["mean"] == 0.0
        assert ci["n"] == 0

    def test_ci_constant_values(self):
        """Constant samples have zero half-width."""
        ci = compute_ci([0.25] * 10)
        assert ci["mean"] == 0.25
        assert ci["ci_half_width"] == 0.0

    def test_ci_half_width_decreases_with_n(self):
        """CI half-width decreases with more samples."""
        rng = np.random.default_rng(42)
        ci_10 = compute_ci(list(rng.normal(50, 10, 10)))
        ci_100 = compute_ci(list(rng.normal(50, 10, 100)))
        assert ci_100["ci_half_width"] < ci_10["ci_half_width"]


class TestEstimateRequiredInstances:
    """Test instance-count estimation."""

    def test_small_pilot_default(self):
        """Fewer than two pilot values gives the default."""
        assert estimate_required_instances([1.0], 0.1) == 100

    def test_tighter_target_needs_more(self):
        """Halving the target roughly quadruples the estimate."""
        pilot = list(np.random.default_rng(1).normal(10, 2, 30))
        loose = estimate_required_instances(pilot, 1.0)
        tight = estimate_required_instances(pilot, 0.5)
        assert tight > loose
        assert tight >= len(pilot)


class TestSimulateScenario:
    """Test single-scenario runs."""

    def test_result_fields(self, two_step_process):
        """Result carries metrics, samples and busy time."""
        result = simulate_scenario(two_step_process, Scenario.baseline(), num_instances=10)

        assert isinstance(result, SimulationResult)
        assert result.scenario == "Baseline"
        assert result.metrics.cases_completed == 10
        assert result.case_throughputs == [0.25] * 10
        assert result.case_costs == [8.0] * 10
        assert result.busy_minutes == {"Clerk": 150.0}
        assert result.events == []

    def test_include_events(self, two_step_process):
        """The event log is kept when requested."""
        result = simulate_scenario(
            two_step_process, Scenario.baseline(), num_instances=3, include_events=True
        )
        assert len(result.events) == 12

    def test_to_dict_omits_events(self, two_step_process):
        """Payloads omit events unless asked for."""
        result = simulate_scenario(
            two_step_process, Scenario.baseline(), num_instances=2, include_events=True
        )
        assert result.to_dict()["events"] == []
        full = result.to_dict(include_events=True)
        assert len(full["events"]) == 8
        assert full["events"][0]["event"] == "start"
        assert full["metrics"]["casesCompleted"] == 2


class TestSimulateScenarios:
    """Test multi-scenario runs."""

    def test_results_in_order(self, two_step_process):
        """One result per scenario, in input order."""
        scenarios = [
            Scenario.baseline(),
            Scenario(
                name="Longer review",
                activity_modifications=(
                    ActivityModification("A2", duration=DurationRange(45.0, 45.0)),
                ),
            ),
        ]
        results = simulate_scenarios(two_step_process, scenarios, num_instances=5)

        assert [r.scenario for r in results] == ["Baseline", "Longer review"]
        assert results[0].metrics.throughput.avg == pytest.approx(0.25)
        assert results[1].metrics.throughput.avg == pytest.approx(55 / 60)

    def test_empty_scenario_list(self, two_step_process):
        """No scenarios, no results."""
        assert simulate_scenarios(two_step_process, [], num_instances=5) == []

    def test_common_random_numbers(self, variable_process):
        """Identical scenarios with the same seed give identical metrics."""
        results = simulate_scenarios(
            variable_process,
            [Scenario(name="A"), Scenario(name="B")],
            num_instances=50,
            random_seed=11,
        )
        assert results[0].metrics == results[1].metrics

    def test_progress_callback(self, two_step_process):
        """Progress callback is called once per scenario."""
        progress = []
        simulate_scenarios(
            two_step_process,
            [Scenario(name="A"), Scenario(name="B"), Scenario(name="C")],
            num_instances=2,
            progress_callback=lambda done, total: progress.append((done, total)),
        )
        assert progress == [(1, 3), (2, 3), (3, 3)]

    def test_parallel_matches_sequential(self, variable_process):
        """Process-pool execution gives the same results in the same order."""
        scenarios = [
            Scenario(name="Base"),
            Scenario(
                name="Cheap",
                activity_modifications=(ActivityModification("A2", cost=1.0),),
            ),
        ]
        sequential = simulate_scenarios(variable_process, scenarios, num_instances=30)
        parallel = simulate_scenarios(
            variable_process, scenarios, num_instances=30, max_workers=2
        )

        assert [r.scenario for r in parallel] == ["Base", "Cheap"]
        for seq, par in zip(sequential, parallel):
            assert seq.metrics == par.metrics
            assert seq.case_costs == par.case_costs


class TestAnalysisHelpers:
    """Test frequency analysis and precision control."""

    def test_activity_frequencies(self, variable_process):
        """Branch frequency tracks the flow probability."""
        result = simulate_scenario(
            variable_process, Scenario.baseline(), num_instances=5000,
            random_seed=5, include_events=True,
        )
        freqs = activity_frequencies(result.events)

        assert freqs["A1"] == 1.0
        assert freqs["A3"] == 1.0
        assert 0.27 <= freqs["A2"] <= 0.33

    def test_activity_frequencies_empty(self):
        """An empty log has no frequencies."""
        assert activity_frequencies([]) == {}

    def test_run_until_precision_converges(self, variable_process):
        """A reachable target converges."""
        outcome = run_until_precision(
            variable_process, Scenario.baseline(),
            target_half_width=0.05, initial_instances=20, max_instances=5000,
        )
        assert outcome["converged"]
        assert outcome["ci"]["ci_half_width"] <= 0.05
        assert outcome["result"].metrics.cases_completed == outcome["num_instances"]

    def test_run_until_precision_gives_up(self, variable_process):
        """An unreachable target stops at max_instances."""
        outcome = run_until_precision(
            variable_process, Scenario.baseline(),
            target_half_width=1e-6, initial_instances=10, max_instances=40,
        )
        assert not outcome["converged"]
        assert outcome["num_instances"] == 40

    def test_result_summary_ci(self, two_step_process):
        """Summary CIs cover throughput and cost."""
        result = simulate_scenario(two_step_process, Scenario.baseline(), num_instances=10)
        summary = result_summary_ci(result)
        assert summary["throughput"]["mean"] == pytest.approx(0.25)
        assert summary["cost"]["mean"] == 8.0
