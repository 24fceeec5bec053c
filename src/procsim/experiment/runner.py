"""Single and batch scenario runners."""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from procsim.core.process import ProcessStructure
from procsim.core.scenario import Scenario
from procsim.model.processes import run_simulation
from procsim.results.collector import SimulationEvent
from procsim.results.metrics import (
    PerformanceMetrics,
    calculate_performance_metrics,
    completed_cases,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Outcome of simulating one scenario.

    Attributes:
        scenario: Scenario name.
        metrics: Metrics record for the run.
        events: Full event log, or empty when it was not retained.
        busy_minutes: Total sampled minutes per performer role.
        case_throughputs: Throughput (hours) of each completed case.
        case_costs: Cost of each completed case.
    """
    scenario: str
    metrics: PerformanceMetrics
    events: List[SimulationEvent] = field(default_factory=list)
    busy_minutes: Dict[str, float] = field(default_factory=dict)
    case_throughputs: List[float] = field(default_factory=list)
    case_costs: List[float] = field(default_factory=list)

    def to_dict(self, include_events: bool = False) -> Dict[str, Any]:
        """Payload for collaborators. The event log is omitted by default."""
        return {
            "scenario": self.scenario,
            "metrics": self.metrics.to_dict(),
            "events": [e.to_dict() for e in self.events] if include_events else [],
        }


def simulate_scenario(
    process: ProcessStructure,
    scenario: Scenario,
    num_instances: int = 100,
    random_seed: Optional[int] = 42,
    include_events: bool = False,
) -> SimulationResult:
    """Simulate one scenario and compute its metrics.

    Args:
        process: Process to simulate.
        scenario: Scenario whose activity overrides apply.
        num_instances: Number of cases to simulate.
        random_seed: Seed for the run's random streams.
        include_events: Keep the full event log on the result.

    Returns:
        SimulationResult for the scenario.
    """
    logger.info(f"Simulating '{scenario.name}' ({num_instances} instances)")
    collector = run_simulation(
        process, scenario, num_instances=num_instances, random_seed=random_seed
    )
    metrics = calculate_performance_metrics(collector.events, collector.busy_minutes, process)
    cases = completed_cases(collector.events)

    return SimulationResult(
        scenario=scenario.name,
        metrics=metrics,
        events=list(collector.events) if include_events else [],
        busy_minutes=dict(collector.busy_minutes),
        case_throughputs=[c.throughput_hours for c in cases],
        case_costs=[c.cost for c in cases],
    )


def _simulate_scenario_job(args: tuple) -> SimulationResult:
    """Unpack arguments for a worker process."""
    return simulate_scenario(*args)


def simulate_scenarios(
    process: ProcessStructure,
    scenarios: Sequence[Scenario],
    num_instances: int = 100,
    random_seed: Optional[int] = 42,
    include_events: bool = False,
    max_workers: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[SimulationResult]:
    """Simulate several scenarios of the same process.

    Every scenario runs with the same seed, so scenarios differing only
    in overrides see common random numbers. Scenarios are independent
    and may run in worker processes; results keep the input order.

    Args:
        process: Process to simulate. Shared read only.
        scenarios: Scenarios to run. The first is treated as the
            baseline by the comparison tools.
        num_instances: Cases per scenario.
        random_seed: Seed used for each scenario run.
        include_events: Keep the full event logs on the results.
        max_workers: Run scenarios in a process pool of this size.
            None or 1 runs them sequentially.
        progress_callback: Optional callback(done, total).

    Returns:
        One SimulationResult per scenario, in input order.
    """
    scenarios = list(scenarios)
    total = len(scenarios)
    if not scenarios:
        logger.warning("No scenarios supplied, nothing to simulate")
        return []

    logger.info(
        f"Simulating process '{process.name}' with {num_instances} instances "
        f"per scenario across {total} scenario(s)"
    )
    jobs = [
        (process, scenario, num_instances, random_seed, include_events)
        for scenario in scenarios
    ]

    results: List[SimulationResult] = []
    if max_workers is not None and max_workers > 1 and total > 1:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            for result in executor.map(_simulate_scenario_job, jobs):
                results.append(result)
                if progress_callback is not None:
                    progress_callback(len(results), total)
    else:
        for job in jobs:
            results.append(_simulate_scenario_job(job))
            if progress_callback is not None:
                progress_callback(len(results), total)

    for result in results:
        if result.metrics.is_empty:
            logger.warning(f"Scenario '{result.scenario}' completed no cases")
    return results
