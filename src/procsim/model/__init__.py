"""Simulation layer: case replay and scenario runs."""

from procsim.model.case import CaseSimulator, CaseTrace, sample_uniform
from procsim.model.processes import DEFAULT_START_TIME, create_rng_streams, run_simulation

__all__ = [
    "CaseSimulator",
    "CaseTrace",
    "sample_uniform",
    "DEFAULT_START_TIME",
    "create_rng_streams",
    "run_simulation",
]
