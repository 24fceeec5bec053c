"""Experiment configuration files.

An experiment bundles a process, its scenarios and the run settings.
Configuration can be loaded from:
1. YAML/JSON files in a config directory
2. Plain dicts (e.g. the JSON payload from the process-extraction service)

File layout (YAML shown, JSON uses the same keys)::

    process:
      processName: Purchase request
      activities: [...]
      flows: [...]
      resources: [...]
    scenarios:
      - scenarioName: Baseline
      - scenarioName: Faster approval
        modifications:
          activities:
            - id: A3
              duration: {min: 10, max: 20, unit: minutes}
    settings:
      num_instances: 100
      random_seed: 42
      include_events: false
      max_workers: null

Example usage:
    from procsim.config import load_experiment_config

    config = load_experiment_config(Path("config/processes/purchase.yaml"))
    results = config.run()
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from procsim.core.exceptions import ConfigError, ValidationError
from procsim.core.process import ProcessStructure
from procsim.core.scenario import Scenario

logger = logging.getLogger(__name__)

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")
CONFIG_DIR_ENV = "PROCSIM_CONFIG_DIR"
PACKAGED_CONFIG_DIR = Path(__file__).parent / "default_config"


@dataclass
class ExperimentConfig:
    """Process, scenarios and run settings for one experiment.

    Attributes:
        process: Process to simulate.
        scenarios: Scenarios to run; the first is the comparison baseline.
            Defaults to a single unmodified baseline.
        num_instances: Cases per scenario.
        random_seed: Seed for every scenario run (None = unseeded).
        include_events: Keep full event logs on the results.
        max_workers: Process pool size for running scenarios in parallel.
    """

    process: ProcessStructure
    scenarios: List[Scenario] = field(default_factory=lambda: [Scenario.baseline()])
    num_instances: int = 100
    random_seed: Optional[int] = 42
    include_events: bool = False
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.num_instances, bool) or not isinstance(self.num_instances, int):
            raise ValidationError(f"num_instances must be an integer, got {self.num_instances!r}")
        if self.num_instances < 1:
            raise ValidationError(f"num_instances must be positive, got {self.num_instances}")
        if not self.scenarios:
            self.scenarios = [Scenario.baseline()]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentConfig":
        if not isinstance(data, dict) or "process" not in data:
            raise ConfigError("experiment config must contain a 'process' section")
        settings = data.get("settings") or {}
        unknown = set(settings) - {"num_instances", "random_seed", "include_events", "max_workers"}
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(
            process=ProcessStructure.from_dict(data["process"]),
            scenarios=[Scenario.from_dict(s) for s in data.get("scenarios") or []],
            **settings,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "process": self.process.to_dict(),
            "scenarios": [s.to_dict() for s in self.scenarios],
            "settings": {
                "num_instances": self.num_instances,
                "random_seed": self.random_seed,
                "include_events": self.include_events,
                "max_workers": self.max_workers,
            },
        }

    def run(self) -> list:
        """Simulate every scenario with these settings."""
        from procsim.experiment.runner import simulate_scenarios

        return simulate_scenarios(
            self.process,
            self.scenarios,
            num_instances=self.num_instances,
            random_seed=self.random_seed,
            include_events=self.include_events,
            max_workers=self.max_workers,
        )


def _yaml():
    """Import PyYAML on first use, so JSON-only callers do not need it."""
    try:
        import yaml
    except ImportError:
        raise ImportError(
            "PyYAML is required for YAML config files. Install with: pip install pyyaml"
        )
    return yaml


def _check_suffix(config_path: Path) -> None:
    if config_path.suffix not in CONFIG_SUFFIXES:
        raise ConfigError(
            f"Unsupported config format: {config_path.suffix}. "
            "Use .yaml, .yml, or .json"
        )


def load_experiment_config(config_path: Path) -> ExperimentConfig:
    """Load an experiment from a YAML or JSON file.

    Args:
        config_path: Path to configuration file (.yaml, .yml, or .json)

    Returns:
        ExperimentConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the format is unsupported or the content cannot
            be parsed
        ValidationError: If the process or scenarios are invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    _check_suffix(config_path)

    text = config_path.read_text()
    if config_path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e
    else:
        yaml = _yaml()
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    config = ExperimentConfig.from_dict(data)
    logger.info(
        f"Loaded experiment '{config.process.name}' with {len(config.scenarios)} "
        f"scenario(s) from {config_path}"
    )
    return config


def save_experiment_config(config: ExperimentConfig, config_path: Path) -> None:
    """Write an experiment to a YAML or JSON file, creating parent directories.

    Raises:
        ConfigError: If file format is not supported
    """
    config_path = Path(config_path)
    _check_suffix(config_path)

    data = config.to_dict()
    if config_path.suffix == ".json":
        text = json.dumps(data, indent=2)
    else:
        text = _yaml().safe_dump(data, default_flow_style=False, sort_keys=False)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(text)


def get_default_config_dir() -> Path:
    """Directory searched for experiment files.

    ``$PROCSIM_CONFIG_DIR`` when set, else ``./config/processes`` when it
    exists, else the examples bundled with the package.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    local = Path.cwd() / "config" / "processes"
    return local if local.is_dir() else PACKAGED_CONFIG_DIR


def list_available_configs(config_dir: Optional[Path] = None) -> List[Path]:
    """Experiment files in ``config_dir`` (default dir if None), sorted by name."""
    directory = Path(config_dir) if config_dir is not None else get_default_config_dir()
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix in CONFIG_SUFFIXES)
