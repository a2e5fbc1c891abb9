"""
YAML run file loader.

A run file describes one backtest session: simulation settings, the
strategy and its parameters, and optional sections for the grid optimizer,
the Monte Carlo sampler and walk-forward validation. Sections that are
missing fall back to defaults from shared/defaults.py.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml

from ..shared.defaults import (
    INITIAL_BALANCE, COMMISSION_PER_TRADE, SLIPPAGE_FRACTION, POSITION_SIZE,
    INSTRUMENT_ID, BAR_INTERVAL, DEFAULT_FITNESS, DEFAULT_STRATEGY,
    MONTE_CARLO_ITERATIONS, WALK_FORWARD_IN_SAMPLE, WALK_FORWARD_OUT_OF_SAMPLE,
    WALK_FORWARD_STEP, MAX_WORKERS,
)
from ..strategies import get_strategy
from .config import SimulationConfig
from .parameters import ParameterAxis, ParameterRange, Parameters, build_axes, build_ranges


@dataclass(frozen=True)
class GridSettings:
    axes: Tuple[ParameterAxis, ...] = ()
    fitness: str = DEFAULT_FITNESS
    max_workers: int = MAX_WORKERS


@dataclass(frozen=True)
class MonteCarloSettings:
    ranges: Dict[str, ParameterRange] = field(default_factory=dict)
    iterations: int = MONTE_CARLO_ITERATIONS
    seed: Optional[int] = None
    max_workers: int = MAX_WORKERS

    def __post_init__(self):
        if self.iterations < 0:
            raise ValueError(f"monte_carlo.iterations must be >= 0, got {self.iterations}")


@dataclass(frozen=True)
class WalkForwardSettings:
    in_sample: int = WALK_FORWARD_IN_SAMPLE
    out_of_sample: int = WALK_FORWARD_OUT_OF_SAMPLE
    step: int = WALK_FORWARD_STEP
    fitness: str = DEFAULT_FITNESS

    def __post_init__(self):
        for name in ("in_sample", "out_of_sample", "step"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"walk_forward.{name} must be > 0, got {value}")


@dataclass(frozen=True)
class RunConfig:
    """Everything needed to run a backtest session from the command line."""
    name: str
    simulation: SimulationConfig
    strategy: str = DEFAULT_STRATEGY
    parameters: Parameters = field(default_factory=dict)
    grid: GridSettings = field(default_factory=GridSettings)
    monte_carlo: MonteCarloSettings = field(default_factory=MonteCarloSettings)
    walk_forward: WalkForwardSettings = field(default_factory=WalkForwardSettings)


def _section(config_dict: dict, name: str) -> dict:
    section = config_dict.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(section).__name__}")
    return section


def parse_run_config(config_dict: dict, name: str = "run") -> RunConfig:
    """Build a RunConfig from an already-parsed YAML mapping."""
    simulation = _section(config_dict, 'simulation')
    strategy = _section(config_dict, 'strategy')
    grid = _section(config_dict, 'grid')
    monte_carlo = _section(config_dict, 'monte_carlo')
    walk_forward = _section(config_dict, 'walk_forward')

    strategy_name = strategy.get('name', DEFAULT_STRATEGY)
    defaults = get_strategy(strategy_name).default_parameters  # ValueError on unknown names
    parameters = {**defaults, **(strategy.get('parameters') or {})}

    return RunConfig(
        name=config_dict.get('name', name),
        simulation=SimulationConfig(
            initial_balance=float(simulation.get('initial_balance', INITIAL_BALANCE)),
            commission_per_trade=float(simulation.get('commission', COMMISSION_PER_TRADE)),
            slippage_fraction=float(simulation.get('slippage', SLIPPAGE_FRACTION)),
            window_start=simulation.get('start'),
            window_end=simulation.get('end'),
            instrument_id=str(simulation.get('instrument', INSTRUMENT_ID)),
            bar_interval=str(simulation.get('timeframe', BAR_INTERVAL)),
            position_size=float(simulation.get('position_size', POSITION_SIZE)),
        ),
        strategy=strategy_name,
        parameters=parameters,
        grid=GridSettings(
            axes=build_axes(grid.get('parameters') or {}),
            fitness=grid.get('fitness', DEFAULT_FITNESS),
            max_workers=int(grid.get('max_workers', MAX_WORKERS)),
        ),
        monte_carlo=MonteCarloSettings(
            ranges=build_ranges(monte_carlo.get('parameters') or {}),
            iterations=int(monte_carlo.get('iterations', MONTE_CARLO_ITERATIONS)),
            seed=monte_carlo.get('seed'),
            max_workers=int(monte_carlo.get('max_workers', MAX_WORKERS)),
        ),
        walk_forward=WalkForwardSettings(
            in_sample=int(walk_forward.get('in_sample', WALK_FORWARD_IN_SAMPLE)),
            out_of_sample=int(walk_forward.get('out_of_sample', WALK_FORWARD_OUT_OF_SAMPLE)),
            step=int(walk_forward.get('step', WALK_FORWARD_STEP)),
            fitness=walk_forward.get('fitness', DEFAULT_FITNESS),
        ),
    )


def load_run_config(yaml_path: Union[str, Path]) -> RunConfig:
    """
    Load a run configuration from a YAML file.

    Args:
        yaml_path: Path to YAML run file

    Returns:
        RunConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is empty, names an unknown strategy or holds invalid values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if not config_dict:
        raise ValueError(f"Empty config file: {yaml_path}")
    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must contain a mapping: {yaml_path}")

    return parse_run_config(config_dict, name=yaml_path.stem)
