"""
Configuration module.

Provides SimulationConfig, parameter axes/ranges for the optimizers, and
the YAML run file loader.
"""
from .config import SimulationConfig
from .parameters import (
    Number,
    Parameters,
    ParameterAxis,
    ParameterRange,
    build_axes,
    build_ranges,
)
from .config_loader import (
    RunConfig,
    GridSettings,
    MonteCarloSettings,
    WalkForwardSettings,
    load_run_config,
    parse_run_config,
)

__all__ = [
    'SimulationConfig',
    'Number',
    'Parameters',
    'ParameterAxis',
    'ParameterRange',
    'build_axes',
    'build_ranges',
    'RunConfig',
    'GridSettings',
    'MonteCarloSettings',
    'WalkForwardSettings',
    'load_run_config',
    'parse_run_config',
]
