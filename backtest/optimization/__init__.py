"""
Optimization module.

Provides parameter exploration on top of the simulation engine:
- Grid search (exhaustive)
- Monte Carlo sampling (random draws + distribution analysis)
- Walk-forward validation (rolling in-sample / out-of-sample windows)
"""
from .grid_search import (
    GridOptimizer,
    OptimizationResult,
    FitnessFunction,
    fitness_functions,
    get_fitness_function,
    generate_parameter_combinations,
)
from .monte_carlo import MonteCarloSampler, MonteCarloAnalysis, analyze_results, draw_parameters
from .walk_forward import (
    WalkForwardPartitioner,
    WalkForwardPartition,
    WalkForwardResult,
    partition_bounds,
    grid_optimize_callback,
)
from .runner import run_sweep

__all__ = [
    'GridOptimizer',
    'OptimizationResult',
    'FitnessFunction',
    'fitness_functions',
    'get_fitness_function',
    'generate_parameter_combinations',
    'MonteCarloSampler',
    'MonteCarloAnalysis',
    'analyze_results',
    'draw_parameters',
    'WalkForwardPartitioner',
    'WalkForwardPartition',
    'WalkForwardResult',
    'partition_bounds',
    'grid_optimize_callback',
    'run_sweep',
]
