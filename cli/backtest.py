#!/usr/bin/env python3
"""
Backtest CLI.

Runs a single simulation, a grid search, a Monte Carlo sweep or a
walk-forward validation from a YAML run file and a CSV price file (or a
generated sample series).
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from backtest.config.config_loader import RunConfig, load_run_config, parse_run_config
from backtest.data.loader import DataLoader
from backtest.data.sample import generate_sample_series
from backtest.evaluation.engine import SimulationEngine
from backtest.evaluation.metrics import assess_risk, best_report
from backtest.evaluation.types import Report, RiskAssessment
from backtest.optimization.grid_search import GridOptimizer, get_fitness_function
from backtest.optimization.monte_carlo import MonteCarloSampler, analyze_results
from backtest.optimization.walk_forward import WalkForwardPartitioner, grid_optimize_callback
from backtest.reporting.export import (
    analysis_summary,
    monte_carlo_to_dataframe,
    optimization_results_records,
    optimization_results_to_dataframe,
    report_summary,
    risk_summary,
    save_report_csv,
    walk_forward_summary,
    walk_forward_to_dataframe,
)
from backtest.shared.types import PricePoint
from backtest.strategies import get_strategy

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_POINTS = 2000


def setup_logging(verbose: bool = False):
    """
    Setup logging to stdout.

    Args:
        verbose: If True, use DEBUG level, otherwise INFO
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Backtest a strategy and explore its parameters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Single run on a generated sample series
    python -m cli.backtest run --sample 2000 --seed 42

    # Grid search from a run file on CSV data
    python -m cli.backtest grid --config configs/ma_threshold.yaml --data data/r_100.csv

    # Monte Carlo sweep with 4 worker threads
    python -m cli.backtest monte-carlo --config configs/ma_threshold.yaml --max-workers 4

    # Walk-forward validation, JSON summary
    python -m cli.backtest walk-forward --config configs/ma_threshold.yaml --json
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", type=str, help="YAML run file (default: built-in defaults)")
    common.add_argument("--data", "-d", type=str, help="CSV file with timestamp,open,high,low,close[,volume]")
    common.add_argument("--timestamp-column", type=str, help="Timestamp column in the CSV (default: index)")
    common.add_argument(
        "--sample", type=int, default=DEFAULT_SAMPLE_POINTS,
        help=f"Points in the generated sample series when --data is not given (default: {DEFAULT_SAMPLE_POINTS})",
    )
    common.add_argument("--seed", type=int, help="Seed for the sample series")
    common.add_argument("--max-workers", type=int, help="Thread pool size for sweeps (overrides run file)")
    common.add_argument("--output", "-o", type=str, help="Directory for CSV output")
    common.add_argument("--json", action="store_true", help="Print the summary as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", parents=[common], help="Run one simulation with the run file's parameters")
    grid = subparsers.add_parser("grid", parents=[common], help="Exhaustive grid search")
    grid.add_argument("--top", type=int, default=10, help="Rows to print (default: 10)")
    subparsers.add_parser("monte-carlo", parents=[common], help="Monte Carlo parameter sweep")
    subparsers.add_parser("walk-forward", parents=[common], help="Walk-forward validation")
    return parser


def load_series(args) -> Sequence[PricePoint]:
    if args.data:
        series = DataLoader(args.data).load(timestamp_column=args.timestamp_column)
        logger.info(f"Loaded {len(series)} points from {args.data}")
    else:
        series = generate_sample_series(args.sample, seed=args.seed)
        logger.info(f"Generated sample series with {len(series)} points")
    return series


def print_report(report: Report, title: str = "SIMULATION RESULTS"):
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)
    print(f"Total Trades: {report.total_trades} ({report.winning_trades} won, {report.losing_trades} lost)")
    print(f"Win Rate: {report.win_rate:.1f}%")
    print(f"Total P&L: {report.total_pnl:.2f}")
    print(f"Total Return: {report.total_return:.2f}%")
    print(f"Max Drawdown: {report.max_drawdown:.2f}%")
    print(f"Sharpe Ratio: {report.sharpe_ratio:.4f}")
    print(f"Profit Factor: {report.profit_factor:.2f}")
    print(f"Final Balance: {report.final_balance:.2f}")
    print_risk(assess_risk(report))
    if report.monthly_returns:
        print("\nMonthly returns:")
        for month in report.monthly_returns:
            print(f"  {month.month}: {month.return_percent:+.2f}% (cumulative {month.cumulative_return:+.2f}%)")


def print_risk(assessment: RiskAssessment):
    print(f"Risk Assessment: Grade {assessment.grade} ({assessment.score}/100)")
    for issue in assessment.issues:
        print(f"  - {issue}")


def _write_csv(df, args, filename: str):
    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / filename
        df.to_csv(path, index=False)
        print(f"\nCSV saved: {path}")


def command_run(run_config: RunConfig, series, args) -> int:
    strategy = get_strategy(run_config.strategy)
    parameters = run_config.parameters
    engine = SimulationEngine(run_config.simulation, series)
    report = engine.run(lambda s, i: strategy.decision_fn(s, i, parameters))

    if args.json:
        print(json.dumps({**report_summary(report), 'risk': risk_summary(assess_risk(report))}, indent=2))
    else:
        print(f"Strategy: {strategy.name} {parameters}")
        print_report(report)
    if args.output:
        for path in save_report_csv(report, args.output):
            print(f"CSV saved: {path}")
    return 0


def command_grid(run_config: RunConfig, series, args) -> int:
    strategy = get_strategy(run_config.strategy)
    settings = run_config.grid
    fitness_fn = get_fitness_function(settings.fitness)
    engine = SimulationEngine(run_config.simulation, series)

    results = GridOptimizer(engine).optimize(
        strategy.decision_fn,
        settings.axes,
        fitness_fn=fitness_fn,
        max_workers=args.max_workers or settings.max_workers,
    )
    df = optimization_results_to_dataframe(results)

    if args.json:
        print(json.dumps(optimization_results_records(results[:args.top]), indent=2))
    else:
        print("\n" + "=" * 80)
        print(f"GRID SEARCH RESULTS ({len(results)} combinations, fitness: {settings.fitness})")
        print("=" * 80)
        print(df.head(args.top).to_string(index=False) if not df.empty else "No results")
        best = best_report([r.report for r in results])
        if best is not None:
            print(f"\nHighest return: {best.total_return:.2f}%")
            print_risk(assess_risk(best))
    _write_csv(df, args, "grid_results.csv")
    return 0


def command_monte_carlo(run_config: RunConfig, series, args) -> int:
    strategy = get_strategy(run_config.strategy)
    settings = run_config.monte_carlo
    engine = SimulationEngine(run_config.simulation, series)

    reports = MonteCarloSampler(engine).run(
        strategy.decision_fn,
        settings.ranges,
        settings.iterations,
        seed=settings.seed,
        max_workers=args.max_workers or settings.max_workers,
    )
    summary = analysis_summary(analyze_results(reports))

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print("\n" + "=" * 80)
        print(f"MONTE CARLO RESULTS ({summary['iterations']} iterations)")
        print("=" * 80)
        print(f"Expected Return: {summary['expected_return']:.2f}%")
        print(f"Std Deviation: {summary['standard_deviation']:.2f}%")
        print(f"Range: {summary['min_return']:.2f}% to {summary['max_return']:.2f}%")
        print(f"Probability of Profit: {summary['probability_of_profit']:.1f}%")
        print(f"Expected Max Drawdown: {summary['expected_max_drawdown']:.2f}%")
        print("Percentiles: " + ", ".join(f"{k}: {v:.2f}%" for k, v in summary['percentiles'].items()))
    _write_csv(monte_carlo_to_dataframe(reports), args, "monte_carlo_results.csv")
    return 0


def command_walk_forward(run_config: RunConfig, series, args) -> int:
    strategy = get_strategy(run_config.strategy)
    settings = run_config.walk_forward
    fitness_fn = get_fitness_function(settings.fitness)

    if run_config.grid.axes:
        optimize = grid_optimize_callback(
            run_config.simulation,
            strategy.decision_fn,
            run_config.grid.axes,
            fitness_fn=fitness_fn,
            max_workers=args.max_workers or run_config.grid.max_workers,
        )
    else:
        # Nothing to optimize: every window uses the run file's parameters
        logger.info("No grid parameters configured; using fixed strategy parameters")
        fixed = dict(run_config.parameters)
        optimize = lambda in_sample: fixed  # noqa: E731

    result = WalkForwardPartitioner(run_config.simulation).run(
        strategy.decision_fn,
        optimize,
        series,
        settings.in_sample,
        settings.out_of_sample,
        settings.step,
    )
    summary = walk_forward_summary(result)
    df = walk_forward_to_dataframe(result)

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print("\n" + "=" * 80)
        print(f"WALK-FORWARD RESULTS ({summary['partitions']} partitions)")
        print("=" * 80)
        if not df.empty:
            print(df.to_string(index=False))
        print(f"\nTotal Out-of-Sample P&L: {summary['total_out_of_sample_pnl']:.2f}")
        print(f"Average In-Sample Return: {summary['average_in_sample_return']:.2f}%")
        print(f"Average Out-of-Sample Return: {summary['average_out_of_sample_return']:.2f}%")
        print(f"Efficiency: {summary['efficiency']:.2f}")
    _write_csv(df, args, "walk_forward_results.csv")
    return 0


COMMANDS = {
    "run": command_run,
    "grid": command_grid,
    "monte-carlo": command_monte_carlo,
    "walk-forward": command_walk_forward,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        run_config = load_run_config(args.config) if args.config else parse_run_config({})
        series = load_series(args)
        return COMMANDS[args.command](run_config, series, args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
