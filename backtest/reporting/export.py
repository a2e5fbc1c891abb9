"""
Conversion of engine outputs to pandas DataFrames, JSON-ready dicts and CSV.

Timestamps stay epoch milliseconds; DataFrames add a UTC datetime column
next to them for readability.
"""
import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd

from ..evaluation.metrics import assess_risk
from ..evaluation.types import Report, RiskAssessment
from ..optimization.grid_search import OptimizationResult
from ..optimization.monte_carlo import MonteCarloAnalysis
from ..optimization.walk_forward import WalkForwardResult

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = [
    'total_trades', 'winning_trades', 'losing_trades', 'win_rate',
    'total_pnl', 'total_return', 'max_drawdown', 'sharpe_ratio', 'profit_factor',
    'average_win', 'average_loss', 'largest_win', 'largest_loss',
    'average_holding_period', 'max_holding_period',
    'initial_balance', 'final_balance',
]


def _json_number(value):
    """Infinite values become the string 'infinite' and NaN becomes None (JSON has neither)."""
    if isinstance(value, float):
        if math.isinf(value):
            return "infinite" if value > 0 else "-infinite"
        if math.isnan(value):
            return None
    return value


def _with_datetime(df: pd.DataFrame, column: str = 'timestamp') -> pd.DataFrame:
    if not df.empty:
        df.insert(df.columns.get_loc(column) + 1, 'datetime', pd.to_datetime(df[column], unit='ms', utc=True))
    return df


def trades_to_dataframe(report: Report) -> pd.DataFrame:
    """One row per closed trade."""
    columns = [
        'entry_time', 'exit_time', 'direction', 'entry_price', 'exit_price',
        'size', 'pnl', 'pnl_percent', 'holding_period', 'forced_exit',
    ]
    rows = [
        {
            'entry_time': t.entry_time,
            'exit_time': t.exit_time,
            'direction': t.direction.value,
            'entry_price': t.entry_price,
            'exit_price': t.exit_price,
            'size': t.size,
            'pnl': t.pnl,
            'pnl_percent': t.pnl_percent,
            'holding_period': t.holding_period,
            'forced_exit': t.forced_exit,
        }
        for t in report.trades
    ]
    return pd.DataFrame(rows, columns=columns)


def equity_to_dataframe(report: Report) -> pd.DataFrame:
    df = pd.DataFrame([asdict(p) for p in report.equity_curve], columns=['timestamp', 'equity'])
    return _with_datetime(df)


def drawdowns_to_dataframe(report: Report) -> pd.DataFrame:
    df = pd.DataFrame(
        [asdict(p) for p in report.drawdown_curve],
        columns=['timestamp', 'drawdown_percent', 'peak_equity'],
    )
    return _with_datetime(df)


def monthly_returns_to_dataframe(report: Report) -> pd.DataFrame:
    return pd.DataFrame(
        [asdict(m) for m in report.monthly_returns],
        columns=['month', 'return_percent', 'cumulative_return'],
    )


def report_summary(report: Report) -> Dict[str, Union[int, float, str]]:
    """Scalar metrics of a report as a JSON-ready dict."""
    return {name: _json_number(getattr(report, name)) for name in SUMMARY_FIELDS}


def _optimization_row(rank: int, result: OptimizationResult) -> Dict[str, Union[int, float, str]]:
    assessment = assess_risk(result.report)
    row = {'rank': rank, **result.parameters, 'score': result.score}
    row.update({
        'total_trades': result.report.total_trades,
        'win_rate': result.report.win_rate,
        'total_return': result.report.total_return,
        'max_drawdown': result.report.max_drawdown,
        'sharpe_ratio': result.report.sharpe_ratio,
        'profit_factor': result.report.profit_factor,
        'risk_score': assessment.score,
        'risk_grade': assessment.grade,
    })
    return row


def optimization_results_to_dataframe(results: Sequence[OptimizationResult]) -> pd.DataFrame:
    """
    One row per evaluated combination, best first.

    Parameter columns come first (one per axis), then score, headline metrics
    and the risk scorecard.
    """
    return pd.DataFrame([_optimization_row(rank, r) for rank, r in enumerate(results, 1)])


def optimization_results_records(results: Sequence[OptimizationResult]) -> List[Dict[str, Union[int, float, str, None]]]:
    """Same rows as optimization_results_to_dataframe, JSON-ready (infinite profit factor as a string)."""
    return [
        {key: _json_number(value) for key, value in _optimization_row(rank, r).items()}
        for rank, r in enumerate(results, 1)
    ]


def risk_summary(assessment: RiskAssessment) -> Dict[str, Union[int, str, List[str]]]:
    return {
        'score': assessment.score,
        'grade': assessment.grade,
        'issues': list(assessment.issues),
    }


def monte_carlo_to_dataframe(reports: Sequence[Report]) -> pd.DataFrame:
    """One row per Monte Carlo iteration."""
    rows = [{'iteration': i, **report_summary(r)} for i, r in enumerate(reports)]
    df = pd.DataFrame(rows)
    if not df.empty:
        # Numeric column for analysis; report_summary stringifies infinity
        df['profit_factor'] = [r.profit_factor for r in reports]
    return df


def analysis_summary(analysis: MonteCarloAnalysis) -> Dict[str, Union[int, float, Dict[str, float]]]:
    return {
        'iterations': analysis.iterations,
        'expected_return': analysis.expected_return,
        'standard_deviation': analysis.standard_deviation,
        'min_return': analysis.min_return,
        'max_return': analysis.max_return,
        'probability_of_profit': analysis.probability_of_profit,
        'expected_max_drawdown': analysis.expected_max_drawdown,
        'percentiles': dict(analysis.percentiles),
    }


def walk_forward_to_dataframe(result: WalkForwardResult) -> pd.DataFrame:
    """One row per partition: window bounds, chosen parameters, in/out-of-sample headline metrics."""
    rows = []
    for number, p in enumerate(result.partitions, 1):
        rows.append({
            'partition': number,
            'in_sample_start': p.in_sample_start,
            'in_sample_end': p.in_sample_end,
            'out_of_sample_start': p.out_of_sample_start,
            'out_of_sample_end': p.out_of_sample_end,
            **{f'param_{name}': value for name, value in p.parameters.items()},
            'in_sample_return': p.in_sample_report.total_return,
            'out_of_sample_return': p.out_of_sample_report.total_return,
            'out_of_sample_pnl': p.out_of_sample_report.total_pnl,
            'out_of_sample_trades': p.out_of_sample_report.total_trades,
            'out_of_sample_max_drawdown': p.out_of_sample_report.max_drawdown,
        })
    return pd.DataFrame(rows)


def walk_forward_summary(result: WalkForwardResult) -> Dict[str, Union[int, float]]:
    return {
        'partitions': len(result.partitions),
        'total_out_of_sample_pnl': result.total_out_of_sample_pnl,
        'average_in_sample_return': result.average_in_sample_return,
        'average_out_of_sample_return': result.average_out_of_sample_return,
        'efficiency': result.efficiency,
    }


def save_report_csv(report: Report, output_dir: Union[str, Path], prefix: str = '') -> List[Path]:
    """
    Write trades, equity curve, drawdowns and monthly returns as CSV files.

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    frames = {
        'trades': trades_to_dataframe(report),
        'equity': equity_to_dataframe(report),
        'drawdowns': drawdowns_to_dataframe(report),
        'monthly_returns': monthly_returns_to_dataframe(report),
    }
    paths = []
    for name, df in frames.items():
        path = output_dir / f"{prefix}{name}.csv"
        df.to_csv(path, index=False)
        paths.append(path)
    logger.info(f"Saved {len(paths)} CSV files to {output_dir}")
    return paths
