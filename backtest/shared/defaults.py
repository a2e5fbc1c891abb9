"""
Centralized default values for simulation and indicator parameters.

This is the SINGLE SOURCE OF TRUTH for all defaults.
All modules should import from here to ensure consistency.
"""

# Simulation defaults
INITIAL_BALANCE = 1000.0
COMMISSION_PER_TRADE = 0.0
SLIPPAGE_FRACTION = 0.0
POSITION_SIZE = 1.0  # Units per position (no pyramiding, one position at a time)
INSTRUMENT_ID = ""
BAR_INTERVAL = "1m"

# RSI (Relative Strength Index) defaults
RSI_PERIOD = 14
RSI_OVERSOLD = 30  # BUY below
RSI_OVERBOUGHT = 70  # SELL above

# Moving average defaults (used by the built-in strategies)
MA_PERIOD = 20
MA_THRESHOLD = 0.005  # Fractional band around the moving average
EMA_SHORT_PERIOD = 12
EMA_LONG_PERIOD = 26

# MACD (Moving Average Convergence Divergence) defaults
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

# Bollinger Bands defaults
BOLLINGER_PERIOD = 20
BOLLINGER_STD_DEV = 2.0

# Stochastic oscillator defaults
STOCHASTIC_K_PERIOD = 14
STOCHASTIC_D_PERIOD = 3
STOCHASTIC_OVERSOLD = 20  # BUY when %D below
STOCHASTIC_OVERBOUGHT = 80  # SELL when %D above
STOCHASTIC_FLAT_VALUE = 50.0  # %K when the window has no range

# Monte Carlo percentiles reported by analyze_results (label -> fraction)
MONTE_CARLO_PERCENTILES = {
    "5th": 0.05,
    "25th": 0.25,
    "50th": 0.50,
    "75th": 0.75,
    "95th": 0.95,
}

# Default fitness metric for grid search and walk-forward optimization
DEFAULT_FITNESS = "sharpe"

# Optimizer defaults (run file sections fall back to these)
MONTE_CARLO_ITERATIONS = 100
WALK_FORWARD_IN_SAMPLE = 500  # Points
WALK_FORWARD_OUT_OF_SAMPLE = 200  # Points
WALK_FORWARD_STEP = 200  # Points
MAX_WORKERS = 1  # 1 = sequential
DEFAULT_STRATEGY = "ma_threshold"

# Risk assessment tiers, best first: (threshold, points). Each metric is worth up to 25.
RISK_WIN_RATE_TIERS = ((60.0, 25), (50.0, 15), (40.0, 5))  # win_rate >= threshold
RISK_SHARPE_TIERS = ((2.0, 25), (1.0, 15), (0.5, 5))  # sharpe_ratio >= threshold
RISK_PROFIT_FACTOR_TIERS = ((2.0, 25), (1.5, 15), (1.2, 5))  # profit_factor >= threshold
RISK_DRAWDOWN_TIERS = ((10.0, 25), (20.0, 15), (30.0, 10))  # max_drawdown <= threshold
RISK_GRADES = ((80, "A"), (60, "B"), (40, "C"))  # score >= threshold, otherwise "D"
