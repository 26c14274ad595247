"""
Tradebook: portfolio accounting and strategy backtesting.
"""

from .core import (
    Position,
    aggregate_metrics,
    apply_transaction,
    compute_realized_pnl,
    run_backtest,
)
from .errors import DataUnavailable, InsufficientQuantityError, TradebookError, ValidationError

__version__ = "0.1.0"

__all__ = [
    "Position",
    "aggregate_metrics",
    "apply_transaction",
    "compute_realized_pnl",
    "run_backtest",
    "DataUnavailable",
    "InsufficientQuantityError",
    "TradebookError",
    "ValidationError",
]
