# tradebook/core/__init__.py
"""
Ledger, FIFO matching, backtesting and portfolio metrics.
"""

from .holdings import (
    Position,
    apply_buy,
    apply_sell,
    apply_transaction,
    reverse_transaction,
    check_sell_quantity,
    mark_to_market,
    rebuild_position,
    set_exit_strategy,
    check_exit_strategy,
    mark_alerts_triggered,
)
from .fifo import FIFOMatcher, Lot, compute_realized_pnl, summarize_trades
from .backtest_engine import BacktestEngine, run_backtest
from .metrics import MetricsCalculator
from .charges import ChargeCalculator
from .dashboard import aggregate_metrics, group_by_symbol, pnl_trend, stock_wise_pnl

__all__ = [
    "Position",
    "apply_buy",
    "apply_sell",
    "apply_transaction",
    "reverse_transaction",
    "check_sell_quantity",
    "mark_to_market",
    "rebuild_position",
    "set_exit_strategy",
    "check_exit_strategy",
    "mark_alerts_triggered",
    "FIFOMatcher",
    "Lot",
    "compute_realized_pnl",
    "summarize_trades",
    "BacktestEngine",
    "run_backtest",
    "MetricsCalculator",
    "ChargeCalculator",
    "aggregate_metrics",
    "group_by_symbol",
    "pnl_trend",
    "stock_wise_pnl",
]
