"""
Data models for the ledger, FIFO matcher and backtesting engine.
"""

from .config import (
    AppConfig,
    BacktestConfig,
    ChargesConfig,
    Combinator,
    ConditionOperator,
    DataConfig,
    EntryCondition,
    ExitRule,
    ExitRuleType,
    LoggingConfig,
)
from .alerts import Alert, AlertType, ExitStrategy
from .market_data import Candle, IndicatorKind, IndicatorSnapshot
from .transactions import Charges, Transaction, TransactionSource, TransactionType
from .results import (
    BacktestResult,
    DashboardMetrics,
    EquityPoint,
    FIFOResult,
    MatchedTrade,
    PerformanceMetrics,
    PnLTrendPoint,
    StockPerformance,
    StockPnLSummary,
    Trade,
    TradeStatistics,
)

__all__ = [
    "AppConfig",
    "BacktestConfig",
    "ChargesConfig",
    "Combinator",
    "ConditionOperator",
    "DataConfig",
    "EntryCondition",
    "ExitRule",
    "ExitRuleType",
    "LoggingConfig",
    "Alert",
    "AlertType",
    "ExitStrategy",
    "Candle",
    "IndicatorKind",
    "IndicatorSnapshot",
    "Charges",
    "Transaction",
    "TransactionSource",
    "TransactionType",
    "BacktestResult",
    "DashboardMetrics",
    "EquityPoint",
    "FIFOResult",
    "MatchedTrade",
    "PerformanceMetrics",
    "PnLTrendPoint",
    "StockPerformance",
    "StockPnLSummary",
    "Trade",
    "TradeStatistics",
]
