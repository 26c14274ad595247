"""
Backtest results, FIFO matching output and dashboard metrics models.
"""

import math
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, Field
from datetime import datetime, date


def _json_float(value: float) -> Any:
    """Render infinities the way JSON consumers expect them."""
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


class Trade(BaseModel):
    """Completed backtest trade."""
    entry_date: datetime = Field(..., description="Entry candle date")
    exit_date: datetime = Field(..., description="Exit candle date")
    entry_price: float = Field(..., description="Entry price")
    exit_price: float = Field(..., description="Exit price")
    quantity: float = Field(..., description="Units held")
    pnl: float = Field(..., description="Profit and Loss")
    pnl_pct: float = Field(..., description="P&L percentage")
    type: str = Field(..., description="WIN or LOSS")
    holding_period: int = Field(..., description="Candles between entry and exit")
    exit_reason: str = Field(..., description="Exit rule that closed the trade")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'entry_date': self.entry_date.isoformat(),
            'exit_date': self.exit_date.isoformat(),
            'entry_price': self.entry_price,
            'exit_price': self.exit_price,
            'quantity': self.quantity,
            'pnl': self.pnl,
            'pnl_pct': self.pnl_pct,
            'type': self.type,
            'holding_period': self.holding_period,
            'exit_reason': self.exit_reason
        }


class EquityPoint(BaseModel):
    """Equity curve point."""
    date: datetime = Field(..., description="Candle date")
    portfolio_value: float = Field(..., description="Cash plus open position value")
    cash: float = Field(..., description="Uninvested cash")
    position_value: float = Field(..., description="Open position marked at close")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'date': self.date.isoformat(),
            'portfolio_value': self.portfolio_value,
            'cash': self.cash,
            'position_value': self.position_value
        }


class PerformanceMetrics(BaseModel):
    """Performance metrics for backtest results."""

    # Capital
    initial_capital: float = Field(..., description="Initial capital")
    final_capital: float = Field(..., description="Initial capital plus total P&L")
    total_return: float = Field(..., description="Total return")
    total_return_pct: float = Field(..., description="Total return percentage")

    # Trading metrics
    total_trades: int = Field(..., description="Total number of trades")
    winning_trades: int = Field(..., description="Number of winning trades")
    losing_trades: int = Field(..., description="Number of losing trades")
    win_rate: float = Field(..., description="Win rate percentage")
    avg_profit_per_trade: float = Field(..., description="Average winning trade P&L")
    avg_loss_per_trade: float = Field(..., description="Average losing trade loss, as a positive amount")
    profit_factor: float = Field(..., description="Gross profit / gross loss, inf when there are no losses")
    largest_win: float = Field(default=0.0, description="Largest single win")
    largest_loss: float = Field(default=0.0, description="Largest single loss")

    # Risk metrics
    max_drawdown: float = Field(..., description="Maximum drawdown percentage")
    max_drawdown_amount: float = Field(..., description="Maximum drawdown amount")
    sharpe_ratio: float = Field(default=0.0, description="Mean / stddev of trade P&L%, not annualized")
    avg_trade_duration: float = Field(default=0.0, description="Average holding period in candles")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        result = self.model_dump(mode='python')
        result['profit_factor'] = _json_float(self.profit_factor)
        return result


class BacktestResult(BaseModel):
    """Complete backtest results."""
    run_id: str = Field(..., description="Unique run identifier")
    strategy_name: str = Field(..., description="Strategy name")
    symbol: str = Field(..., description="Trading symbol")
    start_date: date = Field(..., description="Requested start date")
    end_date: date = Field(..., description="Requested end date")
    initial_capital: float = Field(..., description="Initial capital")
    created_at: datetime = Field(default_factory=datetime.now, description="Result creation time")

    # Configuration
    config: Dict[str, Any] = Field(..., description="Backtest configuration")

    # Results
    trades: List[Trade] = Field(default_factory=list, description="All completed trades")
    equity_curve: List[EquityPoint] = Field(default_factory=list, description="Equity curve data")
    metrics: PerformanceMetrics = Field(..., description="Performance metrics")

    # Metadata
    total_candles: int = Field(..., description="Total number of candles processed")
    execution_time: float = Field(..., description="Backtest execution time in seconds")

    @property
    def final_capital(self) -> float:
        return self.metrics.final_capital

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'run_id': self.run_id,
            'strategy_name': self.strategy_name,
            'symbol': self.symbol,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'initial_capital': self.initial_capital,
            'created_at': self.created_at.isoformat(),
            'config': self.config,
            'trades': [trade.to_dict() for trade in self.trades],
            'equity_curve': [point.to_dict() for point in self.equity_curve],
            'metrics': self.metrics.to_dict(),
            'total_candles': self.total_candles,
            'execution_time': self.execution_time
        }

    def save_to_json(self, filepath: str) -> None:
        """Save results to JSON file."""
        import json
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def save_to_csv(self, filepath: str) -> None:
        """Save trades to CSV file."""
        import pandas as pd
        if self.trades:
            trades_df = pd.DataFrame([trade.to_dict() for trade in self.trades])
            trades_df.to_csv(filepath, index=False)


class MatchedTrade(BaseModel):
    """A buy lot slice matched against a sell by FIFO."""
    symbol: str = Field(..., description="Trading symbol")
    buy_transaction_id: str = Field(..., description="Matched buy transaction")
    sell_transaction_id: str = Field(..., description="Matched sell transaction")
    buy_date: datetime = Field(..., description="Buy timestamp")
    sell_date: datetime = Field(..., description="Sell timestamp")
    quantity: float = Field(..., description="Matched quantity")
    buy_price: float = Field(..., description="Buy price per unit")
    sell_price: float = Field(..., description="Sell price per unit")
    buy_cost: float = Field(..., description="Buy cost including pro-rata charges")
    sell_proceeds: float = Field(..., description="Sell proceeds net of pro-rata charges")
    pnl: float = Field(..., description="Realized P&L for the pair")

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'symbol': self.symbol,
            'buy_transaction_id': self.buy_transaction_id,
            'sell_transaction_id': self.sell_transaction_id,
            'buy_date': self.buy_date.isoformat(),
            'sell_date': self.sell_date.isoformat(),
            'quantity': self.quantity,
            'buy_price': self.buy_price,
            'sell_price': self.sell_price,
            'buy_cost': self.buy_cost,
            'sell_proceeds': self.sell_proceeds,
            'pnl': self.pnl
        }


class FIFOResult(BaseModel):
    """Output of one FIFO matching run."""
    realized_pnl: float = Field(default=0.0, description="Sum of matched pair P&L")
    trades: List[MatchedTrade] = Field(default_factory=list, description="Matched pairs")
    unmatched_quantity: float = Field(default=0.0, description="Sell quantity with no lot to match")


class TradeStatistics(BaseModel):
    """Completed-trade statistics over matched pairs."""
    total_trades: int = Field(default=0, description="Number of matched pairs")
    winning_trades: int = Field(default=0, description="Pairs with pnl > 0")
    losing_trades: int = Field(default=0, description="Pairs with pnl < 0")
    win_rate: float = Field(default=0.0, description="Win rate percentage")
    avg_profit_per_trade: float = Field(default=0.0, description="Mean pnl over all pairs")
    avg_win: float = Field(default=0.0, description="Mean pnl of winning pairs")
    avg_loss: float = Field(default=0.0, description="Mean pnl of losing pairs")
    largest_win: float = Field(default=0.0, description="Largest pair pnl")
    largest_loss: float = Field(default=0.0, description="Smallest pair pnl")


class StockPerformance(BaseModel):
    """Realized plus unrealized P&L for one symbol."""
    symbol: str
    company_name: Optional[str] = None
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    total_pnl: float = 0.0


class StockPnLSummary(BaseModel):
    """Per-symbol buy/sell totals and P&L."""
    symbol: str
    company_name: Optional[str] = None
    total_buy_quantity: float = 0.0
    total_sell_quantity: float = 0.0
    current_holding: float = 0.0
    total_buy_value: float = 0.0
    total_sell_value: float = 0.0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    total_pnl: float = 0.0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0


class PnLTrendPoint(BaseModel):
    """Cumulative signed cash flow at the end of one day."""
    date: date
    pnl: float

    def to_dict(self) -> dict:
        return {'date': self.date.isoformat(), 'pnl': self.pnl}


class DashboardMetrics(BaseModel):
    """Portfolio-level dashboard figures."""
    total_invested: float = Field(..., description="Sum of BUY net amounts")
    total_proceeds: float = Field(..., description="Sum of SELL net amounts")
    net_invested: float = Field(..., description="Invested minus proceeds")
    current_portfolio_value: float = Field(..., description="Sum of position current values")
    realized_pnl: float = Field(..., description="FIFO realized P&L across symbols")
    unrealized_pnl: float = Field(..., description="Sum of supplied position unrealized P&L")
    total_pnl: float = Field(..., description="Realized plus unrealized")
    return_percent: float = Field(..., description="Total P&L over net invested")
    trade_statistics: TradeStatistics = Field(default_factory=TradeStatistics)
    top_performers: List[StockPerformance] = Field(default_factory=list)
    worst_performers: List[StockPerformance] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode='json')
