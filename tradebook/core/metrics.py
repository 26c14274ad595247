# tradebook/core/metrics.py
"""
Performance metrics calculator for backtest results.
"""

import numpy as np
from typing import List, Sequence, Tuple
import logging
from ..models.results import PerformanceMetrics, Trade


logger = logging.getLogger(__name__)


class MetricsCalculator:
    """
    Calculate performance metrics from a completed-trade list.

    Drawdown is measured on running capital after each trade, not on the
    per-candle equity curve. The Sharpe ratio is the simplified per-trade
    form: mean / population stddev of trade P&L%, with no risk-free rate and
    no annualization.
    """

    def calculate_metrics(
        self,
        initial_capital: float,
        trades: Sequence[Trade],
    ) -> PerformanceMetrics:
        """
        Calculate performance metrics.

        Args:
            initial_capital: Starting capital
            trades: Completed trades in exit order

        Returns:
            PerformanceMetrics object
        """
        if not trades:
            return self._create_empty_metrics(initial_capital)

        pnls = [t.pnl for t in trades]
        total_return = float(sum(pnls))
        final_capital = initial_capital + total_return
        total_return_pct = (total_return / initial_capital) * 100

        winning_pnl = [p for p in pnls if p > 0]
        losing_pnl = [p for p in pnls if p < 0]
        total_trades = len(trades)
        win_rate = len(winning_pnl) / total_trades * 100

        gross_profit = float(sum(winning_pnl))
        gross_loss = abs(float(sum(losing_pnl)))
        profit_factor = self._calculate_profit_factor(gross_profit, gross_loss)

        avg_profit = gross_profit / len(winning_pnl) if winning_pnl else 0.0
        avg_loss = gross_loss / len(losing_pnl) if losing_pnl else 0.0
        largest_win = float(max(winning_pnl)) if winning_pnl else 0.0
        largest_loss = float(min(losing_pnl)) if losing_pnl else 0.0

        max_drawdown_pct, max_drawdown = self._calculate_max_drawdown(initial_capital, pnls)
        sharpe_ratio = self._calculate_sharpe_ratio([t.pnl_pct for t in trades])
        avg_trade_duration = float(np.mean([t.holding_period for t in trades]))

        logger.info(
            f"Metrics calculated - trades: {total_trades}, wins: {len(winning_pnl)}, "
            f"losses: {len(losing_pnl)}, return: {total_return_pct:.2f}%"
        )

        return PerformanceMetrics(
            initial_capital=initial_capital,
            final_capital=final_capital,
            total_return=total_return,
            total_return_pct=total_return_pct,
            total_trades=total_trades,
            winning_trades=len(winning_pnl),
            losing_trades=len(losing_pnl),
            win_rate=win_rate,
            avg_profit_per_trade=avg_profit,
            avg_loss_per_trade=avg_loss,
            profit_factor=profit_factor,
            largest_win=largest_win,
            largest_loss=largest_loss,
            max_drawdown=max_drawdown_pct,
            max_drawdown_amount=max_drawdown,
            sharpe_ratio=sharpe_ratio,
            avg_trade_duration=avg_trade_duration
        )

    @staticmethod
    def _calculate_profit_factor(gross_profit: float, gross_loss: float) -> float:
        if gross_loss > 0:
            return gross_profit / gross_loss
        return float('inf') if gross_profit > 0 else 0.0

    def _calculate_max_drawdown(
        self,
        initial_capital: float,
        pnls: Sequence[float]
    ) -> Tuple[float, float]:
        """
        Walk running capital trade by trade against its running peak.

        Returns:
            Tuple of (max_drawdown_pct, drawdown amount at that point)
        """
        peak = initial_capital
        running = initial_capital
        max_drawdown_pct = 0.0
        max_drawdown_amount = 0.0

        for pnl in pnls:
            running += pnl
            if running > peak:
                peak = running

            drawdown = peak - running
            drawdown_pct = (drawdown / peak * 100) if peak > 0 else 0.0

            if drawdown_pct > max_drawdown_pct:
                max_drawdown_pct = drawdown_pct
                max_drawdown_amount = drawdown

        return max_drawdown_pct, max_drawdown_amount

    def _calculate_sharpe_ratio(self, returns: List[float]) -> float:
        if not returns:
            return 0.0

        std = float(np.std(returns))  # population stddev
        if std <= 0:
            return 0.0
        return float(np.mean(returns)) / std

    def _create_empty_metrics(self, initial_capital: float) -> PerformanceMetrics:
        """
        Create empty metrics for cases with no trades.

        Args:
            initial_capital: Initial capital amount

        Returns:
            PerformanceMetrics with zero values
        """
        return PerformanceMetrics(
            initial_capital=initial_capital,
            final_capital=initial_capital,
            total_return=0.0,
            total_return_pct=0.0,
            total_trades=0,
            winning_trades=0,
            losing_trades=0,
            win_rate=0.0,
            avg_profit_per_trade=0.0,
            avg_loss_per_trade=0.0,
            profit_factor=0.0,
            largest_win=0.0,
            largest_loss=0.0,
            max_drawdown=0.0,
            max_drawdown_amount=0.0,
            sharpe_ratio=0.0,
            avg_trade_duration=0.0
        )
