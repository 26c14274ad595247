# tradebook/core/backtest_engine.py
"""
Single-position backtesting engine for rule-based strategies.
"""

import math
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Sequence
from datetime import datetime
import logging
from tqdm import tqdm

from ..errors import DataUnavailable
from ..models.config import BacktestConfig, ExitRule, ExitRuleType
from ..models.market_data import Candle, IndicatorSnapshot
from ..models.results import BacktestResult, Trade, EquityPoint
from .conditions import evaluate_entry
from .indicators import compute_indicators
from .metrics import MetricsCalculator


logger = logging.getLogger(__name__)

END_OF_DATA = "end_of_data"


@dataclass
class OpenPosition:
    """Position held between entry and exit."""
    entry_date: datetime
    entry_price: float
    quantity: int
    entry_index: int


class BacktestEngine:
    """
    Candle-by-candle strategy simulator.

    At most one long position is open at a time. On every candle the open
    position is checked against the exit rules first; if the strategy is
    flat afterwards the entry conditions are evaluated on the same candle.
    Entries buy the largest whole quantity the cash allows at the close.
    A position still open after the last candle is closed at its close.
    """

    def __init__(self, config: BacktestConfig, run_id: Optional[str] = None):
        """
        Initialize backtest engine.

        Args:
            config: Strategy and capital configuration
            run_id: Identifier for the result (generated when omitted)
        """
        self.config = config
        self.run_id = run_id or self._make_run_id(config)
        self.metrics_calculator = MetricsCalculator()

        # State
        self.cash: float = config.initial_capital
        self.position: Optional[OpenPosition] = None
        self.completed_trades: List[Trade] = []
        self.equity_curve: List[EquityPoint] = []
        self.current_time: Optional[datetime] = None

        # Progress tracking
        self.total_candles = 0
        self.processed_candles = 0

        logger.info(f"Backtest engine initialized: {self.run_id}")

    @staticmethod
    def _make_run_id(config: BacktestConfig) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        strategy = config.strategy_name.strip().lower().replace(" ", "_")
        return f"{config.symbol}_{strategy}_{timestamp}"

    def _reset(self) -> None:
        self.cash = self.config.initial_capital
        self.position = None
        self.completed_trades = []
        self.equity_curve = []
        self.current_time = None
        self.processed_candles = 0

    def run_backtest(self, market_data: Optional[Sequence[Candle]]) -> BacktestResult:
        """
        Run complete backtest.

        Args:
            market_data: Historical candles, in any order

        Returns:
            BacktestResult with trades, equity curve and metrics

        Raises:
            DataUnavailable: If no candles were supplied
        """
        if not market_data:
            raise DataUnavailable(
                f"No historical data available for {self.config.symbol} "
                f"between {self.config.start_date} and {self.config.end_date}"
            )

        self._reset()
        candles = sorted(market_data, key=lambda c: c.date)
        self.total_candles = len(candles)
        start_time = time.time()

        logger.info(f"Starting backtest with {len(candles)} candles")
        snapshots = compute_indicators(candles)

        with tqdm(total=len(candles), desc="Backtesting", disable=not self.config.show_progress) as pbar:
            for index, candle in enumerate(candles):
                self._process_candle(index, candle, snapshots)
                self.processed_candles += 1
                pbar.update(1)

        if self.position is not None:
            last_index = len(candles) - 1
            self._close_position(last_index, candles[last_index], END_OF_DATA)
            # Final point reflects the forced exit
            self.equity_curve[-1] = self._equity_point(candles[last_index])

        execution_time = time.time() - start_time
        result = self._generate_results(execution_time)

        logger.info(
            f"Backtest completed in {execution_time:.2f}s: "
            f"{len(self.completed_trades)} trades, final capital {result.final_capital:.2f}"
        )
        return result

    def _process_candle(
        self,
        index: int,
        candle: Candle,
        snapshots: Sequence[IndicatorSnapshot],
    ) -> None:
        """Exit check, then entry check, then an equity snapshot."""
        self.current_time = candle.date

        if self.position is not None:
            reason = self._check_exit_rules(index, candle)
            if reason:
                self._close_position(index, candle, reason)

        if self.position is None and evaluate_entry(self.config.entry_conditions, snapshots, index):
            self._open_position(index, candle)

        self.equity_curve.append(self._equity_point(candle))

    def _check_exit_rules(self, index: int, candle: Candle) -> Optional[str]:
        """
        Return the type of the first exit rule that fires, if any.

        Args:
            index: Current candle index
            candle: Current candle
        """
        position = self.position
        change_pct = (candle.close - position.entry_price) / position.entry_price * 100
        candles_held = index - position.entry_index

        for rule in self.config.exit_rules:
            if self._rule_fires(rule, change_pct, candles_held):
                return rule.type.value
        return None

    @staticmethod
    def _rule_fires(rule: ExitRule, change_pct: float, candles_held: int) -> bool:
        if rule.type == ExitRuleType.PROFIT_TARGET:
            return change_pct >= rule.value
        if rule.type == ExitRuleType.STOP_LOSS:
            return change_pct <= -rule.value
        if rule.type == ExitRuleType.TIME_BASED:
            return candles_held >= rule.value
        return False

    def _open_position(self, index: int, candle: Candle) -> None:
        quantity = math.floor(self.cash / candle.close)
        if quantity <= 0:
            logger.debug(f"Entry skipped at {candle.date}: cash {self.cash:.2f} below price {candle.close}")
            return

        self.position = OpenPosition(
            entry_date=candle.date,
            entry_price=candle.close,
            quantity=quantity,
            entry_index=index,
        )
        self.cash -= candle.close * quantity
        logger.debug(f"Entered {quantity} @ {candle.close:.2f} on {candle.date}")

    def _close_position(self, index: int, candle: Candle, reason: str) -> None:
        position = self.position
        exit_price = candle.close
        pnl = (exit_price - position.entry_price) * position.quantity
        pnl_pct = (exit_price - position.entry_price) / position.entry_price * 100

        trade = Trade(
            entry_date=position.entry_date,
            exit_date=candle.date,
            entry_price=position.entry_price,
            exit_price=exit_price,
            quantity=position.quantity,
            pnl=pnl,
            pnl_pct=pnl_pct,
            type="WIN" if pnl >= 0 else "LOSS",
            holding_period=index - position.entry_index,
            exit_reason=reason,
        )
        self.completed_trades.append(trade)
        self.cash += exit_price * position.quantity
        self.position = None
        logger.debug(f"Exited {trade.quantity} @ {exit_price:.2f} on {candle.date} ({reason}), pnl {pnl:.2f}")

    def _equity_point(self, candle: Candle) -> EquityPoint:
        position_value = self.position.quantity * candle.close if self.position else 0.0
        return EquityPoint(
            date=candle.date,
            portfolio_value=self.cash + position_value,
            cash=self.cash,
            position_value=position_value,
        )

    def _generate_results(self, execution_time: float) -> BacktestResult:
        """
        Generate final backtest results.

        Args:
            execution_time: Execution time in seconds

        Returns:
            Complete BacktestResult
        """
        metrics = self.metrics_calculator.calculate_metrics(
            initial_capital=self.config.initial_capital,
            trades=self.completed_trades,
        )

        return BacktestResult(
            run_id=self.run_id,
            strategy_name=self.config.strategy_name,
            symbol=self.config.symbol,
            start_date=self.config.start_date,
            end_date=self.config.end_date,
            initial_capital=self.config.initial_capital,
            config=self.config.model_dump(mode='json'),
            trades=list(self.completed_trades),
            equity_curve=list(self.equity_curve),
            metrics=metrics,
            total_candles=self.total_candles,
            execution_time=execution_time
        )

    def get_status(self) -> Dict[str, Any]:
        """
        Get current backtest status.

        Returns:
            Status dictionary
        """
        return {
            'run_id': self.run_id,
            'current_time': self.current_time.isoformat() if self.current_time else None,
            'total_candles': self.total_candles,
            'processed_candles': self.processed_candles,
            'progress_pct': (self.processed_candles / self.total_candles * 100) if self.total_candles > 0 else 0,
            'completed_trades': len(self.completed_trades),
            'in_position': self.position is not None,
            'cash': self.cash
        }


def run_backtest(config: BacktestConfig, candles: Optional[Sequence[Candle]]) -> BacktestResult:
    """Run one backtest of a strategy configuration over historical candles."""
    return BacktestEngine(config).run_backtest(candles)
