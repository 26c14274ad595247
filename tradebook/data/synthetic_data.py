# tradebook/data/synthetic_data.py
"""
Synthetic data generator for testing and demos.
"""

import numpy as np
import pandas as pd
from typing import List, Optional
import logging
from ..models.config import DataConfig
from ..models.market_data import Candle
from ..utils.time_helpers import business_days, parse_timeframe
from .providers import DateLike, HistoricalDataProvider


logger = logging.getLogger(__name__)


class SyntheticDataProvider(HistoricalDataProvider):
    """
    Generates synthetic daily OHLCV data for backtesting.

    Candles fall on weekdays only. Each call draws from a fresh generator
    seeded with the provider's seed, so identical requests return identical
    candles.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        initial_price: float = 2500.0,
        volatility: float = 0.02,
        trend: float = 0.0001,
        volume_base: float = 100000,
    ):
        """
        Initialize synthetic data provider.

        Args:
            seed: Random seed for reproducible data generation
            initial_price: Starting price
            volatility: Daily price volatility
            trend: Daily drift
            volume_base: Base volume for generation
        """
        self.seed = seed
        self.initial_price = initial_price
        self.volatility = volatility
        self.trend = trend
        self.volume_base = volume_base

    @classmethod
    def from_config(cls, config: DataConfig) -> "SyntheticDataProvider":
        return cls(
            seed=config.seed,
            initial_price=config.initial_price,
            volatility=config.volatility,
            trend=config.trend,
        )

    def get_historical_data(
        self,
        symbol: str,
        interval: str,
        start: DateLike,
        end: DateLike,
    ) -> List[Candle]:
        number, unit = parse_timeframe(interval)
        if (number, unit) != (1, 'd'):
            raise ValueError(f"Synthetic data supports daily candles only, got {interval}")
        return self.generate_ohlcv(symbol, start, end)

    def generate_ohlcv(self, symbol: str, start: DateLike, end: DateLike) -> List[Candle]:
        """
        Generate synthetic OHLCV data with geometric Brownian motion.

        Args:
            symbol: Trading symbol
            start: Start date
            end: End date

        Returns:
            List of Candle objects
        """
        time_index = business_days(pd.Timestamp(start), pd.Timestamp(end))

        if len(time_index) == 0:
            return []

        rng = np.random.RandomState(self.seed)
        n_periods = len(time_index)
        returns = rng.normal(self.trend, self.volatility, n_periods)

        # Add some autocorrelation for realism
        returns = self._add_autocorrelation(returns, 0.1)

        log_returns = np.cumsum(returns)
        prices = self.initial_price * np.exp(log_returns)

        candles = self._to_candles(symbol, time_index, prices, rng, returns)
        logger.debug(f"Generated {len(candles)} synthetic candles for {symbol}")
        return candles

    def generate_sideways_data(
        self,
        symbol: str,
        start: DateLike,
        end: DateLike,
        range_pct: float = 0.1,
    ) -> List[Candle]:
        """
        Generate synthetic sideways/ranging market data.

        Args:
            symbol: Trading symbol
            start: Start date
            end: End date
            range_pct: Price range as a fraction of the initial price

        Returns:
            List of ranging Candle objects
        """
        time_index = business_days(pd.Timestamp(start), pd.Timestamp(end))

        if len(time_index) == 0:
            return []

        rng = np.random.RandomState(self.seed)
        center_price = self.initial_price
        max_price = center_price * (1 + range_pct / 2)
        min_price = center_price * (1 - range_pct / 2)

        prices = [center_price]
        for _ in range(1, len(time_index)):
            current_price = prices[-1]
            mean_reversion = (center_price - current_price) / center_price * 0.1
            new_price = current_price * (1 + mean_reversion + rng.normal(0, self.volatility))
            prices.append(max(min_price, min(max_price, new_price)))

        prices = np.array(prices)
        returns = np.diff(np.log(prices), prepend=np.log(center_price))
        return self._to_candles(symbol, time_index, prices, rng, returns)

    def _to_candles(
        self,
        symbol: str,
        time_index: pd.DatetimeIndex,
        prices: np.ndarray,
        rng: np.random.RandomState,
        returns: np.ndarray,
    ) -> List[Candle]:
        candles: List[Candle] = []

        for i, timestamp in enumerate(time_index):
            open_price = self.initial_price if i == 0 else candles[i - 1].close
            close_price = prices[i]

            intrabar_range = abs(close_price - open_price) * 0.5 + open_price * self.volatility * rng.random_sample()
            high_price = max(open_price, close_price) + intrabar_range * rng.random_sample()
            low_price = min(open_price, close_price) - intrabar_range * rng.random_sample()

            # Ensure price constraints
            high_price = max(high_price, open_price, close_price)
            low_price = max(0.01, min(low_price, open_price, close_price))

            volume = self.volume_base * (0.5 + rng.random_sample()) * (1 + abs(returns[i]) * 10)

            candles.append(Candle(
                date=timestamp.to_pydatetime(),
                open=float(round(open_price, 2)),
                high=float(round(high_price, 2)),
                low=float(round(low_price, 2)),
                close=float(round(close_price, 2)),
                volume=float(round(volume)),
                symbol=symbol.upper()
            ))

        return candles

    def _add_autocorrelation(self, series: np.ndarray, correlation: float) -> np.ndarray:
        """Add autocorrelation to a time series."""
        if correlation == 0:
            return series

        result = np.copy(series)
        for i in range(1, len(result)):
            result[i] += correlation * result[i-1]

        return result
