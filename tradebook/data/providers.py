# tradebook/data/providers.py
"""
Historical candle providers.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional, Union
import logging

import pandas as pd

from ..errors import DataUnavailable
from ..models.config import BacktestConfig
from ..models.market_data import Candle
from ..utils.time_helpers import parse_date


logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]


class HistoricalDataProvider(ABC):
    """Source of OHLCV candles for a symbol and date range."""

    @abstractmethod
    def get_historical_data(
        self,
        symbol: str,
        interval: str,
        start: DateLike,
        end: DateLike,
    ) -> List[Candle]:
        """
        Fetch candles for a symbol.

        Args:
            symbol: Trading symbol
            interval: Candle interval (e.g. '1d')
            start: First date, inclusive
            end: Last date, inclusive

        Returns:
            Candles in date order (possibly empty)
        """


class DataFrameDataProvider(HistoricalDataProvider):
    """
    Serve candles from an OHLCV DataFrame already held in memory.

    The frame needs open, high, low and close columns (volume and symbol are
    optional) and either a date column or a datetime index.
    """

    REQUIRED_COLUMNS = ("open", "high", "low", "close")

    def __init__(self, frame: pd.DataFrame, symbol: Optional[str] = None):
        frame = frame.copy()
        frame.columns = [str(c).strip().lower() for c in frame.columns]

        if "date" in frame.columns:
            frame["date"] = pd.to_datetime(frame["date"])
        else:
            frame = frame.reset_index().rename(columns={frame.index.name or "index": "date"})
            frame["date"] = pd.to_datetime(frame["date"])

        missing = [c for c in self.REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"DataFrame is missing OHLC columns: {missing}")

        if "volume" not in frame.columns:
            frame["volume"] = 0.0

        self.frame = frame.sort_values("date", kind="mergesort").reset_index(drop=True)
        self.symbol = symbol.upper() if symbol else None

    @classmethod
    def from_csv(cls, path: str, symbol: Optional[str] = None) -> "DataFrameDataProvider":
        """Load an OHLCV CSV file with a date column."""
        return cls(pd.read_csv(path), symbol=symbol)

    def get_historical_data(
        self,
        symbol: str,
        interval: str,
        start: DateLike,
        end: DateLike,
    ) -> List[Candle]:
        frame = self.frame
        symbol = symbol.upper()

        if "symbol" in frame.columns:
            frame = frame[frame["symbol"].astype(str).str.upper() == symbol]
        elif self.symbol and self.symbol != symbol:
            return []

        start_ts = pd.Timestamp(parse_date(start))
        end_ts = pd.Timestamp(parse_date(end))
        if end_ts == end_ts.normalize():
            # Whole-day end bound
            end_ts = end_ts + pd.Timedelta(days=1) - pd.Timedelta(microseconds=1)

        window = frame[(frame["date"] >= start_ts) & (frame["date"] <= end_ts)]
        candles = [
            Candle(
                date=row.date.to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
                symbol=symbol,
            )
            for row in window.itertuples(index=False)
        ]
        logger.debug(f"DataFrame provider returned {len(candles)} candles for {symbol}")
        return candles


def load_candles(provider: HistoricalDataProvider, config: BacktestConfig) -> List[Candle]:
    """
    Fetch the candles a backtest configuration asks for.

    Raises:
        DataUnavailable: If the provider has no candles for the range
    """
    candles = provider.get_historical_data(
        config.symbol, config.interval, config.start_date, config.end_date
    )
    if not candles:
        raise DataUnavailable(
            f"No historical data available for {config.symbol} "
            f"between {config.start_date} and {config.end_date}"
        )
    logger.info(f"Loaded {len(candles)} candles for {config.symbol}")
    return candles
