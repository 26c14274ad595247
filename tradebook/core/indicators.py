# tradebook/core/indicators.py
"""
Technical indicators computed once over a candle series.

Values come from the `ta` library and are masked to None until each
indicator's lookback window is filled.
"""

from typing import Dict, List, Optional, Sequence
import logging
import math

import pandas as pd
from ta.momentum import RSIIndicator
from ta.trend import MACD, EMAIndicator, SMAIndicator

from ..models.market_data import (
    Candle,
    EMAReading,
    IndicatorSnapshot,
    MACDReading,
    PriceReading,
    RSIReading,
    SMAReading,
)


logger = logging.getLogger(__name__)

RSI_WINDOW = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
SMA_WINDOW = 50
EMA_WINDOW = 20

# Number of leading candles with no defined value
WARMUP = {
    'rsi': RSI_WINDOW,
    'macd': MACD_SLOW - 1,
    'macd_signal': MACD_SLOW + MACD_SIGNAL - 2,
    'macd_histogram': MACD_SLOW + MACD_SIGNAL - 2,
    'sma': SMA_WINDOW - 1,
    'ema': EMA_WINDOW - 1,
}


def _masked(series: pd.Series, warmup: int) -> List[Optional[float]]:
    values: List[Optional[float]] = []
    for i, value in enumerate(series.tolist()):
        if i < warmup or value is None or math.isnan(value):
            values.append(None)
        else:
            values.append(float(value))
    return values


def compute_series(closes: Sequence[float]) -> Dict[str, List[Optional[float]]]:
    """
    Aligned indicator series for a close-price sequence.

    Returns:
        Dict with keys rsi, macd, macd_signal, macd_histogram, sma, ema and
        price, each a list the same length as closes
    """
    close = pd.Series(list(closes), dtype="float64")

    raw = {
        'rsi': RSIIndicator(close=close, window=RSI_WINDOW, fillna=False).rsi(),
        'sma': SMAIndicator(close=close, window=SMA_WINDOW, fillna=False).sma_indicator(),
        'ema': EMAIndicator(close=close, window=EMA_WINDOW, fillna=False).ema_indicator(),
    }
    macd = MACD(
        close=close,
        window_slow=MACD_SLOW,
        window_fast=MACD_FAST,
        window_sign=MACD_SIGNAL,
        fillna=False,
    )
    raw['macd'] = macd.macd()
    raw['macd_signal'] = macd.macd_signal()
    raw['macd_histogram'] = macd.macd_diff()

    series = {name: _masked(values, WARMUP[name]) for name, values in raw.items()}
    series['price'] = [float(c) for c in close.tolist()]
    return series


def compute_indicators(candles: Sequence[Candle]) -> List[IndicatorSnapshot]:
    """Indicator snapshot for every candle, in candle order."""
    if not candles:
        return []

    series = compute_series([c.close for c in candles])
    snapshots = [
        IndicatorSnapshot(
            index=i,
            date=candle.date,
            rsi=RSIReading(value=series['rsi'][i]),
            macd=MACDReading(
                value=series['macd'][i],
                signal=series['macd_signal'][i],
                histogram=series['macd_histogram'][i],
            ),
            sma=SMAReading(value=series['sma'][i]),
            ema=EMAReading(value=series['ema'][i]),
            price=PriceReading(value=series['price'][i]),
        )
        for i, candle in enumerate(candles)
    ]
    logger.debug(f"Computed indicators for {len(snapshots)} candles")
    return snapshots
