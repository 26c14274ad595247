# tradebook/data/__init__.py
"""
Historical data providers.
"""

from .providers import DataFrameDataProvider, HistoricalDataProvider, load_candles
from .synthetic_data import SyntheticDataProvider

__all__ = [
    "HistoricalDataProvider",
    "DataFrameDataProvider",
    "SyntheticDataProvider",
    "load_candles",
]
