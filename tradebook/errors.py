"""
Exception types raised by the accounting and backtesting core.
"""

from __future__ import annotations

from typing import Optional


class TradebookError(Exception):
    """Base exception for tradebook failures."""


class ValidationError(TradebookError, ValueError):
    """Raised when an input violates a precondition (quantity, price, date)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InsufficientQuantityError(ValidationError):
    """Raised by the strict oversell check when a sell exceeds the holding."""


class DataUnavailable(TradebookError):
    """Raised when no historical candles exist for the requested range."""
