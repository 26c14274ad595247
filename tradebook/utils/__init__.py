# tradebook/utils/__init__.py
"""
Utility functions and helpers.
"""

from .config_loader import load_config, save_config, get_default_config
from .logging_config import setup_logging, setup_from_config
from .time_helpers import parse_date, period_start, business_days

__all__ = [
    "load_config",
    "save_config",
    "get_default_config",
    "setup_logging",
    "setup_from_config",
    "parse_date",
    "period_start",
    "business_days",
]
