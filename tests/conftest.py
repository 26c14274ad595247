import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

import pytest

from tradebook.models.config import BacktestConfig
from tradebook.models.market_data import Candle
from tradebook.models.transactions import Charges, Transaction, TransactionType


BASE_DAY = datetime(2024, 1, 1)


def make_candles(closes: Sequence[float], start: datetime = BASE_DAY) -> List[Candle]:
    """Daily candles with open/high/low pinned to the close."""
    return [
        Candle(
            date=start + timedelta(days=i),
            open=close,
            high=close,
            low=close,
            close=close,
            volume=1000,
            symbol="TEST",
        )
        for i, close in enumerate(closes)
    ]


def make_txn(
    type: str,
    quantity: float,
    price: float,
    day: int,
    symbol: str = "INFY",
    charges: float = 0.0,
    id: Optional[str] = None,
) -> Transaction:
    return Transaction.create(
        symbol=symbol,
        type=TransactionType(type),
        quantity=quantity,
        price_per_share=price,
        timestamp=BASE_DAY + timedelta(days=day),
        charges=Charges(brokerage=charges),
        id=id,
    )


@pytest.fixture()
def txn() -> Callable[..., Transaction]:
    return make_txn


@pytest.fixture()
def candles_from() -> Callable[..., List[Candle]]:
    return make_candles


@pytest.fixture()
def backtest_config() -> Callable[..., BacktestConfig]:
    def build(**overrides) -> BacktestConfig:
        values = {
            "strategy_name": "RSI Dip",
            "symbol": "TEST",
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 6, 30),
            "initial_capital": 100000.0,
            "entry_conditions": [{"indicator": "RSI", "operator": "<", "value": 30}],
            "exit_rules": [{"type": "profit_target", "value": 5}],
        }
        values.update(overrides)
        return BacktestConfig(**values)

    return build


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
