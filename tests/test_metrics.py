from datetime import datetime, timedelta

import pytest

from tradebook.core.metrics import MetricsCalculator
from tradebook.models.results import Trade


def make_trade(pnl: float, pnl_pct: float = 0.0, holding_period: int = 1) -> Trade:
    entry = datetime(2024, 1, 1)
    return Trade(
        entry_date=entry,
        exit_date=entry + timedelta(days=holding_period),
        entry_price=100.0,
        exit_price=100.0 + pnl,
        quantity=1,
        pnl=pnl,
        pnl_pct=pnl_pct,
        type="WIN" if pnl >= 0 else "LOSS",
        holding_period=holding_period,
        exit_reason="profit_target",
    )


@pytest.fixture()
def calculator() -> MetricsCalculator:
    return MetricsCalculator()


def test_no_trades_gives_zero_metrics(calculator) -> None:
    metrics = calculator.calculate_metrics(10000, [])

    assert metrics.total_trades == 0
    assert metrics.final_capital == 10000
    assert metrics.profit_factor == 0
    assert metrics.sharpe_ratio == 0
    assert metrics.max_drawdown == 0


def test_breakeven_trade_is_not_a_drawdown(calculator) -> None:
    metrics = calculator.calculate_metrics(10000, [make_trade(100), make_trade(0), make_trade(250)])

    assert metrics.max_drawdown == 0
    assert metrics.max_drawdown_amount == 0


def test_win_loss_statistics(calculator) -> None:
    trades = [make_trade(300), make_trade(-100), make_trade(100), make_trade(0)]

    metrics = calculator.calculate_metrics(10000, trades)

    assert metrics.total_trades == 4
    assert metrics.winning_trades == 2
    assert metrics.losing_trades == 1
    assert metrics.win_rate == pytest.approx(50)
    assert metrics.total_return == pytest.approx(300)
    assert metrics.total_return_pct == pytest.approx(3)
    assert metrics.final_capital == pytest.approx(10300)
    assert metrics.avg_profit_per_trade == pytest.approx(200)
    assert metrics.avg_loss_per_trade == pytest.approx(100)
    assert metrics.profit_factor == pytest.approx(4)
    assert metrics.largest_win == 300
    assert metrics.largest_loss == -100


def test_profit_factor_infinite_without_losses(calculator) -> None:
    metrics = calculator.calculate_metrics(10000, [make_trade(50)])

    assert metrics.profit_factor == float('inf')
    assert metrics.to_dict()['profit_factor'] == "Infinity"


def test_profit_factor_zero_when_only_breakeven(calculator) -> None:
    metrics = calculator.calculate_metrics(10000, [make_trade(0)])

    assert metrics.profit_factor == 0
    assert metrics.winning_trades == 0
    assert metrics.losing_trades == 0


def test_drawdown_walks_running_capital(calculator) -> None:
    trades = [make_trade(1000), make_trade(-2200), make_trade(500)]

    metrics = calculator.calculate_metrics(10000, trades)

    # Peak 11000, trough 8800
    assert metrics.max_drawdown == pytest.approx(20)
    assert metrics.max_drawdown_amount == pytest.approx(2200)


def test_sharpe_uses_population_stddev(calculator) -> None:
    trades = [make_trade(20, pnl_pct=2), make_trade(40, pnl_pct=4)]

    metrics = calculator.calculate_metrics(10000, trades)

    assert metrics.sharpe_ratio == pytest.approx(3)


def test_sharpe_zero_for_identical_returns(calculator) -> None:
    trades = [make_trade(10, pnl_pct=1), make_trade(10, pnl_pct=1)]

    assert calculator.calculate_metrics(10000, trades).sharpe_ratio == 0


def test_average_trade_duration(calculator) -> None:
    trades = [make_trade(10, holding_period=2), make_trade(-5, holding_period=6)]

    assert calculator.calculate_metrics(10000, trades).avg_trade_duration == pytest.approx(4)
