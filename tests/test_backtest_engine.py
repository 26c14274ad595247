import json
from datetime import date

import pytest

from tradebook.core.backtest_engine import END_OF_DATA, BacktestEngine, run_backtest
from tradebook.data import SyntheticDataProvider, load_candles
from tradebook.errors import DataUnavailable


FALLING = [114.0 - i for i in range(15)]


def test_rsi_dip_strategy_takes_profit(backtest_config, candles_from) -> None:
    closes = FALLING + [101, 102, 103, 104, 106, 107, 108]
    config = backtest_config()

    result = run_backtest(config, candles_from(closes))

    assert len(result.trades) == 1
    trade = result.trades[0]
    assert trade.entry_price == 100
    assert trade.quantity == 1000
    assert trade.exit_price == 106
    assert trade.pnl == pytest.approx(6000)
    assert trade.pnl_pct == pytest.approx(6)
    assert trade.holding_period == 5
    assert trade.exit_reason == "profit_target"
    assert trade.type == "WIN"

    assert result.final_capital == pytest.approx(106000)
    assert result.metrics.winning_trades == 1
    assert result.metrics.profit_factor == float('inf')
    assert result.metrics.to_dict()['profit_factor'] == "Infinity"
    assert len(result.equity_curve) == len(closes)
    assert result.equity_curve[-1].portfolio_value == pytest.approx(106000)


def test_stop_loss_then_same_candle_reentry_and_forced_exit(backtest_config, candles_from) -> None:
    config = backtest_config(exit_rules=[
        {"type": "profit_target", "value": 5},
        {"type": "stop_loss", "value": 3},
    ])

    result = run_backtest(config, candles_from(FALLING + [99, 96]))

    stopped, forced = result.trades
    assert stopped.exit_reason == "stop_loss"
    assert stopped.pnl == pytest.approx(-4000)
    assert stopped.type == "LOSS"

    assert forced.entry_price == 96
    assert forced.exit_reason == END_OF_DATA
    assert forced.holding_period == 0
    assert forced.pnl == 0

    assert result.metrics.winning_trades == 0
    assert result.metrics.losing_trades == 1
    assert result.metrics.profit_factor == 0
    assert result.final_capital == pytest.approx(96000)

    last = result.equity_curve[-1]
    assert last.position_value == 0
    assert last.cash == pytest.approx(96000)


def test_time_based_exit_counts_candles(backtest_config, candles_from) -> None:
    config = backtest_config(exit_rules=[{"type": "time_based", "value": 2}])

    result = run_backtest(config, candles_from(FALLING + [100, 100, 100]))

    assert [t.exit_reason for t in result.trades] == ["time_based", END_OF_DATA]
    assert result.trades[0].holding_period == 2
    assert result.trades[1].holding_period == 1


def test_exit_rules_checked_in_order(backtest_config, candles_from) -> None:
    config = backtest_config(exit_rules=[
        {"type": "time_based", "value": 1},
        {"type": "profit_target", "value": 1},
    ])

    result = run_backtest(config, candles_from(FALLING + [110]))

    assert result.trades[0].exit_reason == "time_based"


def test_entry_skipped_when_cash_below_price(backtest_config, candles_from) -> None:
    config = backtest_config(initial_capital=50)

    result = run_backtest(config, candles_from(FALLING))

    assert result.trades == []
    assert result.metrics.total_trades == 0
    assert result.final_capital == 50
    assert all(p.portfolio_value == 50 for p in result.equity_curve)


def test_no_entry_conditions_never_trades(backtest_config, candles_from) -> None:
    config = backtest_config(entry_conditions=[])

    result = run_backtest(config, candles_from(FALLING))

    assert result.trades == []
    assert result.metrics.sharpe_ratio == 0


@pytest.mark.parametrize("candles", [[], None])
def test_missing_data_raises(backtest_config, candles) -> None:
    with pytest.raises(DataUnavailable):
        run_backtest(backtest_config(), candles)


def test_unordered_input_is_sorted_without_mutation(backtest_config, candles_from) -> None:
    candles = candles_from(FALLING + [101, 102, 103, 104, 106])
    shuffled = list(reversed(candles))
    snapshot = list(shuffled)

    result = run_backtest(backtest_config(), shuffled)
    expected = run_backtest(backtest_config(), candles)

    assert shuffled == snapshot
    assert [t.to_dict() for t in result.trades] == [t.to_dict() for t in expected.trades]


def test_runs_are_deterministic(backtest_config, candles_from) -> None:
    candles = candles_from(FALLING + [99, 96, 97, 101, 99])
    config = backtest_config(exit_rules=[{"type": "stop_loss", "value": 2}])

    first = run_backtest(config, candles)
    second = run_backtest(config, candles)

    assert [t.to_dict() for t in first.trades] == [t.to_dict() for t in second.trades]
    assert [p.to_dict() for p in first.equity_curve] == [p.to_dict() for p in second.equity_curve]
    assert first.metrics == second.metrics


def test_equity_point_per_candle_tracks_position(backtest_config, candles_from) -> None:
    result = run_backtest(backtest_config(), candles_from(FALLING + [102]))

    entry_point = result.equity_curve[14]
    assert entry_point.cash == 0
    assert entry_point.position_value == pytest.approx(100000)
    assert result.equity_curve[0].portfolio_value == 100000


def test_engine_status_after_run(backtest_config, candles_from) -> None:
    engine = BacktestEngine(backtest_config(), run_id="run-1")
    engine.run_backtest(candles_from(FALLING))

    status = engine.get_status()

    assert status['run_id'] == "run-1"
    assert status['processed_candles'] == len(FALLING)
    assert status['progress_pct'] == 100
    assert status['in_position'] is False


def test_result_serializes_to_json(backtest_config, candles_from, tmp_path) -> None:
    result = run_backtest(backtest_config(), candles_from(FALLING + [106]))
    path = tmp_path / "result.json"

    result.save_to_json(str(path))

    data = json.loads(path.read_text())
    assert data['symbol'] == "TEST"
    assert data['trades'][0]['exit_reason'] == "profit_target"


@pytest.mark.parametrize(
    "start, end",
    [(date(2024, 1, 1), date(2024, 1, 1)), (date(2024, 2, 1), date(2024, 1, 1)), (date(2020, 1, 1), date(2024, 1, 1))],
)
def test_config_rejects_bad_date_ranges(backtest_config, start, end) -> None:
    with pytest.raises(ValueError):
        backtest_config(start_date=start, end_date=end)


def test_synthetic_backtest_end_to_end(backtest_config) -> None:
    config = backtest_config(
        entry_conditions=[
            {"indicator": "RSI", "operator": "<", "value": 45},
            {"indicator": "MACD", "operator": "crossover", "combinator": "OR"},
        ],
        exit_rules=[
            {"type": "profit_target", "value": 4},
            {"type": "stop_loss", "value": 3},
            {"type": "time_based", "value": 15},
        ],
    )
    candles = load_candles(SyntheticDataProvider(seed=7), config)

    result = run_backtest(config, candles)

    assert result.total_candles == len(candles)
    assert len(result.equity_curve) == len(candles)
    assert result.metrics.total_trades == len(result.trades)
    assert result.final_capital == pytest.approx(
        config.initial_capital + sum(t.pnl for t in result.trades)
    )
    assert result.equity_curve[-1].portfolio_value == pytest.approx(result.final_capital)
