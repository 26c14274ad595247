import pytest

from tradebook.core.indicators import WARMUP, compute_indicators, compute_series
from tradebook.models.market_data import IndicatorKind


RISING = [100.0 + i for i in range(60)]


@pytest.mark.parametrize("name", ["rsi", "macd", "macd_signal", "macd_histogram", "sma", "ema"])
def test_values_undefined_until_warmup_filled(name) -> None:
    series = compute_series(RISING)
    warmup = WARMUP[name]

    assert len(series[name]) == len(RISING)
    assert all(v is None for v in series[name][:warmup])
    assert series[name][warmup] is not None


def test_warmup_lengths() -> None:
    assert WARMUP == {
        'rsi': 14,
        'macd': 25,
        'macd_signal': 33,
        'macd_histogram': 33,
        'sma': 49,
        'ema': 19,
    }


def test_sma_is_mean_of_window() -> None:
    series = compute_series(RISING)

    assert series['sma'][49] == pytest.approx(sum(RISING[:50]) / 50)


def test_rsi_saturates_on_monotonic_series() -> None:
    rising = compute_series(RISING)
    falling = compute_series(list(reversed(RISING)))

    assert rising['rsi'][14] == pytest.approx(100)
    assert falling['rsi'][14] == pytest.approx(0)


def test_macd_histogram_is_line_minus_signal() -> None:
    closes = [100 + (i % 7) * 1.5 - (i % 3) for i in range(60)]
    series = compute_series(closes)

    for i in range(33, 60):
        assert series['macd_histogram'][i] == pytest.approx(series['macd'][i] - series['macd_signal'][i])


def test_short_series_has_no_sma(candles_from) -> None:
    snapshots = compute_indicators(candles_from([100.0 + i for i in range(20)]))

    assert len(snapshots) == 20
    assert all(s.value(IndicatorKind.SMA) is None for s in snapshots)
    assert snapshots[19].value(IndicatorKind.EMA) is not None


def test_snapshots_align_with_candles(candles_from) -> None:
    candles = candles_from(RISING)
    snapshots = compute_indicators(candles)

    assert [s.index for s in snapshots] == list(range(60))
    assert snapshots[5].date == candles[5].date
    assert snapshots[5].value(IndicatorKind.PRICE) == candles[5].close
    assert snapshots[40].macd.signal is not None


def test_no_candles_gives_no_snapshots() -> None:
    assert compute_indicators([]) == []
