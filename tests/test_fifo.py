import pytest

from tradebook.core.fifo import FIFOMatcher, compute_realized_pnl, summarize_trades


@pytest.fixture()
def matcher() -> FIFOMatcher:
    return FIFOMatcher()


@pytest.mark.parametrize("reverse", [False, True])
def test_sell_matches_oldest_lot_regardless_of_buy_order(matcher, txn, reverse) -> None:
    day1 = txn("BUY", 10, 100, day=1, id="b1")
    day2 = txn("BUY", 10, 120, day=2, id="b2")
    buys = [day2, day1] if reverse else [day1, day2]
    sell = txn("SELL", 10, 110, day=3, id="s1")

    result = matcher.match(buys, [sell])

    assert result.realized_pnl == pytest.approx(100)
    assert [t.buy_transaction_id for t in result.trades] == ["b1"]
    assert result.unmatched_quantity == 0


def test_sell_spanning_two_lots(matcher, txn) -> None:
    buys = [txn("BUY", 10, 100, day=1, id="b1"), txn("BUY", 10, 120, day=2, id="b2")]
    sell = txn("SELL", 15, 110, day=3)

    result = matcher.match(buys, [sell])

    assert result.realized_pnl == pytest.approx(100 - 50)
    assert [(t.buy_transaction_id, t.quantity) for t in result.trades] == [("b1", 10), ("b2", 5)]


def test_oversell_drops_unmatched_quantity(matcher, txn) -> None:
    buys = [txn("BUY", 10, 100, day=1)]
    sells = [txn("SELL", 15, 110, day=2)]

    result = matcher.match(buys, sells)

    assert result.realized_pnl == pytest.approx(100)
    assert sum(t.quantity for t in result.trades) == 10
    assert result.unmatched_quantity == 5


def test_sell_without_buys_contributes_nothing(matcher, txn) -> None:
    result = matcher.match([], [txn("SELL", 3, 110, day=2)])

    assert result.realized_pnl == 0
    assert result.trades == []
    assert result.unmatched_quantity == 3


def test_charges_allocated_pro_rata(matcher, txn) -> None:
    buys = [txn("BUY", 10, 100, day=1, charges=10)]
    sells = [txn("SELL", 5, 110, day=2, charges=4), txn("SELL", 5, 110, day=3, charges=4)]

    result = matcher.match(buys, sells)

    first, second = result.trades
    # Buy charges spread over the lot's original 10 units
    assert first.buy_cost == pytest.approx(505)
    assert second.buy_cost == pytest.approx(505)
    assert first.sell_proceeds == pytest.approx(546)
    assert result.realized_pnl == pytest.approx(82)


def test_sells_are_consumed_in_caller_order(matcher, txn) -> None:
    buys = [txn("BUY", 5, 100, day=1), txn("BUY", 5, 200, day=2)]
    late = txn("SELL", 5, 300, day=5, id="late")
    early = txn("SELL", 5, 150, day=3, id="early")

    result = matcher.match(buys, [late, early])

    assert [t.sell_transaction_id for t in result.trades] == ["late", "early"]
    assert result.trades[0].buy_price == 100
    assert result.realized_pnl == pytest.approx(5 * 200 + 5 * -50)


def test_equal_timestamps_keep_input_order(matcher, txn) -> None:
    buys = [txn("BUY", 5, 100, day=1, id="first"), txn("BUY", 5, 90, day=1, id="second")]

    result = matcher.match(buys, [txn("SELL", 5, 95, day=2)])

    assert result.trades[0].buy_transaction_id == "first"


def test_matching_is_deterministic_and_leaves_inputs_untouched(matcher, txn) -> None:
    buys = [txn("BUY", 10, 100, day=1), txn("BUY", 10, 120, day=2)]
    sells = [txn("SELL", 12, 130, day=3)]
    before = [t.model_dump() for t in buys + sells]

    first = matcher.match(buys, sells)
    second = matcher.match(buys, sells)

    assert first == second
    assert [t.model_dump() for t in buys + sells] == before


def test_emit_trades_false_returns_only_pnl(matcher, txn) -> None:
    result = matcher.match([txn("BUY", 1, 10, day=1)], [txn("SELL", 1, 12, day=2)], emit_trades=False)

    assert result.realized_pnl == pytest.approx(2)
    assert result.trades == []


def test_compute_realized_pnl_returns_pnl_and_pairs(txn) -> None:
    pnl, trades = compute_realized_pnl([txn("BUY", 2, 50, day=1)], [txn("SELL", 2, 45, day=2)])

    assert pnl == pytest.approx(-10)
    assert len(trades) == 1
    assert not trades[0].is_win


def test_summarize_trades_classifies_by_sign(txn) -> None:
    _, trades = compute_realized_pnl(
        [txn("BUY", 1, 100, day=1), txn("BUY", 1, 100, day=2), txn("BUY", 1, 100, day=3)],
        [txn("SELL", 1, 130, day=4), txn("SELL", 1, 90, day=5), txn("SELL", 1, 110, day=6)],
    )

    stats = summarize_trades(trades)

    assert stats.total_trades == 3
    assert stats.winning_trades == 2
    assert stats.losing_trades == 1
    assert stats.win_rate == pytest.approx(200 / 3)
    assert stats.avg_profit_per_trade == pytest.approx(10)
    assert stats.avg_win == pytest.approx(20)
    assert stats.avg_loss == pytest.approx(-10)
    assert stats.largest_win == pytest.approx(30)
    assert stats.largest_loss == pytest.approx(-10)


def test_summarize_no_trades() -> None:
    stats = summarize_trades([])

    assert stats.total_trades == 0
    assert stats.win_rate == 0


def test_fractional_lot_exhausted_by_small_sells(matcher, txn) -> None:
    buys = [txn("BUY", 0.3, 100, day=1, id="b1"), txn("BUY", 1, 200, day=2, id="b2")]
    sells = [
        txn("SELL", 0.1, 150, day=3),
        txn("SELL", 0.1, 150, day=4),
        txn("SELL", 0.1, 150, day=5),
        txn("SELL", 1, 150, day=6),
    ]

    result = matcher.match(buys, sells)
    stats = summarize_trades(result.trades)

    assert [t.buy_transaction_id for t in result.trades] == ["b1", "b1", "b1", "b2"]
    assert result.trades[-1].quantity == pytest.approx(1)
    assert stats.total_trades == 4
    assert stats.winning_trades == 3
    assert stats.losing_trades == 1
    assert result.unmatched_quantity == pytest.approx(0)
    assert result.realized_pnl == pytest.approx(15 - 50)
