# tradebook/core/dashboard.py
"""
Portfolio-level rollup of transactions and positions for dashboards.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from ..models.results import (
    DashboardMetrics,
    MatchedTrade,
    PnLTrendPoint,
    StockPerformance,
    StockPnLSummary,
)
from ..models.transactions import Transaction, TransactionType
from ..utils.time_helpers import DEFAULT_TREND_PERIOD, period_start
from .fifo import FIFOMatcher, summarize_trades
from .holdings import Position


logger = logging.getLogger(__name__)

TOP_PERFORMERS_LIMIT = 5

SymbolGroup = Tuple[List[Transaction], List[Transaction]]


def group_by_symbol(transactions: Iterable[Transaction]) -> "OrderedDict[str, SymbolGroup]":
    """
    Split transactions into per-symbol (buys, sells) lists.

    Transactions are put in timestamp order first (stable for equal
    timestamps), the order a transaction store returns them in.
    """
    ordered = sorted(transactions, key=lambda t: t.timestamp)
    groups: "OrderedDict[str, SymbolGroup]" = OrderedDict()
    for txn in ordered:
        buys, sells = groups.setdefault(txn.symbol, ([], []))
        if txn.type == TransactionType.BUY:
            buys.append(txn)
        else:
            sells.append(txn)
    return groups


def _positions_by_symbol(positions: Optional[Iterable[Position]]) -> Dict[str, Position]:
    return {p.symbol: p for p in positions or []}


def _company_names(transactions: Iterable[Transaction]) -> Dict[str, Optional[str]]:
    names: Dict[str, Optional[str]] = {}
    for txn in transactions:
        if names.get(txn.symbol) is None:
            names[txn.symbol] = txn.company_name
    return names


def aggregate_metrics(
    transactions: Sequence[Transaction],
    positions: Optional[Iterable[Position]] = None,
) -> DashboardMetrics:
    """
    Dashboard figures for one user's full history and current positions.

    Unrealized P&L is read from the positions as supplied; refreshing it
    from live prices is the caller's job.

    Args:
        transactions: Every transaction the user has recorded
        positions: Current positions, with unrealized P&L already set

    Returns:
        DashboardMetrics
    """
    transactions = list(transactions)
    positions = list(positions or [])
    matcher = FIFOMatcher()

    total_invested = sum(abs(t.net_amount) for t in transactions if t.type == TransactionType.BUY)
    total_proceeds = sum(abs(t.net_amount) for t in transactions if t.type == TransactionType.SELL)

    realized_by_symbol: Dict[str, float] = {}
    pairs: List[MatchedTrade] = []
    for symbol, (buys, sells) in group_by_symbol(transactions).items():
        result = matcher.match(buys, sells)
        realized_by_symbol[symbol] = result.realized_pnl
        pairs.extend(result.trades)

    realized_pnl = sum(realized_by_symbol.values())
    unrealized_pnl = sum(p.unrealized_pnl or 0.0 for p in positions)
    current_value = sum(
        p.current_value if p.current_value else p.total_invested for p in positions
    )

    total_pnl = realized_pnl + unrealized_pnl
    net_invested = total_invested - total_proceeds
    return_percent = (total_pnl / net_invested * 100) if net_invested > 0 else 0.0

    performance = _stock_performance(realized_by_symbol, transactions, positions)
    top = sorted((s for s in performance if s.total_pnl > 0), key=lambda s: s.total_pnl, reverse=True)
    worst = sorted((s for s in performance if s.total_pnl < 0), key=lambda s: s.total_pnl)

    logger.debug(
        f"Aggregated {len(transactions)} transactions across {len(realized_by_symbol)} symbols: "
        f"realized {realized_pnl:.2f}, unrealized {unrealized_pnl:.2f}"
    )

    return DashboardMetrics(
        total_invested=total_invested,
        total_proceeds=total_proceeds,
        net_invested=net_invested,
        current_portfolio_value=current_value,
        realized_pnl=realized_pnl,
        unrealized_pnl=unrealized_pnl,
        total_pnl=total_pnl,
        return_percent=return_percent,
        trade_statistics=summarize_trades(pairs),
        top_performers=top[:TOP_PERFORMERS_LIMIT],
        worst_performers=worst[:TOP_PERFORMERS_LIMIT],
    )


def _stock_performance(
    realized_by_symbol: Dict[str, float],
    transactions: Sequence[Transaction],
    positions: Sequence[Position],
) -> List[StockPerformance]:
    held = _positions_by_symbol(positions)
    names = _company_names(transactions)

    performance = []
    for symbol, realized in realized_by_symbol.items():
        position = held.get(symbol)
        unrealized = (position.unrealized_pnl or 0.0) if position else 0.0
        performance.append(StockPerformance(
            symbol=symbol,
            company_name=names.get(symbol),
            realized_pnl=realized,
            unrealized_pnl=unrealized,
            total_pnl=realized + unrealized,
        ))
    return performance


def stock_wise_pnl(
    transactions: Sequence[Transaction],
    positions: Optional[Iterable[Position]] = None,
) -> List[StockPnLSummary]:
    """Per-symbol quantities, values and P&L, in order of first activity."""
    held = _positions_by_symbol(positions)
    names = _company_names(transactions)
    matcher = FIFOMatcher()

    summaries = []
    for symbol, (buys, sells) in group_by_symbol(transactions).items():
        buy_qty = sum(t.quantity for t in buys)
        sell_qty = sum(t.quantity for t in sells)
        buy_value = sum(t.net_amount for t in buys)
        sell_value = sum(t.net_amount for t in sells)
        realized = matcher.match(buys, sells, emit_trades=False).realized_pnl
        position = held.get(symbol)
        unrealized = (position.unrealized_pnl or 0.0) if position else 0.0

        summaries.append(StockPnLSummary(
            symbol=symbol,
            company_name=names.get(symbol) or symbol,
            total_buy_quantity=buy_qty,
            total_sell_quantity=sell_qty,
            current_holding=buy_qty - sell_qty,
            total_buy_value=buy_value,
            total_sell_value=sell_value,
            realized_pnl=realized,
            unrealized_pnl=unrealized,
            total_pnl=realized + unrealized,
            avg_buy_price=buy_value / buy_qty if buy_qty > 0 else 0.0,
            avg_sell_price=sell_value / sell_qty if sell_qty > 0 else 0.0,
        ))
    return summaries


def _as_utc(stamp: datetime) -> datetime:
    # Naive timestamps are taken as UTC when mixed with aware ones
    return stamp.replace(tzinfo=timezone.utc) if stamp.tzinfo is None else stamp


def pnl_trend(
    transactions: Iterable[Transaction],
    period: str = DEFAULT_TREND_PERIOD,
    now: Optional[datetime] = None,
) -> List[PnLTrendPoint]:
    """
    Cumulative signed cash flow per day over a lookback window.

    Buys count as outflows and sells as inflows of their net amount. This
    tracks cash movement, not mark-to-market P&L.

    Args:
        transactions: Transactions to bucket
        period: 1W, 1M, 3M, 6M, 1Y or ALL (unknown values mean 1M)
        now: End of the window (defaults to the current time)

    Naive and timezone-aware timestamps may be mixed; naive ones are read as
    UTC.
    """
    transactions = list(transactions)
    aware = any(t.timestamp.tzinfo is not None for t in transactions) or (
        now is not None and now.tzinfo is not None
    )
    if now is None:
        now = datetime.now(timezone.utc) if aware else datetime.now()

    start = period_start(period, _as_utc(now) if aware else now)
    daily: Dict = {}
    for txn in transactions:
        stamp = _as_utc(txn.timestamp) if aware else txn.timestamp
        if start is not None and stamp < start:
            continue
        day = txn.timestamp.date()
        amount = abs(txn.net_amount)
        daily[day] = daily.get(day, 0.0) + (-amount if txn.type == TransactionType.BUY else amount)

    trend = []
    cumulative = 0.0
    for day in sorted(daily):
        cumulative += daily[day]
        trend.append(PnLTrendPoint(date=day, pnl=cumulative))
    return trend
