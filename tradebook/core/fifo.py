# tradebook/core/fifo.py
"""
FIFO realized P&L matching of sells against the oldest open buy lots.
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Iterable, List, Sequence, Tuple
import logging

import numpy as np

from ..models.results import FIFOResult, MatchedTrade, TradeStatistics
from ..models.transactions import Transaction
from .holdings import QUANTITY_EPSILON


logger = logging.getLogger(__name__)


@dataclass
class Lot:
    """Working copy of a buy transaction consumed during one matching run."""
    transaction_id: str
    timestamp: datetime
    price: float
    quantity: float
    total_charges: float
    remaining: float
    sequence: int

    @classmethod
    def from_transaction(cls, transaction: Transaction, sequence: int) -> "Lot":
        return cls(
            transaction_id=transaction.id,
            timestamp=transaction.timestamp,
            price=transaction.price_per_share,
            quantity=transaction.quantity,
            total_charges=transaction.total_charges,
            remaining=transaction.quantity,
            sequence=sequence,
        )


class FIFOMatcher:
    """
    Match sells to buys first-in, first-out for a single symbol.

    Buys are ordered by timestamp, ties keeping their input order. Sells are
    consumed in the order given; callers that want chronological matching
    pass them sorted. Charges are allocated pro-rata: buy charges over the
    lot's original quantity and sell charges over the sell's own quantity.
    Sell quantity left over once every lot is exhausted is dropped without
    contributing P&L.
    """

    def match(
        self,
        buys: Iterable[Transaction],
        sells: Iterable[Transaction],
        emit_trades: bool = True,
    ) -> FIFOResult:
        """
        Run one matching pass.

        Args:
            buys: BUY transactions for one symbol
            sells: SELL transactions for the same symbol
            emit_trades: Also return each matched pair

        Returns:
            FIFOResult with realized P&L, matched pairs and unmatched quantity
        """
        lots = self._build_lots(buys)
        trades: List[MatchedTrade] = []
        realized_pnl = 0.0
        unmatched = 0.0

        for sell in sells:
            sell_remaining = sell.quantity

            while sell_remaining > QUANTITY_EPSILON and lots:
                lot = lots[0]
                match_qty = min(sell_remaining, lot.remaining)

                buy_cost = lot.price * match_qty + lot.total_charges * match_qty / lot.quantity
                sell_proceeds = (
                    sell.price_per_share * match_qty - sell.total_charges * match_qty / sell.quantity
                )
                pnl = sell_proceeds - buy_cost
                realized_pnl += pnl

                if emit_trades:
                    trades.append(MatchedTrade(
                        symbol=sell.symbol,
                        buy_transaction_id=lot.transaction_id,
                        sell_transaction_id=sell.id,
                        buy_date=lot.timestamp,
                        sell_date=sell.timestamp,
                        quantity=match_qty,
                        buy_price=lot.price,
                        sell_price=sell.price_per_share,
                        buy_cost=buy_cost,
                        sell_proceeds=sell_proceeds,
                        pnl=pnl,
                    ))

                sell_remaining -= match_qty
                lot.remaining -= match_qty
                if lot.remaining <= QUANTITY_EPSILON:
                    lots.popleft()

            if sell_remaining > QUANTITY_EPSILON:
                unmatched += sell_remaining
                logger.debug(
                    f"Sell {sell.id} on {sell.symbol} has {sell_remaining} units with no open lot"
                )

        return FIFOResult(realized_pnl=realized_pnl, trades=trades, unmatched_quantity=unmatched)

    @staticmethod
    def _build_lots(buys: Iterable[Transaction]) -> Deque[Lot]:
        lots = [Lot.from_transaction(txn, seq) for seq, txn in enumerate(buys)]
        lots.sort(key=lambda lot: (lot.timestamp, lot.sequence))
        return deque(lots)


def compute_realized_pnl(
    buys: Iterable[Transaction],
    sells: Iterable[Transaction],
) -> Tuple[float, List[MatchedTrade]]:
    """Realized P&L and matched pairs for one symbol's buys and sells."""
    result = FIFOMatcher().match(buys, sells)
    return result.realized_pnl, result.trades


def summarize_trades(trades: Sequence[MatchedTrade]) -> TradeStatistics:
    """Completed-trade statistics, classifying each matched pair by P&L sign."""
    if not trades:
        return TradeStatistics()

    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    return TradeStatistics(
        total_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(pnls) * 100,
        avg_profit_per_trade=float(np.mean(pnls)),
        avg_win=float(np.mean(wins)) if wins else 0.0,
        avg_loss=float(np.mean(losses)) if losses else 0.0,
        largest_win=float(max(pnls)),
        largest_loss=float(min(pnls)),
    )
