# tradebook/core/holdings.py
"""
Holdings ledger: folds transactions into charges-inclusive cost-basis positions.

Positions are immutable values. Every operation returns a new position (or
None once the holding is closed) and leaves persistence and per-symbol
locking to the caller.
"""

from typing import Iterable, List, Optional
from datetime import datetime
from dataclasses import dataclass, replace
import logging

from ..errors import InsufficientQuantityError, ValidationError
from ..models.alerts import Alert, AlertType, ExitStrategy
from ..models.transactions import Transaction, TransactionType


logger = logging.getLogger(__name__)

# Quantities within this of zero count as zero (fractional-unit rounding dust)
QUANTITY_EPSILON = 1e-9


@dataclass(frozen=True)
class Position:
    """Holding in a single symbol."""
    symbol: str
    quantity: float
    avg_buy_price: float
    total_invested: float
    current_price: Optional[float] = None
    unrealized_pnl: Optional[float] = None

    @property
    def current_value(self) -> Optional[float]:
        """Market value at the last supplied price."""
        if self.current_price is None:
            return None
        return self.current_price * self.quantity

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'symbol': self.symbol,
            'quantity': self.quantity,
            'avg_buy_price': self.avg_buy_price,
            'total_invested': self.total_invested,
            'current_price': self.current_price,
            'current_value': self.current_value,
            'unrealized_pnl': self.unrealized_pnl
        }


def apply_buy(
    position: Optional[Position],
    quantity: float,
    price: float,
    charges: float = 0.0,
    symbol: Optional[str] = None,
) -> Position:
    """
    Add a buy to a position, opening one if needed.

    Args:
        position: Existing position or None
        quantity: Units bought (positive)
        price: Price per unit (positive)
        charges: Total charges paid on the buy
        symbol: Symbol for a new position (defaults to the existing one)

    Returns:
        Position with the new weighted-average, charges-inclusive cost basis

    Raises:
        ValidationError: If quantity, price or charges are out of range
    """
    if quantity is None or quantity <= 0:
        raise ValidationError(f"Quantity must be greater than 0, got {quantity}", field="quantity")
    if price is None or price <= 0:
        raise ValidationError(f"Price must be greater than 0, got {price}", field="price")
    if charges is None or charges < 0:
        raise ValidationError(f"Charges cannot be negative, got {charges}", field="charges")

    cost = price * quantity + charges

    if position is None:
        if not symbol:
            raise ValidationError("Symbol is required to open a position", field="symbol")
        new_position = Position(
            symbol=symbol.strip().upper(),
            quantity=quantity,
            avg_buy_price=price,
            total_invested=cost,
        )
        logger.debug(f"Opened {new_position.symbol}: {quantity} @ {price} (charges {charges})")
        return new_position

    new_quantity = position.quantity + quantity
    new_invested = position.total_invested + cost
    new_position = replace(
        position,
        quantity=new_quantity,
        avg_buy_price=new_invested / new_quantity,
        total_invested=new_invested,
    )
    logger.debug(
        f"Added to {position.symbol}: {quantity} @ {price}, "
        f"qty {new_quantity}, avg {new_position.avg_buy_price:.4f}"
    )
    return new_position


def apply_sell(position: Optional[Position], quantity: float) -> Optional[Position]:
    """
    Reduce a position by a sell.

    A sell that reaches or exceeds the held quantity closes the position and
    returns None; overselling is not rejected here (see check_sell_quantity).
    The average buy price is never changed by a sell.
    """
    if quantity is None or quantity <= 0:
        raise ValidationError(f"Quantity must be greater than 0, got {quantity}", field="quantity")

    if position is None:
        logger.warning(f"Sell of {quantity} with no open position ignored")
        return None

    new_quantity = position.quantity - quantity
    if new_quantity <= QUANTITY_EPSILON:
        if new_quantity < -QUANTITY_EPSILON:
            logger.warning(
                f"Oversell on {position.symbol}: sold {quantity}, held {position.quantity}; closing position"
            )
        logger.debug(f"Closed {position.symbol}")
        return None

    new_position = replace(
        position,
        quantity=new_quantity,
        total_invested=position.avg_buy_price * new_quantity,
    )
    logger.debug(f"Reduced {position.symbol} by {quantity}, qty {new_quantity}")
    return new_position


def apply_transaction(
    position: Optional[Position],
    kind: TransactionType,
    quantity: float,
    price: float,
    charges: float = 0.0,
    symbol: Optional[str] = None,
) -> Optional[Position]:
    """Dispatch a BUY or SELL to the ledger."""
    try:
        kind = TransactionType(kind)
    except ValueError as e:
        raise ValidationError(f"Invalid transaction type: {kind}", field="kind") from e

    if kind == TransactionType.BUY:
        return apply_buy(position, quantity, price, charges, symbol=symbol)

    if price is None or price <= 0:
        raise ValidationError(f"Price must be greater than 0, got {price}", field="price")
    return apply_sell(position, quantity)


def reverse_transaction(
    position: Optional[Position],
    transaction: Transaction,
) -> Optional[Position]:
    """
    Undo a deleted transaction by replaying its inverse.

    Only exact when the transaction was the most recent one applied to the
    symbol. For older deletions use rebuild_position over the remaining
    history instead.
    """
    inverse = TransactionType.SELL if transaction.type == TransactionType.BUY else TransactionType.BUY
    logger.debug(f"Reversing {transaction.type.value} {transaction.id} on {transaction.symbol} as {inverse.value}")
    return apply_transaction(
        position,
        inverse,
        transaction.quantity,
        transaction.price_per_share,
        transaction.total_charges,
        symbol=transaction.symbol,
    )


def check_sell_quantity(position: Optional[Position], quantity: float) -> None:
    """
    Reject a sell larger than the current holding.

    Raises:
        InsufficientQuantityError: If there is no holding or it is too small
    """
    held = position.quantity if position is not None else 0.0
    if quantity - held > QUANTITY_EPSILON:
        raise InsufficientQuantityError(
            f"Insufficient quantity. Available: {held}, requested: {quantity}",
            field="quantity",
        )


def mark_to_market(position: Position, last_price: float) -> Position:
    """Attach a live price and the resulting unrealized P&L."""
    if last_price is None or last_price <= 0:
        raise ValidationError(f"Price must be greater than 0, got {last_price}", field="last_price")
    return replace(
        position,
        current_price=last_price,
        unrealized_pnl=last_price * position.quantity - position.total_invested,
    )


def rebuild_position(transactions: Iterable[Transaction]) -> Optional[Position]:
    """Fold a symbol's transaction history, oldest first, into a position."""
    position: Optional[Position] = None
    ordered = sorted(enumerate(transactions), key=lambda item: (item[1].timestamp, item[0]))
    for _, txn in ordered:
        position = apply_transaction(
            position,
            txn.type,
            txn.quantity,
            txn.price_per_share,
            txn.total_charges,
            symbol=txn.symbol,
        )
    return position


def _validate_pct(value: Optional[float], field: str) -> None:
    if value is not None and value <= 0:
        raise ValidationError(f"{field} must be greater than 0, got {value}", field=field)


def set_exit_strategy(
    position: Position,
    profit_target_pct: Optional[float] = None,
    stop_loss_pct: Optional[float] = None,
    alert_enabled: bool = True,
) -> ExitStrategy:
    """
    Build an exit strategy with target prices fixed from the average buy price.

    Saving a strategy again re-arms both alerts, so callers replace the old
    strategy with the one returned here.

    Raises:
        ValidationError: If a percentage is zero or negative, or the stop
            loss is 100% or more
    """
    _validate_pct(profit_target_pct, "profit_target_pct")
    _validate_pct(stop_loss_pct, "stop_loss_pct")
    if stop_loss_pct is not None and stop_loss_pct >= 100:
        raise ValidationError(f"stop_loss_pct must be below 100, got {stop_loss_pct}", field="stop_loss_pct")

    avg = position.avg_buy_price
    return ExitStrategy(
        symbol=position.symbol,
        profit_target_pct=profit_target_pct,
        profit_target_price=avg * (1 + profit_target_pct / 100) if profit_target_pct else None,
        stop_loss_pct=stop_loss_pct,
        stop_loss_price=avg * (1 - stop_loss_pct / 100) if stop_loss_pct else None,
        alert_enabled=alert_enabled,
    )


def _alert(
    position: Position,
    alert_type: AlertType,
    target_price: float,
    target_pct: Optional[float],
    company_name: Optional[str],
    now: datetime,
) -> Alert:
    current = position.current_price
    avg = position.avg_buy_price
    name = company_name or position.symbol
    if alert_type == AlertType.PROFIT_TARGET:
        message = f"{name} has reached your profit target of {target_pct}% ({target_price:.2f})"
    else:
        message = f"{name} has hit your stop loss of {target_pct}% ({target_price:.2f})"

    return Alert(
        symbol=position.symbol,
        company_name=company_name,
        type=alert_type,
        target_price=target_price,
        current_price=current,
        target_percent=target_pct or 0.0,
        quantity=position.quantity,
        avg_buy_price=avg,
        unrealized_pnl=(current - avg) * position.quantity,
        unrealized_pnl_pct=(current - avg) / avg * 100,
        message=message,
        timestamp=now,
    )


def check_exit_strategy(
    position: Position,
    strategy: ExitStrategy,
    company_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[Alert]:
    """
    Alerts a marked position fires against its exit strategy.

    Nothing fires when alerts are disabled or the position has no current
    price. An alert already triggered is skipped; record the returned alerts
    with mark_alerts_triggered so they stay one-shot.

    Args:
        position: Position with current_price set (see mark_to_market)
        strategy: Exit strategy for the same symbol
        company_name: Name used in alert messages
        now: Alert timestamp (defaults to the current time)
    """
    if strategy.symbol != position.symbol:
        raise ValidationError(
            f"Exit strategy for {strategy.symbol} checked against {position.symbol}", field="symbol"
        )
    if not strategy.alert_enabled or not position.current_price:
        return []

    now = now or datetime.now()
    price = position.current_price
    alerts: List[Alert] = []

    if (
        strategy.profit_target_price
        and not strategy.profit_alert_triggered
        and price >= strategy.profit_target_price
    ):
        alerts.append(_alert(
            position, AlertType.PROFIT_TARGET, strategy.profit_target_price,
            strategy.profit_target_pct, company_name, now,
        ))

    if (
        strategy.stop_loss_price
        and not strategy.stop_loss_alert_triggered
        and price <= strategy.stop_loss_price
    ):
        alerts.append(_alert(
            position, AlertType.STOP_LOSS, strategy.stop_loss_price,
            strategy.stop_loss_pct, company_name, now,
        ))

    for alert in alerts:
        logger.info(f"{alert.type.value} alert on {position.symbol} at {price}")
    return alerts


def mark_alerts_triggered(strategy: ExitStrategy, alerts: Iterable[Alert]) -> ExitStrategy:
    """Copy of the strategy with the fired alert types flagged."""
    fired = {a.type for a in alerts}
    if not fired:
        return strategy
    return strategy.model_copy(update={
        'profit_alert_triggered': strategy.profit_alert_triggered or AlertType.PROFIT_TARGET in fired,
        'stop_loss_alert_triggered': strategy.stop_loss_alert_triggered or AlertType.STOP_LOSS in fired,
    })
