# tradebook/core/charges.py
"""
Broker charge schedule for equity delivery orders.
"""

from typing import Any, Dict, Optional
import logging

from ..errors import ValidationError
from ..models.config import ChargesConfig
from ..models.transactions import Charges, Transaction, TransactionType


logger = logging.getLogger(__name__)


def _validate_order(quantity: float, price: float) -> None:
    if quantity is None or quantity <= 0:
        raise ValidationError(f"Quantity must be greater than 0, got {quantity}", field="quantity")
    if price is None or price <= 0:
        raise ValidationError(f"Price must be greater than 0, got {price}", field="price")


class ChargeCalculator:
    """
    Estimate the charges a broker levies on an order.

    Exchange and SEBI fees apply to both sides, stamp duty to buys only, and
    GST to brokerage plus exchange and SEBI fees. Every component is rounded
    to two decimals. These are indicative figures; broker contract notes
    remain authoritative.
    """

    def __init__(self, config: Optional[ChargesConfig] = None):
        """
        Initialize charge calculator.

        Args:
            config: Rate schedule (defaults to zero-brokerage delivery rates)
        """
        self.config = config or ChargesConfig()
        logger.debug(f"ChargeCalculator initialized: {self.config.model_dump()}")

    def calculate(self, gross_amount: float, transaction_type: TransactionType) -> Charges:
        """
        Charges for one order.

        Args:
            gross_amount: Price times quantity
            transaction_type: BUY or SELL

        Returns:
            Charges breakdown
        """
        if gross_amount < 0:
            raise ValidationError(f"Gross amount cannot be negative, got {gross_amount}", field="gross_amount")

        cfg = self.config
        brokerage = gross_amount * cfg.brokerage_rate
        if cfg.brokerage_cap is not None:
            brokerage = min(brokerage, cfg.brokerage_cap)

        exchange_charges = gross_amount * cfg.exchange_rate
        sebi_charges = gross_amount * cfg.sebi_rate
        stamp_duty = gross_amount * cfg.stamp_duty_rate if TransactionType(transaction_type) == TransactionType.BUY else 0.0
        gst = (brokerage + exchange_charges + sebi_charges) * cfg.gst_rate

        return Charges(
            brokerage=round(brokerage, 2),
            exchange_charges=round(exchange_charges, 2),
            gst=round(gst, 2),
            sebi_charges=round(sebi_charges, 2),
            stamp_duty=round(stamp_duty, 2),
        )

    def order_preview(
        self,
        quantity: float,
        price: float,
        transaction_type: TransactionType,
    ) -> Dict[str, Any]:
        """
        Gross amount, charges and net amount for a prospective order.

        Raises:
            ValidationError: If quantity or price is not positive
        """
        _validate_order(quantity, price)
        transaction_type = TransactionType(transaction_type)
        gross_amount = price * quantity
        charges = self.calculate(gross_amount, transaction_type)
        if transaction_type == TransactionType.BUY:
            net_amount = gross_amount + charges.total
        else:
            net_amount = gross_amount - charges.total

        return {
            'quantity': quantity,
            'price_per_share': price,
            'transaction_type': transaction_type.value,
            'gross_amount': gross_amount,
            'charges': charges.to_dict(),
            'net_amount': net_amount
        }

    def build_transaction(self, symbol: str, transaction_type: TransactionType,
                          quantity: float, price: float, timestamp, **kwargs) -> Transaction:
        """Create a transaction with charges from this schedule."""
        _validate_order(quantity, price)
        charges = self.calculate(price * quantity, transaction_type)
        return Transaction.create(
            symbol=symbol,
            type=transaction_type,
            quantity=quantity,
            price_per_share=price,
            timestamp=timestamp,
            charges=charges,
            **kwargs
        )
