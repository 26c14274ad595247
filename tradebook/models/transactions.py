"""
Transaction models.
"""

import uuid
from enum import Enum
from typing import Optional
from datetime import datetime

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ValidationError


class TransactionType(str, Enum):
    """Transaction side."""
    BUY = "BUY"
    SELL = "SELL"


class TransactionSource(str, Enum):
    """Where a transaction came from."""
    APP_EXECUTED = "APP_EXECUTED"
    MANUALLY_RECORDED = "MANUALLY_RECORDED"


class Charges(BaseModel):
    """Charges breakdown for a single transaction."""
    model_config = ConfigDict(frozen=True)

    brokerage: float = Field(default=0.0, ge=0, description="Brokerage")
    exchange_charges: float = Field(default=0.0, ge=0, description="Exchange transaction charges")
    gst: float = Field(default=0.0, ge=0, description="GST on brokerage and exchange charges")
    sebi_charges: float = Field(default=0.0, ge=0, description="SEBI regulatory fee")
    stamp_duty: float = Field(default=0.0, ge=0, description="Stamp duty")

    @property
    def total(self) -> float:
        """Sum of all charge components, rounded to 2 dp."""
        return round(self.brokerage + self.exchange_charges + self.gst + self.sebi_charges + self.stamp_duty, 2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'brokerage': self.brokerage,
            'exchange_charges': self.exchange_charges,
            'gst': self.gst,
            'sebi_charges': self.sebi_charges,
            'stamp_duty': self.stamp_duty,
            'total': self.total
        }


class Transaction(BaseModel):
    """Immutable broker transaction record."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Transaction ID")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    company_name: Optional[str] = Field(None, description="Company name")
    type: TransactionType = Field(..., description="Transaction type (BUY/SELL)")
    quantity: float = Field(..., gt=0, description="Quantity, may be fractional")
    price_per_share: float = Field(..., gt=0, description="Price per unit")
    charges: Charges = Field(default_factory=Charges, description="Charges breakdown")
    total_charges: float = Field(default=0.0, ge=0, description="Sum of charges")
    gross_amount: float = Field(..., description="Price times quantity")
    net_amount: float = Field(..., description="Gross plus charges for BUY, minus charges for SELL")
    timestamp: datetime = Field(..., description="Execution timestamp")
    source: TransactionSource = Field(
        default=TransactionSource.MANUALLY_RECORDED, description="Transaction provenance"
    )
    order_id_ref: Optional[str] = Field(None, description="Broker order reference")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def is_buy(self) -> bool:
        return self.type == TransactionType.BUY

    @classmethod
    def create(
        cls,
        symbol: str,
        type: TransactionType,
        quantity: float,
        price_per_share: float,
        timestamp: datetime,
        charges: Optional[Charges] = None,
        source: TransactionSource = TransactionSource.MANUALLY_RECORDED,
        company_name: Optional[str] = None,
        order_id_ref: Optional[str] = None,
        id: Optional[str] = None,
    ) -> "Transaction":
        """
        Build a transaction, deriving gross, total charges and net amounts.

        Raises:
            ValidationError: If quantity or price is not positive, or any
                field fails model validation.
        """
        if quantity is None or quantity <= 0:
            raise ValidationError(f"Quantity must be greater than 0, got {quantity}", field="quantity")
        if price_per_share is None or price_per_share <= 0:
            raise ValidationError(
                f"Price must be greater than 0, got {price_per_share}", field="price_per_share"
            )

        charges = charges or Charges()
        gross_amount = price_per_share * quantity
        total_charges = charges.total
        try:
            transaction_type = TransactionType(type)
        except ValueError as e:
            raise ValidationError(f"Invalid transaction type: {type}", field="type") from e
        if transaction_type == TransactionType.BUY:
            net_amount = gross_amount + total_charges
        else:
            net_amount = gross_amount - total_charges

        try:
            return cls(
                id=id or str(uuid.uuid4()),
                symbol=symbol,
                company_name=company_name,
                type=transaction_type,
                quantity=quantity,
                price_per_share=price_per_share,
                charges=charges,
                total_charges=total_charges,
                gross_amount=gross_amount,
                net_amount=net_amount,
                timestamp=timestamp,
                source=source,
                order_id_ref=order_id_ref,
            )
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid transaction: {first.get('msg')}", field=field or None) from e

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'symbol': self.symbol,
            'company_name': self.company_name,
            'type': self.type.value,
            'quantity': self.quantity,
            'price_per_share': self.price_per_share,
            'charges': self.charges.to_dict(),
            'total_charges': self.total_charges,
            'gross_amount': self.gross_amount,
            'net_amount': self.net_amount,
            'timestamp': self.timestamp.isoformat(),
            'source': self.source.value,
            'order_id_ref': self.order_id_ref
        }
