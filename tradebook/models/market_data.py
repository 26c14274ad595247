"""
Market data models.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class Candle(BaseModel):
    """OHLCV candle data."""
    date: datetime = Field(..., description="Candle date")
    open: float = Field(..., gt=0, description="Opening price")
    high: float = Field(..., gt=0, description="High price")
    low: float = Field(..., gt=0, description="Low price")
    close: float = Field(..., gt=0, description="Closing price")
    volume: float = Field(default=0.0, description="Trading volume")
    symbol: Optional[str] = Field(None, description="Trading symbol")

    @property
    def typical_price(self) -> float:
        """Calculate typical price (HLC/3)."""
        return (self.high + self.low + self.close) / 3

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'date': self.date.isoformat(),
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
            'symbol': self.symbol
        }


class IndicatorKind(str, Enum):
    """Indicators a strategy condition can reference."""
    RSI = "RSI"
    MACD = "MACD"
    SMA = "SMA"
    EMA = "EMA"
    PRICE = "PRICE"


class RSIReading(BaseModel):
    """RSI(14) value for one candle."""
    model_config = ConfigDict(frozen=True)

    kind: Literal[IndicatorKind.RSI] = IndicatorKind.RSI
    value: Optional[float] = None


class MACDReading(BaseModel):
    """MACD(12, 26, 9) line, signal and histogram for one candle."""
    model_config = ConfigDict(frozen=True)

    kind: Literal[IndicatorKind.MACD] = IndicatorKind.MACD
    value: Optional[float] = Field(None, description="MACD line")
    signal: Optional[float] = Field(None, description="Signal line")
    histogram: Optional[float] = Field(None, description="MACD minus signal")


class SMAReading(BaseModel):
    """SMA(50) value for one candle."""
    model_config = ConfigDict(frozen=True)

    kind: Literal[IndicatorKind.SMA] = IndicatorKind.SMA
    value: Optional[float] = None


class EMAReading(BaseModel):
    """EMA(20) value for one candle."""
    model_config = ConfigDict(frozen=True)

    kind: Literal[IndicatorKind.EMA] = IndicatorKind.EMA
    value: Optional[float] = None


class PriceReading(BaseModel):
    """Close price for one candle."""
    model_config = ConfigDict(frozen=True)

    kind: Literal[IndicatorKind.PRICE] = IndicatorKind.PRICE
    value: Optional[float] = None


IndicatorReading = Annotated[
    Union[RSIReading, MACDReading, SMAReading, EMAReading, PriceReading],
    Field(discriminator="kind"),
]


class IndicatorSnapshot(BaseModel):
    """
    Indicator readings aligned to a single candle.

    A reading whose value is None is still inside its warm-up window.
    """
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., description="Candle index in the series")
    date: datetime = Field(..., description="Candle date")
    rsi: RSIReading = Field(default_factory=RSIReading)
    macd: MACDReading = Field(default_factory=MACDReading)
    sma: SMAReading = Field(default_factory=SMAReading)
    ema: EMAReading = Field(default_factory=EMAReading)
    price: PriceReading = Field(default_factory=PriceReading)

    def reading(self, kind: IndicatorKind) -> IndicatorReading:
        """Return the reading for an indicator kind."""
        return {
            IndicatorKind.RSI: self.rsi,
            IndicatorKind.MACD: self.macd,
            IndicatorKind.SMA: self.sma,
            IndicatorKind.EMA: self.ema,
            IndicatorKind.PRICE: self.price,
        }[IndicatorKind(kind)]

    def value(self, kind: IndicatorKind) -> Optional[float]:
        """Primary value of an indicator, or None during warm-up."""
        return self.reading(kind).value
