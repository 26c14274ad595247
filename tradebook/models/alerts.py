"""
Exit strategy and price alert models for held positions.
"""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AlertType(str, Enum):
    """Exit strategy alert kind."""
    PROFIT_TARGET = "PROFIT_TARGET"
    STOP_LOSS = "STOP_LOSS"


class ExitStrategy(BaseModel):
    """
    Profit-target and stop-loss levels attached to a holding.

    Target prices are fixed from the average buy price when the strategy is
    set. Each alert fires once; the triggered flags stay set until the
    strategy is saved again or reset.
    """
    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Trading symbol")
    profit_target_pct: Optional[float] = Field(None, gt=0, description="Profit target percentage")
    profit_target_price: Optional[float] = Field(None, gt=0, description="Price that fires the profit alert")
    stop_loss_pct: Optional[float] = Field(None, gt=0, description="Stop loss percentage")
    stop_loss_price: Optional[float] = Field(None, gt=0, description="Price that fires the stop loss alert")
    alert_enabled: bool = Field(default=True, description="Whether alerts are checked")
    profit_alert_triggered: bool = Field(default=False, description="Profit alert already fired")
    stop_loss_alert_triggered: bool = Field(default=False, description="Stop loss alert already fired")

    @property
    def is_pending(self) -> bool:
        """Enabled with at least one alert still able to fire."""
        return self.alert_enabled and not (self.profit_alert_triggered and self.stop_loss_alert_triggered)

    def reset(self) -> "ExitStrategy":
        """Copy with both alerts re-armed."""
        return self.model_copy(update={'profit_alert_triggered': False, 'stop_loss_alert_triggered': False})

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode='json')


class Alert(BaseModel):
    """A fired exit strategy alert."""
    symbol: str = Field(..., description="Trading symbol")
    company_name: Optional[str] = Field(None, description="Company name")
    type: AlertType = Field(..., description="PROFIT_TARGET or STOP_LOSS")
    target_price: float = Field(..., description="Level that was crossed")
    current_price: float = Field(..., description="Price that crossed it")
    target_percent: float = Field(default=0.0, description="Percentage the level was set from")
    quantity: float = Field(..., description="Units held")
    avg_buy_price: float = Field(..., description="Average buy price")
    unrealized_pnl: float = Field(..., description="(current - avg) * quantity")
    unrealized_pnl_pct: float = Field(..., description="(current - avg) / avg * 100")
    message: str = Field(..., description="Human-readable alert text")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the alert fired")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump(mode='json')
