"""
Configuration models for the backtesting engine and ledger.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, date

from .market_data import IndicatorKind


class ConditionOperator(str, Enum):
    """Comparison applied by an entry condition."""
    LT = "<"
    GT = ">"
    EQ = "="
    CROSSOVER = "crossover"
    CROSSUNDER = "crossunder"


class Combinator(str, Enum):
    """How a condition joins the result of the conditions before it."""
    AND = "AND"
    OR = "OR"


class ExitRuleType(str, Enum):
    """Exit rule kind."""
    PROFIT_TARGET = "profit_target"
    STOP_LOSS = "stop_loss"
    TIME_BASED = "time_based"


class EntryCondition(BaseModel):
    """Single entry condition, e.g. RSI < 30."""
    indicator: IndicatorKind = Field(..., description="Indicator to test")
    operator: ConditionOperator = Field(..., description="Comparison operator")
    value: float = Field(default=0.0, description="Threshold (ignored by crossover/crossunder)")
    combinator: Combinator = Field(default=Combinator.AND, description="Join with previous result")

    @field_validator("indicator", mode="before")
    @classmethod
    def normalize_indicator(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("combinator", mode="before")
    @classmethod
    def normalize_combinator(cls, v):
        if v in ("", None):
            return Combinator.AND
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v):
        if v in ("", None):
            return 0.0
        return v


class ExitRule(BaseModel):
    """Exit rule: percentage for profit_target/stop_loss, candles for time_based."""
    type: ExitRuleType = Field(..., description="Exit rule type")
    value: float = Field(..., ge=0, description="Percentage or candle count")


class BacktestConfig(BaseModel):
    """Backtest run configuration."""
    strategy_name: str = Field(default="Custom Strategy", description="Strategy name")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    start_date: date = Field(..., description="Start date (YYYY-MM-DD)")
    end_date: date = Field(..., description="End date (YYYY-MM-DD)")
    initial_capital: float = Field(default=100000.0, gt=0, description="Initial cash amount")
    entry_conditions: List[EntryCondition] = Field(default_factory=list, description="Ordered entry conditions")
    exit_rules: List[ExitRule] = Field(default_factory=list, description="Ordered exit rules")
    interval: str = Field(default="1d", description="Candle interval")
    max_period_days: int = Field(default=730, gt=0, description="Maximum backtest span in days")
    show_progress: bool = Field(default=False, description="Show a progress bar while simulating")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_date_range(self) -> "BacktestConfig":
        if self.start_date >= self.end_date:
            raise ValueError("end_date must be after start_date")
        if (self.end_date - self.start_date).days > self.max_period_days:
            raise ValueError(f"Backtest period cannot exceed {self.max_period_days} days")
        return self


class ChargesConfig(BaseModel):
    """Broker charge schedule for equity delivery, as fractions of gross amount."""
    brokerage_rate: float = Field(default=0.0, ge=0, description="Brokerage rate")
    brokerage_cap: Optional[float] = Field(default=None, ge=0, description="Maximum brokerage per order")
    exchange_rate: float = Field(default=0.0000325, ge=0, description="Exchange transaction charge rate")
    sebi_rate: float = Field(default=0.000001, ge=0, description="SEBI fee rate")
    stamp_duty_rate: float = Field(default=0.00015, ge=0, description="Stamp duty rate (BUY only)")
    gst_rate: float = Field(default=0.18, ge=0, description="GST on brokerage and exchange/SEBI charges")


class DataConfig(BaseModel):
    """Synthetic data source configuration."""
    seed: int = Field(default=42, description="Random seed for reproducibility")
    initial_price: float = Field(default=2500.0, gt=0, description="Starting price")
    volatility: float = Field(default=0.02, ge=0, description="Daily volatility")
    trend: float = Field(default=0.0001, description="Daily drift")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")
    file: Optional[str] = Field(default=None, description="Log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Logging level must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Main application configuration."""
    backtest: BacktestConfig
    data: DataConfig = Field(default_factory=DataConfig)
    charges: ChargesConfig = Field(default_factory=ChargesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def run_id(self) -> str:
        """Generate a unique run ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        strategy = self.backtest.strategy_name.strip().lower().replace(" ", "_")
        return f"{self.backtest.symbol}_{strategy}_{timestamp}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump(mode='json')

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'AppConfig':
        """Create from dictionary."""
        return cls(**config_dict)
