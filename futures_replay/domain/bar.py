"""
Bar (OHLCV) domain model.

Represents a single price bar with open, high, low, close, and volume.
Bars are immutable once generated so a replay can never rewrite history.
"""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Timeframe(str, Enum):
    """Supported replay timeframes."""

    M15 = "15m"  # 15 minutes
    H1 = "1h"  # 1 hour
    H4 = "4h"  # 4 hours
    D1 = "1D"  # 1 day

    @property
    def step_seconds(self) -> int:
        """Return the fixed bar step in seconds."""
        mapping = {
            "15m": 900,
            "1h": 3600,
            "4h": 14400,
            "1D": 86400,
        }
        return mapping[self.value]

    @property
    def volatility_multiplier(self) -> float:
        """Return the volatility scale applied to per-bar moves."""
        mapping = {
            "15m": 0.2,
            "1h": 0.4,
            "4h": 0.6,
            "1D": 1.0,
        }
        return mapping[self.value]

    @property
    def is_intraday(self) -> bool:
        """Check if several bars share one calendar date."""
        return self.step_seconds < 86400


class Bar(BaseModel):
    """
    A single OHLCV bar.

    Timestamps are unix seconds (UTC) of the bar open.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(
        ...,
        description="Instrument code",
    )
    timeframe: Timeframe = Field(
        ...,
        description="Bar timeframe",
    )
    timestamp: int = Field(
        ...,
        description="Bar open time (unix seconds, UTC)",
        ge=0,
    )

    open: float = Field(..., description="Opening price", gt=0)
    high: float = Field(..., description="Highest price", gt=0)
    low: float = Field(..., description="Lowest price", gt=0)
    close: float = Field(..., description="Closing price", gt=0)
    volume: float = Field(
        default=0.0,
        description="Traded volume",
        ge=0,
    )

    @model_validator(mode="after")
    def check_ohlc_envelope(self) -> "Bar":
        """Validate high/low enclose open and close."""
        if self.high < max(self.open, self.close):
            raise ValueError("high must be >= max(open, close)")
        if self.low > min(self.open, self.close):
            raise ValueError("low must be <= min(open, close)")
        return self

    @property
    def dt(self) -> datetime:
        """Bar open time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC)

    @property
    def trade_date(self) -> date:
        """UTC calendar date of the bar open."""
        return self.dt.date()

    @property
    def range(self) -> float:
        """Calculate bar range (high - low)."""
        return self.high - self.low

    @property
    def change_pct(self) -> float:
        """Close-over-open change in percent."""
        return (self.close - self.open) / self.open * 100.0

    @property
    def is_bullish(self) -> bool:
        """Check if bar is bullish (close > open)."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if bar is bearish (close < open)."""
        return self.close < self.open

    def __hash__(self) -> int:
        return hash((self.symbol, self.timeframe, self.timestamp))
