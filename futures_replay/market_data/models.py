"""
Market data models.

Defines the synthesizer's calendar input and its generated output.
"""

from dataclasses import dataclass, field
from datetime import date

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.macro import ImpactTier, MacroEvent


class ScheduledEvent(BaseModel):
    """A calendar event plus the bias it injects during generation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable event identifier")
    event_date: date = Field(..., description="Calendar date (UTC)")
    title: str = Field(..., description="Short headline")
    description: str = Field(default="", description="Longer explanation")
    impact: ImpactTier = Field(..., description="Impact tier")
    bias: float = Field(
        ...,
        description="Signed daily return bias applied on the event date",
        ge=-0.2,
        le=0.2,
    )

    def to_macro_event(self, timestamp: int) -> MacroEvent:
        """Build the display record aligned to a generated bar."""
        return MacroEvent(
            id=self.id,
            timestamp=timestamp,
            title=self.title,
            description=self.description,
            impact=self.impact,
        )


@dataclass
class MarketData:
    """
    Generated bar sequences for every catalog instrument.

    All sequences share the same timestamps, so one cursor indexes every
    instrument.
    """

    start_date: date
    timeframe: Timeframe
    bars: dict[str, list[Bar]] = field(default_factory=dict)
    events: list[MacroEvent] = field(default_factory=list)
    seed: int | None = None

    @property
    def total_bars(self) -> int:
        """Bars per instrument (0 when nothing could be generated)."""
        if not self.bars:
            return 0
        return len(next(iter(self.bars.values())))

    @property
    def is_empty(self) -> bool:
        """Check if generation produced no bars."""
        return self.total_bars == 0

    @property
    def symbols(self) -> list[str]:
        """Instrument codes with data."""
        return list(self.bars.keys())

    def series(self, symbol: str) -> list[Bar]:
        """
        Full bar sequence for ``symbol``.

        Raises:
            KeyError: If the symbol has no data
        """
        try:
            return self.bars[symbol]
        except KeyError as exc:
            raise KeyError(f"No bars generated for {symbol}") from exc

    def bar_at(self, symbol: str, index: int) -> Bar | None:
        """Bar at ``index`` for ``symbol``, or None when out of range."""
        series = self.bars.get(symbol)
        if series is None or index < 0 or index >= len(series):
            return None
        return series[index]

    def closes_at(self, index: int) -> dict[str, float]:
        """Close price of every instrument at ``index``."""
        return {
            symbol: series[index].close
            for symbol, series in self.bars.items()
            if 0 <= index < len(series)
        }

    def timestamp_at(self, index: int) -> int | None:
        """Shared bar timestamp at ``index``."""
        if not self.bars or index < 0 or index >= self.total_bars:
            return None
        return next(iter(self.bars.values()))[index].timestamp

    def events_until(self, timestamp: int) -> list[MacroEvent]:
        """Events already revealed at ``timestamp``."""
        return [event for event in self.events if event.timestamp <= timestamp]

    def to_frame(self, symbol: str, end_index: int | None = None) -> pd.DataFrame:
        """
        Bars for ``symbol`` as a DataFrame indexed by UTC timestamp.

        Args:
            symbol: Instrument code
            end_index: Last index to include (inclusive); all bars when None

        Returns:
            DataFrame with open/high/low/close/volume columns
        """
        series = self.series(symbol)
        if end_index is not None:
            series = series[: end_index + 1]

        df = pd.DataFrame(
            [
                {
                    "timestamp": bar.timestamp,
                    "open": bar.open,
                    "high": bar.high,
                    "low": bar.low,
                    "close": bar.close,
                    "volume": bar.volume,
                }
                for bar in series
            ],
            columns=["timestamp", "open", "high", "low", "close", "volume"],
        )
        df["timestamp"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
        return df.set_index("timestamp")
