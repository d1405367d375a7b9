"""
Chart markers derived from trade legs and macro events.
"""

from futures_replay.domain.macro import ImpactTier, MacroEvent
from futures_replay.domain.order import Direction
from futures_replay.domain.trade import TradeRecord, TradeType
from futures_replay.replay.models import ChartMarker, MarkerPosition, MarkerShape

# Red for buys, green for sells (exchange-terminal convention)
BUY_COLOR = "#ff4d4f"
SELL_COLOR = "#4caf50"
CLOSE_COLOR = "#ffffff"

IMPACT_COLORS = {
    ImpactTier.HIGH: "#f5222d",
    ImpactTier.MEDIUM: "#faad14",
    ImpactTier.LOW: "#8c8c8c",
}


def trade_marker(trade: TradeRecord) -> ChartMarker:
    """Marker for one trade leg: an arrow for OPEN/REVERSE, a circle for CLOSE."""
    if trade.trade_type == TradeType.CLOSE:
        return ChartMarker(
            timestamp=trade.timestamp,
            shape=MarkerShape.CIRCLE,
            position=MarkerPosition.IN_BAR,
            color=CLOSE_COLOR,
            text="Close",
            symbol=trade.symbol,
        )

    if trade.direction == Direction.LONG:
        return ChartMarker(
            timestamp=trade.timestamp,
            shape=MarkerShape.ARROW_UP,
            position=MarkerPosition.BELOW_BAR,
            color=BUY_COLOR,
            text="B",
            symbol=trade.symbol,
        )
    return ChartMarker(
        timestamp=trade.timestamp,
        shape=MarkerShape.ARROW_DOWN,
        position=MarkerPosition.ABOVE_BAR,
        color=SELL_COLOR,
        text="S",
        symbol=trade.symbol,
    )


def event_marker(event: MacroEvent) -> ChartMarker:
    """Marker for a macro event."""
    return ChartMarker(
        timestamp=event.timestamp,
        shape=MarkerShape.SQUARE,
        position=MarkerPosition.ABOVE_BAR,
        color=IMPACT_COLORS[event.impact],
        text=event.title,
        impact=event.impact,
    )


def build_markers(
    trades: list[TradeRecord],
    events: list[MacroEvent],
    symbol: str | None = None,
) -> list[ChartMarker]:
    """
    Markers for the chart, sorted by timestamp.

    Args:
        trades: Trade history
        events: Revealed macro events
        symbol: Only include trades in this instrument (all when None)
    """
    markers = [event_marker(event) for event in events]
    markers.extend(
        trade_marker(trade)
        for trade in trades
        if symbol is None or trade.symbol == symbol
    )
    # Chart libraries need markers in time order
    return sorted(markers, key=lambda marker: marker.timestamp)
