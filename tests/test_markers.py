"""
Tests for chart markers and the cosmetic order book.
"""

import random

from futures_replay.domain.instrument import Instrument
from futures_replay.domain.macro import ImpactTier, MacroEvent
from futures_replay.domain.order import Direction
from futures_replay.domain.trade import TradeRecord, TradeType
from futures_replay.replay.markers import build_markers, event_marker, trade_marker
from futures_replay.replay.models import MarkerPosition, MarkerShape
from futures_replay.replay.order_book import build_order_book


def make_trade(
    trade_type: TradeType,
    direction: Direction,
    timestamp: int = 100,
    symbol: str = "rb2501",
) -> TradeRecord:
    return TradeRecord(
        id=1,
        timestamp=timestamp,
        symbol=symbol,
        trade_type=trade_type,
        direction=direction,
        price=3300,
        quantity=1,
        fee=5,
        pnl=0.0 if trade_type == TradeType.CLOSE else None,
    )


class TestTradeMarkers:
    """Tests for trade leg markers."""

    def test_buy_arrow(self) -> None:
        """Buys are red up-arrows below the bar."""
        marker = trade_marker(make_trade(TradeType.OPEN, Direction.LONG))

        assert marker.shape == MarkerShape.ARROW_UP
        assert marker.position == MarkerPosition.BELOW_BAR
        assert marker.color == "#ff4d4f"
        assert marker.text == "B"

    def test_sell_arrow(self) -> None:
        """Sells (including reversals) are green down-arrows above the bar."""
        marker = trade_marker(make_trade(TradeType.REVERSE, Direction.SHORT))

        assert marker.shape == MarkerShape.ARROW_DOWN
        assert marker.position == MarkerPosition.ABOVE_BAR
        assert marker.color == "#4caf50"
        assert marker.text == "S"

    def test_close_circle(self) -> None:
        """Closing legs are circles in the bar."""
        marker = trade_marker(make_trade(TradeType.CLOSE, Direction.SHORT))

        assert marker.shape == MarkerShape.CIRCLE
        assert marker.position == MarkerPosition.IN_BAR
        assert marker.text == "Close"


class TestBuildMarkers:
    """Tests for the combined marker list."""

    def test_sorted_and_filtered(self) -> None:
        """Markers are time-ordered and trades filtered by instrument."""
        event = MacroEvent(id="e1", timestamp=150, title="CPI", impact=ImpactTier.HIGH)
        trades = [
            make_trade(TradeType.OPEN, Direction.LONG, timestamp=200),
            make_trade(TradeType.OPEN, Direction.LONG, timestamp=50, symbol="cu2501"),
            make_trade(TradeType.CLOSE, Direction.SHORT, timestamp=100),
        ]

        markers = build_markers(trades, [event], symbol="rb2501")

        assert [m.timestamp for m in markers] == [100, 150, 200]
        assert markers[1] == event_marker(event)
        assert markers[1].impact == ImpactTier.HIGH
        assert markers[1].symbol is None


class TestOrderBook:
    """Tests for the cosmetic depth ladder."""

    def test_levels_and_rounding(self, rebar: Instrument, crude: Instrument) -> None:
        """Levels step one basis point of base price; precision follows the sector."""
        book = build_order_book(3300.0, rebar, random.Random(1), levels=3)

        assert [level.price for level in book.asks] == [3300.33, 3300.66, 3300.99]
        assert [level.price for level in book.bids] == [3299.67, 3299.34, 3299.01]

        energy_book = build_order_book(530.0, crude, random.Random(1))
        assert len(energy_book.asks) == 5
        assert all(level.price == round(level.price) for level in energy_book.asks)

    def test_same_stream_same_sizes(self, rebar: Instrument) -> None:
        """Sizes come from the supplied random stream."""
        first = build_order_book(3300.0, rebar, random.Random(5))
        second = build_order_book(3300.0, rebar, random.Random(5))

        assert first == second
