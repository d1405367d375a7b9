"""
Domain models for the futures replay engine.

These models represent the core concepts used throughout the system:
- Instrument: Tradeable futures contract and its economics
- Bar: OHLCV price data for one replay step
- MacroEvent: Scheduled calendar event shown on the chart
- Order: Resting limit/stop order
- Position: Net holding in one instrument
- TradeRecord: Executed fill leg
- AccountState: Cash balance and trade statistics
"""

from futures_replay.domain.account import AccountState
from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.instrument import Instrument, Sector
from futures_replay.domain.macro import ImpactTier, MacroEvent
from futures_replay.domain.order import Direction, Order, OrderKind
from futures_replay.domain.position import Position
from futures_replay.domain.trade import TradeRecord, TradeType

__all__ = [
    "AccountState",
    "Bar",
    "Direction",
    "ImpactTier",
    "Instrument",
    "MacroEvent",
    "Order",
    "OrderKind",
    "Position",
    "Sector",
    "Timeframe",
    "TradeRecord",
    "TradeType",
]
