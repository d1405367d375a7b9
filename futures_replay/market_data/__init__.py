"""
Synthetic market data for replay sessions.

Provides:
- MarketDataSynthesizer: correlated multi-instrument bar generation
- MarketData: generated bars per instrument plus aligned macro events
- MACRO_CALENDAR: scheduled events that bias the generated paths
"""

from futures_replay.market_data.calendar import MACRO_CALENDAR, events_between
from futures_replay.market_data.models import MarketData, ScheduledEvent
from futures_replay.market_data.synthesizer import MarketDataSynthesizer

__all__ = [
    "MACRO_CALENDAR",
    "MarketData",
    "MarketDataSynthesizer",
    "ScheduledEvent",
    "events_between",
]
