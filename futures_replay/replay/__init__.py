"""
Replay and trading engine.

Provides:
- ReplayClock: cursor driver on an asyncio task
- OrderMatchingEngine: pending orders, trigger rules and margin gating
- PositionLedger: positions, cash, PnL and trade history
- SessionController: session lifecycle tying the above together
"""

from futures_replay.replay.clock import SPEED_PRESETS, ReplayClock
from futures_replay.replay.errors import LedgerInvariantError, RejectReason, ReplayError
from futures_replay.replay.ledger import PositionLedger
from futures_replay.replay.matching import OrderMatchingEngine
from futures_replay.replay.models import (
    AccountSummary,
    ChartMarker,
    FillOutcome,
    MatchResult,
    OrderBook,
    OrderBookLevel,
    Rejection,
    SessionSnapshot,
    SessionStartResult,
    SettlementReport,
    SubmitResult,
    SubmitStatus,
)
from futures_replay.replay.session import EngineState, SessionController

__all__ = [
    # Clock
    "SPEED_PRESETS",
    "ReplayClock",
    # Errors
    "LedgerInvariantError",
    "RejectReason",
    "ReplayError",
    # Engine
    "EngineState",
    "OrderMatchingEngine",
    "PositionLedger",
    "SessionController",
    # Results
    "AccountSummary",
    "ChartMarker",
    "FillOutcome",
    "MatchResult",
    "OrderBook",
    "OrderBookLevel",
    "Rejection",
    "SessionSnapshot",
    "SessionStartResult",
    "SettlementReport",
    "SubmitResult",
    "SubmitStatus",
]
