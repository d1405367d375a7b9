"""
Futures Replay Engine

A single-player historical-replay futures trading simulator supporting:
- Correlated synthetic market data for a seeded contract catalog
- Deterministic bar-by-bar playback
- Market, limit and stop orders with margin and fee accounting
- Position / PnL ledger and end-of-session settlement
"""

__version__ = "1.0.0"

from futures_replay.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
