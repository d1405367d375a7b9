"""
Instrument catalog.

Provides:
- Seed data for the 20 replayable futures contracts
- Read-only lookup by code and sector
"""

from futures_replay.catalog.seed import SEED_INSTRUMENTS
from futures_replay.catalog.store import InstrumentCatalog

__all__ = [
    "InstrumentCatalog",
    "SEED_INSTRUMENTS",
]
