"""
Replay error taxonomy.

Recoverable conditions are reported as structured results carrying a
RejectReason; only ledger invariant violations raise.
"""

from enum import Enum


class RejectReason(str, Enum):
    """Why a submission or fill was refused."""

    INVALID_INPUT = "invalid_input"  # Bad quantity/price/instrument, no state change
    INSUFFICIENT_MARGIN = "insufficient_margin"  # Order dropped, nothing filled or charged
    NO_ACTIVE_BAR = "no_active_bar"  # No data generated or session settled


class ReplayError(Exception):
    """Base class for replay engine errors."""

    pass


class LedgerInvariantError(ReplayError):
    """Raised when impossible input reaches the position ledger."""

    def __init__(self, message: str, symbol: str | None = None):
        super().__init__(message)
        self.symbol = symbol
