"""
Trade record domain model.

Append-only audit entry written for every fill leg.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from futures_replay.domain.order import Direction


class TradeType(str, Enum):
    """Classification of a fill leg."""

    OPEN = "Open"  # Opened or added to exposure
    CLOSE = "Close"  # Closed existing exposure
    REVERSE = "Reverse"  # Opened the remainder after closing the old side


class TradeRecord(BaseModel):
    """
    One executed fill leg.

    Immutable once created - trades are historical facts.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Session-unique trade identifier", ge=1)
    timestamp: int = Field(..., description="Bar timestamp of the fill", ge=0)
    symbol: str = Field(..., description="Instrument code")
    trade_type: TradeType = Field(..., description="Fill leg classification")
    direction: Direction = Field(..., description="Direction of the incoming fill")
    price: float = Field(..., description="Execution price", gt=0)
    quantity: int = Field(..., description="Lots in this leg", gt=0)
    fee: float = Field(default=0.0, description="Fee charged for this leg", ge=0)
    pnl: float | None = Field(
        default=None,
        description="Realized PnL (CLOSE legs only)",
    )

    @property
    def is_win(self) -> bool:
        """Check if this leg realized a profit."""
        return self.pnl is not None and self.pnl > 0
