"""
Position domain model.

Represents the net holding in one instrument. A flat book is represented by
the absence of a Position, never by a zero-quantity record.
"""

from pydantic import BaseModel, ConfigDict, Field

from futures_replay.domain.order import Direction


class Position(BaseModel):
    """
    An open position in an instrument.

    Replaced (not mutated) by the ledger on every fill.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(
        ...,
        description="Instrument code",
    )
    direction: Direction = Field(
        ...,
        description="Position direction (LONG / SHORT)",
    )
    quantity: int = Field(
        ...,
        description="Open lots",
        gt=0,
    )
    avg_price: float = Field(
        ...,
        description="Volume-weighted average entry price",
        gt=0,
    )

    @property
    def is_long(self) -> bool:
        """Check if this is a long position."""
        return self.direction == Direction.LONG

    @property
    def is_short(self) -> bool:
        """Check if this is a short position."""
        return self.direction == Direction.SHORT

    def floating_pnl(self, mark: float, multiplier: int) -> float:
        """
        Unrealized PnL at ``mark``.

        Args:
            mark: Current mark price (last close)
            multiplier: Contract multiplier

        Returns:
            (mark - avg_price) * quantity * direction * multiplier
        """
        return (mark - self.avg_price) * self.quantity * int(self.direction) * multiplier
