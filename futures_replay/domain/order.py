"""
Order domain model.

An order is created by submission and either fills immediately or rests in
the pending set until it triggers or is cancelled. Orders are never edited:
a fill or cancellation removes the order and the fill is recorded as a trade.
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class Direction(IntEnum):
    """Trade direction: +1 long-seeking, -1 short-seeking."""

    LONG = 1
    SHORT = -1

    @property
    def opposite(self) -> "Direction":
        """The other direction."""
        return Direction(-self.value)

    @property
    def label(self) -> str:
        """Human-readable side label."""
        return "BUY" if self == Direction.LONG else "SELL"


class OrderKind(str, Enum):
    """Order type."""

    MARKET = "MARKET"  # Fill immediately at the current close
    LIMIT = "LIMIT"  # Fill at the limit price or better
    STOP = "STOP"  # Fill once price trades through the stop level

    @classmethod
    def _missing_(cls, value: object) -> "OrderKind | None":
        """Accept any casing, e.g. ``"Limit"`` from the order form."""
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class Order(BaseModel):
    """A resting (pending) order."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        description="Session-unique order identifier",
        ge=1,
    )
    symbol: str = Field(
        ...,
        description="Instrument code",
    )
    kind: OrderKind = Field(
        ...,
        description="Order type",
    )
    direction: Direction = Field(
        ...,
        description="Order direction",
    )
    quantity: int = Field(
        ...,
        description="Lots",
        ge=1,
    )
    price: float = Field(
        ...,
        description="Trigger (STOP) or limit (LIMIT) price",
        gt=0,
    )
    created_at: int = Field(
        ...,
        description="Timestamp of the bar the order was submitted on",
        ge=0,
    )

    @property
    def is_buy(self) -> bool:
        """Check if this is a buy order."""
        return self.direction == Direction.LONG

    @property
    def is_sell(self) -> bool:
        """Check if this is a sell order."""
        return self.direction == Direction.SHORT

    def __hash__(self) -> int:
        return hash(self.id)
