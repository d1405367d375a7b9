"""
Replay engine result and snapshot models.

Operations return these structured results instead of raising for recoverable
conditions (invalid input, insufficient margin, no active bar).
"""

from enum import Enum

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.macro import ImpactTier, MacroEvent
from futures_replay.domain.order import Direction, Order
from futures_replay.domain.position import Position
from futures_replay.domain.trade import TradeRecord
from futures_replay.replay.errors import RejectReason


class SubmitStatus(str, Enum):
    """Outcome of an order submission."""

    FILLED = "filled"
    PENDING = "pending"
    REJECTED = "rejected"
    IGNORED = "ignored"  # No active bar; nothing happened


# =============================================================================
# Execution Models
# =============================================================================


class FillOutcome(BaseModel):
    """
    Complete result of applying one fill to the ledger.

    Produced atomically: every field reflects the same ledger transaction.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(..., description="Instrument code")
    direction: Direction = Field(..., description="Direction of the incoming fill")
    quantity: int = Field(..., description="Lots filled", gt=0)
    price: float = Field(..., description="Execution price", gt=0)
    timestamp: int = Field(..., description="Bar timestamp of the fill", ge=0)
    position: Position | None = Field(
        default=None, description="Position after the fill (None when flat)"
    )
    trades: list[TradeRecord] = Field(
        default_factory=list, description="Trade legs written by this fill"
    )
    fee: float = Field(default=0.0, description="Total fee charged", ge=0)
    realized_pnl: float = Field(default=0.0, description="PnL realized by the fill")
    cash_after: float = Field(..., description="Account cash after the fill")

    @property
    def closed_quantity(self) -> int:
        """Lots of existing exposure this fill closed."""
        return sum(t.quantity for t in self.trades if t.pnl is not None)


class Rejection(BaseModel):
    """A refused submission or dropped pending order."""

    model_config = ConfigDict(frozen=True)

    reason: RejectReason = Field(..., description="Rejection category")
    message: str = Field(..., description="Human-readable detail")
    symbol: str | None = Field(default=None, description="Instrument code")
    order_id: int | None = Field(default=None, description="Order id when one existed")


class SubmitResult(BaseModel):
    """Result of ``submit_order``: a fill, a resting order, or a rejection."""

    model_config = ConfigDict(frozen=True)

    status: SubmitStatus = Field(..., description="Submission outcome")
    order: Order | None = Field(
        default=None, description="Order created by the submission"
    )
    fill: FillOutcome | None = Field(default=None, description="Fill (FILLED)")
    rejection: Rejection | None = Field(
        default=None, description="Rejection detail (REJECTED / IGNORED)"
    )

    @property
    def is_filled(self) -> bool:
        """Check if the submission filled immediately."""
        return self.status == SubmitStatus.FILLED

    @property
    def is_pending(self) -> bool:
        """Check if the submission rests in the pending set."""
        return self.status == SubmitStatus.PENDING

    @property
    def is_rejected(self) -> bool:
        """Check if the submission was refused."""
        return self.status == SubmitStatus.REJECTED


class MatchResult(BaseModel):
    """Result of evaluating pending orders against one bar."""

    model_config = ConfigDict(frozen=True)

    filled_orders: list[Order] = Field(default_factory=list)
    fills: list[FillOutcome] = Field(default_factory=list)
    rejections: list[Rejection] = Field(default_factory=list)
    remaining: list[Order] = Field(default_factory=list)


# =============================================================================
# Session Models
# =============================================================================


class SessionStartResult(BaseModel):
    """Result of starting (or regenerating) a session."""

    model_config = ConfigDict(frozen=True)

    ok: bool = Field(..., description="Whether the session can be played")
    total_bars: int = Field(default=0, description="Bars per instrument", ge=0)
    cursor: int = Field(default=0, description="Initial cursor position", ge=0)
    seed: int | None = Field(default=None, description="Generator seed used")
    errors: list[str] = Field(default_factory=list)


class AccountSummary(BaseModel):
    """Account figures at the current marks."""

    model_config = ConfigDict(frozen=True)

    initial_balance: float
    cash: float
    floating_pnl: float
    equity: float
    used_margin: float
    free_margin: float
    trade_count: int
    win_count: int
    win_rate: float


class SettlementReport(BaseModel):
    """End-of-session summary produced when the data is exhausted."""

    model_config = ConfigDict(frozen=True)

    settled_at: int = Field(..., description="Timestamp of the final bar")
    initial_balance: float
    cash: float = Field(..., description="Cash at settlement (realized only)")
    floating_pnl: float = Field(..., description="Unrealized PnL at the final bar")
    final_equity: float = Field(..., description="cash + floating PnL")
    return_pct: float = Field(..., description="Equity change in percent")
    trade_count: int
    win_count: int
    win_rate: float
    history: list[TradeRecord] = Field(default_factory=list)

    def history_frame(self) -> pd.DataFrame:
        """Trade history as a DataFrame (one row per leg)."""
        return trades_to_frame(self.history)


class OrderBookLevel(BaseModel):
    """One cosmetic depth level."""

    model_config = ConfigDict(frozen=True)

    price: float
    size: int


class OrderBook(BaseModel):
    """Cosmetic depth ladder around the current close."""

    model_config = ConfigDict(frozen=True)

    asks: list[OrderBookLevel] = Field(default_factory=list)
    bids: list[OrderBookLevel] = Field(default_factory=list)


class MarkerShape(str, Enum):
    """Chart marker glyph."""

    ARROW_UP = "arrowUp"
    ARROW_DOWN = "arrowDown"
    CIRCLE = "circle"
    SQUARE = "square"


class MarkerPosition(str, Enum):
    """Marker placement relative to the bar."""

    ABOVE_BAR = "aboveBar"
    BELOW_BAR = "belowBar"
    IN_BAR = "inBar"


class ChartMarker(BaseModel):
    """A chart annotation derived from a trade leg or macro event."""

    model_config = ConfigDict(frozen=True)

    timestamp: int
    shape: MarkerShape
    position: MarkerPosition
    text: str
    color: str
    symbol: str | None = Field(default=None, description="None for macro events")
    impact: ImpactTier | None = Field(default=None, description="Macro events only")


class SessionSnapshot(BaseModel):
    """Read-only view of the session after an operation completes."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timeframe: Timeframe
    cursor: int
    total_bars: int
    is_playing: bool
    speed_ms: int
    settled: bool
    bar: Bar | None = None
    positions: list[Position] = Field(default_factory=list)
    pending_orders: list[Order] = Field(default_factory=list)
    history: list[TradeRecord] = Field(default_factory=list)
    account: AccountSummary
    order_book: OrderBook = Field(default_factory=OrderBook)
    markers: list[ChartMarker] = Field(default_factory=list)
    events: list[MacroEvent] = Field(default_factory=list)

    @property
    def progress(self) -> float:
        """Fraction of the replay already revealed."""
        if self.total_bars <= 1:
            return 1.0
        return self.cursor / (self.total_bars - 1)


def trades_to_frame(trades: list[TradeRecord]) -> pd.DataFrame:
    """Convert trade records to a DataFrame indexed by trade id."""
    columns = [
        "id",
        "timestamp",
        "symbol",
        "trade_type",
        "direction",
        "price",
        "quantity",
        "fee",
        "pnl",
    ]
    df = pd.DataFrame(
        [
            {
                "id": t.id,
                "timestamp": t.timestamp,
                "symbol": t.symbol,
                "trade_type": t.trade_type.value,
                "direction": t.direction.label,
                "price": t.price,
                "quantity": t.quantity,
                "fee": t.fee,
                "pnl": t.pnl,
            }
            for t in trades
        ],
        columns=columns,
    )
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    return df.set_index("id")
