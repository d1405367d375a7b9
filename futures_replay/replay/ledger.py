"""
Position ledger for the replay session.

Tracks one net position per instrument, cash, trade history and win/loss
counters. Every fill goes through ``apply_fill`` which computes the whole
transaction first and commits it in one step.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.domain.account import AccountState
from futures_replay.domain.order import Direction
from futures_replay.domain.position import Position
from futures_replay.domain.trade import TradeRecord, TradeType
from futures_replay.logging import get_logger
from futures_replay.replay.errors import LedgerInvariantError
from futures_replay.replay.models import AccountSummary, FillOutcome

logger = get_logger(__name__)


@dataclass
class PositionLedger:
    """
    Position and account state manager.

    Invariants:
    - at most one position per instrument; flat means no entry
    - cash = initial_cash + sum(realized PnL) - sum(fees)
    - equity = cash + floating PnL at the current marks
    - used margin is priced at the current mark (last close)
    """

    catalog: InstrumentCatalog
    initial_cash: float
    cash: float = field(init=False)
    positions: dict[str, Position] = field(default_factory=dict)
    history: list[TradeRecord] = field(default_factory=list)
    trade_count: int = 0
    win_count: int = 0
    realized_pnl: float = 0.0
    fees_paid: float = 0.0
    _marks: dict[str, float] = field(default_factory=dict)
    _next_trade_id: int = 1

    def __post_init__(self) -> None:
        self.cash = self.initial_cash

    # -------------------------------------------------------------------------
    # Marks and account figures
    # -------------------------------------------------------------------------

    def mark_to_market(self, prices: dict[str, float]) -> None:
        """Store the latest close for each instrument."""
        self._marks.update(prices)

    def mark_for(self, symbol: str) -> float | None:
        """Current mark for ``symbol``, falling back to the position's entry."""
        mark = self._marks.get(symbol)
        if mark is not None:
            return mark
        position = self.positions.get(symbol)
        return position.avg_price if position else None

    def position_pnl(self, symbol: str) -> float:
        """Floating PnL of the position in ``symbol`` (0.0 when flat)."""
        position = self.positions.get(symbol)
        if position is None:
            return 0.0
        instrument = self.catalog.get(symbol)
        mark = self.mark_for(symbol)
        return position.floating_pnl(mark, instrument.multiplier)

    @property
    def floating_pnl(self) -> float:
        """Total floating PnL across all positions."""
        return sum(self.position_pnl(symbol) for symbol in self.positions)

    @property
    def used_margin(self) -> float:
        """Margin held by open positions at current marks."""
        total = 0.0
        for symbol, position in self.positions.items():
            instrument = self.catalog.get(symbol)
            total += instrument.margin_for(self.mark_for(symbol), position.quantity)
        return total

    @property
    def equity(self) -> float:
        """Current equity = cash + floating PnL."""
        return self.cash + self.floating_pnl

    @property
    def free_margin(self) -> float:
        """Equity not tied up as margin."""
        return self.equity - self.used_margin

    @property
    def win_rate(self) -> float:
        """Fraction of closing fills that were profitable."""
        return self.account_state().win_rate

    def get_position(self, symbol: str) -> Position | None:
        """Get the open position for ``symbol``."""
        return self.positions.get(symbol)

    def has_position(self, symbol: str) -> bool:
        """Check if a position exists."""
        return symbol in self.positions

    def increases_exposure(self, symbol: str, direction: Direction) -> bool:
        """Check if a fill would open from flat or add to the position."""
        position = self.positions.get(symbol)
        return position is None or position.direction == direction

    def margin_check(
        self,
        symbol: str,
        direction: Direction,
        quantity: int,
        price: float,
    ) -> tuple[bool, str | None]:
        """
        Check free margin for a prospective fill.

        Reducing and reversing fills always pass.

        Returns (is_allowed, rejection_reason).
        """
        if not self.increases_exposure(symbol, direction):
            return True, None

        instrument = self.catalog.get(symbol)
        required = instrument.margin_for(price, quantity)
        free = self.free_margin
        if required > free:
            return False, (
                f"Required margin {required:.2f} exceeds free margin {free:.2f}"
            )
        return True, None

    # -------------------------------------------------------------------------
    # Fills
    # -------------------------------------------------------------------------

    def apply_fill(
        self,
        symbol: str,
        direction: Direction,
        quantity: int,
        price: float,
        timestamp: int,
    ) -> FillOutcome:
        """
        Apply one fill.

        Args:
            symbol: Instrument code
            direction: Incoming fill direction
            quantity: Lots (must be a positive integer)
            price: Execution price
            timestamp: Bar timestamp of the fill

        Returns:
            FillOutcome describing the committed transaction

        Raises:
            LedgerInvariantError: If the fill cannot exist (non-positive
                quantity or price, unknown instrument)
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise LedgerInvariantError(
                f"Fill quantity must be a positive integer, got {quantity!r}", symbol
            )
        if not math.isfinite(price) or price <= 0:
            raise LedgerInvariantError(
                f"Fill price must be positive, got {price!r}", symbol
            )
        instrument = self.catalog.find(symbol)
        if instrument is None:
            raise LedgerInvariantError(f"Fill for unknown instrument {symbol}", symbol)

        direction = Direction(direction)
        existing = self.positions.get(symbol)
        next_id = self._next_trade_id
        trades: list[TradeRecord] = []
        realized = 0.0
        closed = 0

        def leg(trade_type: TradeType, qty: int, pnl: float | None = None) -> TradeRecord:
            return TradeRecord(
                id=next_id + len(trades),
                timestamp=timestamp,
                symbol=symbol,
                trade_type=trade_type,
                direction=direction,
                price=price,
                quantity=qty,
                fee=instrument.fee_for(qty),
                pnl=pnl,
            )

        if existing is None:
            new_position: Position | None = Position(
                symbol=symbol, direction=direction, quantity=quantity, avg_price=price
            )
            trades.append(leg(TradeType.OPEN, quantity))
        elif existing.direction == direction:
            total = existing.quantity + quantity
            avg_price = (existing.quantity * existing.avg_price + quantity * price) / total
            new_position = Position(
                symbol=symbol, direction=direction, quantity=total, avg_price=avg_price
            )
            trades.append(leg(TradeType.OPEN, quantity))
        else:
            closed = min(existing.quantity, quantity)
            realized = (
                (price - existing.avg_price)
                * closed
                * int(existing.direction)
                * instrument.multiplier
            )
            trades.append(leg(TradeType.CLOSE, closed, pnl=realized))

            remainder = quantity - closed
            if remainder > 0:
                new_position = Position(
                    symbol=symbol, direction=direction, quantity=remainder, avg_price=price
                )
                trades.append(leg(TradeType.REVERSE, remainder))
            elif existing.quantity > closed:
                new_position = existing.model_copy(
                    update={"quantity": existing.quantity - closed}
                )
            else:
                new_position = None

        fee = instrument.fee_for(quantity)

        # Commit
        if new_position is None:
            self.positions.pop(symbol, None)
        else:
            self.positions[symbol] = new_position
        self.cash += realized - fee
        self.realized_pnl += realized
        self.fees_paid += fee
        if closed:
            self.trade_count += 1
            if realized > 0:
                self.win_count += 1
        self.history.extend(trades)
        self._next_trade_id = next_id + len(trades)

        logger.debug(
            "Fill %s %s %d @ %.4f: legs=%s pnl=%.2f fee=%.2f cash=%.2f",
            symbol,
            direction.label,
            quantity,
            price,
            "/".join(t.trade_type.value for t in trades),
            realized,
            fee,
            self.cash,
        )

        return FillOutcome(
            symbol=symbol,
            direction=direction,
            quantity=quantity,
            price=price,
            timestamp=timestamp,
            position=new_position,
            trades=trades,
            fee=fee,
            realized_pnl=realized,
            cash_after=self.cash,
        )

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def account_state(self) -> AccountState:
        """Cash balance and trade statistics."""
        return AccountState(
            initial_balance=self.initial_cash,
            cash=self.cash,
            trade_count=self.trade_count,
            win_count=self.win_count,
        )

    def account_summary(self) -> AccountSummary:
        """Account figures at the current marks."""
        state = self.account_state()
        floating = self.floating_pnl
        used = self.used_margin
        equity = state.cash + floating
        return AccountSummary(
            initial_balance=state.initial_balance,
            cash=state.cash,
            floating_pnl=floating,
            equity=equity,
            used_margin=used,
            free_margin=equity - used,
            trade_count=state.trade_count,
            win_count=state.win_count,
            win_rate=state.win_rate,
        )

    def clear_book(self) -> None:
        """Drop positions, history and counters but keep cash."""
        self.positions.clear()
        self.history.clear()
        self.trade_count = 0
        self.win_count = 0
        self._marks.clear()
        self._next_trade_id = 1

    def reset(self, initial_cash: float | None = None) -> None:
        """Reset ledger to its initial state."""
        if initial_cash is not None:
            self.initial_cash = initial_cash
        self.clear_book()
        self.cash = self.initial_cash
        self.realized_pnl = 0.0
        self.fees_paid = 0.0

    def to_summary(self) -> dict[str, Any]:
        """Get ledger summary."""
        return {
            "cash": self.cash,
            "equity": self.equity,
            "floating_pnl": self.floating_pnl,
            "realized_pnl": self.realized_pnl,
            "fees_paid": self.fees_paid,
            "used_margin": self.used_margin,
            "free_margin": self.free_margin,
            "position_count": len(self.positions),
            "trade_count": self.trade_count,
            "win_count": self.win_count,
        }
