"""
Order matching for the replay session.

Fill price model:
- MARKET: fill at the current bar close on submission
- LIMIT marketable at submission (buy >= close, sell <= close): fill at close
- Resting LIMIT/STOP: fill at the order price on the first bar that trades
  through it

Constraints:
- Fills that open or add to exposure need free margin for the added lots
- Reducing and reversing fills are never margin-blocked
- Pending orders are evaluated in submission order
"""

import math
from collections.abc import Mapping
from typing import Any

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.domain.bar import Bar
from futures_replay.domain.order import Direction, Order, OrderKind
from futures_replay.logging import get_logger
from futures_replay.replay.errors import RejectReason
from futures_replay.replay.ledger import PositionLedger
from futures_replay.replay.models import (
    FillOutcome,
    MatchResult,
    Rejection,
    SubmitResult,
    SubmitStatus,
)

logger = get_logger(__name__)


def _coerce_price(value: Any) -> float | None:
    """Parse a price input; None when missing, non-numeric or non-positive."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int | float):
        return None
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def is_triggered(order: Order, bar: Bar) -> bool:
    """
    Check if a resting order trades on ``bar``.

    - buy-stop: bar.high >= price
    - sell-stop: bar.low <= price
    - buy-limit: bar.low <= price
    - sell-limit: bar.high >= price
    """
    if order.kind == OrderKind.STOP:
        return bar.high >= order.price if order.is_buy else bar.low <= order.price
    if order.kind == OrderKind.LIMIT:
        return bar.low <= order.price if order.is_buy else bar.high >= order.price
    return False


def is_marketable_limit(direction: Direction, price: float, close: float) -> bool:
    """Check if a limit order already crosses the current close."""
    if direction == Direction.LONG:
        return price >= close
    return price <= close


class OrderMatchingEngine:
    """
    Pending order book and fill logic.

    Usage:
        engine = OrderMatchingEngine(ledger)
        result = engine.submit(bar, "rb2501", OrderKind.LIMIT, Direction.LONG, 2, 3280)
        match = engine.evaluate(next_bar)
    """

    def __init__(
        self,
        ledger: PositionLedger,
        catalog: InstrumentCatalog | None = None,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog if catalog is not None else ledger.catalog
        self._pending: list[Order] = []
        self._next_order_id = 1

    @property
    def ledger(self) -> PositionLedger:
        """Ledger fills are applied to."""
        return self._ledger

    @property
    def pending(self) -> list[Order]:
        """Resting orders in submission order."""
        return list(self._pending)

    def pending_for(self, symbol: str) -> list[Order]:
        """Resting orders for ``symbol``."""
        return [order for order in self._pending if order.symbol == symbol]

    def get_order(self, order_id: int) -> Order | None:
        """Find a resting order by id."""
        for order in self._pending:
            if order.id == order_id:
                return order
        return None

    def validate_order(
        self,
        symbol: Any,
        kind: Any,
        direction: Any,
        quantity: Any,
        price: Any,
    ) -> tuple[tuple[OrderKind, Direction, int, float | None] | None, str | None]:
        """
        Validate and normalise submission inputs.

        Returns ((kind, direction, quantity, price), None) when valid, or
        (None, rejection_reason).
        """
        if not isinstance(symbol, str) or symbol not in self._catalog:
            return None, f"Unknown instrument: {symbol!r}"

        try:
            kind = OrderKind(kind)
        except ValueError:
            return None, f"Unknown order kind: {kind!r}"

        try:
            direction = Direction(direction)
        except ValueError:
            return None, f"Direction must be +1 or -1, got {direction!r}"

        if isinstance(quantity, bool) or not isinstance(quantity, int):
            return None, f"Quantity must be an integer, got {quantity!r}"
        if quantity < 1:
            return None, f"Quantity must be at least 1, got {quantity}"

        parsed_price = _coerce_price(price)
        if kind != OrderKind.MARKET and parsed_price is None:
            return None, f"{kind.value} order needs a positive numeric price, got {price!r}"

        return (kind, direction, quantity, parsed_price), None

    def submit(
        self,
        bar: Bar | None,
        symbol: str,
        kind: OrderKind | str,
        direction: Direction | int,
        quantity: int,
        price: float | str | None = None,
    ) -> SubmitResult:
        """
        Submit an order against the current bar of ``symbol``.

        Market and marketable limit orders fill now at ``bar.close``; other
        limit and stop orders rest until ``evaluate`` triggers them.

        Args:
            bar: Current bar for the order's instrument (None when no data)
            symbol: Instrument code
            kind: MARKET, LIMIT or STOP
            direction: +1 buy, -1 sell
            quantity: Lots (integer >= 1)
            price: Limit/stop price (ignored for MARKET)

        Returns:
            SubmitResult with FILLED, PENDING, REJECTED or IGNORED status
        """
        if bar is None:
            return SubmitResult(
                status=SubmitStatus.IGNORED,
                rejection=Rejection(
                    reason=RejectReason.NO_ACTIVE_BAR,
                    message="No active bar",
                    symbol=symbol if isinstance(symbol, str) else None,
                ),
            )

        normalised, rejection_reason = self.validate_order(
            symbol, kind, direction, quantity, price
        )
        if normalised is None:
            logger.warning("Order rejected: %s - %s", symbol, rejection_reason)
            return SubmitResult(
                status=SubmitStatus.REJECTED,
                rejection=Rejection(
                    reason=RejectReason.INVALID_INPUT,
                    message=rejection_reason or "Invalid order",
                    symbol=symbol if isinstance(symbol, str) else None,
                ),
            )

        kind, direction, quantity, limit_price = normalised
        close = bar.close

        fills_now = kind == OrderKind.MARKET or (
            kind == OrderKind.LIMIT
            and limit_price is not None
            and is_marketable_limit(direction, limit_price, close)
        )

        order = Order(
            id=self._next_order_id,
            symbol=symbol,
            kind=kind,
            direction=direction,
            quantity=quantity,
            price=close if fills_now else limit_price,
            created_at=bar.timestamp,
        )
        self._next_order_id += 1

        if not fills_now:
            self._pending.append(order)
            logger.debug(
                "Order %d resting: %s %s %s %d @ %.4f",
                order.id,
                symbol,
                kind.value,
                direction.label,
                quantity,
                order.price,
            )
            return SubmitResult(status=SubmitStatus.PENDING, order=order)

        fill, rejection = self._execute(order, close, bar.timestamp)
        if rejection is not None:
            return SubmitResult(status=SubmitStatus.REJECTED, order=order, rejection=rejection)
        return SubmitResult(status=SubmitStatus.FILLED, order=order, fill=fill)

    def evaluate(self, bar: Bar) -> MatchResult:
        """Evaluate pending orders for ``bar.symbol`` against ``bar``."""
        return self.evaluate_bars({bar.symbol: bar})

    def evaluate_bars(self, bars: Mapping[str, Bar]) -> MatchResult:
        """
        Evaluate every pending order against the bar of its instrument.

        Orders are walked in submission order. Triggered orders fill at their
        own price; orders failing the margin check are dropped. Orders whose
        instrument has no bar in ``bars`` keep resting.

        Returns:
            MatchResult(filled_orders, fills, rejections, remaining)
        """
        filled_orders: list[Order] = []
        fills: list[FillOutcome] = []
        rejections: list[Rejection] = []
        remaining: list[Order] = []

        for order in self._pending:
            bar = bars.get(order.symbol)
            if bar is None or not is_triggered(order, bar):
                remaining.append(order)
                continue

            fill, rejection = self._execute(order, order.price, bar.timestamp)
            if rejection is not None:
                rejections.append(rejection)
            else:
                filled_orders.append(order)
                fills.append(fill)

        self._pending = remaining

        return MatchResult(
            filled_orders=filled_orders,
            fills=fills,
            rejections=rejections,
            remaining=list(remaining),
        )

    def _execute(
        self,
        order: Order,
        price: float,
        timestamp: int,
    ) -> tuple[FillOutcome | None, Rejection | None]:
        """Margin-check and apply one fill."""
        is_allowed, reason = self._ledger.margin_check(
            order.symbol, order.direction, order.quantity, price
        )
        if not is_allowed:
            logger.warning(
                "Order %d rejected: %s %s %d @ %.4f - %s",
                order.id,
                order.symbol,
                order.direction.label,
                order.quantity,
                price,
                reason,
            )
            return None, Rejection(
                reason=RejectReason.INSUFFICIENT_MARGIN,
                message=reason or "Insufficient margin",
                symbol=order.symbol,
                order_id=order.id,
            )

        fill = self._ledger.apply_fill(
            order.symbol, order.direction, order.quantity, price, timestamp
        )
        logger.debug(
            "Order %d filled: %s %s %d @ %.4f",
            order.id,
            order.symbol,
            order.direction.label,
            order.quantity,
            price,
        )
        return fill, None

    def cancel(self, order_id: int) -> Order | None:
        """
        Remove a pending order.

        Returns:
            The cancelled order, or None if no such order is resting
        """
        for index, order in enumerate(self._pending):
            if order.id == order_id:
                del self._pending[index]
                logger.debug("Order %d cancelled", order_id)
                return order
        return None

    def clear(self) -> None:
        """Drop all pending orders."""
        self._pending.clear()

    def reset(self) -> None:
        """Drop all pending orders and restart order ids."""
        self._pending.clear()
        self._next_order_id = 1
