"""
Replay session controller.

Owns the EngineState (market data, ledger, pending orders, settlement) and the
ReplayClock, and is the only entry point that mutates them:

1. start / reset / set_timeframe / switch_instrument manage the session
2. play / pause / tick / seek / set_speed drive the clock
3. submit_order / cancel_order go through the matching engine

Every mutation runs under the clock's lock. Events are queued while the lock
is held and published to the event bus only after it is released, so
observers always see a consistent session.
"""

import asyncio
import math
import random
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.config import Settings, get_settings
from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.order import Direction, Order, OrderKind
from futures_replay.domain.trade import TradeType
from futures_replay.logging import clear_session_id, get_logger, set_session_id
from futures_replay.market_data.models import MarketData
from futures_replay.market_data.synthesizer import MarketDataSynthesizer
from futures_replay.replay.clock import ReplayClock
from futures_replay.replay.errors import RejectReason
from futures_replay.replay.ledger import PositionLedger
from futures_replay.replay.markers import build_markers
from futures_replay.replay.matching import OrderMatchingEngine
from futures_replay.replay.models import (
    ChartMarker,
    FillOutcome,
    OrderBook,
    Rejection,
    SessionSnapshot,
    SessionStartResult,
    SettlementReport,
    SubmitResult,
    SubmitStatus,
    trades_to_frame,
)
from futures_replay.replay.order_book import build_order_book
from futures_replay.runtime.event_bus import Event, EventBus, EventType, get_event_bus
from futures_replay.runtime.run_context import generate_session_id

logger = get_logger(__name__)


@dataclass
class EngineState:
    """
    Mutable state of one replay session.

    Only SessionController mutates it; collaborators read snapshots.
    """

    session_id: str
    symbol: str
    start_date: date
    timeframe: Timeframe
    seed: int | None
    data: MarketData
    ledger: PositionLedger
    matching: OrderMatchingEngine
    book_rng: random.Random
    settlement: SettlementReport | None = None

    @property
    def settled(self) -> bool:
        """Check if the session has been settled."""
        return self.settlement is not None

    def bar_at(self, cursor: int, symbol: str | None = None) -> Bar | None:
        """Bar of ``symbol`` (default: active instrument) at ``cursor``."""
        return self.data.bar_at(symbol or self.symbol, cursor)

    def markers(self, cursor: int) -> list[ChartMarker]:
        """Chart markers for the active instrument up to ``cursor``."""
        timestamp = self.data.timestamp_at(cursor)
        events = self.data.events_until(timestamp) if timestamp is not None else []
        return build_markers(self.ledger.history, events, symbol=self.symbol)


def _position_event_type(fill: FillOutcome) -> EventType:
    """Classify a fill's effect on the position for observers."""
    if fill.position is None:
        return EventType.POSITION_CLOSED
    if any(t.trade_type == TradeType.REVERSE for t in fill.trades):
        return EventType.POSITION_OPENED
    if fill.closed_quantity == 0 and fill.position.quantity == fill.quantity:
        return EventType.POSITION_OPENED
    return EventType.POSITION_UPDATED


class SessionController:
    """
    Orchestrates one replay session.

    Usage:
        controller = SessionController()
        result = await controller.start(symbol="rb2501", timeframe="1h", seed=7)
        await controller.submit_order(None, OrderKind.MARKET, Direction.LONG, 2)
        await controller.play()
    """

    def __init__(
        self,
        catalog: InstrumentCatalog | None = None,
        settings: Settings | None = None,
        synthesizer: MarketDataSynthesizer | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._catalog = catalog if catalog is not None else InstrumentCatalog()
        self._synthesizer = synthesizer or MarketDataSynthesizer(
            catalog=self._catalog, settings=self._settings
        )
        self._event_bus = event_bus if event_bus is not None else get_event_bus()

        self._lock = asyncio.Lock()
        self._clock = ReplayClock(
            interval_ms=self._settings.default_speed_ms,
            on_advance=self._on_advance,
            on_exhausted=self._on_exhausted,
            on_seek=self._on_seek,
            on_notify=self._flush_events,
            lock=self._lock,
        )
        self._state: EngineState | None = None
        self._outbox: list[Event] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EngineState | None:
        """Current engine state (None before start / after reset)."""
        return self._state

    @property
    def clock(self) -> ReplayClock:
        """Replay clock driving the session."""
        return self._clock

    @property
    def catalog(self) -> InstrumentCatalog:
        """Instrument catalog."""
        return self._catalog

    @property
    def event_bus(self) -> EventBus:
        """Bus observers subscribe to."""
        return self._event_bus

    @property
    def cursor(self) -> int:
        """Current bar index."""
        return self._clock.cursor

    @property
    def is_active(self) -> bool:
        """Check if a session with data is loaded."""
        return self._state is not None

    @property
    def settlement(self) -> SettlementReport | None:
        """Settlement report once the session has ended."""
        return self._state.settlement if self._state else None

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def start(
        self,
        initial_cash: float | None = None,
        symbol: str | None = None,
        start_date: date | None = None,
        timeframe: Timeframe | str | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> SessionStartResult:
        """
        Generate data and open a new session.

        Any previous session is discarded. The cursor starts at the warm-up
        index so some history is already visible.

        Args:
            initial_cash: Starting balance (default from settings)
            symbol: Active instrument (default: first catalog entry)
            start_date: First bar date (default from settings)
            timeframe: Bar timeframe (default from settings)
            seed: Generator seed for reproducible data
            rng: Explicit random stream (takes precedence over ``seed``)

        Returns:
            SessionStartResult; ``ok`` is False when inputs are invalid or
            no bar fits before the horizon
        """
        errors: list[str] = []

        cash = self._settings.initial_cash if initial_cash is None else initial_cash
        if (
            isinstance(cash, bool)
            or not isinstance(cash, int | float)
            or not math.isfinite(cash)
            or cash <= 0
        ):
            errors.append(f"Initial cash must be a positive number, got {cash!r}")

        code = symbol if symbol is not None else self._catalog.codes()[0]
        if code not in self._catalog:
            errors.append(f"Unknown instrument: {code}")

        resolved_timeframe: Timeframe | None = None
        try:
            resolved_timeframe = Timeframe(timeframe or self._settings.default_timeframe)
        except ValueError:
            errors.append(f"Unsupported timeframe: {timeframe!r}")

        first_date = start_date or self._settings.default_start_date

        if errors or resolved_timeframe is None:
            logger.warning("Session not started: %s", "; ".join(errors))
            return SessionStartResult(ok=False, errors=errors)

        await self._clock.pause()
        data = self._synthesizer.generate(first_date, resolved_timeframe, rng=rng, seed=seed)
        if data.is_empty:
            message = f"No bars available from {first_date.isoformat()} before the horizon"
            logger.warning("Session not started: %s", message)
            return SessionStartResult(ok=False, seed=data.seed, errors=[message])

        session_id = generate_session_id()
        ledger = PositionLedger(catalog=self._catalog, initial_cash=float(cash))
        state = EngineState(
            session_id=session_id,
            symbol=code,
            start_date=first_date,
            timeframe=resolved_timeframe,
            seed=seed,
            data=data,
            ledger=ledger,
            matching=OrderMatchingEngine(ledger, self._catalog),
            book_rng=random.Random(data.seed),
        )
        cursor = self._warmup_cursor(data.total_bars)
        ledger.mark_to_market(data.closes_at(cursor))

        async with self._lock:
            self._state = state
            self._outbox.clear()
            await self._clock.load(data.total_bars, cursor)
            set_session_id(session_id)
            self._queue(
                EventType.SESSION_STARTED,
                symbol=code,
                timeframe=resolved_timeframe.value,
                start_date=first_date.isoformat(),
                total_bars=data.total_bars,
                cursor=cursor,
                initial_cash=ledger.initial_cash,
                seed=data.seed,
            )

        logger.info(
            "Session %s started: %s %s from %s, %d bars, cursor=%d, cash=%.2f",
            session_id,
            code,
            resolved_timeframe.value,
            first_date.isoformat(),
            data.total_bars,
            cursor,
            ledger.initial_cash,
        )
        await self._flush_events()

        return SessionStartResult(
            ok=True, total_bars=data.total_bars, cursor=cursor, seed=data.seed
        )

    async def reset(self) -> None:
        """Stop the clock and discard all session state."""
        await self._clock.pause()
        async with self._lock:
            previous = self._state
            if previous is not None:
                self._queue(EventType.SESSION_RESET, session_id=previous.session_id)
            self._state = None
            await self._clock.load(0)

        if previous is not None:
            logger.info("Session %s reset", previous.session_id)
        await self._flush_events()
        clear_session_id()

    async def set_timeframe(self, timeframe: Timeframe | str) -> SessionStartResult:
        """
        Regenerate data at a new timeframe for the same start date.

        Open positions, pending orders, history and markers are cleared; cash
        is kept.
        """
        state = self._state
        if state is None:
            return SessionStartResult(ok=False, errors=["No active session"])

        try:
            resolved = Timeframe(timeframe)
        except ValueError:
            return SessionStartResult(ok=False, errors=[f"Unsupported timeframe: {timeframe!r}"])

        await self._clock.pause()
        data = self._synthesizer.generate(state.start_date, resolved, seed=state.seed)
        if data.is_empty:
            message = f"No bars available at {resolved.value} before the horizon"
            logger.warning("Timeframe not changed: %s", message)
            return SessionStartResult(ok=False, seed=data.seed, errors=[message])

        cursor = self._warmup_cursor(data.total_bars)
        async with self._lock:
            state.data = data
            state.timeframe = resolved
            state.settlement = None
            state.matching.reset()
            state.ledger.clear_book()
            state.ledger.mark_to_market(data.closes_at(cursor))
            await self._clock.load(data.total_bars, cursor)
            self._queue(
                EventType.TIMEFRAME_CHANGED,
                timeframe=resolved.value,
                total_bars=data.total_bars,
                cursor=cursor,
                cash=state.ledger.cash,
            )

        logger.info(
            "Timeframe changed to %s: %d bars, cursor=%d",
            resolved.value,
            data.total_bars,
            cursor,
        )
        await self._flush_events()
        return SessionStartResult(
            ok=True, total_bars=data.total_bars, cursor=cursor, seed=data.seed
        )

    async def switch_instrument(self, symbol: str) -> bool:
        """
        Change the active (charted) instrument.

        The cursor, positions and orders are shared across instruments.

        Returns:
            False if there is no session or the code is unknown
        """
        state = self._state
        if state is None:
            return False
        if symbol not in self._catalog:
            logger.warning("Cannot switch to unknown instrument %s", symbol)
            return False

        async with self._lock:
            previous = state.symbol
            state.symbol = symbol
            self._queue(EventType.INSTRUMENT_SWITCHED, previous=previous, symbol=symbol)

        await self._flush_events()
        return True

    async def settle(self) -> SettlementReport | None:
        """End the session now and return its settlement report."""
        if self._state is None:
            return None
        await self._clock.pause()
        async with self._lock:
            self._settle()
        await self._flush_events()
        return self.settlement

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    async def play(self) -> bool:
        """Start playback; False when nothing can be played."""
        if self._state is None or self._state.settled:
            return False
        started = await self._clock.start()
        if started:
            self._queue(EventType.PLAYBACK_STARTED, cursor=self._clock.cursor)
            await self._flush_events()
        return started

    async def pause(self) -> None:
        """Pause playback."""
        was_playing = self._clock.is_playing
        await self._clock.pause()
        if was_playing and self._state is not None:
            self._queue(EventType.PLAYBACK_PAUSED, cursor=self._clock.cursor)
            await self._flush_events()

    async def tick(self) -> bool:
        """
        Advance one bar manually.

        Returns:
            True if the cursor advanced; False when settling or with no
            active session
        """
        if self._state is None or self._state.settled:
            return False
        return await self._clock.tick()

    async def seek(self, index: int) -> bool:
        """
        Jump to ``index`` without evaluating skipped bars.

        Raises:
            ValueError: If the index is outside the bar sequence
        """
        if self._state is None or self._state.settled:
            return False
        await self._clock.seek(index)
        return True

    async def set_speed(self, interval_ms: int) -> None:
        """
        Change the tick interval; the cursor is unchanged.

        Raises:
            ValueError: If the interval is not a positive integer
        """
        await self._clock.set_speed(interval_ms)
        self._queue(EventType.SPEED_CHANGED, interval_ms=interval_ms)
        await self._flush_events()

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    async def submit_order(
        self,
        symbol: str | None,
        kind: OrderKind | str,
        direction: Direction | int,
        quantity: int,
        price: float | str | None = None,
    ) -> SubmitResult:
        """
        Submit an order against the current bar.

        Args:
            symbol: Instrument code (None for the active instrument)
            kind: MARKET, LIMIT or STOP
            direction: +1 buy, -1 sell
            quantity: Lots
            price: Limit/stop price

        Returns:
            SubmitResult; IGNORED when there is no active bar
        """
        async with self._lock:
            state = self._state
            if state is None or state.settled:
                result = SubmitResult(
                    status=SubmitStatus.IGNORED,
                    rejection=Rejection(
                        reason=RejectReason.NO_ACTIVE_BAR,
                        message="No active session" if state is None else "Session settled",
                        symbol=symbol if isinstance(symbol, str) else None,
                    ),
                )
            else:
                code = symbol if symbol is not None else state.symbol
                cursor = self._clock.cursor
                bar = state.data.bar_at(code, cursor)
                if bar is None and code not in self._catalog:
                    # Unknown codes are rejected by validation, not ignored
                    bar = state.bar_at(cursor)
                result = state.matching.submit(bar, code, kind, direction, quantity, price)
                self._queue_submit(result)

        await self._flush_events()
        return result

    async def close_position(self, symbol: str | None = None) -> SubmitResult:
        """
        Flatten a position with a market order for its full quantity.

        Args:
            symbol: Instrument code (None for the active instrument)

        Returns:
            SubmitResult; IGNORED with NO_ACTIVE_BAR when there is no session,
            IGNORED with INVALID_INPUT when the instrument is flat
        """
        async with self._lock:
            state = self._state
            code = symbol if symbol is not None else (state.symbol if state else None)
            position = state.ledger.get_position(code) if state and code else None

            if state is None or state.settled:
                result = SubmitResult(
                    status=SubmitStatus.IGNORED,
                    rejection=Rejection(
                        reason=RejectReason.NO_ACTIVE_BAR,
                        message="No active session" if state is None else "Session settled",
                        symbol=code,
                    ),
                )
            elif position is None:
                result = SubmitResult(
                    status=SubmitStatus.IGNORED,
                    rejection=Rejection(
                        reason=RejectReason.INVALID_INPUT,
                        message=f"No open position in {code}",
                        symbol=code,
                    ),
                )
            else:
                bar = state.data.bar_at(position.symbol, self._clock.cursor)
                result = state.matching.submit(
                    bar,
                    position.symbol,
                    OrderKind.MARKET,
                    position.direction.opposite,
                    position.quantity,
                )
                self._queue_submit(result)
                logger.info(
                    "Close requested for %s %s x%d",
                    position.symbol,
                    position.direction.label,
                    position.quantity,
                )

        await self._flush_events()
        return result

    async def cancel_order(self, order_id: int) -> bool:
        """
        Cancel a pending order.

        Returns:
            True if an order was removed
        """
        async with self._lock:
            state = self._state
            if state is None:
                return False
            cancelled = state.matching.cancel(order_id)
            if cancelled is not None:
                self._queue(EventType.ORDER_CANCELLED, order=cancelled.model_dump(mode="json"))

        await self._flush_events()
        return cancelled is not None

    # -------------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot | None:
        """Read-only view of the session (None before start)."""
        state = self._state
        if state is None:
            return None

        cursor = self._clock.cursor
        bar = state.bar_at(cursor)
        order_book = OrderBook()
        if bar is not None:
            order_book = build_order_book(
                bar.close,
                self._catalog.get(state.symbol),
                state.book_rng,
                levels=self._settings.order_book_levels,
            )
        timestamp = state.data.timestamp_at(cursor)

        return SessionSnapshot(
            symbol=state.symbol,
            timeframe=state.timeframe,
            cursor=cursor,
            total_bars=state.data.total_bars,
            is_playing=self._clock.is_playing,
            speed_ms=self._clock.interval_ms,
            settled=state.settled,
            bar=bar,
            positions=list(state.ledger.positions.values()),
            pending_orders=state.matching.pending,
            history=list(state.ledger.history),
            account=state.ledger.account_summary(),
            order_book=order_book,
            markers=state.markers(cursor),
            events=state.data.events_until(timestamp) if timestamp is not None else [],
        )

    def history_frame(self) -> pd.DataFrame:
        """Trade history as a DataFrame."""
        history = self._state.ledger.history if self._state else []
        return trades_to_frame(history)

    def bars_frame(self, symbol: str | None = None) -> pd.DataFrame:
        """
        Revealed bars (up to the cursor) as a DataFrame.

        Raises:
            RuntimeError: If no session is active
        """
        if self._state is None:
            raise RuntimeError("No active session")
        return self._state.data.to_frame(
            symbol or self._state.symbol, end_index=self._clock.cursor
        )

    # -------------------------------------------------------------------------
    # Clock handlers (run under the lock)
    # -------------------------------------------------------------------------

    async def _on_advance(self, cursor: int) -> None:
        state = self._state
        if state is None:
            return

        data = state.data
        state.ledger.mark_to_market(data.closes_at(cursor))
        bars = {symbol: series[cursor] for symbol, series in data.bars.items()}
        match = state.matching.evaluate_bars(bars)

        for order, fill in zip(match.filled_orders, match.fills, strict=True):
            self._queue_fill(order, fill)
        for rejection in match.rejections:
            self._queue(EventType.ORDER_REJECTED, rejection=rejection.model_dump(mode="json"))

        timestamp = data.timestamp_at(cursor)
        for event in data.events:
            if event.timestamp == timestamp:
                self._queue(EventType.MACRO_EVENT, event=event.model_dump(mode="json"))

        bar = bars.get(state.symbol)
        self._queue(
            EventType.BAR_ADVANCED,
            cursor=cursor,
            symbol=state.symbol,
            bar=bar.model_dump(mode="json") if bar else None,
            equity=state.ledger.equity,
        )

    async def _on_exhausted(self) -> None:
        self._settle()

    async def _on_seek(self, cursor: int) -> None:
        state = self._state
        if state is None:
            return
        state.ledger.mark_to_market(state.data.closes_at(cursor))
        self._queue(EventType.SEEKED, cursor=cursor)

    def _settle(self) -> None:
        """Produce the settlement report; caller holds the lock."""
        state = self._state
        if state is None or state.settled:
            return

        ledger = state.ledger
        summary = ledger.account_summary()
        cursor = self._clock.cursor
        report = SettlementReport(
            settled_at=state.data.timestamp_at(cursor) or 0,
            initial_balance=ledger.initial_cash,
            cash=summary.cash,
            floating_pnl=summary.floating_pnl,
            final_equity=summary.equity,
            return_pct=(summary.equity - ledger.initial_cash) / ledger.initial_cash * 100.0,
            trade_count=summary.trade_count,
            win_count=summary.win_count,
            win_rate=summary.win_rate,
            history=list(ledger.history),
        )
        state.settlement = report

        logger.info(
            "Session %s settled at bar %d: equity=%.2f (%+.2f%%), trades=%d, wins=%d",
            state.session_id,
            cursor,
            report.final_equity,
            report.return_pct,
            report.trade_count,
            report.win_count,
        )
        self._queue(EventType.SESSION_SETTLED, report=report.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _warmup_cursor(self, total_bars: int) -> int:
        return min(self._settings.warmup_bars, total_bars - 1)

    def _queue(self, event_type: EventType, **data: Any) -> None:
        session_id = self._state.session_id if self._state else None
        self._outbox.append(Event(type=event_type, data=data, session_id=session_id))

    def _queue_fill(self, order: Order, fill: FillOutcome) -> None:
        self._queue(
            EventType.ORDER_FILLED,
            order=order.model_dump(mode="json"),
            fill=fill.model_dump(mode="json"),
        )
        self._queue(
            _position_event_type(fill),
            symbol=fill.symbol,
            position=fill.position.model_dump(mode="json") if fill.position else None,
        )

    def _queue_submit(self, result: SubmitResult) -> None:
        if result.status == SubmitStatus.FILLED and result.order and result.fill:
            self._queue_fill(result.order, result.fill)
        elif result.status == SubmitStatus.PENDING and result.order:
            self._queue(EventType.ORDER_PENDING, order=result.order.model_dump(mode="json"))
        elif result.rejection is not None:
            self._queue(
                EventType.ORDER_REJECTED, rejection=result.rejection.model_dump(mode="json")
            )

    async def _flush_events(self) -> None:
        """Publish queued events; called with the lock released."""
        while self._outbox:
            events, self._outbox = self._outbox, []
            for event in events:
                await self._event_bus.publish(event)
