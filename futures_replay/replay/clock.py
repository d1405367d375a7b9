"""
Replay clock.

Advances a cursor through the generated bars on an asyncio task. The clock is
the only source of simulated time: every tick runs under one asyncio.Lock
shared with order submission and cancellation, so a tick's matching and ledger
updates complete before any other operation observes the session.
"""

import asyncio
from collections.abc import Awaitable, Callable

from futures_replay.logging import get_logger

logger = get_logger(__name__)

# Tick intervals offered by the playback speed selector (ms)
SPEED_PRESETS: dict[str, int] = {
    "1x": 1000,
    "5x": 200,
    "20x": 50,
    "max": 10,
}

AdvanceHandler = Callable[[int], Awaitable[None]]
ExhaustedHandler = Callable[[], Awaitable[None]]
SeekHandler = Callable[[int], Awaitable[None]]
NotifyHandler = Callable[[], Awaitable[None]]


class ReplayClock:
    """
    Cursor driver for a replay session.

    Scheduling rules:
    - at most one tick is in flight; ticks never overlap
    - pause, speed changes and seeks cancel the scheduled tick before a new
      one is scheduled; a tick already running completes first
    - at the final bar a tick invokes the exhausted handler and stops
    """

    def __init__(
        self,
        total_bars: int = 0,
        cursor: int = 0,
        interval_ms: int = 100,
        on_advance: AdvanceHandler | None = None,
        on_exhausted: ExhaustedHandler | None = None,
        on_seek: SeekHandler | None = None,
        on_notify: NotifyHandler | None = None,
        lock: asyncio.Lock | None = None,
    ):
        """
        Initialize the clock.

        Args:
            total_bars: Bars available to replay
            cursor: Initial cursor position
            interval_ms: Tick interval in milliseconds
            on_advance: Async callback(cursor) run after each advance
            on_exhausted: Async callback run when a tick hits the final bar
            on_seek: Async callback(cursor) run after a seek
            on_notify: Async callback run once the lock is released after a
                tick or seek (observers are notified here)
            lock: Lock shared with other session mutations
        """
        self._validate_interval(interval_ms)
        self._total_bars = total_bars
        self._cursor = cursor
        self._interval_ms = interval_ms
        self._on_advance = on_advance
        self._on_exhausted = on_exhausted
        self._on_seek = on_seek
        self._on_notify = on_notify
        self._lock = lock or asyncio.Lock()

        self._playing = False
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._busy_tasks: set[asyncio.Task[None]] = set()

    @property
    def cursor(self) -> int:
        """Index of the current bar."""
        return self._cursor

    @property
    def total_bars(self) -> int:
        """Number of bars being replayed."""
        return self._total_bars

    @property
    def interval_ms(self) -> int:
        """Current tick interval in milliseconds."""
        return self._interval_ms

    @property
    def is_playing(self) -> bool:
        """Check if ticks are being scheduled."""
        return self._playing

    @property
    def at_end(self) -> bool:
        """Check if the cursor is on the final bar (or there is no data)."""
        return self._total_bars <= 0 or self._cursor >= self._total_bars - 1

    @property
    def lock(self) -> asyncio.Lock:
        """Lock serialising ticks with other session mutations."""
        return self._lock

    @staticmethod
    def _validate_interval(interval_ms: int) -> None:
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int):
            raise ValueError(f"Tick interval must be an integer, got {interval_ms!r}")
        if interval_ms <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_ms}")

    async def load(self, total_bars: int, cursor: int = 0) -> None:
        """Stop the clock and point it at a new bar sequence."""
        await self.pause()
        if total_bars > 0 and not 0 <= cursor < total_bars:
            raise ValueError(f"Cursor {cursor} outside 0..{total_bars - 1}")
        self._total_bars = total_bars
        self._cursor = cursor if total_bars > 0 else 0

    async def start(self) -> bool:
        """
        Start firing ticks at the configured interval.

        Returns:
            False if already playing or already at the final bar
        """
        if self._playing:
            logger.debug("Replay clock already playing")
            return False
        if self.at_end:
            logger.debug("Replay clock at final bar; not starting")
            return False

        self._playing = True
        self._schedule()
        logger.info(
            "Replay clock started at %d/%d (interval: %dms)",
            self._cursor,
            self._total_bars,
            self._interval_ms,
        )
        return True

    async def pause(self) -> None:
        """Stop scheduling ticks."""
        if not self._playing and self._task is None:
            return
        self._playing = False
        self._cancel_scheduled()
        logger.info("Replay clock paused at %d/%d", self._cursor, self._total_bars)

    async def tick(self) -> bool:
        """
        Advance by exactly one bar.

        At the final bar this settles (exhausted handler) and stops instead.

        Returns:
            True if the cursor advanced
        """
        async with self._lock:
            advanced = await self._step()
        await self._notify()
        return advanced

    async def set_speed(self, interval_ms: int) -> None:
        """
        Change the tick interval without moving the cursor.

        A running clock is rescheduled at the new interval.

        Raises:
            ValueError: If the interval is not a positive integer
        """
        self._validate_interval(interval_ms)
        self._interval_ms = interval_ms
        if self._playing:
            self._cancel_scheduled()
            self._schedule()
        logger.debug("Replay clock interval set to %dms", interval_ms)

    async def seek(self, index: int) -> None:
        """
        Jump to ``index`` without evaluating the bars in between.

        Raises:
            ValueError: If the index is outside the bar sequence
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise ValueError(f"Seek index must be an integer, got {index!r}")
        if not 0 <= index < self._total_bars:
            raise ValueError(f"Seek index {index} outside 0..{self._total_bars - 1}")

        was_playing = self._playing
        self._cancel_scheduled()

        async with self._lock:
            self._cursor = index
            if self._on_seek:
                await self._on_seek(index)
        await self._notify()

        if was_playing:
            if self.at_end:
                self._playing = False
            else:
                self._schedule()

        logger.debug("Replay clock seeked to %d/%d", index, self._total_bars)

    async def _step(self) -> bool:
        """Advance or settle; caller holds the lock."""
        if self._total_bars <= 0:
            return False

        if self._cursor >= self._total_bars - 1:
            self._playing = False
            self._cancel_scheduled()
            if self._on_exhausted:
                await self._on_exhausted()
            return False

        self._cursor += 1
        if self._on_advance:
            await self._on_advance(self._cursor)
        return True

    async def _notify(self) -> None:
        if self._on_notify:
            await self._on_notify()

    def _schedule(self) -> None:
        """Start a tick loop for the current generation."""
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation))

    def _cancel_scheduled(self) -> None:
        """Invalidate the running loop and cancel its pending sleep."""
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        # A loop past its sleep exits on its own once the tick and
        # notification complete
        if task not in self._busy_tasks:
            task.cancel()

    def _is_current(self, generation: int) -> bool:
        return self._playing and self._generation == generation

    async def _run(self, generation: int) -> None:
        """Tick loop."""
        interval_s = self._interval_ms / 1000.0
        task = asyncio.current_task()

        while self._is_current(generation):
            await asyncio.sleep(interval_s)

            # Tracked per task: an older loop finishing must not expose a
            # newer one to cancellation mid-notification
            self._busy_tasks.add(task)
            try:
                async with self._lock:
                    if not self._is_current(generation):
                        break
                    try:
                        await self._step()
                    except Exception:
                        logger.exception("Replay tick failed at cursor %d", self._cursor)
                        self._playing = False
                        raise
                await self._notify()
            finally:
                self._busy_tasks.discard(task)
