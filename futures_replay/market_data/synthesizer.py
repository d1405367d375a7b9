"""
Correlated synthetic market data generator.

Produces one gapless bar sequence per catalog instrument for a start date and
timeframe. Each step's return is the sum of three components:

1. Idiosyncratic noise: a slow sinusoidal drift with a per-instrument phase,
   plus a uniform shock scaled by the instrument volatility.
2. Sector/market residual: draws shared by every instrument in a sector and
   by the whole market, which is what correlates the paths.
3. Macro bias: a directional push and volatility boost on the calendar date
   of a scheduled event.

All randomness comes from one ``random.Random`` per call, so a fixed seed
reproduces the whole data set.
"""

import math
import random
from datetime import UTC, date, datetime, time, timedelta

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.config import Settings, get_settings
from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.instrument import Instrument
from futures_replay.domain.macro import ImpactTier, MacroEvent
from futures_replay.logging import get_logger
from futures_replay.market_data.calendar import (
    MACRO_CALENDAR,
    SESSION_START_EVENT_ID,
    events_between,
)
from futures_replay.market_data.models import MarketData, ScheduledEvent

logger = get_logger(__name__)

# Return component weights
IDIOSYNCRATIC_WEIGHT = 0.5
SECTOR_WEIGHT = 0.3
MARKET_WEIGHT = 0.2

# Daily-scale amplitude of the shared draws
SECTOR_AMPLITUDE = 0.008
MARKET_AMPLITUDE = 0.004

# Sinusoidal drift: amplitude and phase advance per bar
DRIFT_AMPLITUDE = 0.001
DRIFT_FREQUENCY = 0.1

# Initial price jitter around the instrument base price
START_PRICE_JITTER = 0.05

# Wick extension as a fraction of the bar volatility
WICK_FRACTION = 0.6

# Volume model
BASE_VOLUME = 10000.0
MOVE_VOLUME_FACTOR = 200.0
VOLUME_FLOOR = 100.0
VOLUME_CEILING = 5_000_000.0

SECONDS_PER_DAY = 86400


class MarketDataSynthesizer:
    """
    Generates replay data for every instrument in the catalog.

    Usage:
        synth = MarketDataSynthesizer()
        data = synth.generate(date(2024, 9, 1), Timeframe.H1, rng=random.Random(7))
    """

    def __init__(
        self,
        catalog: InstrumentCatalog | None = None,
        settings: Settings | None = None,
        calendar: list[ScheduledEvent] | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else InstrumentCatalog()
        self._settings = settings or get_settings()
        self._calendar = list(MACRO_CALENDAR if calendar is None else calendar)

    @property
    def catalog(self) -> InstrumentCatalog:
        """Instruments the synthesizer generates data for."""
        return self._catalog

    def start_timestamp(self, start_date: date) -> int:
        """Unix timestamp of the first bar on ``start_date``."""
        start_dt = datetime.combine(
            start_date, time(hour=self._settings.session_open_hour), tzinfo=UTC
        )
        return int(start_dt.timestamp())

    def horizon_timestamp(self) -> int:
        """Unix timestamp no bar may open at or after (end of the horizon date)."""
        horizon = datetime.combine(
            self._settings.horizon_date + timedelta(days=1), time(0), tzinfo=UTC
        )
        return int(horizon.timestamp())

    def total_bars_for(self, start_date: date, timeframe: Timeframe) -> int:
        """
        Number of bars a generation for ``start_date`` would produce.

        Returns 0 (never negative) when the start date leaves no room before
        the horizon.
        """
        available = (
            self.horizon_timestamp() - self.start_timestamp(start_date)
        ) // timeframe.step_seconds
        return max(0, min(self._settings.max_bars, available))

    def generate(
        self,
        start_date: date,
        timeframe: Timeframe | str,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> MarketData:
        """
        Generate bars for every instrument plus aligned macro events.

        Args:
            start_date: Calendar date of the first bar
            timeframe: Bar timeframe
            rng: Random stream to draw from (takes precedence over ``seed``)
            seed: Seed for a fresh stream; falls back to the configured
                ``generator_seed``, then to a new random seed

        Returns:
            MarketData; empty when no bar fits before the horizon
        """
        timeframe = Timeframe(timeframe)

        if rng is None:
            if seed is None:
                seed = self._settings.generator_seed
            if seed is None:
                seed = random.getrandbits(32)
            rng = random.Random(seed)

        total_bars = self.total_bars_for(start_date, timeframe)
        if total_bars <= 0:
            logger.warning(
                "No bars available between %s and horizon %s",
                start_date.isoformat(),
                self._settings.horizon_date.isoformat(),
            )
            return MarketData(start_date=start_date, timeframe=timeframe, seed=seed)

        step = timeframe.step_seconds
        tf_mult = timeframe.volatility_multiplier
        start_ts = self.start_timestamp(start_date)
        timestamps = [start_ts + i * step for i in range(total_bars)]
        dates = [datetime.fromtimestamp(ts, tz=UTC).date() for ts in timestamps]

        scheduled = events_between(dates[0], dates[-1], self._calendar)
        by_date = {}
        for event in scheduled:
            by_date.setdefault(event.event_date, event)

        # Sub-daily bars share the event's daily bias across the day
        bias_scale = min(1.0, step / SECONDS_PER_DAY)
        biases = [0.0] * total_bars
        boosts = [1.0] * total_bars
        for i, bar_date in enumerate(dates):
            event = by_date.get(bar_date)
            if event is not None:
                biases[i] = event.bias * bias_scale
                boosts[i] = event.impact.volatility_boost

        market_trend = [
            (rng.random() - 0.5) * MARKET_AMPLITUDE * tf_mult for _ in range(total_bars)
        ]
        sector_trends = {
            sector: [(rng.random() - 0.5) * SECTOR_AMPLITUDE * tf_mult for _ in range(total_bars)]
            for sector in self._catalog.sectors()
        }

        bars: dict[str, list[Bar]] = {}
        for instrument in self._catalog:
            bars[instrument.code] = self._generate_series(
                instrument=instrument,
                timeframe=timeframe,
                timestamps=timestamps,
                market_trend=market_trend,
                sector_trend=sector_trends[instrument.sector],
                biases=biases,
                boosts=boosts,
                rng=rng,
            )

        events = self._align_events(scheduled, timestamps, dates)

        logger.info(
            "Generated %d bars x %d instruments (%s from %s, %d events, seed=%s)",
            total_bars,
            len(bars),
            timeframe.value,
            start_date.isoformat(),
            len(events),
            seed,
        )

        return MarketData(
            start_date=start_date,
            timeframe=timeframe,
            bars=bars,
            events=events,
            seed=seed,
        )

    def _generate_series(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        timestamps: list[int],
        market_trend: list[float],
        sector_trend: list[float],
        biases: list[float],
        boosts: list[float],
        rng: random.Random,
    ) -> list[Bar]:
        """Generate one instrument's bar sequence."""
        tf_mult = timeframe.volatility_multiplier
        price = instrument.base_price * (1 + (rng.random() - 0.5) * START_PRICE_JITTER)
        phase = rng.random() * 1000

        series: list[Bar] = []
        for i, ts in enumerate(timestamps):
            vol = instrument.volatility * tf_mult * boosts[i]

            noise = math.sin(phase + i * DRIFT_FREQUENCY) * DRIFT_AMPLITUDE
            noise += (rng.random() - 0.5) * vol
            residual = sector_trend[i] * SECTOR_WEIGHT + market_trend[i] * MARKET_WEIGHT
            change = noise * IDIOSYNCRATIC_WEIGHT + residual + biases[i]

            open_ = price
            close = open_ * (1 + change)
            high = max(open_, close) * (1 + rng.random() * vol * WICK_FRACTION)
            low = min(open_, close) * (1 - rng.random() * vol * WICK_FRACTION)

            move = abs(close - open_) / open_
            volume = (
                BASE_VOLUME
                / tf_mult
                * (1 + move * MOVE_VOLUME_FACTOR)
                * boosts[i]
                * rng.uniform(0.2, 1.2)
            )
            volume = float(math.floor(min(max(volume, VOLUME_FLOOR), VOLUME_CEILING)))

            series.append(
                Bar(
                    symbol=instrument.code,
                    timeframe=timeframe,
                    timestamp=ts,
                    open=open_,
                    high=high,
                    low=low,
                    close=close,
                    volume=volume,
                )
            )
            price = close

        return series

    def _align_events(
        self,
        scheduled: list[ScheduledEvent],
        timestamps: list[int],
        dates: list[date],
    ) -> list[MacroEvent]:
        """Session start marker plus each event on the first bar of its date."""
        first_index: dict[date, int] = {}
        for i, bar_date in enumerate(dates):
            first_index.setdefault(bar_date, i)

        events = [
            MacroEvent(
                id=SESSION_START_EVENT_ID,
                timestamp=timestamps[0],
                title="Replay session start",
                description="First bar of the generated history.",
                impact=ImpactTier.LOW,
            )
        ]
        for event in scheduled:
            index = first_index.get(event.event_date)
            if index is None:
                continue
            events.append(event.to_macro_event(timestamps[index]))

        return events
