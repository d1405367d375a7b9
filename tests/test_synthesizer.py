"""
Tests for the synthetic market data generator.
"""

import random
from datetime import date

import pandas as pd
import pytest

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.config import Settings
from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.macro import ImpactTier
from futures_replay.market_data import MACRO_CALENDAR, MarketDataSynthesizer, events_between
from futures_replay.market_data.calendar import SESSION_START_EVENT_ID
from futures_replay.market_data.models import ScheduledEvent


@pytest.fixture
def synth(catalog: InstrumentCatalog, settings: Settings) -> MarketDataSynthesizer:
    """Synthesizer over the seeded catalog with small settings."""
    return MarketDataSynthesizer(catalog=catalog, settings=settings)


# =============================================================================
# Bar shape
# =============================================================================


class TestBarShape:
    """Tests for generated bar invariants."""

    def test_every_instrument_generated(self, synth: MarketDataSynthesizer) -> None:
        """One series per catalog instrument, all the same length."""
        data = synth.generate(date(2024, 3, 1), Timeframe.H1, seed=11)

        assert data.symbols == synth.catalog.codes()
        assert data.total_bars == 300
        assert {len(series) for series in data.bars.values()} == {300}

    def test_ohlc_envelope_and_positive_prices(self, synth: MarketDataSynthesizer) -> None:
        """Every bar has positive prices enclosed by its high and low."""
        data = synth.generate(date(2024, 3, 1), Timeframe.D1, seed=11)

        for series in data.bars.values():
            for bar in series:
                assert bar.low > 0
                assert bar.low <= min(bar.open, bar.close)
                assert bar.high >= max(bar.open, bar.close)
                assert 100 <= bar.volume <= 5_000_000

    def test_timestamps_step_by_timeframe(self, synth: MarketDataSynthesizer) -> None:
        """Bars are gapless at the timeframe step, starting at the open hour."""
        data = synth.generate(date(2024, 3, 1), Timeframe.M15, seed=11)
        series = data.series("rb2501")

        assert series[0].timestamp == synth.start_timestamp(date(2024, 3, 1))
        assert series[0].dt.hour == 9
        deltas = {b.timestamp - a.timestamp for a, b in zip(series, series[1:])}
        assert deltas == {900}

    def test_bars_chain_open_to_prior_close(self, synth: MarketDataSynthesizer) -> None:
        """Each bar opens at the previous close."""
        data = synth.generate(date(2024, 3, 1), Timeframe.H4, seed=11)
        series = data.series("cu2501")

        for previous, current in zip(series, series[1:]):
            assert current.open == previous.close


# =============================================================================
# Determinism
# =============================================================================


class TestDeterminism:
    """Tests for seeded reproducibility."""

    def test_same_seed_same_data(self, synth: MarketDataSynthesizer) -> None:
        """A fixed seed reproduces every bar."""
        first = synth.generate(date(2024, 6, 3), Timeframe.H1, seed=42)
        second = synth.generate(date(2024, 6, 3), Timeframe.H1, seed=42)

        assert first.bars == second.bars
        assert first.events == second.events

    def test_explicit_rng_matches_seed(self, synth: MarketDataSynthesizer) -> None:
        """An injected stream behaves like the same seed."""
        seeded = synth.generate(date(2024, 6, 3), Timeframe.H1, seed=42)
        injected = synth.generate(date(2024, 6, 3), Timeframe.H1, rng=random.Random(42))

        assert seeded.bars == injected.bars

    def test_different_seed_different_data(self, synth: MarketDataSynthesizer) -> None:
        """Different seeds give different paths."""
        first = synth.generate(date(2024, 6, 3), Timeframe.H1, seed=1)
        second = synth.generate(date(2024, 6, 3), Timeframe.H1, seed=2)

        assert first.series("rb2501") != second.series("rb2501")

    def test_configured_seed_used_by_default(self, synth: MarketDataSynthesizer) -> None:
        """Without seed or rng the configured generator seed applies."""
        data = synth.generate(date(2024, 6, 3), Timeframe.H1)
        assert data.seed == 7


# =============================================================================
# Horizon
# =============================================================================


class TestHorizon:
    """Tests for the fixed terminal horizon."""

    def test_start_past_horizon_is_empty(self, synth: MarketDataSynthesizer) -> None:
        """A start date past the horizon produces no bars."""
        data = synth.generate(date(2026, 1, 5), Timeframe.H1, seed=1)

        assert data.is_empty
        assert data.total_bars == 0
        assert data.events == []
        assert synth.total_bars_for(date(2026, 1, 5), Timeframe.H1) == 0

    def test_near_horizon_counts(self, synth: MarketDataSynthesizer) -> None:
        """Bars stop before the day after the horizon date."""
        assert synth.generate(date(2025, 12, 30), Timeframe.D1, seed=1).total_bars == 1
        assert synth.generate(date(2025, 12, 30), Timeframe.H1, seed=1).total_bars == 39

    def test_max_bars_caps_generation(self, synth: MarketDataSynthesizer) -> None:
        """Long ranges are capped at max_bars."""
        assert synth.total_bars_for(date(2024, 1, 2), Timeframe.M15) == 300


# =============================================================================
# Macro events
# =============================================================================


class TestMacroEvents:
    """Tests for event alignment."""

    def test_session_start_marker_first(self, synth: MarketDataSynthesizer) -> None:
        """The first event is the session start marker on bar zero."""
        data = synth.generate(date(2024, 1, 2), Timeframe.H1, seed=1)

        assert data.events[0].id == SESSION_START_EVENT_ID
        assert data.events[0].timestamp == data.timestamp_at(0)

    def test_event_aligned_to_first_bar_of_date(self, synth: MarketDataSynthesizer) -> None:
        """Calendar events land on the first bar of their date."""
        data = synth.generate(date(2024, 9, 20), Timeframe.D1, seed=1)

        ids = [event.id for event in data.events]
        assert ids[:2] == [SESSION_START_EVENT_ID, "cn-stimulus-2024-09"]
        stimulus = data.events[1]
        assert stimulus.timestamp == data.timestamp_at(4)
        assert stimulus.impact == ImpactTier.HIGH

    def test_events_outside_range_skipped(self, synth: MarketDataSynthesizer) -> None:
        """Only events within the generated dates are included."""
        data = synth.generate(date(2024, 9, 20), Timeframe.M15, seed=1)

        # 300 bars of 15m stay within 2024-09-20..2024-09-23
        assert [event.id for event in data.events] == [SESSION_START_EVENT_ID]

    def test_events_until(self, synth: MarketDataSynthesizer) -> None:
        """Only events at or before a timestamp are revealed."""
        data = synth.generate(date(2024, 9, 20), Timeframe.D1, seed=1)

        revealed = data.events_until(data.timestamp_at(3))
        assert [event.id for event in revealed] == [SESSION_START_EVENT_ID]

    def test_calendar_events_between(self) -> None:
        """Calendar lookup is inclusive on both ends."""
        found = events_between(date(2024, 9, 18), date(2024, 9, 24))
        assert [event.id for event in found] == ["fomc-2024-09", "cn-stimulus-2024-09"]
        assert len(MACRO_CALENDAR) == 20

        custom = events_between(date(2024, 1, 1), date(2025, 12, 31), [STIMULUS])
        assert custom == [STIMULUS]


# =============================================================================
# Macro bias
# =============================================================================


STIMULUS = next(event for event in MACRO_CALENDAR if event.id == "cn-stimulus-2024-09")


def bar_returns(series: list[Bar]) -> list[float]:
    return [bar.close / bar.open - 1 for bar in series]


class TestMacroBias:
    """Tests for the event-date bias and volatility boost."""

    def make_synth(
        self, catalog: InstrumentCatalog, settings: Settings, calendar: list[ScheduledEvent]
    ) -> MarketDataSynthesizer:
        return MarketDataSynthesizer(catalog=catalog, settings=settings, calendar=calendar)

    def test_event_day_moves_harder(self, catalog: InstrumentCatalog, settings: Settings) -> None:
        """The event bar carries the bias and boosted volume; earlier bars are untouched."""
        start = date(2024, 9, 20)
        with_event = self.make_synth(catalog, settings, [STIMULUS]).generate(
            start, Timeframe.D1, seed=5
        )
        without = self.make_synth(catalog, settings, []).generate(start, Timeframe.D1, seed=5)

        boosted = with_event.series("rb2501")
        plain = without.series("rb2501")
        assert boosted[:4] == plain[:4]

        # Boost widens the uniform shock by at most 0.25 * vol * (boost - 1)
        shift = bar_returns(boosted)[4] - bar_returns(plain)[4]
        assert shift == pytest.approx(STIMULUS.bias, abs=0.25 * 0.006 * 2 + 1e-9)

        move_boosted = abs(boosted[4].close - boosted[4].open) / boosted[4].open
        move_plain = abs(plain[4].close - plain[4].open) / plain[4].open
        expected_ratio = 3.0 * (1 + 200 * move_boosted) / (1 + 200 * move_plain)
        assert boosted[4].volume / plain[4].volume == pytest.approx(expected_ratio, rel=2e-3)
        assert boosted[4].volume != plain[4].volume

    def test_daily_bias_exact(self, catalog: InstrumentCatalog, settings: Settings) -> None:
        """On daily bars the whole bias lands on the event bar."""
        neutral = STIMULUS.model_copy(update={"bias": 0.0})
        start = date(2024, 9, 20)
        biased = self.make_synth(catalog, settings, [STIMULUS]).generate(
            start, Timeframe.D1, seed=5
        )
        unbiased = self.make_synth(catalog, settings, [neutral]).generate(
            start, Timeframe.D1, seed=5
        )

        for code in ("rb2501", "cu2501"):
            diffs = [
                a - b
                for a, b in zip(
                    bar_returns(biased.series(code)), bar_returns(unbiased.series(code))
                )
            ]
            assert diffs[4] == pytest.approx(STIMULUS.bias, abs=1e-9)
            assert all(d == pytest.approx(0.0, abs=1e-9) for i, d in enumerate(diffs) if i != 4)

    def test_intraday_bias_spread_across_the_day(
        self, catalog: InstrumentCatalog, settings: Settings
    ) -> None:
        """Hourly bars each take 1/24 of the bias, summing to the daily bias."""
        neutral = STIMULUS.model_copy(update={"bias": 0.0})
        start = date(2024, 9, 23)
        biased = self.make_synth(catalog, settings, [STIMULUS]).generate(
            start, Timeframe.H1, seed=5
        )
        unbiased = self.make_synth(catalog, settings, [neutral]).generate(
            start, Timeframe.H1, seed=5
        )

        diffs = [
            a - b
            for a, b in zip(
                bar_returns(biased.series("rb2501")), bar_returns(unbiased.series("rb2501"))
            )
        ]
        event_day = [
            d
            for bar, d in zip(biased.series("rb2501"), diffs)
            if bar.dt.date() == STIMULUS.event_date
        ]

        assert len(event_day) == 24
        assert all(d == pytest.approx(STIMULUS.bias / 24, abs=1e-9) for d in event_day)
        assert sum(event_day) == pytest.approx(STIMULUS.bias, abs=1e-8)
        assert sum(diffs) == pytest.approx(STIMULUS.bias, abs=1e-8)


# =============================================================================
# Frames
# =============================================================================


class TestFrames:
    """Tests for DataFrame export."""

    def test_to_frame(self, synth: MarketDataSynthesizer) -> None:
        """Bars export as a UTC-indexed OHLCV frame."""
        data = synth.generate(date(2024, 3, 1), Timeframe.H1, seed=3)

        df = data.to_frame("rb2501", end_index=9)

        assert len(df) == 10
        assert list(df.columns) == ["open", "high", "low", "close", "volume"]
        assert df.index[0] == pd.Timestamp("2024-03-01 09:00", tz="UTC")
        assert (df["high"] >= df["low"]).all()

    def test_unknown_symbol_raises(self, synth: MarketDataSynthesizer) -> None:
        """Series lookup for an unknown code raises KeyError."""
        data = synth.generate(date(2024, 3, 1), Timeframe.H1, seed=3)

        with pytest.raises(KeyError):
            data.series("zz9999")
        assert data.bar_at("zz9999", 0) is None
        assert data.bar_at("rb2501", 300) is None
