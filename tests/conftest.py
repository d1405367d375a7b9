"""
Pytest configuration and shared fixtures.
"""

from collections.abc import Callable, Generator

import pytest

from futures_replay.catalog.store import InstrumentCatalog
from futures_replay.config import Settings, get_settings
from futures_replay.domain.bar import Bar, Timeframe
from futures_replay.domain.instrument import Instrument, Sector
from futures_replay.logging import clear_in_memory_logs, clear_session_id
from futures_replay.replay.ledger import PositionLedger
from futures_replay.replay.matching import OrderMatchingEngine
from futures_replay.replay.session import SessionController
from futures_replay.runtime.event_bus import EventBus, reset_event_bus


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure no local REPLAY_* overrides leak into tests."""
    for var in [
        "REPLAY_LOG_LEVEL",
        "REPLAY_INITIAL_CASH",
        "REPLAY_DEFAULT_TIMEFRAME",
        "REPLAY_DEFAULT_SPEED_MS",
        "REPLAY_WARMUP_BARS",
        "REPLAY_MAX_BARS",
        "REPLAY_GENERATOR_SEED",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset module-level singletons between tests."""
    yield

    get_settings.cache_clear()
    reset_event_bus()
    clear_session_id()
    clear_in_memory_logs()


# =============================================================================
# Instruments
# =============================================================================


@pytest.fixture
def rebar() -> Instrument:
    """Rebar-like contract: multiplier 10, margin 10%, fee 5 per lot."""
    return Instrument(
        code="rb2501",
        name="Rebar",
        base_price=3300,
        multiplier=10,
        margin_rate=0.10,
        fee=5.0,
        volatility=0.012,
        sector=Sector.METAL,
    )


@pytest.fixture
def crude() -> Instrument:
    """Second contract in another sector."""
    return Instrument(
        code="sc2501",
        name="Crude Oil",
        base_price=530,
        multiplier=1000,
        margin_rate=0.12,
        fee=20.0,
        volatility=0.015,
        sector=Sector.ENERGY,
    )


@pytest.fixture
def small_catalog(rebar: Instrument, crude: Instrument) -> InstrumentCatalog:
    """Two-instrument catalog."""
    return InstrumentCatalog([rebar, crude])


@pytest.fixture
def catalog() -> InstrumentCatalog:
    """Full seeded catalog."""
    return InstrumentCatalog()


# =============================================================================
# Bars
# =============================================================================


BarFactory = Callable[..., Bar]


@pytest.fixture
def make_bar() -> BarFactory:
    """Factory for bars with sensible OHLC defaults."""

    def _make(
        close: float,
        high: float | None = None,
        low: float | None = None,
        open_: float | None = None,
        symbol: str = "rb2501",
        timestamp: int = 1_704_186_000,
        volume: float = 1000.0,
    ) -> Bar:
        open_price = close if open_ is None else open_
        return Bar(
            symbol=symbol,
            timeframe=Timeframe.M15,
            timestamp=timestamp,
            open=open_price,
            high=max(open_price, close) if high is None else high,
            low=min(open_price, close) if low is None else low,
            close=close,
            volume=volume,
        )

    return _make


# =============================================================================
# Engine
# =============================================================================


@pytest.fixture
def ledger(small_catalog: InstrumentCatalog) -> PositionLedger:
    """Ledger with 100k starting cash."""
    return PositionLedger(catalog=small_catalog, initial_cash=100000.0)


@pytest.fixture
def matching(ledger: PositionLedger) -> OrderMatchingEngine:
    """Matching engine on the default ledger."""
    return OrderMatchingEngine(ledger)


@pytest.fixture
def settings() -> Settings:
    """Small, seeded settings so sessions generate quickly."""
    return Settings(
        initial_cash=100000.0,
        default_timeframe="15m",
        default_speed_ms=10,
        warmup_bars=50,
        max_bars=300,
        generator_seed=7,
    )


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def controller(settings: Settings, event_bus: EventBus) -> SessionController:
    """Session controller over the seeded catalog."""
    return SessionController(settings=settings, event_bus=event_bus)
