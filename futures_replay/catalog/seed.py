"""
Seed data for the instrument catalog.

Defines the 20 futures contracts available for replay.
"""

from futures_replay.domain.instrument import Instrument, Sector

# =============================================================================
# SEED DATA: 20 Contracts
# =============================================================================

SEED_INSTRUMENTS: list[Instrument] = [
    # =========================================================================
    # METALS (8)
    # =========================================================================
    Instrument(
        code="ag2512",
        name="沪银2512",
        base_price=7100,
        multiplier=15,
        margin_rate=0.12,
        fee=3.0,
        volatility=0.008,
        sector=Sector.METAL,
    ),
    Instrument(
        code="au2512",
        name="沪金2512",
        base_price=600,
        multiplier=1000,
        margin_rate=0.10,
        fee=10.0,
        volatility=0.005,
        sector=Sector.METAL,
    ),
    Instrument(
        code="rb2501",
        name="螺纹2501",
        base_price=3300,
        multiplier=10,
        margin_rate=0.10,
        fee=5.0,
        volatility=0.006,
        sector=Sector.METAL,
    ),
    Instrument(
        code="hc2501",
        name="热卷2501",
        base_price=3400,
        multiplier=10,
        margin_rate=0.10,
        fee=5.0,
        volatility=0.007,
        sector=Sector.METAL,
    ),
    Instrument(
        code="ss2501",
        name="不锈钢2501",
        base_price=13500,
        multiplier=5,
        margin_rate=0.10,
        fee=3.0,
        volatility=0.006,
        sector=Sector.METAL,
    ),
    Instrument(
        code="cu2501",
        name="沪铜2501",
        base_price=68000,
        multiplier=5,
        margin_rate=0.10,
        fee=17.0,
        volatility=0.007,
        sector=Sector.METAL,
    ),
    Instrument(
        code="al2501",
        name="沪铝2501",
        base_price=19000,
        multiplier=5,
        margin_rate=0.10,
        fee=3.0,
        volatility=0.006,
        sector=Sector.METAL,
    ),
    Instrument(
        code="zn2501",
        name="沪锌2501",
        base_price=21000,
        multiplier=5,
        margin_rate=0.10,
        fee=3.0,
        volatility=0.008,
        sector=Sector.METAL,
    ),
    # =========================================================================
    # ENERGY (4)
    # =========================================================================
    Instrument(
        code="sc2501",
        name="原油2501",
        base_price=530,
        multiplier=1000,
        margin_rate=0.15,
        fee=20.0,
        volatility=0.015,
        sector=Sector.ENERGY,
    ),
    Instrument(
        code="fu2501",
        name="燃油2501",
        base_price=3000,
        multiplier=10,
        margin_rate=0.12,
        fee=3.0,
        volatility=0.012,
        sector=Sector.ENERGY,
    ),
    Instrument(
        code="pg2501",
        name="LPG2501",
        base_price=4800,
        multiplier=20,
        margin_rate=0.12,
        fee=6.0,
        volatility=0.014,
        sector=Sector.ENERGY,
    ),
    Instrument(
        code="j2501",
        name="焦炭2501",
        base_price=2000,
        multiplier=100,
        margin_rate=0.20,
        fee=30.0,
        volatility=0.011,
        sector=Sector.ENERGY,
    ),
    # =========================================================================
    # CHEMICALS (4)
    # =========================================================================
    Instrument(
        code="FG2501",
        name="玻璃2501",
        base_price=1200,
        multiplier=20,
        margin_rate=0.12,
        fee=6.0,
        volatility=0.012,
        sector=Sector.CHEMICAL,
    ),
    Instrument(
        code="SA2501",
        name="纯碱2501",
        base_price=1600,
        multiplier=20,
        margin_rate=0.12,
        fee=4.0,
        volatility=0.015,
        sector=Sector.CHEMICAL,
    ),
    Instrument(
        code="MA2501",
        name="甲醇2501",
        base_price=2400,
        multiplier=10,
        margin_rate=0.10,
        fee=2.0,
        volatility=0.010,
        sector=Sector.CHEMICAL,
    ),
    Instrument(
        code="TA2501",
        name="PTA2501",
        base_price=5800,
        multiplier=5,
        margin_rate=0.10,
        fee=3.0,
        volatility=0.009,
        sector=Sector.CHEMICAL,
    ),
    # =========================================================================
    # AGRICULTURE (3)
    # =========================================================================
    Instrument(
        code="lh2501",
        name="生猪2501",
        base_price=14500,
        multiplier=16,
        margin_rate=0.15,
        fee=25.0,
        volatility=0.010,
        sector=Sector.AGRI,
    ),
    Instrument(
        code="p2501",
        name="棕榈2501",
        base_price=7200,
        multiplier=10,
        margin_rate=0.10,
        fee=2.5,
        volatility=0.009,
        sector=Sector.AGRI,
    ),
    Instrument(
        code="m2501",
        name="豆粕2501",
        base_price=3100,
        multiplier=10,
        margin_rate=0.10,
        fee=1.5,
        volatility=0.008,
        sector=Sector.AGRI,
    ),
    # =========================================================================
    # INDEX (1)
    # =========================================================================
    Instrument(
        code="IF2501",
        name="沪深300",
        base_price=3400,
        multiplier=300,
        margin_rate=0.12,
        fee=25.0,
        volatility=0.012,
        sector=Sector.INDEX,
    ),
]


def get_seed_count() -> int:
    """Get number of seeded instruments."""
    return len(SEED_INSTRUMENTS)
