"""
Macro event calendar.

Real-world scheduled events between 2024 and 2025. Each entry carries the
directional bias the synthesizer injects on bars of that date; the bias is
used at generation time only and is not copied onto the MacroEvent record.
"""

from collections.abc import Iterable
from datetime import date

from futures_replay.domain.macro import ImpactTier
from futures_replay.market_data.models import ScheduledEvent

SESSION_START_EVENT_ID = "session-start"

MACRO_CALENDAR: list[ScheduledEvent] = [
    ScheduledEvent(
        id="fomc-2024-01",
        event_date=date(2024, 1, 31),
        title="FOMC rate decision",
        description="Fed holds rates at 5.25-5.50% and pushes back on March cut bets.",
        impact=ImpactTier.HIGH,
        bias=-0.012,
    ),
    ScheduledEvent(
        id="cn-rrr-2024-02",
        event_date=date(2024, 2, 5),
        title="PBoC reserve ratio cut",
        description="50bp RRR cut takes effect, releasing long-term liquidity.",
        impact=ImpactTier.MEDIUM,
        bias=0.010,
    ),
    ScheduledEvent(
        id="cn-npc-2024-03",
        event_date=date(2024, 3, 5),
        title="NPC government work report",
        description="Growth target set around 5% with ultra-long special bonds.",
        impact=ImpactTier.HIGH,
        bias=0.015,
    ),
    ScheduledEvent(
        id="us-cpi-2024-04",
        event_date=date(2024, 4, 10),
        title="US CPI above expectations",
        description="Core inflation surprises to the upside; rate-cut pricing fades.",
        impact=ImpactTier.HIGH,
        bias=-0.014,
    ),
    ScheduledEvent(
        id="cn-property-2024-05",
        event_date=date(2024, 5, 17),
        title="Property support package",
        description="Down-payment ratios lowered and local governments told to buy housing stock.",
        impact=ImpactTier.MEDIUM,
        bias=0.012,
    ),
    ScheduledEvent(
        id="cn-plenum-2024-07",
        event_date=date(2024, 7, 18),
        title="Third Plenum communique",
        description="Reform agenda published with little near-term stimulus.",
        impact=ImpactTier.LOW,
        bias=-0.004,
    ),
    ScheduledEvent(
        id="jp-carry-2024-08",
        event_date=date(2024, 8, 5),
        title="Yen carry unwind",
        description="Global risk assets sell off as the yen surges.",
        impact=ImpactTier.HIGH,
        bias=-0.020,
    ),
    ScheduledEvent(
        id="fomc-2024-09",
        event_date=date(2024, 9, 18),
        title="FOMC 50bp cut",
        description="Fed starts its easing cycle with a larger-than-usual cut.",
        impact=ImpactTier.HIGH,
        bias=0.012,
    ),
    ScheduledEvent(
        id="cn-stimulus-2024-09",
        event_date=date(2024, 9, 24),
        title="PBoC stimulus package",
        description="Rate cuts, RRR cut and equity market support tools announced together.",
        impact=ImpactTier.HIGH,
        bias=0.025,
    ),
    ScheduledEvent(
        id="cn-holiday-2024-10",
        event_date=date(2024, 10, 8),
        title="Post-holiday NDRC briefing",
        description="No new fiscal measures; the stimulus rally reverses.",
        impact=ImpactTier.MEDIUM,
        bias=-0.018,
    ),
    ScheduledEvent(
        id="us-election-2024-11",
        event_date=date(2024, 11, 6),
        title="US election result",
        description="Dollar strengthens on tariff expectations.",
        impact=ImpactTier.HIGH,
        bias=-0.010,
    ),
    ScheduledEvent(
        id="cn-politburo-2024-12",
        event_date=date(2024, 12, 9),
        title="Politburo shifts to moderately loose policy",
        description="First change in monetary stance wording in fourteen years.",
        impact=ImpactTier.MEDIUM,
        bias=0.014,
    ),
    ScheduledEvent(
        id="fomc-2024-12",
        event_date=date(2024, 12, 18),
        title="FOMC hawkish cut",
        description="Fed cuts 25bp but signals fewer cuts in the coming year.",
        impact=ImpactTier.HIGH,
        bias=-0.011,
    ),
    ScheduledEvent(
        id="us-tariff-2025-02",
        event_date=date(2025, 2, 4),
        title="US tariff increase on Chinese goods",
        description="Additional 10% tariff takes effect; China announces countermeasures.",
        impact=ImpactTier.MEDIUM,
        bias=-0.008,
    ),
    ScheduledEvent(
        id="cn-npc-2025-03",
        event_date=date(2025, 3, 5),
        title="NPC sets 2025 targets",
        description="Deficit ratio raised to around 4% of GDP.",
        impact=ImpactTier.MEDIUM,
        bias=0.009,
    ),
    ScheduledEvent(
        id="us-tariff-2025-04",
        event_date=date(2025, 4, 7),
        title="Reciprocal tariff shock",
        description="Commodities and equities gap lower after sweeping tariff announcement.",
        impact=ImpactTier.HIGH,
        bias=-0.030,
    ),
    ScheduledEvent(
        id="us-cn-talks-2025-05",
        event_date=date(2025, 5, 12),
        title="US-China tariff truce",
        description="Both sides cut tariffs for ninety days after Geneva talks.",
        impact=ImpactTier.HIGH,
        bias=0.020,
    ),
    ScheduledEvent(
        id="cn-anti-involution-2025-07",
        event_date=date(2025, 7, 1),
        title="Anti-involution campaign",
        description="Capacity discipline push lifts steel, glass and soda ash.",
        impact=ImpactTier.MEDIUM,
        bias=0.013,
    ),
    ScheduledEvent(
        id="fomc-2025-09",
        event_date=date(2025, 9, 17),
        title="FOMC resumes cuts",
        description="Fed cuts 25bp citing a softening labour market.",
        impact=ImpactTier.MEDIUM,
        bias=0.008,
    ),
    ScheduledEvent(
        id="cn-pmi-2025-11",
        event_date=date(2025, 11, 30),
        title="Official PMI below 50",
        description="Manufacturing contraction extends for another month.",
        impact=ImpactTier.LOW,
        bias=-0.005,
    ),
]


def events_between(
    start: date,
    end: date,
    calendar: Iterable[ScheduledEvent] | None = None,
) -> list[ScheduledEvent]:
    """
    Events whose date lies in ``[start, end]``, in date order.

    Filters ``calendar`` when given, otherwise the built-in macro calendar.
    """
    source = MACRO_CALENDAR if calendar is None else calendar
    return sorted(
        (event for event in source if start <= event.event_date <= end),
        key=lambda event: event.event_date,
    )
