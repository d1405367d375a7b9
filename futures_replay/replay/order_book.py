"""
Cosmetic order book.

The depth ladder shown beside the chart is decoration only: levels are spaced
one basis point of the instrument base price around the current close and
sizes are random. Nothing in matching reads it.
"""

import random

from futures_replay.domain.instrument import Instrument
from futures_replay.replay.models import OrderBook, OrderBookLevel

LEVEL_STEP_FRACTION = 0.0001
MIN_LEVEL_SIZE = 10
MAX_LEVEL_SIZE = 89


def build_order_book(
    close: float,
    instrument: Instrument,
    rng: random.Random,
    levels: int = 5,
) -> OrderBook:
    """
    Build a depth ladder around ``close``.

    Asks are listed nearest first (close + step, close + 2*step, ...), as are
    bids (close - step, ...). Prices are rounded to the instrument's display
    precision.
    """
    step = instrument.base_price * LEVEL_STEP_FRACTION
    decimals = instrument.price_decimals

    asks = [
        OrderBookLevel(
            price=round(close + i * step, decimals),
            size=rng.randint(MIN_LEVEL_SIZE, MAX_LEVEL_SIZE),
        )
        for i in range(1, levels + 1)
    ]
    bids = [
        OrderBookLevel(
            price=round(close - i * step, decimals),
            size=rng.randint(MIN_LEVEL_SIZE, MAX_LEVEL_SIZE),
        )
        for i in range(1, levels + 1)
    ]
    return OrderBook(asks=asks, bids=bids)
