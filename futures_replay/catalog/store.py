"""
In-memory instrument catalog.
"""

from collections.abc import Iterable, Iterator

from futures_replay.catalog.seed import SEED_INSTRUMENTS
from futures_replay.domain.instrument import Instrument, Sector
from futures_replay.logging import get_logger

logger = get_logger(__name__)


class InstrumentCatalog:
    """
    Read-only catalog of tradeable instruments.

    Preserves seed order; generation iterates instruments in this order so a
    fixed seed always produces the same paths.
    """

    def __init__(self, instruments: Iterable[Instrument] | None = None) -> None:
        """
        Initialize the catalog.

        Args:
            instruments: Instruments to load. Defaults to the seed list.
        """
        items = list(SEED_INSTRUMENTS if instruments is None else instruments)
        self._items: dict[str, Instrument] = {}
        for item in items:
            if item.code in self._items:
                raise ValueError(f"Duplicate instrument code: {item.code}")
            self._items[item.code] = item

        logger.debug("InstrumentCatalog loaded %d instruments", len(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._items.values())

    def __contains__(self, code: object) -> bool:
        return code in self._items

    def get(self, code: str) -> Instrument:
        """
        Get an instrument by code.

        Raises:
            KeyError: If the code is not in the catalog
        """
        try:
            return self._items[code]
        except KeyError as exc:
            raise KeyError(f"Unknown instrument: {code}") from exc

    def find(self, code: str) -> Instrument | None:
        """Get an instrument by code, or None."""
        return self._items.get(code)

    def all(self) -> list[Instrument]:
        """All instruments in seed order."""
        return list(self._items.values())

    def codes(self) -> list[str]:
        """All instrument codes in seed order."""
        return list(self._items.keys())

    def by_sector(self, sector: Sector) -> list[Instrument]:
        """Instruments tagged with ``sector``."""
        return [item for item in self._items.values() if item.sector == sector]

    def sectors(self) -> list[Sector]:
        """Sectors present in the catalog, in first-seen order."""
        seen: dict[Sector, None] = {}
        for item in self._items.values():
            seen.setdefault(item.sector, None)
        return list(seen)
