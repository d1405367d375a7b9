"""
Instrument domain model.

Represents a tradeable futures contract and its contract economics.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Sector(str, Enum):
    """Sector tag used to correlate generated price paths."""

    METAL = "metal"
    ENERGY = "energy"
    CHEMICAL = "chemical"
    AGRI = "agri"
    INDEX = "index"


class Instrument(BaseModel):
    """
    A tradeable futures contract.

    Immutable; loaded once from the catalog seed.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(
        ...,
        description="Contract code (e.g., rb2501)",
        min_length=1,
        max_length=16,
    )
    name: str = Field(
        ...,
        description="Human-readable contract name",
    )
    base_price: float = Field(
        ...,
        description="Reference price the generator starts around",
        gt=0,
    )
    multiplier: int = Field(
        ...,
        description="Contract multiplier (units per lot)",
        gt=0,
    )
    margin_rate: float = Field(
        ...,
        description="Margin as a fraction of notional (0.10 = 10%)",
        gt=0,
        le=1,
    )
    fee: float = Field(
        ...,
        description="Fixed fee per lot, charged on every fill",
        ge=0,
    )
    volatility: float = Field(
        ...,
        description="Base per-bar volatility at the daily timeframe",
        gt=0,
        lt=1,
    )
    sector: Sector = Field(
        ...,
        description="Sector tag",
    )

    @property
    def price_decimals(self) -> int:
        """Decimal places used when displaying prices."""
        return 2 if self.sector == Sector.METAL else 0

    def notional(self, price: float, quantity: int) -> float:
        """Notional value of ``quantity`` lots at ``price``."""
        return price * quantity * self.multiplier

    def margin_for(self, price: float, quantity: int) -> float:
        """Margin required to hold ``quantity`` lots at ``price``."""
        return self.notional(price, quantity) * self.margin_rate

    def fee_for(self, quantity: int) -> float:
        """Fee charged for a fill of ``quantity`` lots."""
        return self.fee * quantity

    def __hash__(self) -> int:
        return hash(self.code)
