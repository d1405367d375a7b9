"""
Account state domain model.
"""

from pydantic import BaseModel, ConfigDict, Field


class AccountState(BaseModel):
    """
    Account balance and trade statistics.

    ``cash`` is the initial balance plus realized PnL minus fees. Equity and
    margin figures depend on marks and are computed by the ledger.
    """

    model_config = ConfigDict(frozen=True)

    initial_balance: float = Field(..., description="Balance at session start", gt=0)
    cash: float = Field(..., description="Initial balance + realized PnL - fees")
    trade_count: int = Field(default=0, description="Closing fills", ge=0)
    win_count: int = Field(default=0, description="Closing fills with PnL > 0", ge=0)

    @property
    def win_rate(self) -> float:
        """Fraction of closing fills that were profitable (0.0 when none)."""
        if self.trade_count == 0:
            return 0.0
        return self.win_count / self.trade_count

    @property
    def net_change(self) -> float:
        """Cash change since the session started."""
        return self.cash - self.initial_balance
