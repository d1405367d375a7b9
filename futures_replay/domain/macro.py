"""
Macro event domain model.

A macro event is a scheduled calendar event displayed on the replay chart.
The price bias it injected during generation is not part of the record.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ImpactTier(str, Enum):
    """Event impact tier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def volatility_boost(self) -> float:
        """Volatility multiplier applied to bars on the event date."""
        mapping = {
            "high": 3.0,
            "medium": 1.5,
            "low": 1.0,
        }
        return mapping[self.value]


class MacroEvent(BaseModel):
    """A macro event aligned to a generated bar timestamp."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable event identifier")
    timestamp: int = Field(
        ...,
        description="Timestamp of the bar the event is aligned to (unix seconds)",
        ge=0,
    )
    title: str = Field(..., description="Short headline")
    description: str = Field(default="", description="Longer explanation")
    impact: ImpactTier = Field(..., description="Impact tier")
