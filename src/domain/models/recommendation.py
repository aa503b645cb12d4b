"""Recommendation models.

Recommendations are computed transiently from a simulation result and the
user's slider values; they are never persisted.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class RecommendationType(str, Enum):
    PER = "per"
    WORKS = "works"


class Recommendation(BaseModel):
    """One what-if optimisation and its marginal tax saving."""

    type: RecommendationType
    label: str = Field(..., description="Short display label")
    current: float = Field(..., description="Current amount (contribution or charges) in €")
    optimal: float = Field(..., ge=0, description="Proposed additional amount, capped, in €")
    potential_savings: float = Field(..., description="Tax saved by the proposal in €")
    ratio: float = Field(..., description="€ saved per € spent")
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class RecommendationOverrides(BaseModel):
    """User-adjustable slider values."""

    per_additional_contribution: float | None = Field(
        default=None, ge=0, description="Extra PER contribution to evaluate, default = full headroom"
    )
    works_amount: float | None = Field(
        default=None, ge=0, description="Custom extra deductible works to evaluate"
    )
    use_per_carryover: bool = Field(
        default=False, description="Add unused PER ceilings of previous years"
    )

    model_config = {"frozen": True, "allow_inf_nan": False}

    @field_validator("per_additional_contribution", "works_amount", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("expected a number, got a boolean")
        return value
