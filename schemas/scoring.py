"""ICP lead-scoring schemas."""

from typing import Iterator, Tuple
from pydantic import AliasChoices, Field

from .articles import WireModel


class LeadInput(WireModel):
    """A lead submitted for ICP matching."""
    session_user_id: str = Field(
        validation_alias=AliasChoices("sessionUserId", "oduserId", "session_user_id"),
        serialization_alias="sessionUserId",
    )
    insight: str = ""


class DimensionAssessment(WireModel):
    """Raw 0-100 sub-score for one dimension with its justification."""
    score: float = Field(0.0, ge=0.0, le=100.0)
    detail: str = ""


class DimensionScore(WireModel):
    """Weighted contribution of one dimension."""
    points: float
    max_points: float = Field(alias="max")
    detail: str = ""

    @property
    def ratio(self) -> float:
        return self.points / self.max_points if self.max_points else 0.0


class ScoreBreakdown(WireModel):
    """Per-dimension weighted points."""
    fit: DimensionScore
    budget: DimensionScore
    need: DimensionScore
    urgency: DimensionScore
    engagement: DimensionScore

    def items(self) -> Iterator[Tuple[str, DimensionScore]]:
        for name in ("fit", "budget", "need", "urgency", "engagement"):
            yield name, getattr(self, name)


class LeadScore(WireModel):
    """Derived lead score; recomputed per ICP match and never persisted."""
    session_user_id: str
    score: int = Field(ge=0, le=100)
    reason: str
    breakdown: ScoreBreakdown
