"""Scores, flags and assessment tiers."""

from typing import Any

from pydantic import BaseModel, Field

from promptometry.core.models.core import Severity


class ScoreBundle(BaseModel):
    """Five 0-100 sub-scores and their unweighted mean."""

    prompt_quality: int = Field(ge=0, le=100)
    self_sufficiency: int = Field(ge=0, le=100)
    technical_depth: int = Field(ge=0, le=100)
    code_coherence: int = Field(ge=0, le=100)
    understanding: int = Field(ge=0, le=100)
    overall: int = Field(ge=0, le=100)


class Flag(BaseModel):
    """A red (negative) or green (positive) behavioral signal."""

    category: str
    type: str
    description: str
    severity: Severity | None = None
    suggestion: str | None = None
    count: int | None = None
    examples: list[str] = Field(default_factory=list)
    details: Any = None


class AssessmentLevel(BaseModel):
    level: str
    stars: int = Field(ge=1, le=5)
    description: str
    recommendation: str

    @property
    def star_display(self) -> str:
        return "★" * self.stars + "☆" * (5 - self.stars)
