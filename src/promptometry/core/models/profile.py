"""Developer profile synthesized from scores, flags and correlations."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from promptometry.core.models.core import Severity
from promptometry.core.models.patterns import ProductivityMetrics
from promptometry.core.models.scoring import AssessmentLevel, ScoreBundle


class DateRange(BaseModel):
    start: datetime
    end: datetime
    duration_minutes: int


class ProfileMetadata(BaseModel):
    total_prompts: int = 0
    total_edits: int = 0
    unique_files: int = 0
    date_range: DateRange | None = None
    sources: list[str] = Field(default_factory=list)
    session_type: str | None = None


class Strength(BaseModel):
    area: str
    description: str
    evidence: Any = None
    score: int | None = None
    impact: str = "positive"


class Weakness(BaseModel):
    area: str
    description: str
    severity: Severity | None = None
    suggestion: str | None = None
    score: int | None = None
    impact: str = "negative"


class WorkStyle(BaseModel):
    style: str = "unknown"
    characteristics: list[str] = Field(default_factory=list)
    productivity: ProductivityMetrics | None = None


class PromptEvolution(BaseModel):
    trend: str = "insufficient_data"
    improvement: bool = False
    early_avg_length: int | None = None
    late_avg_length: int | None = None
    change_percentage: int | None = None
    details: str = "Not enough data to analyze evolution"
    compared_pairs: int = 0
    repetitive_pairs: int = 0
    refinement_pairs: int = 0


class TechnicalProfile(BaseModel):
    domains: list[str] = Field(default_factory=list)
    technologies: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    expertise_areas: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    priority: str = Field(description="critical, important or positive")
    area: str
    recommendation: str


class DeveloperProfile(BaseModel):
    meta: ProfileMetadata
    scores: ScoreBundle
    assessment: AssessmentLevel
    strengths: list[Strength] = Field(default_factory=list)
    weaknesses: list[Weakness] = Field(default_factory=list)
    work_style: WorkStyle = Field(default_factory=WorkStyle)
    prompt_evolution: PromptEvolution = Field(default_factory=PromptEvolution)
    technical_profile: TechnicalProfile = Field(default_factory=TechnicalProfile)
    recommendations: list[Recommendation] = Field(default_factory=list)
