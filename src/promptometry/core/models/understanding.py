"""Per-prompt judgments and per-conversation understanding-analyzer results."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class JudgmentMethod(str, Enum):
    """How a prompt, or a conversation's prompts overall, were judged."""

    AI = "ai"
    FALLBACK = "fallback"
    NONE = "none"


class JudgmentVerdict(BaseModel):
    """Normalized verdict for one prompt, from the LLM or from the fallback rules."""

    relevant: bool = False
    category: str = "none"
    quality_score: float = Field(default=0.0, ge=0, le=10)
    severity: str = "none"
    evidence: str = "none"
    reasoning: str = ""
    method: JudgmentMethod = JudgmentMethod.AI


class JudgedPrompt(BaseModel):
    """A prompt that was included in an analyzer's findings."""

    text: str
    category: str
    quality_score: float
    severity: str = "none"
    evidence: str = "none"
    reasoning: str = ""
    sequence: int = 0
    method: JudgmentMethod = JudgmentMethod.AI


class ReasoningSample(BaseModel):
    """Truncated view of a judged prompt for reports."""

    prompt: str
    type: str
    score: float
    severity: str | None = None
    evidence: str = "none"
    reasoning: str = ""


class JudgmentAggregate(BaseModel):
    """Per-conversation aggregation of the per-prompt judgments."""

    count: int = 0
    examples: list[str] = Field(default_factory=list)
    quality: float = 0.0
    breakdown: dict[str, int] = Field(default_factory=dict)
    severity_breakdown: dict[str, int] = Field(default_factory=dict)
    ai_reasoning: list[ReasoningSample] = Field(default_factory=list)
    judged: list[JudgedPrompt] = Field(default_factory=list)
    attempted: int = 0
    ai_judged: int = 0
    fallback_count: int = 0
    method: JudgmentMethod = JudgmentMethod.NONE
    success_rate: float = 0.0

    @property
    def distinct_types(self) -> int:
        return len(self.breakdown)

    @property
    def high_severity_count(self) -> int:
        return self.severity_breakdown.get("high", 0)


class AnalyzerResult(BaseModel):
    """Final per-conversation, per-analyzer output; upserted by (conversation_id, analyzer_name)."""

    conversation_id: str
    analyzer_name: str
    score: float = Field(ge=0, le=10)
    verdict: str
    confidence: float = Field(ge=0, le=0.95)
    details: dict[str, Any] = Field(default_factory=dict)
    analyzed_at: datetime = Field(default_factory=datetime.now)

    @property
    def analysis_method(self) -> str:
        return str(self.details.get("method", JudgmentMethod.NONE.value))
