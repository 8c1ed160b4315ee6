"""AI responses and how the developer's edits relate to them."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ModificationType(str, Enum):
    """How closely an edit follows the AI response it most resembles."""

    ACCEPTED = "accepted"
    MODIFIED = "modified"
    REJECTED = "rejected"
    MANUAL = "manual"


class AIResponse(BaseModel, protected_namespaces=()):
    """An assistant reply captured by the response hook."""

    id: int | None = None
    conversation_id: str
    prompt_id: int | None = None
    content: str
    model_name: str = "unknown"
    tokens_used: int | None = None
    response_time_ms: int | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class CodeUsage(BaseModel):
    """Best-matching recent AI response for a piece of edited code."""

    ai_response_id: int | None = None
    similarity: float = 0.0
    modification_type: ModificationType = ModificationType.MANUAL


class CodeModification(BaseModel):
    """An edit linked to the AI suggestion it was derived from."""

    id: int | None = None
    conversation_id: str
    ai_response_id: int
    original_suggestion: str
    final_code: str
    modification_type: ModificationType
    lines_changed: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


class ModificationStats(BaseModel):
    """Acceptance and modification ratios over linked edits."""

    total_modifications: int = 0
    accepted: int = 0
    modified: int = 0
    rejected: int = 0
    acceptance_ratio: float = 0.0
    modification_ratio: float = 0.0
    avg_lines_changed: float = 0.0
    quality_score: float = Field(
        default=5.0, description="0-10; blind acceptance lowers it, active modification raises it"
    )
