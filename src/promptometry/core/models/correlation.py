"""Prompt-to-edit correlations and per-file iteration patterns."""

from datetime import datetime

from pydantic import BaseModel, Field


class RelatedEdit(BaseModel):
    """An edit attributed to a prompt by the time-window rule."""

    edit_id: int | None = None
    file_path: str
    timestamp: datetime
    old_string: str = ""
    new_string: str = ""
    time_after_prompt_ms: int = Field(description="Milliseconds between the prompt and this edit")


class CorrelationStats(BaseModel):
    """Per-prompt edit statistics."""

    total_edits: int = 0
    files_changed: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    time_to_first_edit_ms: int | None = None
    edit_duration_ms: int | None = None


class Correlation(BaseModel):
    """One prompt bound to the edits whose timestamps fall in its window."""

    prompt_id: int | None = None
    prompt_text: str = ""
    prompt_timestamp: datetime
    conversation_id: str
    source: str = "unknown"
    related_edits: list[RelatedEdit] = Field(default_factory=list)
    stats: CorrelationStats = Field(default_factory=CorrelationStats)


class EffectivenessAnalysis(BaseModel):
    """How often prompts led to edits, and how quickly."""

    total_prompts: int = 0
    prompts_with_edits: int = 0
    prompts_without_edits: int = 0
    avg_edits_per_prompt: float = 0.0
    avg_files_per_prompt: float = 0.0
    avg_time_to_first_edit_ms: int = 0
    effectiveness_score: int = Field(default=0, description="Prompts with edits / total prompts * 100")


class FileEditEntry(BaseModel):
    """One step in a file's chronological edit history."""

    prompt_id: int | None = None
    prompt_text: str = ""
    timestamp: datetime
    old_string: str = ""
    new_string: str = ""


class Reversal(BaseModel):
    """An edit that put a file back to the state the previous edit started from."""

    index: int
    prompt_reverted_from: str = ""
    prompt_reverted_to: str = ""
    explanation: str = "Code reverted to earlier state"


class TimelineEntry(BaseModel):
    prompt_text: str
    timestamp: datetime


class IterationPattern(BaseModel):
    """Repeated editing of one file within a conversation."""

    conversation_id: str
    file_path: str
    edit_count: int
    unique_prompts: int
    reversals: list[Reversal] = Field(default_factory=list)
    timeline: list[TimelineEntry] = Field(default_factory=list)

    @property
    def has_reversals(self) -> bool:
        return bool(self.reversals)
