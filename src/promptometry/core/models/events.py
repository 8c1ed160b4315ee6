"""Raw events captured by the editor hooks and the groupings derived from them."""

from datetime import datetime

from pydantic import BaseModel, Field


class Prompt(BaseModel):
    """A prompt sent to the AI assistant."""

    id: int | None = None
    conversation_id: str
    prompt_text: str = ""
    source: str = "unknown"
    sequence_number: int = 0
    is_question: bool = False
    is_debugging: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class Edit(BaseModel):
    """A file edit applied during a conversation."""

    id: int | None = None
    conversation_id: str
    file_path: str
    old_string: str = ""
    new_string: str = ""
    source: str = "unknown"
    reverted_edit_id: int | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ConversationData(BaseModel):
    """All prompts and edits sharing a conversation id, ordered by timestamp."""

    conversation_id: str
    prompts: list[Prompt] = Field(default_factory=list)
    edits: list[Edit] = Field(default_factory=list)

    @property
    def source(self) -> str:
        return self.prompts[0].source if self.prompts else "unknown"

    @property
    def started_at(self) -> datetime | None:
        return self.prompts[0].timestamp if self.prompts else None

    @property
    def is_empty(self) -> bool:
        return not self.prompts and not self.edits


class ConversationSummary(BaseModel):
    """Row-level summary of a conversation for listings and the batch trigger."""

    conversation_id: str
    prompt_count: int = 0
    edit_count: int = 0
    started_at: datetime | None = None
    last_activity: datetime | None = None
    analyzed: bool = False


class ErrorInfo(BaseModel):
    """Error details extracted from a debugging prompt."""

    type: str = "unknown"
    message: str = ""
    stack_trace: str | None = None


class ActiveDebuggingSession(BaseModel):
    """An open error-to-fix cycle, persisted in the session-state table."""

    conversation_id: str
    start_prompt_id: int | None = None
    started_at: datetime = Field(default_factory=datetime.now)
    error_info: ErrorInfo = Field(default_factory=ErrorInfo)
    resolution_prompts: list[int] = Field(default_factory=list)


class DebuggingSession(BaseModel):
    """A resolved (or abandoned) debugging session."""

    id: int | None = None
    conversation_id: str
    error_type: str = "unknown"
    error_message: str = ""
    stack_trace: str | None = None
    resolution_prompts: list[int] = Field(default_factory=list)
    resolution_time_ms: int = 0
    independent_resolution: bool = False
    resolved: bool = True
    timestamp: datetime = Field(default_factory=datetime.now)


class DebugStats(BaseModel):
    """Aggregated debugging statistics for a conversation.

    Rates and the mean resolution time cover resolved sessions only; abandoned
    sessions are counted but never treated as resolutions.
    """

    total_sessions: int = 0
    resolved_sessions: int = 0
    abandoned_sessions: int = 0
    independent_resolutions: int = 0
    independence_rate: float = 0.0
    avg_resolution_time_ms: int = 0
    sessions: list[DebuggingSession] = Field(default_factory=list)
