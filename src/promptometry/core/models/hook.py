"""Editor hook payloads (Cursor and Claude Code)."""

from pydantic import BaseModel, Field


class HookPayload(BaseModel, extra="allow"):
    """Fields common to both editors' hook payloads."""

    conversation_id: str | None = None
    conversationId: str | None = None
    session_id: str | None = None

    @property
    def resolved_conversation_id(self) -> str:
        return self.conversation_id or self.conversationId or self.session_id or "unknown"


class PromptHookInput(HookPayload):
    """Payload of a prompt-submission hook."""

    prompt: str | None = None
    prompt_text: str | None = None
    text: str | None = None

    @property
    def source(self) -> str:
        return "claude-code" if self.session_id else "cursor"


class EditChange(BaseModel):
    old_string: str = ""
    new_string: str = ""


class EditHookInput(HookPayload):
    """Payload of a file-edit hook."""

    file_path: str | None = None
    filePath: str | None = None
    path: str | None = None
    edits: list[dict] = Field(default_factory=list)
    tool_input: dict | None = None
    old_string: str | None = None
    new_string: str | None = None

    @property
    def source(self) -> str:
        return "claude-code" if self.session_id or self.tool_input else "cursor"


class ResponseHookInput(HookPayload, protected_namespaces=()):
    """Payload of an assistant-response hook or a manually logged reply."""

    response: str | None = None
    content: str | None = None
    last_assistant_message: str | None = None
    model: str | None = None
    model_name: str | None = None
    tokens_used: int | None = None
    tokensUsed: int | None = None
    response_time_ms: int | None = None
    responseTimeMs: int | None = None
    prompt_id: int | None = None

    @property
    def response_text(self) -> str:
        return self.response or self.content or self.last_assistant_message or ""
