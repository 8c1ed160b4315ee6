"""Hook handler scripts invoked by Cursor or Claude Code for prompts and file edits."""

import json
import logging
import re
import sys

from promptometry.core.database import EventDatabase
from promptometry.core.debugging_tracker import DebuggingTracker
from promptometry.core.models import (
    AIResponse,
    Edit,
    EditChange,
    EditHookInput,
    Prompt,
    PromptHookInput,
    ResponseHookInput,
    StoreError,
)
from promptometry.core.modification_tracker import ModificationTracker
from promptometry.core.settings import settings

logger = logging.getLogger(__name__)

QUESTION_PATTERN = re.compile(r"\?|how|what|why|when|where|can you|could you|please", re.IGNORECASE)


def is_question(prompt_text: str) -> bool:
    return bool(QUESTION_PATTERN.search(prompt_text))


def _read_stdin_json() -> dict | None:
    stdin_input = sys.stdin.read().strip()
    if not stdin_input:
        return None
    return json.loads(stdin_input)


def extract_prompt_text(payload: PromptHookInput) -> str:
    """Prompt text from whichever field the editor used, or the raw payload."""
    return payload.prompt or payload.prompt_text or payload.text or payload.model_dump_json(exclude_none=True)


def extract_file_path(payload: EditHookInput) -> str | None:
    file_path = payload.file_path or payload.filePath or payload.path
    if not file_path and payload.tool_input:
        file_path = payload.tool_input.get("file_path") or payload.tool_input.get("filePath")
    return file_path


def extract_edit_changes(payload: EditHookInput) -> list[EditChange]:
    """Normalize the editor's edit description into old/new string pairs.

    Cursor sends an ``edits`` list or top-level strings; Claude Code sends
    ``tool_input`` with either old/new strings (Edit) or ``content`` (Write).
    """
    if payload.edits:
        return [
            EditChange(
                old_string=edit.get("old_string") or edit.get("oldString") or "",
                new_string=edit.get("new_string") or edit.get("newString") or "",
            )
            for edit in payload.edits
        ]

    tool_input = payload.tool_input
    if tool_input:
        if "old_string" in tool_input or "new_string" in tool_input:
            return [
                EditChange(
                    old_string=tool_input.get("old_string") or "",
                    new_string=tool_input.get("new_string") or "",
                )
            ]
        if "content" in tool_input:
            return [EditChange(old_string="", new_string=tool_input.get("content") or "")]
        return []

    if payload.old_string is not None or payload.new_string is not None:
        return [EditChange(old_string=payload.old_string or "", new_string=payload.new_string or "")]

    return []


def record_prompt(db: EventDatabase, payload: PromptHookInput) -> Prompt | None:
    """Persist a prompt with its sequence number, then run the debugging tracker."""
    conversation_id = payload.resolved_conversation_id

    sequence_number = db.get_next_prompt_sequence_number(conversation_id)
    if isinstance(sequence_number, StoreError):
        return None

    prompt_text = extract_prompt_text(payload)
    prompt = Prompt(
        conversation_id=conversation_id,
        prompt_text=prompt_text,
        source=payload.source,
        sequence_number=sequence_number,
        is_question=is_question(prompt_text),
    )

    prompt_id = db.save_prompt(prompt)
    if isinstance(prompt_id, StoreError):
        return None

    prompt = prompt.model_copy(update={"id": prompt_id})
    tracker = DebuggingTracker(db)
    tracker.close_stale_session(conversation_id, prompt.timestamp)
    is_debugging = tracker.track_prompt(prompt)
    return prompt.model_copy(update={"is_debugging": is_debugging})


def record_edits(db: EventDatabase, payload: EditHookInput) -> list[Edit]:
    """Persist each change of an edit hook.

    Each saved change is matched against recent AI responses, and the last
    one resolves any open debugging session.
    """
    file_path = extract_file_path(payload)
    changes = extract_edit_changes(payload)

    if not file_path or file_path == "unknown" or not changes:
        logger.debug("Edit hook without a file path or changes, skipping")
        return []

    conversation_id = payload.resolved_conversation_id
    modification_tracker = ModificationTracker(db)
    saved = []
    for change in changes:
        edit = Edit(
            conversation_id=conversation_id,
            file_path=file_path,
            old_string=change.old_string,
            new_string=change.new_string,
            source=payload.source,
        )
        edit_id = db.save_edit(edit)
        if isinstance(edit_id, StoreError):
            continue
        saved.append(edit.model_copy(update={"id": edit_id}))
        modification_tracker.track_modification(conversation_id, edit.new_string, edit.timestamp)

    if saved:
        DebuggingTracker(db).track_edit(conversation_id, saved[-1].timestamp)
    return saved


def record_response(db: EventDatabase, payload: ResponseHookInput) -> AIResponse | None:
    """Persist an assistant reply so later edits can be matched against it."""
    content = payload.response_text
    if not content.strip():
        logger.debug("Response hook without response text, skipping")
        return None

    return ModificationTracker(db).log_response(
        AIResponse(
            conversation_id=payload.resolved_conversation_id,
            prompt_id=payload.prompt_id,
            content=content,
            model_name=payload.model or payload.model_name or "unknown",
            tokens_used=payload.tokens_used or payload.tokensUsed,
            response_time_ms=payload.response_time_ms or payload.responseTimeMs,
        )
    )


def handle_prompt_hook(db: EventDatabase | None = None) -> int:
    """Entry point for the prompt-submission hook. Always exits 0 so the editor keeps working."""
    try:
        raw_data = _read_stdin_json()
        if raw_data is None:
            return 0

        prompt = record_prompt(db or EventDatabase(), PromptHookInput.model_validate(raw_data))

        if settings.debug_mode and prompt is not None:
            debug_info = {
                "promptometry_prompt": {
                    "conversation_id": prompt.conversation_id,
                    "prompt_id": prompt.id,
                    "sequence_number": prompt.sequence_number,
                    "is_question": prompt.is_question,
                    "is_debugging": prompt.is_debugging,
                }
            }
            print(f"Promptometry captured: {json.dumps(debug_info, indent=2)}", file=sys.stderr)

        return 0

    except Exception as e:
        logger.warning(f"Promptometry prompt hook error: {e}", exc_info=settings.debug_mode)
        return 0


def handle_edit_hook(db: EventDatabase | None = None) -> int:
    """Entry point for the file-edit hook. Always exits 0 so the editor keeps working."""
    try:
        raw_data = _read_stdin_json()
        if raw_data is None:
            return 0

        edits = record_edits(db or EventDatabase(), EditHookInput.model_validate(raw_data))

        if settings.debug_mode and edits:
            debug_info = {
                "promptometry_edit": {
                    "conversation_id": edits[0].conversation_id,
                    "file_path": edits[0].file_path,
                    "edit_ids": [edit.id for edit in edits],
                }
            }
            print(f"Promptometry captured: {json.dumps(debug_info, indent=2)}", file=sys.stderr)

        return 0

    except Exception as e:
        logger.warning(f"Promptometry edit hook error: {e}", exc_info=settings.debug_mode)
        return 0


def handle_response_hook(db: EventDatabase | None = None) -> int:
    """Entry point for the assistant-response hook. Always exits 0 so the editor keeps working."""
    try:
        raw_data = _read_stdin_json()
        if raw_data is None:
            return 0

        response = record_response(db or EventDatabase(), ResponseHookInput.model_validate(raw_data))

        if settings.debug_mode and response is not None:
            debug_info = {
                "promptometry_response": {
                    "conversation_id": response.conversation_id,
                    "response_id": response.id,
                    "prompt_id": response.prompt_id,
                }
            }
            print(f"Promptometry captured: {json.dumps(debug_info, indent=2)}", file=sys.stderr)

        return 0

    except Exception as e:
        logger.warning(f"Promptometry response hook error: {e}", exc_info=settings.debug_mode)
        return 0
