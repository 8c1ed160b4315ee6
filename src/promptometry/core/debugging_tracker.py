"""Detects error-to-fix cycles from prompts and the edits that follow them."""

import logging
import re
from datetime import datetime, timedelta

from promptometry.core.database import EventDatabase
from promptometry.core.models import (
    ActiveDebuggingSession,
    DebuggingSession,
    DebugStats,
    ErrorInfo,
    Prompt,
    StoreError,
)
from promptometry.core.numeric import mean, round_score, safe_ratio
from promptometry.core.settings import Calibration, settings

logger = logging.getLogger(__name__)

DEBUG_KEYWORDS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\berror\b",
        r"\bbug\b",
        r"\bfix\b",
        r"\bbroken\b",
        r"doesn't work",
        r"not working",
        r"\bfailed\b",
        r"\bcrash",
        r"\bexception\b",
        r"\bundefined\b",
        r"null reference",
        r"syntax error",
        r"\bfailing\b",
        r"\bissue\b",
        r"\bproblem\b",
        r"\bwrong\b",
        r"unexpected",
    )
]
ERROR_TYPE_PATTERN = re.compile(r"(\w*Error|Exception):")
STACK_LINE_PATTERN = re.compile(r"at .+:\d+:\d+")

MAX_ERROR_MESSAGE_LENGTH = 200
MAX_INDEPENDENT_PROMPTS = 2


def is_debugging_prompt(prompt_text: str) -> bool:
    return any(pattern.search(prompt_text) for pattern in DEBUG_KEYWORDS)


def extract_error_info(prompt_text: str) -> ErrorInfo:
    """Error type, first line (at most 200 chars) and any ``at file:line:col`` stack lines."""
    type_match = ERROR_TYPE_PATTERN.search(prompt_text)
    stack_lines = STACK_LINE_PATTERN.findall(prompt_text)

    first_newline = prompt_text.find("\n")
    if 0 < first_newline < MAX_ERROR_MESSAGE_LENGTH:
        message = prompt_text[:first_newline]
    else:
        message = prompt_text[:MAX_ERROR_MESSAGE_LENGTH]

    return ErrorInfo(
        type=type_match.group(1) if type_match else "unknown",
        message=message.strip(),
        stack_trace="\n".join(stack_lines) if stack_lines else None,
    )


class DebuggingTracker:
    """Keeps each conversation's open debugging session in the session-state table.

    The tracker holds no state of its own; hook invocations are separate
    processes, so everything lives in the event store.
    """

    def __init__(self, db: EventDatabase, calibration: Calibration | None = None):
        self.db = db
        self.calibration = calibration or settings.calibration

    def track_prompt(self, prompt: Prompt) -> bool:
        """Mark a debugging prompt and open or extend the conversation's session.

        Returns whether the prompt looked like debugging.
        """
        if prompt.id is None or not is_debugging_prompt(prompt.prompt_text):
            return False

        marked = self.db.mark_prompt_debugging(prompt.id)
        if isinstance(marked, StoreError):
            return True

        active = self.db.get_active_debugging_session(prompt.conversation_id)
        if isinstance(active, StoreError):
            return True

        if active is None:
            active = ActiveDebuggingSession(
                conversation_id=prompt.conversation_id,
                start_prompt_id=prompt.id,
                started_at=prompt.timestamp,
                error_info=extract_error_info(prompt.prompt_text),
                resolution_prompts=[prompt.id],
            )
        else:
            active.resolution_prompts.append(prompt.id)

        self.db.save_active_debugging_session(active)
        return True

    def get_active_session(self, conversation_id: str) -> ActiveDebuggingSession | None:
        active = self.db.get_active_debugging_session(conversation_id)
        return None if isinstance(active, StoreError) else active

    def track_edit(self, conversation_id: str, edit_time: datetime | None = None) -> DebuggingSession | None:
        """An edit resolves the open session, if there is one."""
        return self._close(conversation_id, resolved=True, closed_at=edit_time)

    def end_session(self, conversation_id: str, closed_at: datetime | None = None) -> DebuggingSession | None:
        """Close the open session without a fix; it is recorded as abandoned."""
        return self._close(conversation_id, resolved=False, closed_at=closed_at)

    def close_stale_session(self, conversation_id: str, now: datetime | None = None) -> DebuggingSession | None:
        """End the open session when it has gone unresolved for too long."""
        now = now or datetime.now()
        active = self.get_active_session(conversation_id)
        if active is None:
            return None

        if now - active.started_at <= timedelta(minutes=self.calibration.stale_debugging_session_minutes):
            return None

        logger.debug(f"Abandoning debugging session of {conversation_id} started at {active.started_at}")
        return self.end_session(conversation_id, now)

    def _close(
        self, conversation_id: str, resolved: bool, closed_at: datetime | None = None
    ) -> DebuggingSession | None:
        active = self.get_active_session(conversation_id)
        if active is None:
            return None

        closed_at = closed_at or datetime.now()
        elapsed_ms = max(0, int((closed_at - active.started_at).total_seconds() * 1000))
        session = DebuggingSession(
            conversation_id=conversation_id,
            error_type=active.error_info.type,
            error_message=active.error_info.message,
            stack_trace=active.error_info.stack_trace,
            resolution_prompts=active.resolution_prompts,
            resolution_time_ms=elapsed_ms,
            independent_resolution=resolved and len(active.resolution_prompts) <= MAX_INDEPENDENT_PROMPTS,
            resolved=resolved,
            timestamp=closed_at,
        )

        session_id = self.db.close_debugging_session(session, conversation_id)
        if isinstance(session_id, StoreError):
            return None

        logger.debug(f"Closed debugging session {session_id} for {conversation_id} (resolved={resolved})")
        return session.model_copy(update={"id": session_id})

    def get_debug_stats(self, conversation_id: str) -> DebugStats:
        sessions = self.db.get_debugging_sessions(conversation_id)
        if isinstance(sessions, StoreError):
            return DebugStats()
        return summarize_debugging_sessions(sessions)


def summarize_debugging_sessions(sessions: list[DebuggingSession]) -> DebugStats:
    """Totals over every session; rates and timings over resolved ones only."""
    if not sessions:
        return DebugStats()

    resolved = [s for s in sessions if s.resolved]
    independent = sum(1 for s in resolved if s.independent_resolution)
    return DebugStats(
        total_sessions=len(sessions),
        resolved_sessions=len(resolved),
        abandoned_sessions=len(sessions) - len(resolved),
        independent_resolutions=independent,
        independence_rate=safe_ratio(independent, len(resolved)),
        avg_resolution_time_ms=round_score(mean([s.resolution_time_ms for s in resolved])),
        sessions=sessions,
    )
