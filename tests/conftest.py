"""Shared test fixtures and helpers."""

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from promptometry.core.correlation_engine import _correlation_stats
from promptometry.core.database import EventDatabase
from promptometry.core.models import (
    Correlation,
    Edit,
    JudgmentError,
    JudgmentErrorKind,
    Prompt,
    RelatedEdit,
)

BASE_TIME = datetime(2025, 3, 1, 10, 0, 0)


def at(seconds: float) -> datetime:
    """A timestamp ``seconds`` after the shared base time."""
    return BASE_TIME + timedelta(seconds=seconds)


class FakeJudge:
    """Stands in for the LLM judge.

    Replies are consumed in order; once exhausted the last reply repeats.
    A reply may be a string, a dict (sent as JSON) or a JudgmentError.
    """

    def __init__(self, *replies: str | dict | JudgmentError):
        self.replies = list(replies) or [JudgmentError(kind=JudgmentErrorKind.UNAVAILABLE, message="offline")]
        self.calls: list[str] = []

    def complete(self, prompt: str) -> str | JudgmentError:
        reply = self.replies[min(len(self.calls), len(self.replies) - 1)]
        self.calls.append(prompt)
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


def make_correlation(
    prompt_text: str = "Refactor the parser module",
    edits: list[str | tuple[str, str, str]] | None = None,
    offset: float = 0,
    prompt_id: int | None = None,
    conversation_id: str = "conv-1",
    source: str = "cursor",
) -> Correlation:
    """Build a correlation directly; ``edits`` are file paths or (file_path, old, new) triples."""
    prompt_time = at(offset)
    related = []
    for index, item in enumerate(edits or []):
        file_path, old_string, new_string = (item, "", "") if isinstance(item, str) else item
        related.append(
            RelatedEdit(
                file_path=file_path,
                timestamp=prompt_time + timedelta(seconds=index + 1),
                old_string=old_string,
                new_string=new_string,
                time_after_prompt_ms=(index + 1) * 1000,
            )
        )
    return Correlation(
        prompt_id=prompt_id,
        prompt_text=prompt_text,
        prompt_timestamp=prompt_time,
        conversation_id=conversation_id,
        source=source,
        related_edits=related,
        stats=_correlation_stats(related),
    )


def seed_prompt(db: EventDatabase, conversation_id: str, text: str, offset: float, **fields) -> Prompt:
    sequence = db.get_next_prompt_sequence_number(conversation_id)
    prompt = Prompt(
        conversation_id=conversation_id,
        prompt_text=text,
        source="cursor",
        sequence_number=sequence,
        timestamp=at(offset),
        **fields,
    )
    return prompt.model_copy(update={"id": db.save_prompt(prompt)})


def seed_edit(
    db: EventDatabase, conversation_id: str, file_path: str, offset: float, old: str = "", new: str = ""
) -> Edit:
    edit = Edit(
        conversation_id=conversation_id,
        file_path=file_path,
        old_string=old,
        new_string=new,
        source="cursor",
        timestamp=at(offset),
    )
    return edit.model_copy(update={"id": db.save_edit(edit)})


@pytest.fixture
def db(tmp_path: Path) -> EventDatabase:
    return EventDatabase(tmp_path / "promptometry.db")


@pytest.fixture
def offline_judge() -> FakeJudge:
    """Judge that is always unavailable, forcing the rule fallback."""
    return FakeJudge()
