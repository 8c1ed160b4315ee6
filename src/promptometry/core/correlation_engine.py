"""Links prompts to the edits they produced and finds per-file iteration patterns."""

import logging
from datetime import datetime

from promptometry.core.database import EventDatabase
from promptometry.core.models import (
    ConversationData,
    Correlation,
    CorrelationStats,
    EffectivenessAnalysis,
    FileEditEntry,
    IterationPattern,
    RelatedEdit,
    Reversal,
    StoreError,
    TimelineEntry,
)
from promptometry.core.numeric import round_half_up, round_score, safe_ratio
from promptometry.core.settings import Calibration, settings
from promptometry.core.similarity import is_similar_code

logger = logging.getLogger(__name__)

TIMELINE_TEXT_LENGTH = 60


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() * 1000)


def _line_count(text: str) -> int:
    return len(text.split("\n")) if text else 0


def correlate_conversation(conversation: ConversationData) -> list[Correlation]:
    """Bind each prompt to the edits in ``[its timestamp, next prompt's timestamp)``.

    An edit stamped exactly at a prompt belongs to that prompt. Edits before
    the first prompt belong to no correlation.
    """
    correlations = []
    prompts = conversation.prompts

    for index, prompt in enumerate(prompts):
        window_end = prompts[index + 1].timestamp if index + 1 < len(prompts) else None

        related_edits = [
            RelatedEdit(
                edit_id=edit.id,
                file_path=edit.file_path,
                timestamp=edit.timestamp,
                old_string=edit.old_string,
                new_string=edit.new_string,
                time_after_prompt_ms=_elapsed_ms(prompt.timestamp, edit.timestamp),
            )
            for edit in conversation.edits
            if edit.timestamp >= prompt.timestamp and (window_end is None or edit.timestamp < window_end)
        ]

        correlations.append(
            Correlation(
                prompt_id=prompt.id,
                prompt_text=prompt.prompt_text,
                prompt_timestamp=prompt.timestamp,
                conversation_id=conversation.conversation_id,
                source=conversation.source,
                related_edits=related_edits,
                stats=_correlation_stats(related_edits),
            )
        )

    return correlations


def _correlation_stats(related_edits: list[RelatedEdit]) -> CorrelationStats:
    if not related_edits:
        return CorrelationStats()

    lines_added = 0
    lines_removed = 0
    for edit in related_edits:
        # Line-count delta, not a diff: each edit counts as added-only or removed-only.
        delta = _line_count(edit.new_string) - _line_count(edit.old_string)
        if delta > 0:
            lines_added += delta
        else:
            lines_removed -= delta

    return CorrelationStats(
        total_edits=len(related_edits),
        files_changed=len({edit.file_path for edit in related_edits}),
        lines_added=lines_added,
        lines_removed=lines_removed,
        time_to_first_edit_ms=related_edits[0].time_after_prompt_ms,
        edit_duration_ms=related_edits[-1].time_after_prompt_ms,
    )


def analyze_effectiveness(correlations: list[Correlation]) -> EffectivenessAnalysis:
    """How often prompts led to edits, and how quickly."""
    with_edits = [c for c in correlations if c.related_edits]
    first_edit_times = [
        c.stats.time_to_first_edit_ms for c in with_edits if c.stats.time_to_first_edit_ms is not None
    ]

    total_edits = sum(c.stats.total_edits for c in with_edits)
    total_files = sum(c.stats.files_changed for c in with_edits)

    return EffectivenessAnalysis(
        total_prompts=len(correlations),
        prompts_with_edits=len(with_edits),
        prompts_without_edits=len(correlations) - len(with_edits),
        avg_edits_per_prompt=round_half_up(safe_ratio(total_edits, len(with_edits)), 2),
        avg_files_per_prompt=round_half_up(safe_ratio(total_files, len(with_edits)), 2),
        avg_time_to_first_edit_ms=round_score(safe_ratio(sum(first_edit_times), len(first_edit_times))),
        effectiveness_score=round_score(safe_ratio(len(with_edits), len(correlations)) * 100),
    )


def detect_reversals(history: list[FileEditEntry], threshold: float | None = None) -> list[Reversal]:
    """Flag edits whose new content matches the content the previous edit replaced.

    Only the immediately preceding edit is compared, so a return to a state
    from two or more edits back goes undetected.
    """
    reversals = []
    for index in range(1, len(history)):
        previous = history[index - 1]
        current = history[index]
        if is_similar_code(current.new_string, previous.old_string, threshold):
            reversals.append(
                Reversal(
                    index=index,
                    prompt_reverted_from=previous.prompt_text,
                    prompt_reverted_to=current.prompt_text,
                )
            )
    return reversals


def detect_iteration_patterns(
    correlations: list[Correlation], calibration: Calibration | None = None
) -> list[IterationPattern]:
    """Files edited repeatedly within a conversation, most-edited first.

    A file needs at least two edits to be considered and is kept when it has
    three or more edits or at least one reversal.
    """
    calibration = calibration or settings.calibration
    histories: dict[tuple[str, str], list[FileEditEntry]] = {}

    for correlation in correlations:
        for edit in correlation.related_edits:
            key = (correlation.conversation_id, edit.file_path)
            histories.setdefault(key, []).append(
                FileEditEntry(
                    prompt_id=correlation.prompt_id,
                    prompt_text=correlation.prompt_text,
                    timestamp=edit.timestamp,
                    old_string=edit.old_string,
                    new_string=edit.new_string,
                )
            )

    patterns = []
    for (conversation_id, file_path), history in histories.items():
        if len(history) < 2:
            continue

        reversals = detect_reversals(history, calibration.similarity_threshold)
        if len(history) < 3 and not reversals:
            continue

        patterns.append(
            IterationPattern(
                conversation_id=conversation_id,
                file_path=file_path,
                edit_count=len(history),
                unique_prompts=len({entry.prompt_id for entry in history}),
                reversals=reversals,
                timeline=[
                    TimelineEntry(prompt_text=entry.prompt_text[:TIMELINE_TEXT_LENGTH], timestamp=entry.timestamp)
                    for entry in history
                ],
            )
        )

    patterns.sort(key=lambda pattern: pattern.edit_count, reverse=True)
    return patterns


class CorrelationEngine:
    """Reads conversations from the event store and correlates them."""

    def __init__(self, db: EventDatabase | None = None, calibration: Calibration | None = None):
        self.db = db or EventDatabase()
        self.calibration = calibration or settings.calibration

    def list_conversation_ids(self) -> list[str]:
        conversation_ids = self.db.list_conversation_ids()
        if isinstance(conversation_ids, StoreError):
            return []
        return conversation_ids

    def get_conversation_data(self, conversation_id: str) -> ConversationData:
        """Ordered prompts and edits; empty when the id is unknown or the store is unreadable."""
        prompts = self.db.get_prompts(conversation_id)
        edits = self.db.get_edits(conversation_id)

        if isinstance(prompts, StoreError) or isinstance(edits, StoreError):
            logger.warning(f"Treating conversation {conversation_id} as empty after a store error")
            return ConversationData(conversation_id=conversation_id)

        return ConversationData(conversation_id=conversation_id, prompts=prompts, edits=edits)

    def correlate_prompts_to_edits(self, conversation_ids: list[str] | None = None) -> list[Correlation]:
        """Correlations for the given conversations, or for every stored conversation."""
        if conversation_ids is None:
            conversation_ids = self.list_conversation_ids()

        correlations = []
        for conversation_id in conversation_ids:
            correlations.extend(correlate_conversation(self.get_conversation_data(conversation_id)))
        return correlations

    def analyze_effectiveness(self, correlations: list[Correlation]) -> EffectivenessAnalysis:
        return analyze_effectiveness(correlations)

    def detect_iteration_patterns(self, correlations: list[Correlation]) -> list[IterationPattern]:
        return detect_iteration_patterns(correlations, self.calibration)

    def detect_reversals(self, history: list[FileEditEntry]) -> list[Reversal]:
        return detect_reversals(history, self.calibration.similarity_threshold)
