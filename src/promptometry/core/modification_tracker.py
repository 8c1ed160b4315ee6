"""Links edited code to recent AI responses and classifies how it was used."""

import logging
from datetime import datetime, timedelta

from promptometry.core.database import EventDatabase
from promptometry.core.models import (
    AIResponse,
    CodeModification,
    CodeUsage,
    ModificationStats,
    ModificationType,
    StoreError,
)
from promptometry.core.numeric import clamp, mean, safe_ratio
from promptometry.core.settings import Calibration, settings
from promptometry.core.similarity import calculate_similarity

logger = logging.getLogger(__name__)


def count_line_changes(original: str, modified: str) -> int:
    """Positional line comparison, ignoring leading and trailing whitespace."""
    original_lines = original.split("\n")
    modified_lines = modified.split("\n")

    changes = 0
    for index in range(max(len(original_lines), len(modified_lines))):
        before = original_lines[index] if index < len(original_lines) else ""
        after = modified_lines[index] if index < len(modified_lines) else ""
        if before.strip() != after.strip():
            changes += 1
    return changes


def code_similarity(first: str, second: str) -> float:
    """Case-insensitive variant of the shared token similarity."""
    return calculate_similarity(first.lower(), second.lower())


def classify_usage(similarity: float, calibration: Calibration | None = None) -> ModificationType:
    cal = calibration or settings.calibration
    if similarity > cal.accepted_similarity:
        return ModificationType.ACCEPTED
    if similarity > cal.modified_similarity:
        return ModificationType.MODIFIED
    if similarity > cal.rejected_similarity:
        return ModificationType.REJECTED
    return ModificationType.MANUAL


def quality_score(stats: ModificationStats) -> float:
    """Start from 5; blind acceptance costs up to 2, active modification earns up to 2."""
    score = 5.0

    if stats.acceptance_ratio > 0.8:
        score -= 2.0
    elif stats.acceptance_ratio > 0.5:
        score -= 1.0

    if stats.modification_ratio > 0.6:
        score += 2.0
    elif stats.modification_ratio > 0.3:
        score += 1.0

    if 2 <= stats.avg_lines_changed <= 10:
        score += 1.0

    return clamp(score, 0.0, 10.0)


def summarize_modifications(modifications: list[CodeModification]) -> ModificationStats:
    if not modifications:
        return ModificationStats()

    counts = {kind: 0 for kind in ModificationType}
    for modification in modifications:
        counts[modification.modification_type] += 1

    total = len(modifications)
    stats = ModificationStats(
        total_modifications=total,
        accepted=counts[ModificationType.ACCEPTED],
        modified=counts[ModificationType.MODIFIED],
        rejected=counts[ModificationType.REJECTED],
        acceptance_ratio=safe_ratio(counts[ModificationType.ACCEPTED], total),
        modification_ratio=safe_ratio(counts[ModificationType.MODIFIED], total),
        avg_lines_changed=mean([m.lines_changed for m in modifications]),
    )
    return stats.model_copy(update={"quality_score": quality_score(stats)})


class ModificationTracker:
    """Records AI responses and classifies each later edit against them."""

    def __init__(self, db: EventDatabase, calibration: Calibration | None = None):
        self.db = db
        self.calibration = calibration or settings.calibration

    def log_response(self, response: AIResponse) -> AIResponse | None:
        """Store a response, attaching it to the conversation's latest prompt when none is given."""
        if response.prompt_id is None:
            prompt_id = self.db.get_latest_prompt_id(response.conversation_id)
            if not isinstance(prompt_id, StoreError):
                response = response.model_copy(update={"prompt_id": prompt_id})

        response_id = self.db.save_ai_response(response)
        if isinstance(response_id, StoreError):
            return None
        return response.model_copy(update={"id": response_id})

    def detect_ai_code_usage(
        self, conversation_id: str, code: str, at: datetime | None = None
    ) -> tuple[CodeUsage, AIResponse | None]:
        """Best match among the conversation's recent responses; manual when nothing is close."""
        at = at or datetime.now()
        since = at - timedelta(minutes=self.calibration.ai_response_window_minutes)
        candidates = self.db.get_recent_ai_responses(conversation_id, since, self.calibration.ai_response_candidates)
        if isinstance(candidates, StoreError) or not candidates:
            return CodeUsage(), None

        best: AIResponse | None = None
        best_similarity = 0.0
        for response in candidates:
            similarity = code_similarity(code, response.content)
            if similarity > best_similarity:
                best, best_similarity = response, similarity

        modification_type = classify_usage(best_similarity, self.calibration)
        if modification_type is ModificationType.MANUAL:
            return CodeUsage(similarity=best_similarity), None

        return (
            CodeUsage(ai_response_id=best.id, similarity=best_similarity, modification_type=modification_type),
            best,
        )

    def track_modification(
        self, conversation_id: str, final_code: str, at: datetime | None = None
    ) -> CodeModification | None:
        """Record how an edit relates to the AI response it came from; manual edits are not recorded."""
        usage, response = self.detect_ai_code_usage(conversation_id, final_code, at)
        if response is None or usage.ai_response_id is None:
            return None

        modification = CodeModification(
            conversation_id=conversation_id,
            ai_response_id=usage.ai_response_id,
            original_suggestion=response.content,
            final_code=final_code,
            modification_type=usage.modification_type,
            lines_changed=count_line_changes(response.content, final_code),
            timestamp=at or datetime.now(),
        )
        modification_id = self.db.save_code_modification(modification)
        if isinstance(modification_id, StoreError):
            return None

        logger.debug(
            f"Edit in {conversation_id} {usage.modification_type.value} response {usage.ai_response_id} "
            f"(similarity {usage.similarity:.2f})"
        )
        return modification.model_copy(update={"id": modification_id})

    def get_modification_stats(self, conversation_id: str) -> ModificationStats:
        modifications = self.db.get_code_modifications(conversation_id)
        if isinstance(modifications, StoreError):
            return ModificationStats()
        return summarize_modifications(modifications)
