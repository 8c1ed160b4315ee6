"""Tests for linking edits to AI responses."""

import pytest
from conftest import at, seed_prompt

from promptometry.core.database import EventDatabase
from promptometry.core.models import AIResponse, ModificationStats, ModificationType
from promptometry.core.modification_tracker import (
    ModificationTracker,
    classify_usage,
    count_line_changes,
    quality_score,
)

SUGGESTION = "alpha beta gamma delta epsilon zeta eta theta iota kappa"


def _log(db: EventDatabase, content: str, offset: float = 0, conversation_id: str = "conv-1") -> AIResponse:
    return ModificationTracker(db).log_response(
        AIResponse(conversation_id=conversation_id, content=content, timestamp=at(offset))
    )


class TestHelpers:
    def test_count_line_changes__positional_and_whitespace_insensitive(self):
        assert count_line_changes("a\nb\nc", "a\nB\nc\nd") == 2
        assert count_line_changes("  a\nb", "a\nb  ") == 0

    @pytest.mark.parametrize(
        "similarity,expected",
        [
            (1.0, ModificationType.ACCEPTED),
            (0.95, ModificationType.MODIFIED),
            (0.61, ModificationType.MODIFIED),
            (0.6, ModificationType.REJECTED),
            (0.31, ModificationType.REJECTED),
            (0.3, ModificationType.MANUAL),
            (0.0, ModificationType.MANUAL),
        ],
    )
    def test_classify_usage__thresholds_are_exclusive(self, similarity, expected):
        assert classify_usage(similarity) is expected

    def test_quality_score__blind_acceptance_is_penalized(self):
        assert quality_score(ModificationStats(acceptance_ratio=0.9)) == 3.0
        assert quality_score(ModificationStats(modification_ratio=0.7, avg_lines_changed=4)) == 8.0


class TestModificationTracker:
    def test_log_response__attaches_latest_prompt(self, db: EventDatabase):
        seed_prompt(db, "conv-1", "Write the loader", 0)
        latest = seed_prompt(db, "conv-1", "Now add caching", 30)

        response = _log(db, SUGGESTION, 40)

        assert response.id is not None
        assert response.prompt_id == latest.id

    def test_track_modification__identical_code_is_accepted(self, db: EventDatabase):
        suggestion = _log(db, SUGGESTION)

        modification = ModificationTracker(db).track_modification("conv-1", SUGGESTION.upper(), at(60))

        assert modification.modification_type is ModificationType.ACCEPTED
        assert modification.ai_response_id == suggestion.id
        assert modification.lines_changed == 1

    def test_track_modification__partly_rewritten_code_is_modified(self, db: EventDatabase):
        _log(db, SUGGESTION)
        final_code = "alpha beta gamma delta epsilon zeta eta theta lambda mu"

        modification = ModificationTracker(db).track_modification("conv-1", final_code, at(60))

        assert modification.modification_type is ModificationType.MODIFIED
        assert modification.original_suggestion == SUGGESTION
        assert modification.final_code == final_code

    def test_track_modification__mostly_different_code_is_rejected(self, db: EventDatabase):
        _log(db, "alpha beta gamma delta epsilon zeta")

        modification = ModificationTracker(db).track_modification("conv-1", "alpha beta gamma one two three", at(60))

        assert modification.modification_type is ModificationType.REJECTED

    def test_track_modification__unrelated_code_is_not_recorded(self, db: EventDatabase):
        _log(db, SUGGESTION)
        tracker = ModificationTracker(db)

        assert tracker.track_modification("conv-1", "one two three", at(60)) is None
        assert db.get_code_modifications("conv-1") == []

    def test_track_modification__ignores_old_and_foreign_responses(self, db: EventDatabase):
        _log(db, SUGGESTION, 0)
        _log(db, SUGGESTION, 390, conversation_id="conv-2")
        tracker = ModificationTracker(db)

        usage, response = tracker.detect_ai_code_usage("conv-1", SUGGESTION, at(400))

        assert response is None
        assert usage.modification_type is ModificationType.MANUAL
        assert tracker.track_modification("conv-1", SUGGESTION, at(400)) is None

    def test_detect_ai_code_usage__picks_best_match(self, db: EventDatabase):
        _log(db, "alpha beta gamma one two three", 0)
        best = _log(db, SUGGESTION, 10)

        usage, response = ModificationTracker(db).detect_ai_code_usage("conv-1", SUGGESTION, at(60))

        assert usage.ai_response_id == best.id
        assert usage.similarity == 1.0
        assert response.content == SUGGESTION


class TestModificationStats:
    def test_get_modification_stats__without_modifications(self, db: EventDatabase):
        stats = ModificationTracker(db).get_modification_stats("conv-1")

        assert stats == ModificationStats()
        assert stats.total_modifications == 0
        assert stats.acceptance_ratio == 0.0
        assert stats.quality_score == 5.0

    def test_get_modification_stats__counts_each_label(self, db: EventDatabase):
        tracker = ModificationTracker(db)
        _log(db, SUGGESTION)
        _log(db, "alpha beta gamma delta epsilon zeta", 1)
        tracker.track_modification("conv-1", SUGGESTION, at(60))
        tracker.track_modification("conv-1", "alpha beta gamma delta epsilon zeta eta theta lambda mu", at(61))
        tracker.track_modification("conv-1", "alpha beta gamma one two three", at(62))

        stats = tracker.get_modification_stats("conv-1")

        assert (stats.total_modifications, stats.accepted, stats.modified, stats.rejected) == (3, 1, 1, 1)
        assert stats.acceptance_ratio == pytest.approx(1 / 3)
        assert stats.modification_ratio == pytest.approx(1 / 3)
        assert stats.avg_lines_changed == pytest.approx(2 / 3)
        assert stats.quality_score == 6.0
