"""Tests for the polling background analyzer."""

import signal
from unittest.mock import MagicMock

from conftest import seed_prompt

from promptometry.core.database import EventDatabase
from promptometry.core.models import AnalyzerResult, StoreError
from promptometry.understanding.services.background_service import BackgroundAnalyzer
from promptometry.understanding.services.understanding_service import UnderstandingService


def _seed(db: EventDatabase, conversation_id: str, count: int, start: float = 0) -> None:
    for i in range(count):
        seed_prompt(db, conversation_id, f"Why use option {i} instead of the default one?", start + i)


def _result(conversation_id: str) -> AnalyzerResult:
    return AnalyzerResult(
        conversation_id=conversation_id, analyzer_name="critical_thinking", score=5.0, verdict="uncertain", confidence=0.5
    )


class TestBackgroundAnalyzer:
    def test_run_once__analyzes_conversations_over_threshold(self, db: EventDatabase, offline_judge):
        _seed(db, "ready", 3)
        _seed(db, "short", 2, start=100)
        analyzer = BackgroundAnalyzer(UnderstandingService(db, offline_judge), min_prompts=3)

        assert analyzer.run_once() == ["ready"]
        assert len(db.get_analysis_results("ready")) == 3
        assert db.get_analysis_results("short") == []
        assert analyzer.run_once() == []

    def test_run_once__stop_is_honoured_between_conversations(self, db: EventDatabase):
        _seed(db, "first", 3)
        _seed(db, "second", 3, start=100)
        service = MagicMock()

        analyzer = BackgroundAnalyzer(service, db=db, min_prompts=3)

        def analyze(conversation_id):
            analyzer.stop()
            return [_result(conversation_id)]

        service.analyze_conversation.side_effect = analyze

        assert analyzer.run_once() == ["first"]
        service.analyze_conversation.assert_called_once_with("first")

    def test_run_once__failures_skip_the_conversation(self, db: EventDatabase):
        _seed(db, "broken", 3)
        _seed(db, "unreadable", 3, start=100)
        _seed(db, "fine", 3, start=200)
        service = MagicMock()
        service.analyze_conversation.side_effect = [
            RuntimeError("judge exploded"),
            StoreError(operation="get_prompts", message="locked"),
            [_result("fine")],
        ]

        analyzed = BackgroundAnalyzer(service, db=db, min_prompts=3).run_once()

        assert analyzed == ["fine"]
        assert service.analyze_conversation.call_count == 3

    def test_run_once__store_error_when_listing(self):
        db = MagicMock()
        db.get_unanalyzed_conversations.return_value = StoreError(operation="list", message="locked")

        assert BackgroundAnalyzer(MagicMock(), db=db).run_once() == []

    def test_run__polls_until_stopped(self, db: EventDatabase):
        analyzer = BackgroundAnalyzer(MagicMock(), db=db, poll_interval_seconds=0)
        calls = []

        def run_once():
            calls.append(1)
            if len(calls) == 2:
                analyzer.stop()
            return []

        analyzer.run_once = run_once
        analyzer.run()

        assert len(calls) == 2
        assert analyzer.stopping is True

    def test_stop__works_as_signal_handler(self, db: EventDatabase):
        analyzer = BackgroundAnalyzer(MagicMock(), db=db)

        analyzer.stop(signal.SIGTERM, None)

        assert analyzer.stopping is True
