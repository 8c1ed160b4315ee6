"""Tests for the evaluation and understanding services."""

from conftest import FakeJudge, at, seed_edit, seed_prompt

from promptometry.core.database import EventDatabase
from promptometry.core.debugging_tracker import DebuggingTracker
from promptometry.core.models import AIResponse, StoreError
from promptometry.core.modification_tracker import ModificationTracker
from promptometry.understanding.services.evaluation_service import EvaluationService
from promptometry.understanding.services.understanding_service import UnderstandingService


def _seed_conversation(db: EventDatabase, conversation_id: str = "conv-1") -> None:
    seed_prompt(db, conversation_id, "Refactor the parser function in parser.py", 0)
    seed_edit(db, conversation_id, "parser.py", 5, old="def parse(): pass", new="def parse(text): return text")
    seed_prompt(db, conversation_id, "Add a unit test for the parser", 60)
    seed_edit(db, conversation_id, "test_parser.py", 65, new="def test_parse(): assert parse('a') == 'a'")


class TestEvaluationService:
    def test_evaluate__rule_based_pipeline(self, db: EventDatabase):
        _seed_conversation(db)
        steps = []

        report = EvaluationService(db, use_llm=False).evaluate(["conv-1"], on_step=steps.append)

        assert report.conversation_ids == ["conv-1"]
        assert report.semantic_llm_used is False
        assert report.profile.meta.total_prompts == 2
        assert report.profile.meta.total_edits == 2
        assert report.effectiveness.effectiveness_score == 100
        assert report.assessment.level
        assert 0 <= report.scores.overall <= 100
        assert all(a.semantic_analysis is None for a in report.semantic_analyses)
        assert steps[0] == "Correlating prompts to edits"
        assert len(steps) == 6
        assert report.profile.prompt_evolution.compared_pairs == 1

    def test_evaluate__defaults_to_every_conversation(self, db: EventDatabase):
        _seed_conversation(db, "conv-1")
        _seed_conversation(db, "conv-2")

        report = EvaluationService(db, use_llm=False).evaluate()

        assert sorted(report.conversation_ids) == ["conv-1", "conv-2"]
        assert report.profile.meta.total_prompts == 4

    def test_evaluate__judge_classifies_intent(self, db: EventDatabase):
        _seed_conversation(db)
        judge = FakeJudge({"intent": "refactor", "understanding_level": "competent", "specificity": "specific"})

        report = EvaluationService(db, judge=judge, use_llm=True).evaluate(["conv-1"])

        assert report.semantic_llm_used is True
        assert len(judge.calls) == 3
        assert report.semantic_analyses[0].semantic_analysis.intent == "refactor"

    def test_evaluate__empty_store(self, db: EventDatabase):
        report = EvaluationService(db, use_llm=False).evaluate()

        assert report.conversation_ids == []
        assert report.profile.meta.total_prompts == 0
        assert report.profile.work_style.style == "methodical"

    def test_evaluate__pools_debugging_and_ai_usage(self, db: EventDatabase):
        _seed_conversation(db, "conv-1")
        _seed_conversation(db, "conv-2")
        tracker = DebuggingTracker(db)
        tracker.track_prompt(seed_prompt(db, "conv-1", "Fix the failing parser test", 120))
        tracker.track_edit("conv-1", at(150))
        tracker.track_prompt(seed_prompt(db, "conv-2", "The parser is broken", 120))
        tracker.end_session("conv-2", at(900))
        modifications = ModificationTracker(db)
        modifications.log_response(AIResponse(conversation_id="conv-2", content="return text", timestamp=at(100)))
        modifications.track_modification("conv-2", "return text", at(130))

        report = EvaluationService(db, use_llm=False).evaluate(["conv-1", "conv-2"])

        assert report.debug_stats.total_sessions == 2
        assert report.debug_stats.resolved_sessions == 1
        assert report.modification_stats.accepted == 1

    def test_compare_successive_prompts__stays_within_a_conversation(self, db: EventDatabase):
        _seed_conversation(db, "conv-1")
        _seed_conversation(db, "conv-2")
        service = EvaluationService(db, use_llm=False)
        correlations = service.correlation_engine.correlate_prompts_to_edits(["conv-1", "conv-2"])

        comparisons = service.compare_successive_prompts(correlations)

        assert len(comparisons) == 2
        assert all(not c.is_repetitive for c in comparisons)


class TestUnderstandingService:
    def test_analyze_conversation__stores_all_three_results(self, db: EventDatabase, offline_judge):
        _seed_conversation(db)
        tracker = DebuggingTracker(db)
        tracker.track_prompt(seed_prompt(db, "conv-1", "Fix the failing parser test", 120))
        tracker.track_edit("conv-1")
        tracker.track_prompt(seed_prompt(db, "conv-1", "The parser test is broken again", 180))
        tracker.end_session("conv-1")

        results = UnderstandingService(db, offline_judge).analyze_conversation("conv-1")

        assert [r.analyzer_name for r in results] == ["critical_thinking", "debugging_reasoning", "mistake_catcher"]
        debugging = results[1]
        assert debugging.details["debugging_session_count"] == 1
        assert debugging.details["prompts_analyzed"] == 2
        stored = UnderstandingService(db, offline_judge).get_results("conv-1")
        assert sorted(r.analyzer_name for r in stored) == sorted(r.analyzer_name for r in results)

    def test_analyze_conversation__reanalysis_replaces_results(self, db: EventDatabase, offline_judge):
        _seed_conversation(db)
        service = UnderstandingService(db, offline_judge)

        service.analyze_conversation("conv-1")
        service.analyze_conversation("conv-1")

        assert len(service.get_results("conv-1")) == 3

    def test_analyze_conversation__store_error_is_returned(self, db: EventDatabase, offline_judge):
        with db._get_db_connection() as conn:
            conn.execute("DROP TABLE prompts")

        result = UnderstandingService(db, offline_judge).analyze_conversation("conv-1")

        assert isinstance(result, StoreError)
        assert result.operation == "get_prompts"
