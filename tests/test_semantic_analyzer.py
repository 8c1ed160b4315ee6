"""Tests for rule-based prompt metrics and LLM intent classification."""

import pytest
from conftest import FakeJudge

from promptometry.core.models import JudgmentError, JudgmentErrorKind, PolitenessLevel, StructureType
from promptometry.core.semantic_analyzer import (
    SemanticAnalyzer,
    basic_compare,
    combine_insights,
    get_rule_based_metrics,
)


class TestRuleBasedMetrics:
    def test_get_rule_based_metrics__specific_prompt(self):
        metrics = get_rule_based_metrics("Refactor the `parse` function in parser.py to use async validation")

        assert metrics.word_count == 10
        assert metrics.has_code_blocks is True
        assert metrics.has_file_refs is True
        assert metrics.starts_with_action_verb is True
        assert metrics.technical_term_count == 4
        assert metrics.vague_word_count == 0
        assert metrics.politeness_level == PolitenessLevel.LOW
        assert metrics.structure_type == StructureType.SINGLE_LINE

    def test_get_rule_based_metrics__politeness_and_vagueness(self):
        metrics = get_rule_based_metrics("Could you please fix this thing, thank you")

        assert metrics.politeness_level == PolitenessLevel.HIGH
        assert metrics.vague_word_count == 3

    @pytest.mark.parametrize(
        "text,structure",
        [
            ("1. Add tests\n2. Update docs", StructureType.NUMBERED_LIST),
            ("- Add tests\n- Update docs", StructureType.BULLET_LIST),
            ("Add tests\nUpdate docs", StructureType.MULTI_LINE),
        ],
    )
    def test_get_rule_based_metrics__structure(self, text, structure):
        assert get_rule_based_metrics(text).structure_type == structure


class TestCombineInsights:
    def test_combine_insights__short_vague_question_scores_low(self):
        insights = combine_insights(get_rule_based_metrics("Please help?"), None)

        assert insights.red_flags == ["Very short prompt - lacks detail", "Vague question without context"]
        assert insights.green_flags == []
        assert insights.confidence_score == 30

    def test_combine_insights__confidence_is_clamped(self):
        metrics = get_rule_based_metrics("Refactor the `parse` function in parser.py to use async validation")

        assert combine_insights(metrics, None).confidence_score == 100


class TestSemanticAnalyzer:
    def test_analyze_prompt__without_judge_is_rule_based_only(self):
        analysis = SemanticAnalyzer().analyze_prompt("Please help?", prompt_id=7)

        assert analysis.prompt_id == 7
        assert analysis.semantic_analysis is None
        assert analysis.semantic_error is None
        assert analysis.understanding_level is None

    def test_analyze_prompt__judge_intent_adds_flags(self):
        judge = FakeJudge(
            {
                "intent": "refactor",
                "understanding_level": "expert",
                "specificity": "specific",
                "shows_context_awareness": True,
                "architectural_thinking": True,
                "key_concepts": ["parser"],
            }
        )

        analysis = SemanticAnalyzer(judge).analyze_prompt("Refactor the parser module for streaming input")

        assert analysis.semantic_analysis.intent == "refactor"
        assert analysis.understanding_level == "expert"
        assert "Expert-level understanding" in analysis.combined_insights.green_flags
        assert "Shows architectural thinking" in analysis.combined_insights.green_flags
        assert len(judge.calls) == 1
        assert "Refactor the parser module for streaming input" in judge.calls[0]

    def test_analyze_prompt__judge_error_keeps_rule_metrics(self, offline_judge):
        analysis = SemanticAnalyzer(offline_judge).analyze_prompt("Please help?")

        assert analysis.semantic_analysis is None
        assert analysis.semantic_error == "offline"
        assert analysis.combined_insights.confidence_score == 30

    def test_analyze_intent__reply_without_json_is_call_failure(self):
        result = SemanticAnalyzer(FakeJudge("I cannot classify this")).analyze_intent("Add tests")

        assert isinstance(result, JudgmentError)
        assert result.kind == JudgmentErrorKind.CALL_FAILED

    def test_analyze_intent__invalid_fields_are_call_failure(self):
        result = SemanticAnalyzer(FakeJudge({"key_concepts": "not-a-list"})).analyze_intent("Add tests")

        assert isinstance(result, JudgmentError)
        assert result.kind == JudgmentErrorKind.CALL_FAILED

    def test_analyze_intent__requires_judge(self):
        with pytest.raises(ValueError):
            SemanticAnalyzer().analyze_intent("Add tests")


class TestComparison:
    def test_basic_compare__high_overlap_is_repetitive(self):
        comparison = basic_compare("fix login bug", "fix login bug now")

        assert comparison.similarity_score == 75
        assert comparison.is_repetitive is True
        assert comparison.is_refinement is False

    def test_basic_compare__partial_overlap_is_refinement(self):
        comparison = basic_compare("add a cache layer", "add a redis cache layer with ttl")

        assert comparison.similarity_score == 57
        assert comparison.is_refinement is True

    def test_compare_prompts__uses_judge_reply(self):
        judge = FakeJudge({"is_repetitive": False, "is_refinement": True, "similarity_score": 55, "shows_learning": True})

        comparison = SemanticAnalyzer(judge).compare_prompts("add a cache", "add a redis cache")

        assert comparison.shows_learning is True
        assert comparison.similarity_score == 55

    def test_compare_prompts__falls_back_to_word_overlap(self, offline_judge):
        comparison = SemanticAnalyzer(offline_judge).compare_prompts("fix login bug", "fix login bug now")

        assert comparison.similarity_score == 75
