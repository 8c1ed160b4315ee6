"""Tests for the understanding analyzers, their shared aggregation and the fallback rules."""

import pytest
from conftest import FakeJudge

from promptometry.core.models import JudgmentAggregate, JudgmentMethod, Prompt
from promptometry.understanding.aggregation import confidence_for, score_aggregate
from promptometry.understanding.analyzers import (
    ANALYZER_VARIANTS,
    CRITICAL_THINKING,
    DEBUGGING_REASONING,
    MISTAKE_CATCHER,
    UnderstandingAnalyzer,
    build_analyzers,
)
from promptometry.understanding.rules import critical_thinking_rule, debugging_reasoning_rule, mistake_catcher_rule

TRADEOFF_VERDICT = {
    "isCriticalThinking": True,
    "type": "tradeoff",
    "qualityScore": 8,
    "evidence": "instead of",
    "reasoning": "Weighs alternatives",
}
SECURITY_MISTAKE = {
    "caughtMistake": True,
    "mistakeType": "security",
    "severity": "high",
    "qualityScore": 9,
    "evidence": "SQL injection",
    "reasoning": "Caught an injection risk",
}


def _prompts(*texts: str, debugging: tuple[int, ...] = ()) -> list[Prompt]:
    return [
        Prompt(conversation_id="conv-1", prompt_text=text, sequence_number=index + 1, is_debugging=index in debugging)
        for index, text in enumerate(texts)
    ]


class TestCriticalThinkingAnalyzer:
    def test_analyze__ai_verdicts_scored_and_aggregated(self):
        judge = FakeJudge(TRADEOFF_VERDICT)
        prompts = _prompts(
            "Why use Redis instead of Memcached here?",
            "Should we prefer composition over inheritance?",
            "Is a queue better than polling for this?",
        )

        result = UnderstandingAnalyzer(CRITICAL_THINKING, judge).analyze("conv-1", prompts)

        assert result.score == 6.7
        assert result.verdict == "uncertain"
        assert result.confidence == 0.65
        assert result.details["method"] == "ai"
        assert result.details["ai_success_rate"] == 1.0
        findings = result.details["critical_questions"]
        assert findings["count"] == 3
        assert findings["breakdown"] == {"tradeoff": 3}
        assert findings["ai_reasoning"][0]["type"] == "tradeoff"
        assert len(judge.calls) == 3

    def test_analyze__short_prompts_never_reach_the_judge(self):
        judge = FakeJudge(TRADEOFF_VERDICT)

        result = UnderstandingAnalyzer(CRITICAL_THINKING, judge).analyze("conv-1", _prompts("ok", "why?", "go on"))

        assert judge.calls == []
        assert result.score == 0.0
        assert result.verdict == "copy-paste"
        assert result.details["method"] == "none"
        assert result.details["prompts_attempted"] == 0

    def test_analyze__offline_judge_uses_rule_fallback(self, offline_judge):
        prompts = _prompts("Why use Redis instead of Memcached for sessions?")

        result = UnderstandingAnalyzer(CRITICAL_THINKING, offline_judge).analyze("conv-1", prompts)

        assert result.score == 4.9
        assert result.verdict == "copy-paste"
        assert result.confidence == 0.4
        assert result.details["method"] == "fallback"
        assert result.details["fallback_count"] == 1
        assert result.details["critical_questions"]["ai_reasoning"][0]["evidence"] == "Matched regex pattern"

    def test_analyze__unparseable_reply_uses_rule_fallback(self):
        prompts = _prompts("Why use Redis instead of Memcached for sessions?")

        result = UnderstandingAnalyzer(CRITICAL_THINKING, FakeJudge("I think so, yes.")).analyze("conv-1", prompts)

        assert result.details["method"] == "fallback"
        assert result.details["critical_questions"]["breakdown"] == {"tradeoff": 1}

    def test_analyze__ties_between_ai_and_fallback_count_as_ai(self):
        judge = FakeJudge(TRADEOFF_VERDICT, "garbage")
        prompts = _prompts("Why use Redis instead of Memcached here?", "Make the header sticky on scroll")

        result = UnderstandingAnalyzer(CRITICAL_THINKING, judge).analyze("conv-1", prompts)

        assert result.details["method"] == "ai"
        assert result.details["ai_success_rate"] == 0.5
        assert result.details["critical_questions"]["count"] == 1

    def test_analyze__no_prompts(self):
        result = UnderstandingAnalyzer(CRITICAL_THINKING, FakeJudge()).analyze("conv-1", [])

        assert result.score == 0.0
        assert result.verdict == "uncertain"
        assert result.confidence == 0.0
        assert result.details["error"] == "No prompts found"
        assert result.analysis_method == "none"


class TestMistakeCatcherAnalyzer:
    def test_analyze__high_severity_bonus(self):
        prompts = _prompts("This has a SQL injection risk in the query", "Passwords are logged in plain text here")

        result = UnderstandingAnalyzer(MISTAKE_CATCHER, FakeJudge(SECURITY_MISTAKE)).analyze("conv-1", prompts)

        assert result.score == 6.6
        assert result.verdict == "somewhat_critical"
        assert result.confidence == 0.75
        assert result.details["mistakes_caught"]["severity_breakdown"] == {"high": 2}
        assert result.details["mistakes_caught"]["ai_reasoning"][0]["severity"] == "high"


class TestDebuggingReasoningAnalyzer:
    def test_select_prompts__only_debugging_prompts_when_present(self, offline_judge):
        prompts = _prompts("Refactor the parser module", "The root cause is the missing await", debugging=(1,))

        result = UnderstandingAnalyzer(DEBUGGING_REASONING, offline_judge).analyze(
            "conv-1", prompts, extra_details={"debugging_session_count": 1}
        )

        assert result.details["prompts_analyzed"] == 1
        assert result.details["debugging_session_count"] == 1
        assert result.details["systematic_debugging"]["breakdown"] == {"root_cause": 1}
        assert result.score == 5.7
        assert result.verdict == "trial_and_error"

    def test_select_prompts__all_prompts_without_debugging(self, offline_judge):
        prompts = _prompts("Refactor the parser module", "Rename the config loader")

        analyzer = UnderstandingAnalyzer(DEBUGGING_REASONING, offline_judge)

        assert [p.sequence_number for p in analyzer.select_prompts(list(reversed(prompts)))] == [1, 2]


class TestVariants:
    def test_build_analyzers__one_per_variant_sharing_the_judge(self, offline_judge):
        analyzers = build_analyzers(offline_judge)

        assert [a.variant.name for a in analyzers] == list(ANALYZER_VARIANTS)
        assert all(a.judge is offline_judge for a in analyzers)

    @pytest.mark.parametrize(
        "variant,score,verdict",
        [
            (CRITICAL_THINKING, 7.5, "understands"),
            (CRITICAL_THINKING, 7.4, "uncertain"),
            (CRITICAL_THINKING, 4.9, "copy-paste"),
            (DEBUGGING_REASONING, 8.0, "systematic"),
            (DEBUGGING_REASONING, 4.0, "trial_and_error"),
            (DEBUGGING_REASONING, 3.9, "helpless"),
            (MISTAKE_CATCHER, 8.0, "highly_critical"),
            (MISTAKE_CATCHER, 5.0, "somewhat_critical"),
            (MISTAKE_CATCHER, 0.0, "not_critical"),
        ],
    )
    def test_verdict_for__bands(self, variant, score, verdict):
        assert variant.verdict_for(score) == verdict

    def test_score_aggregate__capped_at_ten(self):
        aggregate = JudgmentAggregate(
            count=6, quality=10.0, breakdown={"tradeoff": 2, "security": 1, "edge_case": 1, "architecture": 2}
        )

        assert score_aggregate(aggregate, CRITICAL_THINKING) == 10.0

    def test_confidence_for__capped(self):
        aggregate = JudgmentAggregate(
            count=6,
            breakdown={"tradeoff": 2, "security": 2, "edge_case": 2},
            success_rate=1.0,
            method=JudgmentMethod.AI,
        )

        assert confidence_for(aggregate, CRITICAL_THINKING) == 0.95


class TestRules:
    def test_critical_thinking_rule__tradeoff_with_bonuses(self):
        verdict = critical_thinking_rule("What are the trade-offs of caching here for performance?")

        assert verdict.relevant is True
        assert verdict.category == "tradeoff"
        assert verdict.quality_score == 8
        assert verdict.method == JudgmentMethod.FALLBACK

    def test_critical_thinking_rule__edge_case_and_no_match(self):
        assert critical_thinking_rule("What if the input list is empty?").category == "edge_case"

        verdict = critical_thinking_rule("Make the button blue")
        assert verdict.relevant is False
        assert verdict.category == "none"

    @pytest.mark.parametrize(
        "text,category,quality,relevant",
        [
            ("The root cause is the missing await", "root_cause", 8, True),
            ("I narrowed it down to the parser", "narrowing", 7, True),
            ("Try this?", "trial_error", 3, False),
            ("Why is it broken", "helpless", 0, False),
        ],
    )
    def test_debugging_reasoning_rule(self, text, category, quality, relevant):
        verdict = debugging_reasoning_rule(text)

        assert verdict.category == category
        assert verdict.quality_score == quality
        assert verdict.relevant is relevant

    def test_mistake_catcher_rule__severity_by_category(self):
        security = mistake_catcher_rule("This has a SQL injection risk")
        logic = mistake_catcher_rule("Wait, this drops the last row")

        assert (security.category, security.severity, security.quality_score) == ("security", "high", 8.0)
        assert (logic.category, logic.severity, logic.quality_score) == ("logic", "medium", 7.0)
        assert mistake_catcher_rule("Looks good, ship it").relevant is False
