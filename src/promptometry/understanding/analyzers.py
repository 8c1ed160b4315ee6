"""The three understanding analyzers: critical thinking, debugging reasoning, mistake catching."""

from typing import Any

from promptometry.core.models import AnalyzerResult, JudgmentMethod, Prompt
from promptometry.core.settings import Calibration, settings
from promptometry.understanding.aggregation import (
    AnalyzerVariant,
    aggregate_judgments,
    confidence_for,
    score_aggregate,
)
from promptometry.understanding.judge import LLMJudge, TextJudge
from promptometry.understanding.rules import critical_thinking_rule, debugging_reasoning_rule, mistake_catcher_rule
from promptometry.understanding.templates import (
    CRITICAL_THINKING_TEMPLATE,
    DEBUGGING_REASONING_TEMPLATE,
    MISTAKE_CATCHER_TEMPLATE,
    VerdictFields,
)

CRITICAL_THINKING = AnalyzerVariant(
    name="critical_thinking",
    template=CRITICAL_THINKING_TEMPLATE,
    fields=VerdictFields(
        relevant="isCriticalThinking",
        category="type",
        quality="qualityScore",
        categories=("tradeoff", "security", "edge_case", "architecture", "questioning_ai", "learning", "none"),
        default_category="none",
    ),
    rule=critical_thinking_rule,
    verdict_bands=((7.5, "understands"), (5.0, "uncertain")),
    bottom_verdict="copy-paste",
    empty_verdict="uncertain",
    findings_key="critical_questions",
)

DEBUGGING_REASONING = AnalyzerVariant(
    name="debugging_reasoning",
    template=DEBUGGING_REASONING_TEMPLATE,
    fields=VerdictFields(
        relevant="isSystematic",
        category="type",
        quality="debuggingQuality",
        categories=("hypothesis", "testing", "root_cause", "narrowing", "trial_error", "helpless"),
        default_category="helpless",
    ),
    rule=debugging_reasoning_rule,
    verdict_bands=((8.0, "systematic"), (4.0, "trial_and_error")),
    bottom_verdict="helpless",
    empty_verdict="helpless",
    findings_key="systematic_debugging",
    debugging_prompts_only=True,
)

MISTAKE_CATCHER = AnalyzerVariant(
    name="mistake_catcher",
    template=MISTAKE_CATCHER_TEMPLATE,
    fields=VerdictFields(
        relevant="caughtMistake",
        category="mistakeType",
        quality="qualityScore",
        categories=("security", "bug", "logic", "edge_case", "prevention", "none"),
        default_category="none",
        severities=("high", "medium", "low", "none"),
    ),
    rule=mistake_catcher_rule,
    bonus="severity",
    verdict_bands=((8.0, "highly_critical"), (5.0, "somewhat_critical")),
    bottom_verdict="not_critical",
    empty_verdict="not_critical",
    findings_key="mistakes_caught",
)

ANALYZER_VARIANTS: dict[str, AnalyzerVariant] = {
    variant.name: variant for variant in (CRITICAL_THINKING, DEBUGGING_REASONING, MISTAKE_CATCHER)
}


class UnderstandingAnalyzer:
    """Runs one analyzer variant over a conversation's prompts."""

    def __init__(
        self, variant: AnalyzerVariant, judge: TextJudge | None = None, calibration: Calibration | None = None
    ):
        self.variant = variant
        self.judge = judge or LLMJudge()
        self.calibration = calibration or settings.calibration

    def select_prompts(self, prompts: list[Prompt]) -> list[Prompt]:
        """Debugging reasoning looks only at debugging prompts when the conversation has any."""
        ordered = sorted(prompts, key=lambda p: p.sequence_number)
        if self.variant.debugging_prompts_only:
            debugging = [p for p in ordered if p.is_debugging]
            if debugging:
                return debugging
        return ordered

    def analyze(
        self, conversation_id: str, prompts: list[Prompt], extra_details: dict[str, Any] | None = None
    ) -> AnalyzerResult:
        details: dict[str, Any] = dict(extra_details or {})

        if not prompts:
            details.update(
                {
                    "method": JudgmentMethod.NONE.value,
                    "error": "No prompts found",
                    self.variant.findings_key: {"count": 0, "examples": [], "quality": 0, "breakdown": {}},
                }
            )
            return AnalyzerResult(
                conversation_id=conversation_id,
                analyzer_name=self.variant.name,
                score=0.0,
                verdict=self.variant.empty_verdict,
                confidence=0.0,
                details=details,
            )

        selected = self.select_prompts(prompts)
        aggregate = aggregate_judgments(selected, self.variant, self.judge, self.calibration)
        score = score_aggregate(aggregate, self.variant)

        details.update(
            {
                "method": aggregate.method.value,
                "prompts_analyzed": len(selected),
                "prompts_attempted": aggregate.attempted,
                "ai_success_rate": aggregate.success_rate,
                "fallback_count": aggregate.fallback_count,
                self.variant.findings_key: aggregate.model_dump(
                    mode="json", exclude={"judged", "attempted", "ai_judged", "fallback_count", "method", "success_rate"}
                ),
            }
        )

        return AnalyzerResult(
            conversation_id=conversation_id,
            analyzer_name=self.variant.name,
            score=score,
            verdict=self.variant.verdict_for(score),
            confidence=confidence_for(aggregate, self.variant),
            details=details,
        )


def build_analyzers(judge: TextJudge | None = None, calibration: Calibration | None = None) -> list[UnderstandingAnalyzer]:
    """One analyzer per variant, sharing a single judge."""
    judge = judge or LLMJudge()
    return [UnderstandingAnalyzer(variant, judge, calibration) for variant in ANALYZER_VARIANTS.values()]
