"""Judgment state machine and scoring shared by the understanding analyzers.

Each prompt goes PENDING -> AI_JUDGED | RULE_FALLBACK -> included | excluded.
Prompts shorter than the minimum length are skipped entirely and never reach
the judge or any denominator.
"""

import logging
from collections import Counter
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel

from promptometry.core.models import (
    JudgedPrompt,
    JudgmentAggregate,
    JudgmentError,
    JudgmentMethod,
    JudgmentVerdict,
    Prompt,
    ReasoningSample,
)
from promptometry.core.numeric import mean, round_half_up
from promptometry.core.settings import Calibration, settings
from promptometry.understanding.judge import TextJudge
from promptometry.understanding.templates import VerdictFields, build_prompt, parse_verdict

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 5
REASONING_PROMPT_LENGTH = 100


class AnalyzerVariant(BaseModel):
    """What distinguishes one understanding analyzer from another."""

    model_config = {"frozen": True}

    name: str
    template: str
    fields: VerdictFields
    rule: Callable[[str], JudgmentVerdict]
    bonus: Literal["diversity", "severity"] = "diversity"
    verdict_bands: tuple[tuple[float, str], ...]
    bottom_verdict: str
    empty_verdict: str
    findings_key: str
    debugging_prompts_only: bool = False

    def verdict_for(self, score: float) -> str:
        for threshold, verdict in self.verdict_bands:
            if score >= threshold:
                return verdict
        return self.bottom_verdict


def judge_prompt(text: str, variant: AnalyzerVariant, judge: TextJudge) -> JudgmentVerdict:
    """Ask the judge; use the variant's rule when the call fails or the reply is unusable."""
    response = judge.complete(build_prompt(variant.template, text))
    if isinstance(response, JudgmentError):
        return variant.rule(text)

    verdict = parse_verdict(response, variant.fields)
    if verdict is None:
        logger.debug(f"Unusable {variant.name} verdict, using rule fallback: {response[:200]!r}")
        return variant.rule(text)
    return verdict


def _reasoning_sample(judged: JudgedPrompt, with_severity: bool) -> ReasoningSample:
    prompt = judged.text[:REASONING_PROMPT_LENGTH]
    if len(judged.text) > REASONING_PROMPT_LENGTH:
        prompt += "..."
    return ReasoningSample(
        prompt=prompt,
        type=judged.category,
        score=judged.quality_score,
        severity=judged.severity if with_severity else None,
        evidence=judged.evidence,
        reasoning=judged.reasoning,
    )


def aggregate_judgments(
    prompts: list[Prompt],
    variant: AnalyzerVariant,
    judge: TextJudge,
    calibration: Calibration | None = None,
) -> JudgmentAggregate:
    """Judge prompts one at a time, in order, and aggregate the included ones."""
    calibration = calibration or settings.calibration
    judged: list[JudgedPrompt] = []
    attempted = ai_judged = fallback_count = 0

    for prompt in prompts:
        text = prompt.prompt_text
        if len(text) < calibration.min_judged_prompt_length:
            continue

        attempted += 1
        verdict = judge_prompt(text, variant, judge)
        if verdict.method == JudgmentMethod.AI:
            ai_judged += 1
        else:
            fallback_count += 1

        if verdict.relevant:
            judged.append(
                JudgedPrompt(
                    text=text,
                    category=verdict.category,
                    quality_score=verdict.quality_score,
                    severity=verdict.severity,
                    evidence=verdict.evidence,
                    reasoning=verdict.reasoning,
                    sequence=prompt.sequence_number,
                    method=verdict.method,
                )
            )

    if attempted == 0:
        method = JudgmentMethod.NONE
    elif ai_judged >= fallback_count:
        method = JudgmentMethod.AI
    else:
        method = JudgmentMethod.FALLBACK

    with_severity = variant.bonus == "severity"
    return JudgmentAggregate(
        count=len(judged),
        examples=[j.text for j in judged[:MAX_EXAMPLES]],
        quality=mean([j.quality_score for j in judged]),
        breakdown=dict(Counter(j.category for j in judged)),
        severity_breakdown=dict(Counter(j.severity for j in judged)) if with_severity else {},
        ai_reasoning=[_reasoning_sample(j, with_severity) for j in judged[:MAX_EXAMPLES]],
        judged=judged,
        attempted=attempted,
        ai_judged=ai_judged,
        fallback_count=fallback_count,
        method=method,
        success_rate=ai_judged / attempted if attempted else 0.0,
    )


def _count_step(count: int) -> int:
    if count >= 5:
        return 4
    if count >= 3:
        return 3
    if count >= 1:
        return 2
    return 0


def score_aggregate(aggregate: JudgmentAggregate, variant: AnalyzerVariant) -> float:
    """0-10: count step + quality term + diversity or severity bonus, one decimal."""
    if aggregate.count == 0:
        return 0.0

    quality_term = aggregate.quality / 10 * 4
    if variant.bonus == "severity":
        bonus = min(2.0, aggregate.high_severity_count * 0.5)
    else:
        bonus = min(2.0, aggregate.distinct_types * 0.5)

    return round_half_up(min(10.0, _count_step(aggregate.count) + quality_term + bonus), 1)


def confidence_for(aggregate: JudgmentAggregate, variant: AnalyzerVariant) -> float:
    """Baseline 0.3 plus count, spread and judge-success bonuses, capped at 0.95."""
    confidence = 0.3

    if aggregate.count >= 5:
        confidence += 0.3
    elif aggregate.count >= 3:
        confidence += 0.2
    elif aggregate.count >= 1:
        confidence += 0.1

    if variant.bonus == "severity":
        if aggregate.high_severity_count >= 2:
            confidence += 0.2
        elif aggregate.high_severity_count >= 1:
            confidence += 0.1
    elif aggregate.distinct_types >= 3:
        confidence += 0.2
    elif aggregate.distinct_types >= 2:
        confidence += 0.1

    if aggregate.success_rate > 0.8:
        confidence += 0.15
    elif aggregate.success_rate > 0.5:
        confidence += 0.05

    return min(0.95, round_half_up(confidence, 2))
