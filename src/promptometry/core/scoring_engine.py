"""Developer sub-scores, red/green flags and the overall assessment tier."""

import re

from promptometry.core.models import (
    AntiPattern,
    AssessmentLevel,
    Correlation,
    Flag,
    PatternAnalysis,
    PositivePattern,
    PromptAnalysis,
    ScoreBundle,
    Severity,
)
from promptometry.core.numeric import clamp, mean, round_score, safe_ratio
from promptometry.core.settings import Calibration, settings

HELP_PROMPT_PATTERN = re.compile(r"^(help|please|can you|could you|how do i)", re.IGNORECASE)

POSITIVE_PATTERN_WEIGHTS = {
    "architectural_thinking": 15,
    "testing_awareness": 12,
    "improving_specificity": 10,
}
DEFAULT_POSITIVE_WEIGHT = 8
SEVERITY_PENALTIES = {Severity.HIGH: 15, Severity.MEDIUM: 10, Severity.LOW: 5}

CONFUSION_FLAG_PROMPTS = 3
EXPERT_FLAG_PROMPTS = 2

ASSESSMENT_TIERS = (
    (
        "Expert",
        5,
        "Demonstrates strong understanding and effective AI collaboration",
        "Strong hire - shows mastery of AI-assisted development",
    ),
    (
        "Proficient",
        4,
        "Good understanding with minor areas for improvement",
        "Good candidate - shows competence with room to grow",
    ),
    (
        "Developing",
        3,
        "Moderate understanding, needs improvement in some areas",
        "Consider for junior roles - needs mentorship",
    ),
    (
        "Novice",
        2,
        "Limited understanding, relies heavily on AI without comprehension",
        "Weak candidate - significant gaps in understanding",
    ),
    (
        "Concerning",
        1,
        "Shows confusion and trial-and-error without learning",
        "Not recommended - does not understand the code being written",
    ),
)


def _bounded(score: float) -> int:
    return round_score(clamp(score, 0, 100))


def _percentage(count: int, total: int) -> float:
    return safe_ratio(count, total) * 100


class ScoringEngine:
    """Combines pattern metrics and prompt analyses into calibrated 0-100 scores."""

    def __init__(self, calibration: Calibration | None = None):
        self.calibration = calibration or settings.calibration

    def calculate_developer_score(
        self,
        semantic_analyses: list[PromptAnalysis],
        correlations: list[Correlation],
        pattern_analysis: PatternAnalysis | None,
        anti_patterns: list[AntiPattern],
        positive_patterns: list[PositivePattern],
    ) -> ScoreBundle:
        sub_scores = {
            "prompt_quality": self.score_prompt_quality(semantic_analyses),
            "self_sufficiency": self.score_self_sufficiency(correlations),
            "technical_depth": self.score_technical_depth(semantic_analyses, positive_patterns),
            "code_coherence": self.score_code_coherence(pattern_analysis),
            "understanding": self.score_understanding(anti_patterns, positive_patterns, pattern_analysis),
        }
        return ScoreBundle(**sub_scores, overall=round_score(mean(list(sub_scores.values()))))

    def score_prompt_quality(self, semantic_analyses: list[PromptAnalysis]) -> int:
        """Mean insight confidence plus a capped green-to-red flag ratio bonus."""
        if not semantic_analyses:
            return 50

        insights = [analysis.combined_insights for analysis in semantic_analyses]
        avg_confidence = mean([i.confidence_score for i in insights])
        green = sum(len(i.green_flags) for i in insights)
        red = sum(len(i.red_flags) for i in insights)
        flag_ratio = green / red if red else green

        return _bounded(avg_confidence * 0.7 + min(flag_ratio * 10, 30))

    def score_self_sufficiency(self, correlations: list[Correlation]) -> int:
        if not correlations:
            return 50

        total = len(correlations)
        score = 60

        question_rate = _percentage(sum(1 for c in correlations if "?" in c.prompt_text), total)
        if question_rate > 50:
            score -= 30
        elif question_rate > 30:
            score -= 15
        elif question_rate < 20:
            score += 10

        action_rate = _percentage(sum(1 for c in correlations if c.stats.total_edits > 0), total)
        if action_rate >= 70:
            score += 20
        elif action_rate >= 50:
            score += 10
        elif action_rate < 30:
            score -= 15

        help_rate = _percentage(sum(1 for c in correlations if HELP_PROMPT_PATTERN.match(c.prompt_text)), total)
        if help_rate > 40:
            score -= 20
        elif help_rate < 20:
            score += 10

        return _bounded(score)

    def score_technical_depth(
        self, semantic_analyses: list[PromptAnalysis], positive_patterns: list[PositivePattern]
    ) -> int:
        score = 50

        if semantic_analyses:
            total = len(semantic_analyses)
            tech_rate = _percentage(
                sum(1 for a in semantic_analyses if a.rule_based_metrics.technical_term_count >= 2), total
            )
            if tech_rate >= 60:
                score += 25
            elif tech_rate >= 40:
                score += 15
            elif tech_rate < 20:
                score -= 15

            file_ref_rate = _percentage(sum(1 for a in semantic_analyses if a.rule_based_metrics.has_file_refs), total)
            if file_ref_rate >= 50:
                score += 15
            elif file_ref_rate >= 30:
                score += 10

        pattern_types = {p.type for p in positive_patterns}
        if "architectural_thinking" in pattern_types:
            score += 15
        if "testing_awareness" in pattern_types:
            score += 10
        if "technical_specificity" in pattern_types:
            score += 10

        return _bounded(score)

    def score_code_coherence(self, pattern_analysis: PatternAnalysis | None) -> int:
        if pattern_analysis is None:
            return 50

        coherence = pattern_analysis.edit_coherence
        score = coherence.coherence_score * 0.4
        if coherence.focused_edits > coherence.scattered_edits:
            score += 15

        score += pattern_analysis.iteration_analysis.iteration_score * 0.3

        reversals = pattern_analysis.reversal_analysis
        score += reversals.reversal_score * 0.3
        if reversals.red_flag:
            score -= 20

        return _bounded(score)

    def score_understanding(
        self,
        anti_patterns: list[AntiPattern],
        positive_patterns: list[PositivePattern],
        pattern_analysis: PatternAnalysis | None,
    ) -> int:
        score = 60.0

        for anti_pattern in anti_patterns:
            score -= SEVERITY_PENALTIES.get(anti_pattern.severity, 5)

        for positive in positive_patterns:
            score += POSITIVE_PATTERN_WEIGHTS.get(positive.type, DEFAULT_POSITIVE_WEIGHT)

        if pattern_analysis is not None:
            score += (pattern_analysis.productivity_metrics.productivity_score - 50) * 0.2

        return _bounded(score)

    def generate_red_flags(
        self,
        anti_patterns: list[AntiPattern],
        pattern_analysis: PatternAnalysis | None,
        semantic_analyses: list[PromptAnalysis],
    ) -> list[Flag]:
        """Negative signals, high severity first."""
        flags = [
            Flag(
                category="anti_pattern",
                type=p.type,
                severity=p.severity,
                description=p.description,
                count=p.count,
                suggestion=p.suggestion,
            )
            for p in anti_patterns
        ]

        if pattern_analysis is not None:
            reversals = pattern_analysis.reversal_analysis
            if reversals.red_flag:
                flags.append(
                    Flag(
                        category="code_pattern",
                        type="frequent_reversals",
                        severity=Severity.HIGH,
                        description=f"{reversals.files_with_reversals} files with code reversals",
                        suggestion="Indicates confusion or trial-and-error approach. Plan changes before implementing.",
                    )
                )

            iterations = pattern_analysis.iteration_analysis
            if iterations.red_flag:
                flags.append(
                    Flag(
                        category="code_pattern",
                        type="excessive_iteration",
                        severity=Severity.MEDIUM,
                        description=(
                            f"{iterations.high_iteration_files} files edited "
                            f"{self.calibration.high_iteration_edits}+ times"
                        ),
                        suggestion="Multiple iterations suggest unclear requirements or approach. Review before coding.",
                    )
                )

        confused = [a for a in semantic_analyses if a.understanding_level == "confused"]
        if len(confused) >= CONFUSION_FLAG_PROMPTS:
            flags.append(
                Flag(
                    category="prompt_quality",
                    type="confusion_indicators",
                    severity=Severity.MEDIUM,
                    description=f"{len(confused)} prompts show confusion or uncertainty",
                    suggestion="Take time to understand requirements before asking AI for help.",
                )
            )

        flags.sort(key=lambda flag: flag.severity.rank if flag.severity else Severity.LOW.rank)
        return flags

    def generate_green_flags(
        self,
        positive_patterns: list[PositivePattern],
        pattern_analysis: PatternAnalysis | None,
        semantic_analyses: list[PromptAnalysis],
    ) -> list[Flag]:
        flags = [
            Flag(
                category="positive_pattern",
                type=p.type,
                description=p.description,
                count=p.count,
                examples=p.examples,
            )
            for p in positive_patterns
        ]

        if pattern_analysis is not None:
            focus = pattern_analysis.file_focus
            if focus.assessment == "highly_focused":
                flags.append(
                    Flag(
                        category="work_pattern",
                        type="focused_work",
                        description="Highly focused on specific files, indicating deep work on features",
                        details=f"{focus.focus_percentage}% of edits on top 3 files",
                    )
                )

            productivity = pattern_analysis.productivity_metrics
            if productivity.assessment == "efficient":
                flags.append(
                    Flag(
                        category="productivity",
                        type="efficient_workflow",
                        description="Efficient edit patterns with minimal redundancy",
                        details=productivity.model_dump(),
                    )
                )

        expert = [a for a in semantic_analyses if a.understanding_level == "expert"]
        if len(expert) >= EXPERT_FLAG_PROMPTS:
            flags.append(
                Flag(
                    category="expertise",
                    type="expert_level_prompts",
                    description=f"{len(expert)} prompts show expert-level understanding",
                    examples=[a.prompt_text[:80] for a in expert[:2]],
                )
            )

        return flags

    def get_assessment_level(self, overall_score: int) -> AssessmentLevel:
        cal = self.calibration
        breakpoints = (cal.tier_expert, cal.tier_proficient, cal.tier_developing, cal.tier_novice)

        tier_index = next(
            (index for index, breakpoint in enumerate(breakpoints) if overall_score >= breakpoint),
            len(breakpoints),
        )
        level, stars, description, recommendation = ASSESSMENT_TIERS[tier_index]
        return AssessmentLevel(level=level, stars=stars, description=description, recommendation=recommendation)
