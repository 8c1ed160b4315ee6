"""Behavioral metrics over correlations and iteration patterns."""

import re
from collections import Counter

from promptometry.core.models import (
    AntiPattern,
    Correlation,
    EditCoherence,
    FileEditCount,
    FileFocus,
    IterationAnalysis,
    IterationPattern,
    PatternAnalysis,
    PositivePattern,
    ProductivityMetrics,
    ReversalAnalysis,
    ReversalDetail,
    Severity,
)
from promptometry.core.numeric import clamp, mean, round_half_up, round_score, safe_ratio
from promptometry.core.settings import Calibration, settings

VAGUE_PROMPT_PATTERN = re.compile(r"^(fix|help|update|change) (this|that|it)", re.IGNORECASE)
ARCHITECTURE_PATTERN = re.compile(
    r"architecture|design pattern|structure|refactor|organize|scalable|maintainable", re.IGNORECASE
)
TESTING_PATTERN = re.compile(r"test|spec|unit test|integration|coverage|assertion", re.IGNORECASE)
DOTTED_REFERENCE_PATTERN = re.compile(r"\w+\.\w+")
TECHNICAL_WORDS = ("function", "component", "api", "method")

EXAMPLE_LENGTH = 80
TOP_FILES = 3


def is_vague_prompt(text: str, calibration: Calibration) -> bool:
    return len(text) < calibration.vague_prompt_length or bool(VAGUE_PROMPT_PATTERN.match(text))


def is_technical_prompt(text: str) -> bool:
    """Longer than 30 characters and naming a code construct or a dotted reference."""
    lowered = text.lower()
    return len(text) > 30 and (
        any(word in lowered for word in TECHNICAL_WORDS) or bool(DOTTED_REFERENCE_PATTERN.search(text))
    )


class CodePatternAnalyzer:
    """Pure pattern metrics; no I/O."""

    def __init__(self, calibration: Calibration | None = None):
        self.calibration = calibration or settings.calibration

    def analyze_patterns(
        self, correlations: list[Correlation], iteration_patterns: list[IterationPattern]
    ) -> PatternAnalysis:
        return PatternAnalysis(
            edit_coherence=self.analyze_edit_coherence(correlations),
            iteration_analysis=self.analyze_iterations(iteration_patterns),
            reversal_analysis=self.analyze_reversals(iteration_patterns),
            productivity_metrics=self.calculate_productivity_metrics(correlations),
            file_focus=self.analyze_file_focus(correlations),
        )

    def analyze_edit_coherence(self, correlations: list[Correlation]) -> EditCoherence:
        """Classify each prompt with edits by how many files it touched.

        One file is single-file, two or three multi-file, four or more
        incoherent. Focused and scattered are tallied separately from that.
        """
        cal = self.calibration
        coherence = EditCoherence()

        for correlation in correlations:
            files_changed = correlation.stats.files_changed
            total_edits = correlation.stats.total_edits
            if total_edits == 0:
                continue

            if files_changed == 1:
                coherence.single_file_edits += 1
                coherence.coherent_prompts += 1
            elif files_changed < cal.scattered_min_files:
                coherence.multi_file_edits += 1
                coherence.coherent_prompts += 1
            else:
                coherence.incoherent_prompts += 1

            if files_changed <= cal.focused_max_files and total_edits <= cal.focused_max_edits:
                coherence.focused_edits += 1
            if files_changed >= cal.scattered_min_files or total_edits > cal.scattered_min_edits:
                coherence.scattered_edits += 1

        coherence.coherence_score = round_score(
            safe_ratio(coherence.coherent_prompts, coherence.coherent_prompts + coherence.incoherent_prompts) * 100
        )
        if coherence.coherence_score >= cal.coherence_good:
            coherence.assessment = "good"
        elif coherence.coherence_score >= cal.coherence_moderate:
            coherence.assessment = "moderate"
        else:
            coherence.assessment = "poor"
        return coherence

    def analyze_iterations(self, iteration_patterns: list[IterationPattern]) -> IterationAnalysis:
        cal = self.calibration
        total = len(iteration_patterns)
        high = sum(1 for p in iteration_patterns if p.edit_count >= cal.high_iteration_edits)
        moderate = sum(1 for p in iteration_patterns if 2 <= p.edit_count < cal.high_iteration_edits)

        iteration_score = max(0.0, 100 - safe_ratio(high, total) * 50) if total else 100.0
        red_flag = high >= cal.iteration_red_flag_files

        if red_flag:
            assessment = "excessive_iteration"
        elif moderate > total / 2:
            assessment = "moderate_iteration"
        else:
            assessment = "healthy_iteration"

        return IterationAnalysis(
            total_iterated_files=total,
            high_iteration_files=high,
            moderate_iteration_files=moderate,
            avg_iterations_per_file=round_half_up(mean([p.edit_count for p in iteration_patterns]), 2),
            iteration_score=round_score(iteration_score),
            red_flag=red_flag,
            assessment=assessment,
        )

    def analyze_reversals(self, iteration_patterns: list[IterationPattern]) -> ReversalAnalysis:
        cal = self.calibration
        with_reversals = [p for p in iteration_patterns if p.has_reversals]
        reversal_rate = safe_ratio(len(with_reversals), len(iteration_patterns)) * 100

        if len(with_reversals) >= cal.high_confusion_reversal_files:
            assessment = "high_confusion"
        elif with_reversals:
            assessment = "some_uncertainty"
        else:
            assessment = "confident"

        return ReversalAnalysis(
            files_with_reversals=len(with_reversals),
            total_reversals=sum(len(p.reversals) for p in with_reversals),
            reversal_rate=round_score(reversal_rate),
            reversal_score=round_score(max(0.0, 100 - reversal_rate * 2)),
            red_flag=len(with_reversals) >= cal.reversal_red_flag_files,
            details=[
                ReversalDetail(file=p.file_path, reversals=len(p.reversals), timeline=p.timeline)
                for p in with_reversals
            ],
            assessment=assessment,
        )

    def calculate_productivity_metrics(self, correlations: list[Correlation]) -> ProductivityMetrics:
        """Baseline 50, rewarding 2-4 edits and 1-2 files per productive prompt."""
        with_edits = [c for c in correlations if c.stats.total_edits > 0]
        if not with_edits:
            return ProductivityMetrics()

        avg_edits = round_half_up(mean([c.stats.total_edits for c in with_edits]), 2)
        avg_files = round_half_up(mean([c.stats.files_changed for c in with_edits]), 2)

        score = 50
        if 2 <= avg_edits <= 4:
            score += 25
        elif avg_edits > 4:
            score -= 10

        if 1 <= avg_files <= 2:
            score += 25
        elif avg_files > 3:
            score -= 10

        score = int(clamp(score, 0, 100))
        if score >= 70:
            assessment = "efficient"
        elif score >= 50:
            assessment = "moderate"
        else:
            assessment = "inefficient"

        return ProductivityMetrics(
            avg_edits_per_prompt=avg_edits,
            avg_files_per_prompt=avg_files,
            productivity_score=score,
            assessment=assessment,
        )

    def analyze_file_focus(self, correlations: list[Correlation]) -> FileFocus:
        edit_counts: Counter[str] = Counter()
        for correlation in correlations:
            edit_counts.update(edit.file_path for edit in correlation.related_edits)

        if not edit_counts:
            return FileFocus()

        # Counter.most_common keeps first-seen order among equal counts
        ranked = [FileEditCount(file=path, edits=count) for path, count in edit_counts.most_common()]
        top_files = ranked[:TOP_FILES]
        focus_percentage = safe_ratio(sum(f.edits for f in top_files), sum(edit_counts.values())) * 100

        if focus_percentage >= 70:
            focus_score, assessment = 90, "highly_focused"
        elif focus_percentage >= 50:
            focus_score, assessment = 70, "moderately_focused"
        elif focus_percentage >= 30:
            focus_score, assessment = 50, "scattered"
        else:
            focus_score, assessment = 30, "scattered"

        return FileFocus(
            total_files_touched=len(edit_counts),
            top_files=top_files,
            focus_percentage=round_score(focus_percentage),
            focus_score=focus_score,
            assessment=assessment,
        )

    def detect_anti_patterns(
        self, correlations: list[Correlation], iteration_patterns: list[IterationPattern]
    ) -> list[AntiPattern]:
        cal = self.calibration
        anti_patterns = []

        unanswered_questions = [c for c in correlations if "?" in c.prompt_text and c.stats.total_edits == 0]
        if len(unanswered_questions) >= cal.excessive_questions_threshold:
            anti_patterns.append(
                AntiPattern(
                    type="excessive_questions",
                    severity=Severity.MEDIUM,
                    count=len(unanswered_questions),
                    description="Many questions without implementation attempts",
                    suggestion="Try implementing solutions before asking for guidance",
                )
            )

        vague_prompts = [c for c in correlations if is_vague_prompt(c.prompt_text, cal)]
        if len(vague_prompts) >= cal.vague_prompts_threshold:
            anti_patterns.append(
                AntiPattern(
                    type="vague_prompts",
                    severity=Severity.HIGH,
                    count=len(vague_prompts),
                    description="Frequent vague or unclear prompts",
                    suggestion="Be more specific about what you want to change and why",
                )
            )

        reversal_files = [p for p in iteration_patterns if p.has_reversals]
        if len(reversal_files) >= cal.frequent_reversals_threshold:
            anti_patterns.append(
                AntiPattern(
                    type="frequent_reversals",
                    severity=Severity.HIGH,
                    count=len(reversal_files),
                    description="Frequently reverting code changes",
                    suggestion="Understand requirements before implementing; use version control to track changes",
                )
            )

        heavily_edited = [p for p in iteration_patterns if p.edit_count >= cal.excessive_iteration_edits]
        if len(heavily_edited) >= cal.excessive_iteration_files:
            anti_patterns.append(
                AntiPattern(
                    type="excessive_iteration",
                    severity=Severity.MEDIUM,
                    count=len(heavily_edited),
                    description="Editing same files many times",
                    suggestion="Plan changes before implementing; review code before submitting",
                )
            )

        return anti_patterns

    def detect_positive_patterns(self, correlations: list[Correlation]) -> list[PositivePattern]:
        cal = self.calibration
        positive_patterns = []

        architectural = [c for c in correlations if ARCHITECTURE_PATTERN.search(c.prompt_text)]
        if len(architectural) >= cal.architectural_prompts_threshold:
            positive_patterns.append(
                PositivePattern(
                    type="architectural_thinking",
                    count=len(architectural),
                    description="Shows architectural and design thinking",
                    examples=[c.prompt_text[:EXAMPLE_LENGTH] for c in architectural[:2]],
                )
            )

        testing = [c for c in correlations if TESTING_PATTERN.search(c.prompt_text)]
        if len(testing) >= cal.testing_prompts_threshold:
            positive_patterns.append(
                PositivePattern(
                    type="testing_awareness",
                    count=len(testing),
                    description="Considers testing and code quality",
                    examples=[c.prompt_text[:EXAMPLE_LENGTH] for c in testing[:2]],
                )
            )

        technical = [c for c in correlations if is_technical_prompt(c.prompt_text)]
        if correlations and len(technical) >= len(correlations) * cal.technical_prompt_ratio:
            positive_patterns.append(
                PositivePattern(
                    type="technical_specificity",
                    count=len(technical),
                    description="Uses specific technical language and references",
                    percentage=round_score(safe_ratio(len(technical), len(correlations)) * 100),
                )
            )

        if len(correlations) >= cal.min_prompts_for_trend:
            midpoint = len(correlations) // 2
            first_avg = mean([len(c.prompt_text) for c in correlations[:midpoint]])
            second_avg = mean([len(c.prompt_text) for c in correlations[midpoint:]])

            if second_avg > first_avg * cal.improving_specificity_ratio:
                improvement = round_score(safe_ratio(second_avg - first_avg, first_avg) * 100)
                positive_patterns.append(
                    PositivePattern(
                        type="improving_specificity",
                        description="Prompt quality improving over time (more detailed)",
                        improvement=f"{improvement}%",
                    )
                )

        return positive_patterns
