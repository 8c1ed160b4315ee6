"""Narrative developer profile built from already-computed scores, flags and correlations."""

from promptometry.core.models import (
    AssessmentLevel,
    Correlation,
    DateRange,
    DeveloperProfile,
    Flag,
    PatternAnalysis,
    ProfileMetadata,
    PromptComparison,
    PromptEvolution,
    Recommendation,
    ScoreBundle,
    Severity,
    Strength,
    TechnicalProfile,
    Weakness,
    WorkStyle,
)
from promptometry.core.numeric import mean, round_score, safe_ratio
from promptometry.core.settings import Calibration, settings

STRENGTH_SCORE = 75
WEAKNESS_SCORE = 50
RECOMMENDATION_SCORE = 60
GREEN_FLAGS_FOR_PRAISE = 3
DOMAIN_KEYWORD_MATCHES = 2

TECHNOLOGIES = (
    "react",
    "node",
    "python",
    "typescript",
    "javascript",
    "css",
    "html",
    "sql",
    "mongodb",
    "express",
    "vue",
    "angular",
    "django",
    "flask",
)
CONCEPTS = (
    "api",
    "database",
    "authentication",
    "testing",
    "component",
    "function",
    "async",
    "state",
    "props",
    "hooks",
    "routing",
)
EXPERTISE_AREAS = (
    ("Testing", ("test", "spec")),
    ("API Development", ("api", "endpoint")),
    ("UI Development", ("component", "ui")),
    ("Database", ("database", "query")),
)
FRONTEND_KEYWORDS = ("component", "ui", "css", "html", "react", "vue", "angular")
BACKEND_KEYWORDS = ("api", "database", "server", "endpoint", "authentication")
TESTING_KEYWORDS = ("test", "spec", "unit", "integration")


class ProfileGenerator:
    """Pure transform; no I/O."""

    def __init__(self, calibration: Calibration | None = None):
        self.calibration = calibration or settings.calibration

    def generate_profile(
        self,
        scores: ScoreBundle,
        assessment: AssessmentLevel,
        red_flags: list[Flag],
        green_flags: list[Flag],
        correlations: list[Correlation],
        pattern_analysis: PatternAnalysis | None,
        comparisons: list[PromptComparison] | None = None,
    ) -> DeveloperProfile:
        return DeveloperProfile(
            meta=self.generate_metadata(correlations),
            scores=scores,
            assessment=assessment,
            strengths=self.identify_strengths(green_flags, scores),
            weaknesses=self.identify_weaknesses(red_flags, scores),
            work_style=self.analyze_work_style(pattern_analysis, correlations),
            prompt_evolution=self.analyze_prompt_evolution(correlations, comparisons),
            technical_profile=self.analyze_technical_profile(correlations),
            recommendations=self.generate_recommendations(red_flags, green_flags, scores),
        )

    def generate_metadata(self, correlations: list[Correlation]) -> ProfileMetadata:
        if not correlations:
            return ProfileMetadata()

        timestamps = sorted(c.prompt_timestamp for c in correlations)
        duration_minutes = round_score((timestamps[-1] - timestamps[0]).total_seconds() / 60)

        if duration_minutes < self.calibration.short_session_minutes:
            session_type = "short"
        elif duration_minutes < self.calibration.medium_session_minutes:
            session_type = "medium"
        else:
            session_type = "long"

        return ProfileMetadata(
            total_prompts=len(correlations),
            total_edits=sum(c.stats.total_edits for c in correlations),
            unique_files=len({edit.file_path for c in correlations for edit in c.related_edits}),
            date_range=DateRange(start=timestamps[0], end=timestamps[-1], duration_minutes=duration_minutes),
            sources=list(dict.fromkeys(c.source for c in correlations)),
            session_type=session_type,
        )

    def identify_strengths(self, green_flags: list[Flag], scores: ScoreBundle) -> list[Strength]:
        strengths = [
            Strength(area=flag.type, description=flag.description, evidence=flag.examples or flag.details)
            for flag in green_flags
        ]

        if scores.prompt_quality >= STRENGTH_SCORE:
            strengths.append(
                Strength(
                    area="prompt_quality",
                    description="High-quality prompts with clear intent",
                    score=scores.prompt_quality,
                )
            )
        if scores.technical_depth >= STRENGTH_SCORE:
            strengths.append(
                Strength(
                    area="technical_depth",
                    description="Strong technical knowledge and terminology",
                    score=scores.technical_depth,
                )
            )
        if scores.self_sufficiency >= STRENGTH_SCORE:
            strengths.append(
                Strength(
                    area="self_sufficiency",
                    description="Works independently with minimal guidance",
                    score=scores.self_sufficiency,
                )
            )

        return strengths

    def identify_weaknesses(self, red_flags: list[Flag], scores: ScoreBundle) -> list[Weakness]:
        weaknesses = [
            Weakness(area=flag.type, severity=flag.severity, description=flag.description, suggestion=flag.suggestion)
            for flag in red_flags
        ]

        if scores.prompt_quality < WEAKNESS_SCORE:
            weaknesses.append(
                Weakness(
                    area="prompt_quality",
                    severity=Severity.HIGH,
                    description="Prompts lack clarity and specificity",
                    score=scores.prompt_quality,
                    suggestion="Learn to write clear, specific prompts with context",
                )
            )
        if scores.understanding < WEAKNESS_SCORE:
            weaknesses.append(
                Weakness(
                    area="code_understanding",
                    severity=Severity.HIGH,
                    description="Shows limited understanding of the code",
                    score=scores.understanding,
                    suggestion="Review and understand code before making changes",
                )
            )
        if scores.code_coherence < WEAKNESS_SCORE:
            weaknesses.append(
                Weakness(
                    area="code_coherence",
                    severity=Severity.MEDIUM,
                    description="Edit patterns show confusion or trial-and-error",
                    score=scores.code_coherence,
                    suggestion="Plan changes before implementing",
                )
            )

        return weaknesses

    def calculate_prompts_per_hour(self, correlations: list[Correlation]) -> float:
        if len(correlations) < 2:
            return 0.0

        timestamps = [c.prompt_timestamp for c in correlations]
        duration_hours = (max(timestamps) - min(timestamps)).total_seconds() / 3600
        return safe_ratio(len(correlations), duration_hours)

    def analyze_work_style(
        self, pattern_analysis: PatternAnalysis | None, correlations: list[Correlation]
    ) -> WorkStyle:
        """Later signals override the style set by earlier ones; characteristics accumulate."""
        if pattern_analysis is None:
            return WorkStyle()

        cal = self.calibration
        characteristics = []
        style = "balanced"

        prompts_per_hour = self.calculate_prompts_per_hour(correlations)
        if prompts_per_hour > cal.fast_pace_prompts_per_hour:
            characteristics.append("Fast-paced, iterative approach")
            style = "rapid_iteration"
        elif prompts_per_hour < cal.slow_pace_prompts_per_hour:
            characteristics.append("Deliberate, thoughtful approach")
            style = "methodical"

        focus = pattern_analysis.file_focus.assessment
        if focus == "highly_focused":
            characteristics.append("Highly focused on specific files/features")
        elif focus == "scattered":
            characteristics.append("Jumps between multiple files/features")
            style = "exploratory"

        iteration = pattern_analysis.iteration_analysis.assessment
        if iteration == "excessive_iteration":
            characteristics.append("Frequent trial-and-error approach")
            style = "trial_and_error"
        elif iteration == "healthy_iteration":
            characteristics.append("Balanced iteration and refinement")

        productivity = pattern_analysis.productivity_metrics
        if productivity.assessment == "efficient":
            characteristics.append("Efficient workflow with minimal waste")
        elif productivity.assessment == "inefficient":
            characteristics.append("Inefficient with redundant edits")

        return WorkStyle(style=style, characteristics=characteristics, productivity=productivity)

    def analyze_prompt_evolution(
        self, correlations: list[Correlation], comparisons: list[PromptComparison] | None = None
    ) -> PromptEvolution:
        """Compare mean prompt length of the first third against the last third.

        ``comparisons`` of successive prompts add repeat and refinement counts.
        """
        cal = self.calibration
        comparisons = comparisons or []
        follow_ups = {
            "compared_pairs": len(comparisons),
            "repetitive_pairs": sum(1 for c in comparisons if c.is_repetitive),
            "refinement_pairs": sum(1 for c in comparisons if c.is_refinement),
        }
        if len(correlations) < cal.min_prompts_for_trend:
            return PromptEvolution(**follow_ups)

        third = len(correlations) // 3
        early_avg = mean([len(c.prompt_text) for c in correlations[:third]])
        late_avg = mean([len(c.prompt_text) for c in correlations[third * 2 :]])

        improving = late_avg > early_avg * (1 + cal.evolution_change_ratio)
        declining = late_avg < early_avg * (1 - cal.evolution_change_ratio)

        if improving:
            trend, details = "improving", "Prompts becoming more detailed over time"
        elif declining:
            trend, details = "declining", "Prompts becoming less detailed over time"
        else:
            trend, details = "stable", "Prompt quality remains consistent"

        return PromptEvolution(
            trend=trend,
            improvement=improving,
            early_avg_length=round_score(early_avg),
            late_avg_length=round_score(late_avg),
            change_percentage=round_score(safe_ratio(late_avg - early_avg, early_avg) * 100),
            details=details,
            **follow_ups,
        )

    def analyze_technical_profile(self, correlations: list[Correlation]) -> TechnicalProfile:
        all_text = " ".join(c.prompt_text.lower() for c in correlations)
        if not all_text:
            return TechnicalProfile()

        def matches(keywords: tuple[str, ...]) -> int:
            return sum(1 for keyword in keywords if keyword in all_text)

        domains = []
        frontend = matches(FRONTEND_KEYWORDS)
        backend = matches(BACKEND_KEYWORDS)
        if frontend >= DOMAIN_KEYWORD_MATCHES:
            domains.append("Frontend")
        if backend >= DOMAIN_KEYWORD_MATCHES:
            domains.append("Backend")
        if matches(TESTING_KEYWORDS) >= DOMAIN_KEYWORD_MATCHES:
            domains.append("Testing")
        if frontend >= DOMAIN_KEYWORD_MATCHES and backend >= DOMAIN_KEYWORD_MATCHES:
            domains.append("Full-Stack")

        return TechnicalProfile(
            domains=domains,
            technologies=[tech for tech in TECHNOLOGIES if tech in all_text],
            concepts=[concept for concept in CONCEPTS if concept in all_text],
            expertise_areas=[area for area, keywords in EXPERTISE_AREAS if matches(keywords)],
        )

    def generate_recommendations(
        self, red_flags: list[Flag], green_flags: list[Flag], scores: ScoreBundle
    ) -> list[Recommendation]:
        recommendations = [
            Recommendation(
                priority="critical" if flag.severity == Severity.HIGH else "important",
                area=flag.type,
                recommendation=flag.suggestion,
            )
            for flag in red_flags
            if flag.suggestion
        ]

        if scores.prompt_quality < RECOMMENDATION_SCORE:
            recommendations.append(
                Recommendation(
                    priority="important",
                    area="prompt_quality",
                    recommendation=(
                        "Study examples of effective prompts. "
                        "Be specific about files, functions, and desired outcomes."
                    ),
                )
            )
        if scores.understanding < RECOMMENDATION_SCORE:
            recommendations.append(
                Recommendation(
                    priority="critical",
                    area="understanding",
                    recommendation=(
                        "Take time to understand the code before making changes. "
                        "Read documentation and review similar implementations."
                    ),
                )
            )
        if scores.self_sufficiency < RECOMMENDATION_SCORE:
            recommendations.append(
                Recommendation(
                    priority="important",
                    area="self_sufficiency",
                    recommendation=(
                        "Try to solve problems independently before asking for help. "
                        "Research error messages and documentation first."
                    ),
                )
            )

        if len(green_flags) >= GREEN_FLAGS_FOR_PRAISE:
            recommendations.append(
                Recommendation(
                    priority="positive",
                    area="strengths",
                    recommendation="Continue leveraging your strengths in "
                    + " and ".join(flag.type for flag in green_flags[:2]),
                )
            )

        return recommendations
