"""Full evaluation pipeline: correlations through the developer profile."""

import logging
import time
from collections.abc import Callable

from promptometry.core.correlation_engine import CorrelationEngine
from promptometry.core.database import EventDatabase
from promptometry.core.debugging_tracker import summarize_debugging_sessions
from promptometry.core.models import (
    Correlation,
    DebugStats,
    EvaluationReport,
    ModificationStats,
    PromptComparison,
    StoreError,
)
from promptometry.core.modification_tracker import summarize_modifications
from promptometry.core.pattern_analyzer import CodePatternAnalyzer
from promptometry.core.profile_generator import ProfileGenerator
from promptometry.core.scoring_engine import ScoringEngine
from promptometry.core.semantic_analyzer import SemanticAnalyzer
from promptometry.core.settings import Calibration, settings
from promptometry.understanding.judge import LLMJudge, TextJudge

logger = logging.getLogger(__name__)


class EvaluationService:
    """Runs every stage of the evaluation in order and returns one report.

    Each stage is a pure function of the previous stages' outputs; only the
    correlation and activity steps read the event store and only the semantic
    step may call the judge.
    """

    def __init__(
        self,
        db: EventDatabase | None = None,
        judge: TextJudge | None = None,
        calibration: Calibration | None = None,
        use_llm: bool | None = None,
    ):
        self.calibration = calibration or settings.calibration
        self.correlation_engine = CorrelationEngine(db, self.calibration)
        self.db = self.correlation_engine.db

        if use_llm is None:
            use_llm = settings.semantic_analysis_enabled and settings.llm_available
        semantic_judge = (judge or LLMJudge()) if use_llm else None
        self.semantic_analyzer = SemanticAnalyzer(semantic_judge)

        self.pattern_analyzer = CodePatternAnalyzer(self.calibration)
        self.scoring_engine = ScoringEngine(self.calibration)
        self.profile_generator = ProfileGenerator(self.calibration)

    def evaluate(
        self,
        conversation_ids: list[str] | None = None,
        on_step: Callable[[str], None] | None = None,
    ) -> EvaluationReport:
        """Evaluate the given conversations, or every stored conversation."""
        started = time.perf_counter()

        def step(message: str) -> None:
            logger.debug(message)
            if on_step is not None:
                on_step(message)

        if conversation_ids is None:
            conversation_ids = self.correlation_engine.list_conversation_ids()

        step("Correlating prompts to edits")
        correlations = self.correlation_engine.correlate_prompts_to_edits(conversation_ids)
        effectiveness = self.correlation_engine.analyze_effectiveness(correlations)

        step(f"Analyzing prompt quality for {len(correlations)} prompts")
        semantic_analyses = [
            self.semantic_analyzer.analyze_prompt(c.prompt_text, c.prompt_id) for c in correlations
        ]
        comparisons = self.compare_successive_prompts(correlations)

        step("Detecting iteration and reversal patterns")
        iteration_patterns = self.correlation_engine.detect_iteration_patterns(correlations)
        pattern_analysis = self.pattern_analyzer.analyze_patterns(correlations, iteration_patterns)
        anti_patterns = self.pattern_analyzer.detect_anti_patterns(correlations, iteration_patterns)
        positive_patterns = self.pattern_analyzer.detect_positive_patterns(correlations)

        step("Calculating developer scores")
        scores = self.scoring_engine.calculate_developer_score(
            semantic_analyses, correlations, pattern_analysis, anti_patterns, positive_patterns
        )
        red_flags = self.scoring_engine.generate_red_flags(anti_patterns, pattern_analysis, semantic_analyses)
        green_flags = self.scoring_engine.generate_green_flags(positive_patterns, pattern_analysis, semantic_analyses)
        assessment = self.scoring_engine.get_assessment_level(scores.overall)

        step("Generating developer profile")
        profile = self.profile_generator.generate_profile(
            scores, assessment, red_flags, green_flags, correlations, pattern_analysis, comparisons
        )

        step("Summarizing debugging sessions and AI code usage")
        debug_stats, modification_stats = self.summarize_activity(conversation_ids)

        return EvaluationReport(
            conversation_ids=conversation_ids,
            semantic_llm_used=self.semantic_analyzer.llm_enabled,
            scores=scores,
            assessment=assessment,
            profile=profile,
            red_flags=red_flags,
            green_flags=green_flags,
            effectiveness=effectiveness,
            pattern_analysis=pattern_analysis,
            anti_patterns=anti_patterns,
            positive_patterns=positive_patterns,
            iteration_patterns=iteration_patterns,
            correlations=correlations,
            semantic_analyses=semantic_analyses,
            debug_stats=debug_stats,
            modification_stats=modification_stats,
            analysis_duration_seconds=round(time.perf_counter() - started, 2),
        )

    def compare_successive_prompts(self, correlations: list[Correlation]) -> list[PromptComparison]:
        """Compare each prompt with the one before it in the same conversation."""
        return [
            self.semantic_analyzer.compare_prompts(previous.prompt_text, current.prompt_text)
            for previous, current in zip(correlations, correlations[1:])
            if previous.conversation_id == current.conversation_id
        ]

    def summarize_activity(self, conversation_ids: list[str]) -> tuple[DebugStats, ModificationStats]:
        """Debugging sessions and AI code usage pooled across the conversations."""
        sessions = []
        modifications = []
        for conversation_id in conversation_ids:
            conversation_sessions = self.db.get_debugging_sessions(conversation_id)
            if not isinstance(conversation_sessions, StoreError):
                sessions.extend(conversation_sessions)
            conversation_modifications = self.db.get_code_modifications(conversation_id)
            if not isinstance(conversation_modifications, StoreError):
                modifications.extend(conversation_modifications)
        return summarize_debugging_sessions(sessions), summarize_modifications(modifications)
