"""Runs the understanding analyzers over one conversation and stores their results."""

import logging

from promptometry.core.database import EventDatabase
from promptometry.core.debugging_tracker import summarize_debugging_sessions
from promptometry.core.models import AnalyzerResult, StoreError
from promptometry.core.settings import Calibration
from promptometry.understanding.analyzers import DEBUGGING_REASONING, UnderstandingAnalyzer, build_analyzers
from promptometry.understanding.judge import TextJudge

logger = logging.getLogger(__name__)


class UnderstandingService:
    """Handles analysis and retrieval of per-conversation understanding results."""

    def __init__(
        self,
        db: EventDatabase | None = None,
        judge: TextJudge | None = None,
        calibration: Calibration | None = None,
    ):
        self.db = db or EventDatabase()
        self.analyzers: list[UnderstandingAnalyzer] = build_analyzers(judge, calibration)

    def analyze_conversation(self, conversation_id: str) -> list[AnalyzerResult] | StoreError:
        """Run every analyzer and upsert all results in one transaction."""
        prompts = self.db.get_prompts(conversation_id)
        if isinstance(prompts, StoreError):
            return prompts

        sessions = self.db.get_debugging_sessions(conversation_id)
        if isinstance(sessions, StoreError):
            return sessions
        debug_stats = summarize_debugging_sessions(sessions)

        results = []
        for analyzer in self.analyzers:
            extra_details = None
            if analyzer.variant.name == DEBUGGING_REASONING.name:
                extra_details = {"debugging_session_count": debug_stats.resolved_sessions}
            result = analyzer.analyze(conversation_id, prompts, extra_details)
            logger.debug(f"{analyzer.variant.name} for {conversation_id}: {result.score}/10 ({result.verdict})")
            results.append(result)

        saved = self.db.save_analysis_results(results)
        if isinstance(saved, StoreError):
            return saved
        return results

    def get_results(self, conversation_id: str) -> list[AnalyzerResult] | StoreError:
        return self.db.get_analysis_results(conversation_id)
