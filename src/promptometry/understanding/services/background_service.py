"""Polling analyzer that scores conversations as soon as they have enough prompts."""

import logging
import signal
import threading
import time

from promptometry.core.database import EventDatabase
from promptometry.core.models import StoreError
from promptometry.core.settings import settings
from promptometry.understanding.services.understanding_service import UnderstandingService

logger = logging.getLogger(__name__)


class BackgroundAnalyzer:
    """Polls the event store and analyzes unanalyzed conversations one at a time.

    A stop request is honoured between conversations, never in the middle of one,
    so a conversation's three results are always written together.
    """

    def __init__(
        self,
        service: UnderstandingService | None = None,
        db: EventDatabase | None = None,
        poll_interval_seconds: float | None = None,
        min_prompts: int | None = None,
    ):
        self.db = db or (service.db if service else EventDatabase())
        self.service = service or UnderstandingService(self.db)
        self.poll_interval_seconds = (
            settings.poll_interval_seconds if poll_interval_seconds is None else poll_interval_seconds
        )
        self.min_prompts = settings.min_prompts_threshold if min_prompts is None else min_prompts
        self._stop_event = threading.Event()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self, *_args) -> None:
        """Request a graceful stop; usable directly as a signal handler."""
        if not self.stopping:
            logger.info("Stop requested, finishing the current conversation")
        self._stop_event.set()

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self.stop)
        signal.signal(signal.SIGTERM, self.stop)

    def run_once(self) -> list[str]:
        """Analyze every pending conversation; returns the ids that were analyzed."""
        pending = self.db.get_unanalyzed_conversations(self.min_prompts)
        if isinstance(pending, StoreError):
            return []

        if pending:
            logger.info(f"Found {len(pending)} conversation(s) to analyze")

        analyzed = []
        for conversation_id in pending:
            if self.stopping:
                break

            started = time.perf_counter()
            try:
                results = self.service.analyze_conversation(conversation_id)
            except Exception:
                logger.exception(f"Analysis of {conversation_id} failed, skipping")
                continue

            if isinstance(results, StoreError):
                logger.warning(f"Could not analyze {conversation_id}: {results.message}")
                continue

            summary = ", ".join(f"{r.analyzer_name} {r.score:.1f}/10 ({r.verdict})" for r in results)
            logger.info(f"Analyzed {conversation_id} in {time.perf_counter() - started:.1f}s: {summary}")
            analyzed.append(conversation_id)

        return analyzed

    def run(self) -> None:
        """Poll until stopped."""
        logger.info(
            f"Watching for conversations with {self.min_prompts}+ prompts every {self.poll_interval_seconds}s"
        )
        while not self.stopping:
            self.run_once()
            self._stop_event.wait(self.poll_interval_seconds)
        logger.info("Background analyzer stopped")
