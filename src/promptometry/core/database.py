"""Database operations for storing prompts, edits and analysis results."""

import json
import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from promptometry.core.migrations import MigrationRunner
from promptometry.core.models import (
    ActiveDebuggingSession,
    AIResponse,
    AnalyzerResult,
    CodeModification,
    ConversationSummary,
    DebuggingSession,
    Edit,
    ErrorInfo,
    ModificationType,
    Prompt,
    StoreError,
)
from promptometry.core.settings import settings

logger = logging.getLogger(__name__)


def _store_error(operation: str, error: Exception) -> StoreError:
    logger.warning(f"Event store operation '{operation}' failed: {error}")
    return StoreError(operation=operation, message=str(error))


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class EventDatabase:
    """Manages the SQLite event store.

    Every operation returns its value or a ``StoreError``; nothing raises past
    this class so that one unreadable conversation cannot abort a batch run.
    """

    def __init__(self, db_path: Path | None = None):
        if db_path is None:
            db_path = settings.resolved_database_path
        else:
            db_path = Path(db_path)

        self.db_path = db_path.resolve()
        self.setup_error: StoreError | None = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._create_tables()
            self._run_migrations()
        except (sqlite3.Error, OSError) as e:
            # Later operations fail on their own and return StoreError.
            self.setup_error = _store_error("initialize", e)

    @contextmanager
    def _get_db_connection(self) -> Generator[sqlite3.Connection]:
        """Context manager that ensures database connections are properly closed."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode=WAL")
            conn.row_factory = sqlite3.Row
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _run_migrations(self) -> None:
        """Run any pending database migrations."""
        migration_runner = MigrationRunner(self.db_path)
        applied_migrations = migration_runner.run_migrations()

        if applied_migrations:
            logger.debug(f"Promptometry applied migrations: {applied_migrations}")

    def _create_tables(self) -> None:
        """Create the base event tables; later columns and tables come from migrations."""
        with self._get_db_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS prompts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    conversation_id TEXT NOT NULL,
                    prompt_text TEXT NOT NULL,
                    source TEXT NOT NULL DEFAULT 'unknown',
                    timestamp TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_prompts_conversation_id
                ON prompts(conversation_id)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS edits (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    conversation_id TEXT NOT NULL,
                    file_path TEXT NOT NULL,
                    old_string TEXT NOT NULL DEFAULT '',
                    new_string TEXT NOT NULL DEFAULT '',
                    source TEXT NOT NULL DEFAULT 'unknown',
                    timestamp TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_edits_conversation_id
                ON edits(conversation_id)
            """)

    # Prompts and edits

    def save_prompt(self, prompt: Prompt) -> int | StoreError:
        """Append a prompt and return its row id."""
        try:
            with self._get_db_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO prompts (
                        conversation_id, prompt_text, source, prompt_sequence_number,
                        is_question, is_debugging, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        prompt.conversation_id,
                        prompt.prompt_text,
                        prompt.source,
                        prompt.sequence_number,
                        int(prompt.is_question),
                        int(prompt.is_debugging),
                        prompt.timestamp.isoformat(),
                    ),
                )
                return cursor.lastrowid or 0
        except sqlite3.Error as e:
            return _store_error("save_prompt", e)

    def save_edit(self, edit: Edit) -> int | StoreError:
        """Append an edit and return its row id."""
        try:
            with self._get_db_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO edits (
                        conversation_id, file_path, old_string, new_string,
                        source, reverted_edit_id, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        edit.conversation_id,
                        edit.file_path,
                        edit.old_string,
                        edit.new_string,
                        edit.source,
                        edit.reverted_edit_id,
                        edit.timestamp.isoformat(),
                    ),
                )
                return cursor.lastrowid or 0
        except sqlite3.Error as e:
            return _store_error("save_edit", e)

    def mark_prompt_debugging(self, prompt_id: int) -> None | StoreError:
        try:
            with self._get_db_connection() as conn:
                conn.execute("UPDATE prompts SET is_debugging = 1 WHERE id = ?", (prompt_id,))
            return None
        except sqlite3.Error as e:
            return _store_error("mark_prompt_debugging", e)

    def get_next_prompt_sequence_number(self, conversation_id: str) -> int | StoreError:
        """Max sequence number in the conversation plus one, starting at 1."""
        try:
            with self._get_db_connection() as conn:
                row = conn.execute(
                    "SELECT MAX(prompt_sequence_number) FROM prompts WHERE conversation_id = ?",
                    (conversation_id,),
                ).fetchone()
                return (row[0] or 0) + 1
        except sqlite3.Error as e:
            return _store_error("get_next_prompt_sequence_number", e)

    def list_conversation_ids(self) -> list[str] | StoreError:
        """Conversation ids that have at least one prompt, most recent first."""
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT conversation_id, MIN(timestamp) AS first_prompt
                    FROM prompts
                    GROUP BY conversation_id
                    ORDER BY first_prompt DESC
                    """
                ).fetchall()
                return [row["conversation_id"] for row in rows]
        except sqlite3.Error as e:
            return _store_error("list_conversation_ids", e)

    def get_prompts(self, conversation_id: str) -> list[Prompt] | StoreError:
        """Prompts of a conversation in timestamp order; empty for unknown ids."""
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM prompts WHERE conversation_id = ? ORDER BY timestamp, id",
                    (conversation_id,),
                ).fetchall()
                return [
                    Prompt(
                        id=row["id"],
                        conversation_id=row["conversation_id"],
                        prompt_text=row["prompt_text"] or "",
                        source=row["source"] or "unknown",
                        sequence_number=row["prompt_sequence_number"] or 0,
                        is_question=bool(row["is_question"]),
                        is_debugging=bool(row["is_debugging"]),
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_prompts", e)

    def get_edits(self, conversation_id: str) -> list[Edit] | StoreError:
        """Edits of a conversation in timestamp order; empty for unknown ids."""
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM edits WHERE conversation_id = ? ORDER BY timestamp, id",
                    (conversation_id,),
                ).fetchall()
                return [
                    Edit(
                        id=row["id"],
                        conversation_id=row["conversation_id"],
                        file_path=row["file_path"],
                        old_string=row["old_string"] or "",
                        new_string=row["new_string"] or "",
                        source=row["source"] or "unknown",
                        reverted_edit_id=row["reverted_edit_id"],
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_edits", e)

    def get_conversation_summaries(self, limit: int | None = None) -> list[ConversationSummary] | StoreError:
        """Lightweight per-conversation summaries for list display."""
        query = """
            SELECT
                p.conversation_id AS conversation_id,
                COUNT(*) AS prompt_count,
                MIN(p.timestamp) AS started_at,
                MAX(p.timestamp) AS last_prompt,
                (SELECT COUNT(*) FROM edits e WHERE e.conversation_id = p.conversation_id) AS edit_count,
                (SELECT MAX(e.timestamp) FROM edits e WHERE e.conversation_id = p.conversation_id) AS last_edit,
                EXISTS (
                    SELECT 1 FROM analysis_results r WHERE r.conversation_id = p.conversation_id
                ) AS analyzed
            FROM prompts p
            GROUP BY p.conversation_id
            ORDER BY started_at DESC
        """
        params: list = []
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(query, params).fetchall()
                summaries = []
                for row in rows:
                    last_activity = max(filter(None, [row["last_prompt"], row["last_edit"]]), default=None)
                    summaries.append(
                        ConversationSummary(
                            conversation_id=row["conversation_id"],
                            prompt_count=row["prompt_count"],
                            edit_count=row["edit_count"],
                            started_at=_parse_timestamp(row["started_at"]),
                            last_activity=_parse_timestamp(last_activity),
                            analyzed=bool(row["analyzed"]),
                        )
                    )
                return summaries
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_conversation_summaries", e)

    def get_unanalyzed_conversations(self, min_prompts: int) -> list[str] | StoreError:
        """Conversations with at least ``min_prompts`` prompts and no stored analysis results."""
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT p.conversation_id, MIN(p.timestamp) AS first_prompt
                    FROM prompts p
                    LEFT JOIN analysis_results r ON r.conversation_id = p.conversation_id
                    WHERE r.id IS NULL
                    GROUP BY p.conversation_id
                    HAVING COUNT(p.id) >= ?
                    ORDER BY first_prompt
                    """,
                    (min_prompts,),
                ).fetchall()
                return [row["conversation_id"] for row in rows]
        except sqlite3.Error as e:
            return _store_error("get_unanalyzed_conversations", e)

    # Analysis results

    def save_analysis_results(self, results: list[AnalyzerResult]) -> None | StoreError:
        """Upsert analyzer results keyed by (conversation_id, analyzer_name) in one transaction."""
        try:
            with self._get_db_connection() as conn:
                for result in results:
                    conn.execute(
                        """
                        INSERT INTO analysis_results (
                            conversation_id, analyzer_name, score, verdict,
                            confidence, analysis_data, analyzed_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(conversation_id, analyzer_name) DO UPDATE SET
                            score = excluded.score,
                            verdict = excluded.verdict,
                            confidence = excluded.confidence,
                            analysis_data = excluded.analysis_data,
                            analyzed_at = excluded.analyzed_at
                        """,
                        (
                            result.conversation_id,
                            result.analyzer_name,
                            result.score,
                            result.verdict,
                            result.confidence,
                            json.dumps(result.details, default=str),
                            result.analyzed_at.isoformat(),
                        ),
                    )
            return None
        except sqlite3.Error as e:
            return _store_error("save_analysis_results", e)

    def get_analysis_results(self, conversation_id: str) -> list[AnalyzerResult] | StoreError:
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM analysis_results WHERE conversation_id = ? ORDER BY analyzer_name",
                    (conversation_id,),
                ).fetchall()
                return [
                    AnalyzerResult(
                        conversation_id=row["conversation_id"],
                        analyzer_name=row["analyzer_name"],
                        score=row["score"],
                        verdict=row["verdict"] or "",
                        confidence=row["confidence"] or 0.0,
                        details=json.loads(row["analysis_data"]) if row["analysis_data"] else {},
                        analyzed_at=datetime.fromisoformat(row["analyzed_at"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_analysis_results", e)

    # Debugging sessions

    def get_active_debugging_session(self, conversation_id: str) -> ActiveDebuggingSession | None | StoreError:
        try:
            with self._get_db_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM active_debugging_sessions WHERE conversation_id = ?",
                    (conversation_id,),
                ).fetchone()
                if row is None:
                    return None
                return ActiveDebuggingSession(
                    conversation_id=row["conversation_id"],
                    start_prompt_id=row["start_prompt_id"],
                    started_at=datetime.fromisoformat(row["started_at"]),
                    error_info=ErrorInfo.model_validate_json(row["error_info"]),
                    resolution_prompts=json.loads(row["resolution_prompts"]),
                )
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_active_debugging_session", e)

    def save_active_debugging_session(self, session: ActiveDebuggingSession) -> None | StoreError:
        """Insert or replace the open debugging session of a conversation."""
        try:
            with self._get_db_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO active_debugging_sessions (
                        conversation_id, start_prompt_id, started_at, error_info, resolution_prompts
                    ) VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(conversation_id) DO UPDATE SET
                        start_prompt_id = excluded.start_prompt_id,
                        started_at = excluded.started_at,
                        error_info = excluded.error_info,
                        resolution_prompts = excluded.resolution_prompts
                    """,
                    (
                        session.conversation_id,
                        session.start_prompt_id,
                        session.started_at.isoformat(),
                        session.error_info.model_dump_json(),
                        json.dumps(session.resolution_prompts),
                    ),
                )
            return None
        except sqlite3.Error as e:
            return _store_error("save_active_debugging_session", e)

    def delete_active_debugging_session(self, conversation_id: str) -> None | StoreError:
        try:
            with self._get_db_connection() as conn:
                conn.execute("DELETE FROM active_debugging_sessions WHERE conversation_id = ?", (conversation_id,))
            return None
        except sqlite3.Error as e:
            return _store_error("delete_active_debugging_session", e)

    def close_debugging_session(
        self, session: DebuggingSession, conversation_id: str
    ) -> int | StoreError:
        """Record a finished session and clear the conversation's active one in a single transaction."""
        try:
            with self._get_db_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO debugging_sessions (
                        conversation_id, error_type, error_message, stack_trace,
                        resolution_prompts, resolution_time_ms, independent_resolution,
                        resolved, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        session.conversation_id,
                        session.error_type,
                        session.error_message,
                        session.stack_trace,
                        json.dumps(session.resolution_prompts),
                        session.resolution_time_ms,
                        int(session.independent_resolution),
                        int(session.resolved),
                        session.timestamp.isoformat(),
                    ),
                )
                conn.execute("DELETE FROM active_debugging_sessions WHERE conversation_id = ?", (conversation_id,))
                return cursor.lastrowid or 0
        except sqlite3.Error as e:
            return _store_error("close_debugging_session", e)

    def get_debugging_sessions(self, conversation_id: str) -> list[DebuggingSession] | StoreError:
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM debugging_sessions WHERE conversation_id = ? ORDER BY timestamp, id",
                    (conversation_id,),
                ).fetchall()
                return [
                    DebuggingSession(
                        id=row["id"],
                        conversation_id=row["conversation_id"],
                        error_type=row["error_type"] or "unknown",
                        error_message=row["error_message"] or "",
                        stack_trace=row["stack_trace"],
                        resolution_prompts=json.loads(row["resolution_prompts"] or "[]"),
                        resolution_time_ms=row["resolution_time_ms"] or 0,
                        independent_resolution=bool(row["independent_resolution"]),
                        resolved=bool(row["resolved"]),
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_debugging_sessions", e)

    # AI responses and code modifications

    def get_latest_prompt_id(self, conversation_id: str) -> int | None | StoreError:
        try:
            with self._get_db_connection() as conn:
                row = conn.execute(
                    "SELECT id FROM prompts WHERE conversation_id = ? ORDER BY timestamp DESC, id DESC LIMIT 1",
                    (conversation_id,),
                ).fetchone()
                return row["id"] if row else None
        except sqlite3.Error as e:
            return _store_error("get_latest_prompt_id", e)

    def save_ai_response(self, response: AIResponse) -> int | StoreError:
        try:
            with self._get_db_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO ai_responses (
                        conversation_id, prompt_id, response_content, model_name,
                        tokens_used, response_time_ms, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        response.conversation_id,
                        response.prompt_id,
                        response.content,
                        response.model_name,
                        response.tokens_used,
                        response.response_time_ms,
                        response.timestamp.isoformat(),
                    ),
                )
                return cursor.lastrowid or 0
        except sqlite3.Error as e:
            return _store_error("save_ai_response", e)

    def get_recent_ai_responses(
        self, conversation_id: str, since: datetime, limit: int
    ) -> list[AIResponse] | StoreError:
        """Responses at or after ``since``, newest first."""
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM ai_responses
                    WHERE conversation_id = ? AND timestamp >= ?
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                    """,
                    (conversation_id, since.isoformat(), limit),
                ).fetchall()
                return [
                    AIResponse(
                        id=row["id"],
                        conversation_id=row["conversation_id"],
                        prompt_id=row["prompt_id"],
                        content=row["response_content"],
                        model_name=row["model_name"] or "unknown",
                        tokens_used=row["tokens_used"],
                        response_time_ms=row["response_time_ms"],
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_recent_ai_responses", e)

    def save_code_modification(self, modification: CodeModification) -> int | StoreError:
        try:
            with self._get_db_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO code_modifications (
                        conversation_id, ai_response_id, original_suggestion, final_code,
                        modification_type, lines_changed, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        modification.conversation_id,
                        modification.ai_response_id,
                        modification.original_suggestion,
                        modification.final_code,
                        modification.modification_type.value,
                        modification.lines_changed,
                        modification.timestamp.isoformat(),
                    ),
                )
                return cursor.lastrowid or 0
        except sqlite3.Error as e:
            return _store_error("save_code_modification", e)

    def get_code_modifications(self, conversation_id: str) -> list[CodeModification] | StoreError:
        try:
            with self._get_db_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM code_modifications WHERE conversation_id = ? ORDER BY timestamp, id",
                    (conversation_id,),
                ).fetchall()
                return [
                    CodeModification(
                        id=row["id"],
                        conversation_id=row["conversation_id"],
                        ai_response_id=row["ai_response_id"],
                        original_suggestion=row["original_suggestion"] or "",
                        final_code=row["final_code"] or "",
                        modification_type=ModificationType(row["modification_type"]),
                        lines_changed=row["lines_changed"] or 0,
                        timestamp=datetime.fromisoformat(row["timestamp"]),
                    )
                    for row in rows
                ]
        except (sqlite3.Error, ValueError) as e:
            return _store_error("get_code_modifications", e)
