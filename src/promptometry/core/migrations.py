"""Database migrations for promptometry."""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import closing
from datetime import datetime
from pathlib import Path


def _add_column(conn: sqlite3.Connection, table: str, column_definition: str) -> None:
    """Add a column, tolerating databases that already have it."""
    try:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column_definition}")
    except sqlite3.OperationalError as e:
        if "duplicate column name" not in str(e).lower():
            raise


class Migration(ABC):
    """A schema change applied once, inside the runner's transaction."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Version identifier for this migration."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of this migration."""

    @abstractmethod
    def up(self, conn: sqlite3.Connection) -> None:
        """Apply the migration."""


class Migration001AddPromptFlags(Migration):
    """Add sequence numbers and question/debugging flags to prompts, revert links to edits."""

    @property
    def version(self) -> str:
        return "001"

    @property
    def description(self) -> str:
        return "Add prompt sequence/question/debugging columns and edits.reverted_edit_id"

    def up(self, conn: sqlite3.Connection) -> None:
        _add_column(conn, "prompts", "prompt_sequence_number INTEGER NOT NULL DEFAULT 0")
        _add_column(conn, "prompts", "is_question INTEGER NOT NULL DEFAULT 0")
        _add_column(conn, "prompts", "is_debugging INTEGER NOT NULL DEFAULT 0")
        _add_column(conn, "edits", "reverted_edit_id INTEGER REFERENCES edits(id)")

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_prompts_conversation_timestamp
            ON prompts(conversation_id, timestamp)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_edits_conversation_timestamp
            ON edits(conversation_id, timestamp)
        """)


class Migration002AddDebuggingSessions(Migration):
    """Add resolved debugging sessions and the active session-state table."""

    @property
    def version(self) -> str:
        return "002"

    @property
    def description(self) -> str:
        return "Add debugging_sessions and active_debugging_sessions tables"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS debugging_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                error_type TEXT,
                error_message TEXT,
                stack_trace TEXT,
                resolution_prompts TEXT NOT NULL DEFAULT '[]',
                resolution_time_ms INTEGER NOT NULL DEFAULT 0,
                independent_resolution INTEGER NOT NULL DEFAULT 0,
                resolved INTEGER NOT NULL DEFAULT 1,
                timestamp TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_debugging_sessions_conversation
            ON debugging_sessions(conversation_id)
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS active_debugging_sessions (
                conversation_id TEXT PRIMARY KEY,
                start_prompt_id INTEGER,
                started_at TEXT NOT NULL,
                error_info TEXT NOT NULL DEFAULT '{}',
                resolution_prompts TEXT NOT NULL DEFAULT '[]'
            )
        """)


class Migration003AddAnalysisResults(Migration):
    """Add per-conversation, per-analyzer result snapshots."""

    @property
    def version(self) -> str:
        return "003"

    @property
    def description(self) -> str:
        return "Add analysis_results table keyed by (conversation_id, analyzer_name)"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS analysis_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                analyzer_name TEXT NOT NULL,
                score REAL NOT NULL,
                verdict TEXT,
                confidence REAL,
                analysis_data TEXT,
                analyzed_at TEXT NOT NULL,
                UNIQUE(conversation_id, analyzer_name)
            )
        """)


class Migration004AddAIResponseTracking(Migration):
    """Add captured AI responses and the edits linked to them."""

    @property
    def version(self) -> str:
        return "004"

    @property
    def description(self) -> str:
        return "Add ai_responses and code_modifications tables"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS ai_responses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                prompt_id INTEGER REFERENCES prompts(id) ON DELETE CASCADE,
                response_content TEXT NOT NULL,
                model_name TEXT,
                tokens_used INTEGER,
                response_time_ms INTEGER,
                timestamp TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_ai_responses_conversation_timestamp
            ON ai_responses(conversation_id, timestamp)
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS code_modifications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                ai_response_id INTEGER REFERENCES ai_responses(id) ON DELETE CASCADE,
                original_suggestion TEXT,
                final_code TEXT,
                modification_type TEXT,
                lines_changed INTEGER,
                timestamp TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_code_modifications_conversation
            ON code_modifications(conversation_id)
        """)


MIGRATIONS: list[Migration] = [
    Migration001AddPromptFlags(),
    Migration002AddDebuggingSessions(),
    Migration003AddAnalysisResults(),
    Migration004AddAIResponseTracking(),
]


class MigrationRunner:
    """Applies pending migrations in version order, one transaction for the whole batch."""

    def __init__(self, db_path: Path, migrations: list[Migration] | None = None):
        self.db_path = db_path
        self.migrations = MIGRATIONS if migrations is None else migrations

    def run_migrations(self) -> list[str]:
        """Apply every migration not yet recorded in ``schema_migrations``; returns what ran."""
        with closing(sqlite3.connect(self.db_path)) as conn, conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_migrations (version TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
            )
            applied = {row[0] for row in conn.execute("SELECT version FROM schema_migrations")}

            ran = []
            for migration in self.migrations:
                if migration.version in applied:
                    continue
                migration.up(conn)
                conn.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (migration.version, datetime.now().isoformat()),
                )
                ran.append(f"{migration.version}: {migration.description}")
            return ran
