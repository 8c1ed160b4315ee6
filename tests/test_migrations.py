"""Tests for database migrations."""

import sqlite3
from contextlib import closing
from pathlib import Path

from promptometry.core.migrations import MIGRATIONS, MigrationRunner


def _create_base_tables(db_path: Path) -> None:
    with closing(sqlite3.connect(db_path)) as conn, conn:
        conn.execute("""
            CREATE TABLE prompts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                prompt_text TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE edits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                file_path TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)


def _query(db_path: Path, sql: str) -> list[tuple]:
    with closing(sqlite3.connect(db_path)) as conn:
        return conn.execute(sql).fetchall()


class TestMigrations:
    """Test database migration functionality."""

    def test_run_migrations__applies_every_migration_in_order(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)

        applied = MigrationRunner(db_path).run_migrations()

        assert [entry.split(":")[0] for entry in applied] == ["001", "002", "003", "004"]
        assert "reverted_edit_id" in applied[0]
        assert [row[0] for row in _query(db_path, "SELECT version FROM schema_migrations ORDER BY version")] == [
            m.version for m in MIGRATIONS
        ]

    def test_migration_001__adds_prompt_flags_and_revert_link(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)

        MigrationRunner(db_path).run_migrations()

        prompt_columns = {row[1] for row in _query(db_path, "PRAGMA table_info(prompts)")}
        edit_columns = {row[1] for row in _query(db_path, "PRAGMA table_info(edits)")}
        indexes = {row[1] for row in _query(db_path, "PRAGMA index_list(prompts)")}
        assert {"prompt_sequence_number", "is_question", "is_debugging"} <= prompt_columns
        assert "reverted_edit_id" in edit_columns
        assert "idx_prompts_conversation_timestamp" in indexes

    def test_run_migrations__idempotent_execution(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)
        runner = MigrationRunner(db_path)

        applied_first = runner.run_migrations()
        applied_second = runner.run_migrations()

        assert len(applied_first) == len(MIGRATIONS)
        assert applied_second == []

    def test_run_migrations__only_pending_ones_run(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)
        MigrationRunner(db_path, MIGRATIONS[:2]).run_migrations()

        applied = MigrationRunner(db_path).run_migrations()

        assert [entry.split(":")[0] for entry in applied] == ["003", "004"]

    def test_migration_001__handles_existing_column_gracefully(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)
        with closing(sqlite3.connect(db_path)) as conn, conn:
            conn.execute("ALTER TABLE prompts ADD COLUMN is_question INTEGER NOT NULL DEFAULT 0")

        applied = MigrationRunner(db_path).run_migrations()

        assert len(applied) == len(MIGRATIONS)

    def test_migration_003__enforces_one_result_per_analyzer(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)
        MigrationRunner(db_path).run_migrations()

        indexes = _query(db_path, "PRAGMA index_list(analysis_results)")

        assert any(row[2] == 1 for row in indexes)

    def test_migration_004__adds_ai_response_tracking_tables(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        _create_base_tables(db_path)
        MigrationRunner(db_path).run_migrations()

        tables = {row[0] for row in _query(db_path, "SELECT name FROM sqlite_master WHERE type = 'table'")}
        modification_columns = {row[1] for row in _query(db_path, "PRAGMA table_info(code_modifications)")}

        assert {"ai_responses", "code_modifications"} <= tables
        assert {"ai_response_id", "modification_type", "lines_changed"} <= modification_columns
