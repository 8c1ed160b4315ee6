"""Tests for cli.py."""

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from click.testing import CliRunner
from conftest import seed_edit, seed_prompt

from promptometry.cli import cli
from promptometry.core.database import EventDatabase
from promptometry.core.settings import settings


@pytest.fixture
def cli_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> EventDatabase:
    db_path = tmp_path / "cli.db"
    monkeypatch.setattr(settings, "database_path", db_path)
    return EventDatabase(db_path)


def _seed(db: EventDatabase) -> None:
    seed_prompt(db, "conv-1", "Refactor the parser function in parser.py", 0)
    seed_edit(db, "conv-1", "parser.py", 5, old="a", new="b")
    seed_prompt(db, "conv-1", "Why use regex instead of a tokenizer here?", 60)
    seed_prompt(db, "conv-1", "What if the input is empty?", 120)


def test_ls__no_conversations(cli_db: EventDatabase) -> None:
    result = CliRunner().invoke(cli, ["ls"])

    assert result.exit_code == 0
    assert "No conversations found" in result.output


def test_ls__lists_conversations(cli_db: EventDatabase) -> None:
    _seed(cli_db)

    result = CliRunner().invoke(cli, ["ls"])

    assert result.exit_code == 0
    assert "conv-1" in result.output


def test_evaluate__nothing_recorded(cli_db: EventDatabase) -> None:
    result = CliRunner().invoke(cli, ["evaluate", "--no-llm"])

    assert result.exit_code == 0
    assert "No prompts found to evaluate" in result.output


def test_evaluate__prints_report_and_writes_json(cli_db: EventDatabase, tmp_path: Path) -> None:
    _seed(cli_db)
    output = tmp_path / "report.json"

    result = CliRunner().invoke(cli, ["evaluate", "conv-1", "--no-llm", "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert "Developer Evaluation" in result.output
    report = json.loads(output.read_text())
    assert report["conversation_ids"] == ["conv-1"]
    assert "Debugging and AI Code Usage" in result.output
    assert report["profile"]["meta"]["total_prompts"] == 3
    assert report["modification_stats"]["total_modifications"] == 0
    assert report["profile"]["prompt_evolution"]["compared_pairs"] == 2


def test_analyze__stores_results(cli_db: EventDatabase) -> None:
    _seed(cli_db)

    result = CliRunner().invoke(cli, ["analyze", "conv-1", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert "Understanding Analysis" in result.output
    assert len(cli_db.get_analysis_results("conv-1")) == 3


def test_results__before_and_after_analysis(cli_db: EventDatabase) -> None:
    _seed(cli_db)
    runner = CliRunner()

    before = runner.invoke(cli, ["results", "conv-1"])
    runner.invoke(cli, ["analyze", "conv-1", "--no-llm"])
    after = runner.invoke(cli, ["results", "conv-1"])

    assert "No analysis results for conv-1" in before.output
    assert "Understanding Analysis" in after.output


def test_watch__once_analyzes_pending(cli_db: EventDatabase) -> None:
    _seed(cli_db)

    result = CliRunner().invoke(cli, ["watch", "--once", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert "Analyzed 1 conversation(s)" in result.output


def test_hook_prompt__records_from_stdin(cli_db: EventDatabase) -> None:
    payload = json.dumps({"conversation_id": "conv-9", "prompt": "Add a cache to the loader"})

    result = CliRunner().invoke(cli, ["hook-prompt"], input=payload)

    assert result.exit_code == 0
    assert [p.prompt_text for p in cli_db.get_prompts("conv-9")] == ["Add a cache to the loader"]


def test_hook_edit__bad_input_still_exits_zero(cli_db: EventDatabase) -> None:
    result = CliRunner().invoke(cli, ["hook-edit"], input="{broken")

    assert result.exit_code == 0


def test_hook_response__records_from_stdin(cli_db: EventDatabase) -> None:
    payload = json.dumps({"conversation_id": "conv-9", "response": "def load(): pass"})

    result = CliRunner().invoke(cli, ["hook-response"], input=payload)

    assert result.exit_code == 0
    assert len(cli_db.get_recent_ai_responses("conv-9", datetime.now() - timedelta(minutes=1), 5)) == 1


def test_analyze__shows_debugging_and_ai_usage(cli_db: EventDatabase) -> None:
    _seed(cli_db)
    runner = CliRunner()
    runner.invoke(cli, ["hook-response"], input=json.dumps({"conversation_id": "conv-1", "response": "x = 1"}))
    edit = {"conversation_id": "conv-1", "file_path": "a.py", "new_string": "x = 1"}
    runner.invoke(cli, ["hook-edit"], input=json.dumps(edit))

    result = runner.invoke(cli, ["analyze", "conv-1", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert "Debugging and AI Code Usage" in result.output
    assert "1 / 0 / 0" in result.output
