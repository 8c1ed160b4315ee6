"""CLI commands for evaluation and understanding analysis."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from promptometry.core.database import EventDatabase
from promptometry.core.debugging_tracker import DebuggingTracker
from promptometry.core.models import StoreError
from promptometry.core.modification_tracker import ModificationTracker
from promptometry.core.settings import settings
from promptometry.display.formatters import (
    create_activity_table,
    create_analysis_results_table,
    create_conversations_table,
    display_evaluation_report,
)
from promptometry.understanding.judge import LLMJudge
from promptometry.understanding.services.background_service import BackgroundAnalyzer
from promptometry.understanding.services.evaluation_service import EvaluationService
from promptometry.understanding.services.understanding_service import UnderstandingService

console = Console()


def complete_conversation_id(ctx: click.Context, param: click.Parameter, incomplete: str) -> list[str]:
    """Complete conversation IDs from the database."""
    conversation_ids = EventDatabase().list_conversation_ids()
    if isinstance(conversation_ids, StoreError):
        return []
    return [cid for cid in conversation_ids if cid.startswith(incomplete)]


def _judge(no_llm: bool) -> LLMJudge:
    return LLMJudge(offline=True) if no_llm else LLMJudge()


def _print_activity(db: EventDatabase, conversation_id: str) -> None:
    console.print(
        create_activity_table(
            DebuggingTracker(db).get_debug_stats(conversation_id),
            ModificationTracker(db).get_modification_stats(conversation_id),
        )
    )


@click.command()
@click.argument("conversation_ids", nargs=-1, shell_complete=complete_conversation_id)
@click.option("--no-llm", is_flag=True, help="Skip LLM intent classification; rule-based metrics only")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the full report as JSON to this file",
)
def evaluate(conversation_ids: tuple[str, ...], no_llm: bool, output: Path | None) -> None:
    """Evaluate developer behavior across conversations (all stored conversations by default)."""
    service = EvaluationService(use_llm=False if no_llm else None)

    with console.status("[bold green]Evaluating...") as status:
        report = service.evaluate(
            list(conversation_ids) or None,
            on_step=lambda message: status.update(f"[bold green]{message}..."),
        )

    if report.profile.meta.total_prompts == 0:
        console.print("[yellow]No prompts found to evaluate[/yellow]")
        console.print("[dim]Install the editor hooks so prompts and edits are recorded[/dim]")
        return

    display_evaluation_report(report)

    if output:
        output.write_text(report.model_dump_json(indent=2))
        console.print(f"[green]Report written to {output}[/green]")


@click.command()
@click.argument("conversation_id", shell_complete=complete_conversation_id)
@click.option("--no-llm", is_flag=True, help="Use the rule-based fallback for every judgment")
def analyze(conversation_id: str, no_llm: bool) -> None:
    """Run the understanding analyzers on a conversation and store the results."""
    service = UnderstandingService(judge=_judge(no_llm))

    with console.status(f"[bold green]Analyzing {conversation_id}..."):
        analysis = service.analyze_conversation(conversation_id)

    if isinstance(analysis, StoreError):
        console.print(f"[red]Analysis failed: {analysis.message}[/red]")
        sys.exit(1)

    console.print(create_analysis_results_table(conversation_id, analysis))
    _print_activity(service.db, conversation_id)


@click.command()
@click.argument("conversation_id", shell_complete=complete_conversation_id)
def results(conversation_id: str) -> None:
    """Show stored understanding results for a conversation."""
    service = UnderstandingService(judge=LLMJudge(offline=True))
    stored = service.get_results(conversation_id)

    if isinstance(stored, StoreError):
        console.print(f"[red]Could not read results: {stored.message}[/red]")
        sys.exit(1)

    if not stored:
        console.print(f"[yellow]No analysis results for {conversation_id}[/yellow]")
        console.print(f"[dim]Run 'promptometry analyze {conversation_id}' first[/dim]")
        return

    console.print(create_analysis_results_table(conversation_id, stored))
    _print_activity(service.db, conversation_id)


@click.command()
@click.option("--once", is_flag=True, help="Analyze pending conversations once and exit")
@click.option("--no-llm", is_flag=True, help="Use the rule-based fallback for every judgment")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def watch(once: bool, no_llm: bool, verbose: bool) -> None:
    """Analyze new conversations in the background as they reach the prompt threshold."""
    logging.basicConfig(
        level=logging.DEBUG if verbose or settings.debug_mode else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )

    analyzer = BackgroundAnalyzer(UnderstandingService(judge=_judge(no_llm)))

    if once:
        analyzed = analyzer.run_once()
        console.print(f"[green]Analyzed {len(analyzed)} conversation(s)[/green]")
        return

    analyzer.install_signal_handlers()
    analyzer.run()


@click.command("ls")
@click.option("--limit", default=None, type=int, help="Number of recent conversations to show")
def list_conversations(limit: int | None) -> None:
    """List recorded conversations."""
    summaries = EventDatabase().get_conversation_summaries(limit or settings.recent_conversations_limit)

    if isinstance(summaries, StoreError):
        console.print(f"[red]Could not read conversations: {summaries.message}[/red]")
        sys.exit(1)

    if not summaries:
        console.print("[yellow]No conversations found[/yellow]")
        return

    console.print(create_conversations_table(summaries))
