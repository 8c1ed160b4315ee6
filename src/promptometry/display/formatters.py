"""Rich formatting utilities for displaying promptometry data."""

from rich.console import Console
from rich.table import Table

from promptometry.core.models import (
    AnalyzerResult,
    ConversationSummary,
    DebugStats,
    EvaluationReport,
    Flag,
    ModificationStats,
    ScoreBundle,
    Severity,
)

console = Console()

SCORE_LABELS = {
    "prompt_quality": "Prompt Quality",
    "self_sufficiency": "Self-Sufficiency",
    "technical_depth": "Technical Depth",
    "code_coherence": "Code Coherence",
    "understanding": "Understanding",
}
SEVERITY_STYLES = {Severity.HIGH: "red", Severity.MEDIUM: "yellow", Severity.LOW: "dim"}


def _score_style(score: float, good: float = 70, fair: float = 50) -> str:
    if score >= good:
        return "green"
    if score >= fair:
        return "yellow"
    return "red"


def display_evaluation_report(report: EvaluationReport) -> None:
    """Display the evaluation summary with Rich formatting."""
    meta = report.profile.meta
    console.print("\n[bold]Developer Evaluation[/bold]")

    if meta.date_range:
        console.print(
            f"Period: {meta.date_range.start.strftime('%Y-%m-%d %H:%M')} to "
            f"{meta.date_range.end.strftime('%Y-%m-%d %H:%M')} "
            f"({meta.date_range.duration_minutes} min, {meta.session_type} session)"
        )
    console.print(
        f"Prompts: {meta.total_prompts}  Edits: {meta.total_edits}  Files: {meta.unique_files}"
        + (f"  Sources: {', '.join(meta.sources)}" if meta.sources else "")
    )
    if not report.semantic_llm_used:
        console.print("[dim]Semantic analysis used rule-based metrics only[/dim]")

    console.print(create_scores_table(report.scores))

    assessment = report.assessment
    console.print(f"\n[bold]Assessment:[/bold] {assessment.level} {assessment.star_display}")
    console.print(f"{assessment.description}")
    console.print(f"[cyan]{assessment.recommendation}[/cyan]")

    effectiveness = report.effectiveness
    console.print(
        f"\nEffectiveness: {effectiveness.effectiveness_score}% of prompts led to edits "
        f"({effectiveness.prompts_with_edits}/{effectiveness.total_prompts})"
    )

    if report.red_flags:
        console.print(create_flags_table(report.red_flags, "Red Flags"))
    if report.green_flags:
        console.print(create_flags_table(report.green_flags, "Green Flags"))

    work_style = report.profile.work_style
    console.print(f"\n[bold]Work style:[/bold] {work_style.style}")
    for characteristic in work_style.characteristics:
        console.print(f"  - {characteristic}")

    evolution = report.profile.prompt_evolution
    console.print(f"[bold]Prompt evolution:[/bold] {evolution.details}")
    if evolution.compared_pairs:
        console.print(
            f"Follow-up prompts: {evolution.refinement_pairs} refinements, "
            f"{evolution.repetitive_pairs} repeats of {evolution.compared_pairs} compared"
        )

    console.print(create_activity_table(report.debug_stats, report.modification_stats))

    technical = report.profile.technical_profile
    if technical.domains or technical.technologies:
        console.print(
            f"[bold]Technical profile:[/bold] {', '.join(technical.domains) or 'N/A'}"
            f" ({', '.join(technical.technologies) or 'no specific technologies'})"
        )

    if report.profile.recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for rec in report.profile.recommendations:
            style = {"critical": "red", "important": "yellow", "positive": "green"}.get(rec.priority, "white")
            console.print(f"  [{style}]{rec.priority}[/{style}] {rec.area}: {rec.recommendation}")

    console.print(f"\n[dim]Analysis completed in {report.analysis_duration_seconds:.2f}s[/dim]")


def create_scores_table(scores: ScoreBundle) -> Table:
    table = Table(title="Scores")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")

    for field, label in SCORE_LABELS.items():
        value = getattr(scores, field)
        style = _score_style(value)
        table.add_row(label, f"[{style}]{value}/100[/{style}]")

    overall_style = _score_style(scores.overall)
    table.add_row("[bold]Overall[/bold]", f"[bold {overall_style}]{scores.overall}/100[/bold {overall_style}]")
    return table


def create_flags_table(flags: list[Flag], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Type", style="cyan")
    table.add_column("Severity")
    table.add_column("Description")
    table.add_column("Suggestion", style="dim")

    for flag in flags:
        severity = ""
        if flag.severity:
            style = SEVERITY_STYLES[flag.severity]
            severity = f"[{style}]{flag.severity.value}[/{style}]"
        table.add_row(flag.type, severity, flag.description, flag.suggestion or "")

    return table


def create_conversations_table(summaries: list[ConversationSummary]) -> Table:
    """Create a Rich table for displaying the conversation list."""
    table = Table(title="Recent Conversations")
    table.add_column("Conversation ID", style="cyan")
    table.add_column("Start Time", style="green")
    table.add_column("Prompts", justify="right")
    table.add_column("Edits", justify="right")
    table.add_column("Analyzed", justify="center")

    for summary in summaries:
        table.add_row(
            summary.conversation_id,
            summary.started_at.strftime("%Y-%m-%d %H:%M:%S") if summary.started_at else "N/A",
            str(summary.prompt_count),
            str(summary.edit_count),
            "[green]yes[/green]" if summary.analyzed else "[dim]no[/dim]",
        )

    return table


def create_analysis_results_table(conversation_id: str, results: list[AnalyzerResult]) -> Table:
    table = Table(title=f"Understanding Analysis: {conversation_id}")
    table.add_column("Analyzer", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Verdict")
    table.add_column("Confidence", justify="right")
    table.add_column("Method", style="dim")

    for result in results:
        style = _score_style(result.score, good=7, fair=4)
        table.add_row(
            result.analyzer_name,
            f"[{style}]{result.score:.1f}/10[/{style}]",
            result.verdict,
            f"{result.confidence:.0%}",
            result.analysis_method,
        )

    return table


def create_activity_table(debug_stats: DebugStats, modification_stats: ModificationStats) -> Table:
    """Debugging sessions and how AI suggestions were used."""
    table = Table(title="Debugging and AI Code Usage")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Debugging sessions", str(debug_stats.total_sessions))
    if debug_stats.total_sessions:
        table.add_row("  Resolved / abandoned", f"{debug_stats.resolved_sessions} / {debug_stats.abandoned_sessions}")
        table.add_row("  Independent resolutions", f"{debug_stats.independence_rate:.0%}")
        table.add_row("  Mean time to fix", f"{debug_stats.avg_resolution_time_ms / 1000:.1f}s")

    table.add_row("Edits linked to AI responses", str(modification_stats.total_modifications))
    if modification_stats.total_modifications:
        table.add_row(
            "  Accepted / modified / rejected",
            f"{modification_stats.accepted} / {modification_stats.modified} / {modification_stats.rejected}",
        )
        table.add_row("  Mean lines changed", f"{modification_stats.avg_lines_changed:.1f}")
        style = _score_style(modification_stats.quality_score, good=7, fair=4)
        table.add_row("  Modification quality", f"[{style}]{modification_stats.quality_score:.1f}/10[/{style}]")

    return table
