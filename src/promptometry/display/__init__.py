"""Display and formatting utilities for promptometry."""

from promptometry.display.formatters import (
    create_activity_table,
    create_analysis_results_table,
    create_conversations_table,
    create_flags_table,
    create_scores_table,
    display_evaluation_report,
)

__all__ = [
    "display_evaluation_report",
    "create_activity_table",
    "create_analysis_results_table",
    "create_conversations_table",
    "create_flags_table",
    "create_scores_table",
]
