"""Understanding analyzers: judged per-prompt evidence of critical thinking, debugging and mistake catching."""

from promptometry.understanding.analyzers import ANALYZER_VARIANTS, UnderstandingAnalyzer, build_analyzers
from promptometry.understanding.judge import LLMJudge, TextJudge

__all__ = [
    "ANALYZER_VARIANTS",
    "LLMJudge",
    "TextJudge",
    "UnderstandingAnalyzer",
    "build_analyzers",
]
