"""Models package for promptometry.

Re-exports all model types from submodules for convenience.
"""

from promptometry.core.models.core import (
    JudgmentError,
    JudgmentErrorKind,
    Severity,
    StoreError,
)
from promptometry.core.models.correlation import (
    Correlation,
    CorrelationStats,
    EffectivenessAnalysis,
    FileEditEntry,
    IterationPattern,
    RelatedEdit,
    Reversal,
    TimelineEntry,
)
from promptometry.core.models.evaluation import EvaluationReport
from promptometry.core.models.events import (
    ActiveDebuggingSession,
    ConversationData,
    ConversationSummary,
    DebuggingSession,
    DebugStats,
    Edit,
    ErrorInfo,
    Prompt,
)
from promptometry.core.models.hook import EditChange, EditHookInput, PromptHookInput, ResponseHookInput
from promptometry.core.models.modification import (
    AIResponse,
    CodeModification,
    CodeUsage,
    ModificationStats,
    ModificationType,
)
from promptometry.core.models.patterns import (
    AntiPattern,
    EditCoherence,
    FileEditCount,
    FileFocus,
    IterationAnalysis,
    PatternAnalysis,
    PositivePattern,
    ProductivityMetrics,
    ReversalAnalysis,
    ReversalDetail,
)
from promptometry.core.models.profile import (
    DateRange,
    DeveloperProfile,
    ProfileMetadata,
    PromptEvolution,
    Recommendation,
    Strength,
    TechnicalProfile,
    Weakness,
    WorkStyle,
)
from promptometry.core.models.scoring import AssessmentLevel, Flag, ScoreBundle
from promptometry.core.models.semantic import (
    CombinedInsights,
    PolitenessLevel,
    PromptAnalysis,
    PromptComparison,
    RuleBasedMetrics,
    SemanticIntent,
    StructureType,
)
from promptometry.core.models.understanding import (
    AnalyzerResult,
    JudgedPrompt,
    JudgmentAggregate,
    JudgmentMethod,
    JudgmentVerdict,
    ReasoningSample,
)

__all__ = [
    # Core
    "JudgmentError",
    "JudgmentErrorKind",
    "Severity",
    "StoreError",
    # Events
    "ActiveDebuggingSession",
    "ConversationData",
    "ConversationSummary",
    "DebuggingSession",
    "DebugStats",
    "Edit",
    "ErrorInfo",
    "Prompt",
    # Hook
    "EditChange",
    "EditHookInput",
    "PromptHookInput",
    "ResponseHookInput",
    # Modification
    "AIResponse",
    "CodeModification",
    "CodeUsage",
    "ModificationStats",
    "ModificationType",
    # Correlation
    "Correlation",
    "CorrelationStats",
    "EffectivenessAnalysis",
    "FileEditEntry",
    "IterationPattern",
    "RelatedEdit",
    "Reversal",
    "TimelineEntry",
    # Patterns
    "AntiPattern",
    "EditCoherence",
    "FileEditCount",
    "FileFocus",
    "IterationAnalysis",
    "PatternAnalysis",
    "PositivePattern",
    "ProductivityMetrics",
    "ReversalAnalysis",
    "ReversalDetail",
    # Semantic
    "CombinedInsights",
    "PolitenessLevel",
    "PromptAnalysis",
    "PromptComparison",
    "RuleBasedMetrics",
    "SemanticIntent",
    "StructureType",
    # Scoring
    "AssessmentLevel",
    "Flag",
    "ScoreBundle",
    # Profile
    "DateRange",
    "DeveloperProfile",
    "ProfileMetadata",
    "PromptEvolution",
    "Recommendation",
    "Strength",
    "TechnicalProfile",
    "Weakness",
    "WorkStyle",
    # Understanding
    "AnalyzerResult",
    "JudgedPrompt",
    "JudgmentAggregate",
    "JudgmentMethod",
    "JudgmentVerdict",
    "ReasoningSample",
    # Evaluation
    "EvaluationReport",
]
