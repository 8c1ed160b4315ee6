"""Full output of one evaluation pipeline run."""

from datetime import datetime

from pydantic import BaseModel, Field

from promptometry.core.models.correlation import Correlation, EffectivenessAnalysis, IterationPattern
from promptometry.core.models.events import DebugStats
from promptometry.core.models.modification import ModificationStats
from promptometry.core.models.patterns import AntiPattern, PatternAnalysis, PositivePattern
from promptometry.core.models.profile import DeveloperProfile
from promptometry.core.models.scoring import AssessmentLevel, Flag, ScoreBundle
from promptometry.core.models.semantic import PromptAnalysis


class EvaluationReport(BaseModel):
    """Everything the report collaborators need, computed fresh per run."""

    conversation_ids: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)
    semantic_llm_used: bool = False
    scores: ScoreBundle
    assessment: AssessmentLevel
    profile: DeveloperProfile
    red_flags: list[Flag] = Field(default_factory=list)
    green_flags: list[Flag] = Field(default_factory=list)
    effectiveness: EffectivenessAnalysis
    pattern_analysis: PatternAnalysis
    anti_patterns: list[AntiPattern] = Field(default_factory=list)
    positive_patterns: list[PositivePattern] = Field(default_factory=list)
    iteration_patterns: list[IterationPattern] = Field(default_factory=list)
    correlations: list[Correlation] = Field(default_factory=list)
    semantic_analyses: list[PromptAnalysis] = Field(default_factory=list)
    debug_stats: DebugStats = Field(default_factory=DebugStats)
    modification_stats: ModificationStats = Field(default_factory=ModificationStats)
    analysis_duration_seconds: float = 0.0
