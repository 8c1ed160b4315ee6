"""Per-prompt quality signals: rule-based metrics plus optional LLM intent."""

from enum import Enum

from pydantic import BaseModel, Field


class PolitenessLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StructureType(str, Enum):
    NUMBERED_LIST = "numbered_list"
    BULLET_LIST = "bullet_list"
    MULTI_LINE = "multi_line"
    SINGLE_LINE = "single_line"


class RuleBasedMetrics(BaseModel):
    """Cheap lexical features, always available."""

    word_count: int = 0
    char_count: int = 0
    has_question_mark: bool = False
    has_code_blocks: bool = False
    has_file_refs: bool = False
    has_numbers: bool = False
    starts_with_action_verb: bool = False
    vague_word_count: int = 0
    technical_term_count: int = 0
    politeness_level: PolitenessLevel = PolitenessLevel.LOW
    structure_type: StructureType = StructureType.SINGLE_LINE


class SemanticIntent(BaseModel, extra="ignore"):
    """LLM classification of a prompt's intent."""

    intent: str = "unknown"
    understanding_level: str = "unknown"
    specificity: str = "unknown"
    shows_context_awareness: bool = False
    architectural_thinking: bool = False
    key_concepts: list[str] = Field(default_factory=list)


class CombinedInsights(BaseModel):
    confidence_score: int = 0
    red_flags: list[str] = Field(default_factory=list)
    green_flags: list[str] = Field(default_factory=list)


class PromptAnalysis(BaseModel):
    """Rule-based and semantic view of a single prompt."""

    prompt_id: int | None = None
    prompt_text: str
    rule_based_metrics: RuleBasedMetrics
    semantic_analysis: SemanticIntent | None = None
    semantic_error: str | None = None
    combined_insights: CombinedInsights = Field(default_factory=CombinedInsights)

    @property
    def understanding_level(self) -> str | None:
        return self.semantic_analysis.understanding_level if self.semantic_analysis else None


class PromptComparison(BaseModel):
    is_repetitive: bool = False
    is_refinement: bool = False
    similarity_score: int = 0
    shows_learning: bool = False
