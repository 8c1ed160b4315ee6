"""Behavioral pattern metrics computed from correlations."""

from pydantic import BaseModel, Field

from promptometry.core.models.core import Severity
from promptometry.core.models.correlation import TimelineEntry


class EditCoherence(BaseModel):
    """Do the edits produced by each prompt belong together?"""

    coherence_score: int = 0
    coherent_prompts: int = 0
    incoherent_prompts: int = 0
    single_file_edits: int = 0
    multi_file_edits: int = 0
    focused_edits: int = 0
    scattered_edits: int = Field(
        default=0, description="Independent counter: a prompt can be scattered by file count and by edit volume"
    )
    assessment: str = "poor"


class IterationAnalysis(BaseModel):
    total_iterated_files: int = 0
    high_iteration_files: int = 0
    moderate_iteration_files: int = 0
    avg_iterations_per_file: float = 0.0
    iteration_score: int = 100
    red_flag: bool = False
    assessment: str = "healthy_iteration"


class ReversalDetail(BaseModel):
    file: str
    reversals: int
    timeline: list[TimelineEntry] = Field(default_factory=list)


class ReversalAnalysis(BaseModel):
    files_with_reversals: int = 0
    total_reversals: int = 0
    reversal_rate: int = 0
    reversal_score: int = 100
    red_flag: bool = False
    details: list[ReversalDetail] = Field(default_factory=list)
    assessment: str = "confident"


class ProductivityMetrics(BaseModel):
    avg_edits_per_prompt: float = 0.0
    avg_files_per_prompt: float = 0.0
    productivity_score: int = 0
    assessment: str = "no_data"


class FileEditCount(BaseModel):
    file: str
    edits: int


class FileFocus(BaseModel):
    total_files_touched: int = 0
    top_files: list[FileEditCount] = Field(default_factory=list)
    focus_percentage: int = 0
    focus_score: int = 0
    assessment: str = "no_data"


class PatternAnalysis(BaseModel):
    """All pattern metrics for one evaluation run."""

    edit_coherence: EditCoherence = Field(default_factory=EditCoherence)
    iteration_analysis: IterationAnalysis = Field(default_factory=IterationAnalysis)
    reversal_analysis: ReversalAnalysis = Field(default_factory=ReversalAnalysis)
    productivity_metrics: ProductivityMetrics = Field(default_factory=ProductivityMetrics)
    file_focus: FileFocus = Field(default_factory=FileFocus)


class AntiPattern(BaseModel):
    type: str
    severity: Severity
    count: int
    description: str
    suggestion: str


class PositivePattern(BaseModel):
    type: str
    description: str
    count: int | None = None
    examples: list[str] = Field(default_factory=list)
    percentage: int | None = None
    improvement: str | None = None
