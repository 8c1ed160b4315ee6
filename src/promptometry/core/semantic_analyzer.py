"""Per-prompt quality signals: lexical rules plus optional LLM intent classification."""

import logging
import re

from pydantic import ValidationError

from promptometry.core.models import (
    CombinedInsights,
    JudgmentError,
    JudgmentErrorKind,
    PolitenessLevel,
    PromptAnalysis,
    PromptComparison,
    RuleBasedMetrics,
    SemanticIntent,
    StructureType,
)
from promptometry.core.numeric import clamp, round_score, safe_ratio
from promptometry.understanding.judge import TextJudge
from promptometry.understanding.templates import (
    INTENT_TEMPLATE,
    build_comparison_prompt,
    build_prompt,
    extract_json_object,
)

logger = logging.getLogger(__name__)

ACTION_VERBS = frozenset(
    {
        "add",
        "remove",
        "update",
        "fix",
        "refactor",
        "move",
        "change",
        "create",
        "delete",
        "modify",
        "implement",
        "optimize",
        "improve",
    }
)
VAGUE_WORDS = ("this", "that", "it", "something", "stuff", "thing", "things", "fix", "help", "better", "good", "bad")
TECHNICAL_TERMS = (
    "function",
    "method",
    "class",
    "component",
    "api",
    "database",
    "async",
    "await",
    "refactor",
    "test",
    "error",
    "validation",
)
POLITE_PHRASES = ("please", "could you", "would you", "can you", "thank")

_VAGUE_WORD_PATTERNS = [re.compile(rf"\b{word}\b", re.IGNORECASE) for word in VAGUE_WORDS]
_INLINE_CODE = re.compile(r"`[^`]+`")
_FILE_REFERENCE = re.compile(r"[\w-]+\.\w+")
_DIGIT = re.compile(r"\d")
_NUMBERED_LIST = re.compile(r"^\d+\.")
_BULLET_LIST = re.compile(r"^[-*]")


def get_rule_based_metrics(prompt_text: str) -> RuleBasedMetrics:
    lowered = prompt_text.lower()
    words = prompt_text.split()

    return RuleBasedMetrics(
        word_count=len(words),
        char_count=len(prompt_text),
        has_question_mark="?" in prompt_text,
        has_code_blocks=bool(_INLINE_CODE.search(prompt_text)),
        has_file_refs=bool(_FILE_REFERENCE.search(prompt_text)),
        has_numbers=bool(_DIGIT.search(prompt_text)),
        starts_with_action_verb=bool(words) and words[0].lower() in ACTION_VERBS,
        vague_word_count=sum(len(pattern.findall(lowered)) for pattern in _VAGUE_WORD_PATTERNS),
        technical_term_count=sum(1 for term in TECHNICAL_TERMS if term in lowered),
        politeness_level=_politeness_level(lowered),
        structure_type=_structure_type(prompt_text),
    )


def _politeness_level(lowered: str) -> PolitenessLevel:
    count = sum(1 for phrase in POLITE_PHRASES if phrase in lowered)
    if count >= 2:
        return PolitenessLevel.HIGH
    if count == 1:
        return PolitenessLevel.MEDIUM
    return PolitenessLevel.LOW


def _structure_type(prompt_text: str) -> StructureType:
    if _NUMBERED_LIST.match(prompt_text):
        return StructureType.NUMBERED_LIST
    if _BULLET_LIST.match(prompt_text):
        return StructureType.BULLET_LIST
    if "\n" in prompt_text:
        return StructureType.MULTI_LINE
    return StructureType.SINGLE_LINE


def combine_insights(metrics: RuleBasedMetrics, semantic: SemanticIntent | None) -> CombinedInsights:
    """Red and green flag strings; confidence is 50 + 15 per green - 10 per red, clamped to 0-100."""
    red_flags = []
    green_flags = []

    if metrics.word_count < 5:
        red_flags.append("Very short prompt - lacks detail")
    if metrics.vague_word_count >= 3:
        red_flags.append("High vague word usage - unclear intent")
    if metrics.politeness_level == PolitenessLevel.HIGH:
        red_flags.append("Overly polite - may indicate uncertainty")
    if metrics.has_question_mark and metrics.word_count < 10:
        red_flags.append("Vague question without context")

    if metrics.has_file_refs:
        green_flags.append("References specific files")
    if metrics.starts_with_action_verb:
        green_flags.append("Clear action-oriented command")
    if metrics.technical_term_count >= 3:
        green_flags.append("Uses technical terminology")
    if metrics.structure_type != StructureType.SINGLE_LINE:
        green_flags.append("Well-structured prompt")
    if metrics.has_code_blocks:
        green_flags.append("Includes code examples")

    if semantic is not None:
        if semantic.architectural_thinking:
            green_flags.append("Shows architectural thinking")
        if semantic.shows_context_awareness:
            green_flags.append("Context-aware prompt")
        if semantic.understanding_level == "expert":
            green_flags.append("Expert-level understanding")
        if semantic.understanding_level == "confused":
            red_flags.append("Shows confusion or lack of understanding")
        if semantic.specificity == "vague":
            red_flags.append("Vague and non-specific")

    return CombinedInsights(
        confidence_score=int(clamp(50 + 15 * len(green_flags) - 10 * len(red_flags), 0, 100)),
        red_flags=red_flags,
        green_flags=green_flags,
    )


def basic_compare(first: str, second: str) -> PromptComparison:
    """Word-set Jaccard overlap as a percentage."""
    first_words = set(first.lower().split())
    second_words = set(second.lower().split())
    similarity = round_score(
        safe_ratio(len(first_words & second_words), len(first_words | second_words)) * 100
    )
    return PromptComparison(
        is_repetitive=similarity > 70,
        is_refinement=40 < similarity < 70,
        similarity_score=similarity,
    )


class SemanticAnalyzer:
    """Rule-based prompt metrics, optionally enriched by the LLM judge."""

    def __init__(self, judge: TextJudge | None = None):
        self.judge = judge

    @property
    def llm_enabled(self) -> bool:
        return self.judge is not None

    def analyze_prompt(self, prompt_text: str, prompt_id: int | None = None) -> PromptAnalysis:
        metrics = get_rule_based_metrics(prompt_text)
        semantic = None
        semantic_error = None

        if self.judge is not None:
            result = self.analyze_intent(prompt_text)
            if isinstance(result, JudgmentError):
                semantic_error = result.message
            else:
                semantic = result

        return PromptAnalysis(
            prompt_id=prompt_id,
            prompt_text=prompt_text,
            rule_based_metrics=metrics,
            semantic_analysis=semantic,
            semantic_error=semantic_error,
            combined_insights=combine_insights(metrics, semantic),
        )

    def analyze_intent(self, prompt_text: str) -> SemanticIntent | JudgmentError:
        if self.judge is None:
            raise ValueError("Intent classification needs a judge")

        response = self.judge.complete(build_prompt(INTENT_TEMPLATE, prompt_text))
        if isinstance(response, JudgmentError):
            return response

        parsed = extract_json_object(response)
        if parsed is None:
            return JudgmentError(kind=JudgmentErrorKind.CALL_FAILED, message="No JSON object in intent response")
        try:
            return SemanticIntent.model_validate(parsed)
        except ValidationError as e:
            logger.debug(f"Invalid intent response: {e}")
            return JudgmentError(kind=JudgmentErrorKind.CALL_FAILED, message=f"Invalid intent response: {e}")

    def compare_prompts(self, first: str, second: str) -> PromptComparison:
        """Ask the judge when there is one, falling back to word overlap."""
        if self.judge is None:
            return basic_compare(first, second)

        response = self.judge.complete(build_comparison_prompt(first, second))
        if isinstance(response, JudgmentError):
            return basic_compare(first, second)

        parsed = extract_json_object(response)
        if parsed is None:
            return basic_compare(first, second)
        try:
            return PromptComparison.model_validate(parsed)
        except ValidationError:
            return basic_compare(first, second)
