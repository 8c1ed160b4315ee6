"""Text similarity used for reversal and repetition detection."""

import re

from promptometry.core.settings import settings

_WHITESPACE = re.compile(r"\s+")


def normalize_code(text: str | None) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: str) -> set[str]:
    """Whitespace-delimited token set of already-normalized text."""
    return set(text.split()) if text else set()


def calculate_similarity(first: str | None, second: str | None) -> float:
    """Jaccard similarity of the whitespace token sets of two strings.

    Identical strings (after normalization) short-circuit to 1.0. Two empty
    strings have an empty union and score 0.0.
    """
    normalized_first = normalize_code(first)
    normalized_second = normalize_code(second)

    if not normalized_first and not normalized_second:
        return 0.0
    if normalized_first == normalized_second:
        return 1.0

    tokens_first = tokenize(normalized_first)
    tokens_second = tokenize(normalized_second)
    union = tokens_first | tokens_second
    if not union:
        return 0.0
    return len(tokens_first & tokens_second) / len(union)


def is_similar_code(first: str | None, second: str | None, threshold: float | None = None) -> bool:
    """Whether two snippets describe the same code state.

    Args:
        first: Snippet to compare
        second: Snippet to compare against
        threshold: Jaccard cutoff, defaults to the configured similarity threshold

    Returns:
        False if either side is empty, True if equal after whitespace
        normalization or strictly above the threshold.
    """
    if not first or not second:
        return False

    if normalize_code(first) == normalize_code(second):
        return True

    cutoff = settings.calibration.similarity_threshold if threshold is None else threshold
    return calculate_similarity(first, second) > cutoff
