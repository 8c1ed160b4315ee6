"""Regex rules used when the LLM judge gives no usable verdict."""

import re

from promptometry.core.models import JudgmentMethod, JudgmentVerdict

LONG_PROMPT_LENGTH = 100
RULE_EVIDENCE = "Matched regex pattern"

CRITICAL_THINKING_PATTERNS: dict[str, list[re.Pattern]] = {
    "tradeoff": [
        re.compile(r"why\s+(?:use|choose|pick|prefer)\s+\w+\s+(?:instead of|over|rather than)", re.IGNORECASE),
        re.compile(r"trade-?off", re.IGNORECASE),
        re.compile(r"pros and cons", re.IGNORECASE),
        re.compile(r"advantages and disadvantages", re.IGNORECASE),
    ],
    "security": [
        re.compile(r"security|vulnerable|injection|xss|csrf|authentication|authorization", re.IGNORECASE),
        re.compile(r"password|hash|encrypt|token", re.IGNORECASE),
    ],
    "edge_case": [
        re.compile(r"what\s+(?:if|happens|when)", re.IGNORECASE),
        re.compile(r"edge case|corner case|boundary", re.IGNORECASE),
        re.compile(r"error handling|exception", re.IGNORECASE),
    ],
    "architecture": [
        re.compile(r"scale|performance|optimize", re.IGNORECASE),
        re.compile(r"architecture|design pattern", re.IGNORECASE),
        re.compile(r"how\s+does\s+(?:this|that|it)\s+handle", re.IGNORECASE),
    ],
    "questioning_ai": [
        re.compile(r"wouldn't\s+this\s+(?:cause|create|lead to)", re.IGNORECASE),
        re.compile(r"could\s+(?:this|that)\s+(?:cause|lead to)", re.IGNORECASE),
        re.compile(r"are you sure|is this correct|shouldn't", re.IGNORECASE),
    ],
}

DEBUGGING_PATTERNS: dict[str, list[re.Pattern]] = {
    "hypothesis": [
        re.compile(r"I think\s+(?:the\s+)?(?:issue|problem|bug|error)\s+is", re.IGNORECASE),
        re.compile(r"(?:probably|likely|maybe)\s+(?:caused by|due to|because)", re.IGNORECASE),
        re.compile(r"the\s+error\s+suggests", re.IGNORECASE),
        re.compile(r"(?:I believe|I suspect)\s+(?:the|this|it)", re.IGNORECASE),
    ],
    "testing": [
        re.compile(r"I (?:tested|tried|checked)", re.IGNORECASE),
        re.compile(r"(?:first|then|next)\s+I", re.IGNORECASE),
        re.compile(r"step\s+\d+", re.IGNORECASE),
        re.compile(r"I'll\s+(?:start by|begin with)", re.IGNORECASE),
    ],
    "root_cause": [
        re.compile(r"root\s+cause", re.IGNORECASE),
        re.compile(r"caused\s+by", re.IGNORECASE),
        re.compile(r"the\s+reason\s+(?:is|was)", re.IGNORECASE),
        re.compile(r"underlying\s+(?:issue|problem)", re.IGNORECASE),
    ],
    "narrowing": [
        re.compile(r"narrowed\s+(?:it\s+)?down\s+to", re.IGNORECASE),
        re.compile(r"isolated\s+(?:the\s+)?(?:issue|problem|bug)", re.IGNORECASE),
        re.compile(r"ruled\s+out", re.IGNORECASE),
        re.compile(r"eliminated", re.IGNORECASE),
    ],
}

TRIAL_ERROR_PATTERNS = [
    re.compile(r"try\s+(?:this|that)\??", re.IGNORECASE),
    re.compile(r"(?:still|doesn't)\s+(?:not\s+)?work", re.IGNORECASE),
    re.compile(r"(?:what|how)\s+about", re.IGNORECASE),
]

MISTAKE_PATTERNS: dict[str, list[re.Pattern]] = {
    "security": [
        re.compile(r"security|vulnerability|exploit|sql injection|xss|csrf", re.IGNORECASE),
        re.compile(r"authenticate|authorize|password|token|leak", re.IGNORECASE),
        re.compile(r"encrypt|hash|salt|sanitize|validate|escape", re.IGNORECASE),
    ],
    "bug": [
        re.compile(r"(?:this|that)\s+(?:has|contains)\s+(?:a\s+)?(?:bug|error|issue|problem)", re.IGNORECASE),
        re.compile(r"(?:this|that)\s+(?:doesn't|won't)\s+(?:work|handle)", re.IGNORECASE),
        re.compile(
            r"(?:I think|I believe)\s+(?:this|that)\s+(?:is|has)\s+(?:wrong|incorrect|broken)", re.IGNORECASE
        ),
    ],
    "logic": [
        re.compile(r"wait,?\s+(?:this|that)", re.IGNORECASE),
        re.compile(r"(?:but|however)\s+(?:this|that)\s+(?:doesn't|won't|can't)", re.IGNORECASE),
    ],
    "edge_case": [
        re.compile(r"what\s+about\s+(?:edge case|corner case|boundary|null|undefined|empty)", re.IGNORECASE),
        re.compile(r"what\s+(?:if|happens)\s+(?:the|a|an)?.*(?:fails?|errors?|breaks?)", re.IGNORECASE),
    ],
    "prevention": [
        re.compile(r"(?:should|shouldn't|need to)\s+(?:handle|check|validate)", re.IGNORECASE),
        re.compile(r"(?:could|might)\s+(?:this|that)\s+(?:cause|lead to|result in)", re.IGNORECASE),
        re.compile(r"(?:missing|forgot|need to add)", re.IGNORECASE),
    ],
}

MISTAKE_SEVERITY = {
    "security": ("high", 8.0),
    "bug": ("medium", 7.0),
    "logic": ("medium", 7.0),
    "edge_case": ("low", 6.0),
    "prevention": ("low", 6.0),
}


def first_matching_category(text: str, patterns: dict[str, list[re.Pattern]]) -> str | None:
    """First category, in declaration order, with a pattern that matches."""
    for category, category_patterns in patterns.items():
        if any(pattern.search(text) for pattern in category_patterns):
            return category
    return None


def critical_thinking_rule(text: str) -> JudgmentVerdict:
    category = first_matching_category(text, CRITICAL_THINKING_PATTERNS)
    if category is None:
        return JudgmentVerdict(
            relevant=False,
            category="none",
            reasoning="No critical thinking patterns detected",
            method=JudgmentMethod.FALLBACK,
        )

    quality = 5
    if "trade-off" in text or "tradeoff" in text:
        quality += 2
    if "security" in text or "performance" in text:
        quality += 1
    if "instead of" in text or "rather than" in text:
        quality += 1
    if len(text) > LONG_PROMPT_LENGTH:
        quality += 1

    return JudgmentVerdict(
        relevant=True,
        category=category,
        quality_score=min(10, quality),
        evidence=RULE_EVIDENCE,
        reasoning=f"Rule-based: matched {category} pattern",
        method=JudgmentMethod.FALLBACK,
    )


def debugging_reasoning_rule(text: str) -> JudgmentVerdict:
    """Systematic categories first; trial-and-error is only checked when none match."""
    category = first_matching_category(text, DEBUGGING_PATTERNS)
    if category is not None:
        quality = 6
        if category == "root_cause":
            quality += 2
        if category == "narrowing":
            quality += 1
        if len(text) > LONG_PROMPT_LENGTH:
            quality += 1
        return JudgmentVerdict(
            relevant=True,
            category=category,
            quality_score=min(10, quality),
            evidence=RULE_EVIDENCE,
            reasoning=f"Rule-based: {category} pattern detected",
            method=JudgmentMethod.FALLBACK,
        )

    if any(pattern.search(text) for pattern in TRIAL_ERROR_PATTERNS):
        return JudgmentVerdict(
            relevant=False,
            category="trial_error",
            quality_score=3,
            evidence=RULE_EVIDENCE,
            reasoning="Rule-based: trial_error pattern detected",
            method=JudgmentMethod.FALLBACK,
        )

    return JudgmentVerdict(
        relevant=False,
        category="helpless",
        reasoning="Rule-based: helpless pattern detected",
        method=JudgmentMethod.FALLBACK,
    )


def mistake_catcher_rule(text: str) -> JudgmentVerdict:
    category = first_matching_category(text, MISTAKE_PATTERNS)
    if category is None:
        return JudgmentVerdict(
            relevant=False,
            category="none",
            reasoning="No mistake-catching patterns detected",
            method=JudgmentMethod.FALLBACK,
        )

    severity, quality = MISTAKE_SEVERITY[category]
    return JudgmentVerdict(
        relevant=True,
        category=category,
        quality_score=quality,
        severity=severity,
        evidence=RULE_EVIDENCE,
        reasoning=f"Rule-based: matched {category} pattern",
        method=JudgmentMethod.FALLBACK,
    )
