"""Prompt templates sent to the LLM judge and parsing of its JSON replies."""

import json
import re
from typing import Any

from pydantic import BaseModel

from promptometry.core.models import JudgmentMethod, JudgmentVerdict

PROMPT_PLACEHOLDER = "{PROMPT_TEXT}"

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

CRITICAL_THINKING_TEMPLATE = """You are evaluating whether a developer's prompt shows critical thinking during an AI-assisted coding session.

PROMPT TO EVALUATE:
"{PROMPT_TEXT}"

CRITICAL THINKING INDICATORS (shows understanding):
- Questioning AI's approach or suggesting alternatives ("why not use X instead?")
- Asking about tradeoffs (performance vs readability, security vs convenience)
- Considering edge cases or failure scenarios ("what if the user does X?")
- Showing awareness of architectural implications ("how will this scale?")
- Demonstrating security consciousness ("is this vulnerable to X?")
- Catching potential bugs or issues in AI suggestions
- Building on previous context thoughtfully

NOT CRITICAL THINKING (surface-level):
- Simple "how do I" questions without context (learning, not analyzing)
- Asking AI to do something without questioning the approach
- Copy-paste requests without understanding
- Surface-level "why" without depth ("why?" alone is not enough)
- Asking for explanations of basic concepts (learning mode)

SCORING GUIDE:
0-2: No critical thinking, just requests or basic questions
3-4: Minimal critical thinking, some awareness but shallow
5-6: Moderate critical thinking, shows some understanding
7-8: Good critical thinking, demonstrates solid understanding
9-10: Excellent critical thinking, deep understanding and foresight

Respond ONLY with valid JSON (no other text):
{
  "isCriticalThinking": boolean,
  "type": "tradeoff" | "security" | "edge_case" | "architecture" | "questioning_ai" | "learning" | "none",
  "qualityScore": number between 0-10,
  "evidence": "quote the specific phrase that shows critical thinking, or 'none' if not applicable",
  "reasoning": "brief explanation of why this does or doesn't show understanding"
}"""

DEBUGGING_REASONING_TEMPLATE = """You are evaluating whether a developer's debugging prompt shows systematic thinking during an AI-assisted coding session.

PROMPT TO EVALUATE:
"{PROMPT_TEXT}"

SYSTEMATIC DEBUGGING INDICATORS (shows strong debugging skills):
- Forms hypotheses ("I think the issue is X because Y", "This error suggests...")
- Tests methodically ("First I'll check...", "Then I'll try...", "Step 1...")
- Narrows down problem space ("I've ruled out A", "Isolated the issue to...")
- Identifies root causes ("The underlying issue is...", "This is caused by...")
- Shows sequential reasoning (logical progression from observation to solution)
- Explains what was tried and what was learned

TRIAL-AND-ERROR INDICATORS (weak debugging, just guessing):
- Random attempts without reasoning ("Try this?", "What about that?")
- No hypothesis, just throwing solutions at the wall
- Repeating "still doesn't work" without learning from failures
- No explanation of why trying something

HELPLESS INDICATORS (no debugging ability):
- "Why doesn't this work?" with no investigation attempt
- Asking AI to fix without providing context or error details
- No attempt to understand the problem
- Just complaining about errors without analysis

SCORING GUIDE:
0-2: Helpless - no debugging strategy, just asking for fixes
3-4: Trial-and-error - random attempts, minimal reasoning
5-6: Some structure - basic hypothesis but weak methodology
7-8: Systematic - clear hypotheses, methodical testing
9-10: Excellent - root cause analysis, learns from attempts, narrows problem space

Respond ONLY with valid JSON (no other text):
{
  "isSystematic": boolean,
  "debuggingQuality": number between 0-10,
  "type": "hypothesis" | "testing" | "root_cause" | "narrowing" | "trial_error" | "helpless",
  "evidence": "quote the specific phrase that shows debugging approach",
  "reasoning": "brief explanation of why this shows systematic/trial-error/helpless debugging"
}"""

MISTAKE_CATCHER_TEMPLATE = """You are evaluating whether a developer catches AI mistakes or blindly accepts AI suggestions.

PROMPT TO EVALUATE:
"{PROMPT_TEXT}"

MISTAKE-CATCHING INDICATORS (shows critical thinking):
- Questioning AI's approach ("Wait, this won't handle X")
- Identifying bugs or security issues ("This has a SQL injection vulnerability")
- Catching logic errors ("But this doesn't account for edge case Y")
- Suggesting corrections ("Shouldn't we validate input first?")
- Preventing potential issues ("What if the user does X?")
- Security consciousness ("Is this secure?", "Could this leak data?")

NOT MISTAKE-CATCHING (accepts blindly):
- Asking AI to implement without reviewing
- No questioning of approach
- No mention of potential issues
- Just requesting features without analysis

SEVERITY LEVELS:
- high: Security vulnerabilities, data corruption, crashes
- medium: Logic bugs, incorrect behavior, edge cases
- low: Code quality issues, minor improvements

SCORING GUIDE:
0-2: Blind acceptance - no questioning or validation
3-4: Minimal awareness - basic questions but no deep analysis
5-6: Moderate awareness - catches some issues
7-8: Good awareness - catches bugs and security issues
9-10: Excellent awareness - proactive security and edge case thinking

Respond ONLY with valid JSON (no other text):
{
  "caughtMistake": boolean,
  "mistakeType": "security" | "bug" | "logic" | "edge_case" | "prevention" | "none",
  "severity": "high" | "medium" | "low" | "none",
  "qualityScore": number between 0-10,
  "evidence": "quote the specific phrase showing the caught mistake",
  "reasoning": "brief explanation of what mistake was caught or why this shows/doesn't show critical thinking"
}"""

INTENT_TEMPLATE = """Analyze this AI coding prompt and classify it. Be concise.

Prompt: "{PROMPT_TEXT}"

Respond with ONLY a JSON object (no other text):
{
  "intent": "question|implementation|bugfix|refactor|testing|exploration",
  "understanding_level": "confused|learning|competent|expert",
  "specificity": "vague|moderate|specific",
  "shows_context_awareness": true|false,
  "architectural_thinking": true|false,
  "key_concepts": ["concept1", "concept2"]
}"""

COMPARISON_TEMPLATE = """Compare these two AI coding prompts. Be concise.

Prompt 1: "{FIRST_PROMPT}"
Prompt 2: "{SECOND_PROMPT}"

Respond with ONLY a JSON object:
{
  "is_repetitive": true|false,
  "is_refinement": true|false,
  "similarity_score": 0-100,
  "shows_learning": true|false
}"""


class VerdictFields(BaseModel):
    """Where a judge reply keeps each verdict field, and which values are allowed."""

    model_config = {"frozen": True}

    relevant: str
    category: str
    quality: str
    categories: tuple[str, ...]
    default_category: str
    severities: tuple[str, ...] | None = None


def _escape_quotes(text: str) -> str:
    return text.replace('"', '\\"')


def build_prompt(template: str, prompt_text: str) -> str:
    return template.replace(PROMPT_PLACEHOLDER, _escape_quotes(prompt_text))


def build_comparison_prompt(first: str, second: str) -> str:
    return COMPARISON_TEMPLATE.replace("{FIRST_PROMPT}", _escape_quotes(first)).replace(
        "{SECOND_PROMPT}", _escape_quotes(second)
    )


def extract_json_object(response_text: str) -> dict[str, Any] | None:
    """The outermost ``{...}`` span of a reply decoded as a JSON object, or None."""
    match = _JSON_OBJECT.search(response_text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def parse_verdict(response_text: str, fields: VerdictFields) -> JudgmentVerdict | None:
    """Normalize a judge reply into a verdict.

    Returns None when the reply has no JSON object, the JSON is malformed, or
    the relevance flag is not a boolean; the caller then uses the rule
    fallback. Secondary fields out of range are coerced instead: an unknown
    category becomes the default, a bad quality score becomes 0, a missing
    evidence string becomes "none".
    """
    parsed = extract_json_object(response_text)
    if parsed is None:
        return None

    relevant = parsed.get(fields.relevant)
    if not isinstance(relevant, bool):
        return None

    category = parsed.get(fields.category)
    if category not in fields.categories:
        category = fields.default_category

    quality = parsed.get(fields.quality)
    if not _is_number(quality) or not 0 <= quality <= 10:
        quality = 0

    severity = "none"
    if fields.severities is not None and parsed.get("severity") in fields.severities:
        severity = parsed["severity"]

    evidence = parsed.get("evidence")
    reasoning = parsed.get("reasoning")

    return JudgmentVerdict(
        relevant=relevant,
        category=category,
        quality_score=float(quality),
        severity=severity,
        evidence=evidence if isinstance(evidence, str) else "none",
        reasoning=reasoning if isinstance(reasoning, str) else "No reasoning provided",
        method=JudgmentMethod.AI,
    )
