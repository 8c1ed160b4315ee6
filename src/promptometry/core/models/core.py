"""Base types shared across the pipeline: result-style errors and severities."""

from enum import Enum

from pydantic import BaseModel


class Severity(str, Enum):
    """Severity of a red flag or anti-pattern."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: high first."""
        return {"high": 0, "medium": 1, "low": 2}[self.value]


class StoreError(BaseModel):
    """Error that occurred while reading or writing the event store."""

    model_config = {"frozen": True}

    operation: str
    message: str


class JudgmentErrorKind(str, Enum):
    """Why a call to the text-judgment capability produced no answer."""

    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    CALL_FAILED = "call_failed"


class JudgmentError(BaseModel):
    """Error returned by the LLM judge instead of raising."""

    model_config = {"frozen": True}

    kind: JudgmentErrorKind
    message: str
