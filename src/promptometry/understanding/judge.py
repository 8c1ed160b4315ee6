"""LLM judge: given a prompt, return the model's raw text or a JudgmentError."""

import logging
from typing import Protocol

from openai import APIConnectionError, APITimeoutError
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from promptometry.core.models import JudgmentError, JudgmentErrorKind
from promptometry.core.settings import settings

logger = logging.getLogger(__name__)


class TextJudge(Protocol):
    """Anything that can answer a judgment prompt with text."""

    def complete(self, prompt: str) -> str | JudgmentError: ...


class LLMJudge:
    """Judgment capability backed by an OpenAI-compatible endpoint (Ollama by default).

    Calls are synchronous, one at a time, each bounded by the judge timeout.
    There are no retries: a failed call is reported and the caller falls back.
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        offline: bool | None = None,
    ):
        self.model_name = model_name or settings.judge_model
        self.base_url = base_url or settings.llm_base_url
        self.api_key = api_key or settings.llm_api_key
        self.timeout_seconds = timeout_seconds or settings.calibration.judge_timeout_seconds
        self.offline = settings.offline_mode if offline is None else offline
        self._agent: Agent | None = None

    @property
    def available(self) -> bool:
        return not self.offline and bool(self.base_url)

    def _get_agent(self) -> Agent:
        if self._agent is None:
            provider = OpenAIProvider(base_url=self.base_url, api_key=self.api_key)
            self._agent = Agent(model=OpenAIChatModel(model_name=self.model_name, provider=provider))
        return self._agent

    def complete(self, prompt: str) -> str | JudgmentError:
        if not self.available:
            return JudgmentError(kind=JudgmentErrorKind.UNAVAILABLE, message="LLM judge disabled (offline mode)")

        try:
            result = self._get_agent().run_sync(
                prompt, model_settings={"timeout": self.timeout_seconds, "temperature": 0.2}
            )
        except (APITimeoutError, TimeoutError) as e:
            logger.warning(f"Judge call timed out after {self.timeout_seconds}s: {e}")
            return JudgmentError(kind=JudgmentErrorKind.TIMEOUT, message=str(e))
        except APIConnectionError as e:
            logger.warning(f"Judge endpoint {self.base_url} unreachable: {e}")
            return JudgmentError(kind=JudgmentErrorKind.UNAVAILABLE, message=str(e))
        except Exception as e:
            logger.warning(f"Judge call failed: {e}")
            return JudgmentError(kind=JudgmentErrorKind.CALL_FAILED, message=str(e))

        return result.output
