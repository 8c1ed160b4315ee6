"""Configuration settings for promptometry."""

import os
import sys
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Get platform-specific default data directory."""
    app_name = "promptometry"

    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        if not base:
            base = Path.home() / "AppData" / "Local"
        return Path(base) / app_name
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / app_name
        return Path.home() / ".local" / "share" / app_name


def get_default_config_dir() -> Path:
    """Get platform-specific default config directory."""
    app_name = "promptometry"

    if sys.platform in ("win32", "darwin"):
        return get_default_data_dir()
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / app_name
    return Path.home() / ".config" / app_name


class Calibration(BaseModel):
    """Calibration constants for the correlation and scoring pipeline.

    None of these have a derivable "correct" value; they were tuned by hand
    and are kept in one place so recalibration never touches algorithm code.
    """

    similarity_threshold: float = Field(
        default=0.9, description="Jaccard similarity above which two code snippets count as the same state"
    )

    judge_timeout_seconds: float = Field(default=15.0, description="Timeout for a single LLM judgment call")
    min_judged_prompt_length: int = Field(
        default=10, description="Prompts shorter than this are never judged and never counted"
    )

    coherence_good: int = 70
    coherence_moderate: int = 50
    focused_max_files: int = 2
    focused_max_edits: int = 5
    scattered_min_files: int = 4
    scattered_min_edits: int = Field(default=10, description="Edits above this count mark a prompt as scattered")

    high_iteration_edits: int = Field(default=4, description="Edit count at which a file counts as highly iterated")
    iteration_red_flag_files: int = 3
    reversal_red_flag_files: int = 2
    high_confusion_reversal_files: int = 3

    excessive_questions_threshold: int = 5
    vague_prompts_threshold: int = 5
    vague_prompt_length: int = Field(default=20, description="Prompts shorter than this are considered vague")
    frequent_reversals_threshold: int = 3
    excessive_iteration_edits: int = 5
    excessive_iteration_files: int = 2

    architectural_prompts_threshold: int = 2
    testing_prompts_threshold: int = 2
    technical_prompt_ratio: float = 0.6
    improving_specificity_ratio: float = 1.2
    min_prompts_for_trend: int = 5

    tier_expert: int = 85
    tier_proficient: int = 70
    tier_developing: int = 55
    tier_novice: int = 40

    short_session_minutes: int = 30
    medium_session_minutes: int = 120
    fast_pace_prompts_per_hour: float = 10.0
    slow_pace_prompts_per_hour: float = 3.0
    evolution_change_ratio: float = Field(
        default=0.1, description="Relative change in prompt length that counts as improving or declining"
    )

    ai_response_window_minutes: int = Field(
        default=5, description="Only AI responses this recent are matched against an edit"
    )
    ai_response_candidates: int = 5
    accepted_similarity: float = Field(default=0.95, description="Above this an edit used the AI code as-is")
    modified_similarity: float = 0.6
    rejected_similarity: float = Field(
        default=0.3, description="At or below this an edit is manual and not linked to any response"
    )

    stale_debugging_session_minutes: int = Field(
        default=30, description="An open debugging session older than this is closed as abandoned"
    )


class Settings(BaseSettings):
    """Application settings with support for .env files."""

    model_config = SettingsConfigDict(
        env_file=[
            get_default_config_dir() / ".env",
            ".env",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="PROMPTOMETRY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_path: Path | None = None

    debug_mode: bool = False
    offline_mode: bool = Field(
        default=False, description="Never call the LLM; every judgment uses the rule-based fallback"
    )

    llm_base_url: str = Field(
        default="http://localhost:11434/v1", description="OpenAI-compatible endpoint (Ollama by default)"
    )
    llm_api_key: str = "ollama"
    judge_model: str = "deepseek-r1:1.5b"
    semantic_analysis_enabled: bool = Field(
        default=True, description="Ask the LLM to classify prompt intent during evaluation"
    )

    poll_interval_seconds: float = 5.0
    min_prompts_threshold: int = Field(
        default=3, description="Conversations need at least this many prompts before background analysis"
    )

    recent_conversations_limit: int = 20

    calibration: Calibration = Field(default_factory=Calibration)

    @field_validator("database_path", mode="before")
    @classmethod
    def validate_database_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v)
        return v

    @property
    def resolved_database_path(self) -> Path:
        """Get the resolved database path, using default if not set."""
        if self.database_path is not None:
            return self.database_path.resolve()

        return get_default_data_dir() / "promptometry.db"

    @property
    def llm_available(self) -> bool:
        """Whether judgments may be sent to the LLM at all."""
        return not self.offline_mode and bool(self.llm_base_url)


settings = Settings()
