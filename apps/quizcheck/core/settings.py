from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FailurePolicy(str, Enum):
    abort = "abort"
    skip = "skip"


class Settings(BaseSettings):
    """Unified settings for quizcheck.

    Loads from env with support for repo ".env" files. Avoids manual load_dotenv().
    """

    _app_env = (os.getenv("APP_ENV") or "").strip().lower()
    _env_files = (
        []
        if _app_env in {"test", "ci"}
        else [
            str((Path(__file__).resolve().parents[1] / ".env")),  # apps/quizcheck/.env
            str((Path(__file__).resolve().parents[3] / ".env")),  # repo root .env
        ]
    )

    model_config = SettingsConfigDict(
        env_file=_env_files,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- App / Core ---
    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str | None = Field(
        default=None,
        validation_alias=AliasChoices("QUIZCHECK_LOG_LEVEL", "LOG_LEVEL"),
    )

    # --- LLM (any OpenAI-compatible endpoint; OpenRouter by default) ---
    llm_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "OPENAI_API_KEY"),
    )
    llm_base_url: Optional[str] = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("LLM_BASE_URL", "OPENAI_BASE_URL"),
    )
    llm_model: str = Field(
        default="google/gemini-3-flash-preview",
        validation_alias=AliasChoices("OPENROUTER_MODEL", "LLM_MODEL"),
    )
    llm_temperature: float | None = Field(default=None, alias="LLM_TEMPERATURE")
    llm_timeout_s: float = Field(default=120.0, alias="LLM_TIMEOUT_S", gt=0)
    llm_max_retries: int = Field(default=3, alias="LLM_MAX_RETRIES", ge=1, le=10)
    llm_max_tool_rounds: int = Field(default=8, alias="LLM_MAX_TOOL_ROUNDS", ge=0, le=32)

    # --- Search providers ---
    search_provider: str = Field(default="auto", alias="SEARCH_PROVIDER")
    search_num_results: int = Field(default=6, alias="SEARCH_NUM_RESULTS", ge=1, le=25)
    exa_api_key: str | None = Field(default=None, alias="EXA_API_KEY")
    tavily_api_key: str | None = Field(default=None, alias="TAVILY_API_KEY")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; QuizCheckBot/1.0)",
        alias="USER_AGENT",
    )

    # --- Kahoot export ---
    kahoot_api_base: str = Field(
        default="https://play.kahoot.it/rest/kahoots",
        alias="KAHOOT_API_BASE",
    )
    kahoot_timeout_s: float = Field(default=30.0, alias="KAHOOT_TIMEOUT_S", gt=0)

    # --- Verification run ---
    quiz_csv_path: str = Field(default="quiz.csv", alias="QUIZ_CSV_PATH")
    results_json_path: str = Field(
        default="quiz_verification_results.json",
        alias="RESULTS_JSON_PATH",
    )
    report_html_path: str = Field(default="quiz_report.html", alias="REPORT_HTML_PATH")
    verify_concurrency: int = Field(default=1, alias="VERIFY_CONCURRENCY", ge=1, le=16)
    on_error: FailurePolicy = Field(
        default=FailurePolicy.abort,
        alias="VERIFY_ON_ERROR",
        description="abort: first failure stops the run; skip: record the failure and continue.",
    )
    open_report: bool = Field(default=True, alias="OPEN_REPORT")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
