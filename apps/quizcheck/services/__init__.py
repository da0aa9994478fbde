"""Service layer package.

Keep imports lazy to avoid initializing heavyweight dependencies at import time
(e.g., the OpenAI client). Downstream code can still access common symbols from
`quizcheck.services` thanks to `__getattr__` proxies.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "LLMService",
    "QuizVerifier",
    "export_quiz",
    "parse_quiz_csv",
    "run_verification",
]


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    if name == "LLMService":
        from .llm_service import LLMService

        return LLMService
    if name == "QuizVerifier":
        from .quiz_verifier import QuizVerifier

        return QuizVerifier
    if name == "export_quiz":
        from .kahoot_export import export_quiz

        return export_quiz
    if name == "parse_quiz_csv":
        from .quiz_csv import parse_quiz_csv

        return parse_quiz_csv
    if name == "run_verification":
        from .verification_runner import run_verification

        return run_verification
    raise AttributeError(name)
