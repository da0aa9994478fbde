from __future__ import annotations

from typing import Any


class QuizCheckException(Exception):
    """Base exception for quizcheck.

    Every failure in the pipeline surfaces as one of these so the CLI can
    print a single diagnostic line and exit non-zero.
    """

    default_code: str | None = None
    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: Any | None = None,
    ) -> None:
        self.message = message
        self.code = code if code is not None else self.default_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "type": self.__class__.__name__,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ConfigurationError(QuizCheckException):
    """Raised when configuration is invalid or incomplete."""

    default_code = "configuration_error"


class FileAccessError(QuizCheckException):
    """Raised when the quiz input file is missing or unreadable."""

    default_code = "file_access_error"


class MalformedRowError(QuizCheckException):
    """Raised when a CSV row does not decompose into a quiz question."""

    default_code = "malformed_row"

    def __init__(self, message: str, *, row: int, details: Any | None = None) -> None:
        self.row = row
        super().__init__(f"row {row}: {message}", details=details)


class VerificationError(QuizCheckException):
    """Raised when the AI provider call fails or returns an invalid verdict."""

    default_code = "verification_failed"


class RateLimitError(VerificationError):
    """Raised when the AI provider keeps rate limiting after retries."""

    default_code = "rate_limited"


class ReportWriteError(QuizCheckException):
    """Raised when the JSON or HTML artifact cannot be written."""

    default_code = "report_write_error"


class ExportError(QuizCheckException):
    """Raised when a quiz cannot be fetched from the hosting platform."""

    default_code = "export_failed"
