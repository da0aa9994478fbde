"""Thin client for the public Kahoot quiz REST endpoint."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from pydantic import ValidationError

from quizcheck.core.exceptions import ExportError
from quizcheck.core.rate_limit import web_rate_limiter
from quizcheck.core.settings import settings
from quizcheck.schemas.kahoot import KahootQuiz

logger = logging.getLogger(__name__)


class KahootClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.kahoot_api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.kahoot_timeout_s
        self._session = session or requests.Session()

    def quiz_url(self, game_id: str) -> str:
        return f"{self.base_url}/{game_id.strip()}"

    def fetch_raw(self, game_id: str) -> dict[str, Any]:
        if not game_id or not game_id.strip():
            raise ExportError("A game id is required")
        url = self.quiz_url(game_id)
        headers = {
            "User-Agent": settings.user_agent,
            "Accept": "application/json",
        }
        web_rate_limiter.wait("kahoot")
        logger.debug("GET %s", url)
        try:
            response = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExportError(f"Failed to fetch: {exc}", details={"url": url}) from exc

        if not response.ok:
            raise ExportError(
                f"Failed to fetch: {response.status_code} {response.reason}",
                details={"url": url, "status_code": response.status_code},
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ExportError("Quiz endpoint did not return JSON", details={"url": url}) from exc
        if not isinstance(payload, dict):
            raise ExportError("Unexpected quiz payload shape", details={"url": url})
        return payload

    def fetch_quiz(self, game_id: str) -> KahootQuiz:
        payload = self.fetch_raw(game_id)
        try:
            return KahootQuiz.model_validate(payload)
        except ValidationError as exc:
            raise ExportError(
                "Quiz payload failed validation", details={"errors": exc.errors()}
            ) from exc
