"""Export a Kahoot quiz to the headerless quiz CSV layout."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from quizcheck.connectors.kahoot_connector import KahootClient
from quizcheck.schemas.kahoot import KahootChoice, KahootQuestion
from quizcheck.schemas.quiz import ANSWER_COUNT
from quizcheck.services.quiz_csv import CsvRow, write_quiz_csv

logger = logging.getLogger(__name__)


@dataclass
class ExportOutcome:
    game_id: str
    path: Path
    fetched: int
    written: int


def restructure(questions: Iterable[KahootQuestion]) -> dict[str, list[KahootChoice]]:
    """Map question text to its choices.

    Items without question text (content slides) are dropped. A repeated
    question keeps its first position and takes the later choices.
    """
    out: dict[str, list[KahootChoice]] = {}
    for q in questions:
        if q.question:
            out[q.question] = list(q.choices)
    return out


def to_rows(mapping: dict[str, list[KahootChoice]]) -> list[list[Union[str, int]]]:
    rows: list[list[Union[str, int]]] = []
    for idx, (question, choices) in enumerate(mapping.items(), start=1):
        answers = [c.answer for c in choices][:ANSWER_COUNT]
        answers += [""] * (ANSWER_COUNT - len(answers))
        correct = next((i for i, c in enumerate(choices, start=1) if c.correct), None)
        rows.append([idx, question, *answers, correct if correct is not None else ""])
    return rows


def default_output_name(game_id: str) -> str:
    return f"kahoot_{game_id}.csv"


def export_quiz(
    game_id: str,
    output: Optional[Union[str, Path]] = None,
    *,
    client: Optional[KahootClient] = None,
) -> ExportOutcome:
    client = client or KahootClient()
    logger.info("Fetching game %s...", game_id)
    quiz = client.fetch_quiz(game_id)
    rows: list[CsvRow] = to_rows(restructure(quiz.questions))
    path = write_quiz_csv(rows, Path(output or default_output_name(game_id)).resolve())
    logger.info("Exported %d questions to %s", len(quiz.questions), path)
    return ExportOutcome(game_id=game_id, path=path, fetched=len(quiz.questions), written=len(rows))
