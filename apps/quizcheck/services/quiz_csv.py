"""Read and write the headerless quiz CSV.

Layout, one question per row::

    ordinal,question,option1,option2,option3,option4,correctOptionOneBased
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, Iterator, Sequence, Union

from pydantic import ValidationError

from quizcheck.core.exceptions import FileAccessError, MalformedRowError, ReportWriteError
from quizcheck.schemas.quiz import ANSWER_COUNT, QuizQuestion

logger = logging.getLogger(__name__)

COLUMN_COUNT = 3 + ANSWER_COUNT

PathLike = Union[str, Path]
CsvRow = Sequence[Union[str, int]]


def _parse_int(value: str, *, field: str, row: int) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise MalformedRowError(f"{field} is not an integer: {value!r}", row=row) from exc


def row_to_question(values: Sequence[str], *, row: int) -> QuizQuestion:
    """Convert one CSV row into a `QuizQuestion`, validating it strictly."""

    if len(values) != COLUMN_COUNT:
        raise MalformedRowError(
            f"expected {COLUMN_COUNT} columns, got {len(values)}",
            row=row,
            details={"values": list(values)},
        )
    number = _parse_int(values[0], field="ordinal", row=row)
    correct = _parse_int(values[6], field="correct option", row=row)
    if not 1 <= correct <= ANSWER_COUNT:
        raise MalformedRowError(
            f"correct option must be between 1 and {ANSWER_COUNT}, got {correct}",
            row=row,
        )
    try:
        return QuizQuestion(
            number=number,
            question=values[1],
            answers=list(values[2 : 2 + ANSWER_COUNT]),
            correct_answer_index=correct - 1,
        )
    except ValidationError as exc:
        raise MalformedRowError(
            "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()),
            row=row,
        ) from exc


def iter_quiz_csv(path: PathLike) -> Iterator[QuizQuestion]:
    """Yield questions lazily in file order. Blank lines are skipped."""

    p = Path(path)
    try:
        fh = p.open("r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise FileAccessError(f"Cannot open quiz file {p}: {exc}", details={"path": str(p)}) from exc

    with fh:
        reader = csv.reader(fh)
        try:
            for values in reader:
                if not values:
                    continue
                yield row_to_question(values, row=reader.line_num)
        except csv.Error as exc:
            raise MalformedRowError(str(exc), row=reader.line_num) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise FileAccessError(f"Cannot read quiz file {p}: {exc}", details={"path": str(p)}) from exc


def parse_quiz_csv(path: PathLike) -> list[QuizQuestion]:
    questions = list(iter_quiz_csv(path))
    logger.debug("Parsed %d questions from %s", len(questions), path)
    return questions


def render_quiz_csv(rows: Iterable[CsvRow]) -> str:
    """Render rows with standard quoting; embedded quotes are doubled."""

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def write_quiz_csv(rows: Iterable[CsvRow], path: PathLike) -> Path:
    p = Path(path)
    try:
        p.write_text(render_quiz_csv(rows), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Cannot write {p}: {exc}", details={"path": str(p)}) from exc
    return p
