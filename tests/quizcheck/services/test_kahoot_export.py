from __future__ import annotations

from quizcheck.schemas.kahoot import KahootQuestion, KahootQuiz
from quizcheck.services.kahoot_export import (
    default_output_name,
    export_quiz,
    restructure,
    to_rows,
)
from quizcheck.services.quiz_csv import parse_quiz_csv


def _q(text, *choices):
    return KahootQuestion(
        question=text, choices=[{"answer": a, "correct": c} for a, c in choices]
    )


def test_restructure_skips_untitled_and_keeps_first_position():
    mapping = restructure(
        [
            _q("A?", ("1", True)),
            _q(None),
            _q("B?", ("x", False), ("y", True)),
            _q("A?", ("2", False), ("3", True)),
        ]
    )
    assert list(mapping) == ["A?", "B?"]
    assert [c.answer for c in mapping["A?"]] == ["2", "3"]


def test_to_rows_pads_truncates_and_indexes():
    mapping = restructure(
        [
            _q("Two choices?", ("yes", False), ("no", True)),
            _q("Six choices?", *[(str(i), i == 5) for i in range(6)]),
            _q("No correct?", ("a", False), ("b", False)),
        ]
    )
    rows = to_rows(mapping)
    assert rows[0] == [1, "Two choices?", "yes", "no", "", "", 2]
    assert rows[1] == [2, "Six choices?", "0", "1", "2", "3", 6]
    assert rows[2] == [3, "No correct?", "a", "b", "", "", ""]


class _FakeClient:
    def __init__(self, quiz: KahootQuiz) -> None:
        self.quiz = quiz
        self.requested: list[str] = []

    def fetch_quiz(self, game_id: str) -> KahootQuiz:
        self.requested.append(game_id)
        return self.quiz


def test_export_quiz_writes_parseable_csv(tmp_path):
    quiz = KahootQuiz(
        questions=[
            _q('Who said "hi", first?', ("Ann", True), ("Bob", False), ("Cy", False), ("Di", False)),
            _q("2+2?", ("3", False), ("4", True), ("5", False), ("6", False)),
        ]
    )
    client = _FakeClient(quiz)
    outcome = export_quiz("game-1", tmp_path / "quiz.csv", client=client)  # type: ignore[arg-type]

    assert client.requested == ["game-1"]
    assert outcome.fetched == 2 and outcome.written == 2
    assert outcome.path.is_absolute()
    questions = parse_quiz_csv(outcome.path)
    assert [q.question for q in questions] == ['Who said "hi", first?', "2+2?"]
    assert [q.claimed_answer for q in questions] == ["Ann", "4"]


def test_default_output_name():
    assert default_output_name("abc") == "kahoot_abc.csv"
