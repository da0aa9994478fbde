from __future__ import annotations

import json
from pathlib import Path

import pytest
from quizcheck import cli
from quizcheck.core.exceptions import ExportError, VerificationError
from quizcheck.core.settings import get_settings
from quizcheck.schemas.quiz import QuizQuestion, VerificationResult
from quizcheck.services import kahoot_export, quiz_report, quiz_verifier, verification_runner

QUIZ_CSV = (
    '1,"2+2=?",3,4,5,6,2\n'
    '2,"Capital of France?",Paris,Rome,Berlin,Madrid,1\n'
    '3,"Largest ocean?",Atlantic,Indian,Arctic,Pacific,1\n'
    '4,"H2O is?",Water,Salt,Gold,Iron,1\n'
    '5,"Sun is a?",Planet,Star,Moon,Comet,2\n'
)


class _FakeVerifier:
    fail_on: set[int] = set()
    seen: list[int] = []

    def __init__(self, model=None, **_kwargs) -> None:
        self.model = model

    def verify(self, question: QuizQuestion) -> VerificationResult:
        type(self).seen.append(question.number)
        if question.number in self.fail_on:
            raise VerificationError(f"provider down for Q{question.number}")
        return VerificationResult(
            question_number=question.number,
            question=question.question,
            claimed_correct=question.claimed_answer,
            is_correct=question.number != 3,
            ai_verification=f"{question.claimed_answer} checked",
        )


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "quiz.csv").write_text(QUIZ_CSV, encoding="utf-8")
    _FakeVerifier.fail_on = set()
    _FakeVerifier.seen = []
    monkeypatch.setattr(quiz_verifier, "QuizVerifier", _FakeVerifier)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def opened(monkeypatch: pytest.MonkeyPatch) -> list[Path]:
    seen: list[Path] = []
    monkeypatch.setattr(quiz_report, "open_report", lambda p: seen.append(Path(p)) or True)
    return seen


def _args(tmp: Path, *extra: str) -> list[str]:
    return [
        "verify",
        str(tmp / "quiz.csv"),
        "--json",
        str(tmp / "results.json"),
        "--html",
        str(tmp / "report.html"),
        *extra,
    ]


def test_verify_writes_artifacts_and_summary(workspace, opened, capsys):
    code = cli.main(_args(workspace))

    assert code == 0
    data = json.loads((workspace / "results.json").read_text(encoding="utf-8"))
    assert [r["questionNumber"] for r in data] == [1, 2, 3, 4, 5]
    assert data[0] == {
        "questionNumber": 1,
        "question": "2+2=?",
        "claimedCorrect": "4",
        "isCorrect": True,
        "aiVerification": "4 checked",
    }
    assert "80%" in (workspace / "report.html").read_text(encoding="utf-8")
    assert opened == [workspace / "report.html"]
    assert "4/5 questions verified as correct" in capsys.readouterr().out


def test_verify_no_open(workspace, opened):
    assert cli.main(_args(workspace, "--no-open")) == 0
    assert opened == []


def test_verify_abort_persists_nothing(workspace, opened):
    _FakeVerifier.fail_on = {3}

    code = cli.main(_args(workspace))

    assert code == 1
    assert _FakeVerifier.seen == [1, 2, 3]
    assert not (workspace / "results.json").exists()
    assert not (workspace / "report.html").exists()


def test_verify_skip_records_failure_and_continues(workspace, capsys):
    _FakeVerifier.fail_on = {3}

    code = cli.main(_args(workspace, "--on-error", "skip", "--no-open"))

    assert code == 0
    assert _FakeVerifier.seen == [1, 2, 3, 4, 5]
    data = json.loads((workspace / "results.json").read_text(encoding="utf-8"))
    assert len(data) == 5
    assert data[2]["error"] == "provider down for Q3"
    assert [r["questionNumber"] for r in data[:2]] == [1, 2]
    out = capsys.readouterr().out
    assert "4/5 questions verified as correct" in out
    assert "1 questions could not be verified" in out


def test_verify_missing_file_exits_non_zero(workspace):
    code = cli.main(["verify", str(workspace / "absent.csv"), "--no-open"])
    assert code == 1
    assert _FakeVerifier.seen == []


def test_verify_empty_file(workspace, capsys):
    (workspace / "quiz.csv").write_text("", encoding="utf-8")
    assert cli.main(_args(workspace, "--no-open")) == 0
    assert json.loads((workspace / "results.json").read_text(encoding="utf-8")) == []
    assert "N/A" in (workspace / "report.html").read_text(encoding="utf-8")
    assert "0/0 questions verified as correct" in capsys.readouterr().out


def test_export_command(workspace, monkeypatch, capsys):
    seen = {}

    def fake_export(game_id, output):
        seen["args"] = (game_id, output)
        return kahoot_export.ExportOutcome(
            game_id=game_id, path=workspace / "kahoot_abc.csv", fetched=3, written=3
        )

    monkeypatch.setattr(kahoot_export, "export_quiz", fake_export)
    assert cli.main(["export", "abc"]) == 0
    assert seen["args"] == ("abc", None)
    assert "Exported 3 questions" in capsys.readouterr().out


def test_export_failure_exits_non_zero(workspace, monkeypatch):
    def failing(game_id, output):
        raise ExportError("Failed to fetch: 404 Not Found")

    monkeypatch.setattr(kahoot_export, "export_quiz", failing)
    assert cli.main(["export", "abc", "out.csv"]) == 1


def test_verify_concurrency_flag_is_clamped(workspace, monkeypatch):
    seen = {}
    real_run = verification_runner.run_verification

    def spy(questions, verifier, **kwargs):
        seen["concurrency"] = kwargs["concurrency"]
        return real_run(questions, verifier, **kwargs)

    monkeypatch.setattr(verification_runner, "run_verification", spy)
    assert cli.main(_args(workspace, "--concurrency", "99", "--no-open")) == 0
    assert seen["concurrency"] == 16


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_invalid_environment_exits_with_diagnostic(workspace, monkeypatch, fresh_settings, caplog):
    monkeypatch.setenv("VERIFY_CONCURRENCY", "0")

    code = cli.main(_args(workspace, "--no-open"))

    assert code == 1
    assert _FakeVerifier.seen == []
    assert "Invalid settings" in caplog.text
    assert "VERIFY_CONCURRENCY" in caplog.text
