import pytest
from pydantic import ValidationError
from quizcheck.schemas.kahoot import KahootQuiz
from quizcheck.schemas.quiz import (
    QuizQuestion,
    VerificationResult,
    VerificationSummary,
    VerificationVerdict,
)


def _question(**overrides) -> QuizQuestion:
    data = {
        "number": 1,
        "question": "2+2=?",
        "answers": ["3", "4", "5", "6"],
        "correct_answer_index": 1,
    }
    data.update(overrides)
    return QuizQuestion(**data)


def test_question_claimed_answer():
    assert _question().claimed_answer == "4"


@pytest.mark.parametrize(
    "overrides",
    [
        {"answers": ["a", "b", "c"]},
        {"correct_answer_index": 4},
        {"correct_answer_index": -1},
        {"question": "   "},
        {"number": 0},
    ],
)
def test_question_rejects_invalid_fields(overrides):
    with pytest.raises(ValidationError):
        _question(**overrides)


def test_verdict_accepts_camel_case_reply():
    verdict = VerificationVerdict.model_validate_json(
        '{"correctAnswer": "4", "isCorrect": true, "reasoning": "4 is correct"}'
    )
    assert verdict.is_correct is True
    assert verdict.correct_answer == "4"


def test_verdict_rejects_missing_and_unknown_keys():
    with pytest.raises(ValidationError):
        VerificationVerdict.model_validate_json('{"isCorrect": true, "reasoning": "x"}')
    with pytest.raises(ValidationError):
        VerificationVerdict.model_validate_json(
            '{"correctAnswer": "4", "isCorrect": true, "reasoning": "x", "confidence": 1}'
        )


def test_result_serializes_with_camel_case_keys():
    verdict = VerificationVerdict(correct_answer="4", is_correct=True, reasoning="4 is correct")
    result = VerificationResult.from_verdict(_question(), verdict)
    assert result.to_json_dict() == {
        "questionNumber": 1,
        "question": "2+2=?",
        "claimedCorrect": "4",
        "isCorrect": True,
        "aiVerification": "4 is correct",
    }


def test_failure_result_keeps_error():
    result = VerificationResult.failure(_question(), "timeout")
    assert result.failed
    assert result.is_correct is False
    assert result.to_json_dict()["error"] == "timeout"


def test_summary_counts_and_accuracy():
    verdict_ok = VerificationVerdict(correct_answer="4", is_correct=True, reasoning="ok")
    verdict_bad = VerificationVerdict(correct_answer="5", is_correct=False, reasoning="no")
    results = [
        VerificationResult.from_verdict(_question(number=1), verdict_ok),
        VerificationResult.from_verdict(_question(number=2), verdict_bad),
        VerificationResult.failure(_question(number=3), "boom"),
    ]
    summary = VerificationSummary.from_results(results)
    assert (summary.correct_count, summary.total_count, summary.failed_count) == (1, 3, 1)
    assert summary.accuracy == 33
    assert summary.summary_line() == "1/3 questions verified as correct"


def test_empty_summary_has_no_accuracy():
    summary = VerificationSummary.from_results([])
    assert summary.total_count == 0
    assert summary.accuracy is None


def test_kahoot_payload_tolerates_nulls():
    quiz = KahootQuiz.model_validate(
        {
            "title": "Capitals",
            "questions": [
                {"type": "content", "title": "Intro", "choices": None},
                {
                    "type": "quiz",
                    "question": "Capital of France?",
                    "choices": [{"answer": "Paris", "correct": True}, {"answer": None}],
                },
            ],
        }
    )
    assert quiz.questions[0].choices == []
    assert quiz.questions[0].question is None
    assert [c.answer for c in quiz.questions[1].choices] == ["Paris", ""]
    assert quiz.questions[1].choices[1].correct is False
