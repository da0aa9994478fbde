"""Pydantic schemas shared across quizcheck."""

from .kahoot import KahootChoice, KahootQuestion, KahootQuiz
from .quiz import (
    ANSWER_COUNT,
    QuizQuestion,
    VerificationResult,
    VerificationSummary,
    VerificationVerdict,
)

__all__ = [
    "ANSWER_COUNT",
    "KahootChoice",
    "KahootQuestion",
    "KahootQuiz",
    "QuizQuestion",
    "VerificationResult",
    "VerificationSummary",
    "VerificationVerdict",
]
