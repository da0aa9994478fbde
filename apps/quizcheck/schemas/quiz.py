from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from quizcheck.core.utils import round_half_up_percent

ANSWER_COUNT = 4


class QuizQuestion(BaseModel):
    """One parsed row of the quiz CSV."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    question: str = Field(min_length=1)
    answers: list[str] = Field(min_length=ANSWER_COUNT, max_length=ANSWER_COUNT)
    correct_answer_index: int = Field(ge=0, lt=ANSWER_COUNT)

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question text is empty")
        return v

    @property
    def claimed_answer(self) -> str:
        return self.answers[self.correct_answer_index]


class VerificationVerdict(BaseModel):
    """Structured reply the model must produce for each question."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    correct_answer: str = Field(description="The actual correct answer to the question")
    is_correct: bool = Field(
        description="Whether the quiz's claimed answer is correct (true/false)"
    )
    reasoning: str = Field(
        description="Detailed explanation of why the answer is right or wrong"
    )


class VerificationResult(BaseModel):
    """One verified question; serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    question_number: int
    question: str
    claimed_correct: str
    is_correct: bool
    ai_verification: str
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_verdict(
        cls, question: QuizQuestion, verdict: VerificationVerdict
    ) -> "VerificationResult":
        return cls(
            question_number=question.number,
            question=question.question,
            claimed_correct=question.claimed_answer,
            is_correct=verdict.is_correct,
            ai_verification=verdict.reasoning,
        )

    @classmethod
    def failure(cls, question: QuizQuestion, error: str) -> "VerificationResult":
        return cls(
            question_number=question.number,
            question=question.question,
            claimed_correct=question.claimed_answer,
            is_correct=False,
            ai_verification="",
            error=error,
        )

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class VerificationSummary(BaseModel):
    """Ordered results of a run plus the aggregate counts."""

    results: list[VerificationResult] = Field(default_factory=list)
    correct_count: int = 0
    total_count: int = 0
    failed_count: int = 0

    @model_validator(mode="after")
    def _counts_match(self) -> "VerificationSummary":
        if self.total_count != len(self.results):
            raise ValueError("total_count must equal the number of results")
        return self

    @classmethod
    def from_results(cls, results: list[VerificationResult]) -> "VerificationSummary":
        return cls(
            results=list(results),
            correct_count=sum(1 for r in results if r.is_correct),
            total_count=len(results),
            failed_count=sum(1 for r in results if r.failed),
        )

    @property
    def accuracy(self) -> int | None:
        return round_half_up_percent(self.correct_count, self.total_count)

    def summary_line(self) -> str:
        return f"{self.correct_count}/{self.total_count} questions verified as correct"
