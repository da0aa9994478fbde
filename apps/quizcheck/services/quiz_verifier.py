from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from quizcheck.core.exceptions import VerificationError
from quizcheck.core.utils import today_str
from quizcheck.schemas.quiz import QuizQuestion, VerificationResult, VerificationVerdict
from quizcheck.services.llm_service import LLMService
from quizcheck.services.tools import FunctionTool, search_web

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an AI assistant that helps people find information. "
    "Please always use web search to verify the accuracy of the information "
    "and stay concise."
)


def build_prompt(question: QuizQuestion, today: Optional[date] = None) -> str:
    options = "\n".join(f"{idx}. {ans}" for idx, ans in enumerate(question.answers, start=1))
    claimed_no = question.correct_answer_index + 1
    return (
        f"Question: {question.question}\n"
        "\n"
        "Options:\n"
        f"{options}\n"
        "\n"
        f'The quiz claims the correct answer is option {claimed_no}: "{question.claimed_answer}"\n'
        "\n"
        "Verify if this is factually correct. "
        "Always search the web for every single question to verify if it is correct.\n"
        f"The date is {today_str(today)}."
    )


def build_messages(question: QuizQuestion, today: Optional[date] = None) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(question, today)},
    ]


class QuizVerifier:
    """Fact-check one quiz question at a time against the model plus web search."""

    def __init__(
        self,
        llm: Optional[LLMService] = None,
        *,
        model: Optional[str] = None,
        tools: Optional[Sequence[FunctionTool]] = None,
        today: Optional[date] = None,
    ) -> None:
        self.llm = llm or LLMService()
        self.model = model
        self.tools: list[FunctionTool] = list(tools) if tools is not None else [search_web]
        self.today = today

    def verdict(self, question: QuizQuestion) -> VerificationVerdict:
        return self.llm.structured_with_tools(
            build_messages(question, self.today),
            VerificationVerdict,
            self.tools,
            model=self.model,
        )

    def verify(self, question: QuizQuestion) -> VerificationResult:
        try:
            verdict = self.verdict(question)
        except VerificationError as exc:
            details = dict(exc.details) if isinstance(exc.details, dict) else {}
            details["question_number"] = question.number
            exc.details = details
            raise
        logger.debug(
            "Q%d verdict: is_correct=%s correct_answer=%r",
            question.number,
            verdict.is_correct,
            verdict.correct_answer,
        )
        return VerificationResult.from_verdict(question, verdict)
