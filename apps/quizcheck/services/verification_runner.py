from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional, Protocol, Sequence

from quizcheck.core.exceptions import VerificationError
from quizcheck.core.settings import FailurePolicy
from quizcheck.schemas.quiz import QuizQuestion, VerificationResult, VerificationSummary

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    def verify(self, question: QuizQuestion) -> VerificationResult: ...


ProgressCallback = Callable[[int, int, VerificationResult], None]


def _log_progress(done: int, total: int, result: VerificationResult) -> None:
    if result.failed:
        logger.warning("[%d/%d] Q%d: FAILED (%s)", done, total, result.question_number, result.error)
    elif result.is_correct:
        logger.info("[%d/%d] Q%d: CORRECT", done, total, result.question_number)
    else:
        logger.info("[%d/%d] Q%d: INCORRECT", done, total, result.question_number)


def _verify_one(
    verifier: Verifier, question: QuizQuestion, on_error: FailurePolicy
) -> VerificationResult:
    logger.info("Checking Q%d...", question.number)
    try:
        return verifier.verify(question)
    except VerificationError as exc:
        if on_error == FailurePolicy.abort:
            raise
        logger.warning("Q%d verification failed, recording failure: %s", question.number, exc)
        return VerificationResult.failure(question, exc.message)


def run_verification(
    questions: Sequence[QuizQuestion],
    verifier: Verifier,
    *,
    concurrency: int = 1,
    on_error: FailurePolicy = FailurePolicy.abort,
    progress: Optional[ProgressCallback] = _log_progress,
) -> VerificationSummary:
    """Verify every question and return the results in input order.

    With `concurrency == 1` each item finishes before the next one starts.
    Larger values use a bounded thread pool; results are slotted back by input
    position. Under `FailurePolicy.abort` the first `VerificationError` is
    re-raised and no partial summary is returned.
    """
    total = len(questions)
    slots: list[Optional[VerificationResult]] = [None] * total
    notify = progress or (lambda *_: None)

    if concurrency <= 1 or total <= 1:
        for idx, question in enumerate(questions):
            slots[idx] = _verify_one(verifier, question, on_error)
            notify(idx + 1, total, slots[idx])  # type: ignore[arg-type]
    else:
        done = 0
        with ThreadPoolExecutor(max_workers=min(concurrency, total)) as executor:
            futures: dict[Future[VerificationResult], int] = {
                executor.submit(_verify_one, verifier, q, on_error): idx
                for idx, q in enumerate(questions)
            }
            pending = set(futures)
            while pending:
                finished, pending = wait(pending, return_when=FIRST_EXCEPTION)
                for future in finished:
                    exc = future.exception()
                    if exc is not None:
                        for other in pending:
                            other.cancel()
                        raise exc
                    slots[futures[future]] = future.result()
                    done += 1
                    notify(done, total, slots[futures[future]])  # type: ignore[arg-type]

    results = [r for r in slots if r is not None]
    if len(results) != total:
        raise VerificationError(
            f"Expected {total} results, collected {len(results)}", code="incomplete_run"
        )
    return VerificationSummary.from_results(results)
