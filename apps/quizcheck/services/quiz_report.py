from __future__ import annotations

import html
import json
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from quizcheck.core.exceptions import FileAccessError, ReportWriteError
from quizcheck.core.utils import round_half_up_percent
from quizcheck.schemas.quiz import VerificationResult, VerificationSummary

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TAILWIND_CDN = "https://cdn.tailwindcss.com"

_results_adapter = TypeAdapter(list[VerificationResult])


def compute_accuracy(correct_count: int, total_count: int) -> Optional[int]:
    return round_half_up_percent(correct_count, total_count)


def format_accuracy(correct_count: int, total_count: int) -> str:
    accuracy = compute_accuracy(correct_count, total_count)
    return "N/A" if accuracy is None else f"{accuracy}%"


# ---------- JSON ----------


def results_to_json(results: Iterable[VerificationResult]) -> str:
    return json.dumps([r.to_json_dict() for r in results], indent=2, ensure_ascii=False)


def write_results_json(results: Iterable[VerificationResult], path: PathLike) -> Path:
    p = Path(path)
    try:
        p.write_text(results_to_json(results) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Cannot write {p}: {exc}", details={"path": str(p)}) from exc
    logger.info("Results saved to %s", p)
    return p


def load_results_json(path: PathLike) -> list[VerificationResult]:
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Cannot read {p}: {exc}", details={"path": str(p)}) from exc
    try:
        return _results_adapter.validate_json(raw)
    except ValidationError as exc:
        raise FileAccessError(
            f"{p} is not a verification results document",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


# ---------- HTML ----------


def _status(result: VerificationResult) -> tuple[str, str, str]:
    """Return (block classes, badge classes, badge label) for a result."""
    if result.failed:
        return (
            "border-amber-500 bg-amber-50",
            "bg-amber-200 text-amber-800",
            "&#9888; Failed",
        )
    if result.is_correct:
        return (
            "border-green-500 bg-green-50",
            "bg-green-200 text-green-800",
            "&#10003; Correct",
        )
    return (
        "border-red-500 bg-red-50",
        "bg-red-200 text-red-800",
        "&#10007; Incorrect",
    )


def render_result_block(result: VerificationResult) -> str:
    block_cls, badge_cls, label = _status(result)
    esc = html.escape
    if result.failed:
        detail_title = "Verification Error:"
        detail_text = esc(result.error or "")
    else:
        detail_title = "AI Verification:"
        detail_text = esc(result.ai_verification)
    return f"""
    <div class="border-l-4 {block_cls} p-6 rounded-lg">
      <div class="flex items-start justify-between mb-3">
        <div>
          <h3 class="text-lg font-semibold text-gray-900">
            Question {result.question_number}
          </h3>
          <p class="text-gray-700 mt-2">{esc(result.question)}</p>
        </div>
        <span class="{badge_cls} px-3 py-1 rounded-full text-sm font-medium">
          {label}
        </span>
      </div>
      <div class="mt-4">
        <p class="text-sm font-medium text-gray-900">
          Claimed Answer:
        </p>
        <p class="text-gray-700">{esc(result.claimed_correct)}</p>
      </div>
      <div class="mt-4">
        <p class="text-sm font-medium text-gray-900">
          {detail_title}
        </p>
        <p class="text-gray-700 leading-relaxed whitespace-pre-line">{detail_text}</p>
      </div>
    </div>
  """


def _summary_card(label: str, value: str, *, accent: str | None = None) -> str:
    border = f" border-l-4 border-{accent}-500" if accent else ""
    color = f"text-{accent}-600" if accent else "text-gray-900"
    return f"""
            <div class="bg-white rounded-lg shadow-sm p-6{border}">
                <p class="text-sm font-medium text-gray-600 uppercase">
                    {label}
                </p>
                <p class="text-3xl font-bold {color} mt-2">
                    {value}
                </p>
            </div>"""


def render_html_report(
    summary: VerificationSummary, *, generated_at: Optional[datetime] = None
) -> str:
    generated = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    cards = [
        _summary_card("Total Questions", str(summary.total_count)),
        _summary_card("Correct", str(summary.correct_count), accent="green"),
        _summary_card(
            "Accuracy",
            format_accuracy(summary.correct_count, summary.total_count),
            accent="blue",
        ),
    ]
    if summary.failed_count:
        cards.append(_summary_card("Failed", str(summary.failed_count), accent="amber"))
    grid_cols = "md:grid-cols-4" if summary.failed_count else "md:grid-cols-3"

    if summary.results:
        result_rows = "".join(render_result_block(r) for r in summary.results)
    else:
        result_rows = '<p class="text-gray-600">No questions were verified.</p>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Quiz Verification Report</title>
    <script src="{TAILWIND_CDN}"></script>
</head>
<body class="bg-gray-50">
    <div class="max-w-4xl mx-auto py-12 px-4 sm:px-6 lg:px-8">
        <!-- Header -->
        <div class="bg-white rounded-lg shadow-sm p-8 mb-8">
            <h1 class="text-4xl font-bold text-gray-900 mb-2">
                Quiz Verification Report
            </h1>
            <p class="text-gray-600">
                Generated on {html.escape(generated)}
            </p>
        </div>

        <!-- Summary Cards -->
        <div class="grid grid-cols-1 {grid_cols} gap-6 mb-8">{"".join(cards)}
        </div>

        <!-- Results -->
        <div class="space-y-6">
            <h2 class="text-2xl font-bold text-gray-900">
                Question Results
            </h2>
            {result_rows}
        </div>

        <!-- Footer -->
        <div class="mt-12 text-center text-gray-600 text-sm">
            <p>
                This report was generated by the Quiz Verification Tool
            </p>
        </div>
    </div>
</body>
</html>
"""


def write_html_report(
    summary: VerificationSummary,
    path: PathLike,
    *,
    generated_at: Optional[datetime] = None,
) -> Path:
    p = Path(path)
    try:
        p.write_text(render_html_report(summary, generated_at=generated_at), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(f"Cannot write {p}: {exc}", details={"path": str(p)}) from exc
    logger.info("HTML report generated: %s", p)
    return p


def open_report(path: PathLike) -> bool:
    """Open the report in the default browser; returns False if none is available."""
    uri = Path(path).resolve().as_uri()
    opened = webbrowser.open(uri)
    if not opened:
        logger.info("No browser available to open %s", uri)
    return opened
