from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from quizcheck.core.exceptions import ConfigurationError, QuizCheckException
from quizcheck.core.logging import setup_logging
from quizcheck.core.settings import FailurePolicy, Settings, get_settings
from quizcheck.core.utils import clamp_int

logger = logging.getLogger("quizcheck")


def build_parser(cfg: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizcheck",
        description="Export quizzes and fact-check their answers with an AI model plus web search",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    exp = sub.add_parser("export", help="Export a Kahoot by game ID to CSV")
    exp.add_argument("game_id")
    exp.add_argument("output", nargs="?", default=None, help="Defaults to kahoot_<game_id>.csv")

    ver = sub.add_parser("verify", help="Verify every question of a quiz CSV")
    ver.add_argument("csv", nargs="?", default=cfg.quiz_csv_path)
    ver.add_argument("--json", dest="json_path", default=cfg.results_json_path)
    ver.add_argument("--html", dest="html_path", default=cfg.report_html_path)
    ver.add_argument("--model", default=None, help=f"Override the model (default {cfg.llm_model})")
    ver.add_argument("--concurrency", type=int, default=cfg.verify_concurrency)
    ver.add_argument(
        "--on-error",
        choices=[p.value for p in FailurePolicy],
        default=cfg.on_error.value,
        help="abort: stop at the first failed question; skip: record it and continue",
    )
    ver.add_argument(
        "--no-open",
        dest="open_report",
        action="store_false",
        default=cfg.open_report,
        help="Do not open the HTML report when done",
    )
    return parser


def cmd_export(args: argparse.Namespace) -> int:
    from quizcheck.services.kahoot_export import export_quiz

    outcome = export_quiz(args.game_id, args.output)
    print(f"Exported {outcome.fetched} questions to {outcome.path}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    from quizcheck.services.quiz_csv import parse_quiz_csv
    from quizcheck.services.quiz_report import open_report, write_html_report, write_results_json
    from quizcheck.services.quiz_verifier import QuizVerifier
    from quizcheck.services.verification_runner import run_verification

    logger.info("Loading quiz questions from %s", args.csv)
    questions = parse_quiz_csv(args.csv)
    logger.info("Found %d questions", len(questions))

    summary = run_verification(
        questions,
        QuizVerifier(model=args.model),
        concurrency=clamp_int(args.concurrency, lo=1, hi=16),
        on_error=FailurePolicy(args.on_error),
    )

    write_results_json(summary.results, args.json_path)
    html_path = write_html_report(summary, args.html_path)
    if args.open_report:
        open_report(html_path)

    print(f"Summary: {summary.summary_line()}")
    if summary.failed_count:
        print(f"{summary.failed_count} questions could not be verified")
    print(f"Full results saved to {args.json_path}")
    return 0


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors(include_url=False)
        )
        raise ConfigurationError(f"Invalid settings: {problems}", code="invalid_settings") from exc


def _report_failure(exc: QuizCheckException) -> int:
    logger.error("%s: %s", exc.__class__.__name__, exc.message)
    if exc.details:
        logger.debug("details: %s", exc.details)
    return exc.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        cfg = _load_settings()
    except ConfigurationError as exc:
        setup_logging()
        return _report_failure(exc)
    args = build_parser(cfg).parse_args(argv)
    setup_logging("DEBUG" if args.verbose else cfg.log_level)

    handlers = {"export": cmd_export, "verify": cmd_verify}
    try:
        return handlers[args.command](args)
    except QuizCheckException as exc:
        return _report_failure(exc)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
