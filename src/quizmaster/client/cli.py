"""Entry point for ``quizmaster play``."""

from __future__ import annotations

import argparse
from functools import partial
from typing import Optional, Sequence

from rich.console import Console

from ..core.logging import configure_logger
from ..settings import ConfigError, load_settings
from .api import fetch_questions
from .controller import QuizController, QuizResults
from .summary import render_incomplete, render_results
from .view import QuizApp


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizmaster play",
        description="Play a timed multiple-choice quiz in the terminal",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config")
    p.add_argument("--server-url", help="Override quiz.server_url")
    p.add_argument("--num", type=int, help="Override quiz.question_count")
    p.add_argument(
        "--time-limit", type=int, help="Override quiz.time_limit_seconds"
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        config = load_settings(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}")
        return 2
    # Keep the TUI clean: file logging only.
    configure_logger(
        "quizmaster",
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        verbose=False,
        filename="client.log",
    )

    quiz = config.quiz
    count = args.num if args.num is not None else quiz.question_count
    time_limit = (
        args.time_limit
        if args.time_limit is not None
        else quiz.time_limit_seconds
    )
    if count < 1 or time_limit < 1:
        print("Error: --num and --time-limit must be at least 1")
        return 2

    controller = QuizController(
        subjects=quiz.subjects,
        levels=quiz.levels,
        time_limit=time_limit,
    )
    fetch = partial(
        fetch_questions,
        base_url=args.server_url or quiz.server_url,
        count=count,
        timeout=float(quiz.request_timeout_seconds),
    )
    app = QuizApp(
        controller,
        fetch,
        countdown_seconds=quiz.countdown_seconds,
    )
    result = app.run()

    console = Console()
    if isinstance(result, QuizResults):
        render_results(
            console,
            result,
            subject=controller.subject,
            level=controller.level,
        )
        return 0
    render_incomplete(console)
    return 1
