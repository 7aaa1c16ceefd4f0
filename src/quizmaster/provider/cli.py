"""Command handlers for running and exercising the question provider."""

from __future__ import annotations

import argparse
import json
from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..core.logging import configure_logger
from ..settings import AppConfig, ConfigError, load_settings
from .generation import build_stages, generate_questions


def _load(args: argparse.Namespace) -> Optional[AppConfig]:
    try:
        return load_settings(getattr(args, "config", None))
    except ConfigError as exc:
        print(f"Error: {exc}")
        return None


def _setup_logging(config: AppConfig, verbose: bool) -> None:
    configure_logger(
        "quizmaster",
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        verbose=verbose or config.logging.verbose,
    )


def serve_main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the provider HTTP server with uvicorn."""

    parser = argparse.ArgumentParser(
        prog="quizmaster serve",
        description="Serve the question provider API",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config")
    parser.add_argument("--host", help="Override server.host")
    parser.add_argument("--port", type=int, help="Override server.port")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    config = _load(args)
    if config is None:
        return 2
    _setup_logging(config, args.verbose)

    import uvicorn

    from .app import create_app

    uvicorn.run(
        create_app(config),
        host=args.host or config.server.host,
        port=args.port or config.server.port,
        log_level=config.logging.level.lower(),
    )
    return 0


def generate_main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate one question set without the HTTP layer."""

    parser = argparse.ArgumentParser(
        prog="quizmaster generate",
        description="Generate quiz questions and print them",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("subject")
    parser.add_argument("difficulty")
    parser.add_argument("--num", type=int, default=None)
    parser.add_argument("--config")
    parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Print raw JSON"
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    config = _load(args)
    if config is None:
        return 2
    _setup_logging(config, args.verbose)
    count = (
        args.num
        if args.num is not None
        else config.generation.default_question_count
    )
    if count < 1:
        print("Error: --num must be at least 1")
        return 2

    result = generate_questions(
        args.subject,
        args.difficulty,
        min(count, config.generation.max_question_count),
        build_stages(config.generation),
    )
    if args.as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    console = Console()
    table = Table(
        title=f"{args.subject} ({args.difficulty}) via {result.source}",
        expand=True,
    )
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Answer")
    for idx, question in enumerate(result.questions, start=1):
        table.add_row(str(idx), question.question, question.correct_answer)
    console.print(table)
    return 0
