"""Rich rendering of a finished quiz."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .controller import QuizResults
from .view import format_time


def render_results(
    console: Console,
    results: QuizResults,
    *,
    subject: str | None = None,
    level: str | None = None,
) -> None:
    console.print()
    title = "Quiz Summary"
    if subject and level:
        title = f"{subject} ({level}) Summary"
    console.rule(Text(title, style="bold magenta"))

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(results.total_questions))
    overview.add_row("Correct", str(results.correct))
    overview.add_row("Wrong", str(results.wrong))
    overview.add_row("Time used", format_time(results.seconds_used))
    overview.add_row("Accuracy", f"{results.accuracy * 100:.1f}%")
    console.print(overview)


def render_incomplete(console: Console) -> None:
    console.print(
        Panel(
            "Quiz ended before the results screen.",
            title="Quiz Session",
            border_style="yellow",
        )
    )
