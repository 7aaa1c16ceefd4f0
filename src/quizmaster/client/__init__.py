"""Terminal quiz client: state machine, provider client and Textual UI."""

from .api import QuestionFetchError, fetch_questions  # noqa: F401
from .controller import (  # noqa: F401
    InvalidTransition,
    QuizController,
    QuizResults,
    QuizSession,
    QuizState,
    Tally,
)
from .summary import render_results  # noqa: F401
from .view import QuizApp, QuestionView  # noqa: F401

__all__ = [
    "InvalidTransition",
    "QuestionFetchError",
    "QuestionView",
    "QuizApp",
    "QuizController",
    "QuizResults",
    "QuizSession",
    "QuizState",
    "Tally",
    "fetch_questions",
    "render_results",
]
