"""Quiz flow state machine.

The controller owns one quiz playthrough: subject and level selection, the
countdown, loading questions, the per-question timer and the running tally.
It holds no UI objects so views (and tests) drive it through plain method
calls. Every state change goes through :meth:`QuizController._transition`,
which rejects moves missing from the transition table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from ..models import Question

__all__ = [
    "DEFAULT_TIME_LIMIT",
    "InvalidTransition",
    "QuestionFetcher",
    "QuizController",
    "QuizResults",
    "QuizSession",
    "QuizState",
    "Tally",
]

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT = 60
UNANSWERED = -1

QuestionFetcher = Callable[[str, str], Sequence[Question]]


class QuizState(Enum):
    INTRO = "intro"
    SUBJECT_SELECT = "subject-select"
    COUNTDOWN = "countdown"
    QUIZ_LOADING = "quiz-loading"
    QUIZ_ERROR = "quiz-error"
    QUIZ_ACTIVE = "quiz-active"
    QUIZ_FINISHED = "quiz-finished"


_TRANSITIONS: dict[QuizState, frozenset[QuizState]] = {
    QuizState.INTRO: frozenset({QuizState.SUBJECT_SELECT}),
    QuizState.SUBJECT_SELECT: frozenset({QuizState.COUNTDOWN}),
    QuizState.COUNTDOWN: frozenset({QuizState.QUIZ_LOADING}),
    QuizState.QUIZ_LOADING: frozenset(
        {QuizState.QUIZ_ERROR, QuizState.QUIZ_ACTIVE}
    ),
    QuizState.QUIZ_ERROR: frozenset(),
    QuizState.QUIZ_ACTIVE: frozenset({QuizState.QUIZ_FINISHED}),
    QuizState.QUIZ_FINISHED: frozenset(),
}


class InvalidTransition(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


@dataclass
class Tally:
    correct: int = 0
    wrong: int = 0
    seconds_used: int = 0


@dataclass(frozen=True)
class QuizResults:
    correct: int
    wrong: int
    seconds_used: int
    total_questions: int

    @property
    def accuracy(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.correct / self.total_questions


@dataclass
class QuizSession:
    """Mutable state for a single pass through the question list."""

    questions: tuple[Question, ...]
    time_limit: int = DEFAULT_TIME_LIMIT
    index: int = 0
    elapsed: int = 0
    selected: int = UNANSWERED
    tally: Tally = field(default_factory=Tally)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def answered(self) -> bool:
        return self.selected != UNANSWERED

    @property
    def is_last(self) -> bool:
        return self.index + 1 >= self.total_questions


class QuizController:
    """Drive the intro -> selection -> countdown -> quiz -> results flow."""

    def __init__(
        self,
        *,
        subjects: Sequence[str],
        levels: Sequence[str],
        time_limit: int = DEFAULT_TIME_LIMIT,
    ) -> None:
        if time_limit <= 0:
            raise ValueError("time_limit must be positive")
        self.subjects = tuple(subjects)
        self.levels = tuple(levels)
        self.time_limit = time_limit
        self._reset()

    def _reset(self) -> None:
        self.state = QuizState.INTRO
        self.subject: Optional[str] = None
        self.level: Optional[str] = None
        self.session: Optional[QuizSession] = None
        self.error: Optional[str] = None
        self.last_answer_correct: Optional[bool] = None

    def _transition(self, target: QuizState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(
                f"Cannot move from {self.state.value} to {target.value}"
            )
        logger.debug("Quiz state %s -> %s", self.state.value, target.value)
        self.state = target

    def _require(self, state: QuizState) -> None:
        if self.state is not state:
            raise InvalidTransition(
                f"Operation requires {state.value}, "
                f"current state is {self.state.value}"
            )

    def _active_session(self) -> QuizSession:
        self._require(QuizState.QUIZ_ACTIVE)
        assert self.session is not None
        return self.session

    # Selection -------------------------------------------------------------
    def start(self) -> None:
        self._transition(QuizState.SUBJECT_SELECT)

    def choose_subject(self, subject: str) -> None:
        self._require(QuizState.SUBJECT_SELECT)
        if subject not in self.subjects:
            raise ValueError(f"Unknown subject: {subject}")
        self.subject = subject

    def choose_level(self, level: str) -> None:
        self._require(QuizState.SUBJECT_SELECT)
        if level not in self.levels:
            raise ValueError(f"Unknown level: {level}")
        self.level = level

    @property
    def can_continue(self) -> bool:
        return (
            self.state is QuizState.SUBJECT_SELECT
            and self.subject is not None
            and self.level is not None
        )

    def confirm_selection(self) -> None:
        if not self.can_continue:
            raise InvalidTransition("Pick a subject and a level first")
        self._transition(QuizState.COUNTDOWN)

    def go(self) -> None:
        self._transition(QuizState.QUIZ_LOADING)

    # Loading ---------------------------------------------------------------
    def load(self, fetch: QuestionFetcher) -> QuizState:
        """Fetch the session's questions once and enter the quiz or error."""

        self._require(QuizState.QUIZ_LOADING)
        assert self.subject is not None and self.level is not None
        try:
            questions = tuple(fetch(self.subject, self.level))
        except Exception as exc:
            logger.error("Failed to load questions: %s", exc)
            return self.fail(str(exc) or "Failed to load questions")
        if not questions:
            return self.fail("No questions received from the API")
        if not all(isinstance(q, Question) for q in questions):
            return self.fail("Malformed questions received from the API")
        self.session = QuizSession(questions, time_limit=self.time_limit)
        self._transition(QuizState.QUIZ_ACTIVE)
        return self.state

    def fail(self, message: str) -> QuizState:
        self._transition(QuizState.QUIZ_ERROR)
        self.error = message
        return self.state

    # Active quiz -----------------------------------------------------------
    @property
    def timer_running(self) -> bool:
        return (
            self.state is QuizState.QUIZ_ACTIVE
            and self.session is not None
            and not self.session.answered
        )

    def tick(self) -> bool:
        """Advance the question clock by one second.

        Returns True when the clock ran out and the quiz moved on (to the
        next question or to the results).
        """
        if not self.timer_running:
            return False
        session = self._active_session()
        session.elapsed = min(session.elapsed + 1, session.time_limit)
        if session.elapsed < session.time_limit:
            return False
        session.tally.wrong += 1
        session.tally.seconds_used += session.time_limit
        self.last_answer_correct = False
        logger.debug("Question %d timed out", session.index + 1)
        self._advance(session)
        return True

    def select_option(self, index: int) -> bool:
        """Answer the current question; returns whether it was correct."""

        session = self._active_session()
        if session.answered:
            raise InvalidTransition("Question already answered")
        if not 0 <= index < len(session.current.options):
            raise ValueError(f"Option index out of range: {index}")
        session.selected = index
        correct = session.current.is_correct(index)
        if correct:
            session.tally.correct += 1
        else:
            session.tally.wrong += 1
        session.tally.seconds_used += session.elapsed
        self.last_answer_correct = correct
        return correct

    def next_question(self) -> None:
        session = self._active_session()
        if not session.answered:
            raise InvalidTransition("Select an option before moving on")
        self._advance(session)

    def _advance(self, session: QuizSession) -> None:
        session.selected = UNANSWERED
        session.elapsed = 0
        if session.is_last:
            session.index = session.total_questions
            self._transition(QuizState.QUIZ_FINISHED)
            return
        session.index += 1
        self.last_answer_correct = None

    # Results ---------------------------------------------------------------
    def results(self) -> QuizResults:
        session = self.session
        if session is None:
            return QuizResults(0, 0, 0, 0)
        return QuizResults(
            correct=session.tally.correct,
            wrong=session.tally.wrong,
            seconds_used=session.tally.seconds_used,
            total_questions=session.total_questions,
        )

    def restart(self) -> None:
        """Discard the session and return to the intro (the retry path)."""

        self._reset()
