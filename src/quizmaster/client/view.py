"""Textual front end for the quiz flow.

The app renders whichever state :class:`QuizController` is in. Only one
question timer exists at a time: it is stopped on every question change, on
selection and on unmount, so a tick never lands on a stale question.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Button, Footer, ProgressBar, Static

from ..models import Question
from .controller import QuizController, QuizResults, QuizState

QuestionFetcher = Callable[[str, str], Sequence[Question]]


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes:02d}:{secs:02d}"


def feedback_text(correct: Optional[bool], answer: str) -> str:
    if correct is None:
        return ""
    if correct:
        return "Correct!"
    return f"Wrong. The correct answer is: {answer}"


def results_lines(results: QuizResults) -> List[str]:
    return [
        f"Correct answers: {results.correct}",
        f"Wrong answers: {results.wrong}",
        f"Total time: {format_time(results.seconds_used)}",
        f"Questions: {results.total_questions}",
    ]


class QuestionView(Widget):
    """Render the active question with its timer, options and feedback."""

    DEFAULT_CSS = """
    QuestionView { height: auto; }
    """

    def __init__(
        self,
        question: Question,
        *,
        index: int,
        total: int,
        elapsed: int,
        time_limit: int,
        selected: int = -1,
        correct: Optional[bool] = None,
        heading: str = "",
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.elapsed = elapsed
        self.time_limit = time_limit
        self.selected = selected
        self.correct = correct
        self.heading = heading

    def option_classes(self, idx: int) -> List[str]:
        if self.selected < 0:
            return []
        classes = []
        if idx == self.question.correct_index:
            classes.append("correct")
        elif idx == self.selected:
            classes.append("wrong")
        if idx == self.selected:
            classes.append("selected")
        return classes

    def compose(self) -> ComposeResult:
        if self.heading:
            yield Static(self.heading, id="heading")
        yield Static(f"Question {self.index} / {self.total}", id="progress")
        with Horizontal(id="clock-row"):
            yield Static(format_time(self.elapsed), id="clock")
            yield ProgressBar(
                total=self.time_limit,
                show_eta=False,
                show_percentage=False,
                id="time-bar",
            )
            yield Static(format_time(self.time_limit), id="limit")
        yield Static(self.question.question, id="stem")
        with Vertical(id="options"):
            answered = self.selected >= 0
            for idx, option in enumerate(self.question.options):
                btn = Button(
                    f"{idx + 1}) {option}",
                    id=f"option-{idx}",
                    disabled=answered,
                )
                for name in self.option_classes(idx):
                    btn.add_class(name)
                yield btn
        yield Static(
            feedback_text(self.correct, self.question.correct_answer),
            id="feedback",
        )
        if self.selected >= 0:
            yield Button("Next Question", id="next", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#time-bar", ProgressBar).update(progress=self.elapsed)


class QuizApp(App):
    CSS = """
#stage { padding: 1 2; }
#title { text-style: bold; color: $accent; }
#options Button { width: 100%; }
Button.chosen { background: $accent; color: black; }
Button.correct { background: $success; }
Button.wrong { background: $error; }
Button.selected { text-style: bold reverse; }
#feedback { margin-top: 1; }
"""
    BINDINGS = [
        ("1", "select_option(0)", "Option 1"),
        ("2", "select_option(1)", "Option 2"),
        ("3", "select_option(2)", "Option 3"),
        ("4", "select_option(3)", "Option 4"),
        ("n", "next", "Next"),
        ("q", "quit_quiz", "Quit"),
    ]

    def __init__(
        self,
        controller: QuizController,
        fetch: QuestionFetcher,
        *,
        countdown_seconds: int = 3,
    ) -> None:
        super().__init__()
        self.controller = controller
        self._fetch = fetch
        self._countdown_seconds = countdown_seconds
        self._countdown_left = countdown_seconds
        self._question_timer: Optional[Timer] = None
        self._countdown_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield from self.stage_widgets()
        yield Footer()

    # Pure helpers for rendering each state (testable without running App)
    def stage_widgets(self) -> List[Widget]:
        ctrl = self.controller
        state = ctrl.state
        if state is QuizState.INTRO:
            return [
                Static("Quiz Time", id="title"),
                Static(
                    "Answer each question before the timer runs out. "
                    f"You have {format_time(ctrl.time_limit)} per question."
                ),
                Button("Get Started", id="start", variant="primary"),
            ]
        if state is QuizState.SUBJECT_SELECT:
            return self._selection_widgets()
        if state is QuizState.COUNTDOWN:
            ready = self._countdown_left <= 0
            return [
                Static(
                    "Go!" if ready else str(self._countdown_left),
                    id="countdown",
                ),
                Button("Go", id="go", variant="primary", disabled=not ready),
            ]
        if state is QuizState.QUIZ_LOADING:
            return [
                Static("Generating your quiz...", id="title"),
                Static(
                    f"Creating {ctrl.subject} questions at {ctrl.level} level"
                ),
            ]
        if state is QuizState.QUIZ_ERROR:
            return [
                Static("Something went wrong", id="title"),
                Static(ctrl.error or "No questions available", id="error"),
                Button("Try Again", id="retry", variant="error"),
            ]
        if state is QuizState.QUIZ_FINISHED:
            lines = results_lines(ctrl.results())
            return [
                Static("Quiz finished", id="title"),
                *[Static(line) for line in lines],
                Button("Done", id="done", variant="primary"),
            ]
        session = ctrl.session
        assert session is not None
        return [
            QuestionView(
                session.current,
                index=session.index + 1,
                total=session.total_questions,
                elapsed=session.elapsed,
                time_limit=session.time_limit,
                selected=session.selected,
                correct=ctrl.last_answer_correct if session.answered else None,
                heading=f"{ctrl.subject} Quiz - {ctrl.level} Level",
            )
        ]

    def choice_buttons(
        self, values: Sequence[str], chosen: Optional[str], prefix: str
    ) -> List[Button]:
        buttons = []
        for idx, value in enumerate(values):
            btn = Button(value, id=f"{prefix}-{idx}")
            if value == chosen:
                btn.add_class("chosen")
            buttons.append(btn)
        return buttons

    def _selection_widgets(self) -> List[Widget]:
        ctrl = self.controller
        subjects = self.choice_buttons(ctrl.subjects, ctrl.subject, "subject")
        levels = self.choice_buttons(ctrl.levels, ctrl.level, "level")
        return [
            Static("Select Your Subject and Level", id="title"),
            Static("Subject"),
            Vertical(*subjects, id="subjects"),
            Static("Difficulty Level"),
            Horizontal(*levels, id="levels"),
            Button(
                "Continue",
                id="continue",
                variant="primary",
                disabled=not ctrl.can_continue,
            ),
        ]

    async def _show_state(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except NoMatches:
            return
        await stage.remove_children()
        await stage.mount(*self.stage_widgets())

    # Timers ----------------------------------------------------------------
    def _stop_question_timer(self) -> None:
        if self._question_timer is not None:
            self._question_timer.stop()
            self._question_timer = None

    def _start_question_timer(self) -> None:
        self._stop_question_timer()
        if self.controller.timer_running:
            self._question_timer = self.set_interval(1.0, self._on_tick)

    def _stop_countdown_timer(self) -> None:
        if self._countdown_timer is not None:
            self._countdown_timer.stop()
            self._countdown_timer = None

    async def _on_tick(self) -> None:
        if self.controller.tick():
            await self._enter_question()
            return
        session = self.controller.session
        if session is None:
            return
        try:
            self.query_one("#clock", Static).update(
                format_time(session.elapsed)
            )
            self.query_one("#time-bar", ProgressBar).update(
                progress=session.elapsed
            )
        except NoMatches:
            return

    async def _countdown_step(self) -> None:
        self._countdown_left -= 1
        if self._countdown_left <= 0:
            self._stop_countdown_timer()
        await self._show_state()

    async def _enter_question(self) -> None:
        """Rebuild the stage and give the new question a fresh timer."""
        self._stop_question_timer()
        await self._show_state()
        self._start_question_timer()

    def on_unmount(self) -> None:
        self._stop_question_timer()
        self._stop_countdown_timer()

    # Loading ---------------------------------------------------------------
    @work(thread=True, exclusive=True)
    def _fetch_in_background(self, subject: str, level: str) -> None:
        error: Optional[Exception] = None
        questions: List[Question] = []
        try:
            questions = list(self._fetch(subject, level))
        except Exception as exc:  # surfaced through the controller
            error = exc
        self.call_from_thread(self._finish_loading, questions, error)

    async def _finish_loading(
        self, questions: List[Question], error: Optional[Exception]
    ) -> None:
        def _replay(_subject: str, _level: str) -> List[Question]:
            if error is not None:
                raise error
            return questions

        self.controller.load(_replay)
        await self._enter_question()

    # Actions ---------------------------------------------------------------
    async def begin_countdown(self) -> None:
        self.controller.confirm_selection()
        self._countdown_left = self._countdown_seconds
        self._stop_countdown_timer()
        self._countdown_timer = self.set_interval(1.0, self._countdown_step)
        await self._show_state()

    async def start_loading(self) -> None:
        self._stop_countdown_timer()
        self.controller.go()
        await self._show_state()
        subject, level = self.controller.subject, self.controller.level
        assert subject is not None and level is not None
        self._fetch_in_background(subject, level)

    async def action_select_option(self, index: int) -> None:
        session = self.controller.session
        if not self.controller.timer_running or session is None:
            return
        if not 0 <= index < len(session.current.options):
            return
        self._stop_question_timer()
        self.controller.select_option(index)
        await self._show_state()

    async def action_next(self) -> None:
        if self.controller.state is not QuizState.QUIZ_ACTIVE:
            return
        session = self.controller.session
        if session is None or not session.answered:
            return
        self.controller.next_question()
        await self._enter_question()

    def action_quit_quiz(self) -> None:
        self._stop_question_timer()
        result = (
            self.controller.results()
            if self.controller.state is QuizState.QUIZ_FINISHED
            else None
        )
        self.exit(result)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        ctrl = self.controller
        if bid == "start":
            ctrl.start()
            await self._show_state()
        elif bid.startswith("subject-"):
            ctrl.choose_subject(ctrl.subjects[int(bid.split("-", 1)[1])])
            await self._show_state()
        elif bid.startswith("level-"):
            ctrl.choose_level(ctrl.levels[int(bid.split("-", 1)[1])])
            await self._show_state()
        elif bid == "continue" and ctrl.can_continue:
            await self.begin_countdown()
        elif bid == "go":
            await self.start_loading()
        elif bid.startswith("option-"):
            await self.action_select_option(int(bid.split("-", 1)[1]))
        elif bid == "next":
            await self.action_next()
        elif bid == "retry":
            ctrl.restart()
            await self._show_state()
        elif bid == "done":
            self.action_quit_quiz()
