from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import ChatClientStub, question_payload  # noqa: E402

from quizmaster.models import Question  # noqa: E402
from quizmaster.provider.generation import GenerationStage  # noqa: E402
from quizmaster.settings import AppConfig, load_settings  # noqa: E402


@pytest.fixture
def chat_client() -> ChatClientStub:
    """A fresh OpenAI-style client stub with no queued responses."""

    return ChatClientStub()


@pytest.fixture
def settings(tmp_path: Path) -> AppConfig:
    """Default settings with logs pointed at the per-test tmp directory."""

    cfg = tmp_path / "quizmaster.toml"
    cfg.write_text(
        f'[logging]\nlog_dir = "{(tmp_path / "logs").as_posix()}"\n',
        encoding="utf-8",
    )
    return load_settings(str(cfg), env={})


@pytest.fixture
def questions() -> List[Question]:
    return [Question.from_dict(item) for item in question_payload(3)]


@pytest.fixture
def make_stage() -> Callable[..., GenerationStage]:
    """Build a stage that returns ``text`` or raises ``error``.

    Prompts the stage receives are appended to ``prompts`` when given.
    """

    def _factory(
        name: str = "primary",
        *,
        text: str = "",
        error: Optional[Exception] = None,
        prompts: Optional[List[str]] = None,
    ) -> GenerationStage:
        def _generate(prompt: str) -> str:
            if prompts is not None:
                prompts.append(prompt)
            if error is not None:
                raise error
            return text

        return GenerationStage(
            name=name, source=f"{name}-service", generate=_generate
        )

    return _factory
