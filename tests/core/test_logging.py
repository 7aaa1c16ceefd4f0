from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from quizmaster.core import logging as core_logging
from quizmaster.provider.generation import GenerationStage, generate_questions


def _records(path: Path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]


def _file_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in logger.handlers
        if type(h) is logging.StreamHandler
    ]


@pytest.fixture
def app_logger():
    """Configure the real ``quizmaster`` logger and undo it afterwards."""

    logger = logging.getLogger("quizmaster")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_generation_failures_are_logged_as_json_with_context(
    tmp_path, app_logger
):
    _, log_path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="provider.log"
    )

    def _broken(_prompt: str) -> str:
        raise TimeoutError("upstream timed out")

    result = generate_questions(
        "History",
        "Easy",
        2,
        [GenerationStage("primary", "primary-service", _broken)],
    )
    for handler in app_logger.handlers:
        handler.flush()

    assert result.source == "fallback"
    records = _records(log_path)
    failure = next(r for r in records if r["level"] == "WARNING")
    assert failure["logger"] == "quizmaster.provider.generation"
    assert "upstream timed out" in failure["message"]
    assert failure["extra"] == {"stage": "primary", "subject": "History"}
    fallback = records[-1]
    assert fallback["message"] == "Using 2 fallback questions for History"
    assert fallback["extra"] == {"subject": "History"}
    assert fallback["timestamp"].endswith("+00:00")


def test_exceptions_and_odd_extras_serialize(tmp_path, app_logger):
    logger, log_path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="errors.log"
    )

    class _Client:
        def __repr__(self) -> str:
            return "<client>"

    try:
        raise ValueError("bad payload")
    except ValueError:
        logger.exception(
            "Stage crashed",
            extra={
                "client": _Client(),
                "paths": (tmp_path, "x"),
                "counts": {1: 2},
            },
        )
    for handler in logger.handlers:
        handler.flush()

    (record,) = _records(log_path)
    assert "ValueError: bad payload" in record["exception"]
    assert record["extra"] == {
        "client": "<client>",
        "paths": [str(tmp_path), "x"],
        "counts": {"1": 2},
    }


def test_reconfigure_reuses_handler_for_same_path(tmp_path, app_logger):
    core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="server.log"
    )
    (first,) = _file_handlers(app_logger)

    _, path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="server.log"
    )

    assert _file_handlers(app_logger) == [first]
    assert path == tmp_path / "server.log"


def test_reconfigure_swaps_handler_for_new_path(tmp_path, app_logger):
    core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="server.log"
    )
    (first,) = _file_handlers(app_logger)

    _, path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, filename="client.log"
    )

    (second,) = _file_handlers(app_logger)
    assert second is not first
    assert Path(second.baseFilename) == path == tmp_path / "client.log"


def test_client_setup_keeps_console_silent(tmp_path, app_logger, capsys):
    # ``play`` reconfigures after a verbose run; the TUI must stay clean.
    core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, verbose=True, filename="client.log"
    )
    assert len(_console_handlers(app_logger)) == 1

    _, log_path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, verbose=False, filename="client.log"
    )
    logging.getLogger("quizmaster.client.api").warning("provider unreachable")
    for handler in app_logger.handlers:
        handler.flush()

    assert _console_handlers(app_logger) == []
    captured = capsys.readouterr()
    assert captured.err == ""
    assert captured.out == ""
    assert _records(log_path)[-1]["message"] == "provider unreachable"


def test_verbose_adds_single_console_handler(tmp_path, app_logger):
    for _ in range(2):
        core_logging.configure_logger(
            "quizmaster", log_dir=tmp_path, verbose=True, filename="v.log"
        )
    assert len(_console_handlers(app_logger)) == 1


def test_file_level_follows_config_unless_verbose(tmp_path, app_logger):
    logger, log_path = core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, level="WARNING", filename="lvl.log"
    )
    logger.info("hidden")
    logger.warning("shown")
    (file_handler,) = _file_handlers(logger)
    file_handler.flush()
    assert [r["message"] for r in _records(log_path)] == ["shown"]

    core_logging.configure_logger(
        "quizmaster",
        log_dir=tmp_path,
        level="WARNING",
        verbose=True,
        filename="lvl.log",
    )
    assert file_handler.level == logging.DEBUG


def test_unknown_level_name_falls_back_to_info(tmp_path, app_logger):
    core_logging.configure_logger(
        "quizmaster", log_dir=tmp_path, level="chatty", filename="x.log"
    )
    (file_handler,) = _file_handlers(app_logger)
    assert file_handler.level == logging.INFO


def test_unwritable_log_dir_uses_temp_location(
    tmp_path, monkeypatch, app_logger
):
    blocked = tmp_path / "blocked"
    original_mkdir = Path.mkdir

    def _mkdir(self, *args, **kwargs):
        if self == blocked:
            raise PermissionError("read-only volume")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", _mkdir)
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path / "tmp"))

    _, log_path = core_logging.configure_logger(
        "quizmaster", log_dir=blocked, filename="server.log"
    )

    assert log_path == tmp_path / "tmp" / "quizmaster-logs" / "server.log"
    assert log_path.exists()


def test_default_filename_is_last_logger_segment(tmp_path):
    logger, path = core_logging.configure_logger(
        "quizmaster.test_default_name", log_dir=tmp_path
    )
    assert path.name == "test_default_name.log"

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
