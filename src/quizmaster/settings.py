"""Configuration management for the quiz server and terminal client.

Settings live in ``quizmaster.toml``. The file is optional: built-in defaults
describe a two-stage generation chain (OpenAI first, Gemini's
OpenAI-compatible endpoint second) and a 60 second per-question timer.
"""

from __future__ import annotations

import argparse
import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from .core.config import (
    TomlConfigError,
    find_config_path,
    load_toml,
    merge_defaults,
    write_toml_template,
)

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "AppConfig",
    "ConfigError",
    "GenerationConfig",
    "LoggingConfig",
    "QuizConfig",
    "ServerConfig",
    "StageConfig",
    "config_template",
    "default_tree",
    "load_settings",
    "main",
]

CONFIG_FILENAME = "quizmaster.toml"
CONFIG_PATH_ENV = "QUIZMASTER_CONFIG"


class ConfigError(TomlConfigError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int


@dataclass(frozen=True)
class StageConfig:
    """One external text-generation service in the fallback chain."""

    name: str
    enabled: bool
    model: str
    api_key_env: str
    api_base: Optional[str]
    temperature: float
    max_tokens: int
    request_timeout_seconds: int


@dataclass(frozen=True)
class GenerationConfig:
    default_question_count: int
    max_question_count: int
    primary: StageConfig
    secondary: StageConfig

    @property
    def stages(self) -> tuple[StageConfig, ...]:
        return (self.primary, self.secondary)


@dataclass(frozen=True)
class QuizConfig:
    time_limit_seconds: int
    countdown_seconds: int
    question_count: int
    server_url: str
    request_timeout_seconds: int
    subjects: tuple[str, ...]
    levels: tuple[str, ...]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool
    log_dir: Path


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig
    generation: GenerationConfig
    quiz: QuizConfig
    logging: LoggingConfig
    source_path: Optional[Path] = None


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None or value == "":
        return None
    return _require_string(value, field=field)


def _require_string_list(value: Any, *, field: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"'{field}' must be a non-empty list of strings.")
    items = tuple(
        _require_string(item, field=f"{field}[{idx}]")
        for idx, item in enumerate(value)
    )
    if len(set(items)) != len(items):
        raise ConfigError(f"'{field}' must not contain duplicates.")
    return items


def _build_server(section: Mapping[str, Any]) -> ServerConfig:
    host = _require_string(section.get("host"), field="server.host")
    port = _require_positive_int(section.get("port"), field="server.port")
    if port > 65535:
        raise ConfigError("'server.port' must be at most 65535.")
    return ServerConfig(host=host, port=port)


def _build_stage(name: str, section: Mapping[str, Any]) -> StageConfig:
    prefix = f"generation.{name}"
    return StageConfig(
        name=name,
        enabled=_require_bool(
            section.get("enabled"), field=f"{prefix}.enabled"
        ),
        model=_require_string(section.get("model"), field=f"{prefix}.model"),
        api_key_env=_require_string(
            section.get("api_key_env"), field=f"{prefix}.api_key_env"
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field=f"{prefix}.api_base"
        ),
        temperature=_require_float_range(
            section.get("temperature"),
            field=f"{prefix}.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=_require_positive_int(
            section.get("max_tokens"), field=f"{prefix}.max_tokens"
        ),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field=f"{prefix}.request_timeout_seconds",
        ),
    )


def _build_generation(section: Mapping[str, Any]) -> GenerationConfig:
    default_count = _require_positive_int(
        section.get("default_question_count"),
        field="generation.default_question_count",
    )
    max_count = _require_positive_int(
        section.get("max_question_count"),
        field="generation.max_question_count",
    )
    if default_count > max_count:
        raise ConfigError(
            "generation.default_question_count must not exceed "
            "max_question_count."
        )
    return GenerationConfig(
        default_question_count=default_count,
        max_question_count=max_count,
        primary=_build_stage("primary", section["primary"]),
        secondary=_build_stage("secondary", section["secondary"]),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        time_limit_seconds=_require_positive_int(
            section.get("time_limit_seconds"), field="quiz.time_limit_seconds"
        ),
        countdown_seconds=_require_positive_int(
            section.get("countdown_seconds"), field="quiz.countdown_seconds"
        ),
        question_count=_require_positive_int(
            section.get("question_count"), field="quiz.question_count"
        ),
        server_url=_require_string(
            section.get("server_url"), field="quiz.server_url"
        ).rstrip("/"),
        request_timeout_seconds=_require_positive_int(
            section.get("request_timeout_seconds"),
            field="quiz.request_timeout_seconds",
        ),
        subjects=_require_string_list(
            section.get("subjects"), field="quiz.subjects"
        ),
        levels=_require_string_list(section.get("levels"), field="quiz.levels"),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    log_dir = _require_string(section.get("log_dir"), field="logging.log_dir")
    return LoggingConfig(
        level=level,
        verbose=verbose,
        log_dir=Path(log_dir).expanduser(),
    )


def _build_config(
    tree: Mapping[str, Any], source_path: Optional[Path]
) -> AppConfig:
    return AppConfig(
        server=_build_server(tree["server"]),
        generation=_build_generation(tree["generation"]),
        quiz=_build_quiz(tree["quiz"]),
        logging=_build_logging(tree["logging"]),
        source_path=source_path,
    )


def load_settings(
    explicit_path: Optional[str] = None,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Optional[Path] = None,
) -> AppConfig:
    """Load settings, applying defaults and validation.

    The file is looked up via ``explicit_path``, then ``QUIZMASTER_CONFIG``,
    then ``./quizmaster.toml``. Without a file, defaults are used as-is.
    """

    tree = default_tree()
    try:
        path = find_config_path(
            explicit_path,
            filename=CONFIG_FILENAME,
            env_var=CONFIG_PATH_ENV,
            env=env,
            cwd=cwd,
        )
        if path is not None:
            data = load_toml(path)
            merge_defaults(tree, data)
    except ConfigError:
        raise
    except TomlConfigError as exc:
        raise ConfigError(str(exc)) from exc
    return _build_config(tree, path)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for ``quizmaster init``."""

    parser = argparse.ArgumentParser(
        prog="quizmaster init",
        description="Write a quizmaster.toml template",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--path", default=CONFIG_FILENAME)
    parser.add_argument("--force", action="store_true")
    args = parser.parse_args(argv)
    target = Path(args.path).expanduser().resolve()
    try:
        write_toml_template(
            target, template=config_template(), overwrite=args.force
        )
    except TomlConfigError as exc:
        print(f"Error: {exc}")
        return 2
    print(f"Created template {target}")
    return 0


_DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "generation": {
        "default_question_count": 10,
        "max_question_count": 50,
        "primary": {
            "enabled": True,
            "model": "gpt-4o-mini",
            "api_key_env": "OPENAI_API_KEY",
            "api_base": None,
            "temperature": 0.7,
            "max_tokens": 2000,
            "request_timeout_seconds": 60,
        },
        "secondary": {
            "enabled": True,
            "model": "gemini-1.5-flash",
            "api_key_env": "GEMINI_API_KEY",
            "api_base": (
                "https://generativelanguage.googleapis.com/v1beta/openai/"
            ),
            "temperature": 0.7,
            "max_tokens": 2000,
            "request_timeout_seconds": 60,
        },
    },
    "quiz": {
        "time_limit_seconds": 60,
        "countdown_seconds": 3,
        "question_count": 10,
        "server_url": "http://127.0.0.1:8000",
        "request_timeout_seconds": 120,
        "subjects": [
            "Mathematics",
            "Science",
            "History",
            "General Knowledge",
            "Machine Learning",
        ],
        "levels": ["Easy", "Medium", "Hard"],
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
        "log_dir": "./logs",
    },
}


_CONFIG_TEMPLATE = """
# quizmaster configuration

[server]
host = "127.0.0.1"
port = 8000

[generation]
# Used when a request omits numberOfQuestions
default_question_count = 10
# Requests asking for more are clamped to this value
max_question_count = 50

[generation.primary]
enabled = true
model = "gpt-4o-mini"
# Environment variable holding the API key (.env is honoured)
api_key_env = "OPENAI_API_KEY"
# api_base = "https://api.openai.com/v1"
temperature = 0.7
max_tokens = 2000
request_timeout_seconds = 60

[generation.secondary]
# Any OpenAI-compatible chat completions endpoint works here
enabled = true
model = "gemini-1.5-flash"
api_key_env = "GEMINI_API_KEY"
api_base = "https://generativelanguage.googleapis.com/v1beta/openai/"
temperature = 0.7
max_tokens = 2000
request_timeout_seconds = 60

[quiz]
# Seconds allowed per question
time_limit_seconds = 60
# Lead-in before the Go button unlocks
countdown_seconds = 3
question_count = 10
server_url = "http://127.0.0.1:8000"
request_timeout_seconds = 120
subjects = [
    "Mathematics",
    "Science",
    "History",
    "General Knowledge",
    "Machine Learning",
]
levels = ["Easy", "Medium", "Hard"]

[logging]
level = "INFO"
verbose = false
log_dir = "./logs"
"""
