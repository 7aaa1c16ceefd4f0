"""Core shared helpers for quizmaster commands."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    find_config_path,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "load_client",
    "TomlConfigError",
    "find_config_path",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "configure_logger",
    "JsonLogFormatter",
]
