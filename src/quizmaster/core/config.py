"""Shared TOML configuration helpers for quizmaster commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import tomllib

__all__ = [
    "TomlConfigError",
    "find_config_path",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """A config file is missing, unreadable or does not match the defaults."""


def find_config_path(
    explicit: Optional[str],
    *,
    filename: str,
    env_var: str,
    env: Mapping[str, str] | None = None,
    cwd: Optional[Path] = None,
) -> Optional[Path]:
    """Locate a config file: explicit path, then ``env_var``, then the cwd.

    An explicit path that does not exist is an error; the environment and
    working-directory candidates are optional and yield ``None`` when absent.
    """

    env_map = os.environ if env is None else env
    if explicit:
        path = Path(explicit).expanduser().resolve()
        if not path.exists():
            raise TomlConfigError(f"Config file not found: {path}")
        return path
    override = env_map.get(env_var)
    if override:
        path = Path(override).expanduser().resolve()
        if not path.exists():
            raise TomlConfigError(
                f"Config file from {env_var} not found: {path}"
            )
        return path
    candidate = (cwd or Path.cwd()) / filename
    if candidate.exists():
        return candidate.resolve()
    return None


def load_toml(path: Path) -> Mapping[str, Any]:
    """Parse ``path`` as TOML, reporting IO and syntax problems uniformly."""

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(
            f"Failed to parse config TOML in {path}: {exc}"
        ) from exc


def _dotted(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> MutableMapping[str, Any]:
    """Overlay ``override`` onto the defaults tree ``base`` in place.

    Only keys already present in ``base`` are accepted, so a typo in
    ``quizmaster.toml`` fails loudly instead of being ignored. Sections
    (tables) merge recursively; every other value replaces the default.
    """

    for key, value in override.items():
        dotted = _dotted(path, key)
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        if not isinstance(base[key], MutableMapping):
            base[key] = value
            continue
        if not isinstance(value, Mapping):
            raise TomlConfigError(
                f"Expected table for '{dotted}', "
                f"found {type(value).__name__}."
            )
        merge_defaults(base[key], value, path=dotted)
    return base


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write a config template, refusing to clobber unless ``overwrite``."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(mode)
    except OSError:  # pragma: no cover - e.g. filesystems without modes
        pass
    return path
