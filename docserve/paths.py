"""Public path sanitization and source directory resolution."""

from __future__ import annotations

import os
from pathlib import Path

from .config import ConfigError


class InvalidProjectPath(ConfigError):
    """Raised when a configured project path cannot be served safely."""


def sanitize(raw: str) -> str:
    """Return the URL segment used to publish the project at ``raw``.

    ASCII letters and digits are kept (lowercased); every run of anything
    else, including separators, dots and control characters, collapses to a
    single ``-``. Leading and trailing dashes are dropped, so the result
    never contains ``..`` or ``/`` and sanitizing it again is a no-op.
    """
    chars: list[str] = []
    last_was_dash = False
    for char in raw:
        if char.isascii() and char.isalnum():
            chars.append(char.lower())
            last_was_dash = False
        elif not last_was_dash:
            chars.append("-")
            last_was_dash = True

    sanitized = "".join(chars).strip("-")
    if not sanitized:
        raise InvalidProjectPath(f"Project path '{raw}' has no usable characters")
    return sanitized


def resolve_source_dir(base: Path, raw: str) -> Path:
    """Join ``raw`` under ``base`` and ensure the result stays inside it."""
    if not raw.strip():
        raise InvalidProjectPath("Project path must not be empty")
    if any(ord(char) < 32 for char in raw):
        raise InvalidProjectPath(f"Project path {raw!r} contains control characters")

    relative = Path(raw)
    if relative.is_absolute() or relative.drive:
        raise InvalidProjectPath(f"Project path '{raw}' must be relative to libs_path")

    base_dir = Path(os.path.abspath(base))
    candidate = Path(os.path.normpath(base_dir / relative))
    if candidate == base_dir or not candidate.is_relative_to(base_dir):
        raise InvalidProjectPath(f"Project path '{raw}' escapes libs_path {base_dir}")
    return candidate


__all__ = ["InvalidProjectPath", "resolve_source_dir", "sanitize"]
