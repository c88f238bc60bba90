"""Configuration loading for docserve (config.toml)."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional, Tuple

DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "DOCSERVE_CONFIG"
DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_COMMAND_TIMEOUT = 600.0


class ConfigError(RuntimeError):
    """Raised when the configuration is malformed or inconsistent."""


class MissingOutputPath(ConfigError):
    """Raised when a project gives no way to locate its generated docs."""


class BuildSystem(str, Enum):
    """Supported documentation toolchains."""

    GRADLE = "gradle"
    CARGO = "cargo"
    ZIG = "zig"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ProjectConfig:
    """A single `[[projects]]` table from config.toml."""

    path: str
    build_system: BuildSystem
    repo: Optional[str] = None
    build_command: Optional[str] = None
    doc_output: Optional[str] = None
    branch: Optional[str] = None


@dataclass(frozen=True)
class ServerConfig:
    """Process-wide settings for the documentation server."""

    libs_path: Path
    projects: Tuple[ProjectConfig, ...] = field(default_factory=tuple)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    update_on_start: bool = False
    build_on_start: bool = True
    command_timeout: Optional[float] = DEFAULT_COMMAND_TIMEOUT
    jobs: int = 1


def default_config_path() -> Path:
    """Return the config location from the environment or the working directory."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return Path.cwd() / DEFAULT_CONFIG_NAME


def load_config(config_path: Path) -> ServerConfig:
    """Load and validate configuration from disk."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        data = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse {config_file.name}: {exc}") from exc

    return parse_config(data, root=config_file.parent)


def parse_config(data: Dict[str, Any], *, root: Path) -> ServerConfig:
    """Validate an already-parsed mapping into a ServerConfig.

    Relative ``libs_path`` values are anchored at ``root`` (normally the
    directory holding the config file).
    """
    libs_raw = _as_str(data.get("libs_path"))
    if not libs_raw:
        raise ConfigError("`libs_path` is required")
    libs_path = Path(libs_raw).expanduser()
    if not libs_path.is_absolute():
        libs_path = root / libs_path
    libs_path = libs_path.resolve()

    port = _as_int(data.get("port"), "port", default=DEFAULT_PORT)
    if not 0 < port < 65536:
        raise ConfigError(f"`port` must be between 1 and 65535, got {port}")

    jobs = _as_int(data.get("jobs"), "jobs", default=1)
    if jobs < 1:
        raise ConfigError("`jobs` must be at least 1")

    timeout = _as_float(data.get("command_timeout"), "command_timeout", default=DEFAULT_COMMAND_TIMEOUT)
    if timeout is not None and timeout <= 0:
        # Non-positive timeouts disable the limit.
        timeout = None

    raw_projects = data.get("projects")
    if raw_projects is None:
        raise ConfigError("At least one `[[projects]]` entry is required")
    if not isinstance(raw_projects, list):
        raise ConfigError("`projects` must be an array of tables")
    projects = tuple(
        _parse_project(item, index) for index, item in enumerate(raw_projects)
    )

    return ServerConfig(
        libs_path=libs_path,
        projects=projects,
        host=_as_str(data.get("host")) or DEFAULT_HOST,
        port=port,
        update_on_start=_as_bool(data.get("update_on_start"), "update_on_start", default=False),
        build_on_start=_as_bool(data.get("build_on_start"), "build_on_start", default=True),
        command_timeout=timeout,
        jobs=jobs,
    )


def _parse_project(item: Any, index: int) -> ProjectConfig:
    label = f"projects[{index}]"
    if not isinstance(item, dict):
        raise ConfigError(f"{label} must be a table")

    path = _as_str(item.get("path"))
    if not path:
        raise ConfigError(f"{label}: `path` is required")
    label = f"project '{path}'"

    system_raw = _as_str(item.get("build_system"))
    if not system_raw:
        raise ConfigError(f"{label}: `build_system` is required")
    try:
        build_system = BuildSystem(system_raw.lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in BuildSystem)
        raise ConfigError(
            f"{label}: unknown build_system '{system_raw}' (expected one of: {choices})"
        ) from exc

    build_command = _as_str(item.get("build_command"))
    if build_system is BuildSystem.CUSTOM and not build_command:
        raise ConfigError(f"{label}: `build_command` is required for custom builds")
    if build_system is not BuildSystem.CUSTOM and build_command:
        raise ConfigError(
            f"{label}: `build_command` is only allowed with build_system = \"custom\""
        )

    doc_output = _as_str(item.get("doc_output"))
    if doc_output is not None:
        _check_doc_output(label, doc_output)
    elif build_system is BuildSystem.CUSTOM:
        raise MissingOutputPath(
            f"{label}: custom builds must declare `doc_output` so the generated docs can be found"
        )

    return ProjectConfig(
        path=path,
        build_system=build_system,
        repo=_as_str(item.get("repo")) or None,
        build_command=build_command,
        doc_output=doc_output,
        branch=_as_str(item.get("branch")) or None,
    )


def _check_doc_output(label: str, doc_output: str) -> None:
    candidate = PurePosixPath(doc_output.replace("\\", "/"))
    if not doc_output.strip() or candidate.is_absolute() or ".." in candidate.parts:
        raise ConfigError(
            f"{label}: `doc_output` must be a relative path inside the project, got '{doc_output}'"
        )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / DEFAULT_CONFIG_NAME).resolve()
    return config_path.resolve()


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip()
    return None


def _as_int(value: Any, name: str, *, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"`{name}` must be an integer")
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"`{name}` must be an integer, got '{value}'") from exc


def _as_float(value: Any, name: str, *, default: Optional[float]) -> Optional[float]:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigError(f"`{name}` must be a number")
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"`{name}` must be a number, got '{value}'") from exc


def _as_bool(value: Any, name: str, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"`{name}` must be a boolean")


__all__ = [
    "BuildSystem",
    "ConfigError",
    "MissingOutputPath",
    "ProjectConfig",
    "ServerConfig",
    "default_config_path",
    "load_config",
    "parse_config",
]
