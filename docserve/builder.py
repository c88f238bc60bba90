"""Documentation build step for configured projects."""

from __future__ import annotations

from typing import Optional

from .config import ConfigError
from .logging import project_logger
from .models import ProjectEntry
from .process import CommandError, CommandResult, CommandRunner, format_command, run_checked, run_command
from .resolver import build_invocation


class BuildError(CommandError):
    """Raised when a project's documentation build did not succeed."""


class Builder:
    """Runs the documentation toolchain for a project in its source root."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._runner = runner or run_command
        self.timeout = timeout

    def build(self, entry: ProjectEntry) -> CommandResult:
        """Generate docs for ``entry``; artifacts are not checked here."""
        root = entry.source_dir
        if not root.is_dir():
            raise BuildError(f"Source directory {root} does not exist", kind="spawn")

        try:
            args = build_invocation(root, entry.config)
        except (FileNotFoundError, ConfigError) as exc:
            raise BuildError(str(exc), kind="spawn") from exc
        except ValueError as exc:
            # shlex rejects unbalanced quotes in custom commands.
            raise BuildError(f"Invalid build_command for {entry.config.path}: {exc}", kind="spawn") from exc

        log = project_logger(entry.public_path)
        log.info("Building docs: %s", format_command(args))
        result = run_checked(
            self._runner,
            args,
            cwd=root,
            timeout=self.timeout,
            error_cls=BuildError,
            action=f"{entry.build_system.value} build of {entry.config.path}",
        )
        log.debug("Build output:\n%s", result.output.strip())
        return result


__all__ = ["BuildError", "Builder"]
