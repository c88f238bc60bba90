"""Git source refresh for configured projects."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..logging import project_logger
from ..models import ProjectEntry
from ..process import CommandError, CommandResult, CommandRunner, run_checked, run_command


class UpdateError(CommandError):
    """Raised when a project's sources could not be refreshed."""


class Updater:
    """Clones or fast-forwards project checkouts."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._runner = runner or run_command
        self.timeout = timeout

    def update(self, entry: ProjectEntry) -> bool:
        """Refresh the checkout behind ``entry``.

        Returns ``False`` when the project declares no repository and nothing
        was done.
        """
        log = project_logger(entry.public_path)
        repo_url = entry.config.repo
        if not repo_url:
            log.debug("Skipping update (no repo URL)")
            return False

        target = entry.source_dir
        if not target.exists():
            self._clone(repo_url, target, entry.config.branch, log)
        elif not (target / ".git").exists():
            raise UpdateError(f"{target} exists but is not a Git repository")
        else:
            self._pull(target, entry.config.branch, log)
        return True

    # ------------------------------------------------------------------
    # Helpers

    def _clone(
        self, repo_url: str, target: Path, branch: Optional[str], log: logging.Logger
    ) -> None:
        log.info("Cloning %s into %s", repo_url, target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise UpdateError(
                f"Could not create {target.parent} for git clone of {repo_url}: {exc}",
                kind="spawn",
            ) from exc
        args: List[str] = ["git", "clone"]
        if branch:
            args.extend(["--branch", branch])
        args.extend([repo_url, str(target)])
        self._run(args, cwd=target.parent, action=f"git clone of {repo_url}")

    def _pull(self, target: Path, branch: Optional[str], log: logging.Logger) -> None:
        log.info("Fast-forwarding %s", target)
        args = ["git", "pull", "--ff-only"]
        if branch:
            args.extend(["origin", branch])
        result = self._run(args, cwd=target, action=f"git pull in {target}")
        if "Already up" in result.output:
            log.info("Already up to date")

    def _run(self, args: List[str], *, cwd: Path, action: str) -> CommandResult:
        return run_checked(
            self._runner,
            args,
            cwd=cwd,
            timeout=self.timeout,
            error_cls=UpdateError,
            action=action,
            env=self._git_env(),
        )

    @staticmethod
    def _git_env() -> Dict[str, str]:
        env = os.environ.copy()
        # Fail instead of blocking on a credential prompt.
        env.setdefault("GIT_TERMINAL_PROMPT", "0")
        return env


__all__ = ["UpdateError", "Updater"]
