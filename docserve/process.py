"""External process execution shared by the updater and builder."""

from __future__ import annotations

import contextlib
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Sequence, Type

_OUTPUT_TAIL_CHARS = 4000


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of a finished process."""

    args: Sequence[str]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[..., CommandResult]


class CommandError(RuntimeError):
    """Base class for failures of an external command run on behalf of a project.

    ``kind`` is ``"exit"`` for a non-zero exit status, ``"timeout"`` when the
    process was killed after exceeding its time limit and ``"spawn"`` when it
    could not be started at all. ``returncode`` is only set for ``"exit"``.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: Optional[int] = None,
        output: str = "",
        kind: str = "exit",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output
        self.kind = kind

    def summary(self) -> str:
        """Return the message followed by the tail of the captured output."""
        tail = output_tail(self.output)
        if not tail:
            return str(self)
        return f"{self}\n{tail}"


def run_command(
    args: Iterable[str],
    *,
    cwd: Path,
    timeout: Optional[float] = None,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``args`` in ``cwd`` and capture its combined output.

    The child leads its own process group. When ``timeout`` elapses the whole
    group is killed, including anything the command forked, and
    ``subprocess.TimeoutExpired`` is raised with the output produced so far.
    ``OSError`` is raised when the executable cannot be started. Non-zero
    exit codes are returned, not raised.
    """
    argv = list(args)
    with subprocess.Popen(
        argv,
        cwd=str(cwd),
        env=dict(env) if env is not None else None,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        start_new_session=True,
    ) as proc:
        try:
            output, _ = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            _kill_process_group(proc)
            output, _ = proc.communicate()
            raise subprocess.TimeoutExpired(argv, exc.timeout, output=output) from None
        except BaseException:
            _kill_process_group(proc)
            raise
    return CommandResult(args=tuple(argv), returncode=proc.returncode, output=output or "")


def _kill_process_group(proc: subprocess.Popen) -> None:
    # The group outlives its leader while any forked descendant is alive.
    with contextlib.suppress(ProcessLookupError):
        os.killpg(proc.pid, signal.SIGKILL)


def run_checked(
    runner: CommandRunner,
    args: Sequence[str],
    *,
    cwd: Path,
    timeout: Optional[float],
    error_cls: Type[CommandError],
    action: str,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run a command through ``runner`` and raise ``error_cls`` unless it succeeds."""
    command = format_command(args)
    try:
        result = runner(list(args), cwd=cwd, timeout=timeout, env=env)
    except subprocess.TimeoutExpired as exc:
        raise error_cls(
            f"{action} timed out after {exc.timeout:g}s: {command}",
            output=timeout_output(exc),
            kind="timeout",
        ) from exc
    except OSError as exc:
        raise error_cls(f"{action} could not start `{command}`: {exc}", kind="spawn") from exc

    if not result.ok:
        raise error_cls(
            f"{action} failed with exit status {result.returncode}: {command}",
            returncode=result.returncode,
            output=result.output,
        )
    return result


def format_command(args: Sequence[str]) -> str:
    """Render an argument vector the way a user would type it."""
    return shlex.join(list(args))


def output_tail(output: str, limit: int = _OUTPUT_TAIL_CHARS) -> str:
    cleaned = output.strip()
    if len(cleaned) <= limit:
        return cleaned
    return "…" + cleaned[-limit:]


def timeout_output(exc: subprocess.TimeoutExpired) -> str:
    """Return whatever output the killed process produced before the timeout."""
    captured = exc.output if exc.output is not None else exc.stdout
    if captured is None:
        return ""
    if isinstance(captured, bytes):
        return captured.decode("utf-8", errors="replace")
    return captured


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "format_command",
    "output_tail",
    "run_checked",
    "run_command",
    "timeout_output",
]
