"""Scriptable stand-in for external processes (git, gradle, cargo, ...)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from docserve.process import CommandResult


@dataclass
class RecordedCall:
    args: List[str]
    cwd: Path
    timeout: Optional[float]
    env: Optional[Mapping[str, str]]


@dataclass
class _Rule:
    prefix: Sequence[str]
    returncode: int = 0
    output: str = ""
    raises: Optional[BaseException] = None
    effect: Optional[Callable[[Path, List[str]], None]] = None
    cwd_name: Optional[str] = None

    def matches(self, args: Sequence[str], cwd: Path) -> bool:
        if list(args[: len(self.prefix)]) != list(self.prefix):
            return False
        return self.cwd_name is None or cwd.name == self.cwd_name


@dataclass
class FakeRunner:
    """Records every invocation and answers with the first matching rule.

    Unmatched commands succeed with empty output.
    """

    calls: List[RecordedCall] = field(default_factory=list)
    _rules: List[_Rule] = field(default_factory=list)

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        output: str = "",
        raises: Optional[BaseException] = None,
        effect: Optional[Callable[[Path, List[str]], None]] = None,
        cwd_name: Optional[str] = None,
    ) -> "FakeRunner":
        self._rules.append(
            _Rule(
                prefix=prefix,
                returncode=returncode,
                output=output,
                raises=raises,
                effect=effect,
                cwd_name=cwd_name,
            )
        )
        return self

    def __call__(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        argv = list(args)
        cwd = Path(cwd)
        self.calls.append(RecordedCall(args=argv, cwd=cwd, timeout=timeout, env=env))
        for rule in self._rules:
            if not rule.matches(argv, cwd):
                continue
            if rule.raises is not None:
                raise rule.raises
            if rule.effect is not None:
                rule.effect(cwd, argv)
            return CommandResult(args=tuple(argv), returncode=rule.returncode, output=rule.output)
        return CommandResult(args=tuple(argv), returncode=0, output="")

    def commands(self) -> List[List[str]]:
        return [call.args for call in self.calls]


def write_docs(relative: str, body: str = "<html>docs</html>") -> Callable[[Path, List[str]], None]:
    """Build an effect that writes ``index.html`` under ``relative`` of the cwd."""

    def _effect(cwd: Path, _args: List[str]) -> None:
        target = cwd / relative
        target.mkdir(parents=True, exist_ok=True)
        (target / "index.html").write_text(body, encoding="utf-8")

    return _effect


__all__ = ["FakeRunner", "RecordedCall", "write_docs"]
