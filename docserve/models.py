"""Core data models shared across docserve components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional

from .config import BuildSystem, ProjectConfig

INDEX_FILE = "index.html"
# rustdoc support directories that never hold a crate landing page.
_NON_LANDING_DIRS = frozenset({"src", "static.files", "implementors", "trait.impl", "type.impl", "search.desc"})


class EntryStatus(str, Enum):
    """Outcome of the startup pipeline for one project."""

    OK = "ok"
    UPDATE_FAILED = "update-failed"
    BUILD_FAILED = "build-failed"
    MISSING_OUTPUT = "missing-output"
    NOT_BUILT = "not-built"


@dataclass
class ProjectEntry:
    """One documentation-hosting unit.

    Filled in by the orchestrator and treated as read-only once the route
    table has been handed to the server.
    """

    config: ProjectConfig
    source_dir: Path
    public_path: str
    output_dir: Optional[Path] = None
    status: EntryStatus = EntryStatus.NOT_BUILT
    detail: Optional[str] = None

    @property
    def build_system(self) -> BuildSystem:
        return self.config.build_system

    @property
    def index_path(self) -> Optional[Path]:
        """Landing page of the generated docs, if one exists on disk."""
        if self.output_dir is None:
            return None
        return find_index(self.output_dir)

    def has_index(self) -> bool:
        return self.index_path is not None


def find_index(output_dir: Path) -> Optional[Path]:
    """Return the docs landing page under ``output_dir``.

    Most toolchains write ``index.html`` at the top level. rustdoc only
    writes one per crate (``target/doc/<crate>/index.html``), so the first
    child directory holding an index is used as a fallback.
    """
    top = output_dir / INDEX_FILE
    if top.is_file():
        return top
    if not output_dir.is_dir():
        return None
    for child in sorted(output_dir.iterdir()):
        if child.name.startswith(".") or child.name in _NON_LANDING_DIRS:
            continue
        nested = child / INDEX_FILE
        if child.is_dir() and nested.is_file():
            return nested
    return None


class RouteTable(Mapping[str, str]):
    """Immutable mapping of public path to absolute documentation directory."""

    def __init__(self, entries: Iterable[ProjectEntry]) -> None:
        by_path = {}
        for entry in entries:
            if entry.public_path in by_path:
                raise ValueError(f"Duplicate public path '{entry.public_path}'")
            by_path[entry.public_path] = entry
        self._entries: Mapping[str, ProjectEntry] = MappingProxyType(by_path)

    def __getitem__(self, public_path: str) -> str:
        entry = self._entries[public_path]
        if entry.output_dir is None:
            raise KeyError(public_path)
        return str(entry.output_dir)

    def __iter__(self) -> Iterator[str]:
        return (path for path, entry in self._entries.items() if entry.output_dir is not None)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def entry(self, public_path: str) -> Optional[ProjectEntry]:
        return self._entries.get(public_path)

    def entries(self) -> List[ProjectEntry]:
        """Return all entries sorted by public path."""
        return [self._entries[path] for path in sorted(self._entries)]

    def failed(self) -> List[ProjectEntry]:
        return [entry for entry in self.entries() if entry.status is not EntryStatus.OK]

    def __repr__(self) -> str:
        return f"RouteTable({dict(self)!r})"


__all__ = ["EntryStatus", "INDEX_FILE", "ProjectEntry", "RouteTable", "find_index"]
