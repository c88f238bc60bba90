"""Request-time lookup of documentation artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..models import INDEX_FILE, EntryStatus, ProjectEntry, RouteTable


class RouteNotFound(LookupError):
    """Raised when a request names a public path that is not configured."""

    def __init__(self, public_path: str) -> None:
        super().__init__(f"No documentation is hosted at /{public_path}/")
        self.public_path = public_path


class PathTraversal(PermissionError):
    """Raised when a requested file would resolve outside its project's output."""


class MissingArtifact(FileNotFoundError):
    """Raised when a route exists but the requested documentation file does not."""

    def __init__(self, entry: ProjectEntry, relative: str, message: str) -> None:
        super().__init__(message)
        self.entry = entry
        self.relative = relative

    def diagnostic(self) -> str:
        """Plain-text body explaining why the page is unavailable."""
        lines = [str(self)]
        detail = self.entry.detail
        if detail and self.entry.status is not EntryStatus.OK:
            lines.extend(["", detail])
        return "\n".join(lines) + "\n"


def lookup_entry(routes: RouteTable, public_path: str) -> ProjectEntry:
    entry = routes.entry(public_path)
    if entry is None:
        raise RouteNotFound(public_path)
    return entry


def landing_redirect(entry: ProjectEntry) -> Optional[str]:
    """Return the URL of a nested landing page when the output root has none.

    Relative links inside generated docs only work when the page is served
    from its own directory, so nested landing pages are redirected to rather
    than served in place.
    """
    if entry.output_dir is None or (entry.output_dir / INDEX_FILE).is_file():
        return None
    index = entry.index_path
    if index is None:
        return None
    relative = index.parent.relative_to(entry.output_dir).as_posix()
    return f"/{entry.public_path}/{relative}/"


def resolve_artifact(entry: ProjectEntry, relative: str) -> Path:
    """Map a request path below ``/{public_path}/`` to a file on disk.

    Traversal outside the output directory is rejected before any existence
    check. Directories resolve to their ``index.html``.
    """
    if entry.output_dir is None:
        raise MissingArtifact(entry, relative, _unavailable_message(entry))

    root = entry.output_dir.resolve()
    candidate = (root / relative).resolve() if relative else root
    if not candidate.is_relative_to(root):
        raise PathTraversal(f"Refusing to serve '{relative}' outside /{entry.public_path}/")

    if not entry.has_index():
        raise MissingArtifact(entry, relative, _unavailable_message(entry))

    if candidate.is_dir():
        candidate = candidate / INDEX_FILE
    if not candidate.is_file():
        raise MissingArtifact(
            entry,
            relative,
            f"'{relative or INDEX_FILE}' was not found in the documentation for /{entry.public_path}/",
        )
    return candidate


def _unavailable_message(entry: ProjectEntry) -> str:
    name = entry.config.path
    status = entry.status
    if status is EntryStatus.BUILD_FAILED:
        return f"Documentation for {name} is unavailable: the build failed."
    if status is EntryStatus.UPDATE_FAILED:
        return f"Documentation for {name} is unavailable: updating the sources failed and no earlier build was found."
    if status is EntryStatus.MISSING_OUTPUT:
        return f"Documentation for {name} is unavailable: the build finished without producing {INDEX_FILE} in {entry.output_dir}."
    if status is EntryStatus.NOT_BUILT:
        return f"Documentation for {name} has never been built (expected {entry.output_dir / INDEX_FILE})."
    # Output disappeared after a successful startup build.
    return f"Documentation for {name} is missing from {entry.output_dir}."


__all__ = [
    "MissingArtifact",
    "PathTraversal",
    "RouteNotFound",
    "landing_redirect",
    "lookup_entry",
    "resolve_artifact",
]
