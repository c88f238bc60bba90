"""FastAPI application serving the documentation of every routed project."""

from __future__ import annotations

import html
from typing import Any, List, Optional

from fastapi import FastAPI
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel

from .. import __version__
from ..config import ServerConfig
from ..logging import get_logger
from ..models import EntryStatus, ProjectEntry, RouteTable
from .files import (
    MissingArtifact,
    PathTraversal,
    RouteNotFound,
    landing_redirect,
    lookup_entry,
    resolve_artifact,
)

_STATUS_COLOURS = {
    EntryStatus.OK: "#2da44e",
    EntryStatus.UPDATE_FAILED: "#bf8700",
    EntryStatus.BUILD_FAILED: "#cf222e",
    EntryStatus.MISSING_OUTPUT: "#cf222e",
    EntryStatus.NOT_BUILT: "#6e7781",
}


class HealthResponse(BaseModel):
    status: str


class ProjectStatus(BaseModel):
    public_path: str
    path: str
    url: str
    build_system: str
    status: str
    output_dir: Optional[str] = None
    detail: Optional[str] = None


def create_app(routes: RouteTable, *, title: str = "Documentation Server") -> FastAPI:
    """Create the FastAPI application for an already-orchestrated route table.

    Built-in endpoints live under ``/_`` so they can never shadow a project:
    sanitized public paths only contain lowercase letters, digits and dashes.
    """
    # /docs and /redoc stay free for projects.
    app = FastAPI(
        title=title,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.routes = routes
    logger = get_logger("service")

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(render_index(routes, title=title))

    @app.get("/_health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/_projects", response_model=List[ProjectStatus])
    async def projects() -> List[ProjectStatus]:
        return [_project_status(entry) for entry in routes.entries()]

    @app.get("/{public_path}")
    async def project_root(public_path: str) -> RedirectResponse:
        lookup_entry(routes, public_path)
        return RedirectResponse(f"/{public_path}/")

    @app.get("/{public_path}/{file_path:path}", response_model=None)
    def project_file(public_path: str, file_path: str) -> Any:
        entry = lookup_entry(routes, public_path)
        if not file_path:
            target = landing_redirect(entry)
            if target is not None:
                return RedirectResponse(target)
        return FileResponse(resolve_artifact(entry, file_path))

    @app.exception_handler(RouteNotFound)
    async def route_not_found_handler(_: Any, exc: RouteNotFound) -> PlainTextResponse:
        return PlainTextResponse(f"{exc}\n", status_code=404)

    @app.exception_handler(MissingArtifact)
    async def missing_artifact_handler(_: Any, exc: MissingArtifact) -> PlainTextResponse:
        if exc.entry.status is not EntryStatus.OK:
            logger.debug("Serving diagnostic for %s: %s", exc.entry.public_path, exc)
        return PlainTextResponse(exc.diagnostic(), status_code=404)

    @app.exception_handler(PathTraversal)
    async def traversal_handler(_: Any, exc: PathTraversal) -> PlainTextResponse:
        logger.warning("%s", exc)
        return PlainTextResponse("Forbidden\n", status_code=403)

    return app


def render_index(routes: RouteTable, *, title: str = "Documentation Server") -> str:
    """Render the landing page listing every project and its build status."""
    items = []
    for entry in routes.entries():
        colour = _STATUS_COLOURS.get(entry.status, "#6e7781")
        items.append(
            "<li>"
            f'<a href="/{html.escape(entry.public_path)}/">/{html.escape(entry.public_path)}/</a>'
            f' <span class="source">{html.escape(entry.config.path)}</span>'
            f' <span class="variant">{html.escape(entry.build_system.value)}</span>'
            f' <span class="status" style="background: {colour}">{html.escape(entry.status.value)}</span>'
            "</li>"
        )
    listing = "\n".join(items) if items else "<li>No projects configured.</li>"
    safe_title = html.escape(title)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{safe_title}</title>
    <style>
        body {{ font-family: sans-serif; max-width: 800px; margin: 2em auto; }}
        h1 {{ text-align: center; }}
        ul {{ list-style: none; padding: 0; }}
        li {{ margin: 0.5em 0; padding: 0.5em; background: #f5f5f5; border-radius: 4px; }}
        a {{ text-decoration: none; color: #0366d6; font-weight: 500; }}
        .source, .variant {{ color: #57606a; font-size: 0.85em; margin-left: 0.5em; }}
        .status {{ float: right; color: #fff; font-size: 0.8em; padding: 0.1em 0.6em; border-radius: 1em; }}
    </style>
</head>
<body>
    <h1>{safe_title}</h1>
    <ul>
{listing}
    </ul>
</body>
</html>
"""


def _project_status(entry: ProjectEntry) -> ProjectStatus:
    return ProjectStatus(
        public_path=entry.public_path,
        path=entry.config.path,
        url=f"/{entry.public_path}/",
        build_system=entry.build_system.value,
        status=entry.status.value,
        output_dir=str(entry.output_dir) if entry.output_dir is not None else None,
        detail=entry.detail,
    )


def run_service(config: ServerConfig, routes: RouteTable) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(routes)
    get_logger("service").info("Starting server on %s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port)


__all__ = ["HealthResponse", "ProjectStatus", "create_app", "render_index", "run_service"]
