"""HTTP service mode for docserve."""

from .app import create_app, render_index, run_service

__all__ = ["create_app", "render_index", "run_service"]
