"""CLI entrypoints for docserve commands."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

from .config import ConfigError, ServerConfig, default_config_path, load_config
from .logging import configure_logging
from .models import RouteTable
from .orchestrator import Orchestrator


def _common_options() -> argparse.ArgumentParser:
    """Options shared by every subcommand, accepted after the command name."""
    common = argparse.ArgumentParser(add_help=False)
    # SUPPRESS keeps a top-level ``-v`` when the subcommand omits it.
    common.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Same as the top-level -v."
    )
    common.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to config.toml (defaults to $DOCSERVE_CONFIG or ./config.toml).",
    )
    common.add_argument(
        "--update-on-start",
        action="store_true",
        default=None,
        help="Pull or clone project sources before building, overriding the config.",
    )
    return common


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docserve",
        description="Build and serve documentation for multiple projects.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output, including build logs."
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        parents=[common],
        help="Update and build projects, then serve their documentation over HTTP.",
    )
    serve_parser.add_argument("--host", default=None, help="Interface to bind (overrides config).")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind (overrides config).")
    serve_parser.add_argument(
        "--no-build",
        action="store_true",
        help="Serve whatever documentation is already on disk without rebuilding.",
    )

    subparsers.add_parser(
        "build",
        parents=[common],
        help="Update and build projects once and report their status.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docserve commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = _effective_config(args)
        routes = Orchestrator.from_config(config).run(config.projects, config.update_on_start)
    except ConfigError as exc:
        parser.exit(1, f"docserve: configuration error: {exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(config, routes)
    elif args.command == "build":
        _print_summary(routes)
        if routes.failed():
            parser.exit(1)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _effective_config(args: argparse.Namespace) -> ServerConfig:
    config_path = args.config if args.config is not None else default_config_path()
    config = load_config(config_path)

    overrides: dict[str, object] = {}
    if args.update_on_start:
        overrides["update_on_start"] = True
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        if not 0 < args.port < 65536:
            raise ConfigError(f"--port must be between 1 and 65535, got {args.port}")
        overrides["port"] = args.port
    if getattr(args, "no_build", False):
        overrides["build_on_start"] = False
    return dataclasses.replace(config, **overrides) if overrides else config


def _print_summary(routes: RouteTable) -> None:
    entries = routes.entries()
    if not entries:
        print("No projects routed.")
        return
    width = max(len(entry.public_path) for entry in entries)
    for entry in entries:
        print(f"/{entry.public_path + '/':<{width + 1}}  {entry.status.value:<14}  {entry.output_dir}")


if __name__ == "__main__":
    main(sys.argv[1:])
