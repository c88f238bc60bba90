"""Logger hierarchy for docserve.

Everything logs below the ``docserve`` logger. Per-project messages go to
``docserve.project.<public path>`` so a single project's update and build can
be followed (or filtered) on its own; console lines for those loggers are
tagged with the public path.
"""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "docserve"
_PROJECT_PREFIX = f"{ROOT_LOGGER}.project."

_CONSOLE_FORMAT = "[docserve] %(levelname)s %(project_tag)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``docserve.<name>``, or the root docserve logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def project_logger(public_path: str) -> logging.Logger:
    """Return the logger that records one project's update and build."""
    return get_logger(f"project.{public_path}")


class _ProjectTagFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(_PROJECT_PREFIX):
            record.project_tag = f"[{record.name[len(_PROJECT_PREFIX):]}] "
        else:
            record.project_tag = ""
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install console (and optionally file) handlers on the docserve logger.

    Calling it again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [_handler(logging.StreamHandler(), _CONSOLE_FORMAT, level)]
    if log_file is not None:
        handlers.append(_handler(logging.FileHandler(log_file, encoding="utf-8"), _FILE_FORMAT, level))
    for handler in handlers:
        logger.addHandler(handler)
    return logger


def _handler(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(_ProjectTagFilter())
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def log_failure(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """Log a failed step; its captured command output follows at debug level."""
    logger.error("%s: %s", message, exc)
    output = (getattr(exc, "output", "") or "").strip()
    if output:
        logger.debug("Captured output:\n%s", output)


def log_unexpected(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """Log an unexpected exception, with its traceback when debugging."""
    logger.error("%s: %s", message, exc, exc_info=exc if logger.isEnabledFor(logging.DEBUG) else None)


__all__ = [
    "ROOT_LOGGER",
    "configure_logging",
    "get_logger",
    "log_failure",
    "log_unexpected",
    "project_logger",
]
