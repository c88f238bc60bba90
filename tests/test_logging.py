"""Tests for docserve.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from docserve.builder import BuildError
from docserve.logging import (
    configure_logging,
    get_logger,
    log_failure,
    log_unexpected,
    project_logger,
)


@pytest.fixture(autouse=True)
def _restore_docserve_logger():
    logger = logging.getLogger("docserve")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def test_project_lines_are_tagged_with_public_path(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    project_logger("java-commons").info("Building docs: gradle clean javadoc")
    get_logger("service").warning("Starting")

    err = capsys.readouterr().err
    assert "[docserve] INFO [java-commons] Building docs: gradle clean javadoc" in err
    assert "[docserve] WARNING Starting" in err


def test_project_logger_lives_under_docserve() -> None:
    assert project_logger("rust-serde").name == "docserve.project.rust-serde"
    assert get_logger().name == "docserve"


def test_log_file_records_logger_names(tmp_path: Path) -> None:
    log_file = tmp_path / "docserve.log"
    configure_logging(log_file=log_file)

    project_logger("site").error("Build failed")
    for handler in logging.getLogger("docserve").handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "ERROR docserve.project.site: Build failed" in content


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "first.log")
    configure_logging()

    assert len(logging.getLogger("docserve").handlers) == 1


def test_log_failure_shows_output_only_when_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    error = BuildError("cargo build of serde failed with exit status 101", output="error[E0425]\n")
    log = project_logger("serde")

    configure_logging()
    log_failure(log, "Build failed", error)
    quiet = capsys.readouterr().err

    configure_logging(verbose=True)
    log_failure(log, "Build failed", error)
    verbose = capsys.readouterr().err

    assert "[serde] Build failed: cargo build of serde failed" in quiet
    assert "E0425" not in quiet
    assert "Captured output:\nerror[E0425]" in verbose


def test_log_unexpected_adds_traceback_when_verbose(capsys: pytest.CaptureFixture[str]) -> None:
    log = project_logger("serde")
    try:
        raise KeyError("boom")
    except KeyError as exc:
        configure_logging()
        log_unexpected(log, "Unexpected error", exc)
        quiet = capsys.readouterr().err
        configure_logging(verbose=True)
        log_unexpected(log, "Unexpected error", exc)
        verbose = capsys.readouterr().err

    assert "Unexpected error: 'boom'" in quiet
    assert "Traceback" not in quiet
    assert "Traceback" in verbose
