"""Tests for docserve.builder."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from docserve.builder import BuildError, Builder
from docserve.config import BuildSystem, ProjectConfig
from docserve.models import ProjectEntry
from tests._fixtures.fake_runner import FakeRunner, write_docs


def _entry(source_dir: Path, config: ProjectConfig) -> ProjectEntry:
    return ProjectEntry(config=config, source_dir=source_dir, public_path="project")


def test_build_runs_toolchain_in_project_root(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "serde"
    source.mkdir()
    runner.on("cargo", "doc", effect=write_docs("target/doc/serde"))

    Builder(runner=runner, timeout=60).build(
        _entry(source, ProjectConfig(path="rust/serde", build_system=BuildSystem.CARGO))
    )

    assert runner.commands() == [["cargo", "doc", "--no-deps"]]
    assert runner.calls[0].cwd == source
    assert runner.calls[0].timeout == 60
    assert (source / "target" / "doc" / "serde" / "index.html").is_file()


def test_build_uses_literal_custom_command(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "tool"
    source.mkdir()
    config = ProjectConfig(
        path="tool",
        build_system=BuildSystem.CUSTOM,
        build_command="npm run docs -- --out site",
        doc_output="site",
    )

    Builder(runner=runner).build(_entry(source, config))

    assert runner.commands() == [["npm", "run", "docs", "--", "--out", "site"]]


def test_build_failure_carries_output(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "commons"
    source.mkdir()
    runner.on("gradle", returncode=1, output="FAILURE: Build failed with an exception.\n")

    with pytest.raises(BuildError) as excinfo:
        Builder(runner=runner).build(
            _entry(source, ProjectConfig(path="java/commons", build_system=BuildSystem.GRADLE))
        )

    error = excinfo.value
    assert error.returncode == 1
    assert error.kind == "exit"
    assert "Build failed with an exception" in error.output
    assert "Build failed with an exception" in error.summary()


def test_build_timeout(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "serde"
    source.mkdir()
    runner.on("cargo", raises=subprocess.TimeoutExpired(["cargo", "doc"], 1))

    with pytest.raises(BuildError) as excinfo:
        Builder(runner=runner, timeout=1).build(
            _entry(source, ProjectConfig(path="serde", build_system=BuildSystem.CARGO))
        )

    assert excinfo.value.kind == "timeout"
    assert "timed out" in str(excinfo.value)


def test_build_missing_tool(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "serde"
    source.mkdir()
    runner.on("cargo", raises=FileNotFoundError(2, "No such file or directory", "cargo"))

    with pytest.raises(BuildError) as excinfo:
        Builder(runner=runner).build(
            _entry(source, ProjectConfig(path="serde", build_system=BuildSystem.CARGO))
        )

    assert excinfo.value.kind == "spawn"


def test_build_requires_source_directory(tmp_path: Path, runner: FakeRunner) -> None:
    with pytest.raises(BuildError, match="does not exist"):
        Builder(runner=runner).build(
            _entry(tmp_path / "absent", ProjectConfig(path="absent", build_system=BuildSystem.CARGO))
        )
    assert runner.calls == []


def test_build_zig_without_sources(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "zap"
    source.mkdir()

    with pytest.raises(BuildError, match=r"\.zig"):
        Builder(runner=runner).build(
            _entry(source, ProjectConfig(path="zap", build_system=BuildSystem.ZIG))
        )
    assert runner.calls == []


def test_build_rejects_unbalanced_quotes(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "tool"
    source.mkdir()
    config = ProjectConfig(
        path="tool",
        build_system=BuildSystem.CUSTOM,
        build_command='make "docs',
        doc_output="out",
    )

    with pytest.raises(BuildError, match="Invalid build_command"):
        Builder(runner=runner).build(_entry(source, config))


def test_build_custom_without_command(tmp_path: Path, runner: FakeRunner) -> None:
    source = tmp_path / "tool"
    source.mkdir()
    config = ProjectConfig(path="tool", build_system=BuildSystem.CUSTOM, doc_output="out")

    with pytest.raises(BuildError, match="no build_command") as excinfo:
        Builder(runner=runner).build(_entry(source, config))
    assert excinfo.value.kind == "spawn"
    assert runner.calls == []
