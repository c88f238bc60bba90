from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.fake_runner import FakeRunner


@pytest.fixture
def libs_path(tmp_path: Path) -> Path:
    """Provide an empty library directory that projects are checked out into."""
    libs = tmp_path / "libs"
    libs.mkdir()
    return libs


@pytest.fixture
def runner() -> FakeRunner:
    """Provide a fake process runner that records invocations."""
    return FakeRunner()
