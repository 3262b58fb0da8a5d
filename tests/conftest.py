"""Global pytest fixtures for STACKUP."""

from __future__ import annotations

from pathlib import Path

import pytest

from stackup.config import Settings
from tests.fakes import FakeSleep, RecordingRunner

# pylint: disable=redefined-outer-name


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty compose project directory."""
    path = tmp_path / "myproject"
    path.mkdir()
    return path


@pytest.fixture
def settings(project_dir: Path) -> Settings:
    """Default settings rooted at ``project_dir``."""
    return Settings(project_dir=project_dir)


@pytest.fixture
def recording_runner() -> RecordingRunner:
    """A runner where every command succeeds."""
    return RecordingRunner()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    """A sleep function that only records durations."""
    return FakeSleep()
