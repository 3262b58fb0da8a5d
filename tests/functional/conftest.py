"""Default marks and shared fixtures for tests under `tests/functional/`."""

from pathlib import Path

import pytest

import stackup.entrypoints.cli.main as main  # pylint: disable=consider-using-from-import
from tests.fakes import RecordingRunner
from tests.markers import mark_items_under

# pylint: disable=unused-argument, redefined-outer-name

FUNCTIONAL_ROOT = Path(__file__).parent.resolve()


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add default `functional` marks to items in `tests/functional/`."""
    mark_items_under(FUNCTIONAL_ROOT, "functional", items)


SETTINGS_ENVVARS = (
    "COMPOSE_CMD",
    "BACKEND_SERVICE",
    "FRONTEND_SERVICE",
    "DB_SERVICE",
    "BACKEND_WORKDIR",
    "FRONTEND_WORKDIR",
    "RETRIES",
    "SLEEP",
    "DB_USER",
    "ENV_FILE",
    "ENV_TEMPLATE",
    "WORKSPACE_OWNER",
    "WORKSPACE_DIR",
    "COMPOSE_PROJECT_NAME",
    "STACKUP_PROJECT_DIR",
    "STACKUP_DRY_RUN",
    "SERVICE",
    "CMD",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Start every functional test from default settings.

    Clears the variables STACKUP reads and points the flight recorder at
    ``tmp_path`` so nothing is written outside the test.
    """
    for name in SETTINGS_ENVVARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STACKUP_LOG_PATH", str(tmp_path / "stackup.log"))


@pytest.fixture
def use_runner(monkeypatch: pytest.MonkeyPatch):
    """Make the CLI use a RecordingRunner built from the given arguments."""

    def _install(**kwargs) -> RecordingRunner:
        runner = RecordingRunner(**kwargs)
        monkeypatch.setattr(main, "make_runner", lambda dry_run: runner)
        return runner

    return _install
