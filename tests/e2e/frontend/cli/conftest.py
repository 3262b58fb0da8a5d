"""Fixtures and test helpers for end-to-end CLI logging tests.

Provides a test-only `log-demo` Click command that emits log messages on a
project logger and a third-party logger, plus fixtures to register that
command on the `stackup` group, obtain a CliRunner, and run tests within an
isolated filesystem with default settings.
"""

import logging
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from stackup.entrypoints.cli.main import stackup
from tests.markers import mark_items_under

# pylint: disable=redefined-outer-name, unused-argument

E2E_ROOT = Path(__file__).parents[2].resolve()


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Add default `e2e` marks to items in `tests/e2e/`."""
    mark_items_under(E2E_ROOT, "e2e", items)


@click.command()
def log_demo():
    """Emit one message per level on 'stackup.demo' and a few on 'some.thirdparty'."""
    logger = logging.getLogger("stackup.demo")
    logger.debug("This is a debug-level test message.")
    logger.info("This is an info-level test message.")
    logger.warning("This is a warning-level test message.")
    logger.error("This is an error-level test message.")
    logger.critical("This is a critical-level test message.")
    third_party_logger = logging.getLogger("some.thirdparty")
    third_party_logger.debug("This is a debug-level third-party test message.")
    third_party_logger.info("This is an info-level third-party test message.")
    third_party_logger.warning("This is a warning-level third-party test message.")
    logger.debug("This is a final debug-level test message.")


def _remove_command_everywhere(group, name: str) -> None:
    """Remove a command from a Click group and any help sections holding it."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for sec in getattr(group, "_sections", []):
        getattr(sec, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Register the 'log-demo' command on `stackup` for the duration of a test."""
    stackup.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _remove_command_everywhere(stackup, "log-demo")


@pytest.fixture
def runner(monkeypatch):
    """Return a CliRunner; STACKUP logging variables start unset."""
    for name in (
        "STACKUP_LOG_PATH",
        "STACKUP_FLIGHT_RECORDER",
        "STACKUP_FORCE_FLUSH",
        "STACKUP_LOGGER_LEVELS",
        "STACKUP_DRY_RUN",
        "STACKUP_PROJECT_DIR",
        "RETRIES",
        "SLEEP",
        "COMPOSE_CMD",
    ):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside ``runner.isolated_filesystem()``."""
    with runner.isolated_filesystem():
        yield
