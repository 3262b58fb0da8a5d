"""End-to-end CLI tests for the top-level `stackup` command.

These tests exercise logging, verbosity flags, logger-level overrides, debug
formatting, and the in-memory flight-recorder by invoking the `log-demo`
command under various CLI flags and environment variables, plus the
`--dry-run` flag with a real task.
"""

import re
from pathlib import Path

import pytest

from stackup.entrypoints.cli.main import stackup

# pylint: disable=unused-argument

LOG_PATH = "flight_recorder.log"


def assert_in_output(pattern: str, output: str) -> None:
    """Assert that a regex pattern is found in the output string."""
    if not re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' not found in output:\n{output}")


def assert_not_in_output(pattern: str, output: str) -> None:
    """Assert that a regex pattern is NOT found in the output string."""
    if re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' found in output:\n{output}")


def read_log(path: str = LOG_PATH) -> str:
    return Path(path).read_text(encoding="utf-8")


# ============================================================================
#                           Console verbosity
# ============================================================================


def test_default_shows_warning(registered_log_demo, runner, fs):
    """Default invocation shows WARNING and above but not INFO."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    assert_in_output("warning-level test message", result.output)
    assert_not_in_output("info-level test message", result.output)


def test_verbose_shows_info(registered_log_demo, runner, fs):
    """Single -v enables INFO-level console output (but not DEBUG)."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "-v", "log-demo"])
    assert result.exit_code == 0
    assert_in_output("INFO", result.output)
    assert_not_in_output("DEBUG", result.output)


def test_vv_shows_debug(registered_log_demo, runner, fs):
    """-vv enables DEBUG-level console output."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "-vv", "log-demo"])
    assert result.exit_code == 0
    assert_in_output("DEBUG", result.output)


def test_quiet_suppresses_warning(registered_log_demo, runner, fs):
    """-q lowers verbosity so WARNING is suppressed and ERROR remains."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "-q", "log-demo"])
    assert result.exit_code == 0
    assert_in_output("ERROR", result.output)
    assert_not_in_output("WARNING", result.output)


def test_logger_qq_suppresses_error(registered_log_demo, runner, fs):
    """-qq lowers verbosity to CRITICAL only."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "-qq", "log-demo"])
    assert result.exit_code == 0
    assert_in_output("CRITICAL", result.output)
    assert_not_in_output("ERROR", result.output)


def test_third_party_records_are_prefixed(registered_log_demo, runner, fs):
    """Records from non-STACKUP loggers carry a short [name] prefix."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    assert_in_output(r"\[some\] This is a warning-level third-party", result.output)


@pytest.mark.parametrize(
    "env, cli_args",
    [
        ({}, ["-vv", "-L", "some.thirdparty=INFO"]),
        ({"STACKUP_LOGGER_LEVELS": "some.thirdparty=INFO"}, ["-vv"]),
    ],
    ids=["cli-flag", "env-var"],
)
def test_logger_level_silences_debug(registered_log_demo, runner, fs, env, cli_args):
    """Logger-level overrides silence third-party DEBUG while keeping INFO+."""
    result = runner.invoke(
        stackup, ["--log-path", LOG_PATH, *cli_args, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert_not_in_output(
        "This is a debug-level third-party test message.", result.output
    )
    assert_in_output("This is an info-level third-party test message.", result.output)


def test_invalid_logger_level_is_a_usage_error(registered_log_demo, runner, fs):
    result = runner.invoke(stackup, ["-L", "stackup=CHATTY", "log-demo"])
    assert result.exit_code == 2
    assert_in_output("Invalid log level", result.output)


def test_debug_mode_shows_paths(registered_log_demo, runner, fs):
    """With --debug, console records include file paths and line numbers."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "--debug", "log-demo"])
    assert result.exit_code == 0
    assert_in_output(r"conftest\.py:\d+\b", result.output)


def test_debug_mode_is_off_by_default(registered_log_demo, runner, fs):
    """By default, file paths are not included in console output."""
    result = runner.invoke(stackup, ["--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    assert_not_in_output(r"conftest\.py:\d+\b", result.output)


# ============================================================================
#                           Flight recorder
# ============================================================================


def test_flight_recorder_flush_on_warning(registered_log_demo, runner, fs):
    """Buffered DEBUG records are written to disk when a WARNING occurs."""
    result = runner.invoke(
        stackup,
        ["--log-path", LOG_PATH, "-L", "some.thirdparty=INFO", "log-demo"],
    )
    assert result.exit_code == 0
    content = read_log()
    assert_in_output("This is a debug-level test message.", content)
    assert_not_in_output("This is a debug-level third-party test message.", content)
    assert_in_output("This is an info-level third-party test message.", content)
    assert_in_output("This is a warning-level test message.", content)
    assert_in_output("This is an error-level test message.", content)
    assert_in_output("This is a critical-level test message.", content)
    # Buffered after the last WARNING and never flushed
    assert_not_in_output("This is a final debug-level test message.", content)


@pytest.mark.parametrize(
    "env, cli_args",
    [({}, ["--force-flush"]), ({"STACKUP_FORCE_FLUSH": "true"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_force_flush(registered_log_demo, runner, fs, env, cli_args):
    """With force-flush (flag or env var), the final DEBUG records are written."""
    result = runner.invoke(
        stackup, ["--log-path", LOG_PATH, *cli_args, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert_in_output("This is a final debug-level test message.", read_log())


@pytest.mark.parametrize(
    "env, cli_args",
    [({}, ["--no-flight-recorder"]), ({"STACKUP_FLIGHT_RECORDER": "0"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_can_be_disabled(
    registered_log_demo, runner, fs, env, cli_args
):
    """Disabling the flight recorder prevents writing the log file."""
    result = runner.invoke(
        stackup, ["--log-path", LOG_PATH, *cli_args, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert not Path(LOG_PATH).exists()


def test_flight_recorder_truncates_log(registered_log_demo, runner, fs):
    """The flight recorder file is truncated between runs (not appended)."""
    result1 = runner.invoke(stackup, ["--log-path", LOG_PATH, "log-demo"])
    assert result1.exit_code == 0
    num_lines1 = len(read_log().splitlines())

    result2 = runner.invoke(stackup, ["--log-path", LOG_PATH, "log-demo"])
    assert result2.exit_code == 0
    num_lines2 = len(read_log().splitlines())

    assert num_lines1 == num_lines2


def test_startup_logging(registered_log_demo, runner, fs):
    """The flight recorder starts with the version line and diagnostics."""
    log_path = "startup.log"
    result = runner.invoke(
        stackup,
        ["--log-path", log_path, "--flight-recorder", "--force-flush", "log-demo"],
        env={"STACKUP_LOGGER_LEVELS": "some.thirdparty=INFO"},
    )
    assert result.exit_code == 0
    content = read_log(log_path)
    assert_in_output(r"STACKUP \d+\.\d+\.\d+", content)
    assert_in_output(r"console=WARNING", content)
    assert_in_output(r"flight-recorder=ON", content)
    assert_in_output(r"dry-run=OFF", content)
    assert_in_output(r"Python: \d+\.\d+\.\d+", content)
    assert_in_output(r"Platform: .+", content)
    assert_in_output(r"PID: \d+", content)
    assert_in_output(r"CWD: .+", content)
    assert_in_output(r"Handlers: .+", content)
    assert_in_output(
        r"Flight recorder: path=startup\.log, capacity=2000, flush_on_close=True",
        content,
    )
    assert_in_output(
        r"Per-logger overrides: {'stackup.adapters.runners': 'DEBUG', "
        r"'some.thirdparty': 'INFO'}",
        content,
    )
    assert_in_output(r"Compose: docker-compose \(project .*\)", content)
    assert_in_output(r"Project dir: .+", content)
    assert_in_output(r"Readiness budget: retries=12, sleep=2.0s", content)
    assert_in_output(r"Settings: Settings\(compose_cmd='docker-compose'", content)


# ============================================================================
#                           Dry run
# ============================================================================


def test_dry_run_logs_and_prints_commands(runner, fs):
    """--dry-run prints each command on stdout and logs it at INFO."""
    result = runner.invoke(
        stackup, ["--log-path", LOG_PATH, "--force-flush", "--dry-run", "-v", "ps"]
    )
    assert result.exit_code == 0
    assert_in_output(r"^\+ docker-compose ps$", result.output)
    assert_in_output(r"Dry run: docker-compose ps", read_log())
    assert_in_output(r"dry-run=ON", read_log())
