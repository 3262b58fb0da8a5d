"""STACKUP CLI entry point.

Defines the top-level ``stackup`` command (via Click-Extra) and registers the
task commands and ``setup``.

Notes
- The CLI version is sourced from `stackup.__version__` and displayed
  automatically by Click-Extra (``--version``).
- Settings are read from the environment once, here, and handed to
  subcommands through the Click context.

Examples
    $ stackup up-detached
    $ stackup exec --service backend --cmd 'alembic current'
    $ SERVICE=backend stackup shell
    $ stackup --dry-run setup
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from stackup import __version__
from stackup.config import PROJECT_DIR_ENVVAR, load_settings
from stackup.errors import InvalidSettingError
from stackup.logging import config_console_handler, config_flight_recorder, log_startup

from .helpers.log_level_parser import parse_log_level
from .setup_cmd import setup
from .state import CliState, make_runner
from .tasks import task_commands

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """STACKUP command-line interface.

    Shortcuts for everyday docker-compose chores (start, stop, rebuild, exec,
    install dependencies, migrate, seed, test, format) and a one-shot `setup`
    that takes a fresh checkout to a running, migrated, seeded development stack.
    """


EPILOG = "\b\n" + "\n".join(
    [
        f"{click.style('Environment:', fg='blue', bold=True, underline=True)}",
        "  COMPOSE_CMD, BACKEND_SERVICE, FRONTEND_SERVICE, DB_SERVICE,",
        "  BACKEND_WORKDIR, FRONTEND_WORKDIR, RETRIES, SLEEP, DB_USER,",
        "  ENV_FILE, ENV_TEMPLATE, WORKSPACE_OWNER, WORKSPACE_DIR,",
        "  COMPOSE_PROJECT_NAME",
    ]
)


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help=(
        "Increase the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help=(
        "Decrease the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Enable debug mode (timestamps and source locations on the console).",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to log file (overrides default flight recorder path).",
    default=Path(user_log_dir("stackup", appauthor=False, ensure_exists=True))
    / "latest.log",
    envvar="STACKUP_LOG_PATH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="STACKUP_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in number of log records).",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Enable the in-memory flight recorder. Keeps the last N log records "
        "at DEBUG granularity (unaffected by -v/-q) and writes them, with "
        "timestamps, to --log-path when a WARNING/ERROR occurs (e.g. a setup "
        "step fails), or on clean exit if --force-flush is set."
    ),
    default=True,
    envvar="STACKUP_FLIGHT_RECORDER",
    show_envvar=True,
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    help=(
        "Force-flush the flight recorder buffer to --log-path on program exit. "
        "Normally the buffer only dumps on WARNING/ERROR."
    ),
    default=False,
    envvar="STACKUP_FORCE_FLUSH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    help=(
        "Set MINIMUM LEVEL for specific LOGGERS (NAME=LEVEL). Applies to BOTH "
        "console and flight-recorder. Repeatable (e.g. -L stackup.setup=WARNING) "
        "or via STACKUP_LOGGER_LEVELS (comma/space list)."
    ),
    envvar="STACKUP_LOGGER_LEVELS",
    show_envvar=True,
)
@click.option(
    "--dry-run/--no-dry-run",
    "dry_run",
    is_flag=True,
    default=False,
    envvar="STACKUP_DRY_RUN",
    show_envvar=True,
    help="Print the commands that would run instead of running them.",
)
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    envvar=PROJECT_DIR_ENVVAR,
    show_envvar=True,
    help="Directory holding the compose project (default: current directory).",
)
@clickx.pass_context
def stackup(  # pylint: disable=too-many-arguments, too-many-locals, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
    dry_run: bool,
    project_dir: Path | None,
) -> None:
    """STACKUP command-line interface."""

    # 0) compute effective verbosity
    base_level = logging.WARNING
    level = base_level - (10 * verbose_count) + (10 * quiet_count)
    level = max(logging.DEBUG, min(logging.CRITICAL, level))

    handlers: list[Handler] = []

    # 1) configure console handler
    use_color = ctx.color is not False  # None or True => allow color
    handlers.append(
        config_console_handler(level=level, debug_mode=debug, color=use_color)
    )

    # 2) configure flight recorder
    if flight_recorder:
        handlers.append(
            config_flight_recorder(
                path=log_path,
                capacity=flight_recorder_capacity,
                flush_on_close=force_flush_flight_recorder,
            )
        )

    # 3) Configure root logger with configured handlers
    logging.basicConfig(
        level=logging.DEBUG,  # capture all levels; handlers filter
        handlers=handlers,
        force=True,
    )

    # 4) Set per-logger levels
    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    # 5) Resolve settings once; subcommands share them through CliState
    try:
        settings = load_settings(project_dir=project_dir)
    except InvalidSettingError as e:
        raise click.UsageError(str(e)) from e

    # 6) Log startup info
    log_startup(
        logger,
        app_version=__version__,
        level=level,
        handlers=handlers,
        log_path=log_path,
        flight_recorder=flight_recorder,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
        dry_run=dry_run,
        settings=settings,
    )

    # 7) Ensure logging is cleanly shutdown on program exit
    ctx.call_on_close(logging.shutdown)

    ctx.obj = CliState(settings=settings, runner=make_runner(dry_run))


for _command in task_commands():
    stackup.add_command(_command)
stackup.add_command(setup)
