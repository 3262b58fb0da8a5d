"""The ``stackup setup`` command.

Runs the first-time setup sequence against the compose stack and prints a
per-step summary. Only a failure to start the services is fatal; every later
step is best-effort, so by default the command exits 0 even when some steps
failed. Use ``--strict`` to turn failed steps into exit status 1.
"""

from __future__ import annotations

import logging

import click

from stackup.errors import InvalidSettingError, ServiceStartError
from stackup.setup import next_steps, run_setup

from .helpers import error, info, render_report, success, warn
from .state import CliState, pass_state

logger = logging.getLogger(__name__)


@click.command("setup")
@click.option(
    "--retries",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum database readiness probes (overrides RETRIES, default 12).",
)
@click.option(
    "--sleep",
    "sleep_seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds between readiness probes (overrides SLEEP, default 2).",
)
@click.option(
    "--strict/--no-strict",
    default=False,
    show_default=True,
    help="Exit with status 1 if any setup step failed.",
)
@pass_state
def setup(
    state: CliState, retries: int | None, sleep_seconds: float | None, strict: bool
) -> None:
    """Bring the compose stack to a ready-for-development state.

    \b
    Steps:
      1. start services (detached, with build)
      2. create the env file if absent (never overwritten)
      3. wait for the database (pg_isready, bounded retries)
      4. install backend dependencies (if requirements.txt exists)
      5. run Alembic migrations (if Alembic is detected)
      6. install frontend dependencies (if package.json exists)
      7. run the seed script (if scripts/seed.py exists)
      8. fix workspace ownership (best-effort)
    """
    try:
        settings = state.settings.with_overrides(retries=retries, sleep=sleep_seconds)
    except InvalidSettingError as e:
        raise click.UsageError(str(e)) from e

    try:
        report = run_setup(settings, state.runner, progress=info)
    except ServiceStartError as e:
        error(str(e))
        raise click.ClickException("Setup aborted; nothing after step 1 ran.") from e

    render_report(report)
    if report.ok:
        success("Post-compose setup finished.")
    else:
        warn(
            f"Setup finished with {len(report.failed)} failed step(s); "
            "the environment may be only partially provisioned."
        )

    info("Helpful next steps:")
    for line in next_steps(settings):
        info(f"  - {line}")

    if strict and not report.ok:
        click.get_current_context().exit(1)
