"""Setup sequencer: runs the setup steps once, in order."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from stackup.config import Settings
from stackup.errors import StackupError
from stackup.interfaces.runner import CommandRunner

from .report import SetupReport, StepResult, StepStatus
from .steps import STEPS, SetupContext, Step

logger = logging.getLogger(__name__)


def run_setup(
    settings: Settings,
    runner: CommandRunner,
    *,
    sleep: Callable[[float], None] = time.sleep,
    steps: Sequence[Step] = STEPS,
    progress: Callable[[str], None] | None = None,
) -> SetupReport:
    """Bring the compose stack from "not running" to "ready for development".

    Steps run strictly in order. A fatal step (starting the services) that
    fails raises and aborts the run; any other step that raises a
    :class:`~stackup.errors.StackupError` is recorded as ``failed`` and the
    sequence carries on. Nothing is rolled back.

    Args:
        settings: Resolved settings.
        runner: Runs the external commands.
        sleep: Sleep function for the readiness poll; injectable for tests.
        steps: Steps to run; defaults to the standard eight.
        progress: Receives user-facing progress lines, such as each failed
            readiness probe.

    Returns:
        SetupReport: One result per step, in run order.

    Raises:
        ServiceStartError: If the services cannot be started.
    """
    ctx = SetupContext.create(settings, runner, sleep=sleep, progress=progress)
    report = SetupReport()

    for step in steps:
        logger.debug("Step %s started", step.name)
        if step.fatal:
            result = step.run(ctx)
        else:
            try:
                result = step.run(ctx)
            except StackupError as e:
                logger.warning("Step %s failed: %s", step.name, e)
                result = StepResult.failed(step.name, str(e))
        report.add(result)
        _log_result(result)

    logger.info(
        "Setup finished: %d succeeded, %d skipped, %d failed",
        len(report.succeeded),
        len(report.skipped),
        len(report.failed),
    )
    return report


def _log_result(result: StepResult) -> None:
    if result.status is StepStatus.FAILED:
        logger.warning("%s: failed (%s)", result.name, result.detail)
    else:
        logger.info("%s: %s (%s)", result.name, result.status.value, result.detail)


def next_steps(settings: Settings) -> list[str]:
    """Suggested follow-up commands once setup has finished."""
    compose = " ".join(settings.compose_argv)
    return [
        f"Tail logs: {compose} logs -f",
        (
            f"Run backend dev server: {compose} exec --workdir "
            f"{settings.backend_workdir} {settings.backend_service} "
            "uvicorn main:app --reload --host 0.0.0.0 --port 8000"
        ),
        (
            f"Run frontend dev server: {compose} exec --workdir "
            f"{settings.frontend_workdir} {settings.frontend_service} "
            "npm run dev -- --host"
        ),
    ]
