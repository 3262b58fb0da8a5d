"""Bounded readiness polling."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadinessResult:
    """Outcome of :func:`wait_until_ready`."""

    ready: bool
    attempts: int


def _not_ready(ok: bool) -> bool:
    return not ok


def wait_until_ready(
    probe: Callable[[], bool],
    *,
    retries: int,
    interval: float,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "service",
    on_attempt: Callable[[int, int], None] | None = None,
) -> ReadinessResult:
    """Call ``probe`` until it returns True, at most ``retries`` times.

    ``interval`` seconds are slept after every failed attempt, the last one
    included, so an unreachable service costs about ``retries * interval``
    seconds. Running out of attempts is not an error: the timeout is logged
    as a warning and the caller decides what to do with the result.

    Args:
        probe: Returns True once the service is ready. Exceptions propagate.
        retries: Maximum number of probes; must be at least 1.
        interval: Seconds to sleep after each failed probe.
        sleep: Injected for tests.
        label: Service name used in log messages.
        on_attempt: Called with ``(attempt, retries)`` after each failed probe.

    Raises:
        ValueError: If ``retries`` is less than 1.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")

    def _log_attempt(retry_state: RetryCallState) -> None:
        logger.info(
            "%s not ready yet (attempt %d/%d). Sleeping %ss",
            label,
            retry_state.attempt_number,
            retries,
            interval,
        )
        if on_attempt is not None:
            on_attempt(retry_state.attempt_number, retries)

    def _timed_out(retry_state: RetryCallState) -> bool:
        # tenacity does not sleep after the final attempt
        _log_attempt(retry_state)
        sleep(interval)
        logger.warning(
            "Timed out waiting for %s after %d attempts. "
            "Continuing; some steps may fail.",
            label,
            retries,
        )
        return False

    retrying = Retrying(
        stop=stop_after_attempt(retries),
        wait=wait_fixed(interval),
        retry=retry_if_result(_not_ready),
        sleep=sleep,
        before_sleep=_log_attempt,
        retry_error_callback=_timed_out,
    )
    ready = bool(retrying(probe))
    attempts = retrying.statistics["attempt_number"]
    if ready:
        logger.info("%s reported ready (attempt %d/%d)", label, attempts, retries)
    return ReadinessResult(ready=ready, attempts=attempts)
