"""The individual setup steps.

Every step takes a :class:`SetupContext` and returns a
:class:`~stackup.setup.report.StepResult`. Conditional steps probe the running
container first (``exec -T ... test -f ...`` and friends) and report
``skipped`` without running anything when the probe fails.

Only :func:`start_services` raises; everything else degrades to a ``failed``
result so that a partially provisioned environment is still usable.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from stackup.compose import Compose
from stackup.config import Settings, default_env_values, dev_database_url
from stackup.errors import (
    CommandLaunchError,
    ExecutableNotFoundError,
    ServiceStartError,
)
from stackup.interfaces.runner import Command, CommandResult, CommandRunner

from .envfile import EnvFileOutcome, ensure_env_file
from .readiness import wait_until_ready
from .report import StepResult

logger = logging.getLogger(__name__)

START_SERVICES = "start-services"
ENV_FILE = "env-file"
WAIT_FOR_DB = "wait-for-db"
INSTALL_BACKEND = "install-backend"
MIGRATE = "migrate"
INSTALL_FRONTEND = "install-frontend"
SEED = "seed"
FIX_OWNERSHIP = "fix-ownership"

SEED_SCRIPT = "scripts/seed.py"


@dataclass(frozen=True)
class SetupContext:
    """Everything a step needs; passed explicitly, never stored globally."""

    settings: Settings
    runner: CommandRunner
    compose: Compose
    sleep: Callable[[float], None] = field(default=time.sleep)
    progress: Callable[[str], None] | None = None

    @classmethod
    def create(
        cls,
        settings: Settings,
        runner: CommandRunner,
        sleep: Callable[[float], None] = time.sleep,
        progress: Callable[[str], None] | None = None,
    ) -> SetupContext:
        """Build a context with a :class:`Compose` rooted at the project directory."""
        compose = Compose(settings.compose_argv, settings.project_dir)
        return cls(
            settings=settings,
            runner=runner,
            compose=compose,
            sleep=sleep,
            progress=progress,
        )

    def report_progress(self, message: str) -> None:
        """Pass a user-facing progress line to the front end, if one listens."""
        if self.progress is not None:
            self.progress(message)

    def probe(self, service: str, *argv: str) -> bool:
        """True if ``argv`` exits 0 inside ``service`` (output discarded)."""
        return self.runner.run(self.compose.probe(service, *argv), capture=True).ok

    def run(self, command: Command) -> CommandResult:
        """Run a provisioning command with its output shown."""
        logger.info("Running: %s", command)
        return self.runner.run(command)


@dataclass(frozen=True)
class Step:
    """A named setup step. Only ``fatal`` steps may abort the sequence."""

    name: str
    run: Callable[[SetupContext], StepResult]
    fatal: bool = False


def _failed(name: str, result: CommandResult, what: str) -> StepResult:
    logger.warning("%s failed (exit status %s)", what, result.returncode)
    return StepResult.failed(name, f"{what} exited with status {result.returncode}")


# ============================================================================
#                           1. Start services
# ============================================================================


def start_services(ctx: SetupContext) -> StepResult:
    """Start all services detached (with build).

    Raises:
        ServiceStartError: If compose cannot be run or exits non-zero.
    """
    logger.info("Starting compose services (detached)...")
    command = ctx.compose.up(detached=True, build=True)
    try:
        result = ctx.run(command)
    except (ExecutableNotFoundError, CommandLaunchError) as e:
        raise ServiceStartError(command) from e
    if not result.ok:
        raise ServiceStartError(command, result.returncode)
    return StepResult.succeeded(START_SERVICES, "services started")


# ============================================================================
#                           2. Env file
# ============================================================================


def create_env_file(ctx: SetupContext) -> StepResult:
    """Create the env file from the template or defaults; never overwrite it."""
    settings = ctx.settings
    path = settings.env_file_path
    try:
        outcome = ensure_env_file(
            path,
            template=settings.env_template_path,
            values=default_env_values(settings),
        )
    except OSError as e:
        logger.warning("Could not create %s: %s", path, e)
        return StepResult.failed(ENV_FILE, f"could not create {path}: {e}")

    if outcome is EnvFileOutcome.EXISTING:
        return StepResult.skipped(ENV_FILE, f"{path} already exists")
    if outcome is EnvFileOutcome.COPIED:
        return StepResult.succeeded(
            ENV_FILE, f"copied {settings.env_template_path} to {path}"
        )
    logger.info(
        "DATABASE_URL=%s",
        dev_database_url(settings).render_as_string(hide_password=True),
    )
    return StepResult.succeeded(ENV_FILE, f"generated {path}")


# ============================================================================
#                           3. Wait for database
# ============================================================================


def wait_for_database(ctx: SetupContext) -> StepResult:
    """Poll ``pg_isready`` in the database service with a bounded retry budget."""
    settings = ctx.settings
    label = f"Postgres service '{settings.db_service}'"
    logger.info("Waiting for %s to accept connections...", label)

    def _on_attempt(attempt: int, retries: int) -> None:
        ctx.report_progress(
            f"Waiting for {label} (attempt {attempt}/{retries}, "
            f"next check in {settings.sleep:g}s)"
        )

    readiness = wait_until_ready(
        lambda: ctx.probe(settings.db_service, "pg_isready", "-U", settings.db_user),
        retries=settings.retries,
        interval=settings.sleep,
        sleep=ctx.sleep,
        label=label,
        on_attempt=_on_attempt,
    )
    if readiness.ready:
        return StepResult.succeeded(
            WAIT_FOR_DB, f"ready after {readiness.attempts} attempt(s)"
        )
    return StepResult.failed(
        WAIT_FOR_DB, f"not ready after {readiness.attempts} attempt(s)"
    )


# ============================================================================
#                           4. Backend dependencies
# ============================================================================


def install_backend(ctx: SetupContext) -> StepResult:
    """``pip install -r requirements.txt`` when the manifest exists in the container."""
    settings = ctx.settings
    service = settings.backend_service
    requirements = f"{settings.backend_workdir}/requirements.txt"

    if not ctx.probe(service, "test", "-f", requirements):
        logger.info("No requirements.txt at %s; skipping backend install", requirements)
        return StepResult.skipped(INSTALL_BACKEND, f"no {requirements}")

    logger.info("Installing backend Python dependencies inside '%s'", service)
    commands = [
        ctx.compose.exec(
            service, "python", "-m", "pip", "install", "--upgrade", "pip", tty=False
        ),
        ctx.compose.exec(service, "pip", "install", "-r", requirements, tty=False),
    ]
    for command in commands:
        if not (result := ctx.run(command)).ok:
            return _failed(INSTALL_BACKEND, result, str(command))
    return StepResult.succeeded(INSTALL_BACKEND, f"installed {requirements}")


# ============================================================================
#                           5. Migrations
# ============================================================================


def _alembic_detectors(workdir: str) -> list[tuple[str, ...]]:
    return [
        ("test", "-d", f"{workdir}/alembic"),
        ("grep", "-q", "alembic", f"{workdir}/requirements.txt"),
        ("sh", "-c", "command -v alembic"),
    ]


def run_migrations(ctx: SetupContext) -> StepResult:
    """``alembic upgrade head`` when Alembic is detected in the backend container."""
    settings = ctx.settings
    service = settings.backend_service
    workdir = settings.backend_workdir

    logger.info("Checking for Alembic configuration inside '%s'", service)
    if not any(ctx.probe(service, *argv) for argv in _alembic_detectors(workdir)):
        logger.info("No Alembic setup detected; skipping migrations")
        return StepResult.skipped(MIGRATE, "no alembic setup detected")

    logger.info("Running alembic upgrade head inside '%s'", service)
    command = ctx.compose.exec(
        service, "alembic", "upgrade", "head", workdir=workdir, tty=False
    )
    if not (result := ctx.run(command)).ok:
        return _failed(MIGRATE, result, "alembic upgrade head")
    return StepResult.succeeded(MIGRATE, "migrated to head")


# ============================================================================
#                           6. Frontend dependencies
# ============================================================================


def install_frontend(ctx: SetupContext) -> StepResult:
    """``npm ci`` (lockfile present) or ``npm install`` when package.json exists."""
    settings = ctx.settings
    service = settings.frontend_service
    workdir = settings.frontend_workdir

    if not ctx.probe(service, "test", "-f", f"{workdir}/package.json"):
        logger.info("No package.json at %s; skipping frontend install", workdir)
        return StepResult.skipped(INSTALL_FRONTEND, f"no {workdir}/package.json")

    locked = ctx.probe(service, "test", "-f", f"{workdir}/package-lock.json")
    npm_args = ("npm", "ci") if locked else ("npm", "install")
    logger.info("Installing frontend Node dependencies inside '%s'", service)
    command = ctx.compose.exec(service, *npm_args, workdir=workdir, tty=False)
    if not (result := ctx.run(command)).ok:
        return _failed(INSTALL_FRONTEND, result, " ".join(npm_args))
    return StepResult.succeeded(INSTALL_FRONTEND, " ".join(npm_args))


# ============================================================================
#                           7. Seed
# ============================================================================


def run_seed(ctx: SetupContext) -> StepResult:
    """Run ``scripts/seed.py`` when it exists in the backend container."""
    settings = ctx.settings
    service = settings.backend_service
    workdir = settings.backend_workdir
    script = f"{workdir}/{SEED_SCRIPT}"

    if not ctx.probe(service, "test", "-f", script):
        logger.info("No seed script at %s; skipping seed", script)
        return StepResult.skipped(SEED, f"no {script}")

    logger.info("Running database seed script inside '%s'", service)
    command = ctx.compose.exec(
        service, "python", SEED_SCRIPT, workdir=workdir, tty=False
    )
    if not (result := ctx.run(command)).ok:
        return _failed(SEED, result, "seed script")
    return StepResult.succeeded(SEED, f"ran {SEED_SCRIPT}")


# ============================================================================
#                           8. Workspace ownership
# ============================================================================


def fix_ownership(ctx: SetupContext) -> StepResult:
    """``chown -R`` the mounted workspace to the workspace owner, if that user exists."""
    settings = ctx.settings
    service = settings.backend_service
    owner = settings.workspace_owner

    logger.info(
        "Adjusting ownership of %s from within '%s' (best-effort)",
        settings.workspace_dir,
        service,
    )
    if not ctx.probe(service, "id", "-u", owner):
        logger.info("User '%s' does not exist in '%s'; skipping", owner, service)
        return StepResult.skipped(FIX_OWNERSHIP, f"no user '{owner}'")

    command = ctx.compose.exec(
        service, "chown", "-R", f"{owner}:{owner}", settings.workspace_dir, tty=False
    )
    if not (result := ctx.run(command)).ok:
        return _failed(FIX_OWNERSHIP, result, "chown")
    return StepResult.succeeded(
        FIX_OWNERSHIP, f"{settings.workspace_dir} owned by {owner}"
    )


STEPS: tuple[Step, ...] = (
    Step(START_SERVICES, start_services, fatal=True),
    Step(ENV_FILE, create_env_file),
    Step(WAIT_FOR_DB, wait_for_database),
    Step(INSTALL_BACKEND, install_backend),
    Step(MIGRATE, run_migrations),
    Step(INSTALL_FRONTEND, install_frontend),
    Step(SEED, run_seed),
    Step(FIX_OWNERSHIP, fix_ownership),
)
