"""Task dispatcher: named shortcuts for docker-compose operations.

Each task is a context-free mapping from a name (plus, for ``exec`` and
``shell``, a few required parameters) to a fixed list of commands. There is
no state shared between tasks and no retrying; running a task means running
its commands in order and stopping at the first one that fails.

Example:
    ```py
    settings = load_settings()
    dispatch("exec", settings, SubprocessRunner(), service="backend", cmd="ls -la")
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from stackup.compose import Compose
from stackup.config import Settings
from stackup.errors import (
    CommandFailedError,
    CommandLaunchError,
    ExecutableNotFoundError,
    MissingTaskParameterError,
    UnknownTaskError,
)
from stackup.interfaces.runner import Command, CommandResult, CommandRunner

logger = logging.getLogger(__name__)

TaskBuilder = Callable[..., list[Command]]
FollowUp = Callable[[Settings, CommandResult], list[Command]]

PRETTIER_GLOB = "src/**/*.{js,jsx,ts,tsx,json,css,md}"
NPM_INSTALL_SCRIPT = "if [ -f package-lock.json ]; then npm ci; else npm install; fi"


@dataclass(frozen=True)
class Task:
    """A named task.

    Attributes:
        name: Task name as typed on the command line.
        help: One-line description.
        build: Callable ``(settings, **params) -> list[Command]``.
        params: Names of required parameters.
        ignore_errors: Keep going (and report success) when a command fails.
        capture: Capture command output instead of streaming it.
        follow_up: Optional ``(settings, last_result) -> list[Command]`` run
            after the built commands succeed (e.g. act on a listing).
    """

    name: str
    help: str
    build: TaskBuilder
    params: tuple[str, ...] = ()
    ignore_errors: bool = False
    capture: bool = False
    follow_up: FollowUp | None = None


@dataclass
class TaskOutcome:
    """Commands run for a task and the first failure, if any."""

    task: Task
    results: list[CommandResult] = field(default_factory=list)

    @property
    def returncode(self) -> int:
        """Exit status to report for the whole task."""
        if self.task.ignore_errors:
            return 0
        for result in self.results:
            if not result.ok:
                return result.returncode
        return 0


TASKS: dict[str, Task] = {}


def task(
    name: str,
    help_: str,
    *,
    params: tuple[str, ...] = (),
    ignore_errors: bool = False,
    capture: bool = False,
    follow_up: FollowUp | None = None,
) -> Callable[[TaskBuilder], TaskBuilder]:
    """Register a task builder under ``name``."""

    def decorator(build: TaskBuilder) -> TaskBuilder:
        TASKS[name] = Task(
            name=name,
            help=help_,
            build=build,
            params=params,
            ignore_errors=ignore_errors,
            capture=capture,
            follow_up=follow_up,
        )
        return build

    return decorator


def _compose(settings: Settings) -> Compose:
    return Compose(settings.compose_argv, settings.project_dir)


def _require(task_name: str, parameter: str, value: str | None, usage: str) -> str:
    if value is None or not value.strip():
        raise MissingTaskParameterError(task_name, parameter, usage)
    return value


# ============================================================================
#                           Stack lifecycle
# ============================================================================


@task("up", "Start all services in the foreground (with build).")
def up(settings: Settings) -> list[Command]:
    return [_compose(settings).up(build=True)]


@task("up-detached", "Start all services in the background (with build).")
def up_detached(settings: Settings) -> list[Command]:
    return [_compose(settings).up(detached=True, build=True)]


@task("down", "Stop and remove containers and networks (volumes are kept).")
def down(settings: Settings) -> list[Command]:
    return [_compose(settings).down()]


@task("rebuild", "Recreate containers: down, then build and start detached.")
def rebuild(settings: Settings) -> list[Command]:
    compose = _compose(settings)
    return [
        compose.down(),
        compose.up(detached=True, build=True, force_recreate=True),
    ]


@task("logs", "Follow logs for all services.")
def logs(settings: Settings) -> list[Command]:
    return [_compose(settings).logs(follow=True)]


@task("ps", "List service containers.")
def ps(settings: Settings) -> list[Command]:
    return [_compose(settings).ps()]


@task("backend-up", "Start only the backend service (with build).")
def backend_up(settings: Settings) -> list[Command]:
    return [
        _compose(settings).up(settings.backend_service, detached=True, build=True)
    ]


@task("frontend-up", "Start only the frontend service (with build).")
def frontend_up(settings: Settings) -> list[Command]:
    return [
        _compose(settings).up(settings.frontend_service, detached=True, build=True)
    ]


@task("db-up", "Start only the database service.")
def db_up(settings: Settings) -> list[Command]:
    return [_compose(settings).up(settings.db_service, detached=True)]


@task("prune-volumes", "Stop the stack and remove its volumes and data.")
def prune_volumes(settings: Settings) -> list[Command]:
    return [_compose(settings).down(volumes=True)]


# ============================================================================
#                           Container access
# ============================================================================


@task("exec", "Run a shell command in a service container.", params=("service", "cmd"))
def exec_(
    settings: Settings, service: str | None = None, cmd: str | None = None
) -> list[Command]:
    service = _require(
        "exec", "SERVICE", service, "--service backend (or SERVICE=backend)"
    )
    cmd = _require("exec", "CMD", cmd, "--cmd 'ls -la' (or CMD='ls -la')")
    return [_compose(settings).sh(service, cmd, login=True)]


@task("shell", "Open an interactive shell in a service container.", params=("service",))
def shell(settings: Settings, service: str | None = None) -> list[Command]:
    service = _require(
        "shell", "SERVICE", service, "--service backend (or SERVICE=backend)"
    )
    return [_compose(settings).exec(service, "sh")]


# ============================================================================
#                           Project chores
# ============================================================================


@task("install-backend", "Install backend Python dependencies in the container.")
def install_backend(settings: Settings) -> list[Command]:
    compose = _compose(settings)
    requirements = f"{settings.backend_workdir}/requirements.txt"
    return [
        compose.exec(
            settings.backend_service,
            "python", "-m", "pip", "install", "--upgrade", "pip",
        ),  # fmt: skip
        compose.exec(settings.backend_service, "pip", "install", "-r", requirements),
    ]


@task("install-frontend", "Install frontend Node dependencies in the container.")
def install_frontend(settings: Settings) -> list[Command]:
    return [
        _compose(settings).sh(
            settings.frontend_service,
            NPM_INSTALL_SCRIPT,
            workdir=settings.frontend_workdir,
        )
    ]


@task("migrate", "Apply Alembic migrations in the backend container.")
def migrate(settings: Settings) -> list[Command]:
    return [
        _compose(settings).exec(
            settings.backend_service,
            "alembic", "upgrade", "head",
            workdir=settings.backend_workdir,
        )  # fmt: skip
    ]


@task("seed", "Run the backend seed script.")
def seed(settings: Settings) -> list[Command]:
    return [
        _compose(settings).exec(
            settings.backend_service,
            "python", "scripts/seed.py",
            workdir=settings.backend_workdir,
        )  # fmt: skip
    ]


@task("test", "Run the backend test suite.")
def test(settings: Settings) -> list[Command]:
    return [
        _compose(settings).exec(
            settings.backend_service, "pytest", "-q", workdir=settings.backend_workdir
        )
    ]


@task("fmt", "Format code (backend: black, frontend: prettier).")
def fmt(settings: Settings) -> list[Command]:
    compose = _compose(settings)
    return [
        compose.exec(
            settings.backend_service, "black", ".", workdir=settings.backend_workdir
        ),
        compose.exec(
            settings.frontend_service,
            "npx", "prettier", "--write", PRETTIER_GLOB,
            workdir=settings.frontend_workdir,
        ),  # fmt: skip
    ]


def remove_listed_images(settings: Settings, listing: CommandResult) -> list[Command]:
    """Build ``docker rmi -f`` for the image IDs in a ``docker images -q`` listing."""
    image_ids = [
        image_id
        for image_id in dict.fromkeys(
            line.strip() for line in listing.stdout.splitlines()
        )
        if image_id
    ]
    if not image_ids:
        logger.info("No images found for project %s", settings.compose_project_name)
        return []
    return [Command.of("docker", "rmi", "-f", image_ids, cwd=settings.project_dir)]


@task(
    "clean-images",
    "Remove images created for this compose project (errors ignored).",
    ignore_errors=True,
    capture=True,
    follow_up=remove_listed_images,
)
def clean_images(settings: Settings) -> list[Command]:
    return [
        Command.of(
            "docker", "images",
            "--filter", f"reference={settings.compose_project_name}*",
            "-q",
            cwd=settings.project_dir,
        )  # fmt: skip
    ]


# ============================================================================
#                           Dispatch
# ============================================================================


def get_task(name: str) -> Task:
    """Look up a task by name.

    Raises:
        UnknownTaskError: If no task is registered under ``name``.
    """
    try:
        return TASKS[name]
    except KeyError as e:
        raise UnknownTaskError(name) from e


def plan(name: str, settings: Settings, **params: str | None) -> list[Command]:
    """Return the commands ``name`` would run, validating required parameters.

    Only the parameters the task declares are passed on; others are ignored.

    Raises:
        UnknownTaskError: If the task does not exist.
        MissingTaskParameterError: If a required parameter is missing or blank.
    """
    selected = get_task(name)
    accepted = {key: params.get(key) for key in selected.params}
    return selected.build(settings, **accepted)


def dispatch(
    name: str, settings: Settings, runner: CommandRunner, **params: str | None
) -> TaskOutcome:
    """Run a task's commands in order, stopping at the first failure.

    Parameters are validated before anything runs, so a usage error never
    issues an orchestration command.

    Returns:
        TaskOutcome: The results of the commands that ran.

    Raises:
        UnknownTaskError: If the task does not exist.
        MissingTaskParameterError: If a required parameter is missing or blank.
        ExecutableNotFoundError: If a command's program cannot be found and
            the task does not ignore errors.
        CommandLaunchError: If the OS refuses to start a command and the task
            does not ignore errors.
    """
    selected = get_task(name)
    outcome = TaskOutcome(task=selected)

    if not _run_all(selected, plan(name, settings, **params), runner, outcome):
        return outcome

    if selected.follow_up is not None and outcome.results:
        follow_up = selected.follow_up(settings, outcome.results[-1])
        _run_all(selected, follow_up, runner, outcome)

    return outcome


def _run_all(
    selected: Task, commands: list[Command], runner: CommandRunner, outcome: TaskOutcome
) -> bool:
    """Run ``commands`` into ``outcome``; False if the task should stop."""
    for command in commands:
        logger.info("[%s] %s", selected.name, command)
        try:
            result = runner.run(command, capture=selected.capture)
        except (ExecutableNotFoundError, CommandLaunchError) as e:
            if not selected.ignore_errors:
                raise
            logger.warning("[%s] Ignoring failure: %s", selected.name, e)
            return False
        outcome.results.append(result)
        if result.ok:
            continue
        if selected.ignore_errors:
            logger.warning("[%s] Ignoring failure: %s", selected.name, command)
            return False
        logger.error(
            "[%s] %s", selected.name, CommandFailedError(command, result.returncode)
        )
        return False
    return True
