"""Configuration utilities for STACKUP.

Settings are read from environment variables once, at the edge (the CLI), and
passed down explicitly as an immutable :class:`Settings` value. Every variable
is optional; empty values are treated as unset.
"""

from __future__ import annotations

import dataclasses
import math
import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.engine import URL

from stackup.errors import InvalidSettingError

DEFAULT_COMPOSE_CMD = "docker-compose"
DEFAULT_BACKEND_SERVICE = "backend"
DEFAULT_FRONTEND_SERVICE = "frontend"
DEFAULT_DB_SERVICE = "db"
DEFAULT_BACKEND_WORKDIR = "/workspace/backend"
DEFAULT_FRONTEND_WORKDIR = "/workspace/frontend"
DEFAULT_RETRIES = 12
DEFAULT_SLEEP = 2.0
DEFAULT_DB_USER = "postgres"
DEFAULT_ENV_FILE = Path("backend/.env")
DEFAULT_ENV_TEMPLATE = Path("backend/.env.example")
DEFAULT_WORKSPACE_OWNER = "vscode"
DEFAULT_WORKSPACE_DIR = "/workspace"

PROJECT_DIR_ENVVAR = "STACKUP_PROJECT_DIR"  # pragma: no mutate

# Values written to a generated env file (development only).
DEV_DB_DRIVER = "postgresql+asyncpg"
DEV_DB_USER = "postgres"
DEV_DB_PASSWORD = "password"  # nosec B105
DEV_DB_PORT = 5432
DEV_DB_NAME = "postgres"
DEV_SECRET_KEY = "dev-secret"  # nosec B105


@dataclass(frozen=True)
class Settings:  # pylint: disable=too-many-instance-attributes
    """Resolved STACKUP settings.

    Attributes:
        compose_cmd: Compose invocation, shell-split into an argument vector
            (so ``"docker compose"`` works as well as ``"docker-compose"``).
        backend_service: Name of the backend service in the compose file.
        frontend_service: Name of the frontend service.
        db_service: Name of the database service probed for readiness.
        backend_workdir: Project path inside the backend container.
        frontend_workdir: Project path inside the frontend container.
        retries: Maximum number of readiness probes (>= 1).
        sleep: Seconds to sleep after each failed readiness probe (>= 0).
        db_user: Role passed to ``pg_isready -U``.
        env_file: Env file to create, relative to ``project_dir`` unless absolute.
        env_template: Template copied to ``env_file`` when present.
        workspace_owner: User that should own the mounted workspace.
        workspace_dir: Mounted workspace path inside the backend container.
        project_dir: Host directory holding the compose project.
        project_name: Compose project name override (``COMPOSE_PROJECT_NAME``).
    """

    compose_cmd: str = DEFAULT_COMPOSE_CMD
    backend_service: str = DEFAULT_BACKEND_SERVICE
    frontend_service: str = DEFAULT_FRONTEND_SERVICE
    db_service: str = DEFAULT_DB_SERVICE
    backend_workdir: str = DEFAULT_BACKEND_WORKDIR
    frontend_workdir: str = DEFAULT_FRONTEND_WORKDIR
    retries: int = DEFAULT_RETRIES
    sleep: float = DEFAULT_SLEEP
    db_user: str = DEFAULT_DB_USER
    env_file: Path = DEFAULT_ENV_FILE
    env_template: Path = DEFAULT_ENV_TEMPLATE
    workspace_owner: str = DEFAULT_WORKSPACE_OWNER
    workspace_dir: str = DEFAULT_WORKSPACE_DIR
    project_dir: Path = field(default_factory=Path.cwd)
    project_name: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise InvalidSettingError("RETRIES", self.retries, "expected an integer")
        if self.retries < 1:
            raise InvalidSettingError("RETRIES", self.retries, "must be at least 1")
        if not math.isfinite(self.sleep):
            raise InvalidSettingError("SLEEP", self.sleep, "must be a finite number")
        if self.sleep < 0:
            raise InvalidSettingError("SLEEP", self.sleep, "must not be negative")
        try:
            argv = shlex.split(self.compose_cmd)
        except ValueError as e:
            raise InvalidSettingError("COMPOSE_CMD", self.compose_cmd, str(e)) from e
        if not argv:
            raise InvalidSettingError("COMPOSE_CMD", self.compose_cmd, "is empty")

    @property
    def compose_argv(self) -> tuple[str, ...]:
        """The compose invocation as an argument vector."""
        return tuple(shlex.split(self.compose_cmd))

    @property
    def env_file_path(self) -> Path:
        """Absolute location of the env file to create."""
        return self.project_dir / self.env_file

    @property
    def env_template_path(self) -> Path:
        """Absolute location of the env file template."""
        return self.project_dir / self.env_template

    @property
    def compose_project_name(self) -> str:
        """Compose project name, defaulting to the project directory's name."""
        return self.project_name or self.project_dir.resolve().name

    def with_overrides(self, **changes: object) -> Settings:
        """Return a copy with ``changes`` applied; ``None`` values are ignored.

        Raises:
            InvalidSettingError: If an override fails validation.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]


def _get(environ: Mapping[str, str], name: str) -> str | None:
    if value := environ.get(name, "").strip():
        return value
    return None


def _get_str(environ: Mapping[str, str], name: str, default: str) -> str:
    return _get(environ, name) or default


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    if (raw := _get(environ, name)) is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "expected an integer") from e


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    if (raw := _get(environ, name)) is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "expected a number of seconds") from e


def load_settings(
    environ: Mapping[str, str] | None = None, *, project_dir: Path | None = None
) -> Settings:
    """Build :class:`Settings` from environment variables.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.
        project_dir: Takes precedence over STACKUP_PROJECT_DIR when given.

    Returns:
        The validated settings.

    Raises:
        InvalidSettingError: If a numeric setting cannot be parsed, a value
            is out of range or the project directory does not exist.
    """
    env = os.environ if environ is None else environ
    if project_dir is None and (raw_dir := _get(env, PROJECT_DIR_ENVVAR)):
        project_dir = Path(raw_dir)
    if project_dir is not None and not project_dir.is_dir():
        raise InvalidSettingError(
            PROJECT_DIR_ENVVAR, str(project_dir), "no such directory"
        )
    return Settings(
        compose_cmd=_get_str(env, "COMPOSE_CMD", DEFAULT_COMPOSE_CMD),
        backend_service=_get_str(env, "BACKEND_SERVICE", DEFAULT_BACKEND_SERVICE),
        frontend_service=_get_str(env, "FRONTEND_SERVICE", DEFAULT_FRONTEND_SERVICE),
        db_service=_get_str(env, "DB_SERVICE", DEFAULT_DB_SERVICE),
        backend_workdir=_get_str(env, "BACKEND_WORKDIR", DEFAULT_BACKEND_WORKDIR),
        frontend_workdir=_get_str(env, "FRONTEND_WORKDIR", DEFAULT_FRONTEND_WORKDIR),
        retries=_get_int(env, "RETRIES", DEFAULT_RETRIES),
        sleep=_get_float(env, "SLEEP", DEFAULT_SLEEP),
        db_user=_get_str(env, "DB_USER", DEFAULT_DB_USER),
        env_file=Path(_get_str(env, "ENV_FILE", str(DEFAULT_ENV_FILE))),
        env_template=Path(_get_str(env, "ENV_TEMPLATE", str(DEFAULT_ENV_TEMPLATE))),
        workspace_owner=_get_str(env, "WORKSPACE_OWNER", DEFAULT_WORKSPACE_OWNER),
        workspace_dir=_get_str(env, "WORKSPACE_DIR", DEFAULT_WORKSPACE_DIR),
        project_dir=project_dir if project_dir is not None else Path.cwd(),
        project_name=_get(env, "COMPOSE_PROJECT_NAME"),
    )


def dev_database_url(settings: Settings) -> URL:
    """Connection URL for the development database service."""
    return URL.create(
        DEV_DB_DRIVER,
        username=DEV_DB_USER,
        password=DEV_DB_PASSWORD,
        host=settings.db_service,
        port=DEV_DB_PORT,
        database=DEV_DB_NAME,
    )


def default_env_values(settings: Settings) -> dict[str, str]:
    """Key/value pairs written to a freshly generated env file."""
    return {
        "DATABASE_URL": dev_database_url(settings).render_as_string(
            hide_password=False
        ),
        "SECRET_KEY": DEV_SECRET_KEY,
        "DEBUG": "true",
    }
