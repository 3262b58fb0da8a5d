"""Task commands: one CLI command per entry in :data:`stackup.tasks.TASKS`.

Parameterless tasks are generated from the task table. ``exec`` and
``shell`` are declared explicitly because they take options; like the
``make exec SERVICE=... CMD=...`` they replace, the options fall back to the
``SERVICE`` and ``CMD`` environment variables.

Exit status
- 2 when a required parameter is missing (nothing is run).
- The exit status of the first failing command otherwise.
"""

from __future__ import annotations

import click

from stackup import tasks
from stackup.errors import (
    CommandLaunchError,
    ExecutableNotFoundError,
    MissingTaskParameterError,
)

from .state import CliState, pass_state

SERVICE_OPTION_HELP = "Target service name (env: SERVICE)."


def _run_task(state: CliState, name: str, **params: str | None) -> None:
    try:
        outcome = tasks.dispatch(name, state.settings, state.runner, **params)
    except MissingTaskParameterError as e:
        raise click.UsageError(str(e)) from e
    except (ExecutableNotFoundError, CommandLaunchError) as e:
        raise click.ClickException(str(e)) from e
    if outcome.returncode != 0:
        click.get_current_context().exit(outcome.returncode)


def _make_task_command(task: tasks.Task) -> click.Command:
    @pass_state
    def callback(state: CliState) -> None:
        _run_task(state, task.name)

    return click.Command(task.name, callback=callback, help=task.help)


@click.command("exec", help=tasks.TASKS["exec"].help)
@click.option("--service", "-s", envvar="SERVICE", help=SERVICE_OPTION_HELP)
@click.option(
    "--cmd",
    "-c",
    envvar="CMD",
    help="Shell command to run with `sh -lc` (env: CMD).",
)
@pass_state
def exec_command(state: CliState, service: str | None, cmd: str | None) -> None:
    """Run ``sh -lc CMD`` in SERVICE."""
    _run_task(state, "exec", service=service, cmd=cmd)


@click.command("shell", help=tasks.TASKS["shell"].help)
@click.option("--service", "-s", envvar="SERVICE", help=SERVICE_OPTION_HELP)
@pass_state
def shell_command(state: CliState, service: str | None) -> None:
    """Open ``sh`` in SERVICE."""
    _run_task(state, "shell", service=service)


def task_commands() -> list[click.Command]:
    """All task commands, in task-table order."""
    explicit = {"exec": exec_command, "shell": shell_command}
    return [
        explicit.get(name) or _make_task_command(task)
        for name, task in tasks.TASKS.items()
    ]
