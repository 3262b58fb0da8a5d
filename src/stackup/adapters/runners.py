"""Command runner adapters for STACKUP."""

import logging
import subprocess

import click

from stackup.errors import CommandLaunchError, ExecutableNotFoundError
from stackup.interfaces.runner import Command, CommandResult, CommandRunner

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


def _describe(error: OSError) -> str:
    if error.filename is not None:
        return f"{error.strerror or error}: {error.filename}"
    return str(error.strerror or error)


class SubprocessRunner(CommandRunner):
    """Runs commands as child processes via :func:`subprocess.run`.

    The argument vector is passed directly to the OS (no shell). In capture
    mode stderr is folded into stdout so probe output reads in one piece;
    otherwise the child inherits the terminal, which keeps interactive tasks
    such as ``shell`` and ``logs -f`` working.
    """

    def run(self, command: Command, *, capture: bool = False) -> CommandResult:
        logger.debug("Running: %s", command)
        try:
            if capture:
                completed = subprocess.run(
                    command.argv,
                    cwd=command.cwd,
                    check=False,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                )
            else:
                completed = subprocess.run(command.argv, cwd=command.cwd, check=False)
        except FileNotFoundError as e:
            # ENOENT also covers a missing cwd; then filename is the directory
            if e.filename not in (None, command.program):
                raise CommandLaunchError(command, _describe(e)) from e
            raise ExecutableNotFoundError(command.program) from e
        except OSError as e:
            raise CommandLaunchError(command, _describe(e)) from e

        logger.debug("Exit status %s: %s", completed.returncode, command)
        return CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=(completed.stdout or "") if capture else "",
        )


class DryRunRunner(CommandRunner):
    """Prints commands instead of running them.

    Every command "succeeds" with empty output, so conditional steps behave
    as if their probe found what it was looking for and the full plan is shown.
    """

    def run(self, command: Command, *, capture: bool = False) -> CommandResult:
        logger.info("Dry run: %s", command)
        click.echo(f"+ {command}")
        return CommandResult(command=command, returncode=0)
