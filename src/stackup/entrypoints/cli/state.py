"""Objects shared between the top-level group and its subcommands."""

from __future__ import annotations

from dataclasses import dataclass

import click

from stackup.adapters.runners import DryRunRunner, SubprocessRunner
from stackup.config import Settings
from stackup.interfaces.runner import CommandRunner


@dataclass(frozen=True)
class CliState:
    """Resolved settings and the runner every subcommand should use."""

    settings: Settings
    runner: CommandRunner


def make_runner(dry_run: bool) -> CommandRunner:
    """Runner for this invocation: real subprocesses, or printing only."""
    return DryRunRunner() if dry_run else SubprocessRunner()


pass_state = click.make_pass_decorator(CliState)
