"""Interface for running external commands.

Commands are plain argument vectors handed straight to a process-spawn API;
nothing in STACKUP builds a command line by string interpolation. The only
shell strings that exist are payloads passed explicitly to ``sh -c`` inside a
container.
"""

from __future__ import annotations

import abc
import shlex
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

# pylint: disable=too-few-public-methods


@dataclass(frozen=True)
class Command:
    """An external command as a discrete argument vector.

    Args:
        argv: Program followed by its arguments. Must not be empty.
        cwd: Directory to run the command in; ``None`` means the caller's CWD.
    """

    argv: tuple[str, ...]
    cwd: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("A command needs at least a program name.")

    @classmethod
    def of(cls, *parts: str | Iterable[str], cwd: Path | None = None) -> Command:
        """Build a command from strings and/or iterables of strings.

        Example:
            ``Command.of(["docker", "compose"], "up", "-d")``
        """
        argv: list[str] = []
        for part in parts:
            if isinstance(part, str):
                argv.append(part)
            else:
                argv.extend(part)
        return cls(tuple(argv), cwd=cwd)

    @property
    def program(self) -> str:
        """The executable at the head of the argument vector."""
        return self.argv[0]

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command."""

    command: Command
    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0


class CommandRunner(abc.ABC):
    """Contract for something that can run a :class:`Command`."""

    @abc.abstractmethod
    def run(self, command: Command, *, capture: bool = False) -> CommandResult:
        """Run a command to completion.

        Args:
            command: The command to run.
            capture: When True, collect combined stdout/stderr as text instead
                of streaming it to the terminal.

        Returns:
            CommandResult: The exit status and any captured output. A non-zero
            exit status is reported, not raised.

        Raises:
            ExecutableNotFoundError: If the program cannot be found.
            CommandLaunchError: If the OS refuses to start the command for any
                other reason.
        """
