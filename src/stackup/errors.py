"""Error definitions for STACKUP."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stackup.interfaces.runner import Command

# ============================================================================
#                           General errors
# ============================================================================


class StackupError(Exception):
    """Base class for STACKUP errors."""


class InvalidSettingError(StackupError):
    """Raised when an environment setting cannot be parsed or is out of range."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid value for {name}: {value!r} ({reason}).")
        self.name = name
        self.value = value
        self.reason = reason


# ============================================================================
#                           Task dispatcher errors
# ============================================================================


class UnknownTaskError(StackupError, LookupError):
    """Raised when a task name is not present in the task table."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown task '{name}'.")
        self.name = name


class MissingTaskParameterError(StackupError):
    """Raised when a parameterized task is invoked without a required parameter."""

    def __init__(self, task: str, parameter: str, usage: str) -> None:
        super().__init__(f"Specify {parameter} for '{task}', e.g. {usage}")
        self.task = task
        self.parameter = parameter
        self.usage = usage


# ============================================================================
#                           Process errors
# ============================================================================


class ExecutableNotFoundError(StackupError):
    """Raised when the program at the head of an argument vector cannot be found."""

    def __init__(self, executable: str) -> None:
        super().__init__(
            f"Executable '{executable}' was not found. Is it installed and on PATH?"
        )
        self.executable = executable


class CommandLaunchError(StackupError):
    """Raised when the OS refuses to start a command for a reason other than a
    missing program (missing working directory, permission denied, ...)."""

    def __init__(self, command: Command, reason: str) -> None:
        super().__init__(f"Could not start '{command}': {reason}")
        self.command = command
        self.reason = reason


class CommandFailedError(StackupError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: Command, returncode: int) -> None:
        super().__init__(f"Command '{command}' exited with status {returncode}.")
        self.command = command
        self.returncode = returncode


class ServiceStartError(StackupError):
    """Raised when the compose stack cannot be started; aborts setup."""

    def __init__(self, command: Command, returncode: int | None = None) -> None:
        reason = (
            f"exited with status {returncode}"
            if returncode is not None
            else "could not be executed"
        )
        super().__init__(f"Starting services failed: '{command}' {reason}.")
        self.command = command
        self.returncode = returncode
