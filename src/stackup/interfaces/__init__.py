"""Contracts between STACKUP's orchestration logic and the outside world."""

from .runner import Command, CommandResult, CommandRunner

__all__ = ["Command", "CommandResult", "CommandRunner"]
