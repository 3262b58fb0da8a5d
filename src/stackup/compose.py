"""Argument-vector builders for docker-compose operations.

:class:`Compose` knows nothing about tasks or setup steps; it only turns
"start these services" or "run this in that container" into a
:class:`~stackup.interfaces.runner.Command`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from stackup.interfaces.runner import Command


class Compose:
    """Builds compose commands rooted at a project directory.

    Args:
        argv: The compose invocation, e.g. ``("docker-compose",)`` or
            ``("docker", "compose")``.
        project_dir: Directory the commands run in (where the compose file lives).
    """

    def __init__(self, argv: Sequence[str], project_dir: Path | None = None) -> None:
        if not argv:
            raise ValueError("Compose needs a non-empty invocation.")
        self._argv = tuple(argv)
        self._project_dir = project_dir

    def command(self, *args: str | Iterable[str]) -> Command:
        """Build an arbitrary compose subcommand."""
        return Command.of(self._argv, *args, cwd=self._project_dir)

    def up(
        self,
        *services: str,
        detached: bool = False,
        build: bool = False,
        force_recreate: bool = False,
    ) -> Command:
        """``up`` for all services, or only ``services`` when given."""
        flags = []
        if detached:
            flags.append("-d")
        if build:
            flags.append("--build")
        if force_recreate:
            flags.append("--force-recreate")
        return self.command("up", flags, services)

    def down(self, *, volumes: bool = False) -> Command:
        """``down``; with ``volumes`` also removes named volumes."""
        return self.command("down", ["-v"] if volumes else [])

    def logs(self, *, follow: bool = True) -> Command:
        """``logs``, following by default."""
        return self.command("logs", ["-f"] if follow else [])

    def ps(self) -> Command:
        """``ps``."""
        return self.command("ps")

    def exec(
        self,
        service: str,
        *argv: str,
        workdir: str | None = None,
        tty: bool = True,
    ) -> Command:
        """``exec`` a program inside a running service container.

        Args:
            service: Target service name.
            argv: Program and arguments to run in the container.
            workdir: Working directory inside the container (``--workdir``).
            tty: Allocate a pseudo-TTY. Pass False (``-T``) for scripted,
                non-interactive calls such as probes.
        """
        flags = []
        if not tty:
            flags.append("-T")
        if workdir:
            flags.extend(["--workdir", workdir])
        return self.command("exec", flags, service, argv)

    def sh(
        self,
        service: str,
        script: str,
        *,
        workdir: str | None = None,
        tty: bool = True,
        login: bool = False,
    ) -> Command:
        """Run a shell payload in ``service`` via ``sh -c`` (or ``sh -lc``)."""
        return self.exec(
            service, "sh", "-lc" if login else "-c", script, workdir=workdir, tty=tty
        )

    def probe(self, service: str, *argv: str) -> Command:
        """Non-interactive ``exec`` used to test for something in a container."""
        return self.exec(service, *argv, tty=False)
