"""Environment file creation.

The env file is created at most once. If it already exists it is left
untouched, whatever its contents; otherwise it is copied from a template or
generated from default values. Writes use exclusive creation (mode ``x``) so
a file that appears between the check and the write is never clobbered.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class EnvFileOutcome(Enum):
    """What :func:`ensure_env_file` did."""

    EXISTING = "existing"
    COPIED = "copied"
    GENERATED = "generated"


def render_env(values: Mapping[str, str]) -> str:
    """Render ``KEY=VALUE`` lines (newline-terminated) in insertion order."""
    return "".join(f"{key}={value}\n" for key, value in values.items())


def ensure_env_file(
    path: Path, *, template: Path | None, values: Mapping[str, str]
) -> EnvFileOutcome:
    """Make sure ``path`` exists without ever overwriting it.

    Args:
        path: Env file to create.
        template: Copied verbatim when it exists.
        values: Used to generate the file when there is no template.

    Returns:
        EnvFileOutcome: ``EXISTING`` if nothing was written.

    Raises:
        OSError: If the file cannot be read or written.
    """
    if path.exists():
        logger.info("%s already exists; leaving it untouched", path)
        return EnvFileOutcome.EXISTING

    if template is not None and template.is_file():
        content = template.read_bytes()
        outcome = EnvFileOutcome.COPIED
        logger.info("Copying %s to %s", template, path)
    else:
        content = render_env(values).encode("utf-8")
        outcome = EnvFileOutcome.GENERATED
        logger.info("Generating %s (development values)", path)

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("xb") as f:
            f.write(content)
    except FileExistsError:
        logger.info("%s appeared while writing; leaving it untouched", path)
        return EnvFileOutcome.EXISTING
    return outcome
