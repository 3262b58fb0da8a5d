"""CLI helpers for STACKUP.

Utilities used by the command-line interface: logger-level option parsing,
message emitters that write to stderr with emoji→ASCII fallbacks, and the
rendering of setup reports.
"""

from .messages import error, info, success, warn
from .report import render_report

__all__ = ["error", "info", "render_report", "success", "warn"]
