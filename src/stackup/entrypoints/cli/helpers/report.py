"""Rendering of setup reports for the terminal."""

import click

from stackup.setup import SetupReport, StepStatus

from .messages import error_glyph, skip_glyph, success_glyph

_STYLES = {
    StepStatus.SUCCEEDED: ("green", success_glyph),
    StepStatus.SKIPPED: ("bright_black", skip_glyph),
    StepStatus.FAILED: ("red", error_glyph),
}


def render_report(report: SetupReport) -> None:
    """Write one line per step to **stderr**: glyph, step name, status, detail."""
    width = max((len(r.name) for r in report), default=0)
    for result in report:
        color, glyph = _STYLES[result.status]
        line = f"{glyph()}  {result.name:<{width}}  {result.status.value:<9}"
        if result.detail:
            line += f"  {result.detail}"
        click.secho(line, fg=color, err=True)
