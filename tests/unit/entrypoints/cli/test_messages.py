"""Unit tests for the terminal message helpers and setup-report rendering.

Glyphs follow the encoding of the stream Click reports for stderr, so the
tests swap in a fake TTY with a chosen encoding. Everything user-facing goes
to stderr; stdout belongs to the commands STACKUP runs.
"""

import io
import sys

import click
import pytest

from stackup.entrypoints.cli.helpers import error, info, render_report, success, warn
from stackup.entrypoints.cli.helpers.messages import (
    _supports_character,
    caution_glyph,
    error_glyph,
    skip_glyph,
    success_glyph,
)
from stackup.setup import SetupReport, StepResult

SET_YELLOW = "\x1b[33m"
SET_GREEN = "\x1b[32m"
SET_RED = "\x1b[31m"
SET_BOLD = "\x1b[1m"
RESET = "\x1b[0m"


class FakeTTY(io.StringIO):
    """A StringIO that claims to be a TTY with a fixed encoding."""

    def __init__(self, encoding: str):
        super().__init__()
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def isatty(self) -> bool:
        return True


@pytest.fixture
def stderr_as(monkeypatch):
    """Route Click's stderr probe and ``sys.stderr`` to one FakeTTY."""

    def _install(encoding: str) -> FakeTTY:
        stream = FakeTTY(encoding)
        monkeypatch.setattr(click, "get_text_stream", lambda name: stream)
        monkeypatch.setattr(sys, "stderr", stream, raising=False)
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("CLICOLOR", "1")
        return stream

    return _install


@pytest.mark.parametrize(
    ("encoding", "expected"),
    [
        ("ascii", ("[!]", "[OK]", "[X]", "[-]")),
        ("utf-8", ("⚠️", "✅", "❌", "⏭️")),
    ],
)
def test_glyphs_follow_stderr_encoding(stderr_as, encoding, expected):
    stderr_as(encoding)
    assert (caution_glyph(), success_glyph(), error_glyph(), skip_glyph()) == expected


def test_supports_character_requeries_stream_each_call(monkeypatch):
    encodings = iter(["ascii", "utf-8"])
    monkeypatch.setattr(click, "get_text_stream", lambda name: FakeTTY(next(encodings)))

    assert _supports_character("✅") is False
    assert _supports_character("✅") is True


def test_missing_encoding_falls_back_to_ascii(monkeypatch):
    monkeypatch.setattr(click, "get_text_stream", lambda name: object())
    assert success_glyph() == "[OK]"


@pytest.mark.parametrize(
    ("func", "color_code", "glyph"),
    [
        (warn, SET_YELLOW, "[!]"),
        (success, SET_GREEN, "[OK]"),
        (error, SET_RED, "[X]"),
    ],
)
def test_messages_are_bold_and_colored(stderr_as, func, color_code, glyph):
    stream = stderr_as("ascii")

    func("Post-compose setup finished.")

    out = stream.getvalue()
    assert f"{glyph}  Post-compose setup finished." in out
    assert SET_BOLD in out
    assert color_code in out
    assert out.rstrip("\n").endswith(RESET)


def test_messages_leave_stdout_alone(capsys):
    warn("careful")
    info("Helpful next steps:")
    captured = capsys.readouterr()
    assert "careful" in captured.err
    assert "Helpful next steps:" in captured.err
    assert captured.out == ""


def test_render_report_one_line_per_step(stderr_as):
    stream = stderr_as("ascii")
    report = SetupReport()
    report.add(StepResult.succeeded("start-services", "services started"))
    report.add(StepResult.skipped("seed", "no seed script"))
    report.add(StepResult.failed("wait-for-db", "not ready after 12 attempt(s)"))

    render_report(report)

    lines = click.unstyle(stream.getvalue()).splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("[OK]  start-services  succeeded")
    assert lines[1].startswith("[-]  seed            skipped")
    assert lines[2].startswith("[X]  wait-for-db     failed")
    assert lines[2].endswith("not ready after 12 attempt(s)")
