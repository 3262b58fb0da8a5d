"""Functional tests.

Purpose
- Validate what a developer sees when driving ``stackup`` from the shell:
  exit codes, printed summaries, files written, and the commands issued.

Guidelines
- Invoke the real CLI group through ``click.testing.CliRunner``.
- Swap only the command runner (``use_runner``); everything else is real.
- One flow/concern per test.
"""
