"""Unit tests.

Purpose
- Verify a single module/class/function in isolation.

Guidelines
- No real processes, containers or sleeping; use ``tests.fakes`` at the runner
  and sleep boundaries.
- Filesystem access only under ``tmp_path``.
- Keep tests small, fast, and deterministic.
"""
