"""STACKUP test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- functional/   : User-visible flows through the CLI, with a fake command runner.
- e2e/          : The real top-level CLI group: logging flags and flight recorder.

General guidance
- Never start real containers; every external command goes through a runner,
  and tests use the recording fake in ``tests.fakes``.
- Functional tests assert user-observable results (exit codes, files, the
  commands issued), not internals.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
"""
