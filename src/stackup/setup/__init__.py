"""First-time environment setup for a docker-compose development stack.

Public surface:
- :func:`run_setup` runs the eight setup steps and returns a :class:`SetupReport`.
- :func:`next_steps` lists follow-up commands to show the user afterwards.
"""

from .report import SetupReport, StepResult, StepStatus
from .sequencer import next_steps, run_setup

__all__ = ["SetupReport", "StepResult", "StepStatus", "next_steps", "run_setup"]
