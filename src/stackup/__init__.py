"""STACKUP

Developer convenience for docker-compose stacks: named shortcuts for common
compose operations and an idempotent first-time setup sequence that brings a
freshly cloned project to a runnable development state.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
