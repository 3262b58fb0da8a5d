"""STACKUP command-line interface."""
