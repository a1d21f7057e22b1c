"""CLI helpers exposed for command modules."""

from .ui import console, print_json, run_or_exit

__all__ = ["console", "print_json", "run_or_exit"]
