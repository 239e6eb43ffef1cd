"""CLI utility modules."""

from bothost.cli.utils.output import console, print_error, print_success, print_warning

__all__ = [
    "console",
    "print_error",
    "print_success",
    "print_warning",
]
