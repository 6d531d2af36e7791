"""Utility helpers for codex-analysis."""

from .console import (
    console,
    print_error,
    print_header,
    print_info,
    print_panel,
    print_success,
    print_warning,
)
from .log_config import configure_logging

__all__ = [
    "configure_logging",
    "console",
    "print_error",
    "print_header",
    "print_info",
    "print_panel",
    "print_success",
    "print_warning",
]
