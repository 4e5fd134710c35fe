"""Terminal output for the trackersync CLI - no external dependencies.

Color is applied only when the target stream is a TTY, ``NO_COLOR`` is
unset and ``TERM`` is not ``dumb``.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO

SUMMARY_WIDTH = 60


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    CYAN = "\033[36m"


def _supports_color(stream: TextIO | None = None) -> bool:
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    return os.environ.get("TERM") != "dumb"


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


def print_error(message: str, stream: TextIO | None = None) -> None:
    """Print error message in red (stderr by default)."""
    stream = stream or sys.stderr
    print(colorize("✗", Colors.RED, bold=True, stream=stream) + " " + message, file=stream)


def _format_value(value: str | int, width: int, stream: TextIO) -> str:
    if not isinstance(value, int):
        return str(value)
    text = str(value).rjust(width)
    if value == 0:
        return colorize(text, Colors.DIM, stream=stream)
    return colorize(text, Colors.GREEN, bold=True, stream=stream)


def print_summary_box(
    title: str, items: Sequence[tuple[str, str | int]], stream: TextIO | None = None
) -> None:
    """Print a titled block of ``key  value`` rows between two rules.

    Counts are right-aligned to a common width; zero counts are dimmed so the
    actions that will actually touch a tracker stand out.
    """
    stream = stream or sys.stdout
    key_width = max((len(k) for k, _ in items), default=0)
    num_width = max((len(str(v)) for _, v in items if isinstance(v, int)), default=0)
    rule = colorize("─" * SUMMARY_WIDTH, Colors.DIM, stream=stream)

    print(colorize(f"\n{title}", Colors.CYAN, bold=True, stream=stream), file=stream)
    print(rule, file=stream)
    for key, value in items:
        print(f"  {key.ljust(key_width)}  {_format_value(value, num_width, stream)}", file=stream)
    print(rule, file=stream)


def print_command_status(
    command: str, ok: bool, details: str = "", stream: TextIO | None = None
) -> None:
    """Print a one-line ``✓ command: success (details)`` outcome."""
    stream = stream or sys.stdout
    if ok:
        icon = colorize("✓", Colors.GREEN, bold=True, stream=stream)
        status = colorize("success", Colors.GREEN, stream=stream)
    else:
        icon = colorize("✗", Colors.RED, bold=True, stream=stream)
        status = colorize("failed", Colors.RED, bold=True, stream=stream)
    message = f"{icon} {colorize(command, Colors.BOLD, stream=stream)}: {status}"
    if details:
        message += f" {colorize(f'({details})', Colors.DIM, stream=stream)}"
    print(message, file=stream)


__all__ = [
    "Colors",
    "colorize",
    "print_command_status",
    "print_error",
    "print_summary_box",
]
