"""Standardized terminal output utilities.

All user-facing progress lines go through these functions so that worker
threads print whole lines with consistent styling.

Basic Usage:
    from s3upload.output import success, info, warn, error, detail

    info("Uploading photos/2015/img_001.jpg")
    success("Finished")
    warn("Purge is not implemented; bucket left untouched")
    error("photos/broken.jpg: Access Denied")
    detail("Active worker threads: 4")

Pretend Mode:
    Pass pretend=True to prefix a message with [PRETEND], marking an action
    that was reported but not performed:

    info("Uploading photos/img.jpg", pretend=True)
    # Output: → [PRETEND] Uploading photos/img.jpg
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import click

_STYLES = {
    "success": "green",
    "info": "blue",
    "warn": "yellow",
    "error": "red",
    "detail": "bright_black",
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",
}

# Workers print concurrently; one line at a time.
_echo_lock = threading.Lock()
_quiet = False


@contextmanager
def quiet() -> Iterator[None]:
    """Suppress all progress output inside the block (used for --format json)."""
    global _quiet
    previous = _quiet
    _quiet = True
    try:
        yield
    finally:
        _quiet = previous


def _output(
    message: str,
    style: str,
    *,
    file: TextIO | None = None,
    pretend: bool = False,
) -> None:
    if _quiet:
        return
    if pretend:
        message = f"[PRETEND] {message}"

    color = _STYLES[style]
    line = f"{click.style(_PREFIXES[style], fg=color)} {click.style(message, fg=color)}"
    with _echo_lock:
        click.echo(line, file=file)


def success(message: str, *, file: TextIO | None = None, pretend: bool = False) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Finished")
        ✓ Finished
    """
    _output(message, "success", file=file, pretend=pretend)


def info(message: str, *, file: TextIO | None = None, pretend: bool = False) -> None:
    """Print an info message with blue arrow.

    Example:
        >>> info("Uploading docs/readme.txt")
        → Uploading docs/readme.txt
    """
    _output(message, "info", file=file, pretend=pretend)


def warn(message: str, *, file: TextIO | None = None, pretend: bool = False) -> None:
    """Print a warning message to stderr."""
    _output(message, "warn", file=file or sys.stderr, pretend=pretend)


def error(message: str, *, file: TextIO | None = None, pretend: bool = False) -> None:
    """Print an error message with red X to stderr."""
    _output(message, "error", file=file or sys.stderr, pretend=pretend)


def detail(message: str, *, file: TextIO | None = None, pretend: bool = False) -> None:
    """Print a dimmed progress message."""
    _output(message, "detail", file=file, pretend=pretend)
