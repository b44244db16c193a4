"""CLI utility functions and error handling.

Shared output helpers for the appbuild CLI. The build report goes to stdout;
everything here except the report writes to stderr so that redirecting stdout
captures the report alone.

Example:
    from appbuild.cli.utils import error_exit, ExitCode

    error_exit("Invalid configuration", exit_code=ExitCode.CONFIGURATION_ERROR)
"""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from typing import NoReturn


class ExitCode(IntEnum):
    """Exit codes for CLI commands.

    Build outcomes only ever exit with SUCCESS or BUILD_FAILURE (or the
    lenient exit code configured for type-check failures).
    """

    SUCCESS = 0
    """Build completed successfully."""

    BUILD_FAILURE = 1
    """The build failed."""

    USAGE_ERROR = 2
    """Invalid usage (bad arguments or options)."""

    CONFIGURATION_ERROR = 3
    """Environment or package.json could not be read."""


def _with_context(prefix: str, message: str, context: dict[str, str | int | bool | None]) -> str:
    context_str = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
    if context_str:
        return f"{prefix}: {message} ({context_str})"
    return f"{prefix}: {message}"


def error(message: str, **context: str | int | bool | None) -> None:
    """Print an error message to stderr.

    Example:
        error("Invalid setting", field="lenient_exit_code")
        # Output: Error: Invalid setting (field=lenient_exit_code)
    """
    click.echo(_with_context("Error", message, context), err=True)


def error_exit(
    message: str,
    exit_code: ExitCode = ExitCode.BUILD_FAILURE,
    **context: str | int | bool | None,
) -> NoReturn:
    """Print an error message to stderr and exit with a code.

    Args:
        message: Error message to display.
        exit_code: Exit code to use (default: BUILD_FAILURE).
        **context: Optional context key-value pairs to include.

    Raises:
        SystemExit: Always exits with the specified code.
    """
    error(message, **context)
    sys.exit(exit_code)


def warn(message: str, **context: str | int | bool | None) -> None:
    """Print a warning message to stderr."""
    click.echo(_with_context("Warning", message, context), err=True)


def info(message: str) -> None:
    """Print an informational message to stderr."""
    click.echo(message, err=True)


__all__ = ["ExitCode", "error", "error_exit", "info", "warn"]
