"""Command-line interface for appbuild.

Example:
    $ appbuild --version
    $ appbuild build --stats

Exit Codes:
    0: Build succeeded
    1: Build failed (TSC_COMPILE_ON_ERROR: LENIENT_EXIT_CODE for compiler failures)
    2: Usage error (invalid arguments)
    3: Configuration error (environment or package.json)
"""

from __future__ import annotations

from appbuild.cli.main import cli, main
from appbuild.cli.utils import ExitCode, error, error_exit, info, warn

__all__: list[str] = [
    # Entry points
    "main",
    "cli",
    # Utilities
    "ExitCode",
    "error",
    "error_exit",
    "info",
    "warn",
]
