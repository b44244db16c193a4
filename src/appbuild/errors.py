"""Exception hierarchy for appbuild.

All exceptions raised deliberately by the build pipeline inherit from
AppBuildError so callers can catch them with a single except clause.

Exception Hierarchy:
    AppBuildError (base)
    ├── MissingRequiredFileError   # Entry document or entry script missing
    ├── MissingBrowserTargetsError # No browserslist configuration found
    ├── CompilerError              # Fault raised by the delegated compiler
    │   └── CompilerProcessError   # Compiler process could not run or spoke garbage
    └── StatsWriteError            # Streaming the build stats to disk failed

Exit Codes:
    0 - Success
    1 - Any build failure

Example:
    >>> from appbuild.errors import MissingRequiredFileError
    >>> raise MissingRequiredFileError(Path("public/index.html"))
    Traceback (most recent call last):
        ...
    MissingRequiredFileError: Could not find a required file: index.html
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class AppBuildError(Exception):
    """Base exception for all appbuild errors.

    Attributes:
        exit_code: CLI exit code for this error type (default: 1).
    """

    exit_code: int = 1


class MissingRequiredFileError(AppBuildError):
    """Raised when a file the build cannot start without is missing.

    Attributes:
        path: Absolute path of the missing file.

    Example:
        >>> err = MissingRequiredFileError(Path("/app/public/index.html"))
        >>> err.name, str(err.directory)
        ('index.html', '/app/public')
    """

    def __init__(self, path: Path) -> None:
        """Initialize MissingRequiredFileError.

        Args:
            path: Path of the missing file.
        """
        self.path = path
        super().__init__(f"Could not find a required file: {path.name}")

    @property
    def name(self) -> str:
        """File name that was searched for."""
        return self.path.name

    @property
    def directory(self) -> Path:
        """Directory that was searched."""
        return self.path.parent


class MissingBrowserTargetsError(AppBuildError):
    """Raised when the project does not declare its target browsers."""

    def __init__(self, app_dir: Path) -> None:
        self.app_dir = app_dir
        super().__init__(
            "You must specify targeted browsers with a `browserslist` key in "
            f"package.json or a .browserslistrc file in {app_dir}."
        )


class CompilerError(AppBuildError):
    """Fault raised by a compiler while producing the build.

    A compiler implementation raises this (or any other exception) when it
    cannot deliver a structured result. Style-sheet processors attach the
    offending node as ``postcss_node`` so the adapter can point at the
    selector that started the failure.

    Attributes:
        postcss_node: Optional style-sheet node (object or mapping with a
            ``selector``) that originated the fault.

    Example:
        >>> raise CompilerError("Unknown word", postcss_node={"selector": ".btn"})
        Traceback (most recent call last):
            ...
        CompilerError: Unknown word
    """

    def __init__(self, message: str = "", *, postcss_node: Any = None) -> None:
        if postcss_node is not None:
            self.postcss_node = postcss_node
        super().__init__(message)


class CompilerProcessError(CompilerError):
    """Raised when the compiler process cannot be started or its output parsed.

    Attributes:
        command: The command line that was executed.
        returncode: Process exit status, or None if it never started.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str],
        returncode: int | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(message)


class StatsWriteError(AppBuildError):
    """Raised when the build stats artifact cannot be written.

    Attributes:
        destination: Path the stats were being written to.
        reason: Underlying error description.
    """

    def __init__(self, destination: Path, reason: str) -> None:
        self.destination = destination
        self.reason = reason
        super().__init__(f"Failed to write build stats to {destination}: {reason}")


__all__ = [
    "AppBuildError",
    "CompilerError",
    "CompilerProcessError",
    "MissingBrowserTargetsError",
    "MissingRequiredFileError",
    "StatsWriteError",
]
