"""Build outcome: the single, immutable result of one pipeline run.

Exactly one ``BuildSuccess`` or ``BuildFailure`` is produced per run and it
is the only input to reporting and to the exit-code decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from appbuild.pipeline.compiler import BuildStats
from appbuild.pipeline.diagnostics import Diagnostic
from appbuild.pipeline.inventory import SizeSnapshot


class FailureKind(str, Enum):
    """Why a build failed.

    Example:
        >>> FailureKind.CI_WARNING_ESCALATION.from_compiler
        True
        >>> FailureKind.STATS_WRITE_FAULT.from_compiler
        False
    """

    MISSING_REQUIRED_FILE = "MISSING_REQUIRED_FILE"
    """Entry document or entry script missing; nothing was touched yet."""

    MISSING_BROWSER_TARGETS = "MISSING_BROWSER_TARGETS"
    """No browserslist configuration while one is required."""

    COMPILER_THROW = "COMPILER_THROW"
    """The compiler raised instead of producing stats."""

    STRUCTURED_DIAGNOSTIC_ERROR = "STRUCTURED_DIAGNOSTIC_ERROR"
    """The compiler reported errors (first one retained)."""

    CI_WARNING_ESCALATION = "CI_WARNING_ESCALATION"
    """Warnings only, escalated to a failure because CI mode is active."""

    STATS_WRITE_FAULT = "STATS_WRITE_FAULT"
    """Compilation succeeded but the stats artifact could not be written."""

    INTERNAL = "INTERNAL"
    """Unexpected exception inside the pipeline itself."""

    @property
    def from_compiler(self) -> bool:
        """Whether the failure originates from the compiler's diagnostics."""
        return self in {
            FailureKind.COMPILER_THROW,
            FailureKind.STRUCTURED_DIAGNOSTIC_ERROR,
            FailureKind.CI_WARNING_ESCALATION,
        }


@dataclass(frozen=True)
class BuildSuccess:
    """The build finished and its output directory is ready."""

    stats: BuildStats
    previous_sizes: SizeSnapshot
    warnings: tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class BuildFailure:
    """The build stopped at the first fatal condition.

    Attributes:
        kind: Failure category.
        message: Message shown to the user. Empty for an opaque compiler
            fault, in which case ``cause`` is all there is to show.
        cause: Exception behind the failure, if any.
        omitted_error_count: Further compiler errors not shown.
    """

    kind: FailureKind
    message: str
    cause: BaseException | None = field(default=None, compare=False)
    omitted_error_count: int = 0


BuildOutcome = Union[BuildSuccess, BuildFailure]


__all__ = ["BuildFailure", "BuildOutcome", "BuildSuccess", "FailureKind"]
