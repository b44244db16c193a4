"""appbuild: production builds for single-page applications.

This package provides:
- build / run: the production build pipeline and its CLI-facing wrapper
- BuildSettings, PipelineConfig: environment settings and per-run configuration
- Compiler, SubprocessCompiler: the boundary around the delegated bundler
- BuildSuccess, BuildFailure, FailureKind: the outcome of one build
- Errors: exception hierarchy rooted at AppBuildError

Example:
    >>> from appbuild import BuildSettings, PipelineConfig, run
    >>> config = PipelineConfig.from_settings(BuildSettings(), app_dir=Path.cwd())
    >>> run(config)
    0
"""

from __future__ import annotations

__version__ = "0.1.0"

from appbuild.config import BuildSettings, PipelineConfig
from appbuild.errors import (
    AppBuildError,
    CompilerError,
    CompilerProcessError,
    MissingBrowserTargetsError,
    MissingRequiredFileError,
    StatsWriteError,
)
from appbuild.pipeline import (
    BuildFailure,
    BuildOutcome,
    BuildStage,
    BuildSuccess,
    Compiler,
    FailureKind,
    SubprocessCompiler,
    build,
    run,
)

__all__ = [
    "__version__",
    # Configuration
    "BuildSettings",
    "PipelineConfig",
    # Pipeline
    "BuildStage",
    "build",
    "run",
    "Compiler",
    "SubprocessCompiler",
    # Outcome
    "BuildFailure",
    "BuildOutcome",
    "BuildSuccess",
    "FailureKind",
    # Errors
    "AppBuildError",
    "CompilerError",
    "CompilerProcessError",
    "MissingBrowserTargetsError",
    "MissingRequiredFileError",
    "StatsWriteError",
]
