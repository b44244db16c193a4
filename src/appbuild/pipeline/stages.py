"""Build stages for the appbuild production pipeline.

The pipeline runs six sequential stages that turn an application tree into
a deployable output directory:

Stages:
    1. PREFLIGHT: Required files and (optionally) browser targets
    2. MEASURE: Baseline size snapshot of the previous build
    3. STAGE: Clear the output directory and merge the public directory
    4. COMPILE: Hand control to the delegated compiler, exactly once
    5. CLASSIFY: Turn the compiler outcome into errors and warnings
    6. PERSIST: Stream the build stats to disk (``--stats`` only)

The first fatal condition short-circuits every later stage. Each run ends in
exactly one ``BuildOutcome``; reporting and the exit status are derived from
it alone.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from appbuild.config import BuildSettings, PipelineConfig
from appbuild.errors import (
    MissingBrowserTargetsError,
    MissingRequiredFileError,
    StatsWriteError,
)
from appbuild.paths import has_browserslist
from appbuild.pipeline import inventory, staging
from appbuild.pipeline.compiler import Compiler, SubprocessCompiler, ThrownFault, compile_once
from appbuild.pipeline.diagnostics import classify
from appbuild.pipeline.outcome import BuildFailure, BuildOutcome, BuildSuccess, FailureKind
from appbuild.pipeline.reporting import report
from appbuild.pipeline.serializer import persist
from appbuild.telemetry.tracing import create_span

if TYPE_CHECKING:
    from opentelemetry.trace import Span

logger = structlog.get_logger(__name__)


class BuildStage(str, Enum):
    """Stage in the build pipeline.

    Example:
        >>> BuildStage.COMPILE.span_name
        'build.compile'
    """

    PREFLIGHT = "PREFLIGHT"
    """Check required files and browser targets before touching anything."""

    MEASURE = "MEASURE"
    """Record sizes of the previous build for comparison."""

    STAGE = "STAGE"
    """Empty the output directory and copy the public directory into it."""

    COMPILE = "COMPILE"
    """Run the delegated compiler once."""

    CLASSIFY = "CLASSIFY"
    """Derive the canonical errors and warnings."""

    PERSIST = "PERSIST"
    """Write the build stats artifact."""

    @property
    def span_name(self) -> str:
        return f"build.{self.value.lower()}"

    @property
    def description(self) -> str:
        """Get human-readable description of this stage.

        Example:
            >>> BuildStage.MEASURE.description
            'Measure previous build'
        """
        descriptions = {
            BuildStage.PREFLIGHT: "Check required files",
            BuildStage.MEASURE: "Measure previous build",
            BuildStage.STAGE: "Prepare output directory",
            BuildStage.COMPILE: "Compile application",
            BuildStage.CLASSIFY: "Classify diagnostics",
            BuildStage.PERSIST: "Write build stats",
        }
        return descriptions[self]


@contextmanager
def _stage(
    stage: BuildStage,
    log: structlog.stdlib.BoundLogger,
    **attributes: Any,
) -> Iterator[Span]:
    stage_start = time.perf_counter()
    with create_span(
        stage.span_name,
        attributes={"build.stage": stage.value, **attributes},
    ) as span:
        log.info("build_stage_start", stage=stage.value)
        yield span
        duration_ms = (time.perf_counter() - stage_start) * 1000
        log.info(
            "build_stage_complete",
            stage=stage.value,
            duration_ms=round(duration_ms, 2),
        )


async def _run_stages(
    config: PipelineConfig,
    compiler: Compiler,
    log: structlog.stdlib.BoundLogger,
) -> BuildOutcome:
    # Stage 1: PREFLIGHT - nothing on disk has been touched yet
    with _stage(BuildStage.PREFLIGHT, log):
        for path in config.required_files:
            if not path.is_file():
                error = MissingRequiredFileError(path)
                log.warning("required_file_missing", path=str(path))
                return BuildFailure(
                    kind=FailureKind.MISSING_REQUIRED_FILE,
                    message=str(error),
                    cause=error,
                )
        if config.require_browserslist and not has_browserslist(config.app_dir):
            error = MissingBrowserTargetsError(config.app_dir)
            log.warning("browser_targets_missing")
            return BuildFailure(
                kind=FailureKind.MISSING_BROWSER_TARGETS,
                message=str(error),
                cause=error,
            )

    # Stage 2: MEASURE
    with _stage(BuildStage.MEASURE, log) as span:
        previous_sizes = await asyncio.to_thread(inventory.snapshot, config.output_dir)
        span.set_attribute("build.previous_file_count", len(previous_sizes))

    # Stage 3: STAGE
    with _stage(BuildStage.STAGE, log):
        await asyncio.to_thread(staging.clear, config.output_dir)
        await asyncio.to_thread(
            staging.merge,
            config.public_dir,
            config.output_dir,
            config.entry_document_path,
        )

    # Stage 4: COMPILE
    with _stage(BuildStage.COMPILE, log) as span:
        outcome = await compile_once(compiler)
        span.set_attribute("build.compile_outcome", type(outcome).__name__)

    # Stage 5: CLASSIFY
    with _stage(BuildStage.CLASSIFY, log) as span:
        result = classify(outcome)
        span.set_attribute("build.error_count", len(result.errors))
        span.set_attribute("build.warning_count", len(result.warnings))

    if result.has_errors:
        if isinstance(outcome, ThrownFault):
            # Opaque faults carry no message; the exception itself is reported.
            message = "" if outcome.message is None else result.errors[0].message
            return BuildFailure(
                kind=FailureKind.COMPILER_THROW,
                message=message,
                cause=outcome.error,
            )
        return BuildFailure(
            kind=FailureKind.STRUCTURED_DIAGNOSTIC_ERROR,
            message=result.errors[0].message,
            omitted_error_count=result.omitted_error_count,
        )

    if config.ci_mode and result.has_warnings:
        log.info("warnings_escalated", warning_count=len(result.warnings))
        return BuildFailure(
            kind=FailureKind.CI_WARNING_ESCALATION,
            message=result.joined_warnings(),
        )

    stats = outcome.stats

    # Stage 6: PERSIST
    if config.write_stats_to_disk:
        with _stage(BuildStage.PERSIST, log):
            try:
                await persist(stats, config.stats_path)
            except StatsWriteError as e:
                return BuildFailure(
                    kind=FailureKind.STATS_WRITE_FAULT,
                    message=str(e),
                    cause=e,
                )

    return BuildSuccess(
        stats=stats,
        previous_sizes=previous_sizes,
        warnings=result.warnings,
    )


async def build(config: PipelineConfig, compiler: Compiler) -> BuildOutcome:
    """Run the build pipeline once.

    Never raises for build problems: every failure, including unexpected
    exceptions inside a stage, is returned as a ``BuildFailure``.

    Args:
        config: Configuration for this run.
        compiler: The delegated compiler, invoked at most once.

    Returns:
        BuildSuccess, or BuildFailure for the first fatal condition.

    Example:
        >>> outcome = await build(config, SubprocessCompiler(command, cwd=app_dir))
        >>> isinstance(outcome, BuildSuccess)
        True
    """
    log = logger.bind(app_dir=str(config.app_dir), output_dir=str(config.output_dir))
    pipeline_start = time.perf_counter()

    with create_span(
        "build.pipeline",
        attributes={
            "build.app_dir": str(config.app_dir),
            "build.ci_mode": config.ci_mode,
            "build.write_stats": config.write_stats_to_disk,
        },
    ) as pipeline_span:
        try:
            outcome = await _run_stages(config, compiler, log)
        except Exception as e:
            log.exception("build_internal_error", error_type=type(e).__name__)
            outcome = BuildFailure(
                kind=FailureKind.INTERNAL,
                message=f"{type(e).__name__}: {e}",
                cause=e,
            )

        total_duration_ms = (time.perf_counter() - pipeline_start) * 1000
        result = "SUCCESS" if isinstance(outcome, BuildSuccess) else outcome.kind.value
        pipeline_span.set_attribute("build.outcome", result)
        pipeline_span.set_attribute("build.total_duration_ms", round(total_duration_ms, 2))
        log.info(
            "build_complete",
            outcome=result,
            total_duration_ms=round(total_duration_ms, 2),
        )

    return outcome


def exit_code_for(outcome: BuildOutcome, config: PipelineConfig) -> int:
    """Process exit status for a build outcome.

    Example:
        >>> exit_code_for(BuildFailure(kind=FailureKind.INTERNAL, message="x"), config)
        1
    """
    if isinstance(outcome, BuildSuccess):
        return 0
    if config.tsc_lenient_mode and outcome.kind.from_compiler:
        return config.lenient_exit_code
    return 1


def default_compiler(config: PipelineConfig, settings: BuildSettings | None = None) -> Compiler:
    """Compiler configured by ``BUILD_COMPILER_COMMAND``."""
    settings = settings or BuildSettings()
    return SubprocessCompiler(settings.compiler_command, cwd=config.app_dir)


def run(config: PipelineConfig, compiler: Compiler | None = None) -> int:
    """Build, print the report and return the process exit status.

    Args:
        config: Configuration for this run.
        compiler: Delegated compiler; defaults to the configured subprocess.

    Returns:
        0 on success, otherwise the failure exit status.
    """
    if compiler is None:
        compiler = default_compiler(config)

    outcome = asyncio.run(build(config, compiler))
    current_sizes = (
        inventory.snapshot(config.output_dir) if isinstance(outcome, BuildSuccess) else None
    )
    report(outcome, config, current_sizes)
    return exit_code_for(outcome, config)


__all__ = [
    "BuildStage",
    "build",
    "default_compiler",
    "exit_code_for",
    "run",
]
