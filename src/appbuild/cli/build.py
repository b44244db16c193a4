"""Build command implementation.

This module implements the `appbuild build` command which:
- Reads the build settings from the environment
- Resolves the application paths and package.json
- Runs the build pipeline with the configured compiler
- Prints the build report and exits with the build's exit status

Example:
    $ appbuild build
    $ appbuild build --stats
    $ CI=true appbuild build --app-dir ./web
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from appbuild.cli.utils import ExitCode, error_exit, info, warn
from appbuild.config import BuildSettings, PipelineConfig
from appbuild.pipeline.stages import default_compiler, run
from appbuild.telemetry.logging import configure_logging

logger = structlog.get_logger(__name__)


def _load_settings() -> BuildSettings:
    try:
        return BuildSettings()
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        error_exit(
            f"Invalid build environment: {first.get('msg', e)}",
            exit_code=ExitCode.CONFIGURATION_ERROR,
            field=field,
        )


@click.command(
    name="build",
    help="Create an optimized production build of the application.",
    epilog="""
Examples:
    $ appbuild build
    $ appbuild build --stats
    $ appbuild build --app-dir ./web
""",
)
@click.option(
    "--stats",
    "write_stats",
    is_flag=True,
    default=False,
    help="Write the full bundler stats to bundle-stats.json in the output directory.",
)
@click.option(
    "--app-dir",
    type=click.Path(exists=True, file_okay=False, resolve_path=True, path_type=Path),
    default=".",
    show_default=True,
    help="Application root directory.",
    metavar="PATH",
)
def build_command(write_stats: bool, app_dir: Path) -> None:
    """Build the application for production."""
    settings = _load_settings()

    try:
        configure_logging(
            log_level=settings.log_level,
            json_output=settings.log_format == "json",
        )
    except ValueError as e:
        error_exit(str(e), exit_code=ExitCode.CONFIGURATION_ERROR)

    try:
        config = PipelineConfig.from_settings(
            settings,
            app_dir=app_dir,
            write_stats_to_disk=write_stats,
        )
    except ValueError as e:
        # Malformed package.json (JSONDecodeError) or invalid derived values
        error_exit(
            f"Could not load build configuration: {e}",
            exit_code=ExitCode.CONFIGURATION_ERROR,
            app_dir=str(app_dir),
        )

    logger.debug(
        "build_config_loaded",
        ci_mode=config.ci_mode,
        tsc_lenient_mode=config.tsc_lenient_mode,
        output_dir=str(config.output_dir),
    )
    if config.tsc_lenient_mode:
        warn(
            "Compiler errors are reported as type errors",
            TSC_COMPILE_ON_ERROR="true",
            exit_code=config.lenient_exit_code,
        )

    info("Creating an optimized production build...")
    exit_code = run(config, default_compiler(config, settings))
    sys.exit(exit_code)


__all__ = ["build_command"]
