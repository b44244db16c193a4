"""Build configuration.

Two layers:

- ``BuildSettings`` reads the process environment once (pydantic-settings).
  Loading ``.env`` files is the job of the environment loader that runs
  before the build, so no env_file is configured here.
- ``PipelineConfig`` is the immutable value derived from the settings and
  the application paths. It is created once per run and passed to every
  pipeline stage; no stage reads the environment directly.

Environment Variables:
    CI: Any non-empty value other than "false" (case-insensitive) turns
        warnings into build failures.
    TSC_COMPILE_ON_ERROR: "true" reports compiler failures as type errors.
    BUILD_PATH: Output directory, relative to the application root.
    PUBLIC_URL: URL or path the build is served from.
    BUILD_COMPILER_COMMAND: Command line of the delegated compiler.
    LENIENT_EXIT_CODE: Exit code for compiler failures under
        TSC_COMPILE_ON_ERROR (default 0).
    REQUIRE_BROWSERSLIST: Fail early when no browser targets are declared.
    LOG_LEVEL / LOG_FORMAT: Logging configuration for the CLI.

Example:
    >>> settings = BuildSettings()
    >>> config = PipelineConfig.from_settings(settings, app_dir=Path.cwd())
    >>> config.ci_mode
    False
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from appbuild.paths import (
    STATS_FILENAME,
    public_url_or_path,
    read_package_json,
    resolve_app_paths,
)

DEFAULT_COMPILER_COMMAND = "npx webpack --config config/webpack.config.js --json"


def is_ci_enabled(value: str | None) -> bool:
    """Interpret the CI environment value.

    Example:
        >>> is_ci_enabled("true"), is_ci_enabled("FALSE"), is_ci_enabled("")
        (True, False, False)
    """
    if not value:
        return False
    return value.lower() != "false"


class BuildSettings(BaseSettings):
    """Environment-derived settings for a production build."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        frozen=True,
    )

    ci: str | None = Field(
        default=None,
        description="CI marker set by most CI servers",
    )
    tsc_compile_on_error: str | None = Field(
        default=None,
        description="'true' reports compiler failures as type-check diagnostics",
    )
    build_path: str | None = Field(
        default=None,
        description="Output directory override",
    )
    public_url: str | None = Field(
        default=None,
        description="URL or path the build is served from",
    )
    build_compiler_command: str = Field(
        default=DEFAULT_COMPILER_COMMAND,
        description="Command line of the delegated compiler",
    )
    lenient_exit_code: int = Field(
        default=0,
        ge=0,
        le=255,
        description="Exit code for compiler failures in lenient mode",
    )
    require_browserslist: bool = Field(
        default=False,
        description="Fail when no browserslist configuration is present",
    )
    log_level: str = Field(
        default="WARNING",
        description="Minimum log level emitted by the CLI",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer",
    )

    @property
    def compiler_command(self) -> list[str]:
        """Compiler command split into arguments."""
        return shlex.split(self.build_compiler_command)


class PipelineConfig(BaseModel):
    """Immutable configuration for one pipeline run.

    Attributes:
        ci_mode: Escalate warnings to failures.
        tsc_lenient_mode: Report compiler failures as type-check diagnostics.
        write_stats_to_disk: Persist the full build stats as JSON.
        app_dir: Application root directory.
        output_dir: Directory the build is written to.
        public_dir: Static assets merged into the output directory.
        entry_document_path: HTML entry document (produced by the compiler,
            never copied from the public directory).
        entry_script_path: Script the compiler starts from.
        homepage: ``homepage`` field from package.json.
        public_url_or_path: URL or path the build is served from.
        use_yarn: The project is managed with yarn.
        has_deploy_script: package.json defines a ``deploy`` script.
        require_browserslist: Check browser targets before building.
        lenient_exit_code: Exit code for compiler failures in lenient mode.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ci_mode: bool = False
    tsc_lenient_mode: bool = False
    write_stats_to_disk: bool = False
    app_dir: Path
    output_dir: Path
    public_dir: Path
    entry_document_path: Path
    entry_script_path: Path
    homepage: str | None = None
    public_url_or_path: str = "/"
    use_yarn: bool = False
    has_deploy_script: bool = False
    require_browserslist: bool = False
    lenient_exit_code: int = Field(default=0, ge=0, le=255)

    @property
    def stats_path(self) -> Path:
        """Destination of the persisted build stats."""
        return self.output_dir / STATS_FILENAME

    @property
    def required_files(self) -> tuple[Path, ...]:
        """Files the build cannot start without."""
        return (self.entry_document_path, self.entry_script_path)

    @classmethod
    def from_settings(
        cls,
        settings: BuildSettings,
        *,
        app_dir: Path,
        write_stats_to_disk: bool = False,
    ) -> PipelineConfig:
        """Build the pipeline configuration from environment settings.

        Args:
            settings: Environment settings.
            app_dir: Application root directory.
            write_stats_to_disk: Value of the ``--stats`` flag.

        Returns:
            PipelineConfig for a single run.
        """
        paths = resolve_app_paths(app_dir, settings.build_path)
        package = read_package_json(paths.package_json)
        homepage = package.get("homepage") or None
        scripts = package.get("scripts") or {}

        return cls(
            ci_mode=is_ci_enabled(settings.ci),
            tsc_lenient_mode=settings.tsc_compile_on_error == "true",
            write_stats_to_disk=write_stats_to_disk,
            app_dir=paths.app_dir,
            output_dir=paths.output_dir,
            public_dir=paths.public_dir,
            entry_document_path=paths.entry_document,
            entry_script_path=paths.entry_script,
            homepage=homepage,
            public_url_or_path=public_url_or_path(homepage, settings.public_url),
            use_yarn=paths.yarn_lock.exists(),
            has_deploy_script=isinstance(scripts, dict) and "deploy" in scripts,
            require_browserslist=settings.require_browserslist,
            lenient_exit_code=settings.lenient_exit_code,
        )


__all__ = [
    "BuildSettings",
    "DEFAULT_COMPILER_COMMAND",
    "PipelineConfig",
    "is_ci_enabled",
]
