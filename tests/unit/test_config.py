"""Unit tests for build settings and pipeline configuration."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from appbuild.config import (
    DEFAULT_COMPILER_COMMAND,
    BuildSettings,
    PipelineConfig,
    is_ci_enabled,
)


class TestIsCiEnabled:
    """Tests for is_ci_enabled()."""

    @pytest.mark.requirement("ci-mode")
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, False),
            ("", False),
            ("false", False),
            ("FALSE", False),
            ("False", False),
            ("true", True),
            ("1", True),
            ("0", True),
            ("yes", True),
        ],
    )
    def test_ci_values(self, value: str | None, expected: bool) -> None:
        assert is_ci_enabled(value) is expected


class TestBuildSettings:
    """Tests for BuildSettings loaded from the environment."""

    def test_defaults(self) -> None:
        settings = BuildSettings()

        assert settings.ci is None
        assert settings.build_compiler_command == DEFAULT_COMPILER_COMMAND
        assert settings.lenient_exit_code == 0
        assert settings.require_browserslist is False
        assert settings.log_format == "console"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CI", "true")
        monkeypatch.setenv("TSC_COMPILE_ON_ERROR", "true")
        monkeypatch.setenv("BUILD_PATH", "dist")
        monkeypatch.setenv("LENIENT_EXIT_CODE", "2")
        monkeypatch.setenv("REQUIRE_BROWSERSLIST", "true")

        settings = BuildSettings()

        assert settings.ci == "true"
        assert settings.tsc_compile_on_error == "true"
        assert settings.build_path == "dist"
        assert settings.lenient_exit_code == 2
        assert settings.require_browserslist is True

    def test_invalid_exit_code_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LENIENT_EXIT_CODE", "300")

        with pytest.raises(ValidationError):
            BuildSettings()

    def test_compiler_command_is_split(self) -> None:
        settings = BuildSettings(build_compiler_command="npx vite build --config 'my config.js'")

        assert settings.compiler_command == ["npx", "vite", "build", "--config", "my config.js"]


class TestPipelineConfig:
    """Tests for PipelineConfig.from_settings()."""

    def test_from_default_settings(self, app_dir: Path) -> None:
        config = PipelineConfig.from_settings(BuildSettings(), app_dir=app_dir)

        assert config.ci_mode is False
        assert config.tsc_lenient_mode is False
        assert config.write_stats_to_disk is False
        assert config.output_dir == app_dir / "build"
        assert config.stats_path == app_dir / "build" / "bundle-stats.json"
        assert config.required_files == (
            app_dir / "public" / "index.html",
            app_dir / "src" / "index.js",
        )
        assert config.public_url_or_path == "/"
        assert config.homepage is None

    @pytest.mark.requirement("ci-mode")
    def test_ci_and_lenient_modes(self, app_dir: Path) -> None:
        settings = BuildSettings(ci="TRUE", tsc_compile_on_error="true", lenient_exit_code=0)

        config = PipelineConfig.from_settings(settings, app_dir=app_dir, write_stats_to_disk=True)

        assert config.ci_mode is True
        assert config.tsc_lenient_mode is True
        assert config.lenient_exit_code == 0
        assert config.write_stats_to_disk is True

    def test_lenient_mode_requires_exact_true(self, app_dir: Path) -> None:
        config = PipelineConfig.from_settings(
            BuildSettings(tsc_compile_on_error="TRUE"), app_dir=app_dir
        )

        assert config.tsc_lenient_mode is False

    def test_package_json_fields(self, app_dir: Path) -> None:
        (app_dir / "package.json").write_text(
            json.dumps(
                {
                    "homepage": "https://me.github.io/myapp",
                    "scripts": {"build": "appbuild build", "deploy": "gh-pages -d build"},
                }
            ),
            encoding="utf-8",
        )
        (app_dir / "yarn.lock").write_text("", encoding="utf-8")

        config = PipelineConfig.from_settings(BuildSettings(), app_dir=app_dir)

        assert config.homepage == "https://me.github.io/myapp"
        assert config.public_url_or_path == "/myapp/"
        assert config.has_deploy_script is True
        assert config.use_yarn is True

    def test_public_url_wins(self, app_dir: Path) -> None:
        config = PipelineConfig.from_settings(
            BuildSettings(public_url="https://cdn.example.com/app"), app_dir=app_dir
        )

        assert config.public_url_or_path == "https://cdn.example.com/app/"

    def test_config_is_frozen(self, app_dir: Path) -> None:
        config = PipelineConfig.from_settings(BuildSettings(), app_dir=app_dir)

        with pytest.raises(ValidationError):
            config.ci_mode = True  # type: ignore[misc]

    def test_unknown_fields_rejected(self, app_dir: Path) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(
                app_dir=app_dir,
                output_dir=app_dir / "build",
                public_dir=app_dir / "public",
                entry_document_path=app_dir / "public" / "index.html",
                entry_script_path=app_dir / "src" / "index.js",
                surprise=True,  # type: ignore[call-arg]
            )

    def test_malformed_package_json(self, app_dir: Path) -> None:
        (app_dir / "package.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            PipelineConfig.from_settings(BuildSettings(), app_dir=app_dir)
