"""Shared pytest fixtures for appbuild tests.

For unit-specific fixtures, see unit/conftest.py.

NOTE: Do NOT add __init__.py to test directories - pytest uses importlib mode
which can cause namespace collisions with __init__.py files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Generator

# Environment variables read by BuildSettings; a CI runner sets some of them.
BUILD_ENV_VARS = (
    "CI",
    "TSC_COMPILE_ON_ERROR",
    "BUILD_PATH",
    "PUBLIC_URL",
    "BUILD_COMPILER_COMMAND",
    "LENIENT_EXIT_CODE",
    "REQUIRE_BROWSERSLIST",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "requirement(id): Mark test as covering a specific requirement",
    )


@pytest.fixture(autouse=True)
def clean_build_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove build-related environment variables for every test."""
    for name in BUILD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog_after_test() -> Generator[None, None, None]:
    """Reset structlog configuration after each test.

    The CLI configures structlog to write to the stderr stream that was
    current at the time; CliRunner closes that stream after the invocation.

    Yields:
        None after test completes.
    """
    yield
    structlog.reset_defaults()
