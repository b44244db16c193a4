"""Application path resolution.

Resolves the well-known locations of a front-end application relative to its
root directory: the public folder and entry document, the entry script, the
output folder and the package metadata used for hosting guidance.

Example:
    >>> paths = resolve_app_paths(Path("/work/my-app"))
    >>> paths.entry_document
    PosixPath('/work/my-app/public/index.html')
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import structlog

logger = structlog.get_logger(__name__)

# Extensions the bundler resolves, in lookup order.
MODULE_FILE_EXTENSIONS: tuple[str, ...] = (
    "web.mjs",
    "mjs",
    "web.js",
    "js",
    "web.ts",
    "ts",
    "web.tsx",
    "tsx",
    "json",
    "web.jsx",
    "jsx",
)

DEFAULT_BUILD_DIR = "build"
STATS_FILENAME = "bundle-stats.json"


@dataclass(frozen=True)
class AppPaths:
    """Resolved filesystem locations of an application."""

    app_dir: Path
    output_dir: Path
    public_dir: Path
    entry_document: Path
    entry_script: Path
    package_json: Path
    yarn_lock: Path


def resolve_module(base: Path) -> Path:
    """Resolve ``base`` against the bundler's module file extensions.

    Args:
        base: Path without extension (e.g. ``src/index``).

    Returns:
        The first existing ``base.<ext>``, or ``base.js`` when none exists.
    """
    for extension in MODULE_FILE_EXTENSIONS:
        candidate = base.with_name(f"{base.name}.{extension}")
        if candidate.exists():
            return candidate
    return base.with_name(f"{base.name}.js")


def resolve_app_paths(app_dir: Path, build_path: str | None = None) -> AppPaths:
    """Resolve all application paths from the application root.

    Args:
        app_dir: Application root directory.
        build_path: Optional output directory override, relative to
            ``app_dir`` or absolute.

    Returns:
        AppPaths for the application.
    """
    app_dir = app_dir.resolve()
    output_dir = app_dir / (build_path or DEFAULT_BUILD_DIR)
    public_dir = app_dir / "public"
    return AppPaths(
        app_dir=app_dir,
        output_dir=output_dir.resolve(),
        public_dir=public_dir,
        entry_document=public_dir / "index.html",
        entry_script=resolve_module(app_dir / "src" / "index"),
        package_json=app_dir / "package.json",
        yarn_lock=app_dir / "yarn.lock",
    )


def read_package_json(path: Path) -> dict[str, Any]:
    """Read ``package.json``, returning an empty mapping when it is absent."""
    if not path.is_file():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        logger.warning("package_json_not_an_object", path=str(path))
        return {}
    return data


def has_browserslist(app_dir: Path) -> bool:
    """Whether the application declares its target browsers."""
    if (app_dir / ".browserslistrc").is_file():
        return True
    return "browserslist" in read_package_json(app_dir / "package.json")


def public_url_or_path(homepage: str | None, env_public_url: str | None) -> str:
    """Compute the URL or path the build will be served from.

    ``PUBLIC_URL`` wins over the ``homepage`` field; either way the result
    always ends with a slash. Without both, the build is served from ``/``.

    Args:
        homepage: ``homepage`` field of package.json.
        env_public_url: ``PUBLIC_URL`` environment value.

    Returns:
        Public URL or path ending with ``/``.

    Example:
        >>> public_url_or_path("https://me.github.io/app", None)
        '/app/'
        >>> public_url_or_path(None, "https://cdn.example.com")
        'https://cdn.example.com/'
    """
    if env_public_url:
        return env_public_url if env_public_url.endswith("/") else f"{env_public_url}/"

    if homepage:
        pathname = urlparse(homepage).path or "/"
        return pathname if pathname.endswith("/") else f"{pathname}/"

    return "/"


__all__ = [
    "AppPaths",
    "DEFAULT_BUILD_DIR",
    "MODULE_FILE_EXTENSIONS",
    "STATS_FILENAME",
    "has_browserslist",
    "public_url_or_path",
    "read_package_json",
    "resolve_app_paths",
    "resolve_module",
]
