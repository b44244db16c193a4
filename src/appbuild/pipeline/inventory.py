"""Asset inventory: per-file raw and gzip sizes of an output directory.

A snapshot is taken before the output directory is cleared (the baseline of
the previous build) and again after the compiler ran. ``diff`` pairs the
two so the report can show how much each file grew or shrank. Files whose
names only differ by a content hash (``main.1a2b3c4d.js`` vs
``main.5e6f7a8b.js``) are treated as the same asset.

Example:
    >>> before = snapshot(Path("build"))
    >>> # ... build ...
    >>> for delta in diff(before, snapshot(Path("build"))):
    ...     print(delta.path, delta.gzip_delta)
"""

from __future__ import annotations

import gzip
import re
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

_FILE_NAME_HASH = re.compile(r"/?(.*)(\.[0-9a-f]+)(\.chunk)?(\.js|\.css)")


@dataclass(frozen=True)
class FileSize:
    """Raw and gzip-compressed size of one file, in bytes."""

    raw_bytes: int
    gzip_bytes: int


SizeSnapshot = dict[str, FileSize]
"""Output-relative POSIX path -> FileSize."""


@dataclass(frozen=True)
class SizeDelta:
    """Size of one asset before and after a build.

    ``before`` is None for a new asset, ``after`` is None for a removed one.
    """

    path: str
    before: FileSize | None
    after: FileSize | None

    @property
    def gzip_delta(self) -> int:
        """Change in gzip size (positive means the asset grew)."""
        previous = self.before.gzip_bytes if self.before else 0
        current = self.after.gzip_bytes if self.after else 0
        return current - previous


def gzip_size(data: bytes) -> int:
    """Size of ``data`` once gzip-compressed at the highest level."""
    return len(gzip.compress(data, compresslevel=9))


def remove_file_name_hash(path: str) -> str:
    """Strip the content hash (and ``.chunk`` marker) from a JS/CSS asset path.

    Example:
        >>> remove_file_name_hash("static/js/main.8f4c2a1b.chunk.js")
        'static/js/main.js'
        >>> remove_file_name_hash("favicon.ico")
        'favicon.ico'
    """
    return _FILE_NAME_HASH.sub(lambda m: m.group(1) + m.group(4), path, count=1)


def snapshot(directory: Path) -> SizeSnapshot:
    """Record the size of every regular file under ``directory``.

    Args:
        directory: Directory to scan recursively.

    Returns:
        Mapping of directory-relative POSIX paths to their sizes. A directory
        that does not exist (first build) yields an empty mapping.
    """
    if not directory.is_dir():
        logger.debug("snapshot_directory_missing", directory=str(directory))
        return {}

    sizes: SizeSnapshot = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        data = path.read_bytes()
        sizes[path.relative_to(directory).as_posix()] = FileSize(
            raw_bytes=len(data),
            gzip_bytes=gzip_size(data),
        )

    logger.debug("snapshot_complete", directory=str(directory), file_count=len(sizes))
    return sizes


def diff(before: SizeSnapshot, after: SizeSnapshot) -> list[SizeDelta]:
    """Pair two snapshots by asset name.

    Args:
        before: Baseline snapshot (previous build).
        after: Snapshot after the current build.

    Returns:
        One SizeDelta per asset present in either snapshot, sorted by the
        absolute gzip size change, largest first. Ties keep path order.
    """
    # Unchanged paths pair with themselves; the rest pair by hash-stripped
    # name, first come first served, so every baseline file is used once.
    remaining = {path: size for path, size in before.items() if path not in after}
    previous: dict[str, list[str]] = {}
    for path in remaining:
        previous.setdefault(remove_file_name_hash(path), []).append(path)

    deltas: list[SizeDelta] = []
    for path, size in after.items():
        if path in before:
            deltas.append(SizeDelta(path=path, before=before[path], after=size))
            continue
        candidates = previous.get(remove_file_name_hash(path))
        old = remaining.pop(candidates.pop(0)) if candidates else None
        deltas.append(SizeDelta(path=path, before=old, after=size))

    for path, size in remaining.items():
        deltas.append(SizeDelta(path=path, before=size, after=None))

    deltas.sort(key=lambda delta: delta.path)
    deltas.sort(key=lambda delta: abs(delta.gzip_delta), reverse=True)
    return deltas


__all__ = [
    "FileSize",
    "SizeDelta",
    "SizeSnapshot",
    "diff",
    "gzip_size",
    "remove_file_name_hash",
    "snapshot",
]
