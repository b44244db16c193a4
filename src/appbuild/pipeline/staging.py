"""Output staging: prepare the output directory for a fresh build.

The output directory is emptied in place rather than removed and recreated.
A user whose shell sits inside it keeps a valid working directory, and
file watchers keep watching the same directory entry.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def clear(directory: Path) -> None:
    """Remove every entry inside ``directory``, keeping the directory itself.

    Creates ``directory`` (and its parents) when it does not exist. Symbolic
    links inside it are removed, never followed.

    Args:
        directory: Directory to empty.
    """
    directory.mkdir(parents=True, exist_ok=True)

    removed = 0
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1

    logger.debug("output_cleared", directory=str(directory), removed_entries=removed)


def merge(public_dir: Path, output_dir: Path, exclude_path: Path) -> None:
    """Copy the contents of ``public_dir`` into ``output_dir``.

    Symbolic links are dereferenced: the copy holds the link target's
    content. The entry at exactly ``exclude_path`` is skipped (the entry
    document is generated by the compiler instead).

    Args:
        public_dir: Directory with the static assets.
        output_dir: Destination directory; must exist.
        exclude_path: Path inside ``public_dir`` that must not be copied.

    Raises:
        FileNotFoundError: If ``public_dir`` does not exist.
    """
    excluded = exclude_path.absolute()

    def _ignore(current: str, names: list[str]) -> set[str]:
        base = Path(current).absolute()
        return {name for name in names if base / name == excluded}

    shutil.copytree(
        public_dir,
        output_dir,
        symlinks=False,
        ignore=_ignore,
        dirs_exist_ok=True,
    )
    logger.debug(
        "public_merged",
        public_dir=str(public_dir),
        output_dir=str(output_dir),
        excluded=str(exclude_path),
    )


__all__ = ["clear", "merge"]
