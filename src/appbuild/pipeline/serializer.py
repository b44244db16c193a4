"""Streaming JSON serializer for build stats.

Bundler stats routinely reach tens of megabytes. Rendering them with
``json.dumps`` would hold the whole document in memory next to the object
graph, so the stats are encoded incrementally with
``JSONEncoder.iterencode`` and written out in bounded chunks. The write runs
in a worker thread so the pipeline coroutine suspends on it like on any
other I/O stage.

Example:
    >>> await persist(stats, Path("build/bundle-stats.json"))
    PosixPath('build/bundle-stats.json')
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from appbuild.errors import StatsWriteError
from appbuild.pipeline.compiler import BuildStats

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def write_json_stream(
    data: Mapping[str, Any] | list[Any],
    destination: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Encode ``data`` as JSON into ``destination`` chunk by chunk.

    Encoder fragments are buffered until ``chunk_size`` characters have
    accumulated, then written; at no point is the full document in memory.

    Args:
        data: JSON-compatible value.
        destination: File to (over)write.
        chunk_size: Characters buffered between writes.

    Returns:
        Number of characters written.
    """
    encoder = json.JSONEncoder(ensure_ascii=False)
    buffer: list[str] = []
    buffered = 0
    written = 0

    with destination.open("w", encoding="utf-8") as stream:
        for fragment in encoder.iterencode(data):
            buffer.append(fragment)
            buffered += len(fragment)
            if buffered >= chunk_size:
                stream.write("".join(buffer))
                written += buffered
                buffer.clear()
                buffered = 0
        if buffer:
            stream.write("".join(buffer))
            written += buffered

    return written


async def persist(
    stats: BuildStats,
    destination: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """Persist the full build stats to ``destination``.

    Args:
        stats: Stats returned by the compiler.
        destination: Path of the JSON artifact.
        chunk_size: Characters buffered between writes.

    Returns:
        The destination path.

    Raises:
        StatsWriteError: If the stats cannot be encoded or written.
    """
    log = logger.bind(destination=str(destination))
    log.info("stats_write_start")

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        written = await asyncio.to_thread(
            write_json_stream,
            stats.to_json(),
            destination,
            chunk_size=chunk_size,
        )
    except (OSError, TypeError, ValueError) as e:
        log.error("stats_write_failed", error_type=type(e).__name__, error=str(e))
        raise StatsWriteError(destination, str(e)) from e

    log.info("stats_write_complete", characters=written)
    return destination


__all__ = ["DEFAULT_CHUNK_SIZE", "persist", "write_json_stream"]
