"""Compiler adapter: the boundary around the delegated bundler.

The pipeline never looks inside the bundler. It hands control to a
``Compiler`` exactly once and gets back one of three values:

- ``CompileSuccess``: stats without any diagnostics;
- ``StructuredFault``: stats carrying error and/or warning arrays;
- ``ThrownFault``: the compiler raised instead of producing stats.

``StructuredFault`` and ``ThrownFault`` together form ``CompileFault``, the
single tagged shape the diagnostic classifier consumes.

Example:
    >>> compiler = SubprocessCompiler(["npx", "webpack", "--json"], cwd=app_dir)
    >>> outcome = await compile_once(compiler)
    >>> isinstance(outcome, CompileSuccess)
    True
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import structlog

from appbuild.errors import CompilerProcessError

logger = structlog.get_logger(__name__)

POSTCSS_SELECTOR_PREFIX = "\nCompileError: Begins at CSS selector "

_STDERR_TAIL_LENGTH = 2_000


class BuildStats:
    """Structured result produced by the compiler.

    Wraps the stats mapping the bundler reports (``errors``, ``warnings``,
    ``assets`` and whatever else it emits). The mapping can be very large;
    it is only ever serialized through the streaming stats serializer.

    Example:
        >>> stats = BuildStats({"errors": [], "warnings": ["unused var"]})
        >>> stats.has_diagnostics
        True
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    @property
    def errors(self) -> list[Any]:
        """Raw error messages (strings or mappings with a ``message``)."""
        return list(self._data.get("errors") or [])

    @property
    def warnings(self) -> list[Any]:
        """Raw warning messages (strings or mappings with a ``message``)."""
        return list(self._data.get("warnings") or [])

    @property
    def assets(self) -> list[dict[str, Any]]:
        """Emitted assets as reported by the bundler."""
        return list(self._data.get("assets") or [])

    @property
    def has_diagnostics(self) -> bool:
        return bool(self.errors or self.warnings)

    def to_json(self) -> Mapping[str, Any]:
        """Full stats mapping, for serialization."""
        return self._data

    def __repr__(self) -> str:
        return (
            f"BuildStats(errors={len(self.errors)}, warnings={len(self.warnings)}, "
            f"assets={len(self.assets)})"
        )


@dataclass(frozen=True)
class CompileSuccess:
    """The compiler produced stats without any diagnostics."""

    stats: BuildStats


@dataclass(frozen=True)
class StructuredFault:
    """The compiler produced stats with non-empty diagnostic arrays."""

    stats: BuildStats


@dataclass(frozen=True)
class ThrownFault:
    """The compiler raised instead of producing stats.

    Attributes:
        message: Fault message, augmented with the style-sheet selector when
            known. None when the exception carried no message at all.
        error: The original exception.
        selector: Style-sheet selector the fault started at, if any.
    """

    message: str | None
    error: BaseException
    selector: str | None = None


CompileFault = Union[StructuredFault, ThrownFault]
CompileOutcome = Union[CompileSuccess, StructuredFault, ThrownFault]


class Compiler(ABC):
    """Delegated compiler invoked once per pipeline run."""

    @abstractmethod
    async def run(self) -> BuildStats:
        """Compile the application.

        Returns:
            Stats of the finished compilation, including its diagnostics.

        Raises:
            Exception: Any fault that prevented the compiler from reporting
                structured stats.
        """


class SubprocessCompiler(Compiler):
    """Run a bundler command and read its JSON stats from stdout.

    The bundler is expected to print its stats as a single JSON document
    (``webpack --json``). A non-zero exit status alone is not a fault: the
    bundler exits non-zero when it reports errors, and those errors are in
    the stats.

    Args:
        command: Command line to execute.
        cwd: Working directory (the application root).
        env: Extra environment variables; ``NODE_ENV`` and ``BABEL_ENV`` are
            always forced to ``production``.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> None:
        if not command:
            raise ValueError("compiler command must not be empty")
        self.command = list(command)
        self.cwd = cwd
        self.env = dict(env or {})

    def _process_env(self) -> dict[str, str]:
        process_env = {**os.environ, **self.env}
        process_env["NODE_ENV"] = "production"
        process_env["BABEL_ENV"] = "production"
        return process_env

    async def run(self) -> BuildStats:
        log = logger.bind(command=self.command[0], cwd=str(self.cwd))
        log.info("compiler_process_start")
        start = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                cwd=str(self.cwd),
                env=self._process_env(),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CompilerProcessError(
                f"Could not start compiler '{self.command[0]}': {e}",
                command=self.command,
            ) from e

        stdout, stderr = await process.communicate()
        duration_ms = (time.perf_counter() - start) * 1000
        log.info(
            "compiler_process_exit",
            returncode=process.returncode,
            duration_ms=round(duration_ms, 2),
        )

        try:
            data = json.loads(stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            tail = stderr.decode("utf-8", errors="replace")[-_STDERR_TAIL_LENGTH:].strip()
            message = f"Compiler did not report JSON stats (exit status {process.returncode})"
            if tail:
                message = f"{message}:\n{tail}"
            raise CompilerProcessError(
                message,
                command=self.command,
                returncode=process.returncode,
            ) from e

        if not isinstance(data, dict):
            raise CompilerProcessError(
                "Compiler stats must be a JSON object",
                command=self.command,
                returncode=process.returncode,
            )
        return BuildStats(data)


def _postcss_selector(error: BaseException) -> str | None:
    if not hasattr(error, "postcss_node"):
        return None
    node = getattr(error, "postcss_node")
    if isinstance(node, Mapping):
        selector = node.get("selector")
    else:
        selector = getattr(node, "selector", None)
    return None if selector is None else str(selector)


def to_thrown_fault(error: BaseException) -> ThrownFault:
    """Describe a compiler exception as a ThrownFault.

    A message-less exception is kept opaque (``message=None``). A style-sheet
    fault has its originating selector appended to the message.

    Example:
        >>> fault = to_thrown_fault(CompilerError("Unknown word", postcss_node={"selector": "a"}))
        >>> fault.message
        'Unknown word\\nCompileError: Begins at CSS selector a'
    """
    message = str(error)
    if not message:
        return ThrownFault(message=None, error=error)

    selector = _postcss_selector(error)
    if selector is not None:
        message += POSTCSS_SELECTOR_PREFIX + selector
    return ThrownFault(message=message, error=error, selector=selector)


async def compile_once(compiler: Compiler) -> CompileOutcome:
    """Invoke ``compiler`` exactly once and tag its outcome.

    Args:
        compiler: The delegated compiler.

    Returns:
        CompileSuccess, StructuredFault or ThrownFault.
    """
    try:
        stats = await compiler.run()
    except Exception as e:
        logger.info("compiler_raised", error_type=type(e).__name__)
        return to_thrown_fault(e)

    if stats.has_diagnostics:
        return StructuredFault(stats=stats)
    return CompileSuccess(stats=stats)


__all__ = [
    "BuildStats",
    "CompileFault",
    "CompileOutcome",
    "CompileSuccess",
    "Compiler",
    "POSTCSS_SELECTOR_PREFIX",
    "StructuredFault",
    "SubprocessCompiler",
    "ThrownFault",
    "compile_once",
    "to_thrown_fault",
]
