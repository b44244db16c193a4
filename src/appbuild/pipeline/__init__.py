"""Production build pipeline.

Stages (see ``appbuild.pipeline.stages``):
1. PREFLIGHT: Required files and browser targets
2. MEASURE: Baseline sizes of the previous build
3. STAGE: Clear the output directory, merge the public directory
4. COMPILE: Run the delegated compiler once
5. CLASSIFY: Canonical errors and warnings
6. PERSIST: Stream the build stats to disk

Example:
    >>> from appbuild.pipeline import build
    >>> outcome = await build(config, compiler)
"""

from __future__ import annotations

from appbuild.pipeline.compiler import (
    BuildStats,
    CompileFault,
    CompileOutcome,
    Compiler,
    CompileSuccess,
    StructuredFault,
    SubprocessCompiler,
    ThrownFault,
    compile_once,
)
from appbuild.pipeline.diagnostics import ClassifiedResult, Diagnostic, classify
from appbuild.pipeline.inventory import FileSize, SizeDelta, SizeSnapshot, diff, snapshot
from appbuild.pipeline.outcome import BuildFailure, BuildOutcome, BuildSuccess, FailureKind
from appbuild.pipeline.serializer import persist
from appbuild.pipeline.stages import BuildStage, build, exit_code_for, run

__all__ = [
    # Orchestrator
    "BuildStage",
    "build",
    "exit_code_for",
    "run",
    # Compiler adapter
    "BuildStats",
    "CompileFault",
    "CompileOutcome",
    "CompileSuccess",
    "Compiler",
    "StructuredFault",
    "SubprocessCompiler",
    "ThrownFault",
    "compile_once",
    # Diagnostics
    "ClassifiedResult",
    "Diagnostic",
    "classify",
    # Inventory
    "FileSize",
    "SizeDelta",
    "SizeSnapshot",
    "diff",
    "snapshot",
    # Outcome
    "BuildFailure",
    "BuildOutcome",
    "BuildSuccess",
    "FailureKind",
    # Serializer
    "persist",
]
