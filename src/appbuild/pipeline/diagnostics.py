"""Diagnostic classification for compiler outcomes.

Turns whatever the compiler adapter returned into a canonical
``ClassifiedResult`` of formatted errors and warnings, and applies the
noise-reduction policy: only the first error is kept, because follow-up
errors are nearly always caused by the first one.

Formatting rewrites raw bundler messages into something a developer can
act on:

- loader headers such as ``Module Error (from ./node_modules/...)`` are dropped;
- ``Line 3:7: Parsing error: ...`` becomes ``Syntax error: ... (3:7)``;
- CSS ``SyntaxError (3:7) ...`` is folded into the same shape;
- missing export messages become ``Attempted import error: ...``;
- internal stack frames and repeated blank lines are stripped.

When any error is a syntax error, only syntax errors are reported.

Everything in this module is pure: no I/O, no logging, same input, same output.

Example:
    >>> result = classify(to_thrown_fault(RuntimeError("boom")))
    >>> [d.message for d in result.errors]
    ['boom']
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from appbuild.pipeline.compiler import (
    CompileOutcome,
    CompileSuccess,
    StructuredFault,
    ThrownFault,
)

SYNTAX_ERROR_LABEL = "Syntax error:"

_LOADER_HEADER = re.compile(r"Module [A-z ]+\(from")
_PARSING_ERROR = re.compile(r"Line (\d+):(?:(\d+):)?\s*Parsing error: (.+)$")
_CSS_SYNTAX_ERROR = re.compile(r"SyntaxError\s+\((\d+):(\d+)\)\s*(.+?)\n")
_EXPORT_NOT_FOUND = re.compile(r"^.*export '(.+?)' was not found in '(.+?)'.*$", re.MULTILINE)
_DEFAULT_EXPORT_NOT_FOUND = re.compile(
    r"^.*export 'default' \(imported as '(.+?)'\) was not found in '(.+?)'.*$",
    re.MULTILINE,
)
_NAMESPACE_EXPORT_NOT_FOUND = re.compile(
    r"^.*export '(.+?)' \(imported as '(.+?)'\) was not found in '(.+?)'.*$",
    re.MULTILINE,
)
_FILE_POSITION_SUFFIX = re.compile(r"^(.*) \d+:\d+-\d+$")
_SASS_MISSING = re.compile(r"Cannot find module.+sass")
_STACK_FRAME = re.compile(r"^\s*at\s((?!webpack:).)*:\d+:\d+[\s)]*(\n|$)", re.MULTILINE)
_ANONYMOUS_FRAME = re.compile(r"^\s*at\s<anonymous>(\n|$)", re.MULTILINE)


class Diagnostic(BaseModel):
    """A single compiler-reported error or warning.

    Attributes:
        kind: ``error`` or ``warning``.
        message: Formatted message text. For style-sheet faults the
            originating selector is already appended to it.
        selector: Style-sheet selector the diagnostic originated from.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["error", "warning"]
    message: str
    selector: str | None = None

    @property
    def is_syntax_error(self) -> bool:
        return SYNTAX_ERROR_LABEL in self.message


class ClassifiedResult(BaseModel):
    """Canonical errors/warnings of one compilation.

    Attributes:
        errors: At most one error (the first reported one).
        warnings: Every warning, in reported order.
        omitted_error_count: Errors dropped by truncation.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    errors: tuple[Diagnostic, ...] = Field(default=(), max_length=1)
    warnings: tuple[Diagnostic, ...] = ()
    omitted_error_count: int = Field(default=0, ge=0)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def joined_warnings(self) -> str:
        """Warnings separated by a blank line."""
        return "\n\n".join(warning.message for warning in self.warnings)


def _message_lines(message: Any) -> list[str]:
    if isinstance(message, str):
        return message.split("\n")
    if isinstance(message, dict) and "message" in message:
        return str(message["message"]).split("\n")
    if isinstance(message, list):
        lines: list[str] = []
        for item in message:
            if isinstance(item, dict) and "message" in item:
                lines = str(item["message"]).split("\n")
        return lines
    return str(message).split("\n")


def _rewrite_parsing_error(line: str) -> str:
    match = _PARSING_ERROR.search(line)
    if match is None:
        return line
    error_line, error_column, error_message = match.groups()
    position = f"{error_line}:{error_column}" if error_column else error_line
    return f"{SYNTAX_ERROR_LABEL} {error_message} ({position})"


def format_message(message: Any) -> str:
    """Format one raw bundler message for display.

    Args:
        message: A string, a mapping with a ``message`` key, or a list of
            such mappings (the last one wins).

    Returns:
        The cleaned-up, trimmed message text.

    Example:
        >>> format_message("./src/App.js\\nLine 3:7:  Parsing error: Unexpected token")
        './src/App.js\\nSyntax error: Unexpected token (3:7)'
    """
    lines = [line for line in _message_lines(message) if not _LOADER_HEADER.search(line)]
    lines = [_rewrite_parsing_error(line) for line in lines]
    text = "\n".join(lines)

    text = _CSS_SYNTAX_ERROR.sub(rf"{SYNTAX_ERROR_LABEL} \3 (\1:\2)\n", text)
    text = _EXPORT_NOT_FOUND.sub(
        r"Attempted import error: '\1' is not exported from '\2'.", text
    )
    text = _DEFAULT_EXPORT_NOT_FOUND.sub(
        r"Attempted import error: '\2' does not contain a default export (imported as '\1').",
        text,
    )
    text = _NAMESPACE_EXPORT_NOT_FOUND.sub(
        r"Attempted import error: '\1' is not exported from '\3' (imported as '\2').",
        text,
    )

    lines = text.split("\n")
    if len(lines) > 2 and lines[1].strip() == "":
        del lines[1]
    lines[0] = _FILE_POSITION_SUFFIX.sub(r"\1", lines[0])

    if len(lines) > 1 and lines[1].startswith("Module not found: "):
        lines = [
            lines[0],
            lines[1]
            .replace("Error: ", "", 1)
            .replace("Module not found: Cannot find file:", "Cannot find file:", 1),
        ]

    if len(lines) > 1 and _SASS_MISSING.search(lines[1]):
        lines[1] = (
            "To import Sass files, you first need to install sass.\n"
            "Run `npm install sass` or `yarn add sass` inside your workspace."
        )

    text = "\n".join(lines)
    text = _STACK_FRAME.sub("", text)
    text = _ANONYMOUS_FRAME.sub("", text)

    lines = text.split("\n")
    lines = [
        line
        for index, line in enumerate(lines)
        if index == 0 or line.strip() != "" or line.strip() != lines[index - 1].strip()
    ]
    return "\n".join(lines).strip()


def format_messages(
    errors: Iterable[Any],
    warnings: Iterable[Any],
) -> tuple[list[str], list[str]]:
    """Format raw error and warning arrays.

    Both arrays keep the compiler's order and length, so the first formatted
    error is always the first error the compiler reported.

    Returns:
        Formatted (errors, warnings).
    """
    formatted_errors = [format_message(error) for error in errors]
    formatted_warnings = [format_message(warning) for warning in warnings]
    return formatted_errors, formatted_warnings


def classify(outcome: CompileOutcome) -> ClassifiedResult:
    """Classify a compiler outcome into errors and warnings.

    Rules, in order:

    1. A thrown fault becomes a single error and no warnings. An opaque
       fault (no message) is described by the exception's repr.
    2. A structured result contributes its error and warning arrays.
    3. Errors are truncated to the first one; the number dropped is kept in
       ``omitted_error_count`` so the report can say so.
    4. Warnings are never truncated.

    Args:
        outcome: Value returned by the compiler adapter.

    Returns:
        ClassifiedResult for the outcome.
    """
    selector: str | None = None
    if isinstance(outcome, ThrownFault):
        raw = outcome.message if outcome.message is not None else repr(outcome.error)
        errors, warnings = format_messages([raw], [])
        selector = outcome.selector
    elif isinstance(outcome, StructuredFault):
        errors, warnings = format_messages(outcome.stats.errors, outcome.stats.warnings)
    elif isinstance(outcome, CompileSuccess):
        errors, warnings = [], []
    else:
        raise TypeError(f"Unsupported compiler outcome: {type(outcome).__name__}")

    return ClassifiedResult(
        errors=tuple(
            Diagnostic(kind="error", message=message, selector=selector)
            for message in errors[:1]
        ),
        warnings=tuple(Diagnostic(kind="warning", message=message) for message in warnings),
        omitted_error_count=max(len(errors) - 1, 0),
    )


__all__ = [
    "ClassifiedResult",
    "Diagnostic",
    "SYNTAX_ERROR_LABEL",
    "classify",
    "format_message",
    "format_messages",
]
