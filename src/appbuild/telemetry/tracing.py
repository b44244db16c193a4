"""OpenTelemetry tracing utilities for appbuild.

Every pipeline stage runs inside a span created with ``create_span()``.
Only the OpenTelemetry API is used here: without an SDK configured by the
host process the global tracer is a no-op, so tracing costs nothing unless
someone is listening.

Example:
    >>> with create_span("build.compile", attributes={"build.stage": "COMPILE"}):
    ...     pass
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode, Tracer

if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span

__all__ = ["create_span", "get_tracer", "set_tracer"]

_TRACER_NAME = "appbuild"

# Tracer injected by tests; None means "use the global provider".
_tracer: Tracer | None = None

_MAX_EXCEPTION_MESSAGE_LENGTH = 500


def get_tracer() -> Tracer:
    """Get the tracer used for appbuild spans.

    Returns:
        The injected tracer if one was set, otherwise a tracer from the
        global tracer provider.
    """
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(_TRACER_NAME)


def set_tracer(tracer: Tracer | None) -> None:
    """Set the module-level tracer (for testing).

    Args:
        tracer: Tracer instance to use, or None to reset.
    """
    global _tracer
    _tracer = tracer


@contextmanager
def create_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a span as a context manager.

    The span ends when the context exits. Exceptions escaping the block mark
    the span as failed (with the exception type and a truncated message) and
    are re-raised unchanged.

    Args:
        name: The name for the span.
        attributes: Optional dictionary of attributes to set on the span.

    Yields:
        The created span for additional attribute setting.
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        name,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            message = str(e)[:_MAX_EXCEPTION_MESSAGE_LENGTH]
            span.set_status(Status(StatusCode.ERROR, message))
            span.set_attribute("exception.type", type(e).__name__)
            span.set_attribute("exception.message", message)
            raise
