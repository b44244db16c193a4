"""Telemetry for appbuild: structured logging and OpenTelemetry spans."""

from __future__ import annotations

from appbuild.telemetry.logging import add_trace_context, configure_logging
from appbuild.telemetry.tracing import create_span, get_tracer, set_tracer

__all__ = [
    "add_trace_context",
    "configure_logging",
    "create_span",
    "get_tracer",
    "set_tracer",
]
