"""Unit test fixtures for appbuild.

Unit tests:
- Run without a real bundler (compilers are fakes)
- Work on small application trees under tmp_path
- Execute quickly (< 1s per test)

For shared fixtures across all tests, see ../conftest.py.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Generator, Mapping
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from appbuild.config import BuildSettings, PipelineConfig
from appbuild.pipeline.compiler import BuildStats, Compiler
from appbuild.telemetry.tracing import set_tracer

INDEX_HTML = "<!doctype html><html><body><div id=root></div></body></html>"


class FakeCompiler(Compiler):
    """Compiler double: returns fixed stats or raises a fixed exception.

    Optionally writes ``outputs`` (output-relative path -> content) into the
    output directory before returning, like a real bundler would.
    """

    def __init__(
        self,
        stats: Mapping[str, Any] | None = None,
        *,
        error: BaseException | None = None,
        output_dir: Path | None = None,
        outputs: Mapping[str, bytes | str] | None = None,
    ) -> None:
        self.stats = dict(stats) if stats is not None else {"errors": [], "warnings": []}
        self.error = error
        self.output_dir = output_dir
        self.outputs = dict(outputs or {})
        self.calls = 0

    async def run(self) -> BuildStats:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.output_dir is not None:
            for relative, content in self.outputs.items():
                target = self.output_dir / relative
                target.parent.mkdir(parents=True, exist_ok=True)
                if isinstance(content, str):
                    target.write_text(content, encoding="utf-8")
                else:
                    target.write_bytes(content)
        return BuildStats(self.stats)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Returns:
        CliRunner instance for testing Click commands.
    """
    return CliRunner()


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """Create a minimal application tree.

    Layout::

        app/
          package.json
          public/index.html
          public/favicon.ico
          src/index.js

    Returns:
        Path to the application root.
    """
    root = tmp_path / "app"
    (root / "public").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "public" / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (root / "public" / "favicon.ico").write_bytes(b"\x00\x00\x01\x00icon")
    (root / "src" / "index.js").write_text("console.log('hello');\n", encoding="utf-8")
    (root / "package.json").write_text(json.dumps({"name": "app"}), encoding="utf-8")
    return root.resolve()


@pytest.fixture
def make_config(app_dir: Path) -> Callable[..., PipelineConfig]:
    """Factory for PipelineConfig rooted at ``app_dir``.

    Keyword arguments override fields of the resulting config.

    Example:
        config = make_config(ci_mode=True)
    """

    def _make(**overrides: Any) -> PipelineConfig:
        config = PipelineConfig.from_settings(BuildSettings(), app_dir=app_dir)
        return config.model_copy(update=overrides)

    return _make


@pytest.fixture
def span_exporter() -> Generator[InMemorySpanExporter, None, None]:
    """Route appbuild spans to an in-memory exporter.

    Yields:
        Exporter holding the finished spans.
    """
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    set_tracer(provider.get_tracer("appbuild.tests"))
    try:
        yield exporter
    finally:
        set_tracer(None)
        exporter.clear()


@pytest.fixture
def fake_compiler() -> Callable[..., FakeCompiler]:
    """Factory for FakeCompiler instances.

    Example:
        compiler = fake_compiler({"errors": ["boom"]})
    """
    return FakeCompiler
