"""Tests for the ContextAggregator: dispatch, summary, optimization, caching."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoctx.aggregator import (
    FALLBACK_FILE,
    ContextAggregator,
    parse_files,
    serialize_files,
)
from repoctx.cache import MemoryContextCache
from repoctx.errors import ConfigurationError, FatalIOError, UnknownStrategyError
from repoctx.filesystem import FileSystem
from repoctx.schemas.context import LoadedContext, LoadingOptions
from repoctx.schemas.optimizer import OptimizationStrategy
from repoctx.strategies import LoadingStrategy

# ── Fixtures ──────────────────────────────────────────────────────


class FixedStrategy(LoadingStrategy):
    """Returns the same files on every call and counts invocations."""

    name = "fixed"

    def __init__(self, file_system: FileSystem, files: dict[str, str]) -> None:
        super().__init__(file_system)
        self.files = files
        self.calls = 0

    async def load_context(self, root_path: str, options: LoadingOptions) -> LoadedContext:
        self.calls += 1
        return LoadedContext(
            files=dict(self.files),
            total_tokens=sum(self._estimate(c) for c in self.files.values()),
            strategy=self.name,
        )


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    (tmp_path / "package.json").write_text(
        '{"name": "demo", "dependencies": {"express": "^4.0.0"}}', encoding="utf-8"
    )
    (tmp_path / "README.md").write_text("# Demo\n\nAn example service.\n", encoding="utf-8")
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.js").write_text("const express = require('express');\n", encoding="utf-8")
    (src / "routes.js").write_text("module.exports = function routes() {};\n", encoding="utf-8")
    return tmp_path


# ── File stream markers ───────────────────────────────────────────


class TestFileMarkers:
    def test_round_trip(self):
        files = {"src/a.py": "x = 1", "docs/b.md": "# B\ntext"}
        assert parse_files(serialize_files(files)) == files

    def test_serialize_format(self):
        assert serialize_files({"a.py": "x = 1"}) == "// File: a.py\nx = 1"

    def test_fallback_without_markers(self):
        assert parse_files("plain text") == {FALLBACK_FILE: "plain text"}


# ── Strategy registry ─────────────────────────────────────────────


class TestRegistry:
    def test_builtin_strategies(self):
        assert ContextAggregator().get_strategies() == ["progressive", "focused", "breadth-first"]

    @pytest.mark.asyncio
    async def test_unknown_strategy(self, project: Path):
        aggregator = ContextAggregator()
        with pytest.raises(UnknownStrategyError, match="Unknown loading strategy: nope"):
            await aggregator.aggregate_context(str(project), LoadingOptions(strategy="nope"))
        with pytest.raises(KeyError):
            await aggregator.load_context(str(project), "nope")

    @pytest.mark.asyncio
    async def test_register_strategy(self, project: Path):
        aggregator = ContextAggregator()
        custom = FixedStrategy(AsyncFileSystemStub(), {"only.txt": "hello"})
        aggregator.register_strategy("fixed", custom)

        assert "fixed" in aggregator.get_strategies()
        context = await aggregator.aggregate_context(
            str(project), LoadingOptions(strategy="fixed")
        )
        assert context.files == {"only.txt": "hello"}
        assert custom.calls == 1
        # Strategy supplied no project info, so the analyzer ran
        assert context.project_info.type == "api"

    @pytest.mark.asyncio
    async def test_load_context_runs_named_strategy(self, project: Path):
        loaded = await ContextAggregator().load_context(str(project), "breadth-first")
        assert loaded.strategy == "breadth-first"
        assert "README.md" in loaded.files


# ── Aggregation ───────────────────────────────────────────────────


class TestAggregateContext:
    @pytest.mark.asyncio
    async def test_progressive_defaults(self, project: Path):
        context = await ContextAggregator().aggregate_context(str(project))

        assert context.root_path == str(project)
        assert "README.md" in context.files
        assert "package.json" in context.files
        assert context.tokens <= 8000
        assert context.project_info.type == "api"
        assert context.project_info.framework is not None
        assert context.optimized is None

    @pytest.mark.asyncio
    async def test_summary(self, project: Path):
        context = await ContextAggregator().aggregate_context(
            str(project), LoadingOptions(strategy="focused", query="routes")
        )
        lines = context.summary.split("\n")

        assert lines[0] == "Project: api application"
        assert "Framework: Express" in lines
        assert "Languages: JavaScript" in lines
        assert f"Files loaded: {len(context.files)}" in lines
        assert f"Total tokens: {context.tokens}" in lines
        assert "Loading strategy: focused" in lines
        assert lines[-1] == 'Query focus: "routes"'

    @pytest.mark.asyncio
    async def test_focused_errors_propagate(self, project: Path):
        with pytest.raises(ConfigurationError):
            await ContextAggregator().aggregate_context(
                str(project), LoadingOptions(strategy="focused")
            )

    @pytest.mark.asyncio
    async def test_optimize_preserves_file_markers(self, project: Path):
        context = await ContextAggregator().aggregate_context(
            str(project),
            LoadingOptions(optimize=True, optimization_strategy=OptimizationStrategy.COMPRESS),
        )

        assert context.optimized is not None
        assert set(context.optimized.files) == set(context.files)
        opt = context.optimized.metadata["optimization"]
        assert opt["strategy"] == "compress"
        assert opt["original_tokens"] >= opt["optimized_tokens"]
        assert context.optimized.tokens == opt["optimized_tokens"]

    @pytest.mark.asyncio
    async def test_optimize_context_directly(self, project: Path):
        aggregator = ContextAggregator()
        context = await aggregator.aggregate_context(str(project))
        optimized = await aggregator.optimize_context(context, "selective", max_tokens=5)

        assert optimized.tokens <= 5
        assert optimized.root_path == context.root_path
        # Originals untouched
        assert "README.md" in context.files

    @pytest.mark.asyncio
    async def test_missing_root_is_fatal(self, tmp_path: Path):
        with pytest.raises(FatalIOError):
            await ContextAggregator().aggregate_context(str(tmp_path / "missing"))


# ── Caching ───────────────────────────────────────────────────────


class TestAggregatorCache:
    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, project: Path):
        aggregator = ContextAggregator(cache=MemoryContextCache())
        custom = FixedStrategy(AsyncFileSystemStub(), {"a.txt": "alpha"})
        aggregator.register_strategy("fixed", custom)
        options = LoadingOptions(strategy="fixed")

        first = await aggregator.aggregate_context(str(project), options)
        second = await aggregator.aggregate_context(str(project), options)

        assert custom.calls == 1
        assert second == first

    @pytest.mark.asyncio
    async def test_different_options_miss(self, project: Path):
        aggregator = ContextAggregator(cache=MemoryContextCache())
        custom = FixedStrategy(AsyncFileSystemStub(), {"a.txt": "alpha"})
        aggregator.register_strategy("fixed", custom)

        await aggregator.aggregate_context(str(project), LoadingOptions(strategy="fixed"))
        await aggregator.aggregate_context(
            str(project), LoadingOptions(strategy="fixed", max_tokens=100)
        )

        assert custom.calls == 2


class AsyncFileSystemStub(FileSystem):
    """FileSystem that is never touched by FixedStrategy."""

    async def read_file(self, path: str) -> str:
        raise AssertionError("unexpected read")

    async def list_directory(self, path: str) -> list[str]:
        raise AssertionError("unexpected list")

    async def get_stats(self, path: str):
        raise AssertionError("unexpected stat")

    async def exists(self, path: str) -> bool:
        raise AssertionError("unexpected exists")
