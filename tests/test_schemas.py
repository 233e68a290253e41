"""Tests for schema defaults and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from repoctx.errors import (
    ConfigurationError,
    ContextError,
    FatalIOError,
    SkippableIOError,
    UnknownStrategyError,
)
from repoctx.schemas import (
    Context,
    ContextChunk,
    FileRelevance,
    LoadedContext,
    LoadingOptions,
    OptimizationResult,
    OptimizationStrategy,
    ProjectInfo,
    ProjectType,
    RelevanceFactors,
    ScoringCriteria,
    ScoringWeights,
)

# ── Loading options ───────────────────────────────────────────────


class TestLoadingOptions:
    def test_defaults(self):
        options = LoadingOptions()
        assert options.strategy == "progressive"
        assert options.max_tokens == 8000
        assert options.max_depth is None
        assert options.query is None
        assert options.include_patterns == []
        assert options.exclude_patterns == []
        assert options.file_types == []
        assert options.optimize is False
        assert options.optimization_strategy is OptimizationStrategy.SELECTIVE

    def test_frozen(self):
        options = LoadingOptions()
        with pytest.raises(ValidationError):
            options.max_tokens = 10

    def test_model_copy(self):
        options = LoadingOptions().model_copy(update={"strategy": "focused"})
        assert options.strategy == "focused"

    def test_negative_budget_rejected(self):
        with pytest.raises(ValidationError):
            LoadingOptions(max_tokens=-1)

    def test_optimization_strategy_from_string(self):
        assert LoadingOptions(optimization_strategy="compress").optimization_strategy is (
            OptimizationStrategy.COMPRESS
        )


# ── Scoring ───────────────────────────────────────────────────────


class TestScoringSchemas:
    def test_default_weights(self):
        w = ScoringWeights()
        assert (w.path_score, w.name_score, w.type_score) == (1.5, 2.0, 1.2)
        assert (w.depth_score, w.size_score, w.recency_score, w.query_score) == (
            0.8, 0.5, 0.7, 2.5,
        )

    def test_threshold_bounds(self):
        with pytest.raises(ValidationError):
            ScoringCriteria(threshold=150)

    def test_score_bounds(self):
        factors = RelevanceFactors(
            path_score=50, name_score=50, type_score=50,
            depth_score=50, size_score=50, recency_score=50,
        )
        with pytest.raises(ValidationError):
            FileRelevance(path="a.py", score=101, factors=factors)


# ── Results ───────────────────────────────────────────────────────


class TestResultSchemas:
    def test_loaded_context_defaults(self):
        loaded = LoadedContext(strategy="progressive")
        assert loaded.files == {}
        assert loaded.metadata == {}
        assert loaded.total_tokens == 0

    def test_context_defaults(self):
        context = Context(root_path="/tmp")
        assert context.project_info == ProjectInfo()
        assert context.project_info.type is ProjectType.UNKNOWN
        assert context.optimized is None

    def test_nested_optimized_context(self):
        inner = Context(root_path="/tmp", tokens=5)
        outer = Context(root_path="/tmp", tokens=10, optimized=inner)
        restored = Context.model_validate_json(outer.model_dump_json())
        assert restored.optimized is not None
        assert restored.optimized.tokens == 5

    def test_optimization_result_bounds(self):
        with pytest.raises(ValidationError):
            OptimizationResult(
                original_content="a",
                optimized_content="a",
                original_tokens=1,
                optimized_tokens=1,
                reduction=120,
                strategy="compress",
            )

    def test_chunk_defaults(self):
        chunk = ContextChunk(content="x", index=0, token_count=1)
        assert chunk.overlap == ""
        assert chunk.metadata.language == "unknown"


# ── Errors ────────────────────────────────────────────────────────


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(ConfigurationError, ContextError)
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(UnknownStrategyError, KeyError)
        assert issubclass(FatalIOError, OSError)
        assert issubclass(SkippableIOError, OSError)

    def test_messages(self):
        assert str(UnknownStrategyError("x")) == "Unknown loading strategy: x"
        assert str(FatalIOError("/root", "gone")) == "Cannot read root path /root: gone"
        err = SkippableIOError("a.txt", "denied")
        assert (err.path, err.reason) == ("a.txt", "denied")
        assert str(err) == "a.txt: denied"
