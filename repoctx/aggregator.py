"""Context aggregator: strategy dispatch, project info, and optimization.

Selects a registered loading strategy, runs it, attaches project
analysis and a human-readable summary, and optionally routes the loaded
files through the ContextOptimizer.
"""

from __future__ import annotations

import logging
import re
import time

from repoctx.cache import ContextCache, cache_key
from repoctx.context.analyzer import ProjectAnalyzer
from repoctx.context.optimizer import ContextOptimizer
from repoctx.context.scorer import RelevanceScorer
from repoctx.errors import UnknownStrategyError
from repoctx.filesystem import FileSystem, LocalFileSystem
from repoctx.schemas.context import Context, FocusSummary, LoadedContext, LoadingOptions
from repoctx.schemas.optimizer import OptimizationStrategy
from repoctx.schemas.project import ProjectInfo
from repoctx.strategies import (
    BreadthFirstLoadingStrategy,
    FocusedLoadingStrategy,
    LoadingStrategy,
    ProgressiveLoadingStrategy,
)

logger = logging.getLogger(__name__)

FILE_MARKER = "// File: "
FALLBACK_FILE = "optimized-content"

_FILE_BLOCK_RE = re.compile(r"// File: (.+?)\n([\s\S]*?)(?=// File: |\Z)")


def serialize_files(files: dict[str, str]) -> str:
    """Join files into one stream with a ``// File: <path>`` marker per file."""
    return "\n\n".join(f"{FILE_MARKER}{path}\n{content}" for path, content in files.items())


def parse_files(content: str) -> dict[str, str]:
    """Split a marked stream back into files.

    If no markers survive, the whole text becomes a single synthetic file.
    """
    files = {
        match.group(1).strip(): match.group(2).strip()
        for match in _FILE_BLOCK_RE.finditer(content)
    }
    if not files:
        files[FALLBACK_FILE] = content
    return files


class ContextAggregator:
    """Orchestrates context loading, project analysis, and optimization.

    The three built-in strategies are registered under ``progressive``,
    ``focused``, and ``breadth-first``; more can be added at runtime with
    register_strategy().
    """

    def __init__(
        self,
        file_system: FileSystem | None = None,
        analyzer: ProjectAnalyzer | None = None,
        optimizer: ContextOptimizer | None = None,
        scorer: RelevanceScorer | None = None,
        cache: ContextCache | None = None,
    ) -> None:
        fs = file_system or LocalFileSystem()
        self._analyzer = analyzer or ProjectAnalyzer(fs)
        self._optimizer = optimizer or ContextOptimizer()
        self._cache = cache
        scorer = scorer or RelevanceScorer(fs)

        self._strategies: dict[str, LoadingStrategy] = {}
        for strategy in (
            ProgressiveLoadingStrategy(fs, scorer, self._analyzer),
            FocusedLoadingStrategy(fs, scorer),
            BreadthFirstLoadingStrategy(fs),
        ):
            self._strategies[strategy.name] = strategy

    def get_strategies(self) -> list[str]:
        return list(self._strategies)

    def register_strategy(self, name: str, strategy: LoadingStrategy) -> None:
        """Register (or replace) a loading strategy under ``name``."""
        logger.info("Registering loading strategy %s", name)
        self._strategies[name] = strategy

    def _get_strategy(self, name: str) -> LoadingStrategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise UnknownStrategyError(name) from None

    async def load_context(
        self,
        root_path: str,
        strategy: str,
        options: LoadingOptions | None = None,
    ) -> LoadedContext:
        """Run one named strategy without analysis or optimization."""
        loader = self._get_strategy(strategy)
        options = (options or LoadingOptions()).model_copy(update={"strategy": strategy})
        return await loader.load_context(root_path, options)

    async def aggregate_context(
        self,
        root_path: str,
        options: LoadingOptions | None = None,
    ) -> Context:
        """Load, describe, and optionally optimize a project's context.

        Raises:
            UnknownStrategyError: If options.strategy is not registered.
            ConfigurationError: If the strategy rejects the options.
            FatalIOError: If root_path cannot be read.
        """
        options = options or LoadingOptions()
        loader = self._get_strategy(options.strategy)

        key = cache_key(root_path, options) if self._cache is not None else ""
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.info("Context cache hit for %s", root_path)
                return cached

        start = time.monotonic()
        logger.info("Aggregating context for %s with %s", root_path, options.strategy)

        loaded = await loader.load_context(root_path, options)

        project_info = loaded.metadata.get("project_info")
        if not isinstance(project_info, ProjectInfo):
            project_info = await self._analyzer.analyze_project(root_path)

        context = Context(
            root_path=root_path,
            files=loaded.files,
            metadata=loaded.metadata,
            project_info=project_info,
            summary=self._summarize(loaded, project_info),
            tokens=loaded.total_tokens,
        )

        if options.optimize:
            context.optimized = await self.optimize_context(
                context, options.optimization_strategy, options.max_tokens
            )

        logger.info(
            "Aggregation complete: %d files, %d tokens in %.2fs",
            len(context.files),
            context.tokens,
            time.monotonic() - start,
        )

        if self._cache is not None:
            await self._cache.set(key, context)
        return context

    async def optimize_context(
        self,
        context: Context,
        strategy: OptimizationStrategy | str,
        max_tokens: int | None = None,
    ) -> Context:
        """Return a copy of context whose files went through the optimizer."""
        logger.info("Optimizing context (%s, %d tokens)", strategy, context.tokens)

        result = await self._optimizer.optimize_context(
            serialize_files(context.files), strategy, max_tokens
        )

        metadata = dict(context.metadata)
        metadata["optimization"] = {
            "strategy": str(result.strategy),
            "original_tokens": result.original_tokens,
            "optimized_tokens": result.optimized_tokens,
            "reduction": result.reduction,
        }
        return context.model_copy(
            update={
                "files": parse_files(result.optimized_content),
                "tokens": result.optimized_tokens,
                "metadata": metadata,
                "optimized": None,
            }
        )

    @staticmethod
    def _summarize(loaded: LoadedContext, project_info: ProjectInfo) -> str:
        parts = [f"Project: {project_info.type} application"]
        if project_info.framework is not None:
            parts.append(f"Framework: {project_info.framework.name}")
        if project_info.languages:
            parts.append(f"Languages: {', '.join(project_info.languages)}")
        parts.append(f"Files loaded: {len(loaded.files)}")
        parts.append(f"Total tokens: {loaded.total_tokens}")
        parts.append(f"Loading strategy: {loaded.strategy}")

        focus = loaded.metadata.get("focus_summary")
        if isinstance(focus, FocusSummary) and focus.query:
            parts.append(f'Query focus: "{focus.query}"')
        return "\n".join(parts)
