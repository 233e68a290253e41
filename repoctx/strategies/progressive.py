"""Progressive loading: must-have files first, then config, query hits, docs.

Stages run in a fixed order, each gated by how much of the budget is
already used:

1. Entry points and core files (always). Hard stop on the first file
   that does not fit.
2. Config files, while under 80% of the budget. Hard stop on first miss.
3. Query-relevant source files, when a query is given and usage is under
   90%. Soft-skip admission.
4. Documentation, while under 95%. Soft-skip admission.

The hard stops in stages 1 and 2 keep must-have files in strict priority
order; the later stages fill remaining space opportunistically.
"""

from __future__ import annotations

import logging
import time

from repoctx.context.analyzer import ProjectAnalyzer
from repoctx.context.patterns import extension
from repoctx.context.scorer import RelevanceScorer
from repoctx.filesystem import FileSystem
from repoctx.heuristics import (
    CONFIG_PRIORITIES,
    CORE_FILES,
    DOCS_PER_DIRECTORY,
    MAX_CONFIG_FILES,
    QUERY_SOURCE_TYPES,
    ROOT_DOCS,
    SOURCE_EXTENSIONS,
)
from repoctx.schemas.context import LoadedContext, LoadingOptions
from repoctx.schemas.project import ProjectInfo
from repoctx.schemas.scoring import ScoringCriteria
from repoctx.strategies.base import LoadingStrategy, TokenBudget

logger = logging.getLogger(__name__)

_CONFIG_STAGE_LIMIT = 0.8
_QUERY_STAGE_LIMIT = 0.9
_DOCS_STAGE_LIMIT = 0.95
_QUERY_THRESHOLD = 40.0
_SOURCE_WALK_DEPTH = 5


def _config_priority(name: str) -> int:
    for i, marker in enumerate(CONFIG_PRIORITIES):
        if marker in name:
            return i
    return len(CONFIG_PRIORITIES)


class ProgressiveLoadingStrategy(LoadingStrategy):
    """Loads a project in priority stages until the budget runs out."""

    name = "progressive"

    def __init__(
        self,
        file_system: FileSystem,
        scorer: RelevanceScorer,
        analyzer: ProjectAnalyzer,
    ) -> None:
        super().__init__(file_system)
        self._scorer = scorer
        self._analyzer = analyzer

    async def load_context(self, root_path: str, options: LoadingOptions) -> LoadedContext:
        logger.info(
            "Loading context progressively from %s (max_tokens=%d)",
            root_path,
            options.max_tokens,
        )
        start = time.monotonic()
        await self._ensure_root(root_path)

        files: dict[str, str] = {}
        budget = TokenBudget(options.max_tokens)

        project_info = await self._analyzer.analyze_project(root_path)

        core = await self._read_core_files(root_path, project_info.entry_points)
        self._admit_strict(core, files, budget, stage="core")

        if budget.below(_CONFIG_STAGE_LIMIT):
            configs = await self._read_config_files(
                root_path, project_info.structure.config_files, files
            )
            self._admit_strict(configs, files, budget, stage="config")

        if options.query and budget.below(_QUERY_STAGE_LIMIT):
            await self._load_relevant_files(root_path, options, files, budget)

        if budget.below(_DOCS_STAGE_LIMIT):
            await self._load_documentation(root_path, project_info, files, budget)

        logger.info(
            "Progressive loading complete: %d files, %d tokens in %.2fs",
            len(files),
            budget.used,
            time.monotonic() - start,
        )
        return LoadedContext(
            files=files,
            metadata={"project_info": project_info},
            total_tokens=budget.used,
            strategy=self.name,
        )

    # ── Stage 1 & 2: hard-stop admission ───────────────────────

    def _admit_strict(
        self,
        candidates: dict[str, str],
        files: dict[str, str],
        budget: TokenBudget,
        stage: str,
    ) -> None:
        for rel_path, content in candidates.items():
            if rel_path in files:
                continue
            tokens = self._estimate(content)
            if not budget.fits(tokens):
                logger.debug(
                    "Stage %s stopped at %s (%d tokens, %d remaining)",
                    stage, rel_path, tokens, budget.remaining,
                )
                break
            files[rel_path] = content
            budget.admit(tokens)

    async def _read_core_files(self, root_path: str, entry_points: list[str]) -> dict[str, str]:
        core: dict[str, str] = {}

        for entry_point in entry_points:
            content = await self._read(self._fs.join(root_path, entry_point))
            if content is not None:
                core[entry_point] = content

        for name in CORE_FILES:
            if name in core:
                continue
            full = self._fs.join(root_path, name)
            if await self._fs.is_file(full):
                content = await self._read(full)
                if content is not None:
                    core[name] = content

        return core

    async def _read_config_files(
        self,
        root_path: str,
        config_files: list[str],
        loaded: dict[str, str],
    ) -> dict[str, str]:
        ordered = sorted(config_files, key=_config_priority)[:MAX_CONFIG_FILES]
        configs: dict[str, str] = {}
        for name in ordered:
            if name in loaded:
                continue
            content = await self._read(self._fs.join(root_path, name))
            if content is not None:
                configs[name] = content
        return configs

    # ── Stage 3 & 4: soft-skip admission ───────────────────────

    async def _load_relevant_files(
        self,
        root_path: str,
        options: LoadingOptions,
        files: dict[str, str],
        budget: TokenBudget,
    ) -> None:
        sources = await self._collect_files(
            root_path,
            _SOURCE_WALK_DEPTH,
            options.exclude_patterns,
            lambda name: extension(name) in SOURCE_EXTENSIONS,
        )
        unloaded = [p for p in sources if p not in files]

        scored = await self._scorer.score_files(
            unloaded,
            ScoringCriteria(
                query=options.query,
                context_path=root_path,
                threshold=_QUERY_THRESHOLD,
                file_types=list(options.file_types or QUERY_SOURCE_TYPES),
            ),
        )

        for candidate in scored:
            if budget.exhausted:
                break
            content = await self._read(self._fs.join(root_path, candidate.path))
            if content is None:
                continue
            tokens = self._estimate(content)
            if budget.fits(tokens):
                files[candidate.path] = content
                budget.admit(tokens)

    async def _load_documentation(
        self,
        root_path: str,
        project_info: ProjectInfo,
        files: dict[str, str],
        budget: TokenBudget,
    ) -> None:
        for name in ROOT_DOCS:
            if budget.exhausted:
                return
            if name in files:
                continue
            full = self._fs.join(root_path, name)
            if await self._fs.is_file(full):
                await self._admit_soft(name, full, files, budget)

        for docs_dir in project_info.structure.docs_dirs:
            if budget.exhausted:
                return
            docs_path = self._fs.join(root_path, docs_dir)
            markdown = [e for e in await self._list(docs_path) if e.lower().endswith(".md")]
            for entry in markdown[:DOCS_PER_DIRECTORY]:
                if budget.exhausted:
                    return
                full = self._fs.join(docs_path, entry)
                rel = self._fs.relative(root_path, full)
                if rel not in files:
                    await self._admit_soft(rel, full, files, budget)

    async def _admit_soft(
        self,
        rel_path: str,
        full_path: str,
        files: dict[str, str],
        budget: TokenBudget,
    ) -> None:
        content = await self._read(full_path)
        if content is None:
            return
        tokens = self._estimate(content)
        if budget.fits(tokens):
            files[rel_path] = content
            budget.admit(tokens)
