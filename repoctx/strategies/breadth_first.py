"""Breadth-first loading: a broad overview, shallowest files first.

Processes the tree one depth level at a time. Inside each directory the
well-known files (README, package manifest, index/main/app) come first,
then everything else alphabetically. A descriptive directory tree is
attached as metadata and does not count against the budget.
"""

from __future__ import annotations

import logging
import time

from repoctx.context.patterns import extension, matches_any
from repoctx.errors import SkippableIOError
from repoctx.heuristics import (
    COMMON_EXTENSIONS,
    ENTRY_PRIORITIES,
    STEM_PRIORITIES,
    UNRANKED_PRIORITY,
)
from repoctx.schemas.context import (
    DirectoryNode,
    LevelStats,
    LoadedContext,
    LoadingOptions,
)
from repoctx.strategies.base import LoadingStrategy, TokenBudget

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5
STRUCTURE_MAX_DEPTH = 3


def entry_priority(name: str) -> int:
    lowered = name.lower()
    if lowered in ENTRY_PRIORITIES:
        return ENTRY_PRIORITIES[lowered]
    stem = lowered.split(".", 1)[0]
    if "." in lowered and stem in STEM_PRIORITIES:
        return STEM_PRIORITIES[stem]
    return UNRANKED_PRIORITY


def sort_entries(entries: list[str]) -> list[str]:
    """Well-known files first, then case-insensitive alphabetical order."""
    return sorted(entries, key=lambda e: (entry_priority(e), e.lower(), e))


class BreadthFirstLoadingStrategy(LoadingStrategy):
    """Loads files level by level from the root."""

    name = "breadth-first"

    async def load_context(self, root_path: str, options: LoadingOptions) -> LoadedContext:
        max_depth = options.max_depth if options.max_depth is not None else DEFAULT_MAX_DEPTH
        logger.info(
            "Loading breadth-first context from %s (max_depth=%d, max_tokens=%d)",
            root_path,
            max_depth,
            options.max_tokens,
        )
        start = time.monotonic()
        await self._ensure_root(root_path)

        files: dict[str, str] = {}
        budget = TokenBudget(options.max_tokens)
        level_stats: list[LevelStats] = []

        for level in range(max_depth + 1):
            if budget.exhausted:
                break
            before_files, before_tokens = len(files), budget.used
            for directory in await self._directories_at_level(root_path, level, options):
                if budget.exhausted:
                    break
                await self._load_directory(root_path, directory, options, files, budget)

            loaded = len(files) - before_files
            if loaded:
                level_stats.append(
                    LevelStats(level=level, files=loaded, tokens=budget.used - before_tokens)
                )
            logger.debug("Level %d: %d files, %d tokens", level, loaded, budget.used - before_tokens)

        structure = await self._build_structure(root_path, min(STRUCTURE_MAX_DEPTH, max_depth))

        logger.info(
            "Breadth-first loading complete: %d files, %d tokens, %d levels in %.2fs",
            len(files),
            budget.used,
            len(level_stats),
            time.monotonic() - start,
        )
        return LoadedContext(
            files=files,
            metadata={"directory_structure": structure, "level_stats": level_stats},
            total_tokens=budget.used,
            strategy=self.name,
        )

    async def _load_directory(
        self,
        root_path: str,
        directory: str,
        options: LoadingOptions,
        files: dict[str, str],
        budget: TokenBudget,
    ) -> None:
        for entry in sort_entries(await self._list(directory)):
            if budget.exhausted:
                return
            full = self._fs.join(directory, entry)
            rel = self._fs.relative(root_path, full)
            if self._is_excluded(entry, rel, options.exclude_patterns):
                continue
            if not await self._fs.is_file(full) or not self._should_include(entry, rel, options):
                continue
            content = await self._read(full)
            if content is None:
                continue
            tokens = self._estimate(content)
            if budget.fits(tokens):
                files[rel] = content
                budget.admit(tokens)

    def _should_include(self, name: str, rel_path: str, options: LoadingOptions) -> bool:
        ext = extension(name)
        if options.file_types and ext not in {t.lower() for t in options.file_types}:
            return False
        if options.include_patterns:
            return matches_any(name, options.include_patterns) or matches_any(
                rel_path, options.include_patterns
            )
        return ext in COMMON_EXTENSIONS

    async def _directories_at_level(
        self,
        root_path: str,
        target: int,
        options: LoadingOptions,
    ) -> list[str]:
        if target == 0:
            return [root_path]

        found: list[str] = []

        async def descend(directory: str, level: int) -> None:
            if level == target:
                found.append(directory)
                return
            for entry in sort_entries(await self._list(directory)):
                full = self._fs.join(directory, entry)
                if self._is_excluded(entry, self._fs.relative(root_path, full),
                                     options.exclude_patterns):
                    continue
                if await self._fs.is_directory(full):
                    await descend(full, level + 1)

        await descend(root_path, 0)
        return found

    async def _build_structure(self, root_path: str, max_depth: int) -> DirectoryNode:
        root = DirectoryNode(name=self._fs.basename(root_path))

        async def build(directory: str, node: DirectoryNode, depth: int) -> None:
            for entry in sort_entries(await self._list(directory)):
                if self._is_excluded(entry, entry, []):
                    continue
                full = self._fs.join(directory, entry)
                try:
                    stats = await self._fs.get_stats(full)
                except SkippableIOError as e:
                    logger.debug("Structure skips %s: %s", full, e.reason)
                    continue
                if stats.is_directory:
                    child = DirectoryNode(name=entry)
                    node.children.append(child)
                    if depth < max_depth:
                        await build(full, child, depth + 1)
                elif depth == 0:
                    node.children.append(DirectoryNode(name=entry, type="file", size=stats.size))

        await build(root_path, root, 0)
        return root
