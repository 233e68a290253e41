"""Abstract base class and shared helpers for loading strategies.

Every strategy walks a source tree and returns a LoadedContext whose
files fit inside ``options.max_tokens``. The aggregator interacts with
strategies exclusively through LoadingStrategy.load_context().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from repoctx.context.patterns import is_ignored_name, matches_any
from repoctx.context.tokens import estimate_tokens_fast
from repoctx.errors import FatalIOError, SkippableIOError
from repoctx.filesystem import FileSystem
from repoctx.schemas.context import LoadedContext, LoadingOptions

logger = logging.getLogger(__name__)


class TokenBudget:
    """Running token total against a fixed limit.

    Admission is monotonic: once a file is admitted its cost stays counted.
    """

    def __init__(self, limit: int, used: int = 0) -> None:
        self.limit = limit
        self.used = used

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit

    def fits(self, tokens: int) -> bool:
        return self.used + tokens <= self.limit

    def below(self, fraction: float) -> bool:
        """Whether less than ``fraction`` of the limit has been used."""
        return self.used < self.limit * fraction

    def admit(self, tokens: int) -> None:
        self.used += tokens


class LoadingStrategy(ABC):
    """Abstract interface for a named context loading policy."""

    name: str = ""

    def __init__(self, file_system: FileSystem) -> None:
        self._fs = file_system

    @abstractmethod
    async def load_context(self, root_path: str, options: LoadingOptions) -> LoadedContext:
        """Load a token-bounded set of files from ``root_path``.

        Raises:
            FatalIOError: If root_path is missing or not a readable directory.
        """

    # ── Shared helpers ─────────────────────────────────────────

    async def _ensure_root(self, root_path: str) -> None:
        try:
            stats = await self._fs.get_stats(root_path)
        except SkippableIOError as e:
            raise FatalIOError(root_path, e.reason) from e
        if not stats.is_directory:
            raise FatalIOError(root_path, "not a directory")
        try:
            await self._fs.list_directory(root_path)
        except SkippableIOError as e:
            raise FatalIOError(root_path, e.reason) from e

    async def _read(self, full_path: str) -> str | None:
        """File content, or None after logging a skippable failure."""
        try:
            return await self._fs.read_file(full_path)
        except SkippableIOError as e:
            logger.warning("[%s] Skipping %s: %s", self.name, full_path, e.reason)
            return None

    async def _list(self, directory: str) -> list[str]:
        try:
            return await self._fs.list_directory(directory)
        except SkippableIOError as e:
            logger.warning("[%s] Skipping directory %s: %s", self.name, directory, e.reason)
            return []

    def _is_excluded(self, name: str, rel_path: str, patterns: list[str]) -> bool:
        """Built-in ignores plus caller exclude globs (matched on name or path)."""
        if is_ignored_name(name):
            return True
        return bool(patterns) and (matches_any(rel_path, patterns) or matches_any(name, patterns))

    async def _collect_files(
        self,
        root_path: str,
        max_depth: int,
        exclude_patterns: list[str],
        accept: Callable[[str], bool],
    ) -> list[str]:
        """Depth-first walk returning '/'-relative paths of accepted files.

        Directories deeper than ``max_depth`` below the root are not
        entered. Unreadable directories are logged and skipped.
        """
        found: list[str] = []

        async def walk(directory: str, depth: int) -> None:
            if depth > max_depth:
                return
            for entry in await self._list(directory):
                full = self._fs.join(directory, entry)
                rel = self._fs.relative(root_path, full)
                if self._is_excluded(entry, rel, exclude_patterns):
                    continue
                try:
                    stats = await self._fs.get_stats(full)
                except SkippableIOError as e:
                    logger.warning("[%s] Cannot stat %s: %s", self.name, full, e.reason)
                    continue
                if stats.is_directory:
                    await walk(full, depth + 1)
                elif accept(entry):
                    found.append(rel)

        await walk(root_path, 0)
        return found

    @staticmethod
    def _estimate(content: str) -> int:
        return estimate_tokens_fast(content)
