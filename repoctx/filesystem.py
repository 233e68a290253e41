"""File system adapter consumed by the scorer, analyzer, and strategies.

The core only ever reads: list, stat, read. FileSystem is the abstract
contract; LocalFileSystem implements it over pathlib, pushing blocking
calls onto a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path, PurePath

from repoctx.errors import SkippableIOError


@dataclass(frozen=True, slots=True)
class FileStats:
    """Subset of stat() results the core cares about."""

    size: int
    modified_at: datetime
    is_file: bool
    is_directory: bool


class FileSystem(ABC):
    """Read-only file system interface.

    Failing reads raise SkippableIOError. The boolean probes (exists,
    is_file, is_directory) never raise.
    """

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Return the text content of a file."""

    @abstractmethod
    async def list_directory(self, path: str) -> list[str]:
        """Return entry names in a directory, sorted."""

    @abstractmethod
    async def get_stats(self, path: str) -> FileStats:
        """Return size, modification time, and kind of a path."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Whether the path exists."""

    async def is_file(self, path: str) -> bool:
        try:
            return (await self.get_stats(path)).is_file
        except SkippableIOError:
            return False

    async def is_directory(self, path: str) -> bool:
        try:
            return (await self.get_stats(path)).is_directory
        except SkippableIOError:
            return False

    # ── Path utilities ─────────────────────────────────────────

    def join(self, *parts: str) -> str:
        return os.path.join(*parts)

    def relative(self, root: str, path: str) -> str:
        """Relative path from root to path, always with '/' separators."""
        return PurePath(os.path.relpath(path, root)).as_posix()

    def basename(self, path: str) -> str:
        return os.path.basename(os.path.normpath(path))

    def dirname(self, path: str) -> str:
        return os.path.dirname(path)


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def read_file(self, path: str) -> str:
        return await asyncio.to_thread(self._read_file, path)

    async def list_directory(self, path: str) -> list[str]:
        return await asyncio.to_thread(self._list_directory, path)

    async def get_stats(self, path: str) -> FileStats:
        return await asyncio.to_thread(self._get_stats, path)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.exists, path)

    def _read_file(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding=self._encoding)
        except UnicodeDecodeError:
            raise SkippableIOError(path, "not valid text") from None
        except OSError as e:
            raise SkippableIOError(path, e.strerror or str(e)) from e

    def _list_directory(self, path: str) -> list[str]:
        try:
            return sorted(os.listdir(path))
        except OSError as e:
            raise SkippableIOError(path, e.strerror or str(e)) from e

    def _get_stats(self, path: str) -> FileStats:
        try:
            st = Path(path).stat()
        except OSError as e:
            raise SkippableIOError(path, e.strerror or str(e)) from e
        return FileStats(
            size=st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            is_file=stat.S_ISREG(st.st_mode),
            is_directory=stat.S_ISDIR(st.st_mode),
        )
