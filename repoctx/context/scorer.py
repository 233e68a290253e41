"""Multi-factor relevance scorer for candidate files.

Scores each path on six static factors (path, name, type, depth, size,
recency) plus an optional query factor, combines them with a weight set,
applies type/include/exclude filters, and clamps the result to [0, 100].
"""

from __future__ import annotations

import logging
import os
import time
from datetime import UTC, datetime

from repoctx.context.patterns import extension, matches_any
from repoctx.errors import SkippableIOError
from repoctx.filesystem import FileSystem
from repoctx.heuristics import (
    IMPORTANT_NAMES,
    KEYWORD_WEIGHTS,
    TYPE_SCORES,
    UNKNOWN_TYPE_SCORE,
)
from repoctx.schemas.scoring import (
    FileRelevance,
    RelevanceFactors,
    ScoringCriteria,
)

logger = logging.getLogger(__name__)

_KB = 1024
_DAY_SECONDS = 86_400

# Files at or above this size are not read for query matching
_QUERY_READ_LIMIT = 100 * _KB

_FACTOR_REASONS: dict[str, str] = {
    "path_score": "important path location",
    "name_score": "significant filename",
    "type_score": "relevant file type",
    "depth_score": "good file depth",
    "size_score": "optimal file size",
    "recency_score": "recently modified",
}


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _segments(path: str) -> list[str]:
    return [p for p in path.replace("\\", "/").split("/") if p]


class RelevanceScorer:
    """Scores candidate paths against static and query-dependent factors.

    Relative candidate paths are resolved against ``criteria.context_path``
    (or ``context_path`` for calculate_relevance) when the file has to be
    stat'ed or read.
    """

    def __init__(self, file_system: FileSystem) -> None:
        self._fs = file_system

    async def score_files(
        self,
        paths: list[str],
        criteria: ScoringCriteria,
    ) -> list[FileRelevance]:
        """Score every path and return results sorted by score, highest first.

        The sort is stable, so equal scores keep their input order. When
        ``criteria.threshold`` is set, results below it are dropped.
        """
        logger.info(
            "Scoring %d files (query=%s)", len(paths), bool(criteria.query)
        )

        scored = [await self._score_file(path, criteria) for path in paths]
        scored.sort(key=lambda r: r.score, reverse=True)

        if criteria.threshold is not None:
            scored = [r for r in scored if r.score >= criteria.threshold]

        logger.info(
            "Scoring complete: %d of %d above threshold, top score %.1f",
            len(scored),
            len(paths),
            scored[0].score if scored else 0.0,
        )
        return scored

    async def calculate_relevance(
        self,
        path: str,
        context_path: str | None = None,
    ) -> RelevanceFactors:
        """Compute the six static factors for one path."""
        rel_path, full_path = self._resolve(path, context_path)
        size_score, recency_score = await self._stat_scores(full_path)
        return RelevanceFactors(
            path_score=self._path_score(rel_path),
            name_score=self._name_score(os.path.basename(rel_path)),
            type_score=self._type_score(rel_path),
            depth_score=self._depth_score(rel_path, context_path),
            size_score=size_score,
            recency_score=recency_score,
        )

    # ── Combination ────────────────────────────────────────────

    async def _score_file(self, path: str, criteria: ScoringCriteria) -> FileRelevance:
        factors = await self.calculate_relevance(path, criteria.context_path)
        w = criteria.weights

        score = (
            factors.path_score * w.path_score
            + factors.name_score * w.name_score
            + factors.type_score * w.type_score
            + factors.depth_score * w.depth_score
            + factors.size_score * w.size_score
            + factors.recency_score * w.recency_score
        )

        if criteria.query:
            _, full_path = self._resolve(path, criteria.context_path)
            score += await self._query_score(path, full_path, criteria.query) * w.query_score

        if criteria.file_types:
            allowed = {t.lower() for t in criteria.file_types}
            if extension(path) not in allowed:
                score *= 0.1

        if criteria.include_patterns and not matches_any(path, criteria.include_patterns):
            score *= 0.2

        if criteria.exclude_patterns and matches_any(path, criteria.exclude_patterns):
            score = 0.0

        return FileRelevance(
            path=path,
            score=_clamp(score),
            factors=factors,
            reason=self._reason(factors, score),
        )

    def _resolve(self, path: str, context_path: str | None) -> tuple[str, str]:
        """Return (path relative to context, path usable for I/O)."""
        if context_path is None:
            return path, path
        if os.path.isabs(path):
            return self._fs.relative(context_path, path), path
        return path, self._fs.join(context_path, path)

    # ── Static factors ─────────────────────────────────────────

    def _path_score(self, path: str) -> float:
        score = 50.0
        parts = [p.lower() for p in _segments(path)]

        for part in parts:
            for keyword, weight in KEYWORD_WEIGHTS.items():
                if keyword in part:
                    score += weight

        if "src" in parts or "lib" in parts:
            score += 10

        score -= max(0, (len(parts) - 4) * 2)
        return _clamp(score)

    def _name_score(self, filename: str) -> float:
        score = 50.0
        name_lower = filename.lower()
        stem = os.path.splitext(name_lower)[0]

        if stem in IMPORTANT_NAMES:
            score += 30

        for keyword, weight in KEYWORD_WEIGHTS.items():
            if keyword in name_lower:
                score += weight

        if "test" in name_lower or "spec" in name_lower:
            score -= 20

        if len(filename) > 50:
            score -= 10

        return _clamp(score)

    def _type_score(self, path: str) -> float:
        return float(TYPE_SCORES.get(extension(path), UNKNOWN_TYPE_SCORE))

    def _depth_score(self, path: str, context_path: str | None) -> float:
        depth = len(_segments(path))

        if context_path is not None:
            # A file directly inside the context directory is at depth 0
            relative_depth = max(0, depth - 1)
            if relative_depth == 0:
                return 100.0
            if relative_depth == 1:
                return 90.0
            if relative_depth == 2:
                return 70.0
            return _clamp(100 - relative_depth * 10)

        if depth <= 3:
            return 90.0
        if depth <= 5:
            return 70.0
        if depth <= 7:
            return 50.0
        return _clamp(100 - depth * 5)

    async def _stat_scores(self, full_path: str) -> tuple[float, float]:
        """Size and recency scores, both neutral (50) if stat fails."""
        try:
            stats = await self._fs.get_stats(full_path)
        except SkippableIOError:
            return 50.0, 50.0
        return self._size_score(stats.size), self._recency_score(stats.modified_at)

    @staticmethod
    def _size_score(size: int) -> float:
        size_kb = size / _KB
        if size_kb < 1:
            return 20.0
        if size_kb <= 50:
            return 100.0
        if size_kb <= 200:
            return 80.0
        if size_kb <= 500:
            return 60.0
        if size_kb <= 1000:
            return 40.0
        return 20.0

    @staticmethod
    def _recency_score(modified_at: datetime) -> float:
        age_days = (time.time() - modified_at.astimezone(UTC).timestamp()) / _DAY_SECONDS
        if age_days < 1:
            return 100.0
        if age_days < 7:
            return 90.0
        if age_days < 30:
            return 70.0
        if age_days < 90:
            return 50.0
        if age_days < 365:
            return 30.0
        return 10.0

    # ── Query factor ───────────────────────────────────────────

    async def _query_score(self, path: str, full_path: str, query: str) -> float:
        terms = [t for t in query.lower().split() if len(t) > 2]
        if not terms:
            return 0.0

        score = 0.0
        filename = os.path.basename(path).lower()
        path_lower = path.lower()

        for term in terms:
            if term in filename:
                score += 20
        for term in terms:
            if term in path_lower:
                score += 10

        try:
            stats = await self._fs.get_stats(full_path)
            if stats.size < _QUERY_READ_LIMIT:
                content = (await self._fs.read_file(full_path)).lower()
                for term in terms:
                    score += min(content.count(term) * 2, 30)
        except SkippableIOError as e:
            logger.debug("Query content match skipped for %s: %s", path, e)

        return min(score, 100.0)

    # ── Explanation ────────────────────────────────────────────

    @staticmethod
    def _reason(factors: RelevanceFactors, total: float) -> str:
        ranked = sorted(
            factors.model_dump().items(), key=lambda kv: kv[1], reverse=True
        )
        reasons = [
            _FACTOR_REASONS[name] for name, value in ranked[:3] if value >= 80
        ]
        if reasons:
            return ", ".join(reasons)
        if total >= 70:
            return "generally relevant"
        if total >= 40:
            return "moderately relevant"
        return "low relevance"
