"""Focused loading: only files relevant to a query or include patterns.

Walks the whole tree, scores every candidate with weights that favour
query, name, and path matches, boosts include-pattern hits, and loads
the best candidates with soft-skip admission.
"""

from __future__ import annotations

import logging
import time

from repoctx.context.patterns import extension, matches_pattern
from repoctx.context.scorer import RelevanceScorer
from repoctx.errors import ConfigurationError
from repoctx.filesystem import FileSystem
from repoctx.heuristics import COMMON_EXTENSIONS
from repoctx.schemas.context import FocusSummary, LoadedContext, LoadingOptions
from repoctx.schemas.scoring import FileRelevance, ScoringCriteria, ScoringWeights
from repoctx.strategies.base import LoadingStrategy, TokenBudget

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10
MIN_FOCUS_SCORE = 30.0
PATTERN_BOOST = 1.5

FOCUSED_WEIGHTS = ScoringWeights(
    query_score=3.0,
    name_score=2.5,
    path_score=2.0,
    type_score=1.0,
    depth_score=0.5,
    size_score=0.3,
    recency_score=0.2,
)


def _matches_file_type(name: str, file_types: list[str]) -> bool:
    if not file_types:
        return extension(name) in COMMON_EXTENSIONS
    lowered = name.lower()
    for file_type in file_types:
        file_type = file_type.lower()
        if file_type.startswith("."):
            if lowered.endswith(file_type):
                return True
        elif file_type in lowered:
            return True
    return False


class FocusedLoadingStrategy(LoadingStrategy):
    """Loads the files that best match a query or include patterns."""

    name = "focused"

    def __init__(self, file_system: FileSystem, scorer: RelevanceScorer) -> None:
        super().__init__(file_system)
        self._scorer = scorer

    async def load_context(self, root_path: str, options: LoadingOptions) -> LoadedContext:
        if not options.query and not options.include_patterns:
            raise ConfigurationError(
                "Focused strategy requires either a query or include patterns"
            )

        logger.info(
            "Loading focused context from %s (query=%r, patterns=%s)",
            root_path,
            options.query,
            options.include_patterns,
        )
        start = time.monotonic()
        await self._ensure_root(root_path)

        max_depth = options.max_depth if options.max_depth is not None else DEFAULT_MAX_DEPTH
        candidates = await self._collect_files(
            root_path,
            max_depth,
            options.exclude_patterns,
            lambda name: _matches_file_type(name, options.file_types),
        )
        ranked = await self._rank(candidates, root_path, options)

        files: dict[str, str] = {}
        relevance: dict[str, dict[str, float | str]] = {}
        budget = TokenBudget(options.max_tokens)

        for candidate in ranked:
            if budget.exhausted:
                break
            content = await self._read(self._fs.join(root_path, candidate.path))
            if content is None:
                continue
            tokens = self._estimate(content)
            if budget.fits(tokens):
                files[candidate.path] = content
                budget.admit(tokens)
                relevance[candidate.path] = {
                    "score": candidate.score,
                    "reason": candidate.reason,
                }

        loaded_scores = [float(r["score"]) for r in relevance.values()]
        summary = FocusSummary(
            query=options.query,
            patterns=list(options.include_patterns),
            files_found=len(ranked),
            files_loaded=len(files),
            average_score=sum(loaded_scores) / len(loaded_scores) if loaded_scores else 0.0,
        )

        logger.info(
            "Focused loading complete: %d of %d candidates, %d tokens in %.2fs",
            len(files),
            len(ranked),
            budget.used,
            time.monotonic() - start,
        )
        return LoadedContext(
            files=files,
            metadata={"relevance": relevance, "focus_summary": summary},
            total_tokens=budget.used,
            strategy=self.name,
        )

    async def _rank(
        self,
        candidates: list[str],
        root_path: str,
        options: LoadingOptions,
    ) -> list[FileRelevance]:
        scored = await self._scorer.score_files(
            candidates,
            ScoringCriteria(
                query=options.query,
                context_path=root_path,
                file_types=list(options.file_types),
                include_patterns=list(options.include_patterns),
                exclude_patterns=list(options.exclude_patterns),
                threshold=MIN_FOCUS_SCORE,
                weights=FOCUSED_WEIGHTS,
            ),
        )

        boosted: list[FileRelevance] = []
        for result in scored:
            score, reason = result.score, result.reason
            for pattern in options.include_patterns:
                if matches_pattern(result.path, pattern):
                    score *= PATTERN_BOOST
                    reason = f"{reason}, matches pattern: {pattern}"
            boosted.append(
                result.model_copy(update={"score": min(100.0, score), "reason": reason})
            )

        boosted.sort(key=lambda r: r.score, reverse=True)
        return [r for r in boosted if r.score >= MIN_FOCUS_SCORE]
