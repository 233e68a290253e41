"""Token-budgeted content optimizer and chunker.

Shrinks loaded text toward a token budget with one of three strategies
(summarize, selective, compress), packs text into overlapping chunks,
and reports a per-category token breakdown. All costs use the precise
estimator from repoctx.context.tokens.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass

from repoctx.context.sections import (
    FENCE,
    contains_code,
    contains_documentation,
    detect_language,
    is_code_block,
    is_comment,
    is_documentation,
    split_into_sections,
)
from repoctx.context.tokens import estimate_tokens
from repoctx.schemas.context import DEFAULT_MAX_TOKENS
from repoctx.schemas.optimizer import (
    ChunkMetadata,
    ContextChunk,
    OptimizationResult,
    OptimizationStrategy,
    TokenInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2000
SECTION_SEPARATOR = "\n\n"

_MAX_OVERLAP_LINES = 5
_OVERLAP_FRACTION = 0.1
_COST_PER_1K_TOKENS = 0.01

_LONG_SECTION_TOKENS = 500
_CODE_BLOCK_KEEP_HEAD = 10
_CODE_BLOCK_KEEP_TAIL = 5
_CODE_BLOCK_MAX_LINES = 20
_COMMENT_MAX_CHARS = 200
TRUNCATION_MARKER = "// ... truncated ..."
COMMENT_PLACEHOLDER = "/* ... detailed comment removed ... */"

_TOP_HEADER_RE = re.compile(r"^#{1,3}\s")
_EXPORT_RE = re.compile(r"export\s+(interface|class|function|const)", re.IGNORECASE)
_ERROR_RE = re.compile(r"error|exception|throw|catch", re.IGNORECASE)
_MAIN_RE = re.compile(r"main|primary|core|key", re.IGNORECASE)
_PUBLIC_RE = re.compile(r"public|export|api", re.IGNORECASE)
_TEST_RE = re.compile(r"test|spec|mock", re.IGNORECASE)
_EXAMPLE_RE = re.compile(r"example|sample|demo", re.IGNORECASE)

_BLANK_RUN_RE = re.compile(r"\n{3,}")
_SPACE_RUN_RE = re.compile(r"[ \t]+")
_FENCED_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")


@dataclass(frozen=True, slots=True)
class ScoredSection:
    """A section with its ranking score and precise token cost."""

    content: str
    score: float
    tokens: int


def select_within_budget(sections: list[ScoredSection], max_tokens: int) -> list[ScoredSection]:
    """Pack sections by descending score, skipping any that no longer fit.

    Selection can be non-contiguous: a large section that does not fit is
    skipped and smaller, lower-ranked sections may still be admitted.
    """
    ranked = sorted(sections, key=lambda s: s.score, reverse=True)
    selected: list[ScoredSection] = []
    used = 0
    for section in ranked:
        if used + section.tokens > max_tokens:
            continue
        selected.append(section)
        used += section.tokens
    return selected


def section_importance(section: str) -> float:
    """Heuristic importance of a section, shared by summarize and selective."""
    score = 0.0
    if _TOP_HEADER_RE.match(section):
        score += 10
    if is_code_block(section):
        score += 8
    if _EXPORT_RE.search(section):
        score += 7
    if _ERROR_RE.search(section):
        score += 5
    if is_documentation(section):
        score += 3
    if estimate_tokens(section) > _LONG_SECTION_TOKENS:
        score -= 2
    return score


def section_relevance(section: str) -> float:
    """Importance plus keyword boosts and penalties, floored at 0."""
    score = section_importance(section)
    if _MAIN_RE.search(section):
        score += 5
    if _PUBLIC_RE.search(section):
        score += 4
    if _TEST_RE.search(section):
        score -= 3
    if _EXAMPLE_RE.search(section):
        score -= 2
    return max(0.0, score)


def short_summary(section: str) -> str:
    """One-line stand-in for a section that does not fit in full."""
    lines = [line for line in section.split("\n") if line.strip()]
    if is_code_block(section):
        first = next((line for line in lines if not line.startswith(FENCE)), "")
        return f"[Code block: {first[:50]}...]"
    first = lines[0] if lines else ""
    return f"{first[:100]}..."


class ContextOptimizer:
    """Optimizes, chunks, and measures text content."""

    def __init__(self, default_max_tokens: int = DEFAULT_MAX_TOKENS) -> None:
        self._default_max_tokens = default_max_tokens

    def estimate_token_count(self, content: str) -> int:
        return estimate_tokens(content)

    async def optimize_context(
        self,
        content: str,
        strategy: OptimizationStrategy | str,
        max_tokens: int | None = None,
    ) -> OptimizationResult:
        """Reduce content with the given strategy.

        Args:
            content: Text to optimize.
            strategy: summarize, selective, or compress.
            max_tokens: Target budget for summarize and selective.
                Defaults to 8000. Ignored by compress.

        Returns:
            An OptimizationResult with before/after token counts and the
            percentage reduction (0 when nothing was removed).

        Raises:
            ValueError: If strategy is not a known optimization strategy.
        """
        strategy = OptimizationStrategy(strategy)
        target = max_tokens if max_tokens is not None else self._default_max_tokens
        start = time.monotonic()
        logger.info("Optimizing context with %s (max_tokens=%d)", strategy, target)

        original_tokens = estimate_tokens(content)

        if strategy is OptimizationStrategy.SUMMARIZE:
            optimized = self._summarize(content, target)
        elif strategy is OptimizationStrategy.SELECTIVE:
            optimized = self._selective(content, target)
        else:
            optimized = self._compress(content)

        optimized_tokens = estimate_tokens(optimized)
        removed = original_tokens - optimized_tokens
        reduction = removed / original_tokens * 100 if removed > 0 else 0.0

        logger.info(
            "Optimization complete: %d -> %d tokens (%.2f%% reduction) in %.3fs",
            original_tokens,
            optimized_tokens,
            reduction,
            time.monotonic() - start,
        )

        return OptimizationResult(
            original_content=content,
            optimized_content=optimized,
            original_tokens=original_tokens,
            optimized_tokens=optimized_tokens,
            reduction=reduction,
            strategy=strategy,
        )

    async def chunk_context(
        self,
        content: str,
        max_chunk_size: int | None = None,
    ) -> list[ContextChunk]:
        """Pack sections into chunks of at most ``max_chunk_size`` tokens.

        Sections larger than the chunk size are split by lines. Each chunk
        after the first is then prefixed with up to five trailing lines of
        the previous chunk (no more than 10% of its lines), which may push
        its token count over the nominal size.
        """
        chunk_size = max_chunk_size or DEFAULT_CHUNK_SIZE
        texts: list[str] = []
        current = ""
        current_tokens = 0

        for section in split_into_sections(content):
            section_tokens = estimate_tokens(section)

            if section_tokens > chunk_size:
                if current:
                    texts.append(current)
                    current, current_tokens = "", 0
                texts.extend(self._split_large_section(section, chunk_size))
            elif current_tokens + section_tokens > chunk_size:
                if current:
                    texts.append(current)
                current, current_tokens = section, section_tokens
            else:
                current = f"{current}{SECTION_SEPARATOR}{section}" if current else section
                current_tokens += section_tokens

        if current:
            texts.append(current)

        chunks = [self._make_chunk(text, i) for i, text in enumerate(texts)]
        self._add_overlap(chunks)

        if chunks:
            logger.info(
                "Chunked content into %d chunks (avg %d tokens)",
                len(chunks),
                round(sum(c.token_count for c in chunks) / len(chunks)),
            )
        return chunks

    async def get_token_info(self, content: str) -> TokenInfo:
        """Token total plus percentage split across content categories.

        Empty content reports zero for every category.
        """
        total = estimate_tokens(content)
        distribution = {
            "code": 0,
            "documentation": 0,
            "comments": 0,
            "whitespace": 0,
            "other": 0,
        }

        for section in split_into_sections(content):
            tokens = estimate_tokens(section)
            if is_code_block(section):
                distribution["code"] += tokens
            elif is_comment(section):
                distribution["comments"] += tokens
            elif is_documentation(section):
                distribution["documentation"] += tokens
            elif not section.strip():
                distribution["whitespace"] += tokens
            else:
                distribution["other"] += tokens

        if total == 0:
            breakdown = {key: 0.0 for key in distribution}
        else:
            breakdown = {key: value / total * 100 for key, value in distribution.items()}

        return TokenInfo(
            total_tokens=total,
            breakdown=breakdown,
            estimated_cost=total / 1000 * _COST_PER_1K_TOKENS,
            within_limit=total <= DEFAULT_MAX_TOKENS,
        )

    # ── Strategies ─────────────────────────────────────────────

    def _summarize(self, content: str, max_tokens: int) -> str:
        ranked = sorted(split_into_sections(content), key=section_importance, reverse=True)
        parts: list[str] = []
        used = 0

        for section in ranked:
            tokens = estimate_tokens(section)
            if used + tokens > max_tokens:
                shorter = short_summary(section)
                shorter_tokens = estimate_tokens(shorter)
                if used + shorter_tokens <= max_tokens:
                    parts.append(shorter)
                break
            parts.append(section)
            used += tokens

        return SECTION_SEPARATOR.join(parts)

    def _selective(self, content: str, max_tokens: int) -> str:
        scored = [
            ScoredSection(content=s, score=section_relevance(s), tokens=estimate_tokens(s))
            for s in split_into_sections(content)
        ]
        return SECTION_SEPARATOR.join(s.content for s in select_within_budget(scored, max_tokens))

    def _compress(self, content: str) -> str:
        text = _BLANK_RUN_RE.sub("\n\n", content)
        text = _SPACE_RUN_RE.sub(" ", text)

        # Blank lines and fence lines are structural and never deduplicated
        seen: set[str] = set()
        kept: list[str] = []
        for line in text.split("\n"):
            if line.strip() and not line.startswith(FENCE):
                if line in seen:
                    continue
                seen.add(line)
            kept.append(line)
        text = _BLANK_RUN_RE.sub("\n\n", "\n".join(kept))

        text = _FENCED_BLOCK_RE.sub(_truncate_code_block, text)
        return _BLOCK_COMMENT_RE.sub(_drop_long_comment, text)

    # ── Chunk helpers ──────────────────────────────────────────

    def _split_large_section(self, section: str, max_tokens: int) -> list[str]:
        pieces: list[str] = []
        current: list[str] = []
        current_tokens = 0

        for line in section.split("\n"):
            line_tokens = estimate_tokens(line)
            if current and current_tokens + line_tokens > max_tokens:
                pieces.append("\n".join(current))
                current, current_tokens = [line], line_tokens
            else:
                current.append(line)
                current_tokens += line_tokens

        if current:
            pieces.append("\n".join(current))
        return pieces

    def _make_chunk(self, content: str, index: int) -> ContextChunk:
        return ContextChunk(
            content=content,
            index=index,
            token_count=estimate_tokens(content),
            metadata=ChunkMetadata(
                has_code=contains_code(content),
                has_documentation=contains_documentation(content),
                language=detect_language(content),
            ),
        )

    def _add_overlap(self, chunks: list[ContextChunk]) -> None:
        # Overlap is taken from each chunk's own text, before it receives a prefix
        originals = [c.content for c in chunks]
        for i in range(len(chunks) - 1):
            lines = originals[i].split("\n")
            count = min(_MAX_OVERLAP_LINES, int(len(lines) * _OVERLAP_FRACTION))
            if count == 0:
                continue
            overlap = "\n".join(lines[-count:])
            nxt = chunks[i + 1]
            nxt.overlap = overlap
            nxt.content = f"{overlap}{SECTION_SEPARATOR}{nxt.content}"
            nxt.token_count = estimate_tokens(nxt.content)


def _truncate_code_block(match: re.Match[str]) -> str:
    lines = match.group(0).split("\n")
    if len(lines) <= _CODE_BLOCK_MAX_LINES:
        return match.group(0)
    head = lines[:_CODE_BLOCK_KEEP_HEAD]
    tail = lines[-_CODE_BLOCK_KEEP_TAIL:]
    return "\n".join([*head, TRUNCATION_MARKER, *tail])


def _drop_long_comment(match: re.Match[str]) -> str:
    if len(match.group(0)) > _COMMENT_MAX_CHARS:
        return COMMENT_PLACEHOLDER
    return match.group(0)
