"""Content optimizer schemas.

Defines the optimization strategy enum and the result, chunk, and
token-breakdown models returned by the ContextOptimizer.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class OptimizationStrategy(StrEnum):
    """Ways the optimizer can shrink content toward a token budget.

    SUMMARIZE keeps the most important sections in ranked order and stops
    at the first one that does not fit. SELECTIVE packs every section that
    still fits. COMPRESS removes redundancy without a budget.
    """

    SUMMARIZE = "summarize"
    SELECTIVE = "selective"
    COMPRESS = "compress"


class OptimizationResult(BaseModel):
    """Outcome of a single optimize_context() call."""

    original_content: str = Field(description="Content before optimization")
    optimized_content: str = Field(description="Content after optimization")
    original_tokens: int = Field(ge=0, description="Precise token estimate before")
    optimized_tokens: int = Field(ge=0, description="Precise token estimate after")
    reduction: float = Field(
        default=0.0, ge=0.0, le=100.0, description="Percentage of tokens removed"
    )
    strategy: OptimizationStrategy = Field(description="Strategy that produced the result")


class ChunkMetadata(BaseModel):
    """Content markers detected in a chunk."""

    has_code: bool = Field(default=False, description="Chunk contains code-like content")
    has_documentation: bool = Field(
        default=False, description="Chunk contains documentation markers"
    )
    language: str = Field(default="unknown", description="Detected language of the chunk")


class ContextChunk(BaseModel):
    """One packed unit of content produced by chunk_context()."""

    content: str = Field(description="Chunk text, including any overlap prefix")
    index: int = Field(ge=0, description="0-based position in the chunk list")
    token_count: int = Field(ge=0, description="Precise token estimate of content")
    overlap: str = Field(
        default="", description="Trailing lines of the previous chunk prepended to content"
    )
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)


class TokenInfo(BaseModel):
    """Token totals and per-category breakdown for a piece of content."""

    total_tokens: int = Field(ge=0, description="Precise token estimate")
    breakdown: dict[str, float] = Field(
        default_factory=dict, description="Category → percentage of total tokens"
    )
    estimated_cost: float = Field(default=0.0, ge=0.0, description="Flat linear cost in USD")
    within_limit: bool = Field(
        default=True, description="Whether total_tokens fits the default 8000 limit"
    )
