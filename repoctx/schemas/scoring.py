"""Relevance scoring schemas.

Defines the per-factor weight set, the scoring criteria supplied per
batch, and the scored candidate returned by the RelevanceScorer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ScoringWeights(BaseModel):
    """Multipliers applied to each relevance factor in the final score."""

    path_score: float = Field(default=1.5, ge=0.0)
    name_score: float = Field(default=2.0, ge=0.0)
    type_score: float = Field(default=1.2, ge=0.0)
    depth_score: float = Field(default=0.8, ge=0.0)
    size_score: float = Field(default=0.5, ge=0.0)
    recency_score: float = Field(default=0.7, ge=0.0)
    query_score: float = Field(default=2.5, ge=0.0)


class ScoringCriteria(BaseModel):
    """Configuration for one scoring batch."""

    query: str | None = Field(default=None, description="Free-text query to match against")
    context_path: str | None = Field(
        default=None,
        description="Directory that relative candidate paths are resolved against",
    )
    file_types: list[str] = Field(
        default_factory=list, description="Extension allowlist, e.g. ['.py', '.ts']"
    )
    include_patterns: list[str] = Field(default_factory=list, description="Glob patterns")
    exclude_patterns: list[str] = Field(default_factory=list, description="Glob patterns")
    threshold: float | None = Field(
        default=None, ge=0.0, le=100.0, description="Drop results scoring below this"
    )
    weights: ScoringWeights = Field(default_factory=ScoringWeights)


class RelevanceFactors(BaseModel):
    """Per-factor breakdown, each clamped to [0, 100]."""

    path_score: float = Field(ge=0.0, le=100.0)
    name_score: float = Field(ge=0.0, le=100.0)
    type_score: float = Field(ge=0.0, le=100.0)
    depth_score: float = Field(ge=0.0, le=100.0)
    size_score: float = Field(ge=0.0, le=100.0)
    recency_score: float = Field(ge=0.0, le=100.0)


class FileRelevance(BaseModel):
    """A scored candidate file."""

    path: str = Field(description="Candidate path as supplied by the caller")
    score: float = Field(ge=0.0, le=100.0, description="Final clamped score")
    factors: RelevanceFactors
    reason: str = Field(default="", description="Human-readable explanation")
