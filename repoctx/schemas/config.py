"""Process-level configuration schemas.

Loaded from defaults.toml by repoctx.config.load_config().
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from repoctx.schemas.context import DEFAULT_MAX_TOKENS
from repoctx.schemas.optimizer import OptimizationStrategy


class CacheBackend(StrEnum):
    """Where aggregated contexts are memoized."""

    NONE = "none"
    MEMORY = "memory"
    SQLITE = "sqlite"


class CacheConfig(BaseModel):
    """Settings for the optional aggregate-context cache."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY)
    ttl: int = Field(default=3600, gt=0, description="Entry lifetime in seconds")
    db_path: str = Field(
        default="~/.repoctx/cache.db", description="SQLite file for the sqlite backend"
    )


class AggregatorConfig(BaseModel):
    """Defaults applied when the caller does not override them."""

    default_strategy: str = Field(default="progressive")
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    max_depth: int | None = Field(default=None, ge=0)
    optimization_strategy: OptimizationStrategy = Field(
        default=OptimizationStrategy.SELECTIVE
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
