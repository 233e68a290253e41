"""repoctx schema definitions.

All Pydantic v2 models shared by the scorer, optimizer, strategies, and
aggregator.
"""

from repoctx.schemas.config import AggregatorConfig, CacheBackend, CacheConfig
from repoctx.schemas.context import (
    DEFAULT_MAX_TOKENS,
    Context,
    DirectoryNode,
    FocusSummary,
    LevelStats,
    LoadedContext,
    LoadingOptions,
)
from repoctx.schemas.optimizer import (
    ChunkMetadata,
    ContextChunk,
    OptimizationResult,
    OptimizationStrategy,
    TokenInfo,
)
from repoctx.schemas.project import (
    FrameworkInfo,
    ProjectInfo,
    ProjectStructure,
    ProjectType,
)
from repoctx.schemas.scoring import (
    FileRelevance,
    RelevanceFactors,
    ScoringCriteria,
    ScoringWeights,
)

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "AggregatorConfig",
    "CacheBackend",
    "CacheConfig",
    "ChunkMetadata",
    "Context",
    "ContextChunk",
    "DirectoryNode",
    "FileRelevance",
    "FocusSummary",
    "FrameworkInfo",
    "LevelStats",
    "LoadedContext",
    "LoadingOptions",
    "OptimizationResult",
    "OptimizationStrategy",
    "ProjectInfo",
    "ProjectStructure",
    "ProjectType",
    "RelevanceFactors",
    "ScoringCriteria",
    "ScoringWeights",
    "TokenInfo",
]
