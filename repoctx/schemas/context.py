"""Context loading schemas.

Defines the per-call loading options, the output of a single strategy
run, the final aggregate Context, and the descriptive metadata models
that strategies attach to their results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from repoctx.schemas.optimizer import OptimizationStrategy
from repoctx.schemas.project import ProjectInfo

DEFAULT_MAX_TOKENS = 8000


class LoadingOptions(BaseModel):
    """Per-call configuration for loading context.

    Immutable once constructed; use model_copy(update=...) to derive a
    variant.
    """

    model_config = ConfigDict(frozen=True)

    strategy: str = Field(default="progressive", description="Registered strategy name")
    max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS, ge=0, description="Token budget for loaded files"
    )
    max_depth: int | None = Field(
        default=None, ge=0, description="Traversal depth limit (strategy default if unset)"
    )
    query: str | None = Field(default=None, description="Free-text focus query")
    include_patterns: list[str] = Field(default_factory=list, description="Glob patterns")
    exclude_patterns: list[str] = Field(default_factory=list, description="Glob patterns")
    file_types: list[str] = Field(
        default_factory=list, description="Extension filter, e.g. ['.py']"
    )
    optimize: bool = Field(default=False, description="Run the optimizer over loaded files")
    optimization_strategy: OptimizationStrategy = Field(
        default=OptimizationStrategy.SELECTIVE,
        description="Optimizer strategy used when optimize is set",
    )


class LoadedContext(BaseModel):
    """Output of one loading strategy run.

    ``files`` preserves load order. ``total_tokens`` is the running sum of
    the fast estimates of admitted files and is never recomputed.
    """

    files: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    total_tokens: int = Field(default=0, ge=0)
    strategy: str = Field(description="Name of the strategy that produced this result")


class Context(BaseModel):
    """Final aggregate returned by the ContextAggregator."""

    root_path: str
    files: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    project_info: ProjectInfo = Field(default_factory=ProjectInfo)
    summary: str = Field(default="")
    tokens: int = Field(default=0, ge=0)
    optimized: Context | None = Field(
        default=None, description="Optimized variant, present when optimize was requested"
    )


class DirectoryNode(BaseModel):
    """One node of the descriptive directory tree built by breadth-first loading."""

    name: str
    type: str = Field(default="directory", description="'directory' or 'file'")
    size: int | None = Field(default=None, ge=0, description="Byte size for files")
    children: list[DirectoryNode] = Field(default_factory=list)


class LevelStats(BaseModel):
    """Files and tokens admitted at one breadth-first depth level."""

    level: int = Field(ge=0)
    files: int = Field(ge=0)
    tokens: int = Field(ge=0)


class FocusSummary(BaseModel):
    """Summary of a focused loading run."""

    query: str | None = None
    patterns: list[str] = Field(default_factory=list)
    files_found: int = Field(default=0, ge=0, description="Candidates that passed scoring")
    files_loaded: int = Field(default=0, ge=0)
    average_score: float = Field(
        default=0.0, ge=0.0, le=100.0, description="Mean score of the loaded files"
    )


Context.model_rebuild()
DirectoryNode.model_rebuild()
