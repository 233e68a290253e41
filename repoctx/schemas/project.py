"""Project analysis schemas.

Describes what the ProjectAnalyzer learns about a source tree: its
type, framework, languages, top-level layout, and entry points.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class ProjectType(StrEnum):
    """Coarse classification of a project."""

    LIBRARY = "library"
    WEB = "web"
    API = "api"
    CLI = "cli"
    MONOREPO = "monorepo"
    UNKNOWN = "unknown"


class FrameworkInfo(BaseModel):
    """A detected framework and the markers that identify it."""

    name: str = Field(description="Framework display name")
    files: list[str] = Field(
        default_factory=list, description="Root files whose presence marks the framework"
    )
    patterns: list[str] = Field(
        default_factory=list, description="Dependency name fragments that mark the framework"
    )
    config_files: list[str] = Field(
        default_factory=list, description="Framework-specific config files"
    )


class ProjectStructure(BaseModel):
    """Root-level directories and files grouped by role."""

    src_dirs: list[str] = Field(default_factory=list)
    test_dirs: list[str] = Field(default_factory=list)
    config_files: list[str] = Field(default_factory=list)
    docs_dirs: list[str] = Field(default_factory=list)
    static_dirs: list[str] = Field(default_factory=list)


class ProjectInfo(BaseModel):
    """Everything the analyzer reports for one project root."""

    type: ProjectType = Field(default=ProjectType.UNKNOWN)
    framework: FrameworkInfo | None = Field(default=None)
    languages: list[str] = Field(default_factory=list)
    structure: ProjectStructure = Field(default_factory=ProjectStructure)
    dependencies: list[str] = Field(default_factory=list)
    test_framework: str | None = Field(default=None)
    build_tool: str | None = Field(default=None)
    entry_points: list[str] = Field(
        default_factory=list, description="Entry point paths relative to the root"
    )
