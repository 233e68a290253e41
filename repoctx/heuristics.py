"""Static lookup tables shared by the scorer and the loading strategies.

Everything here is read-only: mappings are wrapped in MappingProxyType
and collections are tuples or frozensets.
"""

from __future__ import annotations

from types import MappingProxyType

# Path segment / filename keyword → signed score adjustment
KEYWORD_WEIGHTS: MappingProxyType[str, int] = MappingProxyType({
    # High priority
    "main": 10,
    "index": 10,
    "app": 9,
    "core": 9,
    "api": 8,
    "service": 8,
    "controller": 8,
    "model": 8,
    "interface": 7,
    "type": 7,
    "schema": 7,
    "config": 7,
    # Medium priority
    "util": 5,
    "helper": 5,
    "lib": 5,
    "common": 5,
    "component": 5,
    "module": 5,
    "route": 5,
    "middleware": 5,
    # Low priority
    "test": 2,
    "spec": 2,
    "mock": 2,
    "example": 2,
    "demo": 1,
    "sample": 1,
    "backup": 1,
    "old": 1,
    # Negative
    "deprecated": -5,
    "legacy": -5,
    "temp": -5,
    "tmp": -5,
    "node_modules": -10,
    "dist": -10,
    "build": -10,
    "coverage": -10,
})

IMPORTANT_NAMES: frozenset[str] = frozenset({"index", "main", "app", "server", "api"})

TYPE_SCORES: MappingProxyType[str, int] = MappingProxyType({
    ".ts": 90,
    ".tsx": 85,
    ".js": 80,
    ".jsx": 75,
    ".py": 80,
    ".go": 80,
    ".rs": 80,
    ".java": 75,
    ".cs": 75,
    ".cpp": 70,
    ".c": 70,
    ".h": 65,
    ".hpp": 65,
    ".json": 60,
    ".yaml": 60,
    ".yml": 60,
    ".xml": 55,
    ".md": 50,
    ".txt": 40,
    ".log": 20,
    ".lock": 10,
})
UNKNOWN_TYPE_SCORE = 30

# Directory names never descended into or loaded
IGNORED_NAMES: frozenset[str] = frozenset({
    "node_modules",
    ".git",
    ".svn",
    ".hg",
    "dist",
    "build",
    "coverage",
    ".cache",
    ".next",
    ".nuxt",
    ".turbo",
    "venv",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "vendor",
    "tmp",
    "temp",
})

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx",
    ".py", ".go", ".rs", ".java",
    ".cs", ".cpp", ".c", ".h",
    ".rb", ".php", ".swift", ".kt",
)

# Extensions the progressive query stage hands to the scorer as allowlist
QUERY_SOURCE_TYPES: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs")

# Default candidates when the caller gives no file-type filter
COMMON_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx",
    ".py", ".go", ".rs", ".java",
    ".json", ".yaml", ".yml",
    ".md", ".txt",
)

# Progressive loading
CORE_FILES: tuple[str, ...] = (
    "README.md",
    "readme.md",
    "package.json",
    "tsconfig.json",
    ".env.example",
    "docker-compose.yml",
)
CONFIG_PRIORITIES: tuple[str, ...] = ("package.json", "tsconfig.json", ".env", "config.")
MAX_CONFIG_FILES = 10
ROOT_DOCS: tuple[str, ...] = ("README.md", "CONTRIBUTING.md", "API.md", "ARCHITECTURE.md")
DOCS_PER_DIRECTORY = 5

# Breadth-first entry ordering; stems match any extension
ENTRY_PRIORITIES: MappingProxyType[str, int] = MappingProxyType({
    "readme.md": 1,
    "package.json": 2,
    "tsconfig.json": 3,
})
STEM_PRIORITIES: MappingProxyType[str, int] = MappingProxyType({
    "index": 4,
    "main": 5,
    "app": 6,
})
UNRANKED_PRIORITY = 999
