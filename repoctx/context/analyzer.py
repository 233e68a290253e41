"""Lightweight project-type and framework detection.

Reads manifests (package.json, pyproject.toml, requirements.txt, go.mod,
Cargo.toml) and the root directory layout to describe a project. The
independent probes run concurrently and are merged into a ProjectInfo.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import tomllib
from typing import Any

from repoctx.context.patterns import extension, is_ignored_name
from repoctx.errors import SkippableIOError
from repoctx.filesystem import FileSystem
from repoctx.schemas.project import (
    FrameworkInfo,
    ProjectInfo,
    ProjectStructure,
    ProjectType,
)

logger = logging.getLogger(__name__)

_LANGUAGE_WALK_DEPTH = 5

_EXT_LANG: dict[str, str] = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".py": "Python",
    ".go": "Go",
    ".rs": "Rust",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".cs": "C#",
    ".rb": "Ruby",
    ".php": "PHP",
    ".swift": "Swift",
    ".kt": "Kotlin",
}

# Checked in order; first match wins
_FRAMEWORKS: tuple[FrameworkInfo, ...] = (
    FrameworkInfo(name="Next.js", files=["next.config.js", "next.config.ts"],
                  patterns=["next"], config_files=["next.config.js", "next.config.ts"]),
    FrameworkInfo(name="React", patterns=["react"]),
    FrameworkInfo(name="Vue", files=["vue.config.js"], patterns=["vue"],
                  config_files=["vue.config.js"]),
    FrameworkInfo(name="Angular", files=["angular.json"], patterns=["@angular/core"],
                  config_files=["angular.json"]),
    FrameworkInfo(name="NestJS", files=["nest-cli.json"], patterns=["@nestjs/core"],
                  config_files=["nest-cli.json"]),
    FrameworkInfo(name="Express", patterns=["express"]),
    FrameworkInfo(name="Fastify", patterns=["fastify"]),
    FrameworkInfo(name="Django", files=["manage.py"], patterns=["django"]),
    FrameworkInfo(name="FastAPI", patterns=["fastapi"]),
    FrameworkInfo(name="Flask", patterns=["flask"]),
)

_ENTRY_POINT_CANDIDATES: tuple[str, ...] = (
    "index.js", "index.ts", "main.js", "main.ts",
    "app.js", "app.ts", "server.js", "server.ts",
    "src/index.js", "src/index.ts", "src/main.js", "src/main.ts",
    "src/app.js", "src/app.ts", "src/server.js", "src/server.ts",
    "main.py", "app.py", "manage.py", "__main__.py",
    "src/main.py", "src/app.py",
    "main.go", "cmd/main.go", "src/main.rs", "src/lib.rs",
)

_FRAMEWORK_ENTRY_POINTS: dict[str, tuple[str, ...]] = {
    "Next.js": ("pages/_app.js", "pages/_app.tsx", "app/layout.tsx"),
    "Django": ("manage.py", "wsgi.py", "asgi.py"),
}

_JS_TEST_FRAMEWORKS: tuple[str, ...] = (
    "jest", "mocha", "vitest", "jasmine", "ava", "tape", "@playwright/test", "cypress",
)

_BUILD_TOOL_FILES: tuple[tuple[str, str], ...] = (
    ("webpack.config.js", "webpack"),
    ("rollup.config.js", "rollup"),
    ("vite.config.js", "vite"),
    ("vite.config.ts", "vite"),
    ("esbuild.config.js", "esbuild"),
    ("parcel.json", "parcel"),
    ("Makefile", "make"),
    ("build.gradle", "gradle"),
    ("pom.xml", "maven"),
)

_PY_BUILD_BACKENDS: tuple[tuple[str, str], ...] = (
    ("hatchling", "hatch"),
    ("poetry", "poetry"),
    ("setuptools", "setuptools"),
    ("flit", "flit"),
    ("pdm", "pdm"),
    ("maturin", "maturin"),
)

_SRC_DIR_RE = re.compile(r"^(src|lib|app|source)$", re.IGNORECASE)
_TEST_DIR_RE = re.compile(r"^(test|tests|spec|specs|__tests__)$", re.IGNORECASE)
_DOCS_DIR_RE = re.compile(r"^(docs|documentation)$", re.IGNORECASE)
_STATIC_DIR_RE = re.compile(r"^(static|public|assets|dist|build)$", re.IGNORECASE)
_CONFIG_FILE_RE = re.compile(
    r"\.(json|yaml|yml|toml|ini|cfg|conf|config\.(js|ts))$|^\.env(\..+)?$"
)
_REQUIREMENT_NAME_RE = re.compile(r"^[A-Za-z0-9_.\-]+")
_GO_REQUIRE_RE = re.compile(r"require\s+\(([\s\S]*?)\)")


class ProjectAnalyzer:
    """Describes a project root from its manifests and layout."""

    def __init__(self, file_system: FileSystem) -> None:
        self._fs = file_system

    async def analyze_project(self, path: str) -> ProjectInfo:
        """Run every probe and merge the results."""
        logger.info("Analyzing project at %s", path)

        (
            project_type,
            languages,
            structure,
            dependencies,
            test_framework,
            build_tool,
        ) = await asyncio.gather(
            self.detect_project_type(path),
            self.detect_languages(path),
            self.analyze_structure(path),
            self.extract_dependencies(path),
            self.detect_test_framework(path),
            self.detect_build_tool(path),
        )
        framework = await self.detect_framework(path, dependencies)
        entry_points = await self.find_entry_points(path, project_type, framework)

        info = ProjectInfo(
            type=project_type,
            framework=framework,
            languages=languages,
            structure=structure,
            dependencies=dependencies,
            test_framework=test_framework,
            build_tool=build_tool,
            entry_points=entry_points,
        )
        logger.info(
            "Project analysis complete: type=%s framework=%s languages=%d",
            info.type,
            framework.name if framework else None,
            len(languages),
        )
        return info

    async def detect_project_type(self, path: str) -> ProjectType:
        package = await self._read_json(path, "package.json")
        if package is not None:
            if package.get("workspaces") or await self._has(path, "lerna.json"):
                return ProjectType.MONOREPO
            deps = _table(package.get("dependencies"))
            if "react" in deps or "react-dom" in deps:
                return ProjectType.WEB
            if "express" in deps or "fastify" in deps:
                return ProjectType.API
            if package.get("bin"):
                return ProjectType.CLI
            return ProjectType.LIBRARY

        pyproject = await self._read_toml(path, "pyproject.toml")
        if pyproject is not None:
            deps = " ".join(_pyproject_dependencies(pyproject)).lower()
            if any(fw in deps for fw in ("fastapi", "flask", "django")):
                return ProjectType.API
            if _table(pyproject.get("project")).get("scripts"):
                return ProjectType.CLI
            return ProjectType.LIBRARY

        for marker in ("setup.py", "go.mod", "Cargo.toml"):
            if await self._has(path, marker):
                return ProjectType.LIBRARY

        return ProjectType.UNKNOWN

    async def detect_framework(
        self,
        path: str,
        dependencies: list[str] | None = None,
    ) -> FrameworkInfo | None:
        """First framework whose marker file or dependency pattern is present.

        Pass ``dependencies`` when they are already known to avoid re-reading
        the manifests.
        """
        if dependencies is None:
            dependencies = await self.extract_dependencies(path)
        dependencies = [d.lower() for d in dependencies]
        for framework in _FRAMEWORKS:
            for marker in framework.files:
                if await self._has(path, marker):
                    return framework.model_copy(deep=True)
            for pattern in framework.patterns:
                if any(pattern in dep for dep in dependencies):
                    return framework.model_copy(deep=True)
        return None

    async def detect_languages(self, path: str) -> list[str]:
        """Languages seen in a bounded walk, in first-seen order."""
        found: dict[str, None] = {}

        async def walk(directory: str, depth: int) -> None:
            if depth > _LANGUAGE_WALK_DEPTH:
                return
            try:
                entries = await self._fs.list_directory(directory)
            except SkippableIOError as e:
                logger.warning("Skipping unreadable directory %s: %s", directory, e)
                return
            for entry in entries:
                if is_ignored_name(entry):
                    continue
                full = self._fs.join(directory, entry)
                if await self._fs.is_directory(full):
                    await walk(full, depth + 1)
                else:
                    language = _EXT_LANG.get(extension(entry))
                    if language:
                        found.setdefault(language, None)

        await walk(path, 0)
        return list(found)

    async def analyze_structure(self, path: str) -> ProjectStructure:
        structure = ProjectStructure()
        try:
            entries = await self._fs.list_directory(path)
        except SkippableIOError as e:
            logger.warning("Cannot list project root %s: %s", path, e)
            return structure

        for entry in entries:
            full = self._fs.join(path, entry)
            if await self._fs.is_directory(full):
                if _SRC_DIR_RE.match(entry):
                    structure.src_dirs.append(entry)
                elif _TEST_DIR_RE.match(entry):
                    structure.test_dirs.append(entry)
                elif _DOCS_DIR_RE.match(entry):
                    structure.docs_dirs.append(entry)
                elif _STATIC_DIR_RE.match(entry):
                    structure.static_dirs.append(entry)
            elif _CONFIG_FILE_RE.search(entry):
                structure.config_files.append(entry)

        return structure

    async def extract_dependencies(self, path: str) -> list[str]:
        deps: list[str] = []

        package = await self._read_json(path, "package.json")
        if package is not None:
            deps.extend(_table(package.get("dependencies")).keys())
            deps.extend(_table(package.get("devDependencies")).keys())

        pyproject = await self._read_toml(path, "pyproject.toml")
        if pyproject is not None:
            deps.extend(_requirement_name(r) for r in _pyproject_dependencies(pyproject))

        requirements = await self._read_text(path, "requirements.txt")
        if requirements is not None:
            for line in requirements.splitlines():
                line = line.strip()
                if line and not line.startswith(("#", "-")):
                    deps.append(_requirement_name(line))

        go_mod = await self._read_text(path, "go.mod")
        if go_mod is not None:
            match = _GO_REQUIRE_RE.search(go_mod)
            if match:
                deps.extend(
                    line.split()[0] for line in match.group(1).splitlines() if line.strip()
                )

        cargo = await self._read_toml(path, "Cargo.toml")
        if cargo is not None:
            deps.extend(_table(cargo.get("dependencies")).keys())

        return list(dict.fromkeys(d for d in deps if d))

    async def detect_test_framework(self, path: str) -> str | None:
        package = await self._read_json(path, "package.json")
        if package is not None:
            all_deps = {
                **_table(package.get("dependencies")),
                **_table(package.get("devDependencies")),
            }
            for name in _JS_TEST_FRAMEWORKS:
                if name in all_deps:
                    return "playwright" if name == "@playwright/test" else name

        if await self._has(path, "pytest.ini") or await self._has(path, "conftest.py"):
            return "pytest"
        pyproject = await self._read_toml(path, "pyproject.toml")
        if pyproject is not None and "pytest" in _table(pyproject.get("tool")):
            return "pytest"
        return None

    async def detect_build_tool(self, path: str) -> str | None:
        for filename, tool in _BUILD_TOOL_FILES:
            if await self._has(path, filename):
                return tool

        pyproject = await self._read_toml(path, "pyproject.toml")
        if pyproject is not None:
            backend = str(_table(pyproject.get("build-system")).get("build-backend", ""))
            for marker, tool in _PY_BUILD_BACKENDS:
                if marker in backend:
                    return tool
        return None

    async def find_entry_points(
        self,
        path: str,
        project_type: ProjectType,
        framework: FrameworkInfo | None,
    ) -> list[str]:
        candidates = list(_ENTRY_POINT_CANDIDATES)
        if framework is not None:
            candidates.extend(_FRAMEWORK_ENTRY_POINTS.get(framework.name, ()))

        entry_points = [c for c in candidates if await self._has(path, c)]

        package = await self._read_json(path, "package.json")
        if package is not None and isinstance(package.get("main"), str):
            entry_points.append(package["main"])

        return list(dict.fromkeys(entry_points))

    # ── Helpers ────────────────────────────────────────────────

    async def _has(self, root: str, name: str) -> bool:
        return await self._fs.exists(self._fs.join(root, name))

    async def _read_text(self, root: str, name: str) -> str | None:
        full = self._fs.join(root, name)
        if not await self._fs.exists(full):
            return None
        try:
            return await self._fs.read_file(full)
        except SkippableIOError as e:
            logger.warning("Cannot read %s: %s", full, e)
            return None

    async def _read_json(self, root: str, name: str) -> dict[str, Any] | None:
        text = await self._read_text(root, name)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON in %s, treating as empty", name)
            return {}
        return data if isinstance(data, dict) else {}

    async def _read_toml(self, root: str, name: str) -> dict[str, Any] | None:
        text = await self._read_text(root, name)
        if text is None:
            return None
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError:
            logger.warning("Invalid TOML in %s, treating as empty", name)
            return {}


def _table(value: Any) -> dict[str, Any]:
    """A manifest sub-table, or an empty one when the value has another shape."""
    return value if isinstance(value, dict) else {}


def _pyproject_dependencies(pyproject: dict[str, Any]) -> list[str]:
    declared = _table(pyproject.get("project")).get("dependencies")
    deps = list(declared) if isinstance(declared, list) else []
    poetry = _table(_table(_table(pyproject.get("tool")).get("poetry")).get("dependencies"))
    deps.extend(name for name in poetry if name != "python")
    return [d for d in deps if isinstance(d, str)]


def _requirement_name(requirement: str) -> str:
    match = _REQUIREMENT_NAME_RE.match(requirement.strip())
    return match.group(0) if match else ""
