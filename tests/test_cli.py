"""Tests for the repoctx CLI via CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repoctx import __version__
from repoctx.cli import app

# NO_COLOR=1 keeps Rich from injecting ANSI codes into matched text.
# COLUMNS=200 keeps table rows from wrapping.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    (tmp_path / "README.md").write_text("# Demo\n\nA small project.\n", encoding="utf-8")
    (tmp_path / "package.json").write_text('{"name": "demo"}', encoding="utf-8")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "auth.js").write_text(
        "export function auth() { return true; }\n", encoding="utf-8"
    )
    return tmp_path


@pytest.fixture()
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.md"
    path.write_text(
        "# Title\n\n\n\nSome  spaced   text\n\n# Code\n```python\ndef f():\n    pass\n```\n",
        encoding="utf-8",
    )
    return path


# ── Global options ────────────────────────────────────────────────


class TestGlobal:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("load", "score", "optimize", "chunk", "tokens", "strategies", "config"):
            assert command in result.output

    def test_strategies(self):
        result = runner.invoke(app, ["strategies"])
        assert result.exit_code == 0
        assert "progressive" in result.output
        assert "focused" in result.output
        assert "breadth-first" in result.output


# ── load ──────────────────────────────────────────────────────────


class TestLoadCommand:
    def test_table_output(self, project: Path):
        result = runner.invoke(app, ["load", str(project)])
        assert result.exit_code == 0
        assert "README.md" in result.output
        assert "Loading strategy: progressive" in result.output

    def test_json_output(self, project: Path):
        result = runner.invoke(
            app, ["load", str(project), "--strategy", "focused", "--query", "auth", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert "src/auth.js" in data["files"]
        assert data["tokens"] <= 8000

    def test_optimize_flag(self, project: Path):
        result = runner.invoke(
            app, ["load", str(project), "--optimize", "--optimization", "compress", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["optimized"]["metadata"]["optimization"]["strategy"] == "compress"

    def test_unknown_strategy(self, project: Path):
        result = runner.invoke(app, ["load", str(project), "--strategy", "nope"])
        assert result.exit_code == 1
        assert "Unknown loading strategy: nope" in result.output

    def test_focused_without_query(self, project: Path):
        result = runner.invoke(app, ["load", str(project), "--strategy", "focused"])
        assert result.exit_code == 1
        assert "requires either a query or include patterns" in result.output

    def test_missing_root(self, tmp_path: Path):
        result = runner.invoke(app, ["load", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Cannot read root path" in result.output


# ── score ─────────────────────────────────────────────────────────


class TestScoreCommand:
    def test_ranks_files(self, project: Path):
        result = runner.invoke(app, ["score", str(project), "--query", "auth"])
        assert result.exit_code == 0
        assert "src/auth.js" in result.output
        assert "Relevance (3 files)" in result.output

    def test_not_a_directory(self, tmp_path: Path):
        result = runner.invoke(app, ["score", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "Not a directory" in result.output


# ── optimize / chunk / tokens ─────────────────────────────────────


class TestContentCommands:
    def test_optimize_compress(self, text_file: Path):
        result = runner.invoke(app, ["optimize", str(text_file), "--strategy", "compress"])
        assert result.exit_code == 0
        assert "Some spaced text" in result.output

    def test_optimize_to_file(self, text_file: Path, tmp_path: Path):
        out = tmp_path / "out.md"
        result = runner.invoke(
            app, ["optimize", str(text_file), "--strategy", "compress", "-o", str(out)]
        )
        assert result.exit_code == 0
        assert "Some spaced text" in out.read_text(encoding="utf-8")

    def test_optimize_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["optimize", str(tmp_path / "missing.md")])
        assert result.exit_code == 1

    def test_chunk(self, text_file: Path):
        result = runner.invoke(app, ["chunk", str(text_file), "--size", "5"])
        assert result.exit_code == 0
        assert "Chunks (" in result.output
        assert "python" in result.output

    def test_tokens(self, text_file: Path):
        result = runner.invoke(app, ["tokens", str(text_file)])
        assert result.exit_code == 0
        assert "Total tokens" in result.output
        assert "code" in result.output
        assert "yes" in result.output


# ── config ────────────────────────────────────────────────────────


class TestConfigCommands:
    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "progressive" in result.output
        assert "8,000" in result.output

    def test_show_json(self):
        result = runner.invoke(app, ["config", "show", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["default_strategy"] == "progressive"
        assert data["cache"]["backend"] == "memory"

    def test_path(self):
        result = runner.invoke(app, ["config", "path"])
        assert result.exit_code == 0
        assert "defaults.toml" in result.output
        assert "found" in result.output
