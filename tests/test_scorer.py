"""Tests for the multi-factor RelevanceScorer."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoctx.context.scorer import RelevanceScorer
from repoctx.filesystem import LocalFileSystem
from repoctx.schemas.scoring import ScoringCriteria, ScoringWeights

QUERY_ONLY = ScoringWeights(
    path_score=0.0,
    name_score=0.0,
    type_score=0.0,
    depth_score=0.0,
    size_score=0.0,
    recency_score=0.0,
    query_score=1.0,
)


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture()
def scorer() -> RelevanceScorer:
    return RelevanceScorer(LocalFileSystem())


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    (tmp_path / "b.txt").write_text("bravo\n", encoding="utf-8")
    (tmp_path / "auth.py").write_text(
        "def login():\n    authenticate(user)\n# auth auth\n", encoding="utf-8"
    )
    (tmp_path / "zeta.py").write_text("print('hi')\n", encoding="utf-8")
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.ts").write_text("export const x = 1;\n", encoding="utf-8")
    return tmp_path


# ── Static factors ────────────────────────────────────────────────


class TestCalculateRelevance:
    @pytest.mark.asyncio
    async def test_known_factor_values(self, scorer: RelevanceScorer, project: Path):
        factors = await scorer.calculate_relevance("src/index.ts", str(project))
        assert factors.path_score == 70.0
        assert factors.name_score == 90.0
        assert factors.type_score == 90.0
        assert factors.depth_score == 90.0
        assert factors.size_score == 20.0
        assert factors.recency_score == 100.0

    @pytest.mark.asyncio
    async def test_file_directly_in_context_is_depth_zero(
        self, scorer: RelevanceScorer, project: Path
    ):
        factors = await scorer.calculate_relevance("a.txt", str(project))
        assert factors.depth_score == 100.0

    @pytest.mark.asyncio
    async def test_relative_depth_bands(self, scorer: RelevanceScorer, project: Path):
        two = await scorer.calculate_relevance("pkg/sub/mod.py", str(project))
        four = await scorer.calculate_relevance("a/b/c/d/e.py", str(project))
        assert two.depth_score == 70.0
        assert four.depth_score == 60.0

    @pytest.mark.asyncio
    async def test_absolute_path_is_made_relative(self, scorer: RelevanceScorer, project: Path):
        factors = await scorer.calculate_relevance(str(project / "src" / "index.ts"), str(project))
        assert factors.depth_score == 90.0
        assert factors.size_score == 20.0

    @pytest.mark.asyncio
    async def test_depth_without_context(self, scorer: RelevanceScorer):
        factors = await scorer.calculate_relevance("src/app.py")
        assert factors.depth_score == 90.0

    @pytest.mark.asyncio
    async def test_missing_file_gets_neutral_size_and_recency(
        self, scorer: RelevanceScorer, project: Path
    ):
        factors = await scorer.calculate_relevance("missing.py", str(project))
        assert factors.size_score == 50.0
        assert factors.recency_score == 50.0

    @pytest.mark.asyncio
    async def test_path_score_clamped(self, scorer: RelevanceScorer, project: Path):
        factors = await scorer.calculate_relevance(
            "main/index/app/core/api/main_index_app.ts", str(project)
        )
        assert factors.path_score == 100.0

    @pytest.mark.asyncio
    async def test_unknown_type(self, scorer: RelevanceScorer, project: Path):
        factors = await scorer.calculate_relevance("data.bin", str(project))
        assert factors.type_score == 30.0

    @pytest.mark.asyncio
    async def test_test_files_penalized(self, scorer: RelevanceScorer, project: Path):
        plain = await scorer.calculate_relevance("widget.py", str(project))
        test = await scorer.calculate_relevance("widget_test.py", str(project))
        assert test.name_score < plain.name_score


# ── score_files ───────────────────────────────────────────────────


class TestScoreFiles:
    @pytest.mark.asyncio
    async def test_scores_in_range(self, scorer: RelevanceScorer, project: Path):
        paths = ["a.txt", "b.txt", "auth.py", "zeta.py", "src/index.ts", "missing.bin"]
        results = await scorer.score_files(
            paths, ScoringCriteria(query="auth", context_path=str(project))
        )
        assert len(results) == len(paths)
        for r in results:
            assert 0.0 <= r.score <= 100.0

    @pytest.mark.asyncio
    async def test_sorted_descending(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(
            ["a.txt", "src/index.ts", "zeta.py"],
            ScoringCriteria(context_path=str(project), file_types=[".py"]),
        )
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_ties_keep_input_order(self, scorer: RelevanceScorer, project: Path):
        criteria = ScoringCriteria(context_path=str(project))
        forward = await scorer.score_files(["b.txt", "a.txt"], criteria)
        backward = await scorer.score_files(["a.txt", "b.txt"], criteria)
        assert forward[0].score == forward[1].score
        assert [r.path for r in forward] == ["b.txt", "a.txt"]
        assert [r.path for r in backward] == ["a.txt", "b.txt"]

    @pytest.mark.asyncio
    async def test_deterministic(self, scorer: RelevanceScorer, project: Path):
        criteria = ScoringCriteria(query="auth login", context_path=str(project))
        paths = ["auth.py", "zeta.py", "a.txt"]
        first = await scorer.score_files(paths, criteria)
        second = await scorer.score_files(paths, criteria)
        assert [(r.path, r.score) for r in first] == [(r.path, r.score) for r in second]

    @pytest.mark.asyncio
    async def test_exclude_forces_zero(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(
            ["a.txt"],
            ScoringCriteria(context_path=str(project), exclude_patterns=["*.txt"]),
        )
        assert results[0].score == 0.0

    @pytest.mark.asyncio
    async def test_threshold_drops_low_scores(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(
            ["a.txt", "zeta.py"],
            ScoringCriteria(context_path=str(project), exclude_patterns=["*.txt"], threshold=1.0),
        )
        assert [r.path for r in results] == ["zeta.py"]

    @pytest.mark.asyncio
    async def test_file_type_filter_scales_down(self, scorer: RelevanceScorer, project: Path):
        # Unfiltered a.txt: 75 + 100 + 48 + 80 + 10 + 70 = 383, clamped to 100
        results = await scorer.score_files(
            ["a.txt"], ScoringCriteria(context_path=str(project), file_types=[".py"])
        )
        assert results[0].score == pytest.approx(38.3)

    @pytest.mark.asyncio
    async def test_include_miss_scales_down(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(
            ["a.txt"], ScoringCriteria(context_path=str(project), include_patterns=["*.py"])
        )
        assert results[0].score == pytest.approx(76.6)

    @pytest.mark.asyncio
    async def test_query_factor(self, scorer: RelevanceScorer, project: Path):
        # auth.py: +20 filename, +10 path, 3 content hits for "auth" (+6), 1 for "login" (+2)
        results = await scorer.score_files(
            ["zeta.py", "auth.py"],
            ScoringCriteria(query="auth login", context_path=str(project), weights=QUERY_ONLY),
        )
        assert results[0].path == "auth.py"
        assert results[0].score == pytest.approx(38.0)
        assert results[1].score == 0.0

    @pytest.mark.asyncio
    async def test_short_query_terms_ignored(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(
            ["auth.py"],
            ScoringCriteria(query="of a py", context_path=str(project), weights=QUERY_ONLY),
        )
        assert results[0].score == 0.0

    @pytest.mark.asyncio
    async def test_reason_lists_strong_factors(self, scorer: RelevanceScorer, project: Path):
        results = await scorer.score_files(["a.txt"], ScoringCriteria(context_path=str(project)))
        assert results[0].reason == "good file depth, recently modified"

    @pytest.mark.asyncio
    async def test_reason_fallback(self, scorer: RelevanceScorer, project: Path):
        # Missing file deep in the tree: no factor reaches 80
        results = await scorer.score_files(
            ["x/y/z/w/v/u/data.bin"], ScoringCriteria(context_path=str(project))
        )
        assert results[0].reason in {"generally relevant", "moderately relevant", "low relevance"}

    @pytest.mark.asyncio
    async def test_empty_input(self, scorer: RelevanceScorer):
        assert await scorer.score_files([], ScoringCriteria()) == []
