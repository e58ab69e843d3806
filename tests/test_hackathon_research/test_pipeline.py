"""Tests for hackathon_research.pipeline (batch drivers with injected fakes)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from hackathon_research.analyzer import _AnalysisResponse, _ScoresResponse, _SuccessAnalysisResponse
from hackathon_research.config import ResearchConfig
from hackathon_research.errors import NotFoundError, ProviderError
from hackathon_research.match import _MatchResponse
from hackathon_research.models import FitScore, Project
from hackathon_research.pipeline import ResearchPipeline
from hackathon_research.search import SearchResult
from hackathon_research.store import InMemoryProjectStore, SqliteProjectStore


def _make_config(**overrides) -> ResearchConfig:
    defaults = dict(
        _env_file=None,
        refine_delay_seconds=0,
        query_delay_seconds=0,
        project_delay_seconds=0,
        candidate_delay_seconds=0,
    )
    defaults.update(overrides)
    return ResearchConfig(**defaults)


def _results(name="Carrot") -> list[SearchResult]:
    return [SearchResult(url=f"https://news.example.com/{name.lower()}", text=f"{name} raised a seed round")]


def _fallback_llm() -> MagicMock:
    """Every model call fails, so planner/evaluator/analyzer use their fallbacks."""
    mock_llm = MagicMock()
    mock_llm.complete.side_effect = ProviderError("down")
    return mock_llm


def _pipeline(store, search, llm, **config) -> ResearchPipeline:
    return ResearchPipeline(_make_config(**config), store=store, search=search, llm=llm)


class TestResearchAll:
    def test_researches_each_project(self):
        store = InMemoryProjectStore([Project(id="a", name="Alpha"), Project(id="b", name="Beta")])
        mock_search = MagicMock()
        mock_search.search.side_effect = lambda q, num_results=None, mode=None: _results(q.split()[0])

        counts = _pipeline(store, mock_search, _fallback_llm()).research_all()

        assert counts == {"researched": 2, "empty": 0, "failed": 0}
        assert store.find_by_id("a").is_researched
        assert store.find_by_id("b").is_researched

    def test_failure_isolated_per_project(self):
        store = InMemoryProjectStore([Project(id="a", name="Alpha"), Project(id="b", name="Beta")])
        mock_search = MagicMock()

        def search(query, num_results=None, mode=None):
            if query.startswith("Alpha"):
                raise RuntimeError("store unreachable")
            return _results("Beta")

        mock_search.search.side_effect = search

        counts = _pipeline(store, mock_search, _fallback_llm()).research_all()

        assert counts["failed"] == 1
        assert counts["researched"] == 1
        assert store.find_by_id("b").is_researched

    def test_empty_runs_counted(self):
        store = InMemoryProjectStore([Project(id="a", name="Alpha")])
        mock_search = MagicMock()
        mock_search.search.return_value = []

        counts = _pipeline(store, mock_search, _fallback_llm()).research_all()
        assert counts == {"researched": 0, "empty": 1, "failed": 0}

    def test_limit_from_config(self):
        store = InMemoryProjectStore([Project(name=f"P{i}") for i in range(5)])
        mock_search = MagicMock()
        mock_search.search.return_value = []

        counts = _pipeline(store, mock_search, _fallback_llm(), batch_limit=3).research_all()
        assert sum(counts.values()) == 3


class TestSuccessStories:
    def test_appends_sources_and_summary(self):
        project = Project(
            id="carrot",
            name="Carrot",
            got_funding=True,
            overall_score=70,
            research_sources=["https://old.example.com/carrot"],
        )
        store = InMemoryProjectStore([project])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _SuccessAnalysisResponse(
            got_funding=True,
            funding_amount=2_000_000,
            funding_source="Y Combinator",
            funding_round="Seed",
            summary="Carrot is thriving.",
            key_metrics="40k users",
            scores=_ScoresResponse(market=80, team=80, innovation=80, execution=80),
        )

        counts = _pipeline(store, mock_search, mock_llm).research_success_stories()

        assert counts["researched"] == 1
        saved = store.find_by_id("carrot")
        assert saved.research_sources == ["https://old.example.com/carrot", "https://news.example.com/carrot"]
        assert "Key Metrics:\n40k users" in saved.research_summary
        assert "Funding: 2,000,000 from Y Combinator (Seed)" in saved.research_summary
        assert mock_search.search.call_count == 4

    def test_no_success_stories(self):
        store = InMemoryProjectStore([Project(name="Plain")])
        counts = _pipeline(store, MagicMock(), MagicMock()).research_success_stories()
        assert counts == {"researched": 0, "empty": 0, "failed": 0}

    def test_search_failures_leave_project_untouched(self):
        store = InMemoryProjectStore([Project(id="carrot", name="Carrot", became_startup=True)])
        mock_search = MagicMock()
        mock_search.search.side_effect = ProviderError("down")

        counts = _pipeline(store, mock_search, MagicMock()).research_success_stories()

        assert counts["empty"] == 1
        assert store.find_by_id("carrot").researched_at is None


class TestSingleProject:
    def test_research_missing_project(self):
        with pytest.raises(NotFoundError):
            _pipeline(InMemoryProjectStore(), MagicMock(), MagicMock()).research_project("missing")

    def test_match_missing_project(self):
        with pytest.raises(NotFoundError):
            _pipeline(InMemoryProjectStore(), MagicMock(), MagicMock()).match("missing")

    def test_match(self):
        store = InMemoryProjectStore([Project(id="carrot", name="Carrot")])
        mock_llm = MagicMock()
        fit = FitScore(score=50, analysis="ok")
        mock_llm.complete.return_value = _MatchResponse(
            match_score=55,
            overall_assessment="Moderate",
            sector_fit=fit,
            geography_fit=fit,
            stage_fit=fit,
            team_fit=fit,
            market_fit=fit,
            recommendation="Pass",
        )

        report = _pipeline(store, MagicMock(), mock_llm).match("carrot")
        assert report.match_score == 55


class TestWiring:
    @patch("hackathon_research.pipeline.create_llm")
    def test_sqlite_store_backs_search_cache(self, mock_create_llm, tmp_path):
        pipeline = ResearchPipeline(_make_config(db_path=tmp_path / "p.db"))
        try:
            assert isinstance(pipeline.store, SqliteProjectStore)
            assert pipeline.search._cache is pipeline.store
            mock_create_llm.assert_called_once()
        finally:
            pipeline.close()

    def test_analysis_uses_injected_llm(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _AnalysisResponse(summary="x")
        pipeline = _pipeline(InMemoryProjectStore(), MagicMock(), mock_llm)
        assert pipeline.analyzer.analyze(Project(name="Carrot"), _results()).summary == "x"

    def test_trigger_sized_from_config(self):
        pipeline = _pipeline(InMemoryProjectStore(), MagicMock(), _fallback_llm(), trigger_workers=3)
        assert pipeline.trigger._executor._max_workers == 3
        pipeline.close()

    def test_close_waits_for_triggered_runs(self):
        store = InMemoryProjectStore([Project(id="a", name="Alpha")])
        mock_search = MagicMock()
        mock_search.search.return_value = _results("Alpha")
        pipeline = _pipeline(store, mock_search, _fallback_llm())

        ack = pipeline.trigger.submit("a")
        pipeline.close()

        assert ack == {"message": "Research started", "project_id": "a"}
        assert store.find_by_id("a").is_researched

    def test_trigger_rejects_unknown_project(self):
        pipeline = _pipeline(InMemoryProjectStore(), MagicMock(), _fallback_llm())
        try:
            with pytest.raises(NotFoundError):
                pipeline.trigger.submit("missing")
        finally:
            pipeline.close()
