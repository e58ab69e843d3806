"""Tests for hackathon_research.agent (orchestrator with mocked search + LLM)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from hackathon_research.agent import ResearchAgent, RunState, _NextActionResponse
from hackathon_research.analyzer import Analyzer, _AnalysisResponse, _ScoresResponse
from hackathon_research.config import ResearchConfig
from hackathon_research.errors import NotFoundError, ProviderError, SchemaError
from hackathon_research.evaluation import EvaluationLoop, _EvaluationResponse, _RefineResponse
from hackathon_research.memory import QueryMemory
from hackathon_research.models import ActionType, Project
from hackathon_research.planner import ResearchPlanner, _PlanResponse
from hackathon_research.search import SearchResult
from hackathon_research.store import InMemoryProjectStore


def _make_config(**overrides) -> ResearchConfig:
    defaults = dict(
        _env_file=None,
        refine_delay_seconds=0,
        query_delay_seconds=0,
    )
    defaults.update(overrides)
    return ResearchConfig(**defaults)


def _carrot() -> Project:
    return Project(
        id="carrot",
        name="Carrot",
        hackathon_name="HackMIT 2016",
        technologies=["TensorFlow"],
    )


def _results() -> list[SearchResult]:
    return [
        SearchResult(url="https://techcrunch.com/carrot", title="Carrot", text="Carrot raised a $2M seed round"),
        SearchResult(url="https://yc.com/carrot", title="Carrot YC", text="Carrot (YC W17)"),
    ]


def _analysis_response() -> _AnalysisResponse:
    return _AnalysisResponse(
        got_funding=True,
        funding_amount=2_000_000,
        became_startup=True,
        summary="Carrot raised a seed round after YC.",
        achievements="YC W17",
        scores=_ScoresResponse(market=70, team=80, innovation=65, execution=76),
    )


def _router(plan=None, quality=85, actions=None, analysis=None, plans=None):
    """LLM side effect that answers by requested response model."""
    plans = list(plans or [])
    actions = list(actions or [])

    def complete(system_prompt, user_prompt, response_model=None):
        if response_model is _PlanResponse:
            return _PlanResponse(plan=plans.pop(0) if plans else (plan or ["Carrot funding", "Carrot startup"]))
        if response_model is _EvaluationResponse:
            return _EvaluationResponse(quality=quality, feedback="scored")
        if response_model is _RefineResponse:
            return _RefineResponse(refined_query="Carrot HackMIT refined")
        if response_model is _NextActionResponse:
            action = actions.pop(0) if actions else "continue"
            return _NextActionResponse(action=action, reason="test")
        if response_model is _AnalysisResponse:
            return analysis or _analysis_response()
        raise AssertionError(f"unexpected response model {response_model}")

    return complete


def _make_agent(store, search, llm, config=None, memory=None):
    config = config or _make_config()
    memory = memory if memory is not None else QueryMemory()
    return ResearchAgent(
        store=store,
        planner=ResearchPlanner(llm, memory, config),
        loop=EvaluationLoop(search, llm, config),
        analyzer=Analyzer(llm, config),
        memory=memory,
        llm=llm,
        config=config,
    )


class TestResearchAgent:
    def test_full_run_persists_analysis(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router()
        memory = QueryMemory()

        analysis = _make_agent(store, mock_search, mock_llm, memory=memory).run("carrot")

        assert analysis is not None
        saved = store.find_by_id("carrot")
        assert saved.got_funding is True
        assert saved.overall_score == 73
        assert saved.research_sources == ["https://techcrunch.com/carrot", "https://yc.com/carrot"]
        assert saved.research_summary.startswith("Carrot raised a seed round")
        assert saved.is_researched
        assert memory.find_similar(_carrot()) == ["Carrot funding", "Carrot startup"]

    def test_zero_results_short_circuit(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = []
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router()
        memory = QueryMemory()

        analysis = _make_agent(store, mock_search, mock_llm, memory=memory).run("carrot")

        assert analysis is None
        assert store.find_by_id("carrot").researched_at is None
        assert len(memory) == 0
        requested = [c.kwargs["response_model"] for c in mock_llm.complete.call_args_list]
        assert _AnalysisResponse not in requested

    def test_zero_result_rerun_keeps_prior_analysis(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router()
        agent = _make_agent(store, mock_search, mock_llm)

        agent.run("carrot")
        first = store.find_by_id("carrot")
        mock_search.search.return_value = []
        assert agent.run("carrot") is None

        assert store.find_by_id("carrot") == first

    def test_rerun_is_idempotent(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router()
        agent = _make_agent(store, mock_search, mock_llm)

        volatile = {"researched_at", "updated_at"}
        agent.run("carrot")
        first = store.find_by_id("carrot").model_dump(exclude=volatile)
        agent.run("carrot")
        second = store.find_by_id("carrot").model_dump(exclude=volatile)

        assert first == second

    def test_missing_project_raises_before_work(self):
        mock_search = MagicMock()
        mock_llm = MagicMock()

        with pytest.raises(NotFoundError):
            _make_agent(InMemoryProjectStore(), mock_search, mock_llm).run("nope")
        mock_search.search.assert_not_called()
        mock_llm.complete.assert_not_called()

    def test_deep_dive_extends_plan(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router(
            plans=[["q1", "q2"], ["q1", "deep a", "deep b", "deep c"]],
            actions=["deep_dive"],
        )

        _make_agent(store, mock_search, mock_llm).run("carrot")

        searched = [c.args[0] for c in mock_search.search.call_args_list]
        assert searched == ["q1", "q2", "deep a", "deep b"]

    def test_deep_dive_respects_max_plan_length(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router(
            plans=[["q1", "q2"], ["deep a", "deep b"]],
            actions=["deep_dive"],
        )
        config = _make_config(max_plan_length=3)

        _make_agent(store, mock_search, mock_llm, config=config).run("carrot")

        assert mock_search.search.call_count == 3

    def test_complete_stops_early(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router(plan=["q1", "q2", "q3"], actions=["complete"])

        _make_agent(store, mock_search, mock_llm).run("carrot")

        assert mock_search.search.call_count == 1
        assert store.find_by_id("carrot").is_researched

    def test_abandoned_query_moves_on(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.side_effect = [ProviderError("exa down"), _results()]
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router(plan=["q1", "q2"])
        memory = QueryMemory()

        analysis = _make_agent(store, mock_search, mock_llm, memory=memory).run("carrot")

        assert analysis is not None
        assert memory.find_similar(_carrot()) == ["q2"]

    def test_exhausted_query_contributes_no_results(self):
        store = InMemoryProjectStore([_carrot()])
        mock_search = MagicMock()
        mock_search.search.return_value = _results()
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = _router(plan=["q1"], quality=10)

        assert _make_agent(store, mock_search, mock_llm).run("carrot") is None
        assert mock_search.search.call_count == 3


class TestNextAction:
    def _state(self, remaining: int) -> RunState:
        state = RunState(project=_carrot(), plan=["a", "b", "c"])
        state.query_results = [MagicMock()] * (3 - remaining)
        return state

    def test_fallback_continue_when_queries_remain(self):
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = SchemaError("bad")
        agent = _make_agent(InMemoryProjectStore(), MagicMock(), mock_llm)

        assert agent.decide_next_action(self._state(remaining=2)).action == ActionType.CONTINUE

    def test_fallback_complete_when_plan_consumed(self):
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = ProviderError("down")
        agent = _make_agent(InMemoryProjectStore(), MagicMock(), mock_llm)

        assert agent.decide_next_action(self._state(remaining=0)).action == ActionType.COMPLETE

    def test_unknown_action_is_continue(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _NextActionResponse(action="panic", reason="?")
        agent = _make_agent(InMemoryProjectStore(), MagicMock(), mock_llm)

        assert agent.decide_next_action(self._state(remaining=1)).action == ActionType.CONTINUE

    def test_action_normalized(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _NextActionResponse(action=" Deep_Dive ", reason="funding found")
        agent = _make_agent(InMemoryProjectStore(), MagicMock(), mock_llm)

        decision = agent.decide_next_action(self._state(remaining=1))
        assert decision.action == ActionType.DEEP_DIVE
        assert decision.reason == "funding found"
