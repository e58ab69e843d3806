"""Tests for hackathon_research.planner."""

from __future__ import annotations

from unittest.mock import MagicMock

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError, SchemaError
from hackathon_research.memory import QueryMemory
from hackathon_research.models import Project
from hackathon_research.planner import ResearchPlanner, _PlanResponse


def _make_config(**overrides) -> ResearchConfig:
    defaults = dict(_env_file=None)
    defaults.update(overrides)
    return ResearchConfig(**defaults)


def _carrot() -> Project:
    return Project(name="Carrot", hackathon_name="HackMIT 2016", technologies=["TensorFlow"])


class TestResearchPlanner:
    def test_returns_model_plan(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=["Carrot seed round", "Carrot YC W17"])

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert plan == ["Carrot seed round", "Carrot YC W17"]

    def test_plan_capped(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=[f"q{i}" for i in range(9)])

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config(max_plan_queries=5)).plan(_carrot())
        assert len(plan) == 5

    def test_blank_entries_dropped(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=["  ", "Carrot funding  "])

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert plan == ["Carrot funding"]

    def test_schema_error_uses_template(self):
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = SchemaError("bad json")

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert plan == [
            "Carrot funding raised",
            "Carrot startup company",
            "Carrot users growth",
            "Carrot founders update",
        ]

    def test_provider_error_uses_template(self):
        mock_llm = MagicMock()
        mock_llm.complete.side_effect = ProviderError("down")

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert len(plan) == 4

    def test_empty_plan_uses_template(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=[])

        plan = ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert plan[0] == "Carrot funding raised"

    def test_learned_queries_in_prompt(self):
        memory = QueryMemory()
        memory.record(Project(name="Earlier", technologies=["PyTorch"]), ["Earlier seed round"])
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=["x"])

        ResearchPlanner(mock_llm, memory, _make_config()).plan(_carrot())

        prompt = mock_llm.complete.call_args.kwargs["user_prompt"]
        assert "LEARNED FROM SIMILAR PROJECTS" in prompt
        assert "Earlier seed round" in prompt

    def test_no_learned_section_without_memory(self):
        mock_llm = MagicMock()
        mock_llm.complete.return_value = _PlanResponse(plan=["x"])

        ResearchPlanner(mock_llm, QueryMemory(), _make_config()).plan(_carrot())
        assert "LEARNED" not in mock_llm.complete.call_args.kwargs["user_prompt"]
