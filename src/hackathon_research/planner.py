"""Research planning: turn project metadata into an ordered query plan."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError, SchemaError
from hackathon_research.llm import PLANNER_PROMPT, CompletionGateway
from hackathon_research.memory import QueryMemory
from hackathon_research.models import Project
from hackathon_research.queries import fallback_plan, project_label

logger = logging.getLogger(__name__)


class _PlanResponse(BaseModel):
    plan: list[str] = Field(default_factory=list)


class ResearchPlanner:
    """Builds 4-5 prioritized queries, biased by queries that worked before."""

    def __init__(self, llm: CompletionGateway, memory: QueryMemory, config: ResearchConfig) -> None:
        self._llm = llm
        self._memory = memory
        self._config = config

    def plan(self, project: Project) -> list[str]:
        learned = self._memory.find_similar(project)[: self._config.memory_examples]

        prompt = project_label(project)
        if learned:
            prompt += "\n\nLEARNED FROM SIMILAR PROJECTS:\n" + "\n".join(f"- {q}" for q in learned)
        prompt += f"\n\nCreate 4-{self._config.max_plan_queries} search queries in priority order."

        try:
            resp: _PlanResponse = self._llm.complete(
                system_prompt=PLANNER_PROMPT,
                user_prompt=prompt,
                response_model=_PlanResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Planner fell back to template plan: %s", e)
            return fallback_plan(project)

        queries = [q.strip() for q in resp.plan if q and q.strip()]
        if not queries:
            logger.warning("Planner returned an empty plan; using template plan")
            return fallback_plan(project)
        return queries[: self._config.max_plan_queries]
