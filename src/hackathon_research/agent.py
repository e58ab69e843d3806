"""Agentic controller: drives the research plan query by query."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from pydantic import BaseModel

from hackathon_research.analyzer import Analyzer, analysis_fields, build_research_summary
from hackathon_research.config import ResearchConfig
from hackathon_research.errors import NotFoundError, ProviderError, SchemaError
from hackathon_research.evaluation import EvaluationLoop, QueryResult
from hackathon_research.llm import COORDINATOR_PROMPT, CompletionGateway
from hackathon_research.memory import QueryMemory
from hackathon_research.models import ActionType, NextAction, Project, ProjectAnalysis
from hackathon_research.planner import ResearchPlanner
from hackathon_research.queries import truncate
from hackathon_research.search import SearchResult
from hackathon_research.store import ProjectStore

logger = logging.getLogger(__name__)


class _NextActionResponse(BaseModel):
    action: str = "continue"
    reason: str = ""


@dataclass
class RunState:
    """Mutable state of one project's research run."""

    project: Project
    plan: list[str] = field(default_factory=list)
    results: list[SearchResult] = field(default_factory=list)
    completed_queries: list[str] = field(default_factory=list)
    failed_queries: list[str] = field(default_factory=list)
    query_results: list[QueryResult] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return len(self.plan) - len(self.query_results)


class ResearchAgent:
    """Plan -> per-query evaluation loop -> next-action decision -> analysis -> persist."""

    def __init__(
        self,
        store: ProjectStore,
        planner: ResearchPlanner,
        loop: EvaluationLoop,
        analyzer: Analyzer,
        memory: QueryMemory,
        llm: CompletionGateway,
        config: ResearchConfig,
    ) -> None:
        self._store = store
        self._planner = planner
        self._loop = loop
        self._analyzer = analyzer
        self._memory = memory
        self._llm = llm
        self._config = config

    def run(self, project_id: str) -> ProjectAnalysis | None:
        """Research a stored project by id. Raises NotFoundError before any work."""
        project = self._store.find_by_id(project_id)
        if project is None:
            raise NotFoundError(project_id)
        return self.research(project)

    def research(self, project: Project) -> ProjectAnalysis | None:
        """Run the full pipeline for one project.

        Returns None when no query produced accepted results; in that case
        nothing is persisted and the query memory is left untouched.
        """
        logger.info("Agentic research: %s", project.name)
        state = RunState(project=project, plan=self._planner.plan(project))
        logger.info("Plan: %d queries", len(state.plan))

        index = 0
        while index < len(state.plan):
            if index:
                time.sleep(self._config.query_delay_seconds)
            query = state.plan[index]
            index += 1
            logger.info("Query %d/%d: %r", index, len(state.plan), query)

            qr = self._loop.run(project, query)
            state.query_results.append(qr)
            if not qr.accepted:
                state.failed_queries.append(qr.final_query)
                continue

            state.results.extend(qr.results)
            state.completed_queries.append(qr.final_query)
            logger.info("Added %d results", len(qr.results))

            decision = self.decide_next_action(state)
            logger.info("Next action: %s - %s", decision.action, decision.reason)
            if decision.action == ActionType.DEEP_DIVE:
                self._deep_dive(state)
            elif decision.action == ActionType.COMPLETE:
                break

        if not state.results:
            logger.info("No results found for %s after all attempts", project.name)
            return None

        logger.info("Analyzing %d results", len(state.results))
        analysis = self._analyzer.analyze(project, state.results)

        self._memory.record(project, state.completed_queries, state.failed_queries)

        sources = list(dict.fromkeys(r.url for r in state.results))
        fields = analysis_fields(analysis, sources, build_research_summary(analysis))
        self._store.update(project.id, fields)
        logger.info(
            "Research complete for %s: %d successful queries, %d results",
            project.name,
            len(state.completed_queries),
            len(state.results),
        )
        return analysis

    def _deep_dive(self, state: RunState) -> None:
        room = self._config.max_plan_length - len(state.plan)
        if room <= 0:
            logger.info("Plan at maximum length; deep dive skipped")
            return
        seen = {q.lower() for q in state.plan}
        added = 0
        for q in self._planner.plan(state.project):
            if added >= min(self._config.deep_dive_queries, room):
                break
            if q.lower() in seen:
                continue
            state.plan.append(q)
            seen.add(q.lower())
            added += 1
        logger.info("Deep dive added %d queries", added)

    def decide_next_action(self, state: RunState) -> NextAction:
        """Ask the coordinator what to do after an accepted query."""
        summary = "\n".join(f"- {truncate(r.text, 100)}" for r in state.results[:5])
        prompt = (
            f"PROJECT: {state.project.name}\n"
            f"COMPLETED QUERIES: {len(state.completed_queries)}\n"
            f"REMAINING IN PLAN: {state.remaining}\n\n"
            f"CURRENT RESULTS SUMMARY:\n{summary}"
        )
        try:
            resp: _NextActionResponse = self._llm.complete(
                system_prompt=COORDINATOR_PROMPT,
                user_prompt=prompt,
                response_model=_NextActionResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Next-action decision fell back: %s", e)
            return self.fallback_action(state)

        try:
            action = ActionType(resp.action.strip().lower())
        except ValueError:
            action = ActionType.CONTINUE
        return NextAction(action=action, reason=resp.reason or "Proceeding with plan")

    @staticmethod
    def fallback_action(state: RunState) -> NextAction:
        action = ActionType.CONTINUE if state.remaining > 0 else ActionType.COMPLETE
        return NextAction(action=action, reason="Fallback decision")
