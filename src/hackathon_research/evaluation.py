"""Per-query search / evaluate / refine loop with a bounded refinement budget.

States for one query::

    Searching -> NoResults | HasResults
    HasResults -> Evaluating -> Accept | Refine
    Refine -> Searching            (mutated query, consumes one refinement)

Terminal outcomes are ACCEPTED (results kept, query recorded as successful),
EXHAUSTED (budget spent without an acceptable result) and ABANDONED (the search
provider itself failed; the query is treated as producing nothing).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from pydantic import BaseModel

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError, SchemaError
from hackathon_research.llm import EVALUATOR_PROMPT, REFINER_PROMPT, CompletionGateway
from hackathon_research.models import Evaluation, LoopOutcome, Project
from hackathon_research.queries import fallback_refinement, project_label, truncate
from hackathon_research.search import ExaClient, SearchResult

logger = logging.getLogger(__name__)


class _EvaluationResponse(BaseModel):
    quality: int = 50
    feedback: str = ""
    should_refine: bool | None = None


class _RefineResponse(BaseModel):
    refined_query: str = ""


@dataclass
class QueryResult:
    """What happened to one planned query."""

    query: str
    final_query: str
    outcome: LoopOutcome
    results: list[SearchResult] = field(default_factory=list)
    attempts: int = 0
    evaluation: Evaluation | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome == LoopOutcome.ACCEPTED


def mentions_project(project: Project, results: list[SearchResult]) -> bool:
    """True if any result body names the project or its hackathon."""
    needles = [n.lower() for n in (project.name, project.hackathon_name) if n]
    for r in results:
        text = (r.text or "").lower()
        if any(n in text for n in needles):
            return True
    return False


def heuristic_evaluation(project: Project, results: list[SearchResult]) -> Evaluation:
    if mentions_project(project, results):
        return Evaluation(quality=70, feedback="Some relevant results found", should_refine=False)
    return Evaluation(quality=30, feedback="No relevant results", should_refine=True)


def _summarize(results: list[SearchResult], limit: int, chars: int) -> str:
    return "\n".join(f"- {r.url}: {truncate(r.text, chars)}" for r in results[:limit])


class EvaluationLoop:
    """Runs one query to a terminal outcome."""

    def __init__(self, search: ExaClient, llm: CompletionGateway, config: ResearchConfig) -> None:
        self._search = search
        self._llm = llm
        self._config = config

    def run(self, project: Project, query: str) -> QueryResult:
        current = query
        refinements = 0
        attempts = 0

        while True:
            if attempts:
                time.sleep(self._config.refine_delay_seconds)
            attempts += 1
            logger.info("Searching (attempt %d): %r", attempts, current)

            try:
                results = self._search.search(current, num_results=self._config.search_num_results)
            except ProviderError as e:
                logger.warning("Search failed, abandoning query %r: %s", current, e)
                return QueryResult(query, current, LoopOutcome.ABANDONED, attempts=attempts)

            evaluation: Evaluation | None = None
            if not results:
                logger.info("No results for %r", current)
                reason = "No results returned"
            else:
                evaluation = self.evaluate(project, current, results)
                logger.info("Quality %d/100: %s", evaluation.quality, evaluation.feedback)
                if not evaluation.should_refine:
                    return QueryResult(
                        query,
                        current,
                        LoopOutcome.ACCEPTED,
                        results=list(results),
                        attempts=attempts,
                        evaluation=evaluation,
                    )
                reason = evaluation.feedback or "Low quality results"

            if refinements >= self._config.max_refinements:
                logger.info("Skipping %r after %d refinements", query, refinements)
                return QueryResult(
                    query, current, LoopOutcome.EXHAUSTED, attempts=attempts, evaluation=evaluation
                )

            current = self.refine(project, current, results, reason)
            refinements += 1

    def evaluate(self, project: Project, query: str, results: list[SearchResult]) -> Evaluation:
        """Score result quality 0-100; falls back to a name-mention heuristic."""
        prompt = (
            f'QUERY: "{query}"\n'
            f"PROJECT: {project.name}\n"
            f"HACKATHON: {project.hackathon_name}\n\n"
            f"RESULTS:\n{_summarize(results, 3, 100)}"
        )
        try:
            resp: _EvaluationResponse = self._llm.complete(
                system_prompt=EVALUATOR_PROMPT,
                user_prompt=prompt,
                response_model=_EvaluationResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Evaluation fell back to heuristic: %s", e)
            return heuristic_evaluation(project, results)

        quality = max(0, min(100, resp.quality))
        should_refine = resp.should_refine is True or quality < self._config.quality_threshold
        return Evaluation(
            quality=quality,
            feedback=resp.feedback or "Unable to evaluate",
            should_refine=should_refine,
        )

    def refine(
        self,
        project: Project,
        query: str,
        results: list[SearchResult],
        reason: str,
    ) -> str:
        """Rewrite a query after poor results; falls back to prefixing the project name."""
        prompt = (
            f'ORIGINAL QUERY: "{query}"\n'
            f"{project_label(project, description_chars=100)}\n\n"
            f"PREVIOUS RESULTS:\n{_summarize(results, 2, 80) or 'None'}\n\n"
            f"FEEDBACK: {reason}"
        )
        try:
            resp: _RefineResponse = self._llm.complete(
                system_prompt=REFINER_PROMPT,
                user_prompt=prompt,
                response_model=_RefineResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Refinement fell back to template: %s", e)
            return fallback_refinement(project, query)

        refined = resp.refined_query.strip()
        if not refined:
            return fallback_refinement(project, query)
        logger.info("Refined %r -> %r", query, refined)
        return refined
