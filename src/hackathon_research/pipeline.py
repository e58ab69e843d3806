"""Top-level wiring and batch drivers."""

from __future__ import annotations

import logging
import time

from hackathon_research.agent import ResearchAgent
from hackathon_research.analyzer import Analyzer, analysis_fields, build_success_story_summary
from hackathon_research.classifier import ContentClassifier, sanitize_sources
from hackathon_research.config import ResearchConfig
from hackathon_research.discovery import SuccessStoryDiscoverer
from hackathon_research.errors import NotFoundError, ProviderError
from hackathon_research.evaluation import EvaluationLoop
from hackathon_research.llm import CompletionGateway, create_llm
from hackathon_research.match import DEFAULT_INVESTOR, analyze_match
from hackathon_research.memory import QueryMemory
from hackathon_research.models import InvestorProfile, MatchReport, Project, ProjectAnalysis
from hackathon_research.planner import ResearchPlanner
from hackathon_research.queries import success_story_queries
from hackathon_research.search import ExaClient, SearchResult
from hackathon_research.store import ProjectStore, SqliteProjectStore
from hackathon_research.trigger import ResearchTrigger

logger = logging.getLogger(__name__)


class ResearchPipeline:
    """Owns the gateways, the store and the shared query memory for a process.

    Any collaborator may be passed in; the rest are built from ``config``.
    """

    def __init__(
        self,
        config: ResearchConfig,
        store: ProjectStore | None = None,
        search: ExaClient | None = None,
        llm: CompletionGateway | None = None,
        memory: QueryMemory | None = None,
    ) -> None:
        self.config = config
        if store is None:
            store = SqliteProjectStore(config.db_path)
        self.store = store
        self.search = search or ExaClient(config, cache=store if isinstance(store, SqliteProjectStore) else None)
        self.llm = llm or create_llm(config)
        self.memory = memory or QueryMemory(config.memory_capacity)

        self.analyzer = Analyzer(self.llm, config)
        self.planner = ResearchPlanner(self.llm, self.memory, config)
        self.loop = EvaluationLoop(self.search, self.llm, config)
        self.agent = ResearchAgent(
            self.store, self.planner, self.loop, self.analyzer, self.memory, self.llm, config
        )
        self.classifier = ContentClassifier(config.primary_source_domain, config.max_name_length)
        self.discoverer = SuccessStoryDiscoverer(
            self.search, self.llm, self.store, self.analyzer, self.classifier, config
        )
        self.trigger = ResearchTrigger(self.agent, self.store, config.trigger_workers)

    def close(self) -> None:
        self.trigger.shutdown(wait=True)
        close = getattr(self.store, "close", None)
        if close is not None:
            close()

    # ── Single project ───────────────────────────────────────────────────

    def research_project(self, project_id: str) -> ProjectAnalysis | None:
        return self.agent.run(project_id)

    def match(self, project_id: str, investor: InvestorProfile = DEFAULT_INVESTOR) -> MatchReport:
        project = self.store.find_by_id(project_id)
        if project is None:
            raise NotFoundError(project_id)
        return analyze_match(project, self.llm, investor)

    def discover(self, limit: int | None = None) -> list[Project]:
        return self.discoverer.discover(limit)

    # ── Batch drivers ────────────────────────────────────────────────────

    def research_all(self, limit: int | None = None) -> dict[str, int]:
        """Research unresearched projects one after another.

        A failure in one project's run is logged and does not stop the batch.
        """
        projects = self.store.list_unresearched(limit or self.config.batch_limit)
        logger.info("Found %d projects to research", len(projects))
        counts = {"researched": 0, "empty": 0, "failed": 0}

        for i, project in enumerate(projects):
            if i:
                time.sleep(self.config.project_delay_seconds)
            try:
                analysis = self.agent.research(project)
            except Exception:
                logger.exception("Research failed for %s (%s)", project.name, project.id)
                counts["failed"] += 1
                continue
            counts["researched" if analysis is not None else "empty"] += 1

        logger.info("Batch complete: %s", counts)
        return counts

    def research_success_stories(self, limit: int = 20) -> dict[str, int]:
        """Re-research funded or startup projects in more depth."""
        projects = self.store.list_success_stories(limit)
        if not projects:
            logger.warning("No success stories found; run research first")
        counts = {"researched": 0, "empty": 0, "failed": 0}

        for i, project in enumerate(projects):
            if i:
                time.sleep(self.config.project_delay_seconds)
            try:
                analysis = self.research_success_story(project)
            except Exception:
                logger.exception("Success-story research failed for %s (%s)", project.name, project.id)
                counts["failed"] += 1
                continue
            counts["researched" if analysis is not None else "empty"] += 1

        return counts

    def research_success_story(self, project: Project) -> ProjectAnalysis | None:
        """Focused queries plus the richer analysis; sources are appended."""
        logger.info("Deep research: %s", project.name)
        results: list[SearchResult] = []
        for i, query in enumerate(success_story_queries(project)):
            if i:
                time.sleep(self.config.query_delay_seconds)
            try:
                results.extend(
                    self.search.search(query, num_results=self.config.success_story_num_results)
                )
            except ProviderError as e:
                logger.warning("Search failed for %r: %s", query, e)

        if not results:
            logger.info("No results for %s", project.name)
            return None

        analysis = self.analyzer.analyze_success_story(project, results)
        sources = sanitize_sources([*project.research_sources, *(r.url for r in results)])
        fields = analysis_fields(analysis, sources, build_success_story_summary(analysis))
        self.store.update(project.id, fields)
        logger.info("Updated %s with success-story analysis", project.name)
        return analysis
