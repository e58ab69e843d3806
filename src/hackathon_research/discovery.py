"""Open-web discovery of hackathon success stories."""

from __future__ import annotations

import logging
import time

from pydantic import BaseModel

from hackathon_research.analyzer import Analyzer, analysis_fields, build_research_summary, ensure_scores
from hackathon_research.classifier import ContentClassifier, sanitize_sources
from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ConflictError, ProviderError, SchemaError, ValidationError
from hackathon_research.llm import VALIDATOR_PROMPT, CompletionGateway
from hackathon_research.models import Candidate, Project, ProjectAnalysis, SuccessSignal
from hackathon_research.queries import DISCOVERY_QUERIES, context_query, truncate
from hackathon_research.search import ExaClient, SearchResult
from hackathon_research.store import ProjectStore

logger = logging.getLogger(__name__)


class _ValidationResponse(BaseModel):
    is_project: bool = False
    reason: str = ""


def apply_signal_boost(analysis: ProjectAnalysis, candidate: Candidate) -> ProjectAnalysis:
    """Force outcome flags the keyword signal already proves."""
    if candidate.signal == SuccessSignal.FUNDING and not analysis.got_funding:
        analysis.got_funding = True
        analysis.funding_source = analysis.funding_source or candidate.source_domain
    if candidate.signal == SuccessSignal.TRACTION and not analysis.has_real_users:
        analysis.has_real_users = True
    return analysis


class SuccessStoryDiscoverer:
    """Turns broad web searches into validated, analyzed project records.

    ``seen_keys`` lives on the instance, so repeats are suppressed both within a
    run and across runs of the same discoverer.
    """

    def __init__(
        self,
        search: ExaClient,
        llm: CompletionGateway,
        store: ProjectStore,
        analyzer: Analyzer,
        classifier: ContentClassifier,
        config: ResearchConfig,
    ) -> None:
        self._search = search
        self._llm = llm
        self._store = store
        self._analyzer = analyzer
        self._classifier = classifier
        self._config = config
        self.seen_keys: set[str] = set()

    def discover(self, limit: int | None = None, queries: tuple[str, ...] = DISCOVERY_QUERIES) -> list[Project]:
        """Run the discovery query bank and persist up to ``limit`` candidates."""
        limit = self._config.discovery_limit if limit is None else limit
        saved: list[Project] = []
        processed = 0

        for query in queries:
            if processed >= limit:
                break
            logger.info("Discovery query: %s", query)
            try:
                results = self._search.search(query, num_results=self._config.discovery_num_results)
            except ProviderError as e:
                logger.warning("Discovery search failed for %r: %s", query, e)
                continue

            for result in results:
                if processed >= limit:
                    break
                candidate = self.candidate_from(result)
                if candidate is None:
                    continue
                processed += 1
                project = self.process_candidate(candidate)
                if project is not None:
                    saved.append(project)
                time.sleep(self._config.candidate_delay_seconds)

        logger.info("Discovery finished: %d candidates, %d saved", processed, len(saved))
        return saved

    def candidate_from(self, result: SearchResult) -> Candidate | None:
        """Classify a raw result; None when filtered out or already seen."""
        try:
            candidate = self._classifier.build_candidate(result)
        except ValidationError as e:
            logger.debug("Dropped %s: %s", result.url, e)
            return None
        if candidate.dedupe_key in self.seen_keys:
            return None
        self.seen_keys.add(candidate.dedupe_key)
        logger.info("Candidate: %s (%s) from %s", candidate.name, candidate.hackathon_name, candidate.source_url)
        return candidate

    def gather_context(self, candidate: Candidate) -> list[SearchResult]:
        query = context_query(candidate.name, candidate.hackathon_name)
        try:
            return self._search.search(query, num_results=self._config.context_num_results)
        except ProviderError as e:
            logger.warning("Context search failed for %s: %s", candidate.name, e)
            return []

    def validate(self, candidate: Candidate) -> bool:
        """Heuristic check, confirmed by the model when it answers."""
        if not self._classifier.heuristic_is_project(candidate):
            return False
        prompt = (
            f"Title: {candidate.source_title or 'N/A'}\n"
            f"Name: {candidate.name}\n"
            f"Hackathon: {candidate.hackathon_name}\n"
            f"Content: {truncate(candidate.description, 500)}\n\n"
            "Is this about a specific hackathon project (not a general article or list)?"
        )
        try:
            resp: _ValidationResponse = self._llm.complete(
                system_prompt=VALIDATOR_PROMPT,
                user_prompt=prompt,
                response_model=_ValidationResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Model validation failed, using heuristics: %s", e)
            return True
        return resp.is_project

    def find_existing(self, candidate: Candidate) -> Project | None:
        if candidate.devpost_url:
            existing = self._store.find_by_url(candidate.devpost_url)
            if existing is not None:
                return existing
        return self._store.find_by_name_and_hackathon(candidate.name, candidate.hackathon_name)

    def process_candidate(self, candidate: Candidate) -> Project | None:
        """Validate, analyze and persist one candidate."""
        context = self.gather_context(candidate)
        if not self.validate(candidate):
            logger.info("Skipping %s: not a hackathon project", candidate.name)
            return None

        existing = self.find_existing(candidate)
        subject = existing or Project(
            name=candidate.name,
            description=candidate.description or candidate.snippet,
            hackathon_name=candidate.hackathon_name,
        )
        if not context:
            context = [
                SearchResult(
                    url=candidate.source_url,
                    title=candidate.source_title,
                    text=candidate.snippet,
                    image=candidate.image_url,
                )
            ]

        analysis = self._analyzer.analyze_success_story(subject, context)
        analysis.scores = ensure_scores(analysis.scores)
        apply_signal_boost(analysis, candidate)

        new_sources = sanitize_sources([candidate.source_url, *(r.url for r in context)])
        if not new_sources:
            logger.info("Skipping %s: no valid sources", candidate.name)
            return None
        sources = sanitize_sources([*(existing.research_sources if existing else []), *new_sources])

        summary = build_research_summary(analysis)
        first_line = summary.split("\n")[0].strip() if summary else None
        fields = analysis_fields(analysis, sources, summary)
        fields.update(
            name=candidate.name,
            description=candidate.description or (existing.description if existing else None),
            tagline=candidate.source_title or (existing.tagline if existing else None) or first_line,
            hackathon_name=candidate.hackathon_name,
            hackathon_date=candidate.hackathon_date or (existing.hackathon_date if existing else None),
            devpost_url=candidate.devpost_url or (existing.devpost_url if existing else None),
            image_url=candidate.image_url or (existing.image_url if existing else None),
            source_type="web",
            origin_url=candidate.source_url,
        )

        try:
            if existing is not None:
                project = self._store.update(existing.id, fields)
                logger.info("Updated existing project %s", existing.id)
            else:
                project = self._store.insert(
                    Project(**fields, technologies=candidate.technologies)
                )
                logger.info("Added new project %s from web discovery", project.id)
        except ConflictError as e:
            logger.warning("Skipping %s: %s", candidate.name, e)
            return None
        return project
