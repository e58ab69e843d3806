"""Synthesis of search findings into a structured ProjectAnalysis."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ProviderError, SchemaError
from hackathon_research.llm import ANALYST_PROMPT, SUCCESS_ANALYST_PROMPT, CompletionGateway
from hackathon_research.models import Project, ProjectAnalysis, Scores
from hackathon_research.queries import truncate
from hackathon_research.search import SearchResult

logger = logging.getLogger(__name__)

_AMOUNT_RE = re.compile(r"([\d][\d,]*(?:\.\d+)?)\s*(k|m|b|thousand|million|billion)?\b", re.IGNORECASE)
_MULTIPLIERS = {
    "k": 1e3,
    "thousand": 1e3,
    "m": 1e6,
    "million": 1e6,
    "b": 1e9,
    "billion": 1e9,
}


def parse_amount(value: object) -> float | None:
    """Coerce '$2M', '1.5 million', '250,000' or a number into a float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _AMOUNT_RE.search(str(value))
    if match is None:
        return None
    number = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return number * _MULTIPLIERS.get(suffix, 1)


# ── Structured response models for LLM output ───────────────────────────────


class _ScoresResponse(BaseModel):
    market: float | None = None
    team: float | None = None
    innovation: float | None = None
    execution: float | None = None
    overall: float | None = None


class _AnalysisResponse(BaseModel):
    got_funding: bool | None = False
    funding_amount: float | None = None
    funding_source: str | None = None
    became_startup: bool | None = False
    startup_name: str | None = None
    startup_url: str | None = None
    has_real_users: bool | None = False
    user_count: int | None = None
    is_still_active: bool | None = False
    summary: str = Field(default="", description="2-3 sentence summary of what happened after the hackathon")
    achievements: str | None = Field(default=None, description="Key achievements or milestones, if any")
    reasoning: str | None = Field(default=None, description="Why the project succeeded or failed")
    scores: _ScoresResponse = Field(default_factory=_ScoresResponse)

    @field_validator("got_funding", "became_startup", "has_real_users", "is_still_active", mode="before")
    @classmethod
    def _flag(cls, v: object) -> object:
        # null means no evidence
        return False if v is None else v

    @field_validator("funding_amount", mode="before")
    @classmethod
    def _amount(cls, v: object) -> float | None:
        return parse_amount(v)

    @field_validator("user_count", mode="before")
    @classmethod
    def _count(cls, v: object) -> int | None:
        amount = parse_amount(v)
        return int(amount) if amount is not None else None


class _SuccessAnalysisResponse(_AnalysisResponse):
    funding_round: str | None = Field(default=None, description="e.g. Pre-seed, Seed, Series A")
    funding_date: str | None = Field(default=None, description="YYYY-MM if known")
    key_metrics: str | None = None
    timeline: str | None = None


# ── Scores and summaries ─────────────────────────────────────────────────────


def _clamp(value: float) -> int:
    return int(max(0, min(100, math.floor(value + 0.5))))


def ensure_scores(raw: _ScoresResponse | Scores | None) -> Scores:
    """Fill missing sub-scores with 50 and derive overall as their rounded mean.

    A model-supplied overall is kept as authoritative.
    """
    if raw is None:
        raw = _ScoresResponse()
    parts = {
        name: _clamp(v) if (v := getattr(raw, name)) is not None else 50
        for name in ("market", "team", "innovation", "execution")
    }
    overall = raw.overall
    if overall is None:
        overall = sum(parts.values()) / len(parts)
    return Scores(**parts, overall=_clamp(overall))


def default_analysis() -> ProjectAnalysis:
    """Safe result when the completion provider cannot produce an analysis."""
    return ProjectAnalysis(
        summary="Research could not be completed",
        reasoning="Unable to complete research analysis",
        scores=Scores(market=50, team=50, innovation=50, execution=50, overall=50),
    )


def build_research_summary(analysis: ProjectAnalysis) -> str | None:
    summary = analysis.summary or ""
    if analysis.achievements:
        summary += f"\n\nAchievements:\n{analysis.achievements}"
    if analysis.reasoning:
        summary += f"\n\nAnalysis:\n{analysis.reasoning}"
    return summary.strip() or None


def build_success_story_summary(analysis: ProjectAnalysis) -> str | None:
    summary = analysis.summary or ""
    if analysis.achievements:
        summary += f"\n\nKey Achievements:\n{analysis.achievements}"
    if analysis.reasoning:
        summary += f"\n\nWhy This Project Succeeded:\n{analysis.reasoning}"
    if analysis.key_metrics:
        summary += f"\n\nKey Metrics:\n{analysis.key_metrics}"
    if analysis.timeline:
        summary += f"\n\nTimeline:\n{analysis.timeline}"
    if analysis.funding_source and analysis.funding_amount:
        line = f"\n\nFunding: {analysis.funding_amount:,.0f} from {analysis.funding_source}"
        if analysis.funding_round:
            line += f" ({analysis.funding_round})"
        if analysis.funding_date:
            line += f" in {analysis.funding_date}"
        summary += line
    return summary.strip() or None


def analysis_fields(
    analysis: ProjectAnalysis,
    sources: list[str],
    summary: str | None,
) -> dict:
    """The complete outcome/score field set written by one analysis pass."""
    scores = ensure_scores(analysis.scores)
    return {
        "got_funding": analysis.got_funding,
        "funding_amount": analysis.funding_amount,
        "funding_source": analysis.funding_source,
        "became_startup": analysis.became_startup,
        "startup_name": analysis.startup_name,
        "startup_url": analysis.startup_url,
        "has_real_users": analysis.has_real_users,
        "user_count": analysis.user_count,
        "is_still_active": analysis.is_still_active,
        "market_score": scores.market,
        "team_score": scores.team,
        "innovation_score": scores.innovation,
        "execution_score": scores.execution,
        "overall_score": scores.overall,
        "research_summary": summary,
        "research_sources": list(sources),
        "researched_at": datetime.now(),
    }


# ── Analyzer ─────────────────────────────────────────────────────────────────


def _format_findings(results: list[SearchResult], limit: int, chars: int) -> str:
    return "\n---\n".join(f"Source: {r.url}\n{truncate(r.text, chars)}\n" for r in results[:limit])


def _to_analysis(resp: _AnalysisResponse) -> ProjectAnalysis:
    data = resp.model_dump(exclude={"scores"})
    return ProjectAnalysis(**data, scores=ensure_scores(resp.scores))


class Analyzer:
    def __init__(self, llm: CompletionGateway, config: ResearchConfig) -> None:
        self._llm = llm
        self._config = config

    def analyze(self, project: Project, results: list[SearchResult]) -> ProjectAnalysis:
        """Analyze the post-hackathon journey from the first few findings."""
        findings = _format_findings(
            results, self._config.analysis_max_results, self._config.analysis_snippet_chars
        )
        prompt = (
            f"PROJECT: {truncate(project.name, 50)}\n"
            f"DESC: {truncate(project.description or project.tagline, 150)}\n"
            f"HACKATHON: {truncate(project.hackathon_name, 50)}\n\n"
            f"FINDINGS:\n{findings}"
        )
        try:
            resp: _AnalysisResponse = self._llm.complete(
                system_prompt=ANALYST_PROMPT,
                user_prompt=prompt,
                response_model=_AnalysisResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.error("Analysis failed for %s: %s", project.name, e)
            return default_analysis()

        logger.info("Analysis complete for %s", project.name)
        return _to_analysis(resp)

    def analyze_success_story(self, project: Project, results: list[SearchResult]) -> ProjectAnalysis:
        """Richer analysis with funding round/date, metrics and timeline.

        Degrades to ``analyze`` when the richer request fails.
        """
        findings = _format_findings(
            results, self._config.success_max_results, self._config.success_snippet_chars
        )
        status = " ".join(
            s
            for s, flag in (("Funded", project.got_funding), ("Became Startup", project.became_startup))
            if flag
        )
        prompt = (
            f"PROJECT: {truncate(project.name, 50)}\n"
            f"DESC: {truncate(project.description or project.tagline, 200)}\n"
            f"HACKATHON: {truncate(project.hackathon_name, 50)}\n"
            f"CURRENT STATUS: {status or 'Unknown'}\n\n"
            f"RESEARCH FINDINGS:\n{findings}"
        )
        try:
            resp: _SuccessAnalysisResponse = self._llm.complete(
                system_prompt=SUCCESS_ANALYST_PROMPT,
                user_prompt=prompt,
                response_model=_SuccessAnalysisResponse,
            )
        except (ProviderError, SchemaError) as e:
            logger.warning("Success-story analysis failed, using standard analysis: %s", e)
            return self.analyze(project, results)

        return _to_analysis(resp)
