"""Domain models for the hackathon research pipeline."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ── Enums ────────────────────────────────────────────────────────────────────


class SearchMode(StrEnum):
    AUTO = "auto"
    NEURAL = "neural"
    KEYWORD = "keyword"


class Category(StrEnum):
    AI_ML = "ai-ml"
    BLOCKCHAIN = "blockchain"
    MOBILE = "mobile"
    HARDWARE = "hardware"
    GENERAL = "general"


class ActionType(StrEnum):
    CONTINUE = "continue"
    REFINE = "refine"
    DEEP_DIVE = "deep_dive"
    COMPLETE = "complete"


class LoopOutcome(StrEnum):
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"
    ABANDONED = "abandoned"


class SuccessSignal(StrEnum):
    FUNDING = "funding"
    TRACTION = "traction"
    ACQUISITION = "acquisition"


# ── Project record ───────────────────────────────────────────────────────────


def _new_id() -> str:
    return uuid.uuid4().hex


class Project(BaseModel):
    """A hackathon project row in the shared project store."""

    id: str = Field(default_factory=_new_id)
    name: str
    tagline: str | None = None
    description: str | None = None
    technologies: list[str] = Field(default_factory=list)
    hackathon_name: str = ""
    hackathon_date: str | None = None
    prize: str | None = None

    devpost_url: str | None = None
    github_url: str | None = None
    demo_url: str | None = None
    video_url: str | None = None
    image_url: str | None = None

    # Outcome fields, written only by the research pipeline
    got_funding: bool | None = None
    funding_amount: float | None = None
    funding_source: str | None = None
    became_startup: bool | None = None
    startup_name: str | None = None
    startup_url: str | None = None
    has_real_users: bool | None = None
    user_count: int | None = None
    is_still_active: bool | None = None

    market_score: int | None = None
    team_score: int | None = None
    innovation_score: int | None = None
    execution_score: int | None = None
    overall_score: int | None = None

    research_summary: str | None = None
    research_sources: list[str] = Field(default_factory=list)
    researched_at: datetime | None = None

    source_type: str | None = None
    origin_url: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = None

    @property
    def is_researched(self) -> bool:
        return self.researched_at is not None


# Fields set together by one successful analysis pass.
ANALYSIS_FIELDS: tuple[str, ...] = (
    "got_funding",
    "funding_amount",
    "funding_source",
    "became_startup",
    "startup_name",
    "startup_url",
    "has_real_users",
    "user_count",
    "is_still_active",
    "market_score",
    "team_score",
    "innovation_score",
    "execution_score",
    "overall_score",
    "research_summary",
    "research_sources",
    "researched_at",
)


# ── Analysis output ──────────────────────────────────────────────────────────


class Scores(BaseModel):
    market: int = 50
    team: int = 50
    innovation: int = 50
    execution: int = 50
    overall: int | None = None


class ProjectAnalysis(BaseModel):
    """Transient analysis result, merged into a Project on persistence."""

    got_funding: bool = False
    funding_amount: float | None = None
    funding_source: str | None = None
    funding_round: str | None = None
    funding_date: str | None = None
    became_startup: bool = False
    startup_name: str | None = None
    startup_url: str | None = None
    has_real_users: bool = False
    user_count: int | None = None
    is_still_active: bool = False
    summary: str = ""
    achievements: str | None = None
    reasoning: str | None = None
    key_metrics: str | None = None
    timeline: str | None = None
    scores: Scores = Field(default_factory=Scores)


# ── Loop state ───────────────────────────────────────────────────────────────


class Evaluation(BaseModel):
    quality: int = 0
    feedback: str = ""
    should_refine: bool = True


class NextAction(BaseModel):
    action: ActionType = ActionType.CONTINUE
    reason: str = ""


class QueryMemoryEntry(BaseModel):
    category: Category
    successful_queries: set[str] = Field(default_factory=set)
    failed_queries: set[str] = Field(default_factory=set)
    context: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


# ── Discovery ────────────────────────────────────────────────────────────────


class Candidate(BaseModel):
    """An unconfirmed project-like record extracted from an open-web result."""

    name: str
    hackathon_name: str
    hackathon_date: str | None = None
    source_url: str
    source_title: str | None = None
    source_domain: str | None = None
    description: str | None = None
    snippet: str | None = None
    devpost_url: str | None = None
    image_url: str | None = None
    signal: SuccessSignal | None = None
    technologies: list[str] = Field(default_factory=list)

    @property
    def dedupe_key(self) -> str:
        return f"{self.name.lower()}|{self.hackathon_name.lower()}"


# ── Investor fit ─────────────────────────────────────────────────────────────


class InvestorProfile(BaseModel):
    id: str
    name: str
    description: str = ""
    focus_geography: list[str] = Field(default_factory=list)
    focus_sectors: list[str] = Field(default_factory=list)
    investment_stages: list[str] = Field(default_factory=list)
    typical_check_size: str = ""
    philosophy: str = ""


class FitScore(BaseModel):
    score: int = Field(default=50, ge=0, le=100)
    analysis: str = ""


class Finding(BaseModel):
    title: str
    description: str = ""


class VerificationCheck(BaseModel):
    check: str
    passed: bool = False
    notes: str = ""


class MatchReport(BaseModel):
    match_score: int = Field(ge=0, le=100)
    overall_assessment: str = ""
    strengths: list[Finding] = Field(default_factory=list)
    concerns: list[Finding] = Field(default_factory=list)
    sector_fit: FitScore = Field(default_factory=FitScore)
    geography_fit: FitScore = Field(default_factory=FitScore)
    stage_fit: FitScore = Field(default_factory=FitScore)
    team_fit: FitScore = Field(default_factory=FitScore)
    market_fit: FitScore = Field(default_factory=FitScore)
    recommendation: str = ""
    verification_checks: list[VerificationCheck] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    is_fallback: bool = False
