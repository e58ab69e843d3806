"""Investor fit scoring for a single project."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from hackathon_research.errors import ProviderError, SchemaError
from hackathon_research.llm import MATCH_PROMPT, CompletionGateway
from hackathon_research.models import FitScore, Finding, InvestorProfile, MatchReport, Project, VerificationCheck

logger = logging.getLogger(__name__)

DEFAULT_INVESTOR = InvestorProfile(
    id="e2vc",
    name="e2.vc",
    description="Early-stage venture capital focused on Emerging Europe",
    focus_geography=["Emerging Europe", "Poland", "Bulgaria", "Estonia", "Turkey"],
    focus_sectors=["AI", "Dev Tools", "SaaS", "Gaming", "Healthtech"],
    investment_stages=["Pre-seed", "Seed"],
    typical_check_size="$1M",
    philosophy="Founder-first approach, global-first mindset, deep expertise in Emerging Europe",
)


class _MatchResponse(BaseModel):
    match_score: int = Field(ge=0, le=100, description="Overall match score from 0-100")
    overall_assessment: str = Field(description="A summary paragraph of the analysis")
    strengths: list[Finding] = Field(default_factory=list)
    concerns: list[Finding] = Field(default_factory=list)
    sector_fit: FitScore
    geography_fit: FitScore
    stage_fit: FitScore
    team_fit: FitScore
    market_fit: FitScore
    recommendation: str = Field(description="Final recommendation: Invest, Watch, or Pass")
    verification_checks: list[VerificationCheck] = Field(
        default_factory=list,
        description="Specific criteria verified against the investment thesis",
    )
    next_steps: list[str] = Field(default_factory=list)


def fallback_report(project: Project, investor: InvestorProfile) -> MatchReport:
    """Fixed low-confidence report used when the model cannot answer."""
    strengths = []
    if project.prize:
        strengths.append(
            Finding(
                title="Hackathon Winner",
                description=(
                    "The project has demonstrated technical capability and resourcefulness by "
                    f"winning a hackathon, which aligns with {investor.name}'s founder-first approach."
                ),
            )
        )
    return MatchReport(
        match_score=60,
        overall_assessment=(
            f"Basic analysis indicates moderate potential for {investor.name}. The project shows "
            "promise but a detailed analysis is currently unavailable."
        ),
        strengths=strengths,
        sector_fit=FitScore(score=50, analysis="Moderate sector alignment. Unable to perform detailed analysis."),
        geography_fit=FitScore(score=50, analysis="Moderate geographic fit. Unable to perform detailed analysis."),
        stage_fit=FitScore(
            score=70,
            analysis=(
                "Reasonable stage fit. As a hackathon project it is likely at pre-seed/seed stage, "
                f"suitable for {investor.name}'s investment profile."
            ),
        ),
        team_fit=FitScore(
            score=60,
            analysis="Moderate team fit. Hackathon teams typically demonstrate technical capability.",
        ),
        market_fit=FitScore(score=50, analysis="Moderate market potential. Unable to perform detailed analysis."),
        recommendation="Unable to generate a detailed recommendation.",
        next_steps=[
            "Retry the match analysis",
            "Check the completion provider configuration",
            "Check project details are complete",
        ],
        is_fallback=True,
    )


def _match_prompt(project: Project, investor: InvestorProfile) -> str:
    return (
        "--- INVESTOR PROFILE ---\n"
        f"Name: {investor.name}\n"
        f"Description: {investor.description}\n"
        f"Focus Sectors: {', '.join(investor.focus_sectors)}\n"
        f"Focus Geography: {', '.join(investor.focus_geography)}\n"
        f"Stage: {', '.join(investor.investment_stages)}\n"
        f"Typical Check: {investor.typical_check_size}\n"
        f"Philosophy: {investor.philosophy}\n\n"
        "--- PROJECT DATA ---\n"
        f"Name: {project.name}\n"
        f"Tagline: {project.tagline or 'N/A'}\n"
        f"Description: {project.description or 'N/A'}\n"
        f"Hackathon: {project.hackathon_name or 'Unknown'}\n"
        f"Prize Won: {project.prize or 'Unknown'}\n"
        f"Tech Stack: {', '.join(project.technologies) or 'Unknown'}\n"
        f"Research Summary: {project.research_summary or 'No deep research available yet.'}\n"
        f"Active Status: {'Active' if project.is_still_active else 'Inactive/Unknown'}"
    )


def analyze_match(
    project: Project,
    llm: CompletionGateway,
    investor: InvestorProfile = DEFAULT_INVESTOR,
) -> MatchReport:
    """Screen a project against an investor thesis; never raises on model failure."""
    try:
        resp: _MatchResponse = llm.complete(
            system_prompt=MATCH_PROMPT,
            user_prompt=_match_prompt(project, investor),
            response_model=_MatchResponse,
        )
    except (ProviderError, SchemaError) as e:
        logger.warning("Match analysis fell back for %s: %s", project.name, e)
        return fallback_report(project, investor)

    logger.info("Match score for %s: %d", project.name, resp.match_score)
    return MatchReport(**resp.model_dump())
