"""Tests for hackathon_research.report."""

from __future__ import annotations

from datetime import datetime

from hackathon_research.match import DEFAULT_INVESTOR, fallback_report
from hackathon_research.models import Project
from hackathon_research.report import render_match, render_project


def _researched() -> Project:
    return Project(
        name="Carrot",
        tagline="Meal planning",
        hackathon_name="HackMIT 2016",
        technologies=["TensorFlow", "React"],
        got_funding=True,
        funding_amount=2_000_000,
        funding_source="Y Combinator",
        became_startup=True,
        startup_name="Carrot Inc",
        has_real_users=True,
        user_count=40000,
        is_still_active=False,
        market_score=70,
        team_score=80,
        innovation_score=65,
        execution_score=76,
        overall_score=73,
        research_summary="Carrot joined YC.",
        research_sources=["https://techcrunch.com/carrot"],
        researched_at=datetime(2025, 5, 1, 12, 30),
    )


def test_render_researched_project():
    md = render_project(_researched())
    assert md.startswith("# Carrot")
    assert "| Funding | Yes ($2,000,000 from Y Combinator) |" in md
    assert "| Startup | Yes (Carrot Inc) |" in md
    assert "| Real Users | Yes (40,000) |" in md
    assert "| **Overall** | 73 |" in md
    assert "[1] https://techcrunch.com/carrot" in md
    assert "_Researched 2025-05-01 12:30_" in md


def test_render_unresearched_project():
    md = render_project(Project(name="Turnip", hackathon_name="TreeHacks 2019"))
    assert "_Not researched yet._" in md
    assert "## Scores" not in md


def test_render_fallback_match():
    project = Project(name="Carrot", prize="Grand Prize")
    md = render_match(project, fallback_report(project, DEFAULT_INVESTOR))
    assert "**Match Score**: 60/100" in md
    assert "Low-confidence default report" in md
    assert "| Stage | 70 |" in md
    assert "**Hackathon Winner**" in md
