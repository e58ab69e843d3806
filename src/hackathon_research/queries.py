"""Deterministic search queries and prompt labels."""

from __future__ import annotations

from hackathon_research.models import Project

# Broad open-web queries for success-story discovery.
DISCOVERY_QUERIES: tuple[str, ...] = (
    "hackathon project raised seed funding 2024 2025",
    "hackathon winner startup launched product users",
    "hackathon project became startup raised funding",
    "hackathon demo product launched real users",
    "hackathon project acquired company",
    "hackathon winner YC Y Combinator",
    "hackathon project series A funding",
    "hackathon built app startup users",
)


def truncate(text: str | None, max_length: int = 200) -> str:
    """Clip text for prompts; missing text renders as 'N/A'."""
    if not text:
        return "N/A"
    return text[:max_length] + "..." if len(text) > max_length else text


def fallback_plan(project: Project) -> list[str]:
    """Template research plan used when the planner model is unavailable."""
    name = project.name
    return [
        f"{name} funding raised",
        f"{name} startup company",
        f"{name} users growth",
        f"{name} founders update",
    ]


def fallback_refinement(project: Project, query: str) -> str:
    return f"{project.name} {query}"


def success_story_queries(project: Project) -> list[str]:
    """Focused queries for re-researching a known success story."""
    name = truncate(project.name, 30)
    return [
        f"{name} funding round amount",
        f"{name} startup milestones",
        f"{name} users growth",
        f"{name} success story",
    ]


def context_query(name: str, hackathon_name: str) -> str:
    """Narrow follow-up query that corroborates a discovery candidate."""
    return f"{name} {hackathon_name} funding success milestone"


def project_label(project: Project, description_chars: int = 150) -> str:
    """Return the labelled project block used at the top of LLM prompts."""
    lines = [
        f"PROJECT: {truncate(project.name, 50)}",
        f"DESCRIPTION: {truncate(project.description or project.tagline, description_chars)}",
        f"TECHNOLOGIES: {', '.join(project.technologies) or 'N/A'}",
        f"HACKATHON: {truncate(project.hackathon_name, 50)}",
    ]
    return "\n".join(lines)
