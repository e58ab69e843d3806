"""Markdown renderers for researched projects and match reports."""

from __future__ import annotations

from hackathon_research.models import MatchReport, Project


def _yes_no(value: bool | None) -> str:
    if value is None:
        return "Unknown"
    return "Yes" if value else "No"


def render_project(project: Project) -> str:
    """Render a project and its research outcome as Markdown."""
    lines = [f"# {project.name}", ""]
    if project.tagline:
        lines += [f"_{project.tagline}_", ""]
    lines.append(f"**Hackathon**: {project.hackathon_name or 'Unknown'}")
    if project.prize:
        lines.append(f"**Prize**: {project.prize}")
    if project.technologies:
        lines.append(f"**Tech**: {', '.join(project.technologies)}")
    lines.append("")

    if not project.is_researched:
        lines.append("_Not researched yet._")
        return "\n".join(lines)

    lines.append("## Outcome")
    lines.append("| Signal | Value |")
    lines.append("|--------|-------|")
    funding = _yes_no(project.got_funding)
    if project.got_funding and project.funding_amount:
        funding += f" (${project.funding_amount:,.0f}"
        funding += f" from {project.funding_source})" if project.funding_source else ")"
    startup = _yes_no(project.became_startup)
    if project.became_startup and project.startup_name:
        startup += f" ({project.startup_name})"
    users = _yes_no(project.has_real_users)
    if project.user_count:
        users += f" ({project.user_count:,})"
    for label, value in [
        ("Funding", funding),
        ("Startup", startup),
        ("Real Users", users),
        ("Still Active", _yes_no(project.is_still_active)),
    ]:
        lines.append(f"| {label} | {value} |")
    lines.append("")

    lines.append("## Scores")
    lines.append("| Dimension | Score |")
    lines.append("|-----------|-------|")
    for label, value in [
        ("Market", project.market_score),
        ("Team", project.team_score),
        ("Innovation", project.innovation_score),
        ("Execution", project.execution_score),
        ("**Overall**", project.overall_score),
    ]:
        lines.append(f"| {label} | {value if value is not None else 'N/A'} |")
    lines.append("")

    if project.research_summary:
        lines += ["## Research Summary", project.research_summary, ""]

    if project.research_sources:
        lines.append("## Sources")
        for i, url in enumerate(project.research_sources, 1):
            lines.append(f"[{i}] {url}")
        lines.append("")

    lines.append(f"_Researched {project.researched_at:%Y-%m-%d %H:%M}_")
    return "\n".join(lines)


def render_match(project: Project, report: MatchReport) -> str:
    lines = [
        f"# Investor Fit: {project.name}",
        "",
        f"**Match Score**: {report.match_score}/100 | **Recommendation**: {report.recommendation or 'N/A'}",
        "",
    ]
    if report.is_fallback:
        lines += ["_Low-confidence default report; detailed analysis unavailable._", ""]
    if report.overall_assessment:
        lines += [report.overall_assessment, ""]

    lines.append("## Fit")
    lines.append("| Dimension | Score | Analysis |")
    lines.append("|-----------|-------|----------|")
    for label, fit in [
        ("Sector", report.sector_fit),
        ("Geography", report.geography_fit),
        ("Stage", report.stage_fit),
        ("Team", report.team_fit),
        ("Market", report.market_fit),
    ]:
        lines.append(f"| {label} | {fit.score} | {fit.analysis} |")
    lines.append("")

    for title, findings in (("Strengths", report.strengths), ("Concerns", report.concerns)):
        if findings:
            lines.append(f"## {title}")
            for f in findings:
                lines.append(f"- **{f.title}**: {f.description}")
            lines.append("")

    if report.verification_checks:
        lines.append("## Verification")
        for c in report.verification_checks:
            mark = "x" if c.passed else " "
            lines.append(f"- [{mark}] {c.check}: {c.notes}")
        lines.append("")

    if report.next_steps:
        lines.append("## Next Steps")
        for step in report.next_steps:
            lines.append(f"- {step}")
        lines.append("")

    return "\n".join(lines)
