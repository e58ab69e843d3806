"""Typer CLI for the hackathon research pipeline."""

from __future__ import annotations

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from hackathon_research.config import ResearchConfig
from hackathon_research.errors import ConflictError, NotFoundError
from hackathon_research.models import Project
from hackathon_research.report import render_match, render_project
from hackathon_research.store import SqliteProjectStore

app = typer.Typer(
    name="hackathon-research",
    help="Research what happened to hackathon projects after the event.",
    no_args_is_help=True,
)
console = Console()

Verbose = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose logging")]


def _setup(verbose: bool, offline: bool = False) -> ResearchConfig:
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)
    config = ResearchConfig()
    if offline:
        config.offline_mode = True
    return config


def _pipeline(config: ResearchConfig):
    from hackathon_research.pipeline import ResearchPipeline

    return ResearchPipeline(config)


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Project name")],
    hackathon: Annotated[str, typer.Option("--hackathon", "-h", help="Hackathon name")] = "",
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    tech: Annotated[list[str] | None, typer.Option("--tech", "-t", help="Technology (repeatable)")] = None,
    devpost_url: Annotated[str | None, typer.Option("--url", help="Devpost URL")] = None,
    prize: Annotated[str | None, typer.Option("--prize")] = None,
) -> None:
    """Add a project to the local store."""
    config = ResearchConfig()
    store = SqliteProjectStore(config.db_path)
    try:
        project = store.insert(
            Project(
                name=name,
                hackathon_name=hackathon,
                description=description,
                technologies=tech or [],
                devpost_url=devpost_url,
                prize=prize,
            )
        )
    except ConflictError as e:
        console.print(f"[red]{e} (project {e.owner_id}).[/red]")
        raise typer.Exit(1)
    finally:
        store.close()
    console.print(f"[bold green]Added.[/bold green] Project ID: {project.id}")


@app.command()
def research(
    project_id: Annotated[str, typer.Argument(help="Project ID to research")],
    offline: Annotated[bool, typer.Option("--offline", help="Use cached searches only")] = False,
    verbose: Verbose = False,
) -> None:
    """Run the agentic research pipeline for one project."""
    config = _setup(verbose, offline)
    pipeline = _pipeline(config)
    try:
        with console.status(f"[bold green]Researching {project_id}...", spinner="dots"):
            analysis = pipeline.research_project(project_id)
        project = pipeline.store.find_by_id(project_id)
    except NotFoundError:
        console.print(f"[red]Project '{project_id}' not found.[/red]")
        raise typer.Exit(1)
    finally:
        pipeline.close()

    if analysis is None:
        console.print("[yellow]No results found; nothing was saved.[/yellow]")
        return
    console.print(Markdown(render_project(project)))
    console.print("[bold green]Done.[/bold green]")


@app.command("research-all")
def research_all(
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Max projects")] = None,
    verbose: Verbose = False,
) -> None:
    """Research every unresearched project, one at a time."""
    config = _setup(verbose)
    pipeline = _pipeline(config)
    try:
        counts = pipeline.research_all(limit)
    finally:
        pipeline.close()
    console.print(
        f"[bold green]Done.[/bold green] researched={counts['researched']} "
        f"empty={counts['empty']} failed={counts['failed']}"
    )


@app.command("success-stories")
def success_stories(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max projects")] = 20,
    verbose: Verbose = False,
) -> None:
    """Deep-research funded and startup projects."""
    config = _setup(verbose)
    pipeline = _pipeline(config)
    try:
        counts = pipeline.research_success_stories(limit)
    finally:
        pipeline.close()
    console.print(
        f"[bold green]Done.[/bold green] researched={counts['researched']} "
        f"empty={counts['empty']} failed={counts['failed']}"
    )


@app.command()
def discover(
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Max candidates")] = None,
    verbose: Verbose = False,
) -> None:
    """Discover success stories on the open web."""
    config = _setup(verbose)
    pipeline = _pipeline(config)
    try:
        with console.status("[bold green]Discovering success stories...", spinner="dots"):
            saved = pipeline.discover(limit)
    finally:
        pipeline.close()

    if not saved:
        console.print("[dim]No new success stories found.[/dim]")
        return
    table = Table(title="Discovered Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Hackathon")
    table.add_column("Score", justify="right")
    for p in saved:
        table.add_row(p.id, p.name, p.hackathon_name, str(p.overall_score or ""))
    console.print(table)


@app.command()
def match(
    project_id: Annotated[str, typer.Argument(help="Project ID to screen")],
    verbose: Verbose = False,
) -> None:
    """Score a project against the default investor profile."""
    config = _setup(verbose)
    pipeline = _pipeline(config)
    try:
        report = pipeline.match(project_id)
        project = pipeline.store.find_by_id(project_id)
    except NotFoundError:
        console.print(f"[red]Project '{project_id}' not found.[/red]")
        raise typer.Exit(1)
    finally:
        pipeline.close()
    console.print(Markdown(render_match(project, report)))


@app.command()
def show(
    project_id: Annotated[str, typer.Argument(help="Project ID to display")],
) -> None:
    """Display a project and its research outcome."""
    config = ResearchConfig()
    store = SqliteProjectStore(config.db_path)
    try:
        project = store.find_by_id(project_id)
    finally:
        store.close()

    if project is None:
        console.print(f"[red]Project '{project_id}' not found.[/red]")
        raise typer.Exit(1)

    console.print(Markdown(render_project(project)))


@app.command("list")
def list_projects(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max results")] = 20,
) -> None:
    """List stored projects."""
    config = ResearchConfig()
    store = SqliteProjectStore(config.db_path)
    try:
        projects = store.list_projects(limit)
    finally:
        store.close()

    if not projects:
        console.print("[dim]No projects found.[/dim]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Hackathon")
    table.add_column("Funded", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Researched")

    for p in projects:
        funded = {True: "[green]yes[/green]", False: "[red]no[/red]"}.get(p.got_funding, "")
        table.add_row(
            p.id,
            p.name,
            p.hackathon_name,
            funded,
            str(p.overall_score) if p.overall_score is not None else "",
            f"{p.researched_at:%Y-%m-%d}" if p.researched_at else "",
        )

    console.print(table)


if __name__ == "__main__":
    app()
