"""Typer-based CLI for RepoLens repository analysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__, config_manager
from .orchestrator import AnalysisOrchestrator, repository_id_for
from .pr_impact import PrChangedFile
from .storage import AnalysisCache, AnalysisNotFoundError, RepositoryManager

app = typer.Typer(
    help="RepoLens: symbols, dependency graph, search and PR impact for local repositories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"RepoLens v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details to stderr."),
):
    """RepoLens: heuristic multi-language repository analysis."""
    _configure_logging(verbose)


def _orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator(cache=AnalysisCache())


def _current_repository(rm: RepositoryManager) -> str:
    current = rm.get_current_repository()
    if not current:
        raise typer.BadParameter("No repository selected. Run 'repolens analyze <path>' or 'repolens use <name>'.")
    return current


def _fail(message: str) -> None:
    console.print(f"[red]✗[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _split_kinds(kinds: Optional[str]) -> List[str]:
    if not kinds:
        return []
    return [k.strip() for k in kinds.split(",") if k.strip()]


# ===================================================================
# Analysis
# ===================================================================

@app.command("analyze")
def analyze(
    repo_path: Path = typer.Argument(..., exists=True, file_okay=False, help="Path to the repository root."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Explicit repository id."),
    url: str = typer.Option("", "--url", help="Repository URL, used for the id and the overview."),
    incremental: bool = typer.Option(
        False, "--incremental", "-i", help="Reuse symbols of files unchanged since the last analysis."
    ),
):
    """Scan, parse and index a repository, then make it the current one."""
    resolved = repo_path.resolve()
    repo_id = name or (repository_id_for(url) if url else resolved.name.replace(" ", "_"))

    orchestrator = _orchestrator()
    console.print(f"[bold cyan]Analyzing[/bold cyan] {escape(str(resolved))} as '{escape(repo_id)}'...")
    try:
        analysis = orchestrator.analyze(repo_id, resolved, repo_url=url, incremental=incremental)
    except (OSError, AnalysisNotFoundError) as exc:
        _fail(f"Analysis failed: {exc}")

    rm = RepositoryManager()
    rm.register(repo_id, resolved, url)
    rm.set_current_repository(repo_id)

    overview = analysis.overview
    console.print(f"[green]✓[/green] Analyzed '{escape(repo_id)}'")
    console.print(
        f"Files: {overview.total_files} | Lines: {overview.total_lines} | "
        f"Symbols: {len(analysis.symbols)} | Nodes: {len(analysis.graph.nodes)} | "
        f"Edges: {len(analysis.graph.edges)}"
    )


@app.command("overview")
def overview(
    name: Optional[str] = typer.Argument(None, help="Repository id (defaults to the current one)."),
    as_json: bool = typer.Option(False, "--json", help="Print the overview as JSON."),
):
    """Show the overview of an analyzed repository."""
    repo_id = name or _current_repository(RepositoryManager())
    try:
        data = _orchestrator().overview(repo_id)
    except AnalysisNotFoundError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps(data.to_dict(), indent=2))
        return

    console.print(Panel.fit(escape(data.summary), title=f"[bold]{escape(data.name)}[/bold]"))
    table = Table(title="Languages", show_header=True)
    table.add_column("Language", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Lines", justify="right")
    for language, count in data.language_breakdown.items():
        table.add_row(escape(language), str(count), str(data.language_line_breakdown.get(language, 0)))
    console.print(table)

    console.print(f"Complexity: [bold]{data.complexity}[/bold]")
    if data.detected_frameworks:
        console.print(f"Frameworks: {escape(', '.join(data.detected_frameworks))}")
    if data.entry_points:
        console.print(f"Entry points: {escape(', '.join(data.entry_points))}")
    if data.key_types:
        console.print("\n[bold]Key types[/bold]")
        for key_type in data.key_types:
            console.print(
                f"  • {escape(key_type.name)} ({key_type.kind}, {key_type.member_count} members) "
                f"in {escape(key_type.file_path)}"
            )
    if data.external_dependencies:
        console.print(f"\nDependencies: {escape(', '.join(data.external_dependencies))}")


# ===================================================================
# Search
# ===================================================================

@app.command("search")
def search(
    query: str = typer.Argument(..., help="Search terms."),
    kinds: Optional[str] = typer.Option(None, "--kinds", "-k", help="Comma-separated kinds, e.g. Class,Method."),
    skip: int = typer.Option(0, min=0, help="Results to skip."),
    take: int = typer.Option(20, min=1, max=200, help="Results to show."),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
):
    """Ranked search over symbols and files of the current repository."""
    repo_id = _current_repository(RepositoryManager())
    try:
        page = _orchestrator().search_page(repo_id, query, _split_kinds(kinds), skip, take)
    except AnalysisNotFoundError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps(page.to_dict(), indent=2))
        return
    if not page.results:
        typer.echo("No matches found.")
        raise typer.Exit(code=0)

    for item in page.results:
        location = f"{item.file_path}:{item.line}" if item.line else item.file_path
        typer.echo(f"[{item.kind}] {item.symbol}  score={item.score:.3f}")
        typer.echo(f"  {location}")
    typer.echo(f"\nShowing {len(page.results)} of {page.total_results} (skip={page.skip})")


@app.command("suggest")
def suggest(
    prefix: str = typer.Argument(..., help="Name prefix."),
    limit: int = typer.Option(10, min=1, max=50, help="Maximum suggestions."),
):
    """Complete symbol and file names of the current repository."""
    repo_id = _current_repository(RepositoryManager())
    try:
        suggestions = _orchestrator().suggest(repo_id, prefix, limit)
    except AnalysisNotFoundError as exc:
        _fail(str(exc))

    if not suggestions:
        typer.echo("No suggestions.")
        raise typer.Exit(code=0)
    for item in suggestions:
        typer.echo(f"{item.text}  ({item.kind}) {item.file_path}")


@app.command("kinds")
def kinds():
    """List the searchable kinds of the current repository."""
    repo_id = _current_repository(RepositoryManager())
    try:
        available = _orchestrator().available_kinds(repo_id)
    except AnalysisNotFoundError as exc:
        _fail(str(exc))
    for kind in available:
        typer.echo(kind)


# ===================================================================
# PR impact
# ===================================================================

def _load_changes(path: Path) -> List[PrChangedFile]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON in {path}: {exc}")
    if isinstance(payload, dict):
        payload = payload.get("files", [])
    if not isinstance(payload, list):
        raise typer.BadParameter("Expected a list of changed files or an object with a 'files' list.")

    changes = []
    for entry in payload:
        if isinstance(entry, str):
            changes.append(PrChangedFile(file_path=entry))
        elif isinstance(entry, dict) and entry.get("file_path"):
            changes.append(PrChangedFile.from_dict(entry))
        else:
            raise typer.BadParameter(f"Changed file entry needs a 'file_path': {entry!r}")
    return changes


@app.command("pr-impact")
def pr_impact(
    changes_json: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of changed files."),
    pr_number: int = typer.Option(..., "--pr", help="Pull request number."),
    as_json: bool = typer.Option(False, "--json", help="Print the impact report as JSON."),
):
    """Compute the blast radius of a pull request against the current repository."""
    repo_id = _current_repository(RepositoryManager())
    changes = _load_changes(changes_json)
    try:
        report = _orchestrator().pr_impact(repo_id, pr_number, changes)
    except AnalysisNotFoundError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    console.print(
        f"[bold]PR #{report.pr_number}[/bold]: {report.total_files_changed} files "
        f"(+{report.total_additions}/-{report.total_deletions})"
    )
    table = Table(show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Language")
    table.add_column("Symbols", justify="right")
    for item in report.changed_files:
        table.add_row(escape(item.file_path), item.status, escape(item.language or "-"), str(item.symbol_count))
    console.print(table)

    console.print(f"Affected symbols: {len(report.affected_symbols)}")
    console.print(f"Affected edges: {len(report.affected_edges)}")
    if report.languages_touched:
        console.print(f"Languages: {escape(', '.join(report.languages_touched))}")
    if report.downstream_files:
        console.print("\n[bold yellow]Downstream files[/bold yellow]")
        for path in report.downstream_files:
            console.print(f"  • {escape(path)}")
    else:
        console.print("Downstream files: none")


# ===================================================================
# Repository selection
# ===================================================================

@app.command("list")
def list_repositories():
    """List analyzed repositories."""
    rm = RepositoryManager()
    cached = set(AnalysisCache().cached_ids())
    names = sorted(set(rm.list_repositories()) | cached)
    current = rm.get_current_repository()

    if not names:
        typer.echo("No repositories analyzed yet.")
        raise typer.Exit(code=0)

    for repo in names:
        marker = "*" if repo == current else " "
        location = rm.location(repo)
        suffix = f"  {location['path']}" if location else ""
        typer.echo(f"{marker} {repo}{suffix}")


@app.command("use")
def use(name: str = typer.Argument(..., help="Repository id to select.")):
    """Switch the current repository."""
    if not AnalysisCache().has(name):
        raise typer.BadParameter(f"Repository '{name}' has not been analyzed.")
    RepositoryManager().set_current_repository(name)
    typer.echo(f"Using repository '{name}'.")


@app.command("current")
def current():
    """Print the current repository id."""
    typer.echo(RepositoryManager().get_current_repository() or "No repository selected")


@app.command("delete")
def delete(name: str = typer.Argument(..., help="Repository id to delete.")):
    """Delete the cached analysis of a repository."""
    removed = _orchestrator().delete(name)
    forgotten = RepositoryManager().forget(name)
    if not (removed or forgotten):
        raise typer.BadParameter(f"Repository '{name}' not found.")
    typer.echo(f"Deleted repository '{name}'.")


# ===================================================================
# Configuration
# ===================================================================

_CONFIG_DEFAULTS = {
    "analysis": config_manager.DEFAULT_ANALYSIS_CONFIG,
    "search": config_manager.DEFAULT_SEARCH_CONFIG,
}


@app.command("show-config")
def show_config():
    """Show the effective analysis and search settings."""
    sections = {
        "analysis": config_manager.load_analysis_config(),
        "search": config_manager.load_search_config(),
    }
    for section, values in sections.items():
        typer.echo(typer.style(f"[{section}]", bold=True))
        for key, value in values.items():
            typer.echo(f"  {key} = {value}")
    typer.echo(f"Config    {typer.style(str(config_manager.config_file()), dim=True)}")


@app.command("set-config")
def set_config(
    key: str = typer.Argument(..., help="Setting as section.key, e.g. search.candidate_window"),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist one setting to config.toml; applies to the next run."""
    section, _, name = key.partition(".")
    defaults = _CONFIG_DEFAULTS.get(section)
    if defaults is None or name not in defaults:
        raise typer.BadParameter(
            f"Unknown setting '{key}'. Choose from: "
            + ", ".join(f"{s}.{k}" for s, d in _CONFIG_DEFAULTS.items() for k in d)
        )
    try:
        converted = type(defaults[name])(value)
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a valid {type(defaults[name]).__name__}.")

    loader = config_manager.load_analysis_config if section == "analysis" else config_manager.load_search_config
    values = loader()
    values[name] = converted
    if not config_manager.save_section(section, values):
        _fail("Failed to save configuration!")
    console.print(f"[green]✓[/green] {escape(key)} = {converted}")


if __name__ == "__main__":
    app()
