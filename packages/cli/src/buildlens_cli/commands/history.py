"""history command — display recorded builds from the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()

_OUTCOME_STYLE = {
    "SUCCESS": "green",
    "FAILURE": "red",
    "UNSTABLE": "yellow",
    "ABORTED": "dim",
    "NOT_BUILT": "dim",
}


def _count(value: int | None) -> str:
    return "—" if value is None else str(value)


def _percent(value: float | None) -> str:
    return "—" if value is None else f"{value:.1f}%"


@click.command("history")
@click.option("--project", default=None, help="Project name. Defaults to 'project' in the config file.")
@click.option(
    "--limit", type=click.IntRange(min=1), default=20, show_default=True, help="Maximum number of builds to show."
)
@click.pass_context
def history_cmd(ctx, project: str | None, limit: int):
    """Show recorded builds for a project, newest first."""
    from buildlens_store.noop import NoOpStore
    from buildlens_cli.records import resolve_project

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError("No store configured. Set 'store: sqlite' or 'store: gist' in .buildlens.yml.")

    project = resolve_project(ctx, project)
    entries = store.list_builds(project)
    if not entries:
        console.print("[yellow]No builds recorded.[/yellow]")
        return

    entries = list(reversed(entries))[:limit]

    table = Table(title=f"Build History — {project}", show_header=True, header_style="bold cyan")
    table.add_column("Build", style="bold", no_wrap=True)
    table.add_column("Outcome", no_wrap=True)
    table.add_column("PMD", justify="right")
    table.add_column("FindBugs", justify="right")
    table.add_column("Checkstyle", justify="right")
    table.add_column("Line", justify="right")
    table.add_column("Branch", justify="right")
    table.add_column("Recorded At")

    for e in entries:
        style = _OUTCOME_STYLE.get(e.outcome, "white")
        table.add_row(
            f"#{e.number}",
            f"[{style}]{e.outcome}[/{style}]",
            _count(e.warnings.get("pmd")),
            _count(e.warnings.get("bug_patterns")),
            _count(e.warnings.get("style")),
            _percent(e.coverage.get("line")),
            _percent(e.coverage.get("branch")),
            e.recorded_at[:16].replace("T", " "),
        )

    console.print(table)
