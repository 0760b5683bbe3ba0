"""record command — store a completed build and its analysis summaries."""

from __future__ import annotations

import click
from rich.console import Console

from buildlens_core.models import BuildRecord, CheckKind, CoverageSummary, Outcome, WarningSummary
from buildlens_cli.records import record_to_entry, resolve_project

console = Console()

_OUTCOMES = [o.value for o in Outcome]


def _check_percentage(ctx, param, value: float | None) -> float | None:
    if value is not None and not 0.0 <= value <= 100.0:
        raise click.BadParameter("must be a percentage between 0 and 100")
    return value


@click.command("record")
@click.option("--project", default=None, help="Project name. Defaults to 'project' in the config file.")
@click.option("--number", type=int, required=True, help="Build number (strictly increasing per project).")
@click.option(
    "--outcome",
    type=click.Choice(_OUTCOMES, case_sensitive=False),
    default="SUCCESS",
    show_default=True,
    help="Outcome of the build as reported by the build system.",
)
@click.option("--pmd", type=click.IntRange(min=0), default=None, help="Number of PMD warnings.")
@click.option("--bug-patterns", type=click.IntRange(min=0), default=None, help="Number of FindBugs/SpotBugs warnings.")
@click.option("--style", type=click.IntRange(min=0), default=None, help="Number of Checkstyle warnings.")
@click.option("--line-coverage", type=float, default=None, callback=_check_percentage, help="Line coverage in percent.")
@click.option(
    "--branch-coverage", type=float, default=None, callback=_check_percentage, help="Branch coverage in percent."
)
@click.pass_context
def record_cmd(
    ctx,
    project: str | None,
    number: int,
    outcome: str,
    pmd: int | None,
    bug_patterns: int | None,
    style: int | None,
    line_coverage: float | None,
    branch_coverage: float | None,
):
    """Record a completed build in the history store.

    Only pass the summaries your build actually produced: a tool that did not
    run must be left out, not reported as zero.
    """
    project = resolve_project(ctx, project)

    warnings = {
        kind: WarningSummary(count)
        for kind, count in ((CheckKind.PMD, pmd), (CheckKind.BUG_PATTERN, bug_patterns), (CheckKind.STYLE, style))
        if count is not None
    }
    percentages = {
        kind: value
        for kind, value in ((CheckKind.COVERAGE_LINE, line_coverage), (CheckKind.COVERAGE_BRANCH, branch_coverage))
        if value is not None
    }
    record = BuildRecord(
        number=number,
        outcome=Outcome(outcome.upper()),
        warnings=warnings,
        coverage=CoverageSummary(percentages) if percentages else None,
        project=project,
    )

    store = ctx.obj.get("store") if ctx.obj else None
    if store is not None:
        store.save(record_to_entry(record))
    console.print(f"Recorded build [bold]#{number}[/bold] of [cyan]{project}[/cyan] ({record.outcome.value}).")
