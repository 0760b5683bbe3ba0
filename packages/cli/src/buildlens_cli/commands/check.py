"""check command — fail the build if the code analysis worsens."""

from __future__ import annotations

import dataclasses
import json

import click
from rich.console import Console

from buildlens_core.checker import evaluate
from buildlens_core.models import Outcome, RegressionFinding, RegressionVerdict
from buildlens_cli.records import history_from_entries, record_to_entry, resolve_project

console = Console()


def _finding_to_dict(f: RegressionFinding) -> dict:
    # Warning kinds are counts; only coverage values are fractional.
    cast = float if f.check_kind.is_coverage else int

    def number(value):
        return None if value is None else cast(value)

    return {
        "check": f.check_kind.value,
        "regressed": f.regressed,
        "message": f.message,
        "baseline": f.baseline_number,
        "delta": number(f.delta),
        "current": number(f.current_value),
        "baseline_value": number(f.baseline_value),
    }


def _verdict_to_dict(build_number: int, verdict: RegressionVerdict) -> dict:
    return {
        "build": build_number,
        "build_should_fail": verdict.build_should_fail,
        "findings": [_finding_to_dict(f) for f in verdict.findings],
        "log_lines": list(verdict.log_lines),
    }


def _print_verdict(build_number: int, verdict: RegressionVerdict, output_format: str) -> None:
    if output_format == "json":
        click.echo(json.dumps(_verdict_to_dict(build_number, verdict), indent=2))
        return

    if output_format == "github":
        # GitHub Actions workflow commands: one annotation per finding.
        for f in verdict.findings:
            level = "error" if f.regressed else "notice"
            click.echo(f"::{level} ::{f.message}")
        return

    for f in verdict.findings:
        style = "red" if f.regressed else "yellow"
        console.print(f.message, style=style, markup=False, highlight=False, soft_wrap=True)
    if verdict.build_should_fail:
        console.print(f"[bold red]Build #{build_number} regressed: {len(verdict.regressions)} check(s) failed.[/bold red]")
    else:
        console.print(f"[green]No regressions detected for build #{build_number}.[/green]")


@click.command("check")
@click.option("--project", default=None, help="Project name. Defaults to 'project' in the config file.")
@click.option("--number", type=int, default=None, help="Build number to check. Defaults to the latest recorded build.")
@click.option("--pmd/--no-pmd", "check_pmd", default=None, help="Compare PMD warning counts. Overrides config file.")
@click.option(
    "--bug-patterns/--no-bug-patterns",
    "check_bug_patterns",
    default=None,
    help="Compare FindBugs/SpotBugs warning counts. Overrides config file.",
)
@click.option(
    "--style/--no-style", "check_style", default=None, help="Compare Checkstyle warning counts. Overrides config file."
)
@click.option(
    "--coverage/--no-coverage",
    "check_coverage",
    default=None,
    help="Compare line and branch coverage. Overrides config file.",
)
@click.option(
    "--threshold",
    "coverage_threshold",
    type=float,
    default=None,
    help="Coverage above this percentage never fails the build. Overrides config file (default 85).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "github", "json"]),
    default="text",
    show_default=True,
    help="Output format. 'github' emits GitHub Actions annotations.",
)
@click.option(
    "--no-update",
    is_flag=True,
    help="Do not mark a regressed build as FAILURE in the store.",
)
@click.pass_context
def check_cmd(
    ctx,
    project: str | None,
    number: int | None,
    check_pmd: bool | None,
    check_bug_patterns: bool | None,
    check_style: bool | None,
    check_coverage: bool | None,
    coverage_threshold: float | None,
    output_format: str,
    no_update: bool,
):
    """Compare a build against the latest successful build before it.

    Exits with status 1 when any enabled check regressed. A regressed build is
    stored as FAILURE so it is never used as a baseline by later checks.
    """
    from buildlens_core.config import build_check_configuration
    from buildlens_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError("No store configured. Set 'store: sqlite' or 'store: gist' in .buildlens.yml.")

    project = resolve_project(ctx, project)
    config = dict(ctx.obj.get("config") or {})
    overrides = {
        "check_pmd": check_pmd,
        "check_bug_patterns": check_bug_patterns,
        "check_style": check_style,
        "check_coverage": check_coverage,
        "coverage_threshold": coverage_threshold,
    }
    config.update({k: v for k, v in overrides.items() if v is not None})
    try:
        check_config = build_check_configuration(config)
    except ValueError as e:
        raise click.UsageError(str(e))

    entries = store.list_builds(project)
    if store.last_read_error is not None:
        # Without a readable history there is no baseline, and no baseline means no finding.
        console.print(
            f"Could not read build history ({store.last_read_error}). Regression check skipped.",
            style="yellow",
            markup=False,
            soft_wrap=True,
        )
        return

    history = history_from_entries(entries)
    build = history.latest() if number is None else history.get(number)
    if build is None:
        which = "No builds recorded" if number is None else f"Build #{number} is not recorded"
        raise click.ClickException(f"{which} for project {project!r}. Run `buildlens record` first.")

    verdict = evaluate(build, history, check_config)
    _print_verdict(build.number, verdict, output_format)

    if not verdict.build_should_fail:
        return

    if not no_update and build.outcome is not Outcome.FAILURE:
        store.save(record_to_entry(dataclasses.replace(build, outcome=Outcome.FAILURE)))
    ctx.exit(1)
