"""Helpers shared by the commands: store entry to core record mapping, project lookup.

The CLI layer owns this mapping: buildlens_core has no store knowledge and
buildlens_store has no core knowledge. The CLI bridges the two.
"""

from __future__ import annotations

import click

from buildlens_core.history import BuildHistory
from buildlens_core.models import BuildRecord, CheckKind, CoverageSummary, Outcome, WarningSummary
from buildlens_store.models import BuildEntry


def entry_to_record(entry: BuildEntry) -> BuildRecord:
    return BuildRecord(
        number=entry.number,
        outcome=Outcome(entry.outcome),
        warnings={CheckKind(k): WarningSummary(v) for k, v in entry.warnings.items()},
        coverage=CoverageSummary({CheckKind(k): v for k, v in entry.coverage.items()}) if entry.coverage else None,
        project=entry.project,
        recorded_at=entry.recorded_at,
    )


def record_to_entry(record: BuildRecord) -> BuildEntry:
    return BuildEntry(
        project=record.project,
        number=record.number,
        outcome=record.outcome.value,
        recorded_at=record.recorded_at,
        warnings={k.value: s.warning_count for k, s in record.warnings.items()},
        coverage={k.value: v for k, v in record.coverage.percentages.items()} if record.coverage else {},
    )


def history_from_entries(entries: list[BuildEntry]) -> BuildHistory:
    return BuildHistory(entry_to_record(e) for e in entries)


def resolve_project(ctx: click.Context, project: str | None) -> str:
    """Return the --project value, falling back to 'project' in the config file."""
    config = ctx.obj.get("config", {}) if ctx.obj else {}
    resolved = project or config.get("project")
    if not resolved:
        raise click.UsageError("No project given. Pass --project or set 'project' in .buildlens.yml.")
    return resolved
