"""Build history data models.

Decoupled from buildlens_core so the store layer can be used independently
and buildlens_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class BuildEntry:
    """A completed build persisted to the store.

    Created by the CLI layer from the summaries a CI job hands over.
    The CLI maps BuildEntry → BuildRecord before running a check.
    """

    project: str
    number: int
    outcome: str  # "SUCCESS" | "FAILURE" | "UNSTABLE" | "ABORTED" | "NOT_BUILT"
    recorded_at: str  # ISO-8601 UTC timestamp
    warnings: dict[str, int] = field(default_factory=dict)  # "pmd" | "bug_patterns" | "style" → count
    coverage: dict[str, float] = field(default_factory=dict)  # "line" | "branch" → percentage
