"""Build history and regression data models.

Everything here is an immutable snapshot: a build's record and the summaries
attached to it never change once the build has completed, so evaluations can
share them freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Outcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    UNSTABLE = "UNSTABLE"
    ABORTED = "ABORTED"
    NOT_BUILT = "NOT_BUILT"


class CheckKind(str, Enum):
    """Every metric the checker knows how to compare between two builds.

    Warning kinds map one-to-one onto a static-analysis tool family. The
    coverage kinds share a single tool family ("coverage") and are evaluated
    independently of each other.
    """

    PMD = "pmd"
    BUG_PATTERN = "bug_patterns"
    STYLE = "style"
    COVERAGE_LINE = "line"
    COVERAGE_BRANCH = "branch"

    @property
    def is_coverage(self) -> bool:
        return self in (CheckKind.COVERAGE_LINE, CheckKind.COVERAGE_BRANCH)

    @property
    def family(self) -> str:
        """Name of the tool family that produces this metric."""
        return "coverage" if self.is_coverage else self.value

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def metric_label(self) -> str:
        # Trailing space is part of the label: messages read "... linecoverage needed".
        return _METRIC_LABELS.get(self, "coverage ")


_DISPLAY_NAMES = {
    CheckKind.PMD: "PMD Warnings",
    CheckKind.BUG_PATTERN: "FindBugs Warnings",
    CheckKind.STYLE: "Checkstyle Warnings",
    CheckKind.COVERAGE_LINE: "Line Coverage",
    CheckKind.COVERAGE_BRANCH: "Branch Coverage",
}

_METRIC_LABELS = {
    CheckKind.COVERAGE_LINE: "linecoverage ",
    CheckKind.COVERAGE_BRANCH: "branchcoverage ",
}

WARNING_KINDS: tuple[CheckKind, ...] = (CheckKind.PMD, CheckKind.BUG_PATTERN, CheckKind.STYLE)

# Branch before line: the order in which coverage findings are reported.
COVERAGE_KINDS: tuple[CheckKind, ...] = (CheckKind.COVERAGE_BRANCH, CheckKind.COVERAGE_LINE)

CHECK_FAMILIES: tuple[str, ...] = ("pmd", "bug_patterns", "style", "coverage")


@dataclass(frozen=True)
class WarningSummary:
    """Warning count reported by one static-analysis tool for one build."""

    warning_count: int

    def __post_init__(self):
        if self.warning_count < 0:
            raise ValueError(f"warning_count must be non-negative, got {self.warning_count}")


@dataclass(frozen=True)
class CoverageSummary:
    """Coverage percentages (0.0 – 100.0) keyed by coverage kind."""

    percentages: Mapping[CheckKind, float] = field(default_factory=dict)

    def __post_init__(self):
        for kind in self.percentages:
            if not CheckKind(kind).is_coverage:
                raise ValueError(f"{kind!r} is not a coverage metric")
        object.__setattr__(
            self,
            "percentages",
            MappingProxyType({CheckKind(k): float(v) for k, v in self.percentages.items()}),
        )

    def percentage(self, kind: CheckKind) -> float | None:
        return self.percentages.get(kind)


@dataclass(frozen=True)
class BuildRecord:
    """One completed build in a project's history.

    The previous build is not stored here. It is looked up through
    BuildHistory so a record never keeps the rest of the history alive.
    """

    number: int
    outcome: Outcome
    warnings: Mapping[CheckKind, WarningSummary] = field(default_factory=dict)
    coverage: CoverageSummary | None = None
    project: str = ""
    recorded_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self):
        object.__setattr__(self, "outcome", Outcome(self.outcome))
        for kind in self.warnings:
            if CheckKind(kind).is_coverage:
                raise ValueError(f"{kind!r} is a coverage metric, not a warning kind")
        object.__setattr__(
            self,
            "warnings",
            MappingProxyType({CheckKind(k): v for k, v in self.warnings.items()}),
        )

    def summary_for(self, kind: CheckKind) -> WarningSummary | CoverageSummary | None:
        """Return the summary attached for ``kind``, or None if the tool did not report."""
        if kind.is_coverage:
            return self.coverage
        return self.warnings.get(kind)


@dataclass(frozen=True)
class CheckConfiguration:
    """Which checks run for one evaluation, and how coverage drops are judged.

    ``available`` is the set of tool families the host has declared as
    installed; None means every family is available.
    """

    check_pmd: bool = False
    check_bug_patterns: bool = False
    check_style: bool = False
    check_coverage: bool = False
    coverage_threshold: float = 85.0
    coverage_tolerance: float = 0.0
    available: frozenset[str] | None = None

    def __post_init__(self):
        # Hosts hand over None for tools that are not installed.
        for name in ("check_pmd", "check_bug_patterns", "check_style", "check_coverage"):
            value = getattr(self, name)
            if value is None:
                object.__setattr__(self, name, False)
            elif not isinstance(value, bool):
                raise ValueError(f"{name} must be true or false, got {value!r}.")
        if self.available is not None:
            unknown = set(self.available) - set(CHECK_FAMILIES)
            if unknown:
                raise ValueError(f"Unknown check families: {sorted(unknown)}. Choose from {list(CHECK_FAMILIES)}.")
            object.__setattr__(self, "available", frozenset(self.available))

    def is_enabled(self, kind: CheckKind) -> bool:
        flags = {
            "pmd": self.check_pmd,
            "bug_patterns": self.check_bug_patterns,
            "style": self.check_style,
            "coverage": self.check_coverage,
        }
        return flags[kind.family]

    def is_available(self, kind: CheckKind) -> bool:
        return self.available is None or kind.family in self.available


@dataclass(frozen=True)
class MetricValue:
    """A single comparable number taken from one build."""

    kind: CheckKind
    value: float
    build_number: int


@dataclass(frozen=True)
class RegressionFinding:
    """Outcome of comparing one metric of the current build against its baseline.

    Findings with ``regressed=False`` are informational: a coverage drop that
    the threshold override exempts from failing the build.
    """

    check_kind: CheckKind
    regressed: bool
    message: str
    baseline_number: int | None = None
    delta: float | None = None
    current_value: float | None = None
    baseline_value: float | None = None


@dataclass(frozen=True)
class RegressionVerdict:
    findings: tuple[RegressionFinding, ...] = ()
    log_lines: tuple[str, ...] = ()

    @property
    def build_should_fail(self) -> bool:
        return any(f.regressed for f in self.findings)

    @property
    def regressions(self) -> list[RegressionFinding]:
        return [f for f in self.findings if f.regressed]
