"""Accumulates findings into the verdict handed back to the host."""

from __future__ import annotations

from buildlens_core.models import RegressionFinding, RegressionVerdict


class RegressionReport:
    """Findings in the order the checks were evaluated.

    Pure aggregation: the report never re-evaluates anything, it only keeps
    findings in order and derives the verdict from them.
    """

    def __init__(self):
        self._findings: list[RegressionFinding] = []

    def add(self, finding: RegressionFinding | None) -> None:
        if finding is not None:
            self._findings.append(finding)

    @property
    def findings(self) -> tuple[RegressionFinding, ...]:
        return tuple(self._findings)

    def log_lines(self) -> tuple[str, ...]:
        return tuple(f.message for f in self._findings)

    def verdict(self) -> RegressionVerdict:
        return RegressionVerdict(findings=self.findings, log_lines=self.log_lines())
