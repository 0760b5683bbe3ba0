"""Delta evaluation between a build and its baseline, one metric at a time.

All metric families share the same algorithm:
    evaluate() → _delta()  ← direction differs per family
               → _judge()  ← decision rule and message differ per family

Policies are selected by CheckKind, so adding a tool of an existing family
(another warning counter, another coverage metric) needs no new class.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from buildlens_core.models import CheckConfiguration, CheckKind, MetricValue, RegressionFinding

logger = logging.getLogger(__name__)


def format_percentage(points: float) -> str:
    """Render a percentage-point value with one decimal place, e.g. 2.345 → "2.3%"."""
    return f"{points:.1f}%"


class DeltaPolicy(ABC):
    def evaluate(
        self,
        current: MetricValue,
        baseline: MetricValue,
        config: CheckConfiguration,
    ) -> RegressionFinding | None:
        """Compare ``current`` with ``baseline`` and return a finding, or None if there is nothing to report."""
        delta = self._delta(current.value, baseline.value)
        return self._judge(delta, current, baseline, config)

    @abstractmethod
    def _delta(self, current: float, baseline: float) -> float:
        """Signed change, oriented so that a positive value means "got worse"."""

    @abstractmethod
    def _judge(
        self,
        delta: float,
        current: MetricValue,
        baseline: MetricValue,
        config: CheckConfiguration,
    ) -> RegressionFinding | None: ...


class WarningCountPolicy(DeltaPolicy):
    """Any increase in the warning count is a regression. Equal or fewer never is."""

    def _delta(self, current: float, baseline: float) -> float:
        return current - baseline

    def _judge(self, delta, current, baseline, config):
        if delta <= 0:
            return None
        increase = int(delta)
        return RegressionFinding(
            check_kind=current.kind,
            regressed=True,
            message=(
                f"Regressions detected in {current.kind.display_name}. Compared to the current base line "
                f"at build #{baseline.build_number}, {increase} new warning(s) found"
            ),
            baseline_number=baseline.build_number,
            delta=delta,
            current_value=current.value,
            baseline_value=baseline.value,
        )


class CoveragePolicy(DeltaPolicy):
    """A coverage drop fails the build unless the build is still above the threshold.

    The threshold is compared against the current build's percentage, not the
    size of the drop: a build at 86% that fell from 99% passes, a build at
    85% that fell from 85.1% fails.
    """

    def _delta(self, current: float, baseline: float) -> float:
        return baseline - current

    def _judge(self, delta, current, baseline, config):
        if delta <= config.coverage_tolerance:
            return None

        kind = current.kind
        drop = format_percentage(delta)
        if current.value > config.coverage_threshold:
            message = (
                f"Lower {kind.metric_label}than build #{baseline.build_number} ({drop} decrease), "
                f"but above threshold: {config.coverage_threshold} so not failing build!"
            )
            logger.info("%s", message)
            regressed = False
        else:
            message = (
                "Regressions detected in Coverage Report. Compared to the current base line at build "
                f"#{baseline.build_number}, still {drop} increased {kind.metric_label}needed"
            )
            regressed = True

        return RegressionFinding(
            check_kind=kind,
            regressed=regressed,
            message=message,
            baseline_number=baseline.build_number,
            delta=delta,
            current_value=current.value,
            baseline_value=baseline.value,
        )


_WARNING_POLICY = WarningCountPolicy()
_COVERAGE_POLICY = CoveragePolicy()


def policy_for(kind: CheckKind) -> DeltaPolicy:
    return _COVERAGE_POLICY if kind.is_coverage else _WARNING_POLICY


def evaluate_check(
    kind: CheckKind,
    current: MetricValue | None,
    baseline: MetricValue | None,
    config: CheckConfiguration,
) -> RegressionFinding | None:
    """Evaluate one metric. Returns None when either side is missing or nothing got worse."""
    if current is None or baseline is None:
        logger.debug("Skipping %s: %s value missing", kind.display_name, "current" if current is None else "baseline")
        return None
    return policy_for(kind).evaluate(current, baseline, config)
