"""Regression check orchestration for one completed build."""

from __future__ import annotations

import logging

from buildlens_core.baseline import BaselineLocator
from buildlens_core.evaluator import evaluate_check
from buildlens_core.extractor import extract
from buildlens_core.history import BuildHistory
from buildlens_core.models import (
    COVERAGE_KINDS,
    WARNING_KINDS,
    BuildRecord,
    CheckConfiguration,
    CheckKind,
    RegressionVerdict,
)
from buildlens_core.report import RegressionReport

logger = logging.getLogger(__name__)


def _enabled_kinds(config: CheckConfiguration) -> list[CheckKind]:
    """Kinds to evaluate, warnings first in configured order, then coverage metrics."""
    kinds = []
    for kind in WARNING_KINDS + COVERAGE_KINDS:
        if not config.is_enabled(kind):
            continue
        if not config.is_available(kind):
            logger.warning("%s check is enabled but %r is not available on this host", kind.display_name, kind.family)
            continue
        kinds.append(kind)
    return kinds


def _check_one(
    build: BuildRecord,
    kind: CheckKind,
    locator: BaselineLocator,
    config: CheckConfiguration,
    report: RegressionReport,
) -> None:
    current = extract(build, kind)
    if current is None:
        logger.debug("Build #%d has no %s summary; check skipped", build.number, kind.display_name)
        return

    baseline_build = locator.find(build)
    if baseline_build is None:
        logger.debug("No baseline for build #%d; %s check skipped", build.number, kind.display_name)
        return

    baseline = extract(baseline_build, kind)
    report.add(evaluate_check(kind, current, baseline, config))


def evaluate(build: BuildRecord, history: BuildHistory, config: CheckConfiguration) -> RegressionVerdict:
    """Evaluate ``build`` against its latest successful predecessor in ``history``.

    Every enabled check runs, even after another one has regressed, so the
    verdict lists all regressions at once. Missing data never raises: a check
    without a current value, baseline build or baseline value simply
    contributes nothing.

    The caller decides what to do with ``build_should_fail``; the history is
    not modified here.
    """
    locator = BaselineLocator(history)
    report = RegressionReport()

    kinds = _enabled_kinds(config)
    if not kinds:
        logger.info("No regression checks enabled for build #%d", build.number)

    for kind in kinds:
        _check_one(build, kind, locator, config, report)

    verdict = report.verdict()
    if verdict.build_should_fail:
        logger.info("Build #%d regressed in %d check(s)", build.number, len(verdict.regressions))
    return verdict
