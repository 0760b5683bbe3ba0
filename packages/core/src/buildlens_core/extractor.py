"""Pull a comparable number for one check kind out of a build's summaries.

A missing summary is the common case (the tool was not run, or is not
installed on the build host) and is reported as None, never as an error.
"""

from __future__ import annotations

import logging
import math

from buildlens_core.models import BuildRecord, CheckKind, CoverageSummary, MetricValue, WarningSummary

logger = logging.getLogger(__name__)


def extract(build: BuildRecord, kind: CheckKind) -> MetricValue | None:
    summary = build.summary_for(kind)
    if summary is None:
        return None

    if isinstance(summary, WarningSummary):
        return MetricValue(kind=kind, value=float(summary.warning_count), build_number=build.number)

    if isinstance(summary, CoverageSummary):
        percentage = summary.percentage(kind)
        if percentage is None:
            return None
        if not math.isfinite(percentage) or not 0.0 <= percentage <= 100.0:
            logger.warning(
                "Ignoring %s of build #%d: %r is not a percentage between 0 and 100",
                kind.display_name,
                build.number,
                percentage,
            )
            return None
        return MetricValue(kind=kind, value=percentage, build_number=build.number)

    return None
