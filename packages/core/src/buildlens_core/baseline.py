"""Locate the build a new build is compared against.

The baseline is the nearest earlier build whose outcome was SUCCESS. Failed,
unstable, aborted and not-built builds are skipped, so one bad build never
becomes the yardstick for the next one.
"""

from __future__ import annotations

import logging

from buildlens_core.history import BuildHistory
from buildlens_core.models import BuildRecord, Outcome

logger = logging.getLogger(__name__)


def find_baseline(build: BuildRecord, history: BuildHistory) -> BuildRecord | None:
    """Walk back from ``build`` to the latest successful build, or None if there is none."""
    candidate = history.previous(build)
    while candidate is not None and candidate.outcome is not Outcome.SUCCESS:
        logger.debug("Skipping build #%d (%s) as baseline candidate", candidate.number, candidate.outcome.value)
        candidate = history.previous(candidate)
    return candidate


class BaselineLocator:
    """Per-evaluation baseline lookup.

    Every enabled check asks for the same baseline; the walk back through the
    history runs once per build and is reused for the rest of the evaluation.
    Create a new locator for each evaluation.
    """

    def __init__(self, history: BuildHistory):
        self._history = history
        self._cache: dict[int, BuildRecord | None] = {}

    def find(self, build: BuildRecord) -> BuildRecord | None:
        if build.number not in self._cache:
            baseline = find_baseline(build, self._history)
            if baseline is None:
                logger.debug("No successful build before #%d", build.number)
            else:
                logger.debug("Baseline for build #%d is build #%d", build.number, baseline.number)
            self._cache[build.number] = baseline
        return self._cache[build.number]
