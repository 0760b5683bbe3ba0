"""Shared build history for one project.

Records refer to each other only by build number. ``previous()`` resolves the
back-reference with a lookup here, so a record never owns its predecessors
and the chain can never form a cycle.
"""

from __future__ import annotations

import bisect
from typing import Iterable, Iterator

from buildlens_core.models import BuildRecord


class BuildHistory:
    """Immutable, number-ordered view of a project's completed builds."""

    def __init__(self, records: Iterable[BuildRecord] = ()):
        by_number: dict[int, BuildRecord] = {}
        for record in records:
            if record.number in by_number:
                raise ValueError(f"Duplicate build number in history: #{record.number}")
            by_number[record.number] = record
        self._by_number = by_number
        self._numbers = sorted(by_number)

    def __len__(self) -> int:
        return len(self._numbers)

    def __iter__(self) -> Iterator[BuildRecord]:
        return (self._by_number[n] for n in self._numbers)

    def __contains__(self, number: object) -> bool:
        return number in self._by_number

    def get(self, number: int) -> BuildRecord | None:
        return self._by_number.get(number)

    def latest(self) -> BuildRecord | None:
        if not self._numbers:
            return None
        return self._by_number[self._numbers[-1]]

    def previous(self, build: BuildRecord) -> BuildRecord | None:
        """Return the build immediately before ``build``, or None at the history origin.

        Builds removed from the history (retention) are skipped over, the same
        way a CI server's "previous build" link skips deleted builds. ``build``
        does not need to be part of the history itself.
        """
        idx = bisect.bisect_left(self._numbers, build.number)
        if idx == 0:
            return None
        return self._by_number[self._numbers[idx - 1]]
