"""No-op store: discards everything.

Selected with `store: noop`. Commands that only write (record) keep working;
commands that need history (check, history) refuse to run against it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from buildlens_store.base import BaseStore

if TYPE_CHECKING:
    from buildlens_store.models import BuildEntry


class NoOpStore(BaseStore):
    """Silently discards all entries. Zero configuration required."""

    def save(self, entry: BuildEntry) -> None:
        pass  # intentional no-op

    def list_builds(self, project: str) -> list[BuildEntry]:
        return []
