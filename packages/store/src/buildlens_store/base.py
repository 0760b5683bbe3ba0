"""Store interface shared by every build history backend.

The CLI only talks to BaseStore; which backend sits behind it is decided
by the `store` key of .buildlens.yml.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildlens_store.models import BuildEntry


class BaseStore(ABC):
    """Build history keyed by (project, build number).

    Backends receive their credentials in the constructor; nothing may
    prompt, as stores run unattended inside CI jobs.

    Remote backends that cannot reach their history return [] from
    list_builds() and set ``last_read_error``, so callers can tell an
    unreadable history from an empty one.
    """

    last_read_error: Exception | None = None

    @abstractmethod
    def save(self, entry: BuildEntry) -> None:
        """Insert a build, or overwrite the entry with the same project and number."""

    @abstractmethod
    def list_builds(self, project: str) -> list[BuildEntry]:
        """All builds of ``project`` in ascending build-number order; [] if there are none."""

    def close(self) -> None:
        """Free connections or handles. Safe to call on every backend."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
