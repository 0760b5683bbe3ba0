"""GistStore: zero-infrastructure shared build history via GitHub Gist.

Useful when CI runners are ephemeral and share no disk: every job reads the
history from the Gist and appends its own build.

- Built-in access control: Gist ACL is GitHub account access, no separate login.
- One JSON file per Gist: `buildlens_history.json` holds a JSON array of
  BuildEntry dicts for every project, newest entries appended.
- The built-in GITHUB_TOKEN of GitHub Actions has no Gist scope; use a PAT
  with the `gist` scope stored as a repository secret.
"""

from __future__ import annotations

import json
import logging
import os

from buildlens_store.base import BaseStore
from buildlens_store.models import BuildEntry

logger = logging.getLogger(__name__)

_GIST_FILENAME = "buildlens_history.json"


class GistStore(BaseStore):
    """Stores build history in a GitHub Gist as a JSON array.

    save() replaces an existing entry with the same project and number or
    appends a new one. list_builds() reads the full array and filters in
    memory, which is fine for a few thousand builds; beyond that, switch to
    SQLiteStore on a shared volume.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore. Install it with: pip install PyGithub")
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def save(self, entry: BuildEntry) -> None:
        """Upsert a build entry in the Gist JSON file."""
        try:
            gist = self._get_gist()
            existing = [
                r
                for r in self._read_entries(gist)
                if not (r.get("project") == entry.project and r.get("number") == entry.number)
            ]
            existing.append(self._to_dict(entry))
            gist.edit(files={_GIST_FILENAME: {"content": json.dumps(existing, indent=2)}})
        except Exception as e:
            # The build has already finished; losing its history entry must not fail the job.
            logger.warning("GistStore.save() failed (%s): %s", type(e).__name__, e)
            msg = f"Warning: could not persist build history to Gist ({type(e).__name__}: {e})"
            if os.environ.get("GITHUB_ACTIONS") == "true":
                msg += (
                    "\nThe built-in GITHUB_TOKEN does not have Gist permissions. "
                    "Use a PAT with 'gist' scope stored as a repository secret."
                )
            print(msg)

    def list_builds(self, project: str) -> list[BuildEntry]:
        self.last_read_error = None
        try:
            gist = self._get_gist()
            entries = self._read_entries(gist)
        except Exception as e:
            logger.warning("GistStore.list_builds() failed: %s", e)
            self.last_read_error = e
            return []

        results = [self._from_dict(r) for r in entries if r.get("project") == project]
        return sorted(results, key=lambda e: e.number)

    def _read_entries(self, gist) -> list[dict]:
        """Read the current JSON array from the Gist file, or return []."""
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return []
        try:
            return json.loads(file_obj.content) or []
        except (json.JSONDecodeError, AttributeError):
            return []

    @staticmethod
    def _to_dict(entry: BuildEntry) -> dict:
        return {
            "project": entry.project,
            "number": entry.number,
            "outcome": entry.outcome,
            "recorded_at": entry.recorded_at,
            "warnings": dict(entry.warnings),
            "coverage": dict(entry.coverage),
        }

    @staticmethod
    def _from_dict(d: dict) -> BuildEntry:
        return BuildEntry(
            project=d.get("project", ""),
            number=d.get("number", 0),
            outcome=d.get("outcome", "NOT_BUILT"),
            recorded_at=d.get("recorded_at", ""),
            warnings={k: int(v) for k, v in (d.get("warnings") or {}).items()},
            coverage={k: float(v) for k, v in (d.get("coverage") or {}).items()},
        )
