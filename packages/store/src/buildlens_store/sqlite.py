"""SQLiteStore: local file-based build history.

A single file shared between CI jobs (workspace cache, persistent volume)
is enough to keep the history a regression check needs.

Schema:
  builds  — one row per completed build, unique per (project, number).
            Summaries are stored as JSON columns so new tool families need
            no migration.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from buildlens_store.base import BaseStore
from buildlens_store.models import BuildEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS builds (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    project         TEXT NOT NULL,
    number          INTEGER NOT NULL,
    outcome         TEXT NOT NULL,
    recorded_at     TEXT,
    warnings_json   TEXT DEFAULT '{}',
    coverage_json   TEXT DEFAULT '{}',
    UNIQUE (project, number)
);
CREATE INDEX IF NOT EXISTS idx_builds_project ON builds (project, number);
"""


class SQLiteStore(BaseStore):
    """Stores build history in a local SQLite database file.

    The database file path defaults to `.buildlens.db` in the current working
    directory. Configure via .buildlens.yml: `store_path: /path/to/buildlens.db`.
    """

    def __init__(self, db_path: str = ".buildlens.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def save(self, entry: BuildEntry) -> None:
        self._conn.execute(
            """
            INSERT INTO builds (project, number, outcome, recorded_at, warnings_json, coverage_json)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (project, number) DO UPDATE SET
              outcome       = excluded.outcome,
              recorded_at   = excluded.recorded_at,
              warnings_json = excluded.warnings_json,
              coverage_json = excluded.coverage_json
            """,
            (
                entry.project,
                entry.number,
                entry.outcome,
                entry.recorded_at,
                json.dumps(entry.warnings),
                json.dumps(entry.coverage),
            ),
        )
        self._conn.commit()
        logger.debug("Saved build %s#%d (%s)", entry.project, entry.number, entry.outcome)

    def list_builds(self, project: str) -> list[BuildEntry]:
        rows = self._conn.execute(
            "SELECT * FROM builds WHERE project=? ORDER BY number",
            (project,),
        ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> BuildEntry:
        return BuildEntry(
            project=row["project"],
            number=row["number"],
            outcome=row["outcome"],
            recorded_at=row["recorded_at"] or "",
            warnings={k: int(v) for k, v in json.loads(row["warnings_json"] or "{}").items()},
            coverage={k: float(v) for k, v in json.loads(row["coverage_json"] or "{}").items()},
        )
