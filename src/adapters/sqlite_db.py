"""
SQLite Database Adapter.

Implements the submission repository port using SQLite.
Designed to be Postgres-compatible (uses standard SQL patterns).

The opt-in status is stored in its own column, not inside the JSON data
bag, so the claim before a confirmation dispatch is a single conditional
UPDATE. A save only fills the status while it is unset; after that it
changes through compare_and_set_status alone, and the record returned by
save carries the stored value.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from typing import Any

from src.core.entities import (
    OptInStatus,
    SubmissionRecord,
    SubmissionState,
    WebformSettings,
    parse_opt_in_status,
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS webform_submissions (
    id TEXT PRIMARY KEY,
    webform_id TEXT NOT NULL,
    data_json TEXT NOT NULL DEFAULT '{}',
    state TEXT NOT NULL CHECK(
        state IN ('draft', 'converted', 'completed', 'updated', 'deleted', 'locked')
    ),
    opt_in_status TEXT CHECK(
        opt_in_status IS NULL
        OR opt_in_status IN ('pending_mail', 'pending', 'confirmed', 'dispatch_failed')
    ),
    results_disabled INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    changed_at DATETIME NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_webform_submissions_webform
    ON webform_submissions(webform_id);
CREATE INDEX IF NOT EXISTS idx_webform_submissions_opt_in_status
    ON webform_submissions(opt_in_status);
"""

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def ensure_schema(db_path: str) -> None:
    """Create the submission tables if missing."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        if connection is not None:
            connection.row_factory = dict_factory

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None


# -----------------------------------------------------------------------------
# Submission Repository
# -----------------------------------------------------------------------------


class SQLiteSubmissionRepo(SQLiteRepoBase):
    """SQLite implementation of SubmissionRepoPort."""

    def get_by_id(self, submission_id: str) -> SubmissionRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM webform_submissions WHERE id = ?", (submission_id,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def list_by_status(
        self,
        status: OptInStatus,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SubmissionRecord]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM webform_submissions
                WHERE opt_in_status = ?
                ORDER BY created_at
                LIMIT ? OFFSET ?
                """,
                (status.value, limit, offset),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def save(self, submission: SubmissionRecord) -> SubmissionRecord:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO webform_submissions (
                    id, webform_id, data_json, state, opt_in_status,
                    results_disabled, created_at, changed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    webform_id = excluded.webform_id,
                    data_json = excluded.data_json,
                    state = excluded.state,
                    opt_in_status = COALESCE(
                        webform_submissions.opt_in_status, excluded.opt_in_status
                    ),
                    results_disabled = excluded.results_disabled,
                    changed_at = excluded.changed_at
                """,
                (
                    submission.id,
                    submission.webform_id,
                    json.dumps(submission.data),
                    submission.state.value,
                    submission.opt_in_status.value if submission.opt_in_status else None,
                    1 if submission.webform.results_disabled else 0,
                    submission.created_at.isoformat(),
                    submission.changed_at.isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT opt_in_status FROM webform_submissions WHERE id = ?",
                (submission.id,),
            ).fetchone()
            submission.opt_in_status = parse_opt_in_status(row["opt_in_status"])
            if self._should_close():
                conn.commit()
            return submission
        finally:
            if self._should_close():
                conn.close()

    def delete(self, submission_id: str) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM webform_submissions WHERE id = ?", (submission_id,)
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount > 0
        finally:
            if self._should_close():
                conn.close()

    def compare_and_set_status(
        self,
        submission_id: str,
        expected: OptInStatus | None,
        new: OptInStatus,
    ) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE webform_submissions
                SET opt_in_status = ?, changed_at = ?
                WHERE id = ? AND opt_in_status IS ?
                """,
                (
                    new.value,
                    datetime.now(UTC).isoformat(),
                    submission_id,
                    expected.value if expected else None,
                ),
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount == 1
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> SubmissionRecord:
        return SubmissionRecord(
            id=row["id"],
            webform_id=row["webform_id"],
            data=json.loads(row["data_json"] or "{}"),
            state=SubmissionState(row["state"]),
            opt_in_status=parse_opt_in_status(row["opt_in_status"]),
            webform=WebformSettings(results_disabled=bool(row["results_disabled"])),
            created_at=parse_dt(row["created_at"]) or datetime.now(UTC),
            changed_at=parse_dt(row["changed_at"]) or datetime.now(UTC),
        )
