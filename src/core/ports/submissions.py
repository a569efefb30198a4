"""
Submission Repository Interface.

Persistence for submission records. The form-storage system owns the
records; handlers read them and write back opt-in status.
"""

from __future__ import annotations

from typing import Protocol

from src.core.entities import OptInStatus, SubmissionRecord


class SubmissionRepoPort(Protocol):
    """Submission repository interface."""

    def get_by_id(self, submission_id: str) -> SubmissionRecord | None:
        """Get submission by ID."""
        ...

    def save(self, submission: SubmissionRecord) -> SubmissionRecord:
        """
        Insert or update a submission (resave).

        An opt-in status already stored is kept; it only moves through
        compare_and_set_status. The returned record carries the stored status.
        """
        ...

    def delete(self, submission_id: str) -> bool:
        """Delete submission by ID."""
        ...

    def compare_and_set_status(
        self,
        submission_id: str,
        expected: OptInStatus | None,
        new: OptInStatus,
    ) -> bool:
        """
        Atomically move opt-in status from expected to new.

        Returns:
            True if the stored status was expected and is now new
        """
        ...
