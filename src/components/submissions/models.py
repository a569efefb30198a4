"""
Submissions component models.

Results of running a submission through the handler pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.core.entities import SubmissionRecord


@dataclass(frozen=True)
class SaveResult:
    """Submission as persisted, with each handler's post-save output."""

    submission: SubmissionRecord
    update: bool
    handler_results: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of deleting a submission."""

    submission_id: str
    deleted: bool
    handler_results: dict[str, Any] = field(default_factory=dict)


class SubmissionNotFoundError(Exception):
    """Submission does not exist."""

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")
