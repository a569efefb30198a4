"""
Submissions component ports.
"""

from __future__ import annotations

from typing import Any, Protocol

from src.core.entities import SubmissionRecord
from src.core.ports.submissions import SubmissionRepoPort

__all__ = ["SubmissionRepoPort", "WebformHandlerPort"]


class WebformHandlerPort(Protocol):
    """A handler reacting to submission lifecycle notifications."""

    @property
    def handler_id(self) -> str:
        ...

    def pre_save(self, submission: SubmissionRecord) -> None:
        """Called before the submission is persisted."""
        ...

    def post_save(self, submission: SubmissionRecord, update: bool = True) -> Any:
        """Called after the submission is persisted."""
        ...

    def post_delete(self, submission: SubmissionRecord) -> Any:
        """Called after the submission is deleted."""
        ...
