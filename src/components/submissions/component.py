"""
Submissions component.

Save pipeline standing in for the hosting form system: runs every
handler's pre_save, persists the submission, then runs every handler's
post_save in registration order. Handler errors propagate to the caller.

Register the double opt-in handler before notification handlers so a
confirmation found during the same save is visible to them.

A save never overwrites an opt-in status already on record. Handlers see
the stored status, so a copy of the submission loaded before a claim or a
confirmation cannot roll it back.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from src.components.submissions.models import (
    DeleteResult,
    SaveResult,
    SubmissionNotFoundError,
)
from src.components.submissions.ports import SubmissionRepoPort, WebformHandlerPort
from src.core.entities import SubmissionRecord

logger = logging.getLogger(__name__)


class SubmissionPipeline:
    """Runs submission saves and deletes through the configured handlers."""

    def __init__(
        self,
        repo: SubmissionRepoPort,
        handlers: list[WebformHandlerPort] | None = None,
    ) -> None:
        self._repo = repo
        self._handlers: list[WebformHandlerPort] = list(handlers or [])

    @property
    def handlers(self) -> list[WebformHandlerPort]:
        return list(self._handlers)

    def add_handler(self, handler: WebformHandlerPort) -> None:
        self._handlers.append(handler)

    def save(self, submission: SubmissionRecord, update: bool | None = None) -> SaveResult:
        """
        Save a submission and notify handlers.

        Args:
            submission: Submission to persist
            update: Whether this is an update (defaults to "already stored")

        Returns:
            SaveResult with handler outputs keyed by handler id
        """
        if update is None:
            update = self._repo.get_by_id(submission.id) is not None

        for handler in self._handlers:
            handler.pre_save(submission)

        submission.changed_at = datetime.now(UTC)
        submission.confirmed_on_save = False
        # The repository keeps a status that is already set and hands it back
        saved = self._repo.save(submission)
        logger.info(
            "Submission %s saved (webform %s, state %s, update=%s)",
            saved.id,
            saved.webform_id,
            saved.state.value,
            update,
        )

        results: dict[str, Any] = {}
        for handler in self._handlers:
            results[handler.handler_id] = handler.post_save(saved, update)

        return SaveResult(submission=saved, update=update, handler_results=results)

    def delete(self, submission_id: str) -> DeleteResult:
        """
        Delete a submission and notify handlers.

        Raises:
            SubmissionNotFoundError: If the submission does not exist
        """
        submission = self._repo.get_by_id(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        deleted = self._repo.delete(submission_id)
        logger.info("Submission %s deleted", submission_id)

        results: dict[str, Any] = {}
        for handler in self._handlers:
            results[handler.handler_id] = handler.post_delete(submission)

        return DeleteResult(submission_id=submission_id, deleted=deleted, handler_results=results)
