"""
DoubleOptInEmailHandler - handler object plugged into the save pipeline.

Wraps the component run functions with its ports and configuration so the
pipeline can call pre_save / post_save / post_delete on it like any other
webform handler.
"""

from __future__ import annotations

import logging

from src.components.double_opt_in.component import (
    run_post_delete,
    run_post_save,
    run_pre_save,
    summarize_handler,
)
from src.components.double_opt_in.models import (
    DoubleOptInConfig,
    HandlerSummary,
    PostDeleteInput,
    PostSaveInput,
    PostSaveOutput,
    PreSaveInput,
)
from src.components.double_opt_in.ports import (
    EmailConfirmerPort,
    StateResolverPort,
    SubmissionRepoPort,
)
from src.core.entities import SubmissionRecord

logger = logging.getLogger(__name__)


class DoubleOptInEmailHandler:
    """Sends a double opt-in e-mail instead of the notification."""

    def __init__(
        self,
        config: DoubleOptInConfig,
        repo: SubmissionRepoPort,
        confirmer: EmailConfirmerPort,
        resolver: StateResolverPort | None = None,
    ) -> None:
        self.config = config
        self._repo = repo
        self._confirmer = confirmer
        self._resolver = resolver

        if not config.states:
            logger.warning(
                "Handler %s has no trigger state; confirmations are never sent automatically",
                config.handler_id,
            )

    @property
    def handler_id(self) -> str:
        return self.config.handler_id

    def pre_save(self, submission: SubmissionRecord) -> None:
        run_pre_save(PreSaveInput(submission=submission))

    def post_save(self, submission: SubmissionRecord, update: bool = True) -> PostSaveOutput:
        return run_post_save(
            PostSaveInput(submission=submission, update=update),
            self._repo,
            self._confirmer,
            self.config,
            resolver=self._resolver,
        )

    def post_delete(self, submission: SubmissionRecord) -> None:
        run_post_delete(PostDeleteInput(submission=submission))

    def summary(self, state_options: dict[str, str] | None = None) -> HandlerSummary:
        return summarize_handler(self.config, state_options)
