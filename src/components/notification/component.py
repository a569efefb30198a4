"""
Notification component.

Double opt-in compatible e-mail handler. Sends the configured notification
when the submission's resolved state is one of its trigger states. With the
bundled hooks, a completed submission whose opt-in is confirmed resolves to
``double_opt_in_confirmed``; selecting that state makes the notification go
out only after the recipient opted in, once, on the save that recorded the
confirmation.
"""

from __future__ import annotations

import logging

from src.components.double_opt_in.component import effective_states, trigger_state
from src.components.double_opt_in.ports import StateResolverPort
from src.components.notification.models import NotificationConfig, NotifyInput, NotifyOutput
from src.components.submission_state import CONFIRMED_STATE, SubmissionStateHooks
from src.core.entities import SubmissionRecord, SubmissionState
from src.core.ports.email import EmailPort
from src.core.services.message import compose_message

logger = logging.getLogger(__name__)


def state_options(hooks: SubmissionStateHooks) -> dict[str, str]:
    """Trigger-state options offered for this handler."""
    return hooks.get_state_options()


def run_notify(
    inp: NotifyInput,
    email_sender: EmailPort,
    config: NotificationConfig,
    resolver: StateResolverPort,
) -> NotifyOutput:
    """
    Send the notification if the submission's state is a trigger state.

    Deletions are evaluated against the deleted state directly.
    """
    submission = inp.submission
    states = effective_states(submission, config.states)

    if inp.deleted:
        state: str | None = SubmissionState.DELETED.value
    else:
        state = trigger_state(submission, inp.update, resolver)

    if state is None or not states or state not in states:
        return NotifyOutput(sent=False, state=state)

    # Confirmed fires on the confirming save only, not on later resaves
    if state == CONFIRMED_STATE and not submission.confirmed_on_save:
        logger.debug(
            "Submission %s already notified on confirmation, skipping", submission.id
        )
        return NotifyOutput(sent=False, state=state)

    message = compose_message(config.message, submission)
    result = email_sender.send(message)

    if result.failed:
        logger.error(
            "Notification for submission %s to %s failed: %s",
            submission.id,
            result.recipient,
            result.error,
        )
        return NotifyOutput(sent=False, state=state, result=result)

    logger.info("Notification for submission %s sent on state %s", submission.id, state)
    return NotifyOutput(sent=True, state=state, result=result)


def run(
    inp: NotifyInput,
    *,
    email_sender: EmailPort,
    config: NotificationConfig,
    resolver: StateResolverPort,
) -> NotifyOutput:
    """Main component entry point."""
    return run_notify(inp, email_sender, config, resolver)


class DoubleOptInCompatibleEmailHandler:
    """Notification handler that understands the double opt-in states."""

    def __init__(
        self,
        config: NotificationConfig,
        email_sender: EmailPort,
        hooks: SubmissionStateHooks,
    ) -> None:
        self.config = config
        self._email_sender = email_sender
        self._hooks = hooks

    @property
    def handler_id(self) -> str:
        return self.config.handler_id

    def pre_save(self, submission: SubmissionRecord) -> None:
        pass

    def post_save(self, submission: SubmissionRecord, update: bool = True) -> NotifyOutput:
        return run_notify(
            NotifyInput(submission=submission, update=update),
            self._email_sender,
            self.config,
            self._hooks,
        )

    def post_delete(self, submission: SubmissionRecord) -> NotifyOutput:
        return run_notify(
            NotifyInput(submission=submission, deleted=True),
            self._email_sender,
            self.config,
            self._hooks,
        )

    def state_options(self) -> dict[str, str]:
        return state_options(self._hooks)
