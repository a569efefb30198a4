"""
Notification component models.

Models for the double opt-in compatible e-mail handler: a plain
notification handler whose trigger state goes through the submission
state hooks, so it can fire on the synthetic confirmed state.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.entities import SubmissionRecord
from src.core.ports.email import EmailResult
from src.core.services.message import MessageTemplate


@dataclass(frozen=True)
class NotificationConfig:
    """Notification handler configuration."""

    message: MessageTemplate
    states: frozenset[str] = frozenset()
    handler_id: str = "webform_double_opt_in_compatible_email"


@dataclass(frozen=True)
class NotifyInput:
    """Submission that was saved or deleted."""

    submission: SubmissionRecord
    update: bool = True
    deleted: bool = False


@dataclass(frozen=True)
class NotifyOutput:
    """Output from a notification attempt."""

    sent: bool
    state: str | None = None
    result: EmailResult | None = None
