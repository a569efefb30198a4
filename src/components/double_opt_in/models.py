"""
Double opt-in component models.

Data models for the double opt-in e-mail handler.

State machine (per submission):
pending_mail -> pending -> confirmed
pending -> dispatch_failed -> pending (retry)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.core.entities import OptInStatus, SubmissionRecord
from src.core.ports.confirmer import ConfirmationRequest
from src.core.services.message import MessageTemplate

# --- State Machine ---


# Valid state transitions
VALID_TRANSITIONS: dict[OptInStatus, set[OptInStatus]] = {
    OptInStatus.PENDING_MAIL: {OptInStatus.PENDING},
    OptInStatus.PENDING: {OptInStatus.CONFIRMED, OptInStatus.DISPATCH_FAILED},
    OptInStatus.DISPATCH_FAILED: {OptInStatus.PENDING},
    OptInStatus.CONFIRMED: set(),  # Terminal state
}


def can_transition(from_status: OptInStatus | None, to_status: OptInStatus) -> bool:
    """Check if an opt-in status transition is valid."""
    if from_status is None:
        return to_status == OptInStatus.PENDING_MAIL
    return to_status in VALID_TRANSITIONS.get(from_status, set())


class PostSaveOutcome(Enum):
    """What the handler did on a post-save notification."""

    NOT_TRIGGERED = "not_triggered"  # State not in trigger states
    NO_STATUS = "no_status"  # Pre-save never initialized the status
    ALREADY_CLAIMED = "already_claimed"  # Another save claimed the dispatch
    CONFIRMATION_REQUESTED = "confirmation_requested"
    CONFIRMED = "confirmed"  # Confirmer already had a confirmation
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    ALREADY_CONFIRMED = "already_confirmed"
    DISPATCH_FAILED = "dispatch_failed"  # Left for a manual resend


# --- Configuration ---


@dataclass(frozen=True)
class DoubleOptInConfig:
    """Double opt-in handler configuration."""

    message: MessageTemplate
    states: frozenset[str] = frozenset()
    opt_in_globally: bool = False
    retry_failed_dispatch: bool = True
    handler_id: str = "webform_double_opt_in_email"


# --- Input Models ---


@dataclass(frozen=True)
class PreSaveInput:
    """Submission about to be persisted."""

    submission: SubmissionRecord


@dataclass(frozen=True)
class PostSaveInput:
    """Submission that was just persisted."""

    submission: SubmissionRecord
    update: bool = True


@dataclass(frozen=True)
class PostDeleteInput:
    """Submission that was just deleted."""

    submission: SubmissionRecord


# --- Output Models ---


@dataclass(frozen=True)
class PreSaveOutput:
    submission: SubmissionRecord
    initialized: bool = False


@dataclass(frozen=True)
class PostSaveOutput:
    """Output from post-save evaluation."""

    outcome: PostSaveOutcome
    opt_in_status: OptInStatus | None = None
    state: str | None = None
    realm: str | None = None
    confirmation_request: ConfirmationRequest | None = None


@dataclass(frozen=True)
class PostDeleteOutput:
    submission_id: str


@dataclass(frozen=True)
class HandlerSummary:
    """Settings summary shown for a configured handler."""

    handler_id: str
    settings: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


# --- Error Types ---


class DoubleOptInError(Exception):
    """Base double opt-in error."""

    pass


class ConfirmationDispatchFailed(DoubleOptInError):
    """The email confirmer failed after the dispatch was claimed."""

    def __init__(self, submission_id: str, realm: str, reason: str) -> None:
        self.submission_id = submission_id
        self.realm = realm
        self.reason = reason
        super().__init__(
            f"Confirmation dispatch failed for submission '{submission_id}' "
            f"in realm '{realm}': {reason}"
        )


class InvalidRealmState(DoubleOptInError):
    """A confirmation realm cannot be built from the submission id."""

    def __init__(self, submission_id: Any) -> None:
        self.submission_id = submission_id
        super().__init__(f"Invalid submission id for confirmation realm: {submission_id!r}")


class InvalidTransitionError(DoubleOptInError):
    """Opt-in status transition not allowed."""

    def __init__(self, from_status: OptInStatus | None, to_status: OptInStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        from_label = from_status.value if from_status else None
        super().__init__(f"Cannot move opt-in status from {from_label} to {to_status.value}")
