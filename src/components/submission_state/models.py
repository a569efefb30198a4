"""
Submission state component models.

Event payloads and names for the two extension points:
- GET_SUBMISSION_STATE: override the state a submission is considered in
- GET_SUBMISSION_STATE_OPTIONS: extend the trigger-state option list
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from src.core.entities import OptInStatus, SubmissionRecord, SubmissionState

GET_SUBMISSION_STATE = "webform_double_opt_in.get_submission_state"
GET_SUBMISSION_STATE_OPTIONS = "webform_double_opt_in.get_submission_state_options"

# Synthetic resolved state: completed submission with confirmed opt-in
CONFIRMED_STATE = "double_opt_in_confirmed"

DEFAULT_STATE_OPTIONS: dict[str, str] = {
    SubmissionState.DRAFT.value: "…when draft is saved.",
    SubmissionState.CONVERTED.value: "…when anonymous submission is converted to authenticated.",
    SubmissionState.COMPLETED.value: "…when submission is completed.",
    SubmissionState.UPDATED.value: "…when submission is updated.",
    SubmissionState.DELETED.value: "…when submission is deleted.",
    SubmissionState.LOCKED.value: "…when submission is locked.",
}

# (submission, proposed state) -> resolved state
StateResolver = Callable[[SubmissionRecord, str], str]

# current options -> options to merge in
StateOptionsProvider = Callable[[dict[str, str]], dict[str, str]]


@dataclass
class GetSubmissionStateEvent:
    """State being resolved for a submission."""

    submission: SubmissionRecord
    state: str

    @property
    def opt_in_status(self) -> OptInStatus | None:
        return self.submission.opt_in_status


@dataclass
class GetSubmissionStateOptionsEvent:
    """Trigger-state options being collected."""

    options: dict[str, str] = field(default_factory=dict)

    def add_options(self, options: dict[str, str]) -> None:
        """Merge options by key; later entries win."""
        self.options = {**self.options, **options}
