"""
Domain entities for webform double opt-in.

- SubmissionState: lifecycle state owned by the hosting form system
- OptInStatus: double opt-in progress of a single submission
- SubmissionRecord: one submission with its data bag and typed opt-in status

The opt-in status used to live in the submission data bag under the
reserved key ``opt_in_status``. It is now a typed field on the record;
``SubmissionRecord.from_data`` lifts the legacy key out of the bag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

__all__ = [
    "LEGACY_OPT_IN_STATUS_VALUES",
    "OPT_IN_STATUS_KEY",
    "OptInStatus",
    "SubmissionRecord",
    "SubmissionState",
    "WebformSettings",
]


# Reserved key in the submission data bag
OPT_IN_STATUS_KEY = "opt_in_status"


class SubmissionState(str, Enum):
    """Lifecycle state of a submission in the hosting form system."""

    DRAFT = "draft"
    CONVERTED = "converted"
    COMPLETED = "completed"
    UPDATED = "updated"
    DELETED = "deleted"
    LOCKED = "locked"


class OptInStatus(str, Enum):
    """
    Double opt-in status of a submission.

    Forward path: pending_mail -> pending -> confirmed.
    dispatch_failed is entered when the confirmer errors after the
    dispatch was claimed, and can be re-claimed back to pending.
    """

    PENDING_MAIL = "pending_mail"  # Confirmation mail not sent yet
    PENDING = "pending"  # Confirmation mail sent, awaiting recipient
    CONFIRMED = "confirmed"  # Recipient confirmed (now or earlier, same realm)
    DISPATCH_FAILED = "dispatch_failed"


# Legacy status values found in older data bags
LEGACY_OPT_IN_STATUS_VALUES: dict[str, OptInStatus] = {
    "Double opt-in confirmation mail pending": OptInStatus.PENDING_MAIL,
    "Double opt-in confirmation pending": OptInStatus.PENDING,
    "Double opt-in confirmed": OptInStatus.CONFIRMED,
}


def parse_opt_in_status(value: Any) -> OptInStatus | None:
    """Parse a stored status value, accepting legacy strings."""
    if value is None or value == "":
        return None
    if isinstance(value, OptInStatus):
        return value
    if value in LEGACY_OPT_IN_STATUS_VALUES:
        return LEGACY_OPT_IN_STATUS_VALUES[value]
    return OptInStatus(value)


@dataclass(frozen=True)
class WebformSettings:
    """Form-level settings the handlers read."""

    results_disabled: bool = False


@dataclass
class SubmissionRecord:
    """A single form submission."""

    id: str
    webform_id: str
    data: dict[str, Any] = field(default_factory=dict)
    state: SubmissionState = SubmissionState.COMPLETED
    opt_in_status: OptInStatus | None = None
    webform: WebformSettings = field(default_factory=WebformSettings)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    changed_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    # Set by the save that moved the opt-in status to confirmed; not persisted
    confirmed_on_save: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def from_data(
        cls,
        id: str,
        webform_id: str,
        data: dict[str, Any],
        state: SubmissionState = SubmissionState.COMPLETED,
        webform: WebformSettings | None = None,
    ) -> SubmissionRecord:
        """Build a record from a raw data bag, lifting the reserved status key."""
        bag = dict(data)
        status = parse_opt_in_status(bag.pop(OPT_IN_STATUS_KEY, None))
        return cls(
            id=id,
            webform_id=webform_id,
            data=bag,
            state=state,
            opt_in_status=status,
            webform=webform or WebformSettings(),
        )
