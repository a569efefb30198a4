# webform-double-opt-in - Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.confirmer import (
    ConfirmationRequest,
    EmailConfirmation,
    EmailConfirmerPort,
)
from src.core.ports.email import (
    EmailAddress,
    EmailMessage,
    EmailPort,
    EmailResult,
    EmailStatus,
)
from src.core.ports.submissions import SubmissionRepoPort

__all__ = [
    # Email
    "EmailAddress",
    "EmailMessage",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
    # Confirmer
    "ConfirmationRequest",
    "EmailConfirmation",
    "EmailConfirmerPort",
    # Submissions
    "SubmissionRepoPort",
]
