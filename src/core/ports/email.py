"""
Email Sender Interface.

The notification handler hands a composed EmailMessage to an EmailPort once
a submission reaches one of its trigger states. The same message type is
passed to the email confirmer, which mails it after the recipient confirms.

Senders report provider problems through EmailResult instead of raising, so
a broken mailbox never aborts a submission save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol


class EmailStatus(Enum):
    SENT = "sent"
    SKIPPED = "skipped"  # Logged only (dev adapter)
    FAILED = "failed"


@dataclass(frozen=True)
class EmailAddress:
    """Mailbox, optionally with a display name."""

    email: str
    name: str | None = None

    def __str__(self) -> str:
        if not self.name:
            return self.email
        quoted = self.name.replace('"', '\\"')
        return f'"{quoted}" <{self.email}>'


@dataclass(frozen=True)
class EmailMessage:
    """
    A composed e-mail, placeholders already replaced.

    Exactly one of body_html / body_text is normally set, depending on the
    handler's html flag.
    """

    recipient: EmailAddress
    subject: str
    body_html: str = ""
    body_text: str = ""
    sender: EmailAddress | None = None  # Site default when unset
    reply_to: EmailAddress | None = None
    cc: tuple[str, ...] = ()
    bcc: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.recipient.email:
            raise ValueError("Recipient email is required")
        if not (self.body_html or self.body_text):
            raise ValueError("Message body is required")

    @property
    def is_html(self) -> bool:
        return bool(self.body_html)

    @property
    def body(self) -> str:
        return self.body_html or self.body_text

    def to_dict(self) -> dict[str, Any]:
        """Flatten to the mapping handed to the email confirmer."""
        return {
            "to_mail": self.recipient.email,
            "cc_mail": ", ".join(self.cc),
            "bcc_mail": ", ".join(self.bcc),
            "from_mail": self.sender.email if self.sender else None,
            "from_name": self.sender.name if self.sender else None,
            "reply_to": self.reply_to.email if self.reply_to else None,
            "subject": self.subject,
            "body": self.body,
            "is_html": self.is_html,
        }


@dataclass
class EmailResult:
    """Outcome of handing a message to a sender."""

    status: EmailStatus
    recipient: str
    message_id: str | None = None
    error: str | None = None
    at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def failed(self) -> bool:
        return self.status == EmailStatus.FAILED

    @classmethod
    def sent(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(EmailStatus.SENT, recipient, message_id=message_id)

    @classmethod
    def skipped(cls, recipient: str, message_id: str, reason: str) -> EmailResult:
        return cls(EmailStatus.SKIPPED, recipient, message_id=message_id, error=reason)

    @classmethod
    def failure(cls, recipient: str, error: str) -> EmailResult:
        return cls(EmailStatus.FAILED, recipient, error=error)


class EmailPort(Protocol):
    """Sends composed messages. Implemented by DevEmailAdapter."""

    def send(self, message: EmailMessage) -> EmailResult:
        """
        Send a message.

        Returns:
            EmailResult; provider errors come back as a FAILED result
        """
        ...
