"""
Dev Email Adapter.

EmailPort implementation for local runs and tests: every message is logged
and kept in memory, nothing leaves the process. Results come back SKIPPED
so callers can tell a logged message from a delivered one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from src.core.ports.email import EmailMessage, EmailResult

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """A logged message, flattened for assertions."""

    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    sender: str | None
    cc: tuple[str, ...]
    bcc: tuple[str, ...]
    logged_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_message(cls, message_id: str, message: EmailMessage) -> SentEmail:
        return cls(
            id=message_id,
            recipient=str(message.recipient),
            subject=message.subject,
            body_html=message.body_html,
            body_text=message.body_text,
            sender=str(message.sender) if message.sender else None,
            cc=message.cc,
            bcc=message.bcc,
        )


@dataclass
class DevEmailAdapter:
    """Logs messages instead of sending them."""

    sent_emails: list[SentEmail] = field(default_factory=list)
    log_level: int = logging.INFO
    log_body: bool = True
    body_preview_length: int = 100

    def send(self, message: EmailMessage) -> EmailResult:
        record = SentEmail.from_message(f"dev-{uuid4().hex[:12]}", message)
        self.sent_emails.append(record)
        logger.log(self.log_level, self._describe(record, message.body))
        return EmailResult.skipped(
            record.recipient,
            message_id=record.id,
            reason="Dev mode - email logged, not sent",
        )

    def _describe(self, record: SentEmail, body: str) -> str:
        parts = [f"EMAIL (dev): To={record.recipient}", f"Subject={record.subject}"]
        if record.sender:
            parts.append(f"From={record.sender}")
        if record.cc:
            parts.append(f"Cc={', '.join(record.cc)}")
        if self.log_body and body:
            preview = body[: self.body_preview_length]
            if len(body) > self.body_preview_length:
                preview += "..."
            parts.append(f"Body={preview}")
        parts.append(f"MessageID={record.id}")
        return ", ".join(parts)

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)


def create_dev_email_adapter(
    log_level: int = logging.INFO,
    log_body: bool = True,
    body_preview_length: int = 100,
) -> DevEmailAdapter:
    """Create a dev email adapter."""
    return DevEmailAdapter(
        log_level=log_level,
        log_body=log_body,
        body_preview_length=body_preview_length,
    )
