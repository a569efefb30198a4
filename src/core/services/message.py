"""
Message composition for webform e-mail handlers.

Builds an EmailMessage from a handler's message template and a submission.
Placeholders use the ``{{key}}`` form and are looked up in the submission
data, with ``submission_id`` and ``webform_id`` always available. Unknown
placeholders render as an empty string.

Placeholders are replaced in every template field, subject included, before
the message is handed to the email confirmer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from src.core.entities import SubmissionRecord
from src.core.ports.email import EmailAddress, EmailMessage

PLACEHOLDER_REGEX = re.compile(r"\{\{\s*([\w.:-]+)\s*\}\}")

DEFAULT_SUBJECT = "Webform submission from: {{webform_id}}"
DEFAULT_BODY = "Submitted values are:\n{{values}}"


@dataclass(frozen=True)
class MessageTemplate:
    """Recipient, sender and body fields of an e-mail handler."""

    to_mail: str
    subject: str = DEFAULT_SUBJECT
    body: str = DEFAULT_BODY
    from_mail: str | None = None
    from_name: str | None = None
    cc_mail: str | None = None
    bcc_mail: str | None = None
    reply_to: str | None = None
    html: bool = False


def _format_values(data: dict[str, Any]) -> str:
    return "\n".join(f"{key}: {value}" for key, value in data.items())


def build_context(submission: SubmissionRecord) -> dict[str, str]:
    """Placeholder values for a submission."""
    context = {key: "" if value is None else str(value) for key, value in submission.data.items()}
    context["submission_id"] = submission.id
    context["webform_id"] = submission.webform_id
    context["values"] = _format_values(submission.data)
    return context


def replace_placeholders(text: str | None, context: dict[str, str]) -> str:
    """Replace ``{{key}}`` placeholders in text."""
    if not text:
        return ""
    return PLACEHOLDER_REGEX.sub(lambda m: context.get(m.group(1), ""), text)


def _split_addresses(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def compose_message(template: MessageTemplate, submission: SubmissionRecord) -> EmailMessage:
    """
    Compose the e-mail for a submission.

    Args:
        template: Handler message template
        submission: Submission providing placeholder values

    Returns:
        EmailMessage ready to send or to pass to the confirmer

    Raises:
        ValueError: If the recipient resolves to an empty address
    """
    context = build_context(submission)

    to_mail = replace_placeholders(template.to_mail, context).strip()
    body = replace_placeholders(template.body, context)
    from_mail = replace_placeholders(template.from_mail, context).strip()
    reply_to = replace_placeholders(template.reply_to, context).strip()

    return EmailMessage(
        recipient=EmailAddress(to_mail),
        subject=replace_placeholders(template.subject, context),
        body_html=body if template.html else "",
        body_text="" if template.html else body,
        sender=(
            EmailAddress(from_mail, replace_placeholders(template.from_name, context) or None)
            if from_mail
            else None
        ),
        reply_to=EmailAddress(reply_to) if reply_to else None,
        cc=_split_addresses(replace_placeholders(template.cc_mail, context)),
        bcc=_split_addresses(replace_placeholders(template.bcc_mail, context)),
    )
