"""
Dev Email Confirmer Adapter.

In-memory stand-in for the external email confirmer. Issued challenges
are recorded and logged; nothing is mailed. Tests and the dev server
complete a confirmation with ``mark_confirmed``.

Confirmations are keyed by (email, realm). Addresses are compared
case-insensitively.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.core.ports.confirmer import ConfirmationRequest, EmailConfirmation
from src.core.ports.email import EmailMessage

logger = logging.getLogger(__name__)


@dataclass
class IssuedChallenge:
    """Record of a confirmation challenge for test assertions."""

    request: ConfirmationRequest
    message: EmailMessage
    issued_at: datetime


@dataclass
class InMemoryEmailConfirmer:
    """Email confirmer keeping confirmations in memory."""

    confirmations: dict[tuple[str, str], EmailConfirmation] = field(default_factory=dict)
    issued: list[IssuedChallenge] = field(default_factory=list)
    fail_with: Exception | None = None  # Raised by confirm() when set

    @staticmethod
    def _key(email: str, realm: str) -> tuple[str, str]:
        return (email.strip().lower(), realm)

    def get_confirmation(
        self,
        email: str,
        only_valid: bool = True,
        realm: str = "",
    ) -> EmailConfirmation | None:
        confirmation = self.confirmations.get(self._key(email, realm))
        if confirmation is None:
            return None
        if only_valid and not confirmation.valid:
            return None
        return confirmation

    def confirm(
        self,
        email: str,
        metadata: dict[str, Any],
        realm: str,
        message: EmailMessage,
    ) -> ConfirmationRequest:
        if self.fail_with is not None:
            raise self.fail_with

        request = ConfirmationRequest(
            id=uuid4().hex,
            email=email,
            realm=realm,
            metadata=dict(metadata),
        )
        self.issued.append(
            IssuedChallenge(request=request, message=message, issued_at=datetime.now(UTC))
        )
        self.confirmations.setdefault(
            self._key(email, realm),
            EmailConfirmation(email=email, realm=realm),
        )
        logger.info(
            "CONFIRMATION (dev): To=%s, Realm=%s, Subject=%s, RequestID=%s",
            email,
            realm,
            message.subject,
            request.id,
        )
        return request

    # --- Test Helper Methods ---

    def mark_confirmed(self, email: str, realm: str) -> EmailConfirmation:
        """Record that the address completed the confirmation for a realm."""
        confirmation = EmailConfirmation(
            email=email,
            realm=realm,
            confirmed=True,
            confirmed_at=datetime.now(UTC),
        )
        self.confirmations[self._key(email, realm)] = confirmation
        return confirmation

    def revoke(self, email: str, realm: str) -> None:
        """Mark a confirmation invalid (expired or revoked)."""
        key = self._key(email, realm)
        existing = self.confirmations.get(key)
        if existing is not None:
            self.confirmations[key] = EmailConfirmation(
                email=existing.email,
                realm=existing.realm,
                confirmed=existing.confirmed,
                valid=False,
                confirmed_at=existing.confirmed_at,
            )

    def requests_for(self, email: str) -> list[ConfirmationRequest]:
        """Get all challenges issued to an address."""
        target = email.strip().lower()
        return [c.request for c in self.issued if c.request.email.lower() == target]

    @property
    def request_count(self) -> int:
        return len(self.issued)
