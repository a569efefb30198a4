"""
Email Confirmer Interface.

Protocol for the external service that issues and verifies e-mail address
confirmation challenges. Token generation, storage, expiry and single-use
enforcement all live behind this port; the double opt-in handler only asks
whether an address is confirmed for a realm and requests new challenges.

Realms namespace confirmations: a confirmation under one realm says nothing
about another.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from src.core.ports.email import EmailMessage


@dataclass(frozen=True)
class EmailConfirmation:
    """A confirmation record held by the confirmer."""

    email: str
    realm: str
    confirmed: bool = False
    valid: bool = True  # False once expired or revoked
    confirmed_at: datetime | None = None

    def is_confirmed(self) -> bool:
        return self.confirmed


@dataclass(frozen=True)
class ConfirmationRequest:
    """Handle for a confirmation challenge that was just issued."""

    id: str
    email: str
    realm: str
    metadata: dict[str, Any] = field(default_factory=dict)


class EmailConfirmerPort(Protocol):
    """Confirmation delegate consumed by the double opt-in handler."""

    def get_confirmation(
        self,
        email: str,
        only_valid: bool = True,
        realm: str = "",
    ) -> EmailConfirmation | None:
        """
        Look up the confirmation for an address under a realm.

        Args:
            email: Address to look up
            only_valid: Ignore expired or revoked confirmations
            realm: Confirmation realm

        Returns:
            The confirmation record, or None if there is none
        """
        ...

    def confirm(
        self,
        email: str,
        metadata: dict[str, Any],
        realm: str,
        message: EmailMessage,
    ) -> ConfirmationRequest:
        """
        Issue a confirmation challenge to an address.

        Args:
            email: Address to confirm
            metadata: Correlation payload (the submission id)
            realm: Confirmation realm
            message: Composed notification, reused once confirmed

        Returns:
            The issued request

        Raises:
            Any error of the underlying transport; callers decide policy.
        """
        ...
