"""
Double opt-in component ports.

Protocol interfaces the double opt-in handler depends on.
"""

from __future__ import annotations

from typing import Protocol

from src.core.entities import SubmissionRecord
from src.core.ports.confirmer import EmailConfirmerPort
from src.core.ports.submissions import SubmissionRepoPort

__all__ = [
    "EmailConfirmerPort",
    "StateResolverPort",
    "SubmissionRepoPort",
]


class StateResolverPort(Protocol):
    """
    Resolves the state a submission is considered in.

    Implemented by SubmissionStateHooks.
    """

    def resolve_state(self, submission: SubmissionRecord, state: str | None = None) -> str:
        ...
