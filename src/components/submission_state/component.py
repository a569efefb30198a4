"""
Submission state component.

Extension points for the state used to trigger e-mail handlers.

Subscribers are plain functions kept in an explicit ordered registry
instead of a global event dispatcher:
- state resolvers: (submission, state) -> state
- option providers: (options) -> options to merge

Order is ascending priority, registration order breaking ties. Each
resolver sees the previous resolver's result, so the last one wins.
Providers merge by key, the last registrant winning for a key.
"""

from __future__ import annotations

import logging

from src.components.submission_state.models import (
    CONFIRMED_STATE,
    DEFAULT_STATE_OPTIONS,
    GetSubmissionStateEvent,
    GetSubmissionStateOptionsEvent,
    StateOptionsProvider,
    StateResolver,
)
from src.core.entities import OptInStatus, SubmissionRecord, SubmissionState

logger = logging.getLogger(__name__)


# --- Default Subscribers ---


def resolve_confirmed_state(submission: SubmissionRecord, state: str) -> str:
    """Resolve a completed submission with confirmed opt-in to the confirmed state."""
    if (
        submission.opt_in_status == OptInStatus.CONFIRMED
        and state == SubmissionState.COMPLETED.value
    ):
        return CONFIRMED_STATE
    return state


def confirmed_state_option(options: dict[str, str]) -> dict[str, str]:
    """Offer the confirmed state as a trigger option."""
    return {CONFIRMED_STATE: "…when double opt-in is confirmed"}


# --- Registry ---


class SubmissionStateHooks:
    """Ordered registry of state resolvers and option providers."""

    def __init__(self) -> None:
        self._resolvers: list[tuple[int, int, StateResolver]] = []
        self._providers: list[tuple[int, int, StateOptionsProvider]] = []
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def add_state_resolver(self, resolver: StateResolver, priority: int = 0) -> None:
        """Register a state resolver. Lower priority runs first."""
        self._resolvers.append((priority, self._next(), resolver))
        self._resolvers.sort(key=lambda entry: (entry[0], entry[1]))

    def add_options_provider(self, provider: StateOptionsProvider, priority: int = 0) -> None:
        """Register an options provider. Lower priority runs first."""
        self._providers.append((priority, self._next(), provider))
        self._providers.sort(key=lambda entry: (entry[0], entry[1]))

    @property
    def state_resolvers(self) -> list[StateResolver]:
        return [entry[2] for entry in self._resolvers]

    @property
    def options_providers(self) -> list[StateOptionsProvider]:
        return [entry[2] for entry in self._providers]

    def resolve_state(self, submission: SubmissionRecord, state: str | None = None) -> str:
        """
        Resolve the state a submission is considered in.

        Args:
            submission: Submission being evaluated
            state: Proposed state (defaults to the submission's lifecycle state)

        Returns:
            Resolved state after all resolvers ran
        """
        event = GetSubmissionStateEvent(
            submission=submission,
            state=state if state is not None else submission.state.value,
        )
        for resolver in self.state_resolvers:
            event.state = resolver(event.submission, event.state)

        if event.state != submission.state.value:
            logger.debug(
                "Submission %s state resolved %s -> %s",
                submission.id,
                submission.state.value,
                event.state,
            )
        return event.state

    def get_state_options(self) -> dict[str, str]:
        """Collect trigger-state options (key -> label)."""
        event = GetSubmissionStateOptionsEvent(options=dict(DEFAULT_STATE_OPTIONS))
        for provider in self.options_providers:
            event.add_options(provider(dict(event.options)))
        return event.options


def create_default_hooks() -> SubmissionStateHooks:
    """Registry with the bundled confirmed-state resolver and option."""
    hooks = SubmissionStateHooks()
    hooks.add_state_resolver(resolve_confirmed_state, priority=0)
    hooks.add_options_provider(confirmed_state_option, priority=0)
    return hooks
