"""
Submission state component unit tests.

Covers:
- Default state options and the confirmed-state option
- Confirmed-state resolution
- Resolver ordering by priority and registration
- Option merging
"""

from __future__ import annotations

import pytest

from src.components.submission_state import (
    CONFIRMED_STATE,
    DEFAULT_STATE_OPTIONS,
    GetSubmissionStateEvent,
    GetSubmissionStateOptionsEvent,
    SubmissionStateHooks,
    confirmed_state_option,
    create_default_hooks,
    resolve_confirmed_state,
)
from src.core.entities import OptInStatus, SubmissionRecord, SubmissionState


def make_submission(
    state: SubmissionState = SubmissionState.COMPLETED,
    status: OptInStatus | None = None,
) -> SubmissionRecord:
    return SubmissionRecord(
        id="42",
        webform_id="contact",
        data={"email": "a@example.com"},
        state=state,
        opt_in_status=status,
    )


@pytest.fixture
def hooks() -> SubmissionStateHooks:
    return create_default_hooks()


class TestResolveConfirmedState:
    """The bundled confirmed-state resolver."""

    def test_completed_and_confirmed(self) -> None:
        submission = make_submission(status=OptInStatus.CONFIRMED)
        assert resolve_confirmed_state(submission, "completed") == CONFIRMED_STATE

    @pytest.mark.parametrize(
        "status",
        [None, OptInStatus.PENDING_MAIL, OptInStatus.PENDING, OptInStatus.DISPATCH_FAILED],
    )
    def test_completed_not_confirmed(self, status: OptInStatus | None) -> None:
        submission = make_submission(status=status)
        assert resolve_confirmed_state(submission, "completed") == "completed"

    @pytest.mark.parametrize("state", ["draft", "updated", "deleted", "locked"])
    def test_other_states_untouched(self, state: str) -> None:
        submission = make_submission(status=OptInStatus.CONFIRMED)
        assert resolve_confirmed_state(submission, state) == state


class TestStateOptions:
    """Trigger-state option collection."""

    def test_default_options_include_confirmed(self, hooks: SubmissionStateHooks) -> None:
        options = hooks.get_state_options()

        for key in DEFAULT_STATE_OPTIONS:
            assert key in options
        assert options[CONFIRMED_STATE] == "…when double opt-in is confirmed"

    def test_confirmed_option_added_last(self, hooks: SubmissionStateHooks) -> None:
        assert list(hooks.get_state_options())[-1] == CONFIRMED_STATE

    def test_empty_registry_has_defaults_only(self) -> None:
        assert SubmissionStateHooks().get_state_options() == DEFAULT_STATE_OPTIONS

    def test_defaults_not_mutated(self, hooks: SubmissionStateHooks) -> None:
        hooks.get_state_options()
        assert CONFIRMED_STATE not in DEFAULT_STATE_OPTIONS

    def test_later_provider_overrides_label(self, hooks: SubmissionStateHooks) -> None:
        hooks.add_options_provider(lambda options: {CONFIRMED_STATE: "Confirmed"})
        assert hooks.get_state_options()[CONFIRMED_STATE] == "Confirmed"

    def test_lower_priority_runs_first(self, hooks: SubmissionStateHooks) -> None:
        # Runs before the bundled provider, which then wins the label
        hooks.add_options_provider(lambda options: {CONFIRMED_STATE: "Early"}, priority=-10)
        assert hooks.get_state_options()[CONFIRMED_STATE] == "…when double opt-in is confirmed"

    def test_provider_sees_current_options(self) -> None:
        seen: list[dict[str, str]] = []
        hooks = SubmissionStateHooks()
        hooks.add_options_provider(confirmed_state_option)
        hooks.add_options_provider(lambda options: seen.append(options) or {})

        hooks.get_state_options()

        assert CONFIRMED_STATE in seen[0]

    def test_options_event_merge(self) -> None:
        event = GetSubmissionStateOptionsEvent(options={"a": "A"})
        event.add_options({"b": "B", "a": "A2"})
        assert event.options == {"a": "A2", "b": "B"}


class TestResolverOrdering:
    """Resolver chain ordering."""

    def test_default_resolution(self, hooks: SubmissionStateHooks) -> None:
        submission = make_submission(status=OptInStatus.CONFIRMED)
        assert hooks.resolve_state(submission) == CONFIRMED_STATE

    def test_explicit_state(self, hooks: SubmissionStateHooks) -> None:
        submission = make_submission(state=SubmissionState.DRAFT, status=OptInStatus.CONFIRMED)
        assert hooks.resolve_state(submission, "completed") == CONFIRMED_STATE

    def test_last_resolver_wins(self, hooks: SubmissionStateHooks) -> None:
        hooks.add_state_resolver(lambda submission, state: "custom")
        submission = make_submission(status=OptInStatus.CONFIRMED)
        assert hooks.resolve_state(submission) == "custom"

    def test_resolvers_chain_in_priority_order(self) -> None:
        calls: list[str] = []
        hooks = SubmissionStateHooks()

        def late(submission: SubmissionRecord, state: str) -> str:
            calls.append("late")
            return f"{state}+late"

        def early(submission: SubmissionRecord, state: str) -> str:
            calls.append("early")
            return f"{state}+early"

        hooks.add_state_resolver(late, priority=10)
        hooks.add_state_resolver(early, priority=-10)

        assert hooks.resolve_state(make_submission()) == "completed+early+late"
        assert calls == ["early", "late"]

    def test_equal_priority_keeps_registration_order(self) -> None:
        hooks = SubmissionStateHooks()
        hooks.add_state_resolver(lambda submission, state: "first")
        hooks.add_state_resolver(lambda submission, state: "second")

        assert hooks.resolve_state(make_submission()) == "second"
        assert len(hooks.state_resolvers) == 2

    def test_resolver_before_bundled_one_can_feed_it(self, hooks: SubmissionStateHooks) -> None:
        hooks.add_state_resolver(lambda submission, state: "completed", priority=-1)
        submission = make_submission(state=SubmissionState.UPDATED, status=OptInStatus.CONFIRMED)

        assert hooks.resolve_state(submission) == CONFIRMED_STATE

    def test_state_event_exposes_status(self) -> None:
        submission = make_submission(status=OptInStatus.PENDING)
        event = GetSubmissionStateEvent(submission=submission, state="completed")
        assert event.opt_in_status == OptInStatus.PENDING
