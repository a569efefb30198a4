"""
Double opt-in e-mail handler component.

Functional core for deferring a submission's notification until the
recipient confirms their address through the email confirmer.

Key behaviors:
- Pre-save initializes the opt-in status to pending_mail
- Post-save claims the dispatch (pending_mail -> pending) before calling
  the confirmer, so concurrent or repeated saves never double-send
- A confirmation already on record for the realm short-circuits to
  confirmed without issuing a new challenge
- Confirmer errors move the status to dispatch_failed and propagate
- Deleting a submission never sends anything

Realms:
- Global: webform_double_opt_in (a confirmed address stays confirmed)
- Per submission: webform_double_opt_in_<submission id>
"""

from __future__ import annotations

import logging
import re

from src.components.double_opt_in.models import (
    ConfirmationDispatchFailed,
    DoubleOptInConfig,
    HandlerSummary,
    InvalidRealmState,
    InvalidTransitionError,
    PostDeleteInput,
    PostDeleteOutput,
    PostSaveInput,
    PostSaveOutcome,
    PostSaveOutput,
    PreSaveInput,
    PreSaveOutput,
    can_transition,
)
from src.components.double_opt_in.ports import (
    EmailConfirmerPort,
    StateResolverPort,
    SubmissionRepoPort,
)
from src.core.entities import OptInStatus, SubmissionRecord, SubmissionState
from src.core.services.message import compose_message

logger = logging.getLogger(__name__)

GLOBAL_REALM = "webform_double_opt_in"

SUBMISSION_ID_REGEX = re.compile(r"^[A-Za-z0-9_-]+$")

NO_STATES_WARNING = (
    "Because no submission state is checked, this email can only be sent "
    "using the 'Resend' form and/or custom code."
)


# --- Pure Functions (Functional Core) ---


def confirmation_realm(submission_id: str, opt_in_globally: bool = False) -> str:
    """
    Build the confirmation realm for a submission.

    Args:
        submission_id: Submission identifier
        opt_in_globally: Share confirmations across all submissions

    Returns:
        Realm string

    Raises:
        InvalidRealmState: If the submission id is empty or malformed
    """
    if opt_in_globally:
        return GLOBAL_REALM

    if not isinstance(submission_id, str) or not SUBMISSION_ID_REGEX.match(submission_id):
        raise InvalidRealmState(submission_id)

    return f"{GLOBAL_REALM}_{submission_id}"


def trigger_state(
    submission: SubmissionRecord,
    update: bool = True,
    resolver: StateResolverPort | None = None,
) -> str | None:
    """
    State used to decide whether the handler fires.

    Forms that do not keep results always count as completed, and only the
    first save is evaluated.

    Returns:
        The state, or None when the save must be ignored
    """
    if submission.webform.results_disabled:
        if update:
            return None
        return SubmissionState.COMPLETED.value

    if resolver is not None:
        return resolver.resolve_state(submission)
    return submission.state.value


def effective_states(submission: SubmissionRecord, states: frozenset[str]) -> frozenset[str]:
    """Trigger states in force; forms without stored results only know completed."""
    if submission.webform.results_disabled:
        return frozenset({SubmissionState.COMPLETED.value})
    return states


def initialize_status(submission: SubmissionRecord) -> bool:
    """
    Set the opt-in status to pending_mail if it is not set yet.

    Returns:
        True if the status was initialized
    """
    if submission.opt_in_status is not None:
        return False
    submission.opt_in_status = OptInStatus.PENDING_MAIL
    return True


def needs_dispatch(status: OptInStatus | None, retry_failed_dispatch: bool = True) -> bool:
    """Check if a confirmation challenge must be issued for this status."""
    if status == OptInStatus.PENDING_MAIL:
        return True
    return status == OptInStatus.DISPATCH_FAILED and retry_failed_dispatch


def summarize_handler(
    config: DoubleOptInConfig,
    state_options: dict[str, str] | None = None,
) -> HandlerSummary:
    """
    Summarize handler settings for operators.

    Args:
        config: Handler configuration
        state_options: Known trigger-state options (key -> label)

    Returns:
        HandlerSummary with settings and warnings
    """
    warnings: list[str] = []
    if not config.states:
        warnings.append(NO_STATES_WARNING)

    if state_options is not None:
        unknown = sorted(set(config.states) - set(state_options))
        if unknown:
            warnings.append(f"Unknown trigger states: {', '.join(unknown)}")

    return HandlerSummary(
        handler_id=config.handler_id,
        settings={
            "states": sorted(config.states),
            "opt_in_globally": config.opt_in_globally,
            "retry_failed_dispatch": config.retry_failed_dispatch,
            "to_mail": config.message.to_mail,
            "subject": config.message.subject,
        },
        warnings=warnings,
    )


# --- Status Writes ---


def advance_status(
    repo: SubmissionRepoPort,
    submission: SubmissionRecord,
    new_status: OptInStatus,
) -> bool:
    """
    Move the opt-in status forward with a compare-and-swap on the repository.

    Returns:
        True if this caller won the swap

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    current = submission.opt_in_status
    if not can_transition(current, new_status):
        raise InvalidTransitionError(current, new_status)

    if not repo.compare_and_set_status(submission.id, current, new_status):
        logger.info(
            "Submission %s opt-in status changed concurrently, %s -> %s not applied",
            submission.id,
            current.value if current else None,
            new_status.value,
        )
        return False

    submission.opt_in_status = new_status
    if new_status == OptInStatus.CONFIRMED:
        submission.confirmed_on_save = True
    logger.info(
        "Submission %s opt-in status %s -> %s",
        submission.id,
        current.value if current else None,
        new_status.value,
    )
    return True


# --- Run Handlers ---


def run_pre_save(inp: PreSaveInput) -> PreSaveOutput:
    """Initialize the opt-in status before the submission is persisted."""
    initialized = initialize_status(inp.submission)
    return PreSaveOutput(submission=inp.submission, initialized=initialized)


def _dispatch(
    submission: SubmissionRecord,
    state: str,
    repo: SubmissionRepoPort,
    confirmer: EmailConfirmerPort,
    config: DoubleOptInConfig,
) -> PostSaveOutput:
    realm = confirmation_realm(submission.id, config.opt_in_globally)
    message = compose_message(config.message, submission)

    # Claim before talking to the confirmer
    if not advance_status(repo, submission, OptInStatus.PENDING):
        return PostSaveOutput(
            outcome=PostSaveOutcome.ALREADY_CLAIMED,
            opt_in_status=submission.opt_in_status,
            state=state,
            realm=realm,
        )

    to_mail = message.recipient.email
    try:
        existing = confirmer.get_confirmation(to_mail, False, realm)
        if existing is not None and existing.is_confirmed():
            confirmed = advance_status(repo, submission, OptInStatus.CONFIRMED)
            return PostSaveOutput(
                outcome=(
                    PostSaveOutcome.CONFIRMED
                    if confirmed
                    else PostSaveOutcome.AWAITING_CONFIRMATION
                ),
                opt_in_status=submission.opt_in_status,
                state=state,
                realm=realm,
            )

        request = confirmer.confirm(
            to_mail,
            {"webform_submission_id": submission.id},
            realm,
            message,
        )
    except Exception as e:
        logger.exception(
            "Confirmation dispatch failed for submission %s (realm %s)",
            submission.id,
            realm,
        )
        advance_status(repo, submission, OptInStatus.DISPATCH_FAILED)
        raise ConfirmationDispatchFailed(submission.id, realm, str(e)) from e

    logger.info("Confirmation requested for submission %s (realm %s)", submission.id, realm)
    return PostSaveOutput(
        outcome=PostSaveOutcome.CONFIRMATION_REQUESTED,
        opt_in_status=submission.opt_in_status,
        state=state,
        realm=realm,
        confirmation_request=request,
    )


def _check_confirmed(
    submission: SubmissionRecord,
    state: str,
    repo: SubmissionRepoPort,
    confirmer: EmailConfirmerPort,
    config: DoubleOptInConfig,
) -> PostSaveOutput:
    realm = confirmation_realm(submission.id, config.opt_in_globally)
    message = compose_message(config.message, submission)

    confirmation = confirmer.get_confirmation(message.recipient.email, True, realm)
    if confirmation is not None and confirmation.is_confirmed():
        if advance_status(repo, submission, OptInStatus.CONFIRMED):
            return PostSaveOutput(
                outcome=PostSaveOutcome.CONFIRMED,
                opt_in_status=submission.opt_in_status,
                state=state,
                realm=realm,
            )

    return PostSaveOutput(
        outcome=PostSaveOutcome.AWAITING_CONFIRMATION,
        opt_in_status=submission.opt_in_status,
        state=state,
        realm=realm,
    )


def run_post_save(
    inp: PostSaveInput,
    repo: SubmissionRepoPort,
    confirmer: EmailConfirmerPort,
    config: DoubleOptInConfig,
    *,
    resolver: StateResolverPort | None = None,
) -> PostSaveOutput:
    """
    Evaluate a saved submission against the opt-in state machine.

    Raises:
        ConfirmationDispatchFailed: If the confirmer errors after the claim
        InvalidRealmState: If no realm can be built for the submission
    """
    submission = inp.submission
    state = trigger_state(submission, inp.update, resolver)
    states = effective_states(submission, config.states)

    if state is None or not states or state not in states:
        return PostSaveOutput(
            outcome=PostSaveOutcome.NOT_TRIGGERED,
            opt_in_status=submission.opt_in_status,
            state=state,
        )

    status = submission.opt_in_status
    if status is None:
        return PostSaveOutput(outcome=PostSaveOutcome.NO_STATUS, state=state)

    if needs_dispatch(status, config.retry_failed_dispatch):
        return _dispatch(submission, state, repo, confirmer, config)

    if status == OptInStatus.PENDING:
        return _check_confirmed(submission, state, repo, confirmer, config)

    if status == OptInStatus.CONFIRMED:
        return PostSaveOutput(
            outcome=PostSaveOutcome.ALREADY_CONFIRMED,
            opt_in_status=status,
            state=state,
        )

    return PostSaveOutput(
        outcome=PostSaveOutcome.DISPATCH_FAILED,
        opt_in_status=status,
        state=state,
    )


def run_post_delete(inp: PostDeleteInput) -> PostDeleteOutput:
    """Deleting a submission sends nothing."""
    logger.debug("Submission %s deleted, no opt-in mail sent", inp.submission.id)
    return PostDeleteOutput(submission_id=inp.submission.id)


def run(
    inp: PreSaveInput | PostSaveInput | PostDeleteInput,
    *,
    repo: SubmissionRepoPort,
    confirmer: EmailConfirmerPort,
    config: DoubleOptInConfig,
    resolver: StateResolverPort | None = None,
) -> PreSaveOutput | PostSaveOutput | PostDeleteOutput:
    """
    Main component entry point.

    Args:
        inp: Input command
        repo: Submission repository (Required)
        confirmer: Email confirmer (Required)
        config: Handler configuration (Required)
        resolver: State resolver (Optional, raw lifecycle state if omitted)

    Returns:
        Operation result
    """
    if isinstance(inp, PreSaveInput):
        return run_pre_save(inp)
    elif isinstance(inp, PostSaveInput):
        return run_post_save(inp, repo, confirmer, config, resolver=resolver)
    elif isinstance(inp, PostDeleteInput):
        return run_post_delete(inp)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
