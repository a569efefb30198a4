"""
Double opt-in component.

Defers a submission's notification until the recipient confirms their
e-mail address through the external email confirmer.
"""

from src.components.double_opt_in._impl import DoubleOptInEmailHandler
from src.components.double_opt_in.component import (
    GLOBAL_REALM,
    NO_STATES_WARNING,
    advance_status,
    confirmation_realm,
    effective_states,
    initialize_status,
    needs_dispatch,
    run,
    run_post_delete,
    run_post_save,
    run_pre_save,
    summarize_handler,
    trigger_state,
)
from src.components.double_opt_in.models import (
    VALID_TRANSITIONS,
    ConfirmationDispatchFailed,
    DoubleOptInConfig,
    DoubleOptInError,
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

__all__ = [
    # Component
    "run",
    "run_pre_save",
    "run_post_save",
    "run_post_delete",
    "DoubleOptInEmailHandler",
    # Pure functions
    "advance_status",
    "confirmation_realm",
    "effective_states",
    "initialize_status",
    "needs_dispatch",
    "summarize_handler",
    "trigger_state",
    # Constants
    "GLOBAL_REALM",
    "NO_STATES_WARNING",
    # Models
    "VALID_TRANSITIONS",
    "can_transition",
    "DoubleOptInConfig",
    "HandlerSummary",
    "PostSaveOutcome",
    # Input/Output
    "PreSaveInput",
    "PreSaveOutput",
    "PostSaveInput",
    "PostSaveOutput",
    "PostDeleteInput",
    "PostDeleteOutput",
    # Errors
    "DoubleOptInError",
    "ConfirmationDispatchFailed",
    "InvalidRealmState",
    "InvalidTransitionError",
    # Ports
    "EmailConfirmerPort",
    "StateResolverPort",
    "SubmissionRepoPort",
]
