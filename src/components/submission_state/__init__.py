"""
Submission state component.

Extension points for resolving a submission's trigger state and for
collecting the trigger-state options offered to operators.
"""

from src.components.submission_state.component import (
    SubmissionStateHooks,
    confirmed_state_option,
    create_default_hooks,
    resolve_confirmed_state,
)
from src.components.submission_state.models import (
    CONFIRMED_STATE,
    DEFAULT_STATE_OPTIONS,
    GET_SUBMISSION_STATE,
    GET_SUBMISSION_STATE_OPTIONS,
    GetSubmissionStateEvent,
    GetSubmissionStateOptionsEvent,
    StateOptionsProvider,
    StateResolver,
)

__all__ = [
    # Registry
    "SubmissionStateHooks",
    "create_default_hooks",
    # Default subscribers
    "resolve_confirmed_state",
    "confirmed_state_option",
    # Constants
    "CONFIRMED_STATE",
    "DEFAULT_STATE_OPTIONS",
    "GET_SUBMISSION_STATE",
    "GET_SUBMISSION_STATE_OPTIONS",
    # Models
    "GetSubmissionStateEvent",
    "GetSubmissionStateOptionsEvent",
    "StateOptionsProvider",
    "StateResolver",
]
