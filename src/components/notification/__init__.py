"""
Notification component.

Double opt-in compatible e-mail handler: sends the notification when the
resolved submission state matches, including the confirmed opt-in state.
"""

from src.components.notification.component import (
    DoubleOptInCompatibleEmailHandler,
    run,
    run_notify,
    state_options,
)
from src.components.notification.models import (
    NotificationConfig,
    NotifyInput,
    NotifyOutput,
)

__all__ = [
    # Component
    "run",
    "run_notify",
    "state_options",
    "DoubleOptInCompatibleEmailHandler",
    # Models
    "NotificationConfig",
    "NotifyInput",
    "NotifyOutput",
]
