"""
Submissions component.

Save/delete pipeline that drives webform handlers around persistence.
"""

from src.components.submissions.component import SubmissionPipeline
from src.components.submissions.models import (
    DeleteResult,
    SaveResult,
    SubmissionNotFoundError,
)
from src.components.submissions.ports import SubmissionRepoPort, WebformHandlerPort

__all__ = [
    "SubmissionPipeline",
    "SaveResult",
    "DeleteResult",
    "SubmissionNotFoundError",
    "SubmissionRepoPort",
    "WebformHandlerPort",
]
