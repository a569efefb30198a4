"""
Webform submission endpoints driving the double opt-in handlers.

Endpoints:
- GET /api/webform/state-options - Trigger-state options (key/label)
- GET /api/webform/handlers - Configured handler summaries and warnings
- POST /api/webform/submissions - Create a submission (runs handlers)
- GET /api/webform/submissions/{id} - Read a submission
- PUT /api/webform/submissions/{id} - Update a submission (runs handlers)
- POST /api/webform/submissions/{id}/refresh - Resave to pick up confirmations
- DELETE /api/webform/submissions/{id} - Delete a submission
- POST /api/webform/dev/confirmations - Mark an address confirmed (dev confirmer)
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from src.adapters.dev_confirmer import InMemoryEmailConfirmer
from src.adapters.sqlite_db import SQLiteSubmissionRepo
from src.api.deps import (
    get_email_confirmer,
    get_pipeline,
    get_rules,
    get_state_hooks,
    get_submission_repo,
)
from src.components.double_opt_in import (
    ConfirmationDispatchFailed,
    InvalidRealmState,
    summarize_handler,
)
from src.components.submission_state import SubmissionStateHooks
from src.components.submissions import (
    SaveResult,
    SubmissionNotFoundError,
    SubmissionPipeline,
)
from src.core.entities import (
    OPT_IN_STATUS_KEY,
    SubmissionRecord,
    SubmissionState,
    WebformSettings,
)
from src.rules.models import Rules

router = APIRouter()


# --- Request/Response Models ---


class SubmissionCreateRequest(BaseModel):
    """Request body for a new submission."""

    id: str | None = Field(None, description="Submission ID (generated if omitted)")
    webform_id: str = Field(..., min_length=1, description="Webform machine name")
    data: dict[str, Any] = Field(default_factory=dict, description="Submitted values")
    state: SubmissionState = Field(SubmissionState.COMPLETED, description="Lifecycle state")
    results_disabled: bool = Field(False, description="Webform does not store results")

    @field_validator("data")
    @classmethod
    def reserved_key_absent(cls, v: dict[str, Any]) -> dict[str, Any]:
        """The opt-in status is owned by the handlers, never by the client."""
        if OPT_IN_STATUS_KEY in v:
            raise ValueError(f"'{OPT_IN_STATUS_KEY}' is reserved")
        return v


class SubmissionUpdateRequest(BaseModel):
    """Request body for updating a submission."""

    data: dict[str, Any] | None = None
    state: SubmissionState = SubmissionState.UPDATED


class SubmissionResponse(BaseModel):
    """Submission as stored, with handler outcomes of the last save."""

    id: str
    webform_id: str
    state: str
    opt_in_status: str | None
    data: dict[str, Any]
    handler_results: dict[str, str] = Field(default_factory=dict)


class StateOptionResponse(BaseModel):
    key: str
    label: str


class HandlerSummaryResponse(BaseModel):
    handler_id: str
    settings: dict[str, Any]
    warnings: list[str]


class ConfirmationRequest(BaseModel):
    """Dev request marking an address confirmed for a realm."""

    email: str = Field(..., description="Confirmed email address")
    realm: str = Field(..., min_length=1, description="Confirmation realm")

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        """Basic email format validation."""
        v = v.strip()
        if not v or "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Invalid email format")
        return v


class ConfirmationResponse(BaseModel):
    email: str
    realm: str
    confirmed: bool


# --- Helper Functions ---


def _describe(result: Any) -> str:
    """Short label for a handler's post-save output."""
    outcome = getattr(result, "outcome", None)
    if outcome is not None:
        return str(outcome.value)
    sent = getattr(result, "sent", None)
    if sent is not None:
        return "sent" if sent else "not_sent"
    return "ok"


def _to_response(submission: SubmissionRecord, results: dict[str, Any] | None = None) -> SubmissionResponse:
    return SubmissionResponse(
        id=submission.id,
        webform_id=submission.webform_id,
        state=submission.state.value,
        opt_in_status=submission.opt_in_status.value if submission.opt_in_status else None,
        data=submission.data,
        handler_results={k: _describe(v) for k, v in (results or {}).items()},
    )


def _run_save(pipeline: SubmissionPipeline, submission: SubmissionRecord, update: bool) -> SaveResult:
    try:
        return pipeline.save(submission, update=update)
    except ConfirmationDispatchFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e
    except InvalidRealmState as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


def _get_or_404(repo: SQLiteSubmissionRepo, submission_id: str) -> SubmissionRecord:
    submission = repo.get_by_id(submission_id)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        )
    return submission


# --- Configuration Endpoints ---


@router.get("/state-options", response_model=list[StateOptionResponse])
def list_state_options(
    hooks: SubmissionStateHooks = Depends(get_state_hooks),
) -> list[StateOptionResponse]:
    """Trigger-state options, including those contributed by extensions."""
    return [
        StateOptionResponse(key=key, label=label)
        for key, label in hooks.get_state_options().items()
    ]


@router.get("/handlers", response_model=list[HandlerSummaryResponse])
def list_handlers(
    rules: Rules = Depends(get_rules),
    hooks: SubmissionStateHooks = Depends(get_state_hooks),
) -> list[HandlerSummaryResponse]:
    """Summaries of the configured handlers with operator warnings."""
    options = hooks.get_state_options()
    summary = summarize_handler(rules.handlers.double_opt_in.to_config(), options)
    summaries = [
        HandlerSummaryResponse(
            handler_id=summary.handler_id,
            settings=summary.settings,
            warnings=summary.warnings,
        )
    ]

    notification = rules.handlers.notification
    if notification is not None and notification.enabled:
        unknown = sorted(set(notification.states) - set(options))
        summaries.append(
            HandlerSummaryResponse(
                handler_id=notification.handler_id,
                settings={"states": sorted(notification.states)},
                warnings=[f"Unknown trigger states: {', '.join(unknown)}"] if unknown else [],
            )
        )
    return summaries


# --- Submission Endpoints ---


@router.post(
    "/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a submission",
    description="Persist a submission and run the double opt-in handlers.",
)
def create_submission(
    request_body: SubmissionCreateRequest,
    repo: SQLiteSubmissionRepo = Depends(get_submission_repo),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> SubmissionResponse:
    submission_id = request_body.id or uuid4().hex
    if repo.get_by_id(submission_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Submission already exists",
        )

    submission = SubmissionRecord(
        id=submission_id,
        webform_id=request_body.webform_id,
        data=dict(request_body.data),
        state=request_body.state,
        webform=WebformSettings(results_disabled=request_body.results_disabled),
    )

    result = _run_save(pipeline, submission, update=False)
    return _to_response(result.submission, result.handler_results)


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: str,
    repo: SQLiteSubmissionRepo = Depends(get_submission_repo),
) -> SubmissionResponse:
    return _to_response(_get_or_404(repo, submission_id))


@router.put("/submissions/{submission_id}", response_model=SubmissionResponse)
def update_submission(
    submission_id: str,
    request_body: SubmissionUpdateRequest,
    repo: SQLiteSubmissionRepo = Depends(get_submission_repo),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> SubmissionResponse:
    submission = _get_or_404(repo, submission_id)
    if request_body.data is not None:
        data = dict(request_body.data)
        # Status is owned by the handlers, never by the client
        data.pop(OPT_IN_STATUS_KEY, None)
        submission.data = data
    submission.state = request_body.state

    result = _run_save(pipeline, submission, update=True)
    return _to_response(result.submission, result.handler_results)


@router.post("/submissions/{submission_id}/refresh", response_model=SubmissionResponse)
def refresh_submission(
    submission_id: str,
    repo: SQLiteSubmissionRepo = Depends(get_submission_repo),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> SubmissionResponse:
    """Resave unchanged so handlers observe confirmations made since the last save."""
    submission = _get_or_404(repo, submission_id)
    result = _run_save(pipeline, submission, update=True)
    return _to_response(result.submission, result.handler_results)


@router.delete("/submissions/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_submission(
    submission_id: str,
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> None:
    try:
        pipeline.delete(submission_id)
    except SubmissionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        ) from e


# --- Dev Confirmer Endpoint ---


@router.post("/dev/confirmations", response_model=ConfirmationResponse)
def confirm_address(
    request_body: ConfirmationRequest,
    confirmer: InMemoryEmailConfirmer = Depends(get_email_confirmer),
) -> ConfirmationResponse:
    """Complete a confirmation on the in-memory confirmer."""
    confirmation = confirmer.mark_confirmed(request_body.email, request_body.realm)
    return ConfirmationResponse(
        email=confirmation.email,
        realm=confirmation.realm,
        confirmed=confirmation.is_confirmed(),
    )
