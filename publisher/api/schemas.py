from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from publisher.domain.dto import PlatformStatus
from publisher.domain.models import ProgressView, Submission, WorkflowState


def _plain(value: str | None) -> str | None:
    return str(value) if value is not None else None


class ErrorDetail(BaseModel):
    message: str
    error_type: str
    field: str | None = None
    expected: str | None = None
    actual: str | None = None
    code: str | None = None
    retryable: bool = False


class ErrorResponse(BaseModel):
    detail: ErrorDetail | str


class HealthResponse(BaseModel):
    status: str
    role: str
    mode: Literal["remote", "in-memory"]


class SubmissionResponse(BaseModel):
    id: str | None
    platform: str | None
    status: str | None
    type: str
    data: dict[str, Any]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, submission: Submission) -> SubmissionResponse:
        return cls(
            id=submission.id,
            platform=_plain(submission.platform),
            status=_plain(submission.status),
            type=str(submission.type),
            data=dict(submission.data),
            created_at=submission.created_at,
            updated_at=submission.updated_at,
        )


class WorkflowStateResponse(BaseModel):
    current_step: str
    can_proceed: bool
    needs_new_submission: bool

    @classmethod
    def from_domain(cls, state: WorkflowState) -> WorkflowStateResponse:
        return cls(
            current_step=state.current_step.value,
            can_proceed=state.can_proceed,
            needs_new_submission=state.needs_new_submission,
        )


class StepStateResponse(BaseModel):
    step: str
    state: Literal["completed", "current", "pending"]


class ProgressResponse(BaseModel):
    status_class: str
    status_text: str
    current_step: str
    completed_steps: list[str]
    step_states: list[StepStateResponse]

    @classmethod
    def from_domain(cls, view: ProgressView) -> ProgressResponse:
        return cls(
            status_class=view.status_class,
            status_text=view.status_text,
            current_step=view.current_step.value,
            completed_steps=list(view.completed_steps),
            step_states=[StepStateResponse(step=item.step, state=item.state) for item in view.step_states],  # type: ignore[arg-type]
        )


class PlatformStateResponse(BaseModel):
    platform: str
    submission: SubmissionResponse | None
    workflow: WorkflowStateResponse
    progress: ProgressResponse

    @classmethod
    def from_domain(cls, status: PlatformStatus) -> PlatformStateResponse:
        submission = status.state.submission
        return cls(
            platform=status.platform,
            submission=SubmissionResponse.from_domain(submission) if submission is not None else None,
            workflow=WorkflowStateResponse.from_domain(status.state.workflow),
            progress=ProgressResponse.from_domain(status.progress),
        )


class DashboardResponse(BaseModel):
    app_id: str
    platforms: list[PlatformStateResponse]


class CreateSubmissionRequest(BaseModel):
    team_id: str | None = Field(default=None, max_length=64)
    extra_fields: dict[str, Any] = Field(default_factory=dict)


class StoreConfigRequest(BaseModel):
    bundle_id: str | None = Field(default=None, max_length=256)
    version: str | None = Field(default=None, max_length=32)
    data: dict[str, Any] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)
    submission_id: str | None = None


class PushConfigRequest(BaseModel):
    config_type: str = Field(default="PUSH_CONFIG", min_length=1, max_length=64)
    submission_id: str | None = None


class MetadataRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)
    has_new_splash_screen: bool = False
    submission_id: str | None = None


class SubmissionRefRequest(BaseModel):
    submission_id: str | None = None


class AppInitializedResponse(BaseModel):
    app_id: str
    organization_id: str
    production_app_id: str | None = None
    published_now: bool = False


class ApiKeyListResponse(BaseModel):
    app_id: str
    api_keys: list[dict[str, Any]]


class PushConfigStatusResponse(BaseModel):
    app_id: str
    team_id: str
    configured: bool
    config: dict[str, Any] | None = None


class TransitionResponse(BaseModel):
    success: bool
    message: str
    submission: SubmissionResponse | None = None
    workflow: WorkflowStateResponse | None = None
    build_id: str | None = None
