from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Platform(StrEnum):
    IOS = "ios"
    ANDROID = "android"


SUBMISSION_TYPE_APP_STORE = "appStore"


# Outer lifecycle of a submission record.
class SubmissionStatus(StrEnum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Inner step-progress marker stored at data.status.
#
# IMPORTANT:
# - Declaration order is the workflow order; keep DATA_STATUS_ORDER in
#   publisher/domain/lifecycle.py in sync.
class DataStatus(StrEnum):
    INITIALIZED = "INITIALIZED"
    STORE_CONFIG_SUBMITTED = "STORE_CONFIG_SUBMITTED"
    PUSH_NOTIFICATION_CONFIGURED = "PUSH_NOTIFICATION_CONFIGURED"
    METADATA_SUBMITTED = "METADATA_SUBMITTED"
    BUILD_TRIGGERED = "BUILD_TRIGGERED"


class WorkflowStep(StrEnum):
    INITIALIZE = "initialize"
    API_KEY = "api-key"
    BUNDLE_CERT = "bundle-cert"
    BUNDLE_KEYSTORE = "bundle-keystore"
    PUSH_CONFIG = "push-config"
    APP_STORE_LISTING = "app-store-listing"
    TRIGGER_BUILD = "trigger-build"
    MONITOR_BUILD = "monitor-build"
    BUILD = "build"


@dataclass(frozen=True)
class Submission:
    """Local snapshot of a remote submission record.

    Status values are kept as raw strings: remote data may carry values this
    client does not know, and the resolver must degrade on them, not fail.
    """

    id: str | None
    platform: str | None
    status: str | None
    type: str = SUBMISSION_TYPE_APP_STORE
    data: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def data_status(self) -> str | None:
        value = self.data.get("status")
        return value if isinstance(value, str) else None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Submission:
        raw_data = payload.get("data")
        data = dict(raw_data) if isinstance(raw_data, Mapping) else {}
        raw_id = payload.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else None,
            platform=_optional_str(payload.get("platform")),
            status=_optional_str(payload.get("status")),
            type=_optional_str(payload.get("type")) or SUBMISSION_TYPE_APP_STORE,
            data=data,
            created_at=_parse_timestamp(payload.get("createdAt")),
            updated_at=_parse_timestamp(payload.get("updatedAt")),
        )


@dataclass(frozen=True)
class WorkflowState:
    current_step: WorkflowStep
    can_proceed: bool
    needs_new_submission: bool


@dataclass(frozen=True)
class StepState:
    step: str
    state: str  # completed | current | pending


@dataclass(frozen=True)
class ProgressView:
    status_class: str
    status_text: str
    current_step: WorkflowStep
    completed_steps: tuple[str, ...]
    step_states: tuple[StepState, ...] = ()


@dataclass(frozen=True)
class OrganizationContext:
    organization_id: str
    production_app_id: str | None = None


@dataclass(frozen=True)
class AppRecord:
    app_id: str
    organization_id: str
    production_app_id: str | None = None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _parse_timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
