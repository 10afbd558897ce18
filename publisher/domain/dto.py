from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from publisher.domain.errors import PublishingError
from publisher.domain.models import ProgressView, Submission, WorkflowState

T = TypeVar("T")


@dataclass(frozen=True)
class TransitionResult(Generic[T]):
    success: bool
    data: T | None = None
    error: PublishingError | None = None
    message: str = ""

    @classmethod
    def ok(cls, data: T | None = None, message: str = "") -> TransitionResult[T]:
        return cls(success=True, data=data, message=message)

    @classmethod
    def failed(cls, error: PublishingError) -> TransitionResult[T]:
        return cls(success=False, error=error, message=str(error))

    def unwrap(self) -> T | None:
        if self.error is not None:
            raise self.error
        return self.data


@dataclass(frozen=True)
class SubmissionState:
    platform: str
    submission: Submission | None
    workflow: WorkflowState


@dataclass(frozen=True)
class PlatformStatus:
    platform: str
    state: SubmissionState
    progress: ProgressView


@dataclass(frozen=True)
class BuildTriggered:
    submission: Submission
    build_id: str | None


@dataclass(frozen=True)
class AppInitialized:
    organization_id: str
    production_app_id: str | None
    published_now: bool = False


@dataclass(frozen=True)
class StoreConfigCommand:
    bundle_id: str | None = None
    version: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        if self.bundle_id is not None:
            payload["bundleId"] = self.bundle_id
        if self.version is not None:
            payload["version"] = self.version
        if self.data:
            payload["data"] = dict(self.data)
        return payload
