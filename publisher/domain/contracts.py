from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from publisher.domain.models import AppRecord, Submission

JsonPayload = dict[str, Any]


@runtime_checkable
class Transport(Protocol):
    """Authenticated request boundary.

    Returns parsed JSON (None for empty bodies) or raises RemoteError carrying
    the HTTP status and the upstream error code.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: JsonPayload | None = None,
    ) -> Any: ...


@runtime_checkable
class SubmissionRepository(Protocol):
    """Remote submission-tracking API as seen by the orchestrator.

    Every method raises RemoteError on transport or API failure; none of them
    touch local session state.
    """

    async def fetch_latest_submission(self, *, app_id: str, platform: str) -> Submission | None: ...

    async def fetch_submission(self, *, app_id: str, submission_id: str) -> Submission: ...

    async def create_submission(
        self,
        *,
        app_id: str,
        platform: str,
        extra_fields: JsonPayload | None = None,
    ) -> Submission: ...

    async def put_store_config(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None: ...

    async def put_metadata(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None: ...

    async def post_build(self, *, app_id: str, submission_id: str) -> str | None: ...

    async def post_cancel(self, *, app_id: str, submission_id: str) -> None: ...

    async def list_submissions(
        self,
        *,
        app_id: str,
        platform: str,
        status: str | None = None,
        type: str = "appStore",
    ) -> list[Submission]: ...

    async def fetch_app(self, *, app_id: str) -> AppRecord: ...

    async def publish_app(self, *, app_id: str) -> None: ...


@runtime_checkable
class CredentialsRepository(Protocol):
    """Organization-scoped iOS credentials, bundle IDs and push settings."""

    async def list_api_keys(self, *, organization_id: str) -> list[JsonPayload]: ...

    async def create_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload: ...

    async def validate_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload: ...

    async def check_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload: ...

    async def generate_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload: ...

    async def list_bundle_ids(self, *, organization_id: str, team_id: str) -> list[JsonPayload]: ...

    async def get_bundle_id(self, *, organization_id: str, team_id: str, bundle_id: str) -> JsonPayload: ...

    async def get_push_config(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload | None: ...
