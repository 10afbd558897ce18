from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from publisher.domain.contracts import JsonPayload, Transport
from publisher.domain.errors import RemoteError
from publisher.domain.models import SUBMISSION_TYPE_APP_STORE, AppRecord, Submission


def _submissions_path(app_id: str, *parts: str) -> str:
    return "/".join(("v2/apps", app_id, "submissions", *parts))


def _organization_path(organization_id: str, *parts: str) -> str:
    return "/".join(("v2/organizations", organization_id, *parts))


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _submission_from(value: Any, *, operation: str) -> Submission:
    if not isinstance(value, dict):
        raise RemoteError(f"{operation} returned no submission", code="internal_error")
    return Submission.from_payload(value)


@dataclass
class HttpSubmissionRepository:
    """Submission and credentials API on top of a Transport.

    Translates domain operations into endpoint paths and unwraps the response
    envelopes; errors from the transport pass through unchanged.
    """

    transport: Transport

    async def fetch_latest_submission(self, *, app_id: str, platform: str) -> Submission | None:
        try:
            response = await self.transport.request(
                "GET",
                _submissions_path(app_id, "latest"),
                params={"platform": platform},
            )
        except RemoteError as exc:
            if exc.is_not_found:
                return None
            raise
        if not response:
            return None
        return _submission_from(response, operation="fetch latest submission")

    async def fetch_submission(self, *, app_id: str, submission_id: str) -> Submission:
        response = await self.transport.request("GET", _submissions_path(app_id, submission_id))
        return _submission_from(response, operation="fetch submission")

    async def create_submission(
        self,
        *,
        app_id: str,
        platform: str,
        extra_fields: JsonPayload | None = None,
    ) -> Submission:
        payload: JsonPayload = {**(extra_fields or {}), "platform": platform, "type": SUBMISSION_TYPE_APP_STORE}
        response = await self.transport.request("POST", _submissions_path(app_id, "initialize"), json=payload)
        return _submission_from(_as_dict(response).get("submission"), operation="create submission")

    async def put_store_config(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None:
        await self.transport.request("PUT", _submissions_path(app_id, submission_id, "store"), json=payload)

    async def put_metadata(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None:
        await self.transport.request("PUT", _submissions_path(app_id, submission_id, "metadata"), json=payload)

    async def post_build(self, *, app_id: str, submission_id: str) -> str | None:
        response = await self.transport.request("POST", _submissions_path(app_id, submission_id, "build"))
        build_id = _as_dict(response).get("buildId")
        return str(build_id) if build_id is not None else None

    async def post_cancel(self, *, app_id: str, submission_id: str) -> None:
        await self.transport.request("POST", _submissions_path(app_id, submission_id, "cancel"))

    async def list_submissions(
        self,
        *,
        app_id: str,
        platform: str,
        status: str | None = None,
        type: str = SUBMISSION_TYPE_APP_STORE,
    ) -> list[Submission]:
        params: dict[str, Any] = {"platform": platform, "type": type}
        if status:
            params["status"] = status
        response = await self.transport.request("GET", _submissions_path(app_id), params=params)
        return [Submission.from_payload(item) for item in _as_list(_as_dict(response).get("data"))]

    async def fetch_app(self, *, app_id: str) -> AppRecord:
        response = await self.transport.request("GET", f"v1/apps/{app_id}")
        app = _as_dict(_as_dict(response).get("app"))
        organization_id = app.get("organizationId")
        if organization_id is None:
            raise RemoteError(f"app {app_id} has no organization", code="internal_error")
        production_app_id = app.get("productionAppId")
        return AppRecord(
            app_id=app_id,
            organization_id=str(organization_id),
            production_app_id=str(production_app_id) if production_app_id else None,
        )

    async def publish_app(self, *, app_id: str) -> None:
        await self.transport.request("POST", f"v1/apps/{app_id}/publish")

    # Organization-scoped credentials.

    async def list_api_keys(self, *, organization_id: str) -> list[JsonPayload]:
        response = await self.transport.request(
            "GET",
            _organization_path(organization_id, "credentials", "api-keys"),
        )
        return _as_list(_as_dict(response).get("data"))

    async def create_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload:
        response = await self.transport.request(
            "POST",
            _organization_path(organization_id, "credentials", "api-key"),
            json=key_data,
        )
        return _as_dict(_as_dict(response).get("data"))

    async def validate_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload:
        response = await self.transport.request(
            "POST",
            _organization_path(organization_id, "credentials", "api-key", "validate"),
            json=key_data,
        )
        return _as_dict(response)

    async def check_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload:
        response = await self.transport.request(
            "POST",
            _organization_path(organization_id, path, "check"),
            json={"teamId": team_id},
        )
        return _as_dict(response)

    async def generate_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload:
        response = await self.transport.request(
            "POST",
            _organization_path(organization_id, path, "generate"),
            json={"teamId": team_id},
        )
        return _as_dict(response)

    async def list_bundle_ids(self, *, organization_id: str, team_id: str) -> list[JsonPayload]:
        response = await self.transport.request(
            "GET",
            _organization_path(organization_id, "apple", "bundle-ids"),
            params={"teamId": team_id},
        )
        return _as_list(_as_dict(response).get("data"))

    async def get_bundle_id(self, *, organization_id: str, team_id: str, bundle_id: str) -> JsonPayload:
        response = await self.transport.request(
            "GET",
            _organization_path(organization_id, "apple", "bundle-ids", bundle_id),
            params={"teamId": team_id},
        )
        return _as_dict(_as_dict(response).get("data"))

    async def get_push_config(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload | None:
        response = await self.transport.request("GET", _organization_path(organization_id, path, team_id))
        data = _as_dict(response).get("data")
        return data if isinstance(data, dict) and data else None
