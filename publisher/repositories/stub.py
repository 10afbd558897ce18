from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from publisher.domain.contracts import JsonPayload
from publisher.domain.errors import RemoteError
from publisher.domain.ids import new_build_id, new_organization_id, new_submission_id
from publisher.domain.lifecycle import is_terminal
from publisher.domain.models import (
    SUBMISSION_TYPE_APP_STORE,
    AppRecord,
    DataStatus,
    Submission,
    SubmissionStatus,
)

PUSH_CONFIG_TYPE = "PUSH_CONFIG"


@dataclass
class _SubmissionRow:
    id: str
    app_id: str
    platform: str
    status: str
    data: dict[str, Any]
    type: str = SUBMISSION_TYPE_APP_STORE
    build_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def snapshot(self) -> Submission:
        return Submission(
            id=self.id,
            platform=self.platform,
            status=self.status,
            type=self.type,
            data=dict(self.data),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def touch(self) -> None:
        self.updated_at = datetime.now(tz=UTC)


@dataclass
class InMemoryPublishingRepository:
    """Non-network stand-in for the publishing API with deterministic behavior.

    Mirrors the server-side effects of each call so orchestrator flows can run
    end to end without a backend. Failures are injected per operation name via
    fail_next and consumed by the next matching call.
    """

    apps: dict[str, AppRecord] = field(default_factory=dict)
    submissions: dict[str, _SubmissionRow] = field(default_factory=dict)
    api_keys: dict[str, list[JsonPayload]] = field(default_factory=dict)
    bundle_ids: dict[tuple[str, str], list[JsonPayload]] = field(default_factory=dict)
    certificates: dict[tuple[str, str], JsonPayload] = field(default_factory=dict)
    push_configs: dict[tuple[str, str], JsonPayload] = field(default_factory=dict)
    published_apps: list[str] = field(default_factory=list)
    fail_next: dict[str, RemoteError] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        failure = self.fail_next.pop(operation, None)
        if failure is not None:
            raise failure

    def _row(self, app_id: str, submission_id: str) -> _SubmissionRow:
        row = self.submissions.get(submission_id)
        if row is None or row.app_id != app_id:
            raise RemoteError(
                f"submission {submission_id} not found",
                status_code=404,
                code="SUBMISSION_NOT_FOUND",
            )
        return row

    def _active_row(self, app_id: str, submission_id: str) -> _SubmissionRow:
        row = self._row(app_id, submission_id)
        if row.status != SubmissionStatus.STARTED:
            raise RemoteError(
                f"submission {submission_id} is {row.status}",
                status_code=409,
                code="internal_error",
            )
        return row

    def _latest_row(self, app_id: str, platform: str) -> _SubmissionRow | None:
        rows = [row for row in self.submissions.values() if row.app_id == app_id and row.platform == platform]
        if not rows:
            return None
        return rows[-1]

    def register_app(
        self,
        *,
        app_id: str,
        organization_id: str | None = None,
        production_app_id: str | None = None,
    ) -> AppRecord:
        record = AppRecord(
            app_id=app_id,
            organization_id=organization_id or new_organization_id(),
            production_app_id=production_app_id,
        )
        self.apps[app_id] = record
        return record

    def seed_submission(
        self,
        *,
        app_id: str,
        platform: str,
        status: str = SubmissionStatus.STARTED,
        data: dict[str, Any] | None = None,
    ) -> Submission:
        row = _SubmissionRow(
            id=new_submission_id(),
            app_id=app_id,
            platform=platform,
            status=status,
            data=dict(data or {"status": DataStatus.INITIALIZED.value}),
        )
        self.submissions[row.id] = row
        return row.snapshot()

    def finish_build(self, *, submission_id: str, success: bool = True) -> None:
        row = self.submissions[submission_id]
        row.status = SubmissionStatus.COMPLETED if success else SubmissionStatus.FAILED
        row.touch()

    async def fetch_latest_submission(self, *, app_id: str, platform: str) -> Submission | None:
        self._enter("fetch_latest_submission")
        row = self._latest_row(app_id, platform)
        return row.snapshot() if row is not None else None

    async def fetch_submission(self, *, app_id: str, submission_id: str) -> Submission:
        self._enter("fetch_submission")
        return self._row(app_id, submission_id).snapshot()

    async def create_submission(
        self,
        *,
        app_id: str,
        platform: str,
        extra_fields: JsonPayload | None = None,
    ) -> Submission:
        self._enter("create_submission")
        latest = self._latest_row(app_id, platform)
        if latest is not None and not is_terminal(latest.status):
            raise RemoteError(
                f"submission {latest.id} is still active",
                status_code=409,
                code="SUBMISSION_ALREADY_ACTIVE",
            )
        row = _SubmissionRow(
            id=new_submission_id(),
            app_id=app_id,
            platform=platform,
            status=SubmissionStatus.STARTED,
            data={**(extra_fields or {}), "status": DataStatus.INITIALIZED.value},
        )
        self.submissions[row.id] = row
        return row.snapshot()

    async def put_store_config(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None:
        self._enter("put_store_config")
        row = self._active_row(app_id, submission_id)
        row.data.update({key: value for key, value in payload.items() if key != "data"})
        nested = payload.get("data")
        if isinstance(nested, dict):
            row.data.update(nested)
        row.data["status"] = DataStatus.STORE_CONFIG_SUBMITTED.value
        row.touch()

    async def put_metadata(self, *, app_id: str, submission_id: str, payload: JsonPayload) -> None:
        self._enter("put_metadata")
        row = self._active_row(app_id, submission_id)
        if payload.get("type") == PUSH_CONFIG_TYPE:
            row.data["status"] = DataStatus.PUSH_NOTIFICATION_CONFIGURED.value
        else:
            row.data.update(payload)
            row.data["status"] = DataStatus.METADATA_SUBMITTED.value
        row.touch()

    async def post_build(self, *, app_id: str, submission_id: str) -> str | None:
        self._enter("post_build")
        row = self._active_row(app_id, submission_id)
        row.build_id = new_build_id()
        row.data["status"] = DataStatus.BUILD_TRIGGERED.value
        row.touch()
        return row.build_id

    async def post_cancel(self, *, app_id: str, submission_id: str) -> None:
        self._enter("post_cancel")
        row = self._active_row(app_id, submission_id)
        row.status = SubmissionStatus.CANCELLED
        row.touch()

    async def list_submissions(
        self,
        *,
        app_id: str,
        platform: str,
        status: str | None = None,
        type: str = SUBMISSION_TYPE_APP_STORE,
    ) -> list[Submission]:
        self._enter("list_submissions")
        rows = [
            row
            for row in self.submissions.values()
            if row.app_id == app_id
            and row.platform == platform
            and row.type == type
            and (status is None or row.status == status)
        ]
        return [row.snapshot() for row in reversed(rows)]

    async def fetch_app(self, *, app_id: str) -> AppRecord:
        self._enter("fetch_app")
        record = self.apps.get(app_id)
        if record is None:
            raise RemoteError(f"app {app_id} not found", status_code=404, code="not_found")
        return record

    async def publish_app(self, *, app_id: str) -> None:
        self._enter("publish_app")
        record = self.apps.get(app_id)
        if record is None:
            raise RemoteError(f"app {app_id} not found", status_code=404, code="not_found")
        self.apps[app_id] = AppRecord(
            app_id=record.app_id,
            organization_id=record.organization_id,
            production_app_id=f"prod-{app_id}",
        )
        self.published_apps.append(app_id)

    async def list_api_keys(self, *, organization_id: str) -> list[JsonPayload]:
        self._enter("list_api_keys")
        return list(self.api_keys.get(organization_id, []))

    async def create_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload:
        self._enter("create_api_key")
        keys = self.api_keys.setdefault(organization_id, [])
        created = {
            "id": str(len(keys) + 1),
            "name": key_data.get("name"),
            "keyId": key_data.get("keyId"),
            "issuerId": key_data.get("issuerId"),
        }
        keys.append(created)
        return dict(created)

    async def validate_api_key(self, *, organization_id: str, key_data: JsonPayload) -> JsonPayload:
        self._enter("validate_api_key")
        known = {key.get("id") for key in self.api_keys.get(organization_id, [])}
        valid = key_data.get("id") in known
        return {"valid": valid, "message": "API key is valid" if valid else "API key not found"}

    async def check_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload:
        self._enter("check_certificate")
        certificate = self.certificates.get((organization_id, team_id))
        return {
            "isValid": certificate is not None,
            "certificate": certificate,
            "message": "Certificate found" if certificate else "No certificate for team",
        }

    async def generate_certificate(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload:
        self._enter("generate_certificate")
        certificate = {"teamId": team_id, "name": f"Distribution {team_id}"}
        self.certificates[(organization_id, team_id)] = certificate
        return {"certificate": dict(certificate)}

    async def list_bundle_ids(self, *, organization_id: str, team_id: str) -> list[JsonPayload]:
        self._enter("list_bundle_ids")
        return list(self.bundle_ids.get((organization_id, team_id), []))

    async def get_bundle_id(self, *, organization_id: str, team_id: str, bundle_id: str) -> JsonPayload:
        self._enter("get_bundle_id")
        for item in self.bundle_ids.get((organization_id, team_id), []):
            if item.get("bundleId") == bundle_id:
                return dict(item)
        raise RemoteError(f"bundle id {bundle_id} not found", status_code=404, code="BUNDLE_ID_NOT_FOUND")

    async def get_push_config(self, *, organization_id: str, path: str, team_id: str) -> JsonPayload | None:
        self._enter("get_push_config")
        config = self.push_configs.get((organization_id, team_id))
        return dict(config) if config else None
