from __future__ import annotations

from publisher.api.handlers.deps import ApiDeps
from publisher.api.handlers.errors import to_http_exception
from publisher.api.schemas import (
    ApiKeyListResponse,
    AppInitializedResponse,
    PushConfigStatusResponse,
)
from publisher.domain.errors import PublishingError

COMPONENT_ID = "api.publishing.credentials"


async def initialize_app_handler(*, app_id: str, api_deps: ApiDeps) -> AppInitializedResponse:
    result = await api_deps.orchestrator.initialize_app(api_deps.session_for(app_id))
    initialized = result.data
    if result.error is not None or initialized is None:
        raise to_http_exception(result.error or PublishingError("app initialization returned no data"))
    return AppInitializedResponse(
        app_id=app_id,
        organization_id=initialized.organization_id,
        production_app_id=initialized.production_app_id,
        published_now=initialized.published_now,
    )


async def list_api_keys_handler(*, app_id: str, api_deps: ApiDeps) -> ApiKeyListResponse:
    result = await api_deps.credentials.list_api_keys(api_deps.session_for(app_id))
    if result.error is not None:
        raise to_http_exception(result.error)
    return ApiKeyListResponse(app_id=app_id, api_keys=list(result.data or []))


async def get_push_config_handler(*, app_id: str, team_id: str | None, api_deps: ApiDeps) -> PushConfigStatusResponse:
    result = await api_deps.credentials.get_team_push_config(api_deps.session_for(app_id), team_id)
    if result.error is not None:
        raise to_http_exception(result.error)
    payload = result.data or {}
    return PushConfigStatusResponse(
        app_id=app_id,
        team_id=team_id or "",
        configured=bool(payload.get("configured")),
        config=payload.get("config"),
    )
