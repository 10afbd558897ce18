from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import Awaitable, Callable
import logging
from typing import Literal

from fastapi import FastAPI, HTTPException, Query

from publisher.api.handlers.credentials import (
    get_push_config_handler,
    initialize_app_handler,
    list_api_keys_handler,
)
from publisher.api.handlers.deps import ApiDeps
from publisher.api.handlers.workflow import (
    cancel_build_handler,
    create_submission_handler,
    get_dashboard_handler,
    get_platform_state_handler,
    submit_metadata_handler,
    submit_push_config_handler,
    submit_store_config_handler,
    trigger_build_handler,
)
from publisher.api.schemas import (
    ApiKeyListResponse,
    AppInitializedResponse,
    CreateSubmissionRequest,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    MetadataRequest,
    PlatformStateResponse,
    PushConfigRequest,
    PushConfigStatusResponse,
    StoreConfigRequest,
    SubmissionRefRequest,
    TransitionResponse,
)

TRANSITION_ERRORS = {
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def build_app(
    role: str,
    run_id: str,
    api_deps: ApiDeps | None = None,
    on_startup: Callable[[], Awaitable[None]] | None = None,
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
    mode: Literal["remote", "in-memory"] = "in-memory",
) -> FastAPI:
    logger = logging.getLogger("runtime")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        logger.info("role started", extra={"role": role, "run_id": run_id})

        if on_startup is not None:
            await on_startup()

        yield

        if on_shutdown is not None:
            await on_shutdown()

        logger.info("role stopped", extra={"role": role, "run_id": run_id})

    app = FastAPI(title="app-store-publisher", version="0.1.0", lifespan=lifespan)

    def require_deps() -> ApiDeps:
        if api_deps is None:
            raise HTTPException(status_code=503, detail="api dependencies are not available")
        return api_deps

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", role=role, mode=mode)

    @app.post(
        "/apps/{app_id}/initialize",
        response_model=AppInitializedResponse,
        responses=TRANSITION_ERRORS,
        tags=["Apps"],
    )
    async def initialize_app(app_id: str) -> AppInitializedResponse:
        return await initialize_app_handler(app_id=app_id, api_deps=require_deps())

    @app.get(
        "/apps/{app_id}/dashboard",
        response_model=DashboardResponse,
        responses={503: {"model": ErrorResponse}},
        tags=["Apps"],
    )
    async def get_dashboard(app_id: str) -> DashboardResponse:
        return await get_dashboard_handler(app_id=app_id, api_deps=require_deps())

    @app.get(
        "/apps/{app_id}/credentials/api-keys",
        response_model=ApiKeyListResponse,
        responses=TRANSITION_ERRORS,
        tags=["Credentials"],
    )
    async def list_api_keys(app_id: str) -> ApiKeyListResponse:
        return await list_api_keys_handler(app_id=app_id, api_deps=require_deps())

    @app.get(
        "/apps/{app_id}/credentials/push",
        response_model=PushConfigStatusResponse,
        responses=TRANSITION_ERRORS,
        tags=["Credentials"],
    )
    async def get_push_config(app_id: str, team_id: str | None = Query(default=None)) -> PushConfigStatusResponse:
        return await get_push_config_handler(app_id=app_id, team_id=team_id, api_deps=require_deps())

    @app.get(
        "/apps/{app_id}/platforms/{platform}/state",
        response_model=PlatformStateResponse,
        responses=TRANSITION_ERRORS,
        tags=["Submissions"],
    )
    async def get_platform_state(app_id: str, platform: str) -> PlatformStateResponse:
        return await get_platform_state_handler(app_id=app_id, platform=platform, api_deps=require_deps())

    @app.post(
        "/apps/{app_id}/platforms/{platform}/submissions",
        response_model=TransitionResponse,
        status_code=201,
        responses=TRANSITION_ERRORS,
        tags=["Submissions"],
    )
    async def create_submission(
        app_id: str,
        platform: str,
        request: CreateSubmissionRequest | None = None,
    ) -> TransitionResponse:
        return await create_submission_handler(
            app_id=app_id,
            platform=platform,
            request=request or CreateSubmissionRequest(),
            api_deps=require_deps(),
        )

    @app.put(
        "/apps/{app_id}/platforms/{platform}/store-config",
        response_model=TransitionResponse,
        responses=TRANSITION_ERRORS,
        tags=["Submissions"],
    )
    async def submit_store_config(app_id: str, platform: str, request: StoreConfigRequest) -> TransitionResponse:
        return await submit_store_config_handler(
            app_id=app_id,
            platform=platform,
            request=request,
            api_deps=require_deps(),
        )

    @app.put(
        "/apps/{app_id}/platforms/{platform}/push-config",
        response_model=TransitionResponse,
        responses=TRANSITION_ERRORS,
        tags=["Submissions"],
    )
    async def submit_push_config(
        app_id: str,
        platform: str,
        request: PushConfigRequest | None = None,
    ) -> TransitionResponse:
        return await submit_push_config_handler(
            app_id=app_id,
            platform=platform,
            request=request or PushConfigRequest(),
            api_deps=require_deps(),
        )

    @app.put(
        "/apps/{app_id}/platforms/{platform}/metadata",
        response_model=TransitionResponse,
        responses=TRANSITION_ERRORS,
        tags=["Submissions"],
    )
    async def submit_metadata(app_id: str, platform: str, request: MetadataRequest) -> TransitionResponse:
        return await submit_metadata_handler(
            app_id=app_id,
            platform=platform,
            request=request,
            api_deps=require_deps(),
        )

    @app.post(
        "/apps/{app_id}/platforms/{platform}/build",
        response_model=TransitionResponse,
        responses=TRANSITION_ERRORS,
        tags=["Builds"],
    )
    async def trigger_build(
        app_id: str,
        platform: str,
        request: SubmissionRefRequest | None = None,
    ) -> TransitionResponse:
        return await trigger_build_handler(
            app_id=app_id,
            platform=platform,
            request=request or SubmissionRefRequest(),
            api_deps=require_deps(),
        )

    @app.post(
        "/apps/{app_id}/platforms/{platform}/cancel",
        response_model=TransitionResponse,
        responses=TRANSITION_ERRORS,
        tags=["Builds"],
    )
    async def cancel_build(
        app_id: str,
        platform: str,
        request: SubmissionRefRequest | None = None,
    ) -> TransitionResponse:
        return await cancel_build_handler(
            app_id=app_id,
            platform=platform,
            request=request or SubmissionRefRequest(),
            api_deps=require_deps(),
        )

    return app
