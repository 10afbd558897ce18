from __future__ import annotations

from typing import Any

from publisher.api.handlers.deps import ApiDeps
from publisher.api.handlers.errors import to_http_exception
from publisher.api.schemas import (
    CreateSubmissionRequest,
    DashboardResponse,
    MetadataRequest,
    PlatformStateResponse,
    PushConfigRequest,
    StoreConfigRequest,
    SubmissionRefRequest,
    SubmissionResponse,
    TransitionResponse,
    WorkflowStateResponse,
)
from publisher.domain.dto import BuildTriggered, PlatformStatus, StoreConfigCommand, TransitionResult
from publisher.domain.errors import PublishingError
from publisher.domain.models import Submission
from publisher.domain.platforms import PlatformStrategy, select_platform
from publisher.domain.progress import project_progress
from publisher.domain.resolver import resolve_state
from publisher.services.dashboard import load_platform_statuses

COMPONENT_ID = "api.publishing.workflow"


def _strategy(platform: str) -> PlatformStrategy:
    try:
        return select_platform(platform)
    except PublishingError as exc:
        raise to_http_exception(exc) from exc


def _transition_response(result: TransitionResult[Any], strategy: PlatformStrategy) -> TransitionResponse:
    if result.error is not None:
        raise to_http_exception(result.error)

    build_id: str | None = None
    submission: Submission | None = None
    if isinstance(result.data, BuildTriggered):
        submission = result.data.submission
        build_id = result.data.build_id
    elif isinstance(result.data, Submission):
        submission = result.data

    return TransitionResponse(
        success=True,
        message=result.message,
        submission=SubmissionResponse.from_domain(submission) if submission is not None else None,
        workflow=WorkflowStateResponse.from_domain(resolve_state(submission, strategy)),
        build_id=build_id,
    )


async def get_dashboard_handler(*, app_id: str, api_deps: ApiDeps) -> DashboardResponse:
    statuses = await load_platform_statuses(
        orchestrator=api_deps.orchestrator,
        session=api_deps.session_for(app_id),
        lock_for=lambda platform: api_deps.lock_for(app_id, platform),
    )
    return DashboardResponse(
        app_id=app_id,
        platforms=[PlatformStateResponse.from_domain(status) for status in statuses],
    )


async def get_platform_state_handler(*, app_id: str, platform: str, api_deps: ApiDeps) -> PlatformStateResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.load_state(api_deps.session_for(app_id), strategy)
    if result.error is not None or result.data is None:
        raise to_http_exception(result.error or PublishingError("state unavailable"))
    state = result.data
    return PlatformStateResponse.from_domain(
        PlatformStatus(
            platform=state.platform,
            state=state,
            progress=project_progress(state.submission, strategy),
        )
    )


async def create_submission_handler(
    *,
    app_id: str,
    platform: str,
    request: CreateSubmissionRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.create_submission(
            api_deps.session_for(app_id),
            strategy,
            team_id=request.team_id,
            extra_fields=request.extra_fields,
        )
    return _transition_response(result, strategy)


async def submit_store_config_handler(
    *,
    app_id: str,
    platform: str,
    request: StoreConfigRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    command = StoreConfigCommand(
        bundle_id=request.bundle_id,
        version=request.version,
        data=request.data,
        extra=request.extra,
    )
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.submit_store_config(
            api_deps.session_for(app_id),
            strategy,
            command.to_payload(),
            submission_id=request.submission_id,
        )
    return _transition_response(result, strategy)


async def submit_push_config_handler(
    *,
    app_id: str,
    platform: str,
    request: PushConfigRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.submit_push_config(
            api_deps.session_for(app_id),
            strategy,
            config_type=request.config_type,
            submission_id=request.submission_id,
        )
    return _transition_response(result, strategy)


async def submit_metadata_handler(
    *,
    app_id: str,
    platform: str,
    request: MetadataRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.submit_metadata(
            api_deps.session_for(app_id),
            strategy,
            request.payload,
            has_new_splash_screen=request.has_new_splash_screen,
            submission_id=request.submission_id,
        )
    return _transition_response(result, strategy)


async def trigger_build_handler(
    *,
    app_id: str,
    platform: str,
    request: SubmissionRefRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.trigger_build(
            api_deps.session_for(app_id),
            strategy,
            submission_id=request.submission_id,
        )
    return _transition_response(result, strategy)


async def cancel_build_handler(
    *,
    app_id: str,
    platform: str,
    request: SubmissionRefRequest,
    api_deps: ApiDeps,
) -> TransitionResponse:
    strategy = _strategy(platform)
    async with api_deps.lock_for(app_id, strategy.platform):
        result = await api_deps.orchestrator.cancel_build(
            api_deps.session_for(app_id),
            strategy,
            submission_id=request.submission_id,
        )
    return _transition_response(result, strategy)
