from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

from publisher.domain.dto import PlatformStatus, SubmissionState, TransitionResult
from publisher.domain.models import Platform
from publisher.domain.platforms import PlatformStrategy, select_platform
from publisher.domain.progress import not_started_view, project_progress
from publisher.domain.resolver import resolve_state
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession

COMPONENT_ID = "services.publishing.dashboard"

DEFAULT_PLATFORMS: tuple[Platform, ...] = (Platform.IOS, Platform.ANDROID)


async def load_platform_statuses(
    *,
    orchestrator: PublishingOrchestrator,
    session: PublishingSession,
    platforms: Sequence[Platform | str] = DEFAULT_PLATFORMS,
    lock_for: Callable[[Platform], asyncio.Lock] | None = None,
) -> list[PlatformStatus]:
    """Probe every platform concurrently; each probe touches its own submission.

    When ``lock_for`` is given, each probe holds its platform's lock so a
    stale read cannot overwrite a submission a concurrent step just advanced.
    A failing probe renders as "Ready to start" instead of failing the view.
    """
    strategies = [select_platform(platform) for platform in platforms]

    async def probe(strategy: PlatformStrategy) -> TransitionResult[SubmissionState]:
        if lock_for is None:
            return await orchestrator.load_state(session, strategy)
        async with lock_for(strategy.platform):
            return await orchestrator.load_state(session, strategy)

    results = await asyncio.gather(*(probe(strategy) for strategy in strategies))

    statuses: list[PlatformStatus] = []
    for strategy, result in zip(strategies, results, strict=True):
        if result.success and result.data is not None:
            state = result.data
            progress = project_progress(state.submission, strategy)
        else:
            state = SubmissionState(
                platform=strategy.platform.value,
                submission=None,
                workflow=resolve_state(None, strategy),
            )
            progress = not_started_view(strategy)
        statuses.append(PlatformStatus(platform=strategy.platform.value, state=state, progress=progress))
    return statuses
