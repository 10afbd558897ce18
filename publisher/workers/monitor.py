from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from publisher.config import BuildMonitorSettings
from publisher.domain.errors import RemoteError
from publisher.domain.models import DataStatus, Submission, SubmissionStatus
from publisher.domain.platforms import select_platform
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession

SubmissionCallback = Callable[[Submission], Awaitable[None]]


@dataclass
class BuildMonitorState:
    started: bool = False
    stopped: bool = False
    polls_total: int = 0
    errors_total: int = 0
    finished: bool = False


def build_in_flight(submission: Submission | None) -> bool:
    return (
        submission is not None
        and submission.status == SubmissionStatus.STARTED
        and submission.data_status == DataStatus.BUILD_TRIGGERED
    )


def next_interval_ms(current_ms: int, settings: BuildMonitorSettings) -> int:
    return min(current_ms * 2, settings.max_interval_ms)


async def monitor_build(
    *,
    orchestrator: PublishingOrchestrator,
    session: PublishingSession,
    platform: object,
    stop_event: asyncio.Event,
    settings: BuildMonitorSettings,
    logger: logging.Logger,
    on_update: SubmissionCallback | None = None,
    state: BuildMonitorState | None = None,
) -> Submission | None:
    """Poll the cached submission until its build leaves the in-flight state.

    Intervals start at initial_interval_ms and double up to max_interval_ms.
    The loop ends when the build finishes, max_polls is reached, or the caller
    sets stop_event. Failed polls are logged and retried at the next interval.
    """
    strategy = select_platform(platform)
    extra = {"app_id": session.app_id, "platform": strategy.platform.value}
    interval_ms = settings.initial_interval_ms
    last_known = session.current_submission(strategy.platform)

    if state is not None:
        state.started = True
    logger.info("build monitor started", extra=extra)

    polls = 0
    while not stop_event.is_set() and polls < settings.max_polls:
        polls += 1
        if state is not None:
            state.polls_total += 1

        result = await orchestrator.refresh_submission(session, strategy)
        if result.success and result.data is not None:
            last_known = result.data
            if on_update is not None:
                await on_update(last_known)
            if not build_in_flight(last_known):
                if state is not None:
                    state.finished = True
                logger.info(
                    "build monitor finished",
                    extra={**extra, "submission_id": last_known.id, "status": last_known.status},
                )
                break
        elif isinstance(result.error, RemoteError):
            if state is not None:
                state.errors_total += 1
            logger.warning(
                "build monitor poll failed",
                extra={**extra, "error_code": result.error.code},
            )
        else:
            logger.warning("build monitor has no submission to poll", extra=extra)
            break

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_ms / 1000)
        except TimeoutError:
            pass
        interval_ms = next_interval_ms(interval_ms, settings)

    logger.info("build monitor stopped", extra={**extra, "polls": polls})
    if state is not None:
        state.stopped = True
    return last_known
