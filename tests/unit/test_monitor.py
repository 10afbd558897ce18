import asyncio
import logging

import pytest

from publisher.config import BuildMonitorSettings
from publisher.domain.errors import RemoteError
from publisher.domain.models import DataStatus, Platform, Submission, SubmissionStatus
from publisher.repositories.stub import InMemoryPublishingRepository
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession
from publisher.workers.monitor import BuildMonitorState, build_in_flight, monitor_build, next_interval_ms

FAST = BuildMonitorSettings(initial_interval_ms=1, max_interval_ms=4, max_polls=20)


def _building() -> tuple[InMemoryPublishingRepository, PublishingOrchestrator, PublishingSession, Submission]:
    repository = InMemoryPublishingRepository()
    seeded = repository.seed_submission(
        app_id="app-1",
        platform=Platform.IOS,
        data={"status": DataStatus.BUILD_TRIGGERED.value},
    )
    session = PublishingSession(app_id="app-1", submissions={Platform.IOS: seeded})
    return repository, PublishingOrchestrator(repository=repository), session, seeded


@pytest.mark.unit
def test_next_interval_doubles_up_to_cap() -> None:
    settings = BuildMonitorSettings(initial_interval_ms=2000, max_interval_ms=60000, max_polls=120)

    intervals = [settings.initial_interval_ms]
    for _ in range(6):
        intervals.append(next_interval_ms(intervals[-1], settings))

    assert intervals == [2000, 4000, 8000, 16000, 32000, 60000, 60000]


@pytest.mark.unit
def test_build_in_flight_only_for_started_build_triggered() -> None:
    building = Submission(id="s", platform="ios", status="started", data={"status": "BUILD_TRIGGERED"})
    done = Submission(id="s", platform="ios", status="completed", data={"status": "BUILD_TRIGGERED"})
    earlier = Submission(id="s", platform="ios", status="started", data={"status": "METADATA_SUBMITTED"})

    assert build_in_flight(building) is True
    assert build_in_flight(done) is False
    assert build_in_flight(earlier) is False
    assert build_in_flight(None) is False


@pytest.mark.unit
def test_monitor_stops_when_build_completes() -> None:
    repository, orchestrator, session, seeded = _building()
    updates: list[str | None] = []

    async def on_update(submission: Submission) -> None:
        updates.append(submission.status)
        if len(updates) == 2:
            repository.finish_build(submission_id=str(seeded.id), success=True)

    state = BuildMonitorState()
    final = asyncio.run(
        monitor_build(
            orchestrator=orchestrator,
            session=session,
            platform="ios",
            stop_event=asyncio.Event(),
            settings=FAST,
            logger=logging.getLogger("test.monitor"),
            on_update=on_update,
            state=state,
        )
    )

    assert final is not None
    assert final.status == SubmissionStatus.COMPLETED
    assert updates == ["started", "started", "completed"]
    assert state.finished is True
    assert state.stopped is True
    assert state.polls_total == 3
    assert session.current_submission(Platform.IOS) == final


@pytest.mark.unit
def test_monitor_retries_after_remote_errors() -> None:
    repository, orchestrator, session, seeded = _building()
    repository.fail_next["fetch_submission"] = RemoteError("offline", code="network_error", retryable=True)
    repository.finish_build(submission_id=str(seeded.id), success=False)

    state = BuildMonitorState()
    final = asyncio.run(
        monitor_build(
            orchestrator=orchestrator,
            session=session,
            platform="ios",
            stop_event=asyncio.Event(),
            settings=FAST,
            logger=logging.getLogger("test.monitor"),
            state=state,
        )
    )

    assert final is not None
    assert final.status == SubmissionStatus.FAILED
    assert state.errors_total == 1
    assert state.polls_total == 2


@pytest.mark.unit
def test_monitor_respects_max_polls() -> None:
    _, orchestrator, session, seeded = _building()
    state = BuildMonitorState()

    final = asyncio.run(
        monitor_build(
            orchestrator=orchestrator,
            session=session,
            platform="ios",
            stop_event=asyncio.Event(),
            settings=BuildMonitorSettings(initial_interval_ms=1, max_interval_ms=1, max_polls=3),
            logger=logging.getLogger("test.monitor"),
            state=state,
        )
    )

    assert final is not None
    assert final.id == seeded.id
    assert state.polls_total == 3
    assert state.finished is False


@pytest.mark.unit
def test_monitor_can_be_cancelled_with_stop_event() -> None:
    _, orchestrator, session, _ = _building()
    state = BuildMonitorState()

    async def scenario() -> None:
        stop_event = asyncio.Event()
        task = asyncio.create_task(
            monitor_build(
                orchestrator=orchestrator,
                session=session,
                platform="ios",
                stop_event=stop_event,
                settings=BuildMonitorSettings(initial_interval_ms=60000, max_interval_ms=60000, max_polls=10),
                logger=logging.getLogger("test.monitor"),
                state=state,
            )
        )
        await asyncio.sleep(0.05)
        stop_event.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())

    assert state.started is True
    assert state.stopped is True
    assert state.polls_total == 1
    assert state.finished is False


@pytest.mark.unit
def test_monitor_without_cached_submission_exits_immediately() -> None:
    orchestrator = PublishingOrchestrator(repository=InMemoryPublishingRepository())
    state = BuildMonitorState()

    final = asyncio.run(
        monitor_build(
            orchestrator=orchestrator,
            session=PublishingSession(app_id="app-1"),
            platform="android",
            stop_event=asyncio.Event(),
            settings=FAST,
            logger=logging.getLogger("test.monitor"),
            state=state,
        )
    )

    assert final is None
    assert state.polls_total == 1
    assert state.errors_total == 0
