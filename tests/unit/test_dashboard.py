import asyncio

import pytest

from publisher.domain.errors import RemoteError
from publisher.domain.models import Platform
from publisher.repositories.stub import InMemoryPublishingRepository
from publisher.services.dashboard import load_platform_statuses
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession


@pytest.mark.unit
def test_dashboard_loads_both_platforms() -> None:
    repository = InMemoryPublishingRepository()
    repository.seed_submission(app_id="app-1", platform=Platform.IOS, data={"status": "METADATA_SUBMITTED"})
    orchestrator = PublishingOrchestrator(repository=repository)
    session = PublishingSession(app_id="app-1")

    statuses = asyncio.run(load_platform_statuses(orchestrator=orchestrator, session=session))

    by_platform = {status.platform: status for status in statuses}
    assert list(by_platform) == ["ios", "android"]
    assert by_platform["ios"].progress.status_class == "in-progress"
    assert by_platform["ios"].progress.completed_steps == ("api-key", "bundle-cert", "push-config", "app-store-listing")
    assert by_platform["android"].progress.status_text == "Ready to start"
    assert by_platform["android"].state.workflow.needs_new_submission is True


@pytest.mark.unit
def test_dashboard_degrades_failed_probe_to_ready_to_start() -> None:
    repository = InMemoryPublishingRepository()
    repository.seed_submission(app_id="app-1", platform=Platform.IOS, data={"status": "INITIALIZED"})
    repository.fail_next["fetch_latest_submission"] = RemoteError("offline", code="network_error", retryable=True)
    orchestrator = PublishingOrchestrator(repository=repository)

    statuses = asyncio.run(
        load_platform_statuses(
            orchestrator=orchestrator,
            session=PublishingSession(app_id="app-1"),
            platforms=["ios"],
        )
    )

    assert len(statuses) == 1
    assert statuses[0].progress.status_text == "Ready to start"
    assert statuses[0].state.submission is None
