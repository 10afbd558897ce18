from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

from publisher.api.handlers.deps import ApiDeps
from publisher.clients.transport import HttpxTransport
from publisher.config import (
    BuildMonitorSettings,
    PublishingApiSettings,
    build_monitor_settings_from_env,
    publishing_api_settings_from_env,
)
from publisher.domain.contracts import CredentialsRepository, SubmissionRepository
from publisher.repositories.remote import HttpSubmissionRepository
from publisher.repositories.stub import InMemoryPublishingRepository
from publisher.roles import RuntimeRole
from publisher.services.credentials import CredentialsService
from publisher.services.orchestrator import PublishingOrchestrator


@dataclass
class RuntimeContainer:
    role: RuntimeRole
    mode: Literal["remote", "in-memory"]
    repository: SubmissionRepository
    credentials_repository: CredentialsRepository
    orchestrator: PublishingOrchestrator
    credentials: CredentialsService
    api_deps: ApiDeps
    monitor_settings: BuildMonitorSettings
    on_startup: Callable[[], Awaitable[None]] | None
    on_shutdown: Callable[[], Awaitable[None]] | None


def build_runtime_container(
    role: RuntimeRole,
    api_settings: PublishingApiSettings | None = None,
    monitor_settings: BuildMonitorSettings | None = None,
) -> RuntimeContainer:
    settings = api_settings or publishing_api_settings_from_env()
    on_startup: Callable[[], Awaitable[None]] | None = None
    on_shutdown: Callable[[], Awaitable[None]] | None = None
    repository: HttpSubmissionRepository | InMemoryPublishingRepository
    mode: Literal["remote", "in-memory"]
    if settings.token:
        transport = HttpxTransport(settings=settings)
        repository = HttpSubmissionRepository(transport=transport)
        on_shutdown = transport.aclose
        mode = "remote"
    else:
        repository = InMemoryPublishingRepository()
        mode = "in-memory"

    orchestrator = PublishingOrchestrator(repository=repository)
    credentials = CredentialsService(credentials=repository, orchestrator=orchestrator)
    api_deps = ApiDeps(orchestrator=orchestrator, credentials=credentials)

    return RuntimeContainer(
        role=role,
        mode=mode,
        repository=repository,
        credentials_repository=repository,
        orchestrator=orchestrator,
        credentials=credentials,
        api_deps=api_deps,
        monitor_settings=monitor_settings or build_monitor_settings_from_env(),
        on_startup=on_startup,
        on_shutdown=on_shutdown,
    )
