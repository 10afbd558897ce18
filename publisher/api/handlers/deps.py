from __future__ import annotations

import asyncio
from collections import OrderedDict
from dataclasses import dataclass, field

from publisher.domain.models import Platform
from publisher.services.credentials import CredentialsService
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession

DEFAULT_MAX_APPS = 1024


@dataclass
class ApiDeps:
    orchestrator: PublishingOrchestrator
    credentials: CredentialsService
    # Least recently used apps are evicted past max_apps, unless one of their locks is held.
    max_apps: int = DEFAULT_MAX_APPS
    sessions: OrderedDict[str, PublishingSession] = field(default_factory=OrderedDict)
    # One lock per (app, platform): the API is the caller that serializes mutations.
    locks: dict[tuple[str, Platform], asyncio.Lock] = field(default_factory=dict)

    def session_for(self, app_id: str) -> PublishingSession:
        session = self.sessions.get(app_id)
        if session is None:
            session = PublishingSession(app_id=app_id)
            self.sessions[app_id] = session
            self._evict()
        else:
            self.sessions.move_to_end(app_id)
        return session

    def lock_for(self, app_id: str, platform: Platform) -> asyncio.Lock:
        self.session_for(app_id)
        key = (app_id, platform)
        lock = self.locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self.locks[key] = lock
        return lock

    def _evict(self) -> None:
        overflow = len(self.sessions) - self.max_apps
        if overflow <= 0:
            return
        for app_id in list(self.sessions)[:-1]:
            if overflow <= 0:
                break
            held = [key for key, lock in self.locks.items() if key[0] == app_id and lock.locked()]
            if held:
                continue
            del self.sessions[app_id]
            for key in [key for key in self.locks if key[0] == app_id]:
                del self.locks[key]
            overflow -= 1
