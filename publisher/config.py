from __future__ import annotations

import os
from dataclasses import dataclass

REGION_BASE_URLS: dict[str, str] = {
    "eu": "https://api.fliplet.com/",
    "us": "https://us.api.fliplet.com/",
    "ca": "https://ca.api.fliplet.com/",
}
DEFAULT_REGION = "eu"


@dataclass(frozen=True)
class PublishingApiSettings:
    token: str | None = None
    region: str = DEFAULT_REGION
    api_url: str | None = None
    timeout_s: float = 30.0

    @property
    def base_url(self) -> str:
        if self.api_url:
            return self.api_url if self.api_url.endswith("/") else f"{self.api_url}/"
        return REGION_BASE_URLS.get(self.region, REGION_BASE_URLS[DEFAULT_REGION])


@dataclass(frozen=True)
class BuildMonitorSettings:
    initial_interval_ms: int = 2000
    max_interval_ms: int = 60000
    max_polls: int = 120


def publishing_api_settings_from_env() -> PublishingApiSettings:
    region = os.getenv("PUBLISHING_REGION", DEFAULT_REGION).strip().lower()
    if region not in REGION_BASE_URLS:
        region = DEFAULT_REGION
    return PublishingApiSettings(
        token=os.getenv("PUBLISHING_API_TOKEN") or None,
        region=region,
        api_url=os.getenv("PUBLISHING_API_URL") or None,
        timeout_s=_env_int("PUBLISHING_HTTP_TIMEOUT_S", 30),
    )


def build_monitor_settings_from_env() -> BuildMonitorSettings:
    return BuildMonitorSettings(
        initial_interval_ms=_env_int("BUILD_MONITOR_INITIAL_INTERVAL_MS", 2000),
        max_interval_ms=_env_int("BUILD_MONITOR_MAX_INTERVAL_MS", 60000),
        max_polls=_env_int("BUILD_MONITOR_MAX_POLLS", 120),
    )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default
