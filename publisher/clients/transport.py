from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from publisher.config import PublishingApiSettings
from publisher.domain.error_taxonomy import classify_remote_error, normalize_remote_code, user_message_for
from publisher.domain.errors import RemoteError

logger = logging.getLogger("publishing")


@dataclass
class HttpxTransport:
    """Bearer-authenticated JSON transport over a shared httpx.AsyncClient."""

    settings: PublishingApiSettings
    client: httpx.AsyncClient | None = None
    _owns_client: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.settings.timeout_s)
            self._owns_client = True

    async def aclose(self) -> None:
        if self._owns_client and self.client is not None:
            await self.client.aclose()

    def build_url(self, path: str) -> str:
        return f"{self.settings.base_url}{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        assert self.client is not None
        url = self.build_url(path)
        try:
            response = await self.client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            raise RemoteError(
                user_message_for("timeout", f"{method} {path} timed out"),
                code="timeout",
                retryable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(
                user_message_for("network_error", f"{method} {path} failed: {exc}"),
                code="network_error",
                retryable=True,
            ) from exc

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise RemoteError(
                    f"{method} {path} returned a non-JSON body",
                    status_code=response.status_code,
                    code="internal_error",
                ) from exc

        raise _remote_error_from_response(method=method, path=path, response=response)


def _remote_error_from_response(*, method: str, path: str, response: httpx.Response) -> RemoteError:
    body: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None

    upstream_code: str | None = None
    upstream_message: str | None = None
    if isinstance(body, dict):
        raw_code = body.get("status") or body.get("code")
        upstream_code = raw_code if isinstance(raw_code, str) else None
        raw_message = body.get("message") or body.get("error")
        upstream_message = raw_message if isinstance(raw_message, str) else None

    code = normalize_remote_code(status_code=response.status_code, code=upstream_code)
    message = upstream_message or user_message_for(code, f"{method} {path} failed with HTTP {response.status_code}")
    logger.warning(
        "publishing api request failed",
        extra={"error_code": code, "http_status": response.status_code, "path": path},
    )
    return RemoteError(
        message,
        status_code=response.status_code,
        code=code,
        retryable=classify_remote_error(status_code=response.status_code, code=code) == "recoverable",
    )
