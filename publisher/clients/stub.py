from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from publisher.domain.errors import RemoteError


@dataclass
class StubTransport:
    """Scripted transport: responses and failures keyed by (method, path)."""

    responses: dict[tuple[str, str], Any] = field(default_factory=dict)
    failures: dict[tuple[str, str], RemoteError] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, Any] | None, dict[str, Any] | None]] = field(default_factory=list)

    def respond(self, method: str, path: str, payload: Any) -> None:
        self.responses[(method.upper(), path)] = payload

    def fail(self, method: str, path: str, error: RemoteError) -> None:
        self.failures[(method.upper(), path)] = error

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        key = (method.upper(), path)
        self.calls.append((key[0], path, params, json))
        failure = self.failures.get(key)
        if failure is not None:
            raise failure
        if key not in self.responses:
            raise RemoteError(f"{key[0]} {path} not found", status_code=404, code="not_found")
        return self.responses[key]
