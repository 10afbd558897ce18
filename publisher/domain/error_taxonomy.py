from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

# Upstream codes the publishing API is known to emit, plus transport-level codes.
RemoteErrorCode = Literal[
    "INVALID_API_KEY",
    "CERTIFICATE_EXPIRED",
    "CERTIFICATE_LIMIT_REACHED",
    "BUNDLE_ID_NOT_FOUND",
    "SUBMISSION_NOT_FOUND",
    "SUBMISSION_ALREADY_ACTIVE",
    "unauthorized",
    "not_found",
    "rate_limited",
    "timeout",
    "network_error",
    "server_error",
    "internal_error",
]

RetryClassification = Literal["recoverable", "terminal"]

CANONICAL_REMOTE_CODES: tuple[RemoteErrorCode, ...] = (
    "INVALID_API_KEY",
    "CERTIFICATE_EXPIRED",
    "CERTIFICATE_LIMIT_REACHED",
    "BUNDLE_ID_NOT_FOUND",
    "SUBMISSION_NOT_FOUND",
    "SUBMISSION_ALREADY_ACTIVE",
    "unauthorized",
    "not_found",
    "rate_limited",
    "timeout",
    "network_error",
    "server_error",
    "internal_error",
)

# Safe to re-invoke once the cause clears; local state is untouched on failure.
RECOVERABLE_REMOTE_CODES: frozenset[RemoteErrorCode] = frozenset(
    {
        "rate_limited",
        "timeout",
        "network_error",
        "server_error",
    }
)

USER_MESSAGES: Mapping[str, str] = {
    "INVALID_API_KEY": "Invalid API key data. Please check your credentials and try again.",
    "CERTIFICATE_EXPIRED": "The distribution certificate has expired. Generate or upload a new one.",
    "CERTIFICATE_LIMIT_REACHED": "The Apple team has reached its certificate limit. Revoke an unused certificate.",
    "BUNDLE_ID_NOT_FOUND": "The bundle ID is not registered for this team.",
    "SUBMISSION_NOT_FOUND": "The submission no longer exists. Reload to start again.",
    "SUBMISSION_ALREADY_ACTIVE": "Another submission is already in progress for this platform.",
    "unauthorized": "Your session has expired. Sign in again.",
    "not_found": "The requested record was not found.",
    "rate_limited": "Too many requests. Try again in a moment.",
    "timeout": "The publishing service did not respond in time. Try again.",
    "network_error": "Could not reach the publishing service. Check your connection and try again.",
    "server_error": "The publishing service is temporarily unavailable. Try again later.",
}


def is_canonical_remote_code(code: str) -> bool:
    return code in CANONICAL_REMOTE_CODES


def normalize_remote_code(*, status_code: int | None, code: str | None) -> RemoteErrorCode:
    if code is not None and is_canonical_remote_code(code):
        return code  # type: ignore[return-value]
    if status_code is None:
        return "network_error"
    if status_code in (401, 403):
        return "unauthorized"
    if status_code == 404:
        return "not_found"
    if status_code == 429:
        return "rate_limited"
    if status_code >= 500:
        return "server_error"
    # Unknown 4xx bodies keep a stable value for logs and UI.
    return "internal_error"


def classify_remote_error(*, status_code: int | None, code: str | None) -> RetryClassification:
    if normalize_remote_code(status_code=status_code, code=code) in RECOVERABLE_REMOTE_CODES:
        return "recoverable"
    return "terminal"


def user_message_for(code: str | None, default: str) -> str:
    if code is None:
        return default
    return USER_MESSAGES.get(code, default)
