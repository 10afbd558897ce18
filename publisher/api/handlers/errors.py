from __future__ import annotations

from fastapi import HTTPException

from publisher.api.schemas import ErrorDetail
from publisher.domain.errors import (
    InvalidPlatformError,
    PublishingError,
    RemoteError,
    SequencingError,
    ValidationError,
)


def http_status_for(error: PublishingError) -> int:
    if isinstance(error, (ValidationError, InvalidPlatformError)):
        return 422
    if isinstance(error, SequencingError):
        return 409
    if isinstance(error, RemoteError):
        return 504 if error.code == "timeout" else 502
    return 500


def error_detail(error: PublishingError) -> ErrorDetail:
    detail = ErrorDetail(message=str(error), error_type=type(error).__name__)
    if isinstance(error, ValidationError):
        detail.field = error.field
    elif isinstance(error, InvalidPlatformError):
        detail.field = "platform"
    elif isinstance(error, SequencingError):
        detail.expected = str(error.expected) if error.expected is not None else None
        detail.actual = str(error.actual) if error.actual is not None else None
    elif isinstance(error, RemoteError):
        detail.code = error.code
        detail.retryable = error.retryable
    return detail


def to_http_exception(error: PublishingError) -> HTTPException:
    return HTTPException(
        status_code=http_status_for(error),
        detail=error_detail(error).model_dump(),
    )
