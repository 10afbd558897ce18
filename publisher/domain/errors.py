from __future__ import annotations


class PublishingError(Exception):
    pass


class ValidationError(PublishingError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MissingParameterError(ValidationError):
    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required", field=field)


class InvalidPlatformError(PublishingError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid platform: {value}. Must be 'ios' or 'android'.")
        self.value = value


class SequencingError(PublishingError):
    """Requested transition does not follow the cached data status."""

    def __init__(self, message: str, *, expected: str | None, actual: str | None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class RemoteError(PublishingError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.retryable = retryable

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
