from __future__ import annotations

from dataclasses import dataclass

from publisher.domain.errors import SequencingError
from publisher.domain.models import DataStatus, SubmissionStatus

DATA_STATUS_ORDER: tuple[DataStatus, ...] = (
    DataStatus.INITIALIZED,
    DataStatus.STORE_CONFIG_SUBMITTED,
    DataStatus.PUSH_NOTIFICATION_CONFIGURED,
    DataStatus.METADATA_SUBMITTED,
    DataStatus.BUILD_TRIGGERED,
)

TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        SubmissionStatus.COMPLETED,
        SubmissionStatus.FAILED,
        SubmissionStatus.CANCELLED,
    }
)


@dataclass(frozen=True)
class StepTransition:
    name: str
    target: DataStatus
    # Guarded by equality with the previous status rather than by position.
    strict: bool = False

    @property
    def required(self) -> DataStatus | None:
        index = DATA_STATUS_ORDER.index(self.target)
        if index == 0:
            return None
        return DATA_STATUS_ORDER[index - 1]


STEP_TRANSITIONS: dict[str, StepTransition] = {
    "create_submission": StepTransition(name="create_submission", target=DataStatus.INITIALIZED),
    "submit_store_config": StepTransition(
        name="submit_store_config",
        target=DataStatus.STORE_CONFIG_SUBMITTED,
    ),
    "submit_push_config": StepTransition(
        name="submit_push_config",
        target=DataStatus.PUSH_NOTIFICATION_CONFIGURED,
    ),
    "submit_metadata": StepTransition(name="submit_metadata", target=DataStatus.METADATA_SUBMITTED),
    "trigger_build": StepTransition(name="trigger_build", target=DataStatus.BUILD_TRIGGERED, strict=True),
}


ALLOWED_TRANSITIONS: dict[DataStatus, set[DataStatus]] = {
    DataStatus.INITIALIZED: {DataStatus.STORE_CONFIG_SUBMITTED},
    DataStatus.STORE_CONFIG_SUBMITTED: {DataStatus.PUSH_NOTIFICATION_CONFIGURED},
    DataStatus.PUSH_NOTIFICATION_CONFIGURED: {DataStatus.METADATA_SUBMITTED},
    DataStatus.METADATA_SUBMITTED: {DataStatus.BUILD_TRIGGERED},
    DataStatus.BUILD_TRIGGERED: set(),
}


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_STATUSES


def data_status_index(value: str | None) -> int | None:
    for index, status in enumerate(DATA_STATUS_ORDER):
        if status == value:
            return index
    return None


def ensure_transition_allowed(transition: StepTransition, actual: str | None) -> None:
    required = transition.required
    if required is None:
        return

    if transition.strict:
        if actual != required:
            raise SequencingError(
                f"Cannot run {transition.name}: data status must be {required}, got {actual or 'none'}.",
                expected=required,
                actual=actual,
            )
        return

    actual_index = data_status_index(actual)
    if actual_index is None or DATA_STATUS_ORDER[actual_index] != required:
        raise SequencingError(
            f"Cannot run {transition.name}: previous step must be {required}, got {actual or 'none'}.",
            expected=required,
            actual=actual,
        )
    if transition.target not in ALLOWED_TRANSITIONS[DATA_STATUS_ORDER[actual_index]]:
        raise SequencingError(
            f"Transition {actual} -> {transition.target} is not allowed.",
            expected=required,
            actual=actual,
        )
