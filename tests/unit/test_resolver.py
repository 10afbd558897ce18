import pytest

from publisher.domain.errors import InvalidPlatformError
from publisher.domain.models import DataStatus, Submission, WorkflowStep
from publisher.domain.platforms import ANDROID, IOS
from publisher.domain.resolver import is_unexpected_status, needs_new_submission, resolve_state


def _submission(status: str | None, data_status: str | None = None, platform: str = "ios") -> Submission:
    data = {"status": data_status} if data_status is not None else {}
    return Submission(id="sub-1", platform=platform, status=status, data=data)


@pytest.mark.unit
def test_missing_submission_needs_new_submission_on_android() -> None:
    state = resolve_state(None, "android")

    assert state.needs_new_submission is True
    assert state.current_step == WorkflowStep.INITIALIZE
    assert state.can_proceed is True


@pytest.mark.unit
@pytest.mark.parametrize("status", ["completed", "failed", "cancelled"])
@pytest.mark.parametrize("data_status", [None, "INITIALIZED", "BUILD_TRIGGERED"])
def test_terminal_submission_always_restarts_at_initialize(status: str, data_status: str | None) -> None:
    state = resolve_state(_submission(status, data_status), IOS)

    assert state.needs_new_submission is True
    assert state.current_step == WorkflowStep.INITIALIZE
    assert state.can_proceed is True


@pytest.mark.unit
def test_ios_store_config_submitted_moves_to_push_config() -> None:
    state = resolve_state(_submission("started", "STORE_CONFIG_SUBMITTED"), "ios")

    assert state.current_step == WorkflowStep.PUSH_CONFIG
    assert state.can_proceed is True
    assert state.needs_new_submission is False


@pytest.mark.unit
@pytest.mark.parametrize(
    ("data_status", "ios_step", "android_step"),
    [
        (DataStatus.INITIALIZED, WorkflowStep.API_KEY, WorkflowStep.BUNDLE_KEYSTORE),
        (DataStatus.STORE_CONFIG_SUBMITTED, WorkflowStep.PUSH_CONFIG, WorkflowStep.PUSH_CONFIG),
        (DataStatus.PUSH_NOTIFICATION_CONFIGURED, WorkflowStep.APP_STORE_LISTING, WorkflowStep.APP_STORE_LISTING),
        (DataStatus.METADATA_SUBMITTED, WorkflowStep.TRIGGER_BUILD, WorkflowStep.TRIGGER_BUILD),
        (DataStatus.BUILD_TRIGGERED, WorkflowStep.MONITOR_BUILD, WorkflowStep.MONITOR_BUILD),
    ],
)
def test_step_table_for_started_submissions(
    data_status: DataStatus,
    ios_step: WorkflowStep,
    android_step: WorkflowStep,
) -> None:
    assert resolve_state(_submission("started", data_status.value), IOS).current_step == ios_step
    assert resolve_state(_submission("started", data_status.value, "android"), ANDROID).current_step == android_step


@pytest.mark.unit
def test_build_triggered_blocks_proceeding() -> None:
    state = resolve_state(_submission("started", "BUILD_TRIGGERED"), IOS)

    assert state.can_proceed is False
    assert state.needs_new_submission is False


@pytest.mark.unit
@pytest.mark.parametrize("data_status", [None, "SOMETHING_NEW"])
def test_unrecognized_data_status_falls_back_to_initialize(data_status: str | None) -> None:
    state = resolve_state(_submission("started", data_status), IOS)

    assert state.current_step == WorkflowStep.INITIALIZE
    assert state.can_proceed is True
    assert state.needs_new_submission is False


@pytest.mark.unit
def test_non_started_non_terminal_status_is_resettable() -> None:
    submission = _submission("queued", "METADATA_SUBMITTED")
    state = resolve_state(submission, IOS)

    assert state.current_step == WorkflowStep.INITIALIZE
    assert state.can_proceed is True
    assert state.needs_new_submission is False
    assert is_unexpected_status(submission) is True
    assert is_unexpected_status(_submission("started", "INITIALIZED")) is False
    assert is_unexpected_status(None) is False


@pytest.mark.unit
def test_needs_new_submission_helper() -> None:
    assert needs_new_submission(None) is True
    assert needs_new_submission(_submission("cancelled")) is True
    assert needs_new_submission(_submission("started")) is False


@pytest.mark.unit
def test_resolve_state_rejects_unknown_platform() -> None:
    with pytest.raises(InvalidPlatformError):
        resolve_state(None, "windows")
