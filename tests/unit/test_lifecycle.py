import pytest

from publisher.domain.errors import SequencingError
from publisher.domain.lifecycle import (
    ALLOWED_TRANSITIONS,
    DATA_STATUS_ORDER,
    STEP_TRANSITIONS,
    ensure_transition_allowed,
    is_terminal,
)
from publisher.domain.models import DataStatus


@pytest.mark.unit
def test_data_status_order_matches_enum_declaration() -> None:
    assert DATA_STATUS_ORDER == tuple(DataStatus)


@pytest.mark.unit
def test_each_status_allows_only_the_next_one() -> None:
    for index, status in enumerate(DATA_STATUS_ORDER[:-1]):
        assert ALLOWED_TRANSITIONS[status] == {DATA_STATUS_ORDER[index + 1]}
    assert ALLOWED_TRANSITIONS[DataStatus.BUILD_TRIGGERED] == set()


@pytest.mark.unit
def test_terminal_statuses() -> None:
    assert is_terminal("completed") is True
    assert is_terminal("failed") is True
    assert is_terminal("cancelled") is True
    assert is_terminal("started") is False
    assert is_terminal(None) is False


@pytest.mark.unit
def test_trigger_build_after_push_config_skips_metadata_and_is_rejected() -> None:
    with pytest.raises(SequencingError) as exc_info:
        ensure_transition_allowed(STEP_TRANSITIONS["trigger_build"], "PUSH_NOTIFICATION_CONFIGURED")

    assert exc_info.value.expected == DataStatus.METADATA_SUBMITTED
    assert exc_info.value.actual == "PUSH_NOTIFICATION_CONFIGURED"


@pytest.mark.unit
def test_steps_cannot_be_repeated_or_skipped() -> None:
    with pytest.raises(SequencingError):
        ensure_transition_allowed(STEP_TRANSITIONS["submit_store_config"], "STORE_CONFIG_SUBMITTED")
    with pytest.raises(SequencingError):
        ensure_transition_allowed(STEP_TRANSITIONS["submit_metadata"], "STORE_CONFIG_SUBMITTED")
    with pytest.raises(SequencingError):
        ensure_transition_allowed(STEP_TRANSITIONS["submit_push_config"], None)


@pytest.mark.unit
def test_in_order_transitions_are_allowed() -> None:
    ensure_transition_allowed(STEP_TRANSITIONS["create_submission"], None)
    ensure_transition_allowed(STEP_TRANSITIONS["submit_store_config"], "INITIALIZED")
    ensure_transition_allowed(STEP_TRANSITIONS["submit_push_config"], "STORE_CONFIG_SUBMITTED")
    ensure_transition_allowed(STEP_TRANSITIONS["submit_metadata"], "PUSH_NOTIFICATION_CONFIGURED")
    ensure_transition_allowed(STEP_TRANSITIONS["trigger_build"], "METADATA_SUBMITTED")
