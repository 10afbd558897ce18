import json
import logging

import pytest

from publisher.domain.dto import StoreConfigCommand, TransitionResult
from publisher.domain.errors import SequencingError
from publisher.domain.models import Submission
from publisher.logging_setup import JsonFormatter


@pytest.mark.unit
def test_submission_from_payload_is_lenient() -> None:
    submission = Submission.from_payload(
        {
            "id": 7,
            "platform": "android",
            "status": "started",
            "data": "not-a-mapping",
            "createdAt": "not-a-date",
        }
    )

    assert submission.id == "7"
    assert submission.type == "appStore"
    assert submission.data == {}
    assert submission.data_status is None
    assert submission.created_at is None


@pytest.mark.unit
def test_submission_payload_keeps_unknown_data_fields() -> None:
    payload = {
        "id": "sub-1",
        "platform": "ios",
        "status": "started",
        "type": "appStore",
        "data": {"status": "STORE_CONFIG_SUBMITTED", "bundleId": "com.example.app"},
        "createdAt": "2024-05-01T10:00:00+00:00",
        "updatedAt": None,
    }

    submission = Submission.from_payload(payload)

    assert submission.data == payload["data"]
    assert submission.data_status == "STORE_CONFIG_SUBMITTED"
    assert submission.created_at is not None
    assert submission.created_at.isoformat() == "2024-05-01T10:00:00+00:00"
    assert submission.updated_at is None


@pytest.mark.unit
def test_store_config_command_builds_wire_payload() -> None:
    command = StoreConfigCommand(
        bundle_id="com.example.app",
        version="1.0",
        data={"fl-store-versionCode": "3"},
        extra={"fl-store-category": "Business"},
    )

    assert command.to_payload() == {
        "fl-store-category": "Business",
        "bundleId": "com.example.app",
        "version": "1.0",
        "data": {"fl-store-versionCode": "3"},
    }
    assert StoreConfigCommand().to_payload() == {}


@pytest.mark.unit
def test_transition_result_unwrap_raises_error() -> None:
    ok = TransitionResult.ok("value", "done")
    failed: TransitionResult[str] = TransitionResult.failed(
        SequencingError("out of order", expected="METADATA_SUBMITTED", actual=None)
    )

    assert ok.unwrap() == "value"
    assert failed.success is False
    assert failed.message == "out of order"
    with pytest.raises(SequencingError):
        failed.unwrap()


@pytest.mark.unit
def test_json_formatter_emits_whitelisted_context() -> None:
    record = logging.LogRecord(
        name="publishing",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="submission advanced",
        args=(),
        exc_info=None,
    )
    record.app_id = "app-1"
    record.data_status = "INITIALIZED"
    record.password = "hunter2"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "submission advanced"
    assert payload["logger"] == "publishing"
    assert payload["app_id"] == "app-1"
    assert payload["data_status"] == "INITIALIZED"
    assert "password" not in payload
