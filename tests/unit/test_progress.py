import pytest

from publisher.domain.models import Submission, WorkflowStep
from publisher.domain.platforms import ANDROID, IOS
from publisher.domain.progress import NOT_STARTED_TEXT, not_started_view, project_progress


def _started(data_status: str | None, platform: str = "ios") -> Submission:
    data = {"status": data_status} if data_status is not None else {}
    return Submission(id="sub-1", platform=platform, status="started", data=data)


@pytest.mark.unit
def test_no_submission_renders_ready_to_start() -> None:
    view = project_progress(None, IOS)

    assert view.status_class == "not-started"
    assert view.status_text == NOT_STARTED_TEXT
    assert view.current_step == WorkflowStep.INITIALIZE
    assert view.completed_steps == ()
    assert [item.state for item in view.step_states] == ["pending"] * len(IOS.steps)


@pytest.mark.unit
def test_ios_metadata_submitted_completes_everything_but_build() -> None:
    view = project_progress(_started("METADATA_SUBMITTED"), IOS)

    assert view.status_class == "in-progress"
    assert view.status_text == "In progress (Ready to Build)"
    assert view.current_step == WorkflowStep.TRIGGER_BUILD
    assert view.completed_steps == ("api-key", "bundle-cert", "push-config", "app-store-listing")
    assert "build" not in view.completed_steps


@pytest.mark.unit
def test_android_progress_uses_keystore_step() -> None:
    view = project_progress(_started("STORE_CONFIG_SUBMITTED", "android"), ANDROID)

    assert view.completed_steps == ("bundle-keystore",)
    assert view.current_step == WorkflowStep.PUSH_CONFIG
    assert [(item.step, item.state) for item in view.step_states] == [
        ("bundle-keystore", "completed"),
        ("push-config", "current"),
        ("app-store-listing", "pending"),
        ("build", "pending"),
    ]


@pytest.mark.unit
def test_build_triggered_marks_build_completed() -> None:
    view = project_progress(_started("BUILD_TRIGGERED"), IOS)

    assert view.completed_steps[-1] == "build"
    assert view.status_text == "In progress (Building)"


@pytest.mark.unit
def test_initialized_has_no_completed_steps() -> None:
    view = project_progress(_started("INITIALIZED"), IOS)

    assert view.completed_steps == ()
    assert view.current_step == WorkflowStep.API_KEY
    assert view.step_states[0].state == "current"


@pytest.mark.unit
def test_partial_data_degrades_without_error() -> None:
    view = project_progress(_started(None), IOS)

    assert view.status_class == "in-progress"
    assert view.current_step == WorkflowStep.INITIALIZE
    assert view.completed_steps == ()


@pytest.mark.unit
def test_completed_and_failed_submissions_render_terminal_labels() -> None:
    completed = Submission(id="s", platform="ios", status="completed", data={"status": "BUILD_TRIGGERED"})
    failed = Submission(id="s", platform="ios", status="failed", data={"status": "BUILD_TRIGGERED"})

    assert (project_progress(completed, IOS).status_class, project_progress(completed, IOS).status_text) == (
        "completed",
        "Published",
    )
    assert project_progress(failed, IOS).status_text == "Failed"
    assert project_progress(failed, IOS).current_step == WorkflowStep.INITIALIZE


@pytest.mark.unit
@pytest.mark.parametrize("status", ["cancelled", "paused"])
def test_cancelled_and_unknown_statuses_render_ready_to_start(status: str) -> None:
    submission = Submission(id="s", platform="ios", status=status, data={"status": "METADATA_SUBMITTED"})

    assert project_progress(submission, IOS) == not_started_view(IOS)
