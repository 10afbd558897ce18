from __future__ import annotations

from publisher.domain.lifecycle import is_terminal
from publisher.domain.models import DataStatus, Submission, SubmissionStatus, WorkflowState, WorkflowStep
from publisher.domain.platforms import PlatformStrategy, select_platform

COMPONENT_ID = "domain.workflow.resolve_state"


def needs_new_submission(submission: Submission | None) -> bool:
    return submission is None or is_terminal(submission.status)


def resolve_state(submission: Submission | None, platform: PlatformStrategy | str) -> WorkflowState:
    """Derive where the user is in the workflow from a cached submission.

    Pure: the orchestrator gates actions with it and the progress projector
    renders from it, so both always agree.
    """
    strategy = select_platform(platform)

    if needs_new_submission(submission):
        return WorkflowState(
            current_step=WorkflowStep.INITIALIZE,
            can_proceed=True,
            needs_new_submission=True,
        )
    assert submission is not None

    if submission.status != SubmissionStatus.STARTED:
        # Neither started nor terminal: not a designed state, treated as resettable.
        return WorkflowState(
            current_step=WorkflowStep.INITIALIZE,
            can_proceed=True,
            needs_new_submission=False,
        )

    data_status = submission.data_status
    return WorkflowState(
        current_step=strategy.step_for(data_status),
        can_proceed=data_status != DataStatus.BUILD_TRIGGERED,
        needs_new_submission=False,
    )


def is_unexpected_status(submission: Submission | None) -> bool:
    return (
        submission is not None
        and not is_terminal(submission.status)
        and submission.status != SubmissionStatus.STARTED
    )
