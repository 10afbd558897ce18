from __future__ import annotations

from publisher.domain.models import ProgressView, StepState, Submission, SubmissionStatus, WorkflowStep
from publisher.domain.platforms import PlatformStrategy, select_platform, step_display_name
from publisher.domain.resolver import resolve_state

COMPONENT_ID = "domain.workflow.project_progress"

NOT_STARTED_CLASS = "not-started"
NOT_STARTED_TEXT = "Ready to start"

# Cancelled and unknown statuses render as a fresh start.
_DISPLAYED_STATUSES = frozenset({SubmissionStatus.STARTED, SubmissionStatus.COMPLETED, SubmissionStatus.FAILED})


def not_started_view(platform: PlatformStrategy | str) -> ProgressView:
    strategy = select_platform(platform)
    return ProgressView(
        status_class=NOT_STARTED_CLASS,
        status_text=NOT_STARTED_TEXT,
        current_step=WorkflowStep.INITIALIZE,
        completed_steps=(),
        step_states=_step_states(strategy, current_step=WorkflowStep.INITIALIZE, completed=()),
    )


def project_progress(submission: Submission | None, platform: PlatformStrategy | str) -> ProgressView:
    strategy = select_platform(platform)
    state = resolve_state(submission, strategy)

    if submission is None or submission.status not in _DISPLAYED_STATUSES:
        return not_started_view(strategy)

    if submission.status == SubmissionStatus.COMPLETED:
        status_class, status_text = "completed", "Published"
    elif submission.status == SubmissionStatus.FAILED:
        status_class, status_text = "failed", "Failed"
    else:
        status_class = "in-progress"
        status_text = f"In progress ({step_display_name(state.current_step)})"

    completed = tuple(str(step) for step in strategy.completed_for(submission.data_status))
    return ProgressView(
        status_class=status_class,
        status_text=status_text,
        current_step=state.current_step,
        completed_steps=completed,
        step_states=_step_states(strategy, current_step=state.current_step, completed=completed),
    )


def _step_states(
    strategy: PlatformStrategy,
    *,
    current_step: WorkflowStep,
    completed: tuple[str, ...],
) -> tuple[StepState, ...]:
    states: list[StepState] = []
    for step in strategy.steps:
        if step in completed:
            states.append(StepState(step=str(step), state="completed"))
        elif step == current_step:
            states.append(StepState(step=str(step), state="current"))
        else:
            states.append(StepState(step=str(step), state="pending"))
    return tuple(states)
