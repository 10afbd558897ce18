from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from publisher.domain.contracts import SubmissionRepository
from publisher.domain.dto import AppInitialized, BuildTriggered, SubmissionState, TransitionResult
from publisher.domain.errors import PublishingError, RemoteError, SequencingError
from publisher.domain.lifecycle import STEP_TRANSITIONS, StepTransition, ensure_transition_allowed, is_terminal
from publisher.domain.models import DataStatus, OrganizationContext, Submission, SubmissionStatus
from publisher.domain.platforms import PlatformStrategy, select_platform
from publisher.domain.resolver import is_unexpected_status, resolve_state
from publisher.domain.validation import prepare_metadata_payload, validate_create_fields, validate_store_config
from publisher.services.session import PublishingSession

COMPONENT_ID = "services.publishing.orchestrator"
PUSH_CONFIG_TYPE = "PUSH_CONFIG"

logger = logging.getLogger("publishing")


def _error_code(exc: PublishingError) -> str:
    if isinstance(exc, RemoteError) and exc.code:
        return exc.code
    return type(exc).__name__


def _platform_label(platform: object) -> str | None:
    if isinstance(platform, PlatformStrategy):
        return platform.platform.value
    return str(platform) if platform is not None else None


def _unexpected_status_message(submission: Submission) -> str:
    return (
        f"Submission {submission.id} has unexpected status {submission.status}; it cannot be resumed, "
        "cancelled or replaced from here. Resolve it on the publishing service first."
    )


@dataclass
class PublishingOrchestrator:
    """Drives a submission forward one step at a time.

    Each transition validates its payload and the cached data status before
    any network call, performs one remote mutation, and only then advances the
    session cache. A failed call leaves the session untouched, so re-invoking
    after fixing the cause is safe.

    The orchestrator does not lock: at most one mutation per submission may be
    in flight, and callers are responsible for serializing them.
    """

    repository: SubmissionRepository

    # Organization context.

    async def ensure_organization(self, session: PublishingSession) -> OrganizationContext:
        if session.organization is not None:
            return session.organization
        app = await self.repository.fetch_app(app_id=session.app_id)
        session.organization = OrganizationContext(
            organization_id=app.organization_id,
            production_app_id=app.production_app_id,
        )
        return session.organization

    async def initialize_app(self, session: PublishingSession) -> TransitionResult[AppInitialized]:
        try:
            app = await self.repository.fetch_app(app_id=session.app_id)
            published_now = False
            if not app.production_app_id:
                await self.repository.publish_app(app_id=session.app_id)
                published_now = True
        except PublishingError as exc:
            return self._rejected("initialize_app", session, None, exc)

        if session.organization is None:
            session.organization = OrganizationContext(
                organization_id=app.organization_id,
                production_app_id=app.production_app_id,
            )
        logger.info(
            "app initialized for publishing",
            extra={"app_id": session.app_id, "step": "initialize_app"},
        )
        return TransitionResult.ok(
            AppInitialized(
                organization_id=session.organization.organization_id,
                production_app_id=app.production_app_id,
                published_now=published_now,
            )
        )

    # Read-only probes.

    async def load_state(self, session: PublishingSession, platform: object) -> TransitionResult[SubmissionState]:
        """Fetch the latest submission, cache it and resolve the workflow step.

        Remote failures degrade to the "no submission" state instead of failing.
        """
        try:
            strategy = select_platform(platform)
        except PublishingError as exc:
            return self._rejected("load_state", session, None, exc)

        try:
            submission = await self.repository.fetch_latest_submission(
                app_id=session.app_id,
                platform=strategy.platform,
            )
        except RemoteError as exc:
            logger.warning(
                "latest submission probe failed, showing not started",
                extra={
                    "app_id": session.app_id,
                    "platform": strategy.platform.value,
                    "error_code": _error_code(exc),
                },
            )
            return TransitionResult.ok(
                SubmissionState(
                    platform=strategy.platform.value,
                    submission=None,
                    workflow=resolve_state(None, strategy),
                )
            )

        session.submissions[strategy.platform] = submission
        if is_unexpected_status(submission):
            assert submission is not None
            logger.warning(
                "submission has unexpected status, treating as resettable",
                extra={
                    "app_id": session.app_id,
                    "platform": strategy.platform.value,
                    "submission_id": submission.id,
                    "status": submission.status,
                },
            )
        return TransitionResult.ok(
            SubmissionState(
                platform=strategy.platform.value,
                submission=submission,
                workflow=resolve_state(submission, strategy),
            )
        )

    async def refresh_submission(self, session: PublishingSession, platform: object) -> TransitionResult[Submission]:
        try:
            strategy = select_platform(platform)
            current = session.current_submission(strategy.platform)
            if current is None or current.id is None:
                raise SequencingError(
                    "No submission to refresh. Load the latest submission first.",
                    expected=None,
                    actual=None,
                )
            submission = await self.repository.fetch_submission(app_id=session.app_id, submission_id=current.id)
        except PublishingError as exc:
            return self._rejected("refresh_submission", session, platform, exc)

        session.submissions[strategy.platform] = submission
        return TransitionResult.ok(submission)

    async def list_submissions(
        self,
        session: PublishingSession,
        platform: object,
        *,
        status: str | None = None,
    ) -> TransitionResult[list[Submission]]:
        try:
            strategy = select_platform(platform)
            submissions = await self.repository.list_submissions(
                app_id=session.app_id,
                platform=strategy.platform,
                status=status,
            )
        except PublishingError as exc:
            return self._rejected("list_submissions", session, platform, exc)
        return TransitionResult.ok(submissions)

    # Transitions.

    async def create_submission(
        self,
        session: PublishingSession,
        platform: object,
        *,
        team_id: str | None = None,
        extra_fields: Mapping[str, Any] | None = None,
    ) -> TransitionResult[Submission]:
        transition = STEP_TRANSITIONS["create_submission"]
        try:
            strategy = select_platform(platform)
            fields: dict[str, Any] = dict(extra_fields or {})
            if team_id is not None:
                fields["teamId"] = team_id
            validate_create_fields(strategy, fields)

            if not session.is_loaded(strategy.platform):
                session.submissions[strategy.platform] = await self.repository.fetch_latest_submission(
                    app_id=session.app_id,
                    platform=strategy.platform,
                )
            latest = session.current_submission(strategy.platform)
            if latest is not None and not is_terminal(latest.status):
                message = (
                    _unexpected_status_message(latest)
                    if is_unexpected_status(latest)
                    else f"Submission {latest.id} is still active. Finish or cancel it before starting a new one."
                )
                raise SequencingError(
                    message,
                    expected=None,
                    actual=latest.data_status,
                )

            submission = await self.repository.create_submission(
                app_id=session.app_id,
                platform=strategy.platform,
                extra_fields=fields,
            )
        except PublishingError as exc:
            return self._rejected(transition.name, session, platform, exc)

        session.submissions[strategy.platform] = submission
        self._log_advanced(transition, session, strategy, submission)
        return TransitionResult.ok(submission, "Submission initialized successfully")

    async def submit_store_config(
        self,
        session: PublishingSession,
        platform: object,
        payload: Mapping[str, Any],
        *,
        submission_id: str | None = None,
    ) -> TransitionResult[Submission]:
        transition = STEP_TRANSITIONS["submit_store_config"]
        try:
            strategy = select_platform(platform)
            validate_store_config(strategy, payload)
            current = self._require_step(session, strategy, transition, submission_id)
            await self.repository.put_store_config(
                app_id=session.app_id,
                submission_id=str(current.id),
                payload=dict(payload),
            )
        except PublishingError as exc:
            return self._rejected(transition.name, session, platform, exc)

        accumulated = {key: payload[key] for key in ("bundleId", "version") if payload.get(key)}
        advanced = self._advance(session, strategy, current, transition, accumulated)
        return TransitionResult.ok(advanced, "Store configuration submitted successfully")

    async def submit_push_config(
        self,
        session: PublishingSession,
        platform: object,
        *,
        config_type: str = PUSH_CONFIG_TYPE,
        submission_id: str | None = None,
    ) -> TransitionResult[Submission]:
        transition = STEP_TRANSITIONS["submit_push_config"]
        try:
            strategy = select_platform(platform)
            current = self._require_step(session, strategy, transition, submission_id)
            await self.repository.put_metadata(
                app_id=session.app_id,
                submission_id=str(current.id),
                payload={"type": config_type},
            )
        except PublishingError as exc:
            return self._rejected(transition.name, session, platform, exc)

        advanced = self._advance(session, strategy, current, transition)
        return TransitionResult.ok(advanced, "Push configuration submitted to submission")

    async def submit_metadata(
        self,
        session: PublishingSession,
        platform: object,
        payload: Mapping[str, Any],
        *,
        has_new_splash_screen: bool = False,
        submission_id: str | None = None,
    ) -> TransitionResult[Submission]:
        transition = STEP_TRANSITIONS["submit_metadata"]
        try:
            strategy = select_platform(platform)
            prepared = prepare_metadata_payload(payload, has_new_splash_screen=has_new_splash_screen)
            current = self._require_step(session, strategy, transition, submission_id)
            await self.repository.put_metadata(
                app_id=session.app_id,
                submission_id=str(current.id),
                payload=prepared,
            )
        except PublishingError as exc:
            return self._rejected(transition.name, session, platform, exc)

        advanced = self._advance(session, strategy, current, transition)
        return TransitionResult.ok(advanced, "Metadata submitted successfully")

    async def trigger_build(
        self,
        session: PublishingSession,
        platform: object,
        *,
        submission_id: str | None = None,
    ) -> TransitionResult[BuildTriggered]:
        transition = STEP_TRANSITIONS["trigger_build"]
        try:
            strategy = select_platform(platform)
            current = self._require_step(session, strategy, transition, submission_id)
            build_id = await self.repository.post_build(app_id=session.app_id, submission_id=str(current.id))
        except PublishingError as exc:
            return self._rejected(transition.name, session, platform, exc)

        advanced = self._advance(session, strategy, current, transition)
        return TransitionResult.ok(
            BuildTriggered(submission=advanced, build_id=build_id),
            "Build triggered successfully",
        )

    async def cancel_build(
        self,
        session: PublishingSession,
        platform: object,
        *,
        submission_id: str | None = None,
    ) -> TransitionResult[Submission]:
        try:
            strategy = select_platform(platform)
            current = self._require_cached(session, strategy, submission_id)
            if current.status != SubmissionStatus.STARTED:
                raise SequencingError(
                    _unexpected_status_message(current)
                    if is_unexpected_status(current)
                    else f"Cannot cancel submission in status {current.status}.",
                    expected=None,
                    actual=current.data_status,
                )
            await self.repository.post_cancel(app_id=session.app_id, submission_id=str(current.id))
        except PublishingError as exc:
            return self._rejected("cancel_build", session, platform, exc)

        cancelled = replace(current, status=SubmissionStatus.CANCELLED.value)
        session.submissions[strategy.platform] = cancelled
        logger.info(
            "submission cancelled",
            extra={
                "app_id": session.app_id,
                "platform": strategy.platform.value,
                "submission_id": cancelled.id,
                "step": "cancel_build",
            },
        )
        return TransitionResult.ok(cancelled, "Build cancelled successfully")

    # Helpers.

    def _require_cached(
        self,
        session: PublishingSession,
        strategy: PlatformStrategy,
        submission_id: str | None,
    ) -> Submission:
        current = session.current_submission(strategy.platform)
        if current is None or current.id is None:
            raise SequencingError(
                f"No active {strategy.display_name} submission. Create one first.",
                expected=DataStatus.INITIALIZED,
                actual=None,
            )
        if submission_id is not None and submission_id != current.id:
            raise SequencingError(
                f"Submission {submission_id} is not the current {strategy.display_name} submission.",
                expected=current.data_status,
                actual=None,
            )
        return current

    def _require_step(
        self,
        session: PublishingSession,
        strategy: PlatformStrategy,
        transition: StepTransition,
        submission_id: str | None,
    ) -> Submission:
        current = self._require_cached(session, strategy, submission_id)
        if is_unexpected_status(current):
            raise SequencingError(
                _unexpected_status_message(current),
                expected=transition.required,
                actual=current.data_status,
            )
        if current.status != SubmissionStatus.STARTED:
            raise SequencingError(
                f"Submission {current.id} is {current.status}; start a new submission.",
                expected=transition.required,
                actual=current.data_status,
            )
        ensure_transition_allowed(transition, current.data_status)
        return current

    def _advance(
        self,
        session: PublishingSession,
        strategy: PlatformStrategy,
        current: Submission,
        transition: StepTransition,
        accumulated: Mapping[str, Any] | None = None,
    ) -> Submission:
        data = {**current.data, **(accumulated or {}), "status": transition.target.value}
        advanced = replace(current, data=data)
        session.submissions[strategy.platform] = advanced
        self._log_advanced(transition, session, strategy, advanced)
        return advanced

    def _log_advanced(
        self,
        transition: StepTransition,
        session: PublishingSession,
        strategy: PlatformStrategy,
        submission: Submission,
    ) -> None:
        logger.info(
            "submission advanced",
            extra={
                "app_id": session.app_id,
                "platform": strategy.platform.value,
                "submission_id": submission.id,
                "step": transition.name,
                "data_status": submission.data_status,
            },
        )

    def _rejected(
        self,
        operation: str,
        session: PublishingSession,
        platform: object,
        exc: PublishingError,
    ) -> TransitionResult[Any]:
        logger.warning(
            "publishing operation rejected",
            extra={
                "app_id": session.app_id,
                "platform": _platform_label(platform),
                "step": operation,
                "error_code": _error_code(exc),
            },
        )
        return TransitionResult.failed(exc)
