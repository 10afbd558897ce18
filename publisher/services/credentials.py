from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from publisher.domain.contracts import CredentialsRepository, JsonPayload
from publisher.domain.dto import TransitionResult
from publisher.domain.errors import PublishingError, RemoteError, ValidationError
from publisher.domain.models import Platform
from publisher.domain.platforms import PlatformStrategy, select_platform
from publisher.domain.validation import require_value, validate_api_key_fields
from publisher.services.orchestrator import PublishingOrchestrator
from publisher.services.session import PublishingSession

COMPONENT_ID = "services.publishing.credentials"

logger = logging.getLogger("publishing")


@dataclass
class CredentialsService:
    """iOS credential, bundle ID and push lookups scoped by the organization.

    The organization context is resolved through the orchestrator on first
    use and reused from the session afterwards. Entities are referenced by
    id only; nothing here touches submission state.
    """

    credentials: CredentialsRepository
    orchestrator: PublishingOrchestrator

    async def list_api_keys(self, session: PublishingSession) -> TransitionResult[list[JsonPayload]]:
        try:
            organization = await self.orchestrator.ensure_organization(session)
            keys = await self.credentials.list_api_keys(organization_id=organization.organization_id)
        except PublishingError as exc:
            return self._rejected("list_api_keys", session, exc)
        return TransitionResult.ok(keys)

    async def create_api_key(
        self,
        session: PublishingSession,
        key_data: Mapping[str, Any],
    ) -> TransitionResult[JsonPayload]:
        try:
            validate_api_key_fields(key_data)
            organization = await self.orchestrator.ensure_organization(session)
            created = await self.credentials.create_api_key(
                organization_id=organization.organization_id,
                key_data=dict(key_data),
            )
        except PublishingError as exc:
            return self._rejected("create_api_key", session, exc)
        return TransitionResult.ok(created, "API key created successfully")

    async def validate_api_key(
        self,
        session: PublishingSession,
        key_data: Mapping[str, Any],
    ) -> TransitionResult[JsonPayload]:
        try:
            organization = await self.orchestrator.ensure_organization(session)
            response = await self.credentials.validate_api_key(
                organization_id=organization.organization_id,
                key_data=dict(key_data),
            )
        except PublishingError as exc:
            return self._rejected("validate_api_key", session, exc)
        return TransitionResult.ok(
            {"valid": bool(response.get("valid")), "message": response.get("message")},
            str(response.get("message") or ""),
        )

    async def check_certificate(
        self,
        session: PublishingSession,
        team_id: str | None,
        platform: PlatformStrategy | str = Platform.IOS,
    ) -> TransitionResult[JsonPayload]:
        try:
            path = self._certificate_path(platform)
            team = require_value(team_id, "teamId")
            organization = await self.orchestrator.ensure_organization(session)
            response = await self.credentials.check_certificate(
                organization_id=organization.organization_id,
                path=path,
                team_id=team,
            )
        except PublishingError as exc:
            return self._rejected("check_certificate", session, exc)
        return TransitionResult.ok(
            {
                "isValid": bool(response.get("isValid")),
                "certificate": response.get("certificate"),
                "message": response.get("message"),
            }
        )

    async def generate_certificate(
        self,
        session: PublishingSession,
        team_id: str | None,
        platform: PlatformStrategy | str = Platform.IOS,
    ) -> TransitionResult[JsonPayload]:
        try:
            path = self._certificate_path(platform)
            team = require_value(team_id, "teamId")
            organization = await self.orchestrator.ensure_organization(session)
            response = await self.credentials.generate_certificate(
                organization_id=organization.organization_id,
                path=path,
                team_id=team,
            )
        except PublishingError as exc:
            return self._rejected("generate_certificate", session, exc)
        return TransitionResult.ok(response.get("certificate"), "Certificate generated successfully")

    async def list_bundle_ids(self, session: PublishingSession, team_id: str | None) -> TransitionResult[list[JsonPayload]]:
        try:
            team = require_value(team_id, "teamId")
            organization = await self.orchestrator.ensure_organization(session)
            bundle_ids = await self.credentials.list_bundle_ids(
                organization_id=organization.organization_id,
                team_id=team,
            )
        except PublishingError as exc:
            return self._rejected("list_bundle_ids", session, exc)
        return TransitionResult.ok(bundle_ids)

    async def get_bundle_id_details(
        self,
        session: PublishingSession,
        bundle_id: str | None,
        team_id: str | None,
    ) -> TransitionResult[JsonPayload]:
        try:
            bundle = require_value(bundle_id, "bundleId")
            team = require_value(team_id, "teamId")
            organization = await self.orchestrator.ensure_organization(session)
            details = await self.credentials.get_bundle_id(
                organization_id=organization.organization_id,
                team_id=team,
                bundle_id=bundle,
            )
        except PublishingError as exc:
            return self._rejected("get_bundle_id_details", session, exc)
        return TransitionResult.ok(details)

    async def get_team_push_config(
        self,
        session: PublishingSession,
        team_id: str | None,
    ) -> TransitionResult[JsonPayload]:
        """Read-only probe: a failed lookup reports push as not configured."""
        try:
            team = require_value(team_id, "teamId")
            organization = await self.orchestrator.ensure_organization(session)
        except PublishingError as exc:
            return self._rejected("get_team_push_config", session, exc)

        push_path = select_platform(Platform.IOS).endpoint("push") or "credentials/push"
        try:
            config = await self.credentials.get_push_config(
                organization_id=organization.organization_id,
                path=push_path,
                team_id=team,
            )
        except RemoteError as exc:
            logger.warning(
                "push config probe failed, reporting not configured",
                extra={"app_id": session.app_id, "error_code": exc.code},
            )
            config = None
        return TransitionResult.ok({"configured": config is not None, "config": config})

    def _certificate_path(self, platform: PlatformStrategy | str) -> str:
        strategy = select_platform(platform)
        path = strategy.endpoint("certificate")
        if path is None:
            raise ValidationError(
                f"{strategy.display_name} submissions do not use distribution certificates",
                field="platform",
            )
        return path

    def _rejected(self, operation: str, session: PublishingSession, exc: PublishingError) -> TransitionResult[Any]:
        logger.warning(
            "credentials operation rejected",
            extra={
                "app_id": session.app_id,
                "step": operation,
                "error_code": exc.code if isinstance(exc, RemoteError) and exc.code else type(exc).__name__,
            },
        )
        return TransitionResult.failed(exc)
