from __future__ import annotations

from dataclasses import dataclass, field

from publisher.domain.models import OrganizationContext, Platform, Submission


@dataclass
class PublishingSession:
    """Caller-owned workflow context for one application.

    Holds the organization context and the last known submission per platform.
    Only PublishingOrchestrator writes to it, and only after a remote call has
    succeeded; the resolver and projector just read it. Mutations for one
    platform must be serialized by the caller.
    """

    app_id: str
    organization: OrganizationContext | None = None
    submissions: dict[Platform, Submission | None] = field(default_factory=dict)

    def is_loaded(self, platform: Platform) -> bool:
        return platform in self.submissions

    def current_submission(self, platform: Platform) -> Submission | None:
        return self.submissions.get(platform)

    @property
    def organization_id(self) -> str | None:
        return self.organization.organization_id if self.organization is not None else None
