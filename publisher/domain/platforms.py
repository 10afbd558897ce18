from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from publisher.domain.errors import InvalidPlatformError
from publisher.domain.models import DataStatus, Platform, WorkflowStep

# Version code lives under the store payload's data mapping on Android.
ANDROID_VERSION_CODE_FIELD = "fl-store-versionCode"

STEP_DISPLAY_NAMES: Mapping[str, str] = {
    WorkflowStep.INITIALIZE: "Starting",
    WorkflowStep.API_KEY: "API Key",
    WorkflowStep.BUNDLE_CERT: "Bundle & Cert",
    WorkflowStep.BUNDLE_KEYSTORE: "Bundle & Key",
    WorkflowStep.PUSH_CONFIG: "Push Config",
    WorkflowStep.APP_STORE_LISTING: "Store Listing",
    WorkflowStep.TRIGGER_BUILD: "Ready to Build",
    WorkflowStep.MONITOR_BUILD: "Building",
    WorkflowStep.BUILD: "Building",
}


@dataclass(frozen=True)
class PlatformStrategy:
    """Everything that differs between the iOS and Android workflows.

    Callers pick a strategy once via select_platform() and pass it through,
    so no other module compares platform strings.
    """

    platform: Platform
    display_name: str
    # Progress steps shown to the user, in order.
    steps: tuple[WorkflowStep, ...]
    # Step the user should be on for each data status of a started submission.
    current_step_by_data_status: Mapping[DataStatus, WorkflowStep]
    # Steps already done once data status has been reached.
    completed_steps_by_data_status: Mapping[DataStatus, tuple[WorkflowStep, ...]]
    create_required_fields: tuple[str, ...] = ()
    store_config_data_fields: tuple[str, ...] = ()
    endpoint_fragments: Mapping[str, str] = field(default_factory=dict)

    def step_for(self, data_status: str | None) -> WorkflowStep:
        for status, step in self.current_step_by_data_status.items():
            if status == data_status:
                return step
        return WorkflowStep.INITIALIZE

    def completed_for(self, data_status: str | None) -> tuple[WorkflowStep, ...]:
        for status, steps in self.completed_steps_by_data_status.items():
            if status == data_status:
                return steps
        return ()

    def endpoint(self, name: str) -> str | None:
        return self.endpoint_fragments.get(name)


_SHARED_TAIL: dict[DataStatus, WorkflowStep] = {
    DataStatus.STORE_CONFIG_SUBMITTED: WorkflowStep.PUSH_CONFIG,
    DataStatus.PUSH_NOTIFICATION_CONFIGURED: WorkflowStep.APP_STORE_LISTING,
    DataStatus.METADATA_SUBMITTED: WorkflowStep.TRIGGER_BUILD,
    DataStatus.BUILD_TRIGGERED: WorkflowStep.MONITOR_BUILD,
}


def _prefix_table(
    configuration_steps: tuple[WorkflowStep, ...],
) -> dict[DataStatus, tuple[WorkflowStep, ...]]:
    return {
        DataStatus.STORE_CONFIG_SUBMITTED: configuration_steps,
        DataStatus.PUSH_NOTIFICATION_CONFIGURED: (*configuration_steps, WorkflowStep.PUSH_CONFIG),
        DataStatus.METADATA_SUBMITTED: (
            *configuration_steps,
            WorkflowStep.PUSH_CONFIG,
            WorkflowStep.APP_STORE_LISTING,
        ),
        DataStatus.BUILD_TRIGGERED: (
            *configuration_steps,
            WorkflowStep.PUSH_CONFIG,
            WorkflowStep.APP_STORE_LISTING,
            WorkflowStep.BUILD,
        ),
    }


IOS = PlatformStrategy(
    platform=Platform.IOS,
    display_name="iOS",
    steps=(
        WorkflowStep.API_KEY,
        WorkflowStep.BUNDLE_CERT,
        WorkflowStep.PUSH_CONFIG,
        WorkflowStep.APP_STORE_LISTING,
        WorkflowStep.BUILD,
    ),
    current_step_by_data_status={DataStatus.INITIALIZED: WorkflowStep.API_KEY, **_SHARED_TAIL},
    completed_steps_by_data_status=_prefix_table((WorkflowStep.API_KEY, WorkflowStep.BUNDLE_CERT)),
    create_required_fields=("teamId",),
    endpoint_fragments={"certificate": "credentials/ios/certificate", "push": "credentials/push"},
)

ANDROID = PlatformStrategy(
    platform=Platform.ANDROID,
    display_name="Android",
    steps=(
        WorkflowStep.BUNDLE_KEYSTORE,
        WorkflowStep.PUSH_CONFIG,
        WorkflowStep.APP_STORE_LISTING,
        WorkflowStep.BUILD,
    ),
    current_step_by_data_status={DataStatus.INITIALIZED: WorkflowStep.BUNDLE_KEYSTORE, **_SHARED_TAIL},
    completed_steps_by_data_status=_prefix_table((WorkflowStep.BUNDLE_KEYSTORE,)),
    store_config_data_fields=(ANDROID_VERSION_CODE_FIELD,),
)

PLATFORM_STRATEGIES: dict[Platform, PlatformStrategy] = {
    Platform.IOS: IOS,
    Platform.ANDROID: ANDROID,
}


def select_platform(value: object) -> PlatformStrategy:
    if isinstance(value, PlatformStrategy):
        return value
    for platform, strategy in PLATFORM_STRATEGIES.items():
        if platform == value:
            return strategy
    raise InvalidPlatformError(value)


def step_display_name(step: str) -> str:
    return STEP_DISPLAY_NAMES.get(step, step)
