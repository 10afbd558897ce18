from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from publisher.domain.errors import MissingParameterError, ValidationError
from publisher.domain.platforms import PlatformStrategy

VERSION_PATTERN = re.compile(r"[0-9]+\.[0-9]+(?:\.[0-9]+)?")
API_KEY_REQUIRED_FIELDS = ("name", "keyId", "issuerId", "privateKey")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_version(version: str) -> None:
    if not VERSION_PATTERN.fullmatch(version):
        raise ValidationError(
            f"Invalid version format: {version}. Must be n.n.n or n.n format.",
            field="version",
        )


def validate_create_fields(strategy: PlatformStrategy, fields: Mapping[str, Any]) -> None:
    for name in strategy.create_required_fields:
        if _is_blank(fields.get(name)):
            raise MissingParameterError(
                name,
                f"{name} is required for {strategy.display_name} submissions",
            )


def validate_store_config(strategy: PlatformStrategy, payload: Mapping[str, Any]) -> None:
    if _is_blank(payload.get("bundleId")):
        raise MissingParameterError("bundleId", "Bundle ID is required")

    version = payload.get("version")
    if not _is_blank(version):
        validate_version(str(version))

    data = payload.get("data")
    data = data if isinstance(data, Mapping) else {}
    for name in strategy.store_config_data_fields:
        if _is_blank(data.get(name)):
            raise MissingParameterError(
                f"data.{name}",
                f"{name} is required for {strategy.display_name}",
            )


def prepare_metadata_payload(payload: Mapping[str, Any], *, has_new_splash_screen: bool) -> dict[str, Any]:
    """Return a copy of the listing payload ready to send.

    A freshly uploaded splash screen is always flagged as encrypted.
    """
    prepared = copy.deepcopy(dict(payload))
    if has_new_splash_screen:
        splash = prepared.get("splashScreen")
        splash = dict(splash) if isinstance(splash, Mapping) else {}
        splash["isEncrypted"] = True
        prepared["splashScreen"] = splash
    return prepared


def validate_api_key_fields(key_data: Mapping[str, Any]) -> None:
    missing = [name for name in API_KEY_REQUIRED_FIELDS if _is_blank(key_data.get(name))]
    if missing:
        raise MissingParameterError(
            missing[0],
            f"Missing required API key fields: {', '.join(missing)}",
        )


def require_value(value: object, field: str) -> str:
    if _is_blank(value):
        raise MissingParameterError(field)
    return str(value)
