from __future__ import annotations

import importlib

ulid_module = importlib.import_module("ulid")


def new_submission_id() -> str:
    return f"sub_{ulid_module.new().str}"


def new_build_id() -> str:
    return f"bld_{ulid_module.new().str}"


def new_organization_id() -> str:
    return f"org_{ulid_module.new().str}"
