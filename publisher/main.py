from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
import uuid

import uvicorn

from publisher.api.http_app import build_app
from publisher.domain.errors import PublishingError
from publisher.domain.platforms import select_platform
from publisher.logging_setup import configure_logging
from publisher.roles import SUPPORTED_ROLES, validate_role
from publisher.services.bootstrap import RuntimeContainer, build_runtime_container
from publisher.services.session import PublishingSession
from publisher.workers.monitor import BuildMonitorState, build_in_flight, monitor_build


def _default_port(role: str) -> int:
    if role == "api":
        return 8000
    return 8100


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="App store publishing runtime")
    parser.add_argument("--role", required=True, help="Runtime role")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--app-id", default=None, help="App to monitor (monitor role)")
    parser.add_argument("--platform", default=None, help="ios or android (monitor role)")
    parser.add_argument(
        "--dry-run-startup",
        action="store_true",
        help="Validate startup and exit",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable code reload (dev mode)",
    )
    return parser.parse_args(argv)


def create_runtime_app() -> object:
    role = validate_role(os.getenv("APP_ROLE", "api"))
    run_id = str(uuid.uuid4())
    configure_logging()
    container = build_runtime_container(role)
    return build_app(
        role=role.name,
        run_id=run_id,
        api_deps=container.api_deps,
        on_startup=container.on_startup,
        on_shutdown=container.on_shutdown,
        mode=container.mode,
    )


async def run_monitor(
    *,
    container: RuntimeContainer,
    app_id: str,
    platform: str,
    run_id: str,
    stop_event: asyncio.Event | None = None,
) -> int:
    logger = logging.getLogger("runtime")
    stop = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError, ValueError):
            continue
        installed.append(sig)

    session = PublishingSession(app_id=app_id)
    try:
        if container.on_startup is not None:
            await container.on_startup()
        loaded = await container.orchestrator.load_state(session, platform)
        if loaded.error is not None:
            raise loaded.error

        if not build_in_flight(session.current_submission(select_platform(platform).platform)):
            logger.info(
                "no build in flight, nothing to monitor",
                extra={"role": "monitor", "run_id": run_id, "app_id": app_id, "platform": platform},
            )
            return 0

        state = BuildMonitorState()
        final = await monitor_build(
            orchestrator=container.orchestrator,
            session=session,
            platform=platform,
            stop_event=stop,
            settings=container.monitor_settings,
            logger=logger,
            state=state,
        )
        logger.info(
            "monitor role finished",
            extra={
                "role": "monitor",
                "run_id": run_id,
                "app_id": app_id,
                "platform": platform,
                "status": final.status if final is not None else None,
                "polls": state.polls_total,
            },
        )
        return 0 if state.finished or stop.is_set() else 1
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        if container.on_shutdown is not None:
            await container.on_shutdown()


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        role = validate_role(args.role)
    except ValueError as exc:
        supported = ", ".join(SUPPORTED_ROLES)
        sys.stderr.write(f"ERROR: {exc}\n")
        sys.stderr.write(f"Try one of: {supported}\n")
        return 2

    if role.name == "monitor":
        if not args.app_id or not args.platform:
            sys.stderr.write("ERROR: the monitor role requires --app-id and --platform\n")
            return 2
        try:
            select_platform(args.platform)
        except PublishingError as exc:
            sys.stderr.write(f"ERROR: {exc}\n")
            return 2

    configure_logging()
    run_id = str(uuid.uuid4())
    logger = logging.getLogger("runtime")

    logger.info("runtime initialized", extra={"role": role.name, "run_id": run_id})

    if args.dry_run_startup:
        logger.info("dry-run startup complete", extra={"role": role.name, "run_id": run_id})
        return 0

    container = build_runtime_container(role)

    if role.name == "monitor":
        try:
            return asyncio.run(
                run_monitor(
                    container=container,
                    app_id=args.app_id,
                    platform=args.platform,
                    run_id=run_id,
                )
            )
        except PublishingError as exc:
            logger.error("monitor role failed", extra={"role": role.name, "run_id": run_id}, exc_info=exc)
            return 1

    port = args.port if args.port is not None else _default_port(role.name)
    if args.reload:
        os.environ["APP_ROLE"] = role.name
        uvicorn.run(
            "publisher.main:create_runtime_app",
            host=args.host,
            port=port,
            log_level="warning",
            reload=True,
            factory=True,
        )
    else:
        app = build_app(
            role=role.name,
            run_id=run_id,
            api_deps=container.api_deps,
            on_startup=container.on_startup,
            on_shutdown=container.on_shutdown,
            mode=container.mode,
        )
        uvicorn.run(app, host=args.host, port=port, log_level="warning")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
