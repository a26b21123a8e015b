#!/usr/bin/env python3
"""
Hooktail server.

Reads the YAML config, builds the HookService and serves three routes:
GET /hooks lists hooks, GET /hooks/{id} starts a run and GET /tail/{id}
returns the recent output. Run as `hooktail [config.yaml]`.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request

from hooktail import __version__
from hooktail.config import AppConfig, ConfigError, YamlConfigProvider
from hooktail.logging_config import configure_logging, get_logging_config
from hooktail.modules.api import (
    ErrorResponse,
    HookInfo,
    HookListResponse,
    TailResponse,
    TriggerResponse,
)
from hooktail.modules.hooks import HookNotFoundError, HookService
from hooktail.modules.registry import HookBusyError

logger = logging.getLogger("hooktail.main")


def create_app(config: AppConfig, service: Optional[HookService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Loaded application configuration
        service: Prebuilt hook service (default: built from config)
    """
    service = service or HookService.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - start and stop background components.
        """
        logger.info("Starting Hooktail API...")
        service.start()
        logger.info(f"Hooktail API started with {len(service.hooks)} hook(s)")

        yield

        logger.info("Shutting down Hooktail API...")
        service.shutdown()
        logger.info("Hooktail API shutdown complete")

    app = FastAPI(
        title="Hooktail API",
        description="Trigger commands over HTTP and tail their output",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.hook_service = service

    app.add_api_route("/hooks", list_hooks, methods=["GET"], response_model=HookListResponse)
    app.add_api_route(
        "/hooks/{hook_id}",
        trigger_hook,
        methods=["GET"],
        response_model=TriggerResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    )
    app.add_api_route(
        "/tail/{hook_id}",
        tail_hook,
        methods=["GET"],
        response_model=TailResponse,
        responses={404: {"model": ErrorResponse}},
    )
    return app


def get_hook_service(request: Request) -> HookService:
    """Dependency returning the hook service attached to the app."""
    service = getattr(request.app.state, "hook_service", None)
    if service is None:
        raise HTTPException(503, "Service not initialized")
    return service


async def list_hooks(service: HookService = Depends(get_hook_service)):
    """
    List configured hooks.

    Returns:
        200: Hook definitions
    """
    return HookListResponse(
        hooks=[HookInfo.from_definition(hook) for hook in service.list_hooks()]
    )


async def trigger_hook(hook_id: str, service: HookService = Depends(get_hook_service)):
    """
    Start the command of a hook in the background.

    Returns:
        200: Command started
        404: Hook not found
        409: Command is already running
    """
    try:
        service.trigger(hook_id)
    except HookNotFoundError:
        raise HTTPException(404, "Hook not found")
    except HookBusyError:
        raise HTTPException(409, "Command is already running")

    return TriggerResponse(hook_id=hook_id)


async def tail_hook(hook_id: str, service: HookService = Depends(get_hook_service)):
    """
    Get the recent output of a hook.

    Returns:
        200: Status, output tail and last start time
        404: Hook not found
    """
    try:
        snapshot = service.tail(hook_id)
    except HookNotFoundError:
        raise HTTPException(404, "Hook not found")

    return TailResponse.from_snapshot(snapshot)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    provider = YamlConfigProvider(argv[0] if argv else None)
    try:
        config = provider.get_config()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    app = create_app(config)
    logger.info(f"Starting server on {config.server.host}:{config.server.port}")
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    main()
