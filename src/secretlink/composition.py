from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import FastAPI

from .config import Settings
from .infrastructure.stores import build_token_store
from .logging_config import get_logger
from .wiring import attach_services

logger = get_logger(__name__)


@dataclass
class WireResult:
    app: Any
    store: Any
    sweeper_task: Optional[asyncio.Task]
    teardown: Any


async def wire_app(app: FastAPI, settings: Settings | None = None) -> WireResult:
    """Runtime wiring: build the configured store, attach the token service
    and start the background expiry sweeper.

    Must not run at import time; the SQL backend opens connections here.
    """
    settings = settings or getattr(app.state, "settings", None) or Settings()

    service = getattr(app.state, "token_service", None)
    if service is None:
        store = await build_token_store(settings)
        attach_services(app, store, settings)
        service = app.state.token_service
    store = app.state.token_store

    sweeper_task: Optional[asyncio.Task] = None
    if settings.sweep_enabled:
        sweeper_task = asyncio.create_task(
            service.sweeper.run_forever(settings.sweep_interval_seconds),
            name="token-expiry-sweeper",
        )

    async def _teardown():
        if sweeper_task is not None:
            sweeper_task.cancel()
            try:
                await sweeper_task
            except asyncio.CancelledError:
                pass
        close = getattr(store, "close", None)
        if close is not None:
            await close()
        limiter = getattr(app.state, "rate_limit_cache", None)
        if limiter is not None:
            await limiter.close()
        logger.info("token_service_stopped")

    app.state.teardown = _teardown
    logger.info(
        "token_service_wired",
        backend=settings.token_store,
        sweep_enabled=settings.sweep_enabled,
        sweep_interval_seconds=settings.sweep_interval_seconds,
    )
    return WireResult(app=app, store=store, sweeper_task=sweeper_task, teardown=_teardown)
