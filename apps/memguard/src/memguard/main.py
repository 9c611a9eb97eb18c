"""
ASGI application factory.

The lifespan owns the shared httpx connection pool, builds the engine once, and on
shutdown drains pending audit writes before closing the pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memguard.config import Settings, settings as default_settings
from memguard.engine import create_audit_logger, create_engine
from memguard.engine.api import router as memory_chat_router
from memguard.logging import configure_logging_from_settings, get_logger

logger = get_logger("memguard.main")


def create_app(config: Optional[Settings] = None, *, configure_logs: bool = True) -> FastAPI:
    config = config or default_settings
    if configure_logs:
        configure_logging_from_settings(
            config.logging,
            service={"service": config.app_name, "env": config.environment.env},
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with httpx.AsyncClient(timeout=config.store.timeout_seconds) as http_client:
            audit = create_audit_logger(http_client, config)
            app.state.engine = create_engine(http_client, config, audit=audit)
            logger.info(
                "memguard_started",
                kill_switch_enabled=config.governance.kill_switch_enabled,
                central_configured=bool(config.store.central_url),
                mirror_configured=bool(config.store.mirror_url),
            )
            try:
                yield
            finally:
                await audit.drain(config.governance.audit_drain_timeout_seconds)
                app.state.engine = None
                logger.info("memguard_stopped")

    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
        docs_url=None if config.environment.is_production else "/docs",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.include_router(memory_chat_router)
    return app
