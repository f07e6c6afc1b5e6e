from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from assistant_engine.api import assistant, health
from assistant_engine.core.dependencies import close_clients, get_settings
from assistant_engine.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting assistant engine on port %s (backend %s, dev_mode=%s)",
        settings.port,
        settings.assistant_api_base_url,
        settings.dev_mode,
    )
    yield
    await close_clients()


app = FastAPI(title="assistant-engine", version="1.0.0", lifespan=lifespan)
app.include_router(health.router)
app.include_router(assistant.router)
