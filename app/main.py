from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api import ask, export, health
from app.core.cors import ALLOWED_HEADERS, ALLOWED_METHODS, OriginAllowlistMiddleware
from app.core.dependencies import get_settings
from app.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info("Starting builder-assistant-relay on port %s", settings.port)
    if not settings.assistant_id:
        logger.error("ASSISTANT_ID is not set; /api/ask will fail until it is configured")
    yield


app = FastAPI(title="builder-assistant-relay", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
    allow_credentials=False,
)
# Added last so it runs first: unknown origins never reach CORS handling or routes.
app.add_middleware(OriginAllowlistMiddleware, allowed_origins=settings.cors_allowed_origins)
app.include_router(health.router)
app.include_router(ask.router)
app.include_router(export.router)
app.add_exception_handler(RequestValidationError, export.export_validation_handler)
