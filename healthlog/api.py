# -*- coding: utf-8 -*-
"""
Healthlog API

Daily health logs (food, mood, exercise, sleep, water), streak and completion
stats, and ranked insights derived from recent history.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .app_db import init_app_db
from .config import settings
from .errors import NotFoundError, StorageError, ValidationError
from .insights.api import router as insights_router
from .logs.api import router as logs_router
from .stats.api import router as stats_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Healthlog",
    description="Health log aggregation, streaks and insights",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup_init_db() -> None:
    init_app_db(settings.app_db_path)


# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
init_app_db(settings.app_db_path)


@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


app.include_router(logs_router)
app.include_router(stats_router)
app.include_router(insights_router)


@app.get("/api/health")
def health():
    return {"status": "ok", "version": __version__, "timezone": settings.timezone}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    host = os.environ.get("HEALTHLOG_HOST") or os.environ.get("HOST") or "127.0.0.1"
    port_raw = os.environ.get("HEALTHLOG_PORT") or os.environ.get("PORT") or "8000"
    try:
        port = int(port_raw)
    except ValueError:
        port = 8000

    uvicorn.run("healthlog.api:app", host=host, port=port, reload=False)
