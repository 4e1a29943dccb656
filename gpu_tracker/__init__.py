"""Application factory and top-level wiring for the GPU Tracker service.

This module brings together configuration, the JSON document store, API
routers, middleware and error handling. ``create_app`` builds a fresh FastAPI
instance each time it is called, so tests can wire an isolated store.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import AppSettings, get_settings
from .core.errors import (
    GpuTrackerError,
    http_exception_handler,
    tracker_exception_handler,
    validation_exception_handler,
)
from .db.store import GpuStore, JsonFileStore
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .routers import api_gpus as api_gpus_router
from .routers import health as health_router


def create_app(settings: AppSettings | None = None, *, store: GpuStore | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings

    # ---------- Store ----------
    # Without an explicit store we serve the configured JSON file, creating an
    # empty document on first boot when allowed.
    if store is None:
        store = JsonFileStore(settings.gpu_db_path)
        if settings.GPU_DB_AUTO_CREATE:
            store.bootstrap()
    app.state.gpu_store = store

    # ---------- Middleware ----------
    # Starlette wraps in reverse order: RequestIdMiddleware ends up outermost
    # so its timing covers everything below it.
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.APP_ENV == "prod")
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestIdMiddleware)

    # ---------- Exception handling ----------
    app.add_exception_handler(GpuTrackerError, tracker_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # ---------- Routers ----------
    app.include_router(api_gpus_router.router)
    app.include_router(health_router.router)

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    # Mounted last so the API routes above keep precedence over "/".
    if settings.STATIC_DIR is not None and settings.STATIC_DIR.is_dir():
        app.mount("/", StaticFiles(directory=str(settings.STATIC_DIR), html=True), name="static")

    return app


__all__ = ["create_app"]
