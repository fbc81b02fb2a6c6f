"""FastAPI app entrypoint for the CareerOS web API."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from careeros import __version__
from careeros.core.config import DEFAULT_CONFIG_PATH, CareerConfig, load_config
from careeros.core.orchestrator import SessionBusyError
from careeros.providers.base import ChatProvider

from .api.v1.router import api_v1_router
from .errors import APIError, api_error_handler, session_busy_handler, validation_error_handler
from .store import SessionStore

logger = logging.getLogger("careeros.web.api")


def _load_config() -> CareerConfig:
    config_path = os.getenv("CAREEROS_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        logger.warning("No config found at %s; using built-in defaults", config_path)
        config = CareerConfig()
    profile_dir = os.getenv("CAREEROS_PROFILE_DIR")
    if profile_dir:
        config.profile_dir = profile_dir
    return config


def create_app(config: Optional[CareerConfig] = None, provider: Optional[ChatProvider] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    store = SessionStore(config or _load_config(), provider=provider)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            yield
        finally:
            await store.stop()

    app = FastAPI(title="CareerOS API", version=__version__, lifespan=lifespan)
    app.state.session_store = store
    app.include_router(api_v1_router)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (perf_counter() - start) * 1000
            path_params = request.scope.get("path_params", {})
            meta = store.runtime_metadata()
            logger.info(
                "api_request method=%s path=%s status=%s duration_ms=%.2f session_id=%s provider=%s model=%s",
                request.method,
                request.url.path,
                status_code,
                duration_ms,
                path_params.get("session_id", "-"),
                meta["provider"],
                meta["model"],
            )

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict:
        return {"status": "ok"}

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SessionBusyError, session_busy_handler)
    return app


app = create_app()


def main() -> None:
    """Run development API server."""
    import uvicorn

    uvicorn.run(
        "careeros.web.app:app",
        host=os.getenv("CAREEROS_HOST", "127.0.0.1"),
        port=int(os.getenv("CAREEROS_PORT", "8000")),
    )
