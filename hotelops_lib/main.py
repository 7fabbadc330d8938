"""Application factory for the hotel operations FastAPI app.

This module exposes `create_app(config: Config) -> FastAPI` which performs
all heavy setup (logging, store configuration, service composition and
router registration). Avoids performing side-effects at import time so
tests can construct isolated apps.

To create an app for production or local runs:

    from hotelops import create_app, Config
    app = create_app(Config())

The document store itself is connected in the lifespan hook, so it only
comes up once the server (or a `TestClient` context) starts.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hotelops_lib.config.config import DEFAULT_SERVER_CONFIG, StoreConfig
from hotelops_lib.logging_config import configure_logging
from hotelops_lib.storage.errors import StoreError
from hotelops_lib.storage.manager import StoreManager


@dataclass
class Config:
    # If None, the store config is read from the environment / server config
    store: Optional[StoreConfig] = None
    # If None, admin endpoints are open
    admin_token: Optional[str] = None
    server_config_path: Path = DEFAULT_SERVER_CONFIG


def create_app(config: Config) -> FastAPI:
    """Create and return a configured FastAPI application."""
    logger = configure_logging(config.server_config_path)

    store_config = config.store or StoreConfig.load(config.server_config_path)
    store_manager = StoreManager()

    # Services are resolved through `app.state.container` by the handlers.
    from hotelops_lib.services import ServiceContainer

    container = ServiceContainer()
    container.register_singleton("app_config", config)
    container.register_singleton("store_manager", store_manager)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await store_manager.initialize(store_config)
        except StoreError as e:
            # Serve anyway; store-backed routes answer 503 until an admin reconfigures.
            logger.error("Document store failed to start (%s): %s", store_config.describe(), e)
        try:
            yield
        finally:
            await store_manager.teardown()

    app = FastAPI(title="Hotel Operations Server", lifespan=lifespan)
    app.state.container = container

    # Exception handlers
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        from hotelops_lib.middleware import store_http_exception

        http_exc = store_http_exception(exc)
        return JSONResponse(status_code=http_exc.status_code, content={'detail': http_exc.detail})

    # Router registration: import routers here to avoid import-time side-effects
    from hotelops_lib.collections.api import router as collections_router
    from hotelops_lib.database.api import router as database_router
    from hotelops_lib.config.api import router as health_router

    app.include_router(collections_router, prefix='/api')
    app.include_router(database_router, prefix='/api')
    app.include_router(health_router, prefix='')

    return app
