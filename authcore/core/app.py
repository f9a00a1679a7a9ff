"""FastAPI application factory for the authcore service."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authcore.api.router_auth import router as auth_router
from authcore.core.errors import (
    AuthCoreError,
    handle_auth_core_error,
    handle_unexpected_error,
)
from authcore.core.logging import configure_logging
from authcore.core.settings import AuthSettings, FederationSettings
from authcore.db.engine import dispose_engine
from authcore.federation.registry import ClientRegistry
from authcore.federation.routes import router as federation_router


def create_app(registry: ClientRegistry | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = AuthSettings()
    configure_logging(settings.log_level)

    if registry is None:
        registry = ClientRegistry(FederationSettings().registration)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        registry.clear()
        await dispose_engine()

    app = FastAPI(
        title="authcore",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.client_registry = registry

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_exception_handler(AuthCoreError, handle_auth_core_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(auth_router)
    app.include_router(federation_router)

    return app
