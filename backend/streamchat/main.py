"""
ASGI entry point: ``uvicorn streamchat.main:app``.

Startup configures logging, prepares the conversation store and builds the
provider binding from the environment. Invalid provider settings abort
startup.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamchat import __version__
from streamchat.api import chat_router, health_router, settings_router
from streamchat.config import Settings, get_settings
from streamchat.core import ProviderInitError, get_logger, setup_logging
from streamchat.core.middleware import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    setup_exception_handlers,
)
from streamchat.db import dispose_engine, init_database, verify_database_connection
from streamchat.providers import ProviderConfigStore

logger = get_logger(__name__)


def _prepare_database(settings: Settings) -> None:
    if settings.database_auto_create:
        init_database()
    if verify_database_connection():
        logger.info("Database ready", data={"auto_create": settings.database_auto_create})
    else:
        logger.warning("Database unreachable; run 'alembic upgrade head' once it is available")


def _build_config_store(settings: Settings) -> ProviderConfigStore:
    try:
        return ProviderConfigStore.from_settings(settings)
    except ProviderInitError as exc:
        logger.error(
            "Failed to initialize AI service",
            data={"provider": settings.ai_provider, "model": settings.ai_model, "error": exc.message},
        )
        raise


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_output=not settings.debug, log_file=settings.log_file)
    logger.info(
        "Starting streamchat",
        data={"version": __version__, "host": settings.host, "port": settings.port},
    )

    _prepare_database(settings)

    # A store placed on app.state before startup (tests) is left to its owner
    owned_store = None
    if getattr(app.state, "config_store", None) is None:
        owned_store = app.state.config_store = _build_config_store(settings)

    try:
        yield
    finally:
        logger.info("Shutting down streamchat")
        if owned_store is not None:
            await owned_store.aclose()
        dispose_engine()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="streamchat",
        version=__version__,
        summary="Multi-turn chat over Server-Sent Events for OpenAI-compatible providers",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    setup_exception_handlers(app)

    # Outermost first at runtime: CORS, request context, size limit
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    for router in (health_router, chat_router, settings_router):
        app.include_router(router)
    return app


app = create_app()
