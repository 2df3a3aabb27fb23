from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shorty.api import admin, health, shortener
from shorty.core.config import Settings, get_settings
from shorty.core.errors import ShortyError
from shorty.core.logging_config import configure_logging
from shorty.db.Connection import database
from shorty.db.repository import MappingStore
from shorty.services.shortener import URLService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[MappingStore] = None) -> FastAPI:
    """Build the application.

    When no store is given one is created from settings at startup and closed
    at shutdown. An injected store is left open for its owner to close.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Application '{settings.PROJECT_NAME}' starting up.")
        owned = store is None
        app.state.store = database.create_store(settings) if owned else store
        app.state.service = URLService(
            app.state.store,
            base_url=settings.BASE_URL,
            code_length=settings.SHORT_CODE_LENGTH,
            max_attempts=settings.MAX_CREATE_ATTEMPTS,
        )
        logger.info("Serving short URLs on %s", settings.BASE_URL)
        try:
            yield
        finally:
            logger.info("Shutting down gracefully...")
            if owned:
                app.state.store.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Shorten URLs, redirect visitors and count clicks",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # health and admin before the catch-all redirect route
    app.include_router(health.router)
    app.include_router(admin.router)
    app.include_router(shortener.router)

    register_exception_handlers(app)
    return app


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ShortyError)
    async def shorty_error_handler(request: Request, exc: ShortyError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}", exc_info=exc)
            return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Malformed request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing url"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


configure_logging(get_settings().LOG_LEVEL)
app = create_app()
