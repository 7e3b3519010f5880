"""
FastAPI application initialization.

This module creates and configures the FastAPI application instance and
wires the shared services (document store, image fetcher, vision provider,
generator) onto app.state.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from alt_text.api.middleware import CorrelationIDMiddleware
from alt_text.api.routes import api_router, metrics_router
from alt_text.core.config import Settings, resolve_provider_config, settings
from alt_text.repositories import DocumentStore, create_document_store
from alt_text.services.fetcher import ImageFetcher
from alt_text.services.generation import AltTextGenerator
from alt_text.services.providers import VisionProvider, VisionProviderFactory
from alt_text.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI application.

    Logs the resolved configuration at startup; services are already built
    by create_app so a misconfiguration fails before the server binds.
    """
    app_settings: Settings = app.state.settings
    provider: VisionProvider = app.state.generator.provider

    logger.info(
        "application_startup",
        collections=app_settings.collections,
        save_mode=app_settings.save_mode,
        batch_size=app_settings.batch_size,
        document_store=app_settings.document_store,
        **provider.describe(),
    )
    if not provider.api_key:
        logger.warning(
            "provider_credentials_missing",
            provider=provider.name,
            message="Generation requests for raster images will fail until an API key is set",
        )
    if not app_settings.api_tokens:
        logger.warning(
            "no_api_tokens",
            message="No api_tokens configured; every alt-text request will be rejected",
        )

    yield

    logger.info("application_shutdown", message="Shutting down application...")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException details in the {error, details} shape."""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are bad requests."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request body",
            "details": [err.get("msg") for err in exc.errors()],
        },
    )


def create_app(
    app_settings: Optional[Settings] = None,
    document_store: Optional[DocumentStore] = None,
    provider: Optional[VisionProvider] = None,
    fetcher: Optional[ImageFetcher] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the module-level settings)
        document_store: Store override (defaults to ``settings.document_store``)
        provider: Vision provider override (defaults to the configured one)
        fetcher: Image fetcher override

    Returns:
        FastAPI: Configured FastAPI application instance

    Raises:
        ConfigurationError: If the provider configuration cannot be resolved
    """
    app_settings = app_settings or settings

    configure_logging(
        log_level="DEBUG" if app_settings.debug else app_settings.log_level,
        json_output=app_settings.log_json,
        include_timestamp=True,
    )

    if provider is None:
        provider = VisionProviderFactory.create_provider(
            resolve_provider_config(app_settings), app_settings
        )

    app = FastAPI(
        title=app_settings.api_title,
        version=app_settings.api_version,
        description=app_settings.api_description,
        debug=app_settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.document_store = document_store or create_document_store(app_settings)
    app.state.generator = AltTextGenerator(
        provider=provider,
        fetcher=fetcher or ImageFetcher(storage_roots=app_settings.storage_roots),
        prompt_template=app_settings.prompt,
        max_length=app_settings.max_length,
        language=app_settings.language,
        prompt_extension=app_settings.prompt_extension,
    )

    # Add correlation ID middleware (must be before CORS to capture all requests)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(api_router)
    app.include_router(metrics_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Alt Text Generator API",
            "version": app_settings.api_version,
            "docs": "/docs",
        }

    return app


# Create the app instance
app = create_app()
