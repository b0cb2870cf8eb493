"""Main FastAPI application module."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from placepin.api.v1.router import router as v1_router
from placepin.core.config import Settings
from placepin.core.events import (
    SessionFactory,
    create_start_app_handler,
    create_stop_app_handler,
)
from placepin.core.logging import configure_logging
from placepin.middleware.correlation import CorrelationMiddleware
from placepin.middleware.errors import ErrorHandlingMiddleware, register_error_handlers
from placepin.middleware.metrics import MetricsMiddleware


def create_app(
    config: Settings | None = None,
    session_factory: SessionFactory | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Settings; read from the environment by default
        session_factory: Builds the places session at startup

    Returns:
        Configured FastAPI application
    """
    config = config or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(testing=not config.JSON_LOGS, level=config.LOG_LEVEL)
        await create_start_app_handler(app, session_factory)()
        try:
            yield
        finally:
            await create_stop_app_handler(app)()

    app = FastAPI(
        lifespan=lifespan,
        title=config.app_name,
        description="Place search with reliable map pinning",
        version=config.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
    )

    # Middleware is added innermost first; resulting order (outside -> in):
    # 1. CORS (outermost)
    # 2. Correlation (adds request ID)
    # 3. Metrics (tracks all requests)
    # 4. Error handling (innermost - handles all errors)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
    register_error_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> Response:
        """Redirect root path to docs."""
        return RedirectResponse(
            url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )

    app.include_router(v1_router, prefix=config.api_prefix)
    return app


app = create_app()
