"""
FastAPI application factory with middleware, CORS, and request tracing.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from foresight import __version__
from foresight.config import get_settings
from foresight.engine.errors import GraphUnavailable, UnknownMode, ValidationError
from foresight.engine.graph_store import get_graph_store
from foresight.routers import cascades, graph, simulation, system
from foresight.utils.logging import configure_logging, get_logger

# Configure logging at module level
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    settings = get_settings()

    logger.info(
        "application_startup",
        version=app.version,
        dev_mode=settings.dev_mode,
        db_path=settings.db_path,
    )

    store = get_graph_store()
    if settings.load_sample_graph_on_startup and not store.is_loaded:
        store.load_sample_graph()

    yield

    logger.info("application_shutdown")


def _error_response(request: Request, status_code: int, error: str, **extra) -> JSONResponse:
    request_id = request.headers.get("X-Request-ID")
    content = {"success": False, "error": error, **extra}
    if request_id:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Foresight API",
        description="Consequence cascade analysis and multiverse scenario simulation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Request tracing middleware
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request ID and timing to all requests."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )

            return response
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id},
            )

    # Engine errors
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning("request_validation_failed", error=str(exc), fields=exc.fields)
        return _error_response(request, 422, str(exc), fields=exc.fields)

    @app.exception_handler(UnknownMode)
    async def unknown_mode_handler(request: Request, exc: UnknownMode):
        logger.warning("unknown_mode_requested", kind=exc.kind, mode_id=exc.mode_id)
        return _error_response(request, 404, str(exc), kind=exc.kind, mode_id=exc.mode_id)

    @app.exception_handler(GraphUnavailable)
    async def graph_unavailable_handler(request: Request, exc: GraphUnavailable):
        logger.warning("graph_unavailable", path=request.url.path)
        return _error_response(request, 409, str(exc))

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": app.version,
            "graph_loaded": get_graph_store().is_loaded,
        }

    # Include routers
    app.include_router(cascades.router, prefix="/api/v1/cascades", tags=["Cascades"])
    app.include_router(graph.router, prefix="/api/v1/graph", tags=["Graph"])
    app.include_router(simulation.router, prefix="/api/v1/simulation", tags=["Simulation"])
    app.include_router(system.router, prefix="/api/v1/system", tags=["System"])

    logger.info("application_configured", routers_count=4)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "foresight.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
