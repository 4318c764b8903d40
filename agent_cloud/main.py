"""FastAPI application entry point.

Run with an ASGI server, e.g. ``uvicorn agent_cloud.main:app``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from agent_cloud import __version__
from agent_cloud.api.middleware import RequestLoggingMiddleware
from agent_cloud.api.v1.router import router as v1_router
from agent_cloud.config import Settings, get_settings
from agent_cloud.core.exceptions import AgentCloudError, ValidationError
from agent_cloud.core.runs import RunStore
from agent_cloud.core.workflow import DeploymentWorkflow
from agent_cloud.utils.logging import configure_logging, configure_tracing, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings

    # Startup
    configure_logging(settings, log_dir=settings.runs_dir.parent / "logs")
    configure_tracing(settings)
    logger.info(
        "application.starting",
        version=__version__,
        runs_dir=str(settings.runs_dir),
    )

    yield

    # Shutdown
    logger.info("application.shutdown")


def _error_body(code: str, exc: AgentCloudError) -> dict:
    return {
        "error": {
            "code": code,
            "message": exc.message,
            "details": exc.details,
            "suggestions": exc.suggestions,
        }
    }


def create_app(
    settings: Settings | None = None,
    workflow: DeploymentWorkflow | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="agent-cloud API",
        description="AI-powered cloud deployment with a human approval step",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.workflow = workflow or DeploymentWorkflow(settings, RunStore(settings.runs_dir))
    app.state.results = {}

    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers
    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Handle malformed user input."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("VALIDATION_ERROR", exc),
        )

    @app.exception_handler(AgentCloudError)
    async def agent_cloud_error_handler(
        request: Request, exc: AgentCloudError
    ) -> JSONResponse:
        """Handle application-specific errors."""
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(type(exc).__name__.upper(), exc),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) if settings.debug else "An unexpected error occurred",
                }
            },
        )

    # Include routers
    app.include_router(v1_router)

    return app


# Create app instance
app = create_app()
