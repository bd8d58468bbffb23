"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from taskhub.api import router as api_router
from taskhub.config import get_settings
from taskhub.db.session import close_db, init_db
from taskhub.domain.errors import (
    AssigneesNotFoundError,
    CommentNotFoundError,
    DepartmentNotFoundError,
    DuplicateProjectNameError,
    LastAssigneeError,
    OwnerNotFoundError,
    ProjectNotFoundError,
    SubtaskDepthExceededError,
    TaskHubError,
    TaskNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from taskhub.logging import configure_logging
from taskhub.middleware import RequestContextMiddleware

logger = structlog.get_logger()
settings = get_settings()

# First match wins, so subclasses must precede their bases
ERROR_STATUS: list[tuple[type[TaskHubError], int]] = [
    (ValidationError, 422),
    (SubtaskDepthExceededError, 422),
    (OwnerNotFoundError, status.HTTP_404_NOT_FOUND),
    (DepartmentNotFoundError, status.HTTP_404_NOT_FOUND),
    (AssigneesNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProjectNotFoundError, status.HTTP_404_NOT_FOUND),
    (TaskNotFoundError, status.HTTP_404_NOT_FOUND),
    (CommentNotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (LastAssigneeError, status.HTTP_409_CONFLICT),
    (DuplicateProjectNameError, status.HTTP_409_CONFLICT),
]


def status_for_error(exc: TaskHubError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def taskhub_error_handler(request: Request, exc: TaskHubError) -> ORJSONResponse:
    """Render a domain error as ``{code, message, field?}``."""
    status_code = status_for_error(exc)
    logger.info(
        "domain_error",
        code=exc.code,
        status_code=status_code,
        error=exc.message,
    )
    body: dict[str, str] = {"code": exc.code, "message": exc.message}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return ORJSONResponse(status_code=status_code, content=body)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    logger.info("app_starting", app=settings.app_name, version=settings.app_version)
    await init_db()
    logger.info("database_connected")

    yield

    logger.info("app_stopping")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Departmental task and project tracker",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Last added is outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    # Trust X-Forwarded-* from the reverse proxy
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    app.add_exception_handler(TaskHubError, taskhub_error_handler)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint for load balancers."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
