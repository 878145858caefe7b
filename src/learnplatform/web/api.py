"""FastAPI application factory.

Main entry point for the Learning Platform Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learnplatform.core.errors import PlatformError
from learnplatform.utils.token_units import TokenAmountError
from learnplatform.web.platform import get_broadcaster, get_config, get_platform, save_platform
from learnplatform.web.routes import (
    events_router,
    health_router,
    sessions_router,
    skills_router,
    tokens_router,
    users_router,
)
from learnplatform.web.schemas import ErrorResponse

logger = structlog.get_logger(__name__)

# Platform error kind -> HTTP status (anything else is 400)
ERROR_STATUS = {
    "NotRegistered": status.HTTP_404_NOT_FOUND,
    "SkillNotFound": status.HTTP_404_NOT_FOUND,
    "SessionNotFound": status.HTTP_404_NOT_FOUND,
    "AlreadyRegistered": status.HTTP_409_CONFLICT,
    "UsernameTaken": status.HTTP_409_CONFLICT,
    "InvalidState": status.HTTP_409_CONFLICT,
    "Unauthorized": status.HTTP_403_FORBIDDEN,
    "NotInstructor": status.HTTP_403_FORBIDDEN,
    "SelfEnrollment": status.HTTP_403_FORBIDDEN,
}

# Documented error bodies for routers that touch the platform
ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in sorted(set(ERROR_STATUS.values()) | {status.HTTP_400_BAD_REQUEST})
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    platform = get_platform()
    logger.info(
        "api_startup",
        data_dir=str(get_config().data_dir.absolute()),
        users=len(platform.list_users()),
        skills=platform.total_skills(),
    )
    yield
    # Shutdown
    save_platform()
    get_broadcaster().detach()
    logger.info("api_shutdown")


async def platform_error_handler(request: Request, exc: PlatformError) -> JSONResponse:
    """Render a platform failure as a typed JSON error."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.info(
        "request_failed",
        path=request.url.path,
        kind=exc.kind,
        field=exc.field,
        status=status_code,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def token_amount_error_handler(request: Request, exc: TokenAmountError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "InvalidAmount", "detail": str(exc), "field": "amount"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Learning Platform API",
        description="Skills, learning sessions, reputation and token settlement",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlatformError, platform_error_handler)
    app.add_exception_handler(TokenAmountError, token_amount_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(users_router, responses=ERROR_RESPONSES)
    app.include_router(skills_router, responses=ERROR_RESPONSES)
    app.include_router(sessions_router, responses=ERROR_RESPONSES)
    app.include_router(tokens_router, responses=ERROR_RESPONSES)
    app.include_router(events_router)

    return app


# Default app instance for uvicorn
app = create_app()
