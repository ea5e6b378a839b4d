from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, APIRouter, status
from starlette.middleware.sessions import SessionMiddleware
import uvicorn

from foundation.config import Settings, settings as default_settings, get_settings
from foundation.core.exceptions import register_exception_handlers
from foundation.core.logging import get_logger
from foundation.core.middleware import CorrelationIDMiddleware, RequestLoggerMiddleware

logger = get_logger("foundation.main")


def create_app(settings: Settings = default_settings) -> FastAPI:
    """
    Build the FastAPI application with sessions, request logging and
    the standard exception handlers installed
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {settings.API_TITLE} in {settings.ENVIRONMENT} mode",
            version=settings.API_VERSION,
            environment=settings.ENVIRONMENT,
        )
        yield
        logger.info(f"Shutting down {settings.API_TITLE}")

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggerMiddleware, exclude_paths=["/api/v1/health"])
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE,
        https_only=settings.ROOT_URL.startswith("https://"),
    )
    app.add_middleware(CorrelationIDMiddleware)

    register_exception_handlers(app)

    api_router = APIRouter(prefix="/api/v1")

    @api_router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
    async def health_check(settings: Settings = Depends(get_settings)):
        """
        Health check endpoint for the API.

        Returns:
            Dict: Health status information
        """
        return {
            "status": "healthy",
            "version": settings.API_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "foundation.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.API_RELOAD,
    )
