import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.common.config import Settings
from app.common.database import Database
from app.common.exceptions import AppException, ServiceUnavailableException
from app.common.responses import error_response, success_response


logger = logging.getLogger(__name__)


def create_app(settings: Settings, database: Database) -> FastAPI:
    """Build the FastAPI application around an already connected database."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        yield

        # Shutdown
        await database.disconnect()
        logger.info("Database connection closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        """Handle custom application exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(
                error=exc.__class__.__name__.replace("Exception", ""),
                message=exc.message,
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response(
                error="InternalServerError",
                message=str(exc) if settings.debug else "An error occurred"
            ),
        )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        if not await database.ping():
            raise ServiceUnavailableException("Database unreachable")
        return success_response({"status": "healthy", "database": database.db_name})

    return app
