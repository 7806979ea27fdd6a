"""Application startup: connect to the database once, then serve."""
import logging
from typing import Awaitable, Callable

import uvicorn
from fastapi import FastAPI

from app.common.config import Settings
from app.common.database import Database
from app.main import create_app
from app.models.user import COLLECTION_NAME
from app.repository.exceptions import DatabaseConnectionException, RepositoryException
from app.repository.user_repository import UserRepository

logger = logging.getLogger(__name__)

Serve = Callable[[FastAPI, Settings], Awaitable[None]]


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.INFO if not settings.debug else logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def serve_app(app: FastAPI, settings: Settings) -> None:
    """Bind the HTTP listener and serve until shutdown."""
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )
    await uvicorn.Server(config).serve()


async def run(
    settings: Settings,
    database: Database | None = None,
    serve: Serve = serve_app,
) -> bool:
    """Connect to MongoDB once and start the listener only if that worked.

    There is no retry: a failed attempt is logged and the listener is never
    started.

    Args:
        settings: Loaded application settings
        database: Database to connect, built from settings when omitted
        serve: Coroutine that binds and runs the HTTP listener

    Returns:
        True if the server ran, False if startup was aborted
    """
    if database is None:
        database = Database.from_settings(settings)

    try:
        await database.connect()
    except DatabaseConnectionException as e:
        logger.error(f"MongoDB connection FAILED: {e.detail or e.message}")
        return False

    logger.info(f"MongoDB connected !! DB HOST: {database.host}")

    try:
        await UserRepository(database.collection(COLLECTION_NAME)).ensure_indexes()
    except RepositoryException as e:
        logger.error(f"Failed to prepare '{COLLECTION_NAME}' indexes: {e.detail or e.message}")
        await database.disconnect()
        return False

    app = create_app(settings, database)

    logger.info(f"Server is running at port : {settings.port}")
    await serve(app, settings)
    return True
