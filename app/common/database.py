"""Async MongoDB connection wrapper.

Uses motor (async pymongo driver) directly. The connection is attempted
once; callers decide what to do when it fails.
"""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import InvalidOperation, PyMongoError

from app.common.config import Settings
from app.repository.exceptions import DatabaseConnectionException

logger = logging.getLogger(__name__)


class Database:
    """Owns the motor client for one MongoDB database.

    Example:
        ```python
        async with Database("mongodb://localhost:27017/videotube", "videotube") as db:
            users = db.collection("users")
        ```
    """

    def __init__(self, uri: str, db_name: str, timeout_ms: int = 5000):
        """Store connection parameters. No connection is made until connect()."""
        self._uri = uri
        self._db_name = db_name
        self._timeout_ms = timeout_ms
        self._client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            uri=settings.mongodb_url,
            db_name=settings.db_name,
            timeout_ms=settings.mongodb_timeout_ms,
        )

    @property
    def db_name(self) -> str:
        return self._db_name

    @property
    def is_connected(self) -> bool:
        """Whether connect() has succeeded and disconnect() has not been called."""
        return self._client is not None

    @property
    def host(self) -> str | None:
        """Address of the server the client is talking to, if known."""
        if self._client is None:
            return None
        try:
            address = self._client.address
        except InvalidOperation:
            # Multiple mongos, no single address
            return None
        if not address:
            return None
        return f"{address[0]}:{address[1]}"

    def collection(self, name: str) -> AsyncIOMotorCollection:
        """Get a collection by name."""
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db[name]

    async def connect(self) -> "Database":
        """Create the client and ping the server once.

        Returns:
            self, for chaining

        Raises:
            DatabaseConnectionException: If the URI is invalid or the server
                cannot be reached within the configured timeout
        """
        if self._client is not None:
            return self

        client = None
        try:
            client = AsyncIOMotorClient(self._uri, serverSelectionTimeoutMS=self._timeout_ms)
            await client.admin.command("ping")
        except PyMongoError as e:
            if client is not None:
                client.close()
            raise DatabaseConnectionException(detail=str(e)) from e

        self._client = client
        self._db = client[self._db_name]
        logger.debug(f"Connected to database '{self._db_name}'")
        return self

    async def ping(self) -> bool:
        """Check that the server still answers."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    async def disconnect(self) -> None:
        """Close the client."""
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None

    async def __aenter__(self) -> "Database":
        return await self.connect()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
