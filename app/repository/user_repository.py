"""User repository for database operations."""
from contextlib import contextmanager
from datetime import datetime, timezone
import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from app.models.user import User, prepare_for_persistence
from .exceptions import (
    DuplicateRecordException,
    DatabaseConnectionException,
    DatabaseOperationException,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _duplicate_message(error: DuplicateKeyError) -> str:
    key_value = (error.details or {}).get("keyValue") or {}
    if "username" in key_value:
        return f"Username '{key_value['username']}' already exists"
    if "email" in key_value:
        return f"Email '{key_value['email']}' already exists"
    return "User already exists"


@contextmanager
def _translate_errors(action: str):
    """Map pymongo errors raised inside the block to repository exceptions."""
    try:
        yield
    except DuplicateKeyError as e:
        raise DuplicateRecordException(_duplicate_message(e), detail=str(e)) from e
    except ConnectionFailure as e:
        raise DatabaseConnectionException(detail=str(e)) from e
    except PyMongoError as e:
        raise DatabaseOperationException(f"Failed to {action}", detail=str(e)) from e


class UserRepository:
    """Repository for User documents."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique and lookup indexes the users collection relies on."""
        with _translate_errors("create user indexes"):
            await self.collection.create_index([("username", ASCENDING)], unique=True)
            await self.collection.create_index([("email", ASCENDING)], unique=True)
            await self.collection.create_index([("fullName", ASCENDING)])

    async def create(self, user: User) -> User:
        """Insert a new user.

        The password is hashed before the document is written.

        Args:
            user: Unsaved user

        Returns:
            Stored User with id and timestamps populated

        Raises:
            DuplicateRecordException: If username or email already exists
            DatabaseConnectionException: If database connection fails
            DatabaseOperationException: If database operation fails
        """
        prepared = prepare_for_persistence(user)
        now = _utcnow()
        prepared = prepared.model_copy(update={"created_at": now, "updated_at": now})

        document = prepared.to_document()
        with _translate_errors("create user"):
            result = await self.collection.insert_one(document)

        prepared.id = str(result.inserted_id)
        logger.info(f"Created user {prepared.id} ({prepared.username})")
        return prepared

    async def save(self, user: User) -> User | None:
        """Write all fields of a user, inserting it if it is new.

        Only a changed password is re-hashed.

        Returns:
            Stored User, or None if an existing user was not found
        """
        if user.is_new:
            return await self.create(user)

        prepared = prepare_for_persistence(user)
        prepared = prepared.model_copy(update={"updated_at": _utcnow()})

        document = prepared.to_document()
        with _translate_errors("update user"):
            result = await self.collection.replace_one({"_id": document["_id"]}, document)

        if result.matched_count == 0:
            return None
        return prepared

    async def get_by_id(self, user_id: str) -> User | None:
        """Get user by id; malformed ids are treated as not found."""
        if not ObjectId.is_valid(user_id):
            return None
        return await self._find_one({"_id": ObjectId(user_id)})

    async def get_by_username(self, username: str) -> User | None:
        return await self._find_one({"username": username.strip().lower()})

    async def get_by_email(self, email: str) -> User | None:
        return await self._find_one({"email": email.strip().lower()})

    async def set_refresh_token(self, user_id: str, refresh_token: str | None) -> bool:
        """Store the active refresh token, or clear it when None.

        Returns:
            True if the user exists, False otherwise
        """
        if not ObjectId.is_valid(user_id):
            return False

        if refresh_token is None:
            update = {"$unset": {"refreshToken": 1}, "$set": {"updatedAt": _utcnow()}}
        else:
            update = {"$set": {"refreshToken": refresh_token, "updatedAt": _utcnow()}}

        with _translate_errors("update refresh token"):
            result = await self.collection.update_one({"_id": ObjectId(user_id)}, update)
        return result.matched_count > 0

    async def delete(self, user_id: str) -> bool:
        """Delete a user.

        Returns:
            True if deleted, False if not found
        """
        if not ObjectId.is_valid(user_id):
            return False
        with _translate_errors("delete user"):
            result = await self.collection.delete_one({"_id": ObjectId(user_id)})
        return result.deleted_count > 0

    async def _find_one(self, query: dict) -> User | None:
        with _translate_errors("fetch user"):
            document = await self.collection.find_one(query)
        if document is None:
            return None
        return User.from_document(document)
