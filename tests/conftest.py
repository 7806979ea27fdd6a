"""Pytest fixtures for testing."""
import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from app.common.config import Settings
from app.models.user import User
from app.repository.exceptions import DatabaseConnectionException
from app.repository.user_repository import UserRepository


class FakeCollection:
    """In-memory stand-in for a motor collection.

    Supports the calls UserRepository makes and enforces unique indexes the
    way MongoDB does, by raising DuplicateKeyError.
    """

    def __init__(self):
        self.documents: dict[ObjectId, dict] = {}
        self.indexes: list[tuple[str, bool]] = []

    @property
    def unique_fields(self) -> list[str]:
        return [field for field, unique in self.indexes if unique]

    async def create_index(self, keys, unique=False, **kwargs):
        field = keys[0][0] if isinstance(keys, list) else keys
        self.indexes.append((field, unique))
        return f"{field}_1"

    def _check_unique(self, document: dict, exclude_id=None) -> None:
        for field in self.unique_fields:
            if field not in document:
                continue
            for _id, existing in self.documents.items():
                if _id != exclude_id and existing.get(field) == document[field]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: users index: {field}_1",
                        11000,
                        {"keyValue": {field: document[field]}},
                    )

    def _match(self, query: dict):
        for document in self.documents.values():
            if all(document.get(key) == value for key, value in query.items()):
                return document
        return None

    async def insert_one(self, document: dict):
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self._check_unique(stored)
        self.documents[stored["_id"]] = stored
        document["_id"] = stored["_id"]
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    async def find_one(self, query: dict):
        document = self._match(query)
        return copy.deepcopy(document) if document is not None else None

    async def replace_one(self, query: dict, replacement: dict):
        existing = self._match(query)
        if existing is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        stored = copy.deepcopy(replacement)
        stored["_id"] = existing["_id"]
        self._check_unique(stored, exclude_id=existing["_id"])
        self.documents[stored["_id"]] = stored
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def update_one(self, query: dict, update: dict):
        existing = self._match(query)
        if existing is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        updated = copy.deepcopy(existing)
        updated.update(update.get("$set", {}))
        for field in update.get("$unset", {}):
            updated.pop(field, None)
        self._check_unique(updated, exclude_id=existing["_id"])
        self.documents[existing["_id"]] = updated
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query: dict):
        existing = self._match(query)
        if existing is None:
            return SimpleNamespace(deleted_count=0)
        del self.documents[existing["_id"]]
        return SimpleNamespace(deleted_count=1)


class StubDatabase:
    """Database double for startup and app tests."""

    def __init__(self, fail_with: str | None = None, healthy: bool = True):
        self.fail_with = fail_with
        self.healthy = healthy
        self.users = FakeCollection()
        self.db_name = "videotube_test"
        self.host = "localhost:27017"
        self.connect_calls = 0
        self.disconnected = False

    async def connect(self):
        self.connect_calls += 1
        if self.fail_with:
            raise DatabaseConnectionException(detail=self.fail_with)
        return self

    async def ping(self) -> bool:
        return self.healthy

    def collection(self, name: str) -> FakeCollection:
        return self.users

    async def disconnect(self) -> None:
        self.disconnected = True


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment and .env file."""
    return Settings(
        _env_file=None,
        mongodb_uri="mongodb://localhost:27017",
        db_name="videotube_test",
        port=8000,
        access_token_secret="test-access-secret-0123456789abcdef",
        access_token_expiry="15m",
        refresh_token_secret="test-refresh-secret-0123456789abcdef",
        refresh_token_expiry="10d",
    )


@pytest.fixture
def users_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
async def user_repo(users_collection: FakeCollection) -> UserRepository:
    repo = UserRepository(users_collection)
    await repo.ensure_indexes()
    return repo


@pytest.fixture
def make_user():
    """Factory for unsaved users with valid defaults."""
    def _make_user(**overrides) -> User:
        fields = {
            "username": "user_a",
            "email": "user_a@example.com",
            "fullName": "User A",
            "avatar": "https://res.cloudinary.com/demo/image/upload/avatar_a.png",
            "password": "password123",
        }
        fields.update(overrides)
        return User(**fields)

    return _make_user


@pytest.fixture
async def user_a(user_repo: UserRepository, make_user) -> User:
    """Stored test user A (password: password123)."""
    return await user_repo.create(make_user())


@pytest.fixture
def make_database():
    """Factory for StubDatabase instances."""
    return StubDatabase
