"""User model."""
from datetime import datetime
from typing import Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from app.common.config import Settings
from app.domain.auth_service import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)


COLLECTION_NAME = "users"


def _object_id_str(value: Any) -> str:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, str) and ObjectId.is_valid(value):
        return value
    raise ValueError(f"Invalid ObjectId: {value!r}")


class User(BaseModel):
    """User document stored in the ``users`` collection.

    Field names are snake_case in Python and camelCase in MongoDB. The
    password is plain text only between assignment and
    :func:`prepare_for_persistence`; what gets stored is always a bcrypt hash.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str | None = Field(default=None, alias="_id")
    username: str
    email: str
    full_name: str = Field(alias="fullName")
    avatar: str  # cloudinary url
    cover_image: str | None = Field(default=None, alias="coverImage")
    watch_history: list[str] = Field(default_factory=list, alias="watchHistory")
    password: str = Field(default=None, validate_default=True)
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    # Password value as last loaded from or written to the database
    _stored_password: str | None = PrivateAttr(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        if v is None:
            return v
        return _object_id_str(v)

    @field_validator("username", "email", "full_name", mode="before")
    @classmethod
    def normalize_text(cls, v, info):
        if not isinstance(v, str) or not v.strip():
            raise ValueError(f"{info.field_name} is required")
        return v.strip().lower()

    @field_validator("avatar")
    @classmethod
    def validate_avatar(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("avatar is required")
        return v

    @field_validator("watch_history", mode="before")
    @classmethod
    def validate_watch_history(cls, v):
        if v is None:
            return []
        return [_object_id_str(video_id) for video_id in v]

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        if v is None or v == "":
            raise ValueError("password is required")
        return v

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "User":
        """Build a user from a raw MongoDB document."""
        user = cls.model_validate(document)
        user._stored_password = user.password
        return user

    def to_document(self) -> dict[str, Any]:
        """Serialize to a MongoDB document (camelCase keys, ObjectId refs)."""
        document = self.model_dump(by_alias=True, exclude={"id"})
        document["watchHistory"] = [ObjectId(video_id) for video_id in self.watch_history]
        if self.id is not None:
            document["_id"] = ObjectId(self.id)
        return document

    @property
    def is_new(self) -> bool:
        return self.id is None

    @property
    def password_modified(self) -> bool:
        """True for a new password value that has not been hashed yet."""
        return self._stored_password is None or self.password != self._stored_password

    def is_password_correct(self, password: str) -> bool:
        """Compare a candidate password with the stored hash."""
        return verify_password(password, self.password)

    def generate_access_token(self, settings: Settings) -> str:
        return create_access_token(self, settings)

    def generate_refresh_token(self, settings: Settings) -> str:
        return create_refresh_token(self, settings)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


def prepare_for_persistence(user: User) -> User:
    """Return the user as it must be written to the database.

    Hashes the password if it was set or changed since the record was loaded
    (or last prepared). Otherwise the same instance is returned untouched, so
    preparing an unchanged record twice never re-hashes the stored hash.
    """
    if not user.password_modified:
        return user

    prepared = user.model_copy(update={"password": hash_password(user.password)})
    prepared._stored_password = prepared.password
    return prepared
