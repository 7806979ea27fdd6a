from datetime import timedelta
from functools import lru_cache
import json
import re

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-z]*)\s*$", re.IGNORECASE)

# Unit spellings accepted by jsonwebtoken's ``expiresIn`` (the ``ms`` package)
_SECOND = 1
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_DURATION_UNITS = {
    "": _SECOND,
    "ms": 0.001, "msec": 0.001, "msecs": 0.001,
    "millisecond": 0.001, "milliseconds": 0.001,
    "s": _SECOND, "sec": _SECOND, "secs": _SECOND,
    "second": _SECOND, "seconds": _SECOND,
    "m": _MINUTE, "min": _MINUTE, "mins": _MINUTE,
    "minute": _MINUTE, "minutes": _MINUTE,
    "h": _HOUR, "hr": _HOUR, "hrs": _HOUR, "hour": _HOUR, "hours": _HOUR,
    "d": _DAY, "day": _DAY, "days": _DAY,
    "w": 7 * _DAY, "week": 7 * _DAY, "weeks": 7 * _DAY,
    "y": 365.25 * _DAY, "yr": 365.25 * _DAY, "yrs": 365.25 * _DAY,
    "year": 365.25 * _DAY, "years": 365.25 * _DAY,
}


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse an expiry duration such as ``900``, ``"15m"``, ``"1.5h"`` or ``"10 days"``.

    Units follow jsonwebtoken's ``expiresIn`` strings (``ms`` to ``y``).
    A number without a unit is seconds.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    match = _DURATION_RE.match(str(value))
    if not match or match.group(2).lower() not in _DURATION_UNITS:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=float(amount) * _DURATION_UNITS[unit.lower()])


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    # Application
    app_name: str = "VideoTube Backend"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("mongodb_uri", "mongo_uri"),
    )
    db_name: str = "videotube"
    mongodb_timeout_ms: int = 5000

    # JWT Security
    jwt_algorithm: str = "HS256"
    # Also read under the JWT_ prefixed names
    access_token_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("access_token_secret", "jwt_access_token_secret"),
    )
    access_token_expiry: timedelta = Field(
        default=timedelta(days=1),
        validation_alias=AliasChoices("access_token_expiry", "jwt_access_token_expiry"),
    )
    refresh_token_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refresh_token_secret", "jwt_refresh_token_secret"),
    )
    refresh_token_expiry: timedelta = Field(
        default=timedelta(days=10),
        validation_alias=AliasChoices("refresh_token_expiry", "jwt_refresh_token_expiry"),
    )

    # CORS
    cors_origins: list[str] | str = '["http://localhost:3000","http://localhost:8000"]'

    @field_validator("access_token_expiry", "refresh_token_expiry", mode="before")
    @classmethod
    def parse_expiry(cls, v):
        return parse_duration(v)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [v]
        return v

    @property
    def mongodb_url(self) -> str:
        """Connection string with the database name appended to the URI base."""
        return f"{self.mongodb_uri.rstrip('/')}/{self.db_name}"


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
