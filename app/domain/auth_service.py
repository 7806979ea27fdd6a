"""Authentication service for password hashing and JWT."""
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.common.config import Settings
from app.common.exceptions import TokenSigningException

if TYPE_CHECKING:
    from app.models.user import User


# bcrypt cost factor (2**10 rounds)
BCRYPT_ROUNDS = 10

# bcrypt only reads this many bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Passwords longer than 72 bytes are truncated, so only their first
    72 bytes take part in hashing and verification.

    Args:
        password: Plain text password

    Returns:
        Hashed password string (``$2b$10$...``)
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        password: Plain text password to verify
        hashed_password: The hashed password to check against

    Returns:
        True if password matches, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


def _require_id(user: "User") -> str:
    if user.id is None:
        raise TokenSigningException("User has no id; save it before issuing tokens")
    return user.id


def _sign(claims: dict[str, Any], secret: str | None, expires_in, algorithm: str) -> str:
    if not secret:
        raise TokenSigningException("Token signing secret is not configured")

    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }

    try:
        return jwt.encode(payload, secret, algorithm=algorithm)
    except (jwt.PyJWTError, TypeError, ValueError, NotImplementedError) as e:
        raise TokenSigningException(f"Token signing failed: {e}") from e


def create_access_token(user: "User", settings: Settings) -> str:
    """Create a short-lived access token for a user.

    The payload carries the user's id, username, email and full name.

    Raises:
        TokenSigningException: If the user has no id, the access token
            secret is missing, or the payload cannot be signed
    """
    claims = {
        "_id": _require_id(user),
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
    }
    return _sign(
        claims,
        settings.access_token_secret,
        settings.access_token_expiry,
        settings.jwt_algorithm,
    )


def create_refresh_token(user: "User", settings: Settings) -> str:
    """Create a long-lived refresh token carrying only the user's id.

    Raises:
        TokenSigningException: If the user has no id, the refresh token
            secret is missing, or the payload cannot be signed
    """
    return _sign(
        {"_id": _require_id(user)},
        settings.refresh_token_secret,
        settings.refresh_token_expiry,
        settings.jwt_algorithm,
    )


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """Decode and validate a token signed by this service.

    Raises:
        jwt.ExpiredSignatureError: If token is expired
        jwt.InvalidTokenError: If token is invalid
    """
    return jwt.decode(token, secret, algorithms=[algorithm])
