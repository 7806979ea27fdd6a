"""Repository layer for database operations."""
from app.repository.user_repository import UserRepository

__all__ = [
    "UserRepository",
]
