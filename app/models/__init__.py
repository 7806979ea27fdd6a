"""Database models."""
from app.models.user import User, prepare_for_persistence

__all__ = [
    "User",
    "prepare_for_persistence",
]
