"""
Kernel Data Models

SQLAlchemy models for users and the places they own.
"""

from src.kernel.models.base import Base, TimestampMixin, generate_uuid
from src.kernel.models.user import User, MIN_PASSWORD_LENGTH
from src.kernel.models.place import Place

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # User
    "User",
    "MIN_PASSWORD_LENGTH",
    # Place
    "Place",
]
