"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import ErrorResponse, HealthResponse, MessageResponse
from src.schemas.place import (
    Location,
    PlaceCreate,
    PlaceEnvelope,
    PlaceListEnvelope,
    PlaceResponse,
    PlaceUpdate,
)
from src.schemas.user import UserCreate, UserEnvelope, UserListEnvelope, UserResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "Location",
    "PlaceCreate",
    "PlaceEnvelope",
    "PlaceListEnvelope",
    "PlaceResponse",
    "PlaceUpdate",
    "UserCreate",
    "UserEnvelope",
    "UserListEnvelope",
    "UserResponse",
]
