"""
User schemas.
"""

import uuid
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.kernel.models.user import MIN_PASSWORD_LENGTH


class UserCreate(BaseModel):
    """User provisioning request."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=255)
    image_path: str = Field(..., min_length=1, max_length=500)


class UserResponse(BaseModel):
    """Public user profile. The credential is never exposed."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    name: str
    email: str
    image: str = Field(validation_alias="image_path")
    places: List[uuid.UUID] = Field(validation_alias="place_ids")


class UserEnvelope(BaseModel):
    user: UserResponse


class UserListEnvelope(BaseModel):
    users: List[UserResponse]
