"""
Place schemas.
"""

import uuid
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_DESCRIPTION_LENGTH = 5


class Location(BaseModel):
    lat: float
    lng: float


class _PlaceText(BaseModel):
    title: str = Field(..., max_length=255)
    description: str = Field(..., min_length=MIN_DESCRIPTION_LENGTH)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be empty")
        return v

    @field_validator("description")
    @classmethod
    def description_long_enough(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters"
            )
        return v


class PlaceCreate(_PlaceText):
    """Place creation fields (sent as multipart form data with the image)."""

    address: str

    @field_validator("address")
    @classmethod
    def address_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Address must not be empty")
        return v


class PlaceUpdate(_PlaceText):
    """Place update request. Address, location and image are immutable."""


class PlaceResponse(BaseModel):
    """Place response."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    description: str
    address: str
    location: Location
    image: str = Field(validation_alias="image_path")
    creator: uuid.UUID = Field(validation_alias="creator_id")


class PlaceEnvelope(BaseModel):
    place: PlaceResponse


class PlaceListEnvelope(BaseModel):
    places: List[PlaceResponse]
