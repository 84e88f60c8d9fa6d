"""
User model.

A user owns an ordered list of place ids. The list and ``Place.creator_id``
must agree in both directions; only ``PlaceService`` writes to it.
"""

import uuid
from typing import List

from sqlalchemy import JSON, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.kernel.models.base import Base, TimestampMixin, generate_uuid

MIN_PASSWORD_LENGTH = 6


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    # Opaque credential; hashing is handled outside this service
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    image_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    place_ids: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    # Bumped on every UPDATE; a stale version aborts the flush
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    __mapper_args__ = {"version_id_col": version}

    @validates("password")
    def _validate_password(self, key: str, value: str) -> str:
        if value is None or len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return value

    def has_place(self, place_id: uuid.UUID) -> bool:
        return str(place_id) in (self.place_ids or [])

    def __repr__(self) -> str:
        return f"<User {self.email}>"
