"""
Place model.
"""

import uuid

from sqlalchemy import Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class Place(Base, TimestampMixin):
    """
    A shared location.

    ``lat``/``lng`` are resolved from ``address`` once, at creation.
    ``creator_id`` never changes; ownership cannot be transferred.
    """

    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    image_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    @property
    def location(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    def __repr__(self) -> str:
        return f"<Place {self.id} {self.title!r}>"
