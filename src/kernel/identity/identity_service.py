"""
Identity service for user provisioning and lookup.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.database import Database
from src.kernel.errors import NotFound, StoreError, ValidationError
from src.kernel.models.user import User
from src.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user records.

    Users start with no places; their place list is maintained by
    ``PlaceService`` only.
    """

    def __init__(self, db: Database):
        self.db = db

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        image_path: str,
    ) -> User:
        """
        Create a new user.

        Raises:
            ValidationError: If the email already exists or the password is too short
            StoreError: On any other database failure
        """
        try:
            user = User(
                name=name.strip(),
                email=email.strip(),
                password=password,
                image_path=image_path,
                place_ids=[],
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        try:
            async with self.db.session() as session:
                async with session.begin():
                    existing = await session.execute(
                        select(User.id).where(User.email == user.email)
                    )
                    if existing.scalar_one_or_none() is not None:
                        raise ValidationError("User exists already, please login instead")
                    session.add(user)
        except IntegrityError as e:
            raise ValidationError("User exists already, please login instead") from e
        except SQLAlchemyError as e:
            logger.exception("Could not create user", extra={"email": email})
            raise StoreError("Could not create user") from e

        logger.info("User created", extra={"user_id": str(user.id)})
        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        try:
            async with self.db.session() as session:
                return await session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.exception("Could not load user", extra={"user_id": str(user_id)})
            raise StoreError("Could not load user") from e

    async def get_user(self, user_id: uuid.UUID) -> User:
        """Get a user or raise NotFound."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFound("Could not find a user for the provided id")
        return user

    async def list_users(self) -> List[User]:
        try:
            async with self.db.session() as session:
                result = await session.execute(select(User).order_by(User.created_at, User.email))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Could not list users")
            raise StoreError("Fetching users failed, please try again later") from e
