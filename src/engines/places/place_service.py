"""
Place Service - keeps users and their places consistent.

Every write that touches both sides of the user/place link runs as one
transaction:

- create: insert the place and append its id to ``User.place_ids``
- delete: delete the place and pull its id from ``User.place_ids``

``User.version`` is checked on every user UPDATE. A concurrent writer on the
same user makes the flush fail with ``StaleDataError``; the whole
transaction is then retried from a fresh read, up to ``transaction_retries``
times.
"""

import asyncio
import uuid
from typing import Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.config import get_settings
from src.database import Database
from src.kernel.errors import (
    Forbidden,
    IntegrityFault,
    NotFound,
    PlaceShareError,
    StoreError,
)
from src.kernel.geocoding.geocoder import Geocoder
from src.kernel.identity.jwt import Principal
from src.kernel.models.base import generate_uuid
from src.kernel.models.place import Place
from src.kernel.models.user import User
from src.kernel.uploads.admission import discard_asset
from src.kernel.uploads.blob_store import BlobStore
from src.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRY_BACKOFF_SECONDS = 0.02


class PlaceService:
    """
    Reads and writes places on behalf of a principal.

    Usage:
        service = PlaceService(db, geocoder, blob_store)
        place = await service.create_place(principal, title, description, address, image_path)
    """

    def __init__(
        self,
        db: Database,
        geocoder: Geocoder,
        blob_store: BlobStore,
        *,
        transaction_retries: Optional[int] = None,
    ):
        self.db = db
        self.geocoder = geocoder
        self.blob_store = blob_store
        if transaction_retries is None:
            transaction_retries = get_settings().transaction_retries
        self.transaction_retries = max(0, transaction_retries)

    async def _run_transaction(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """
        Run ``work`` inside a fresh session and transaction.

        Commits when ``work`` returns, rolls back when it raises. Domain
        errors pass through untouched; store failures become StoreError.
        """
        attempts = self.transaction_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                async with self.db.session() as session:
                    async with session.begin():
                        return await work(session)
            except PlaceShareError:
                raise
            except StaleDataError as e:
                if attempt < attempts:
                    logger.warning(
                        "Concurrent write conflict, retrying",
                        extra={"operation": operation, "attempt": attempt},
                    )
                    await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
                    continue
                logger.exception(
                    "Write conflict persisted after retries",
                    extra={"operation": operation, "attempts": attempts},
                )
                raise StoreError(f"{operation} failed: concurrent modification") from e
            except SQLAlchemyError as e:
                logger.exception("Transaction failed", extra={"operation": operation})
                raise StoreError(f"{operation} failed") from e

        # Unreachable: the loop either returns or raises
        raise StoreError(f"{operation} failed")

    async def get_place(self, place_id: uuid.UUID) -> Place:
        try:
            async with self.db.session() as session:
                place = await session.get(Place, place_id)
        except SQLAlchemyError as e:
            logger.exception("Could not load place", extra={"place_id": str(place_id)})
            raise StoreError("Something went wrong, could not find a place") from e

        if place is None:
            raise NotFound("Could not find a place for the provided id")
        return place

    async def get_places_by_user(self, user_id: uuid.UUID) -> List[Place]:
        """
        Places owned by ``user_id``, in the order of the user's place list.

        An unknown user and a user without places both raise NotFound.
        """
        try:
            async with self.db.session() as session:
                user = await session.get(User, user_id)
                result = await session.execute(
                    select(Place).where(Place.creator_id == user_id)
                )
                places = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Could not load places", extra={"user_id": str(user_id)})
            raise StoreError("Fetching places failed, please try again later") from e

        if not places:
            raise NotFound("Could not find places for the provided user id")

        order = {pid: i for i, pid in enumerate(user.place_ids)} if user else {}
        places.sort(key=lambda p: order.get(str(p.id), len(order)))
        return places

    async def create_place(
        self,
        principal: Principal,
        title: str,
        description: str,
        address: str,
        image_path: str,
    ) -> Place:
        """
        Geocode ``address`` and create a place owned by the principal.

        Raises:
            GeocodeError: address unresolvable; nothing is written
            IntegrityFault: the principal's user does not exist
            StoreError: the transaction could not be committed
        """
        coordinates = await self.geocoder.resolve(address)

        async def work(session: AsyncSession) -> Place:
            user = await session.get(User, principal.user_id)
            if user is None:
                logger.error(
                    "Authenticated principal has no user record",
                    extra={"user_id": str(principal.user_id)},
                )
                raise IntegrityFault(
                    "Could not find user for provided id",
                    user_id=str(principal.user_id),
                )

            place = Place(
                id=generate_uuid(),
                title=title,
                description=description,
                address=address,
                lat=coordinates.lat,
                lng=coordinates.lng,
                image_path=image_path,
                creator_id=user.id,
            )
            session.add(place)
            # Reassign: in-place list mutation is not tracked on JSON columns
            user.place_ids = [*user.place_ids, str(place.id)]
            return place

        place = await self._run_transaction("create_place", work)
        logger.info(
            "Place created",
            extra={"place_id": str(place.id), "user_id": str(principal.user_id)},
        )
        return place

    async def update_place(
        self,
        principal: Principal,
        place_id: uuid.UUID,
        title: str,
        description: str,
    ) -> Place:
        """
        Change title and description. Existence is checked before ownership.
        """

        async def work(session: AsyncSession) -> Place:
            place = await session.get(Place, place_id)
            if place is None:
                raise NotFound("Could not find a place for the provided id")
            if place.creator_id != principal.user_id:
                raise Forbidden("You are not allowed to edit this place")

            place.title = title
            place.description = description
            return place

        place = await self._run_transaction("update_place", work)
        logger.info(
            "Place updated",
            extra={"place_id": str(place_id), "user_id": str(principal.user_id)},
        )
        return place

    async def delete_place(self, principal: Principal, place_id: uuid.UUID) -> Place:
        """
        Delete a place and unlink it from its owner, then remove its image.

        The image is removed only after commit, best-effort.
        """

        async def work(session: AsyncSession) -> Place:
            place = await session.get(Place, place_id)
            if place is None:
                raise NotFound("Could not find a place for the provided id")

            owner = await session.get(User, place.creator_id)
            if owner is None:
                logger.error(
                    "Place references a missing creator",
                    extra={"place_id": str(place_id), "user_id": str(place.creator_id)},
                )
                raise IntegrityFault("Place has no owner", place_id=str(place_id))

            if owner.id != principal.user_id:
                raise Forbidden("You are not allowed to delete this place")

            if not owner.has_place(place.id):
                logger.warning(
                    "Place missing from its owner's place list",
                    extra={"place_id": str(place_id), "user_id": str(owner.id)},
                )

            await session.delete(place)
            owner.place_ids = [pid for pid in owner.place_ids if pid != str(place.id)]
            return place

        place = await self._run_transaction("delete_place", work)
        logger.info(
            "Place deleted",
            extra={"place_id": str(place_id), "user_id": str(principal.user_id)},
        )

        await discard_asset(self.blob_store, place.image_path)
        return place
