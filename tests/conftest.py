"""
Pytest fixtures for PlaceShare tests.
"""

import uuid
from pathlib import Path
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from src.api.deps import (
    get_blob_store,
    get_database,
    get_geocoder,
    get_identity_verifier,
)
from src.database import Database
from src.engines.places.place_service import PlaceService
from src.kernel.errors import GeocodeError
from src.kernel.geocoding.geocoder import Coordinates
from src.kernel.identity.identity_service import IdentityService
from src.kernel.identity.jwt import IdentityVerifier, JWTManager, Principal
from src.kernel.models.place import Place
from src.kernel.models.user import User
from src.kernel.uploads.blob_store import LocalBlobStore
from src.main import app


TEST_SECRET = "test-secret-key-for-testing-only"

# Smallest thing that looks like a PNG to a human reader; content is not inspected
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

GOOGLEPLEX = Coordinates(lat=37.4224764, lng=-122.0842499)


class FakeGeocoder:
    """Resolves every address to the same point unless told to fail."""

    def __init__(self):
        self.calls: List[str] = []
        self.unresolvable: set[str] = set()

    async def resolve(self, address: str) -> Coordinates:
        self.calls.append(address)
        if address in self.unresolvable:
            raise GeocodeError()
        return GOOGLEPLEX


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """File-based SQLite so every session shares the same database."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'placeshare_test.db'}")
    await database.init()
    yield database
    await database.close()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "uploads" / "images")


@pytest.fixture
def place_service(db: Database, geocoder: FakeGeocoder, blob_store: LocalBlobStore) -> PlaceService:
    return PlaceService(db, geocoder, blob_store, transaction_retries=3)


@pytest_asyncio.fixture
async def user_one(db: Database) -> User:
    return await IdentityService(db).create_user(
        name="User One",
        email="one@example.com",
        password="secret-one",
        image_path="uploads/images/one.png",
    )


@pytest_asyncio.fixture
async def user_two(db: Database) -> User:
    return await IdentityService(db).create_user(
        name="User Two",
        email="two@example.com",
        password="secret-two",
        image_path="uploads/images/two.png",
    )


@pytest.fixture
def principal_one(user_one: User) -> Principal:
    return Principal(user_id=user_one.id)


@pytest.fixture
def principal_two(user_two: User) -> Principal:
    return Principal(user_id=user_two.id)


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key=TEST_SECRET,
        algorithm="HS256",
        access_token_expire_minutes=30,
    )


def auth_headers_for(jwt_manager: JWTManager, user: User) -> dict:
    token, _ = jwt_manager.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_one(jwt_manager: JWTManager, user_one: User) -> dict:
    return auth_headers_for(jwt_manager, user_one)


@pytest.fixture
def headers_two(jwt_manager: JWTManager, user_two: User) -> dict:
    return auth_headers_for(jwt_manager, user_two)


@pytest_asyncio.fixture
async def client(
    db: Database,
    geocoder: FakeGeocoder,
    blob_store: LocalBlobStore,
    jwt_manager: JWTManager,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client wired to the test database, fake geocoder and temp uploads."""
    verifier = IdentityVerifier(jwt_manager)
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def load_user(db: Database, user_id: uuid.UUID) -> User:
    async with db.session() as session:
        return await session.get(User, user_id)


async def load_places(db: Database) -> List[Place]:
    async with db.session() as session:
        result = await session.execute(select(Place))
        return list(result.scalars().all())


async def assert_links_consistent(db: Database) -> None:
    """P.creator == U.id iff P.id in U.places, for every user and place."""
    async with db.session() as session:
        users = (await session.execute(select(User))).scalars().all()
        places = (await session.execute(select(Place))).scalars().all()

    by_user = {u.id: u for u in users}
    for place in places:
        owner = by_user.get(place.creator_id)
        assert owner is not None, f"place {place.id} has no owner"
        assert owner.place_ids.count(str(place.id)) == 1

    place_owner = {str(p.id): p.creator_id for p in places}
    for user in users:
        for pid in user.place_ids:
            assert place_owner.get(pid) == user.id, f"user {user.id} lists foreign place {pid}"
        assert len(set(user.place_ids)) == len(user.place_ids)


def stored_files(blob_store: LocalBlobStore) -> List[Path]:
    return sorted(p for p in blob_store.base_dir.iterdir() if p.is_file())
