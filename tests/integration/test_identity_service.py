"""Integration tests for IdentityService."""

import uuid

import pytest

from src.kernel.errors import NotFound, ValidationError
from src.kernel.identity.identity_service import IdentityService


@pytest.mark.asyncio
async def test_create_user_starts_without_places(db):
    user = await IdentityService(db).create_user(
        name="  Ada  ", email="ada@example.com", password="secret", image_path="uploads/images/ada.png"
    )

    assert user.name == "Ada"
    assert user.place_ids == []
    loaded = await IdentityService(db).get_user(user.id)
    assert loaded.email == "ada@example.com"


@pytest.mark.asyncio
async def test_duplicate_email_rejected(db, user_one):
    with pytest.raises(ValidationError):
        await IdentityService(db).create_user(
            name="Copy", email=user_one.email, password="secret", image_path="x.png"
        )


@pytest.mark.asyncio
async def test_email_uniqueness_is_case_sensitive(db, user_one):
    user = await IdentityService(db).create_user(
        name="Upper", email=user_one.email.upper(), password="secret", image_path="x.png"
    )
    assert user.email == "ONE@EXAMPLE.COM"


@pytest.mark.asyncio
async def test_short_password_rejected(db):
    with pytest.raises(ValidationError, match="at least 6"):
        await IdentityService(db).create_user(
            name="Short", email="short@example.com", password="12345", image_path="x.png"
        )
    assert await IdentityService(db).list_users() == []


@pytest.mark.asyncio
async def test_unknown_user(db):
    assert await IdentityService(db).get_user_by_id(uuid.uuid4()) is None
    with pytest.raises(NotFound):
        await IdentityService(db).get_user(uuid.uuid4())
