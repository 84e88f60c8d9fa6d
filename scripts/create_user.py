"""Provision a user directly in the database and print an access token for it.

Usage: python scripts/create_user.py NAME EMAIL PASSWORD [IMAGE_PATH]
"""
import asyncio
import sys
from typing import List

sys.path.insert(0, ".")
from pydantic import ValidationError

from src.config import get_settings
from src.database import Database
from src.kernel.errors import PlaceShareError
from src.kernel.identity.identity_service import IdentityService
from src.kernel.identity.jwt import create_access_token
from src.schemas.user import UserCreate

DEFAULT_IMAGE_PATH = "uploads/images/default.png"


def parse_args(argv: List[str]) -> UserCreate:
    """Validate NAME EMAIL PASSWORD [IMAGE_PATH] into a UserCreate."""
    name, email, password = argv[:3]
    image_path = argv[3] if len(argv) > 3 else DEFAULT_IMAGE_PATH
    return UserCreate(name=name, email=email, password=password, image_path=image_path)


async def main(data: UserCreate) -> int:
    db = Database(get_settings().database_url)
    await db.init()
    try:
        user = await IdentityService(db).create_user(
            data.name, data.email, data.password, data.image_path
        )
    except PlaceShareError as e:
        print(f"Could not create user: {e.message}")
        return 1
    finally:
        await db.close()

    token, expires = create_access_token(user.id, user.email)
    print(f"User: {user.name} <{user.email}>")
    print(f"ID: {user.id}")
    print(f"Token (expires {expires.isoformat()}):")
    print(token)
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print(__doc__)
        sys.exit(2)
    try:
        data = parse_args(sys.argv[1:])
    except ValidationError as e:
        for error in e.errors():
            print(f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}")
        sys.exit(2)
    sys.exit(asyncio.run(main(data)))
