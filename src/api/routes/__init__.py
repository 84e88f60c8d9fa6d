"""
API routes.
"""

from fastapi import APIRouter

from src.api.routes import places, users

router = APIRouter()

router.include_router(places.router, prefix="/places", tags=["Places"])
router.include_router(places.protected, prefix="/places", tags=["Places"])
router.include_router(users.router, prefix="/users", tags=["Users"])
