"""
User endpoints (read-only).
"""

import uuid

from fastapi import APIRouter

from src.api.deps import IdentityServiceDep
from src.schemas.user import UserEnvelope, UserListEnvelope, UserResponse

router = APIRouter()


@router.get("", response_model=UserListEnvelope)
async def list_users(identity_service: IdentityServiceDep):
    users = await identity_service.list_users()
    return UserListEnvelope(users=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(user_id: uuid.UUID, identity_service: IdentityServiceDep):
    user = await identity_service.get_user(user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))
