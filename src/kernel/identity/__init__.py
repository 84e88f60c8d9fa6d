"""
Identity Core - Credential verification and user records.
"""

from src.kernel.identity.jwt import (
    IdentityVerifier,
    JWTManager,
    Principal,
    create_access_token,
)
from src.kernel.identity.identity_service import IdentityService

__all__ = [
    "IdentityVerifier",
    "JWTManager",
    "Principal",
    "create_access_token",
    "IdentityService",
]
