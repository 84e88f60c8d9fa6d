"""
JWT token management and bearer-credential verification.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from src.config import get_settings
from src.kernel.errors import AuthError
from src.logging_config import get_logger

logger = get_logger(__name__)

BEARER_SCHEME = "bearer"

# Methods that pass the gate without a credential (CORS preflight)
UNAUTHENTICATED_METHODS = frozenset({"OPTIONS"})


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request. Carries no roles."""

    user_id: uuid.UUID


class JWTManager:
    """
    JWT token creation and verification.

    Tokens carry a ``userId`` claim plus ``email``, ``iat`` and ``exp``.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, datetime]:
        """
        Create a new access token.

        Returns:
            Tuple of (token, expiration_datetime)
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        payload = {
            "userId": str(user_id),
            "email": email,
            "iat": now,
            "exp": expire,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return token, expire

    def decode(self, token: str) -> Principal:
        """
        Verify a token's signature and expiry and extract the principal.

        Raises:
            AuthError: on any decode, signature, expiry or claim problem
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return Principal(user_id=uuid.UUID(str(payload["userId"])))
        except (JWTError, KeyError, ValueError, TypeError) as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise AuthError() from exc


class IdentityVerifier:
    """
    Turns a raw ``Authorization`` header into a ``Principal``.

    Every failure mode (missing header, wrong scheme, empty token, bad
    token) raises the same ``AuthError``.
    """

    def __init__(self, jwt_manager: Optional[JWTManager] = None):
        self.jwt_manager = jwt_manager or JWTManager()

    @staticmethod
    def extract_bearer_token(authorization: Optional[str]) -> str:
        raw = (authorization or "").strip()
        parts = raw.split(" ", 1)
        if len(parts) != 2:
            raise AuthError()

        scheme, token = parts[0].strip().lower(), parts[1].strip()
        if scheme != BEARER_SCHEME or not token:
            raise AuthError()
        return token

    def verify(self, method: str, authorization: Optional[str]) -> Optional[Principal]:
        """
        Verify the credential for a request.

        Returns:
            The principal, or None for methods that bypass authentication
        """
        if method.upper() in UNAUTHENTICATED_METHODS:
            return None

        token = self.extract_bearer_token(authorization)
        return self.jwt_manager.decode(token)


# Default manager instance
_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create the default JWT manager."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    """Create an access token."""
    return get_jwt_manager().create_access_token(user_id, email, expires_delta)
