"""
Domain error taxonomy.

Every failure that leaves the kernel or an engine is one of these kinds.
Each kind carries its HTTP status and a stable code; the mapping to a
response happens once, in the application's exception handlers.
"""

from typing import Any, Dict, Optional


class PlaceShareError(Exception):
    """Base class for all classified failures."""

    status_code: int = 500
    code: str = "unknown_error"
    default_message: str = "An unknown error occurred"
    # False for server-side faults: the caller only sees default_message
    expose: bool = True

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        return self.message if self.expose else self.default_message


class ValidationError(PlaceShareError):
    """Malformed or missing input fields."""

    status_code = 422
    code = "validation_error"
    default_message = "Invalid inputs, please check your data"


class AuthError(PlaceShareError):
    """Missing or invalid credential. Deliberately uninformative."""

    status_code = 401
    code = "auth_error"
    default_message = "Authentication failed"
    expose = False


class Forbidden(PlaceShareError):
    """Valid credential, but the principal does not own the resource."""

    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to modify this place"


class NotFound(PlaceShareError):
    status_code = 404
    code = "not_found"
    default_message = "Could not find the requested resource"


class GeocodeError(PlaceShareError):
    """Address could not be resolved to coordinates."""

    status_code = 422
    code = "geocode_error"
    default_message = "Could not find location for the specified address"


class AdmissionError(PlaceShareError):
    """Upload rejected by the admission filter."""

    status_code = 422
    code = "admission_error"
    default_message = "Upload rejected"


class IntegrityFault(PlaceShareError):
    """An internal invariant was violated."""

    status_code = 500
    code = "integrity_fault"
    default_message = "Something went wrong, please try again later"
    expose = False


class StoreError(PlaceShareError):
    """Underlying storage or transaction failure."""

    status_code = 500
    code = "store_error"
    default_message = "Something went wrong, please try again later"
    expose = False
