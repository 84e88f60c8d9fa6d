"""
FastAPI dependencies: store handle, collaborators, services and the
authentication gate.

Collaborators live on ``app.state`` (set up in the application lifespan);
tests swap them through ``app.dependency_overrides``.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request

from src.config import get_settings
from src.database import Database
from src.engines.places.place_service import PlaceService
from src.kernel.errors import AuthError
from src.kernel.geocoding.geocoder import Geocoder
from src.kernel.identity.identity_service import IdentityService
from src.kernel.identity.jwt import IdentityVerifier, Principal
from src.kernel.uploads.admission import UploadAdmissionFilter
from src.kernel.uploads.blob_store import BlobStore


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_place_service(
    db: Annotated[Database, Depends(get_database)],
    geocoder: Annotated[Geocoder, Depends(get_geocoder)],
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> PlaceService:
    return PlaceService(db, geocoder, blob_store)


def get_identity_service(db: Annotated[Database, Depends(get_database)]) -> IdentityService:
    return IdentityService(db)


def get_admission_filter(
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> UploadAdmissionFilter:
    return UploadAdmissionFilter(blob_store, max_bytes=get_settings().max_upload_bytes)


async def authenticate(
    request: Request,
    verifier: Annotated[IdentityVerifier, Depends(get_identity_verifier)],
) -> Optional[Principal]:
    """
    Authentication gate for protected routers.

    Attaches the principal to ``request.state.principal``. OPTIONS requests
    pass through with no principal.
    """
    principal = verifier.verify(request.method, request.headers.get("Authorization"))
    request.state.principal = principal
    return principal


async def get_principal(
    principal: Annotated[Optional[Principal], Depends(authenticate)],
) -> Principal:
    """Principal for handlers that act on behalf of a user."""
    if principal is None:
        raise AuthError()
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]
PlaceServiceDep = Annotated[PlaceService, Depends(get_place_service)]
IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
AdmissionFilterDep = Annotated[UploadAdmissionFilter, Depends(get_admission_filter)]
