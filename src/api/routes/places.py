"""
Place endpoints.

Mutating endpoints run: authenticate -> admit upload -> validate fields ->
PlaceService -> response. If anything fails after an image was stored, the
image is deleted before the error is reported.
"""

import uuid
from typing import Annotated, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.api.deps import (
    AdmissionFilterDep,
    CurrentPrincipal,
    PlaceServiceDep,
    authenticate,
)
from src.kernel.errors import ValidationError
from src.kernel.identity.jwt import Principal
from src.schemas.common import MessageResponse
from src.schemas.place import (
    PlaceCreate,
    PlaceEnvelope,
    PlaceListEnvelope,
    PlaceResponse,
    PlaceUpdate,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"

router = APIRouter()
protected = APIRouter(dependencies=[Depends(authenticate)])


def _parse(model: Type[ModelT], **fields) -> ModelT:
    """Validate raw fields into ``model``, raising the domain ValidationError."""
    try:
        return model.model_validate(fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(loc) for loc in first["loc"]) or "body"
        raise ValidationError(
            f"Invalid inputs, please check your data ({field}: {first['msg']})",
            field=field,
        ) from e


@router.get("/user/{user_id}", response_model=PlaceListEnvelope)
async def get_places_by_user_id(user_id: uuid.UUID, service: PlaceServiceDep):
    """List the places a user owns. A user without places is a 404."""
    places = await service.get_places_by_user(user_id)
    return PlaceListEnvelope(places=[PlaceResponse.model_validate(p) for p in places])


@router.get("/{place_id}", response_model=PlaceEnvelope)
async def get_place_by_id(place_id: uuid.UUID, service: PlaceServiceDep):
    place = await service.get_place(place_id)
    return PlaceEnvelope(place=PlaceResponse.model_validate(place))


@protected.options("", include_in_schema=False)
@protected.options("/{place_id}", include_in_schema=False)
async def place_options(
    principal: Annotated[Optional[Principal], Depends(authenticate)],
) -> Response:
    """Preflight: answered without a credential."""
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": ALLOWED_METHODS})


@protected.post("", response_model=PlaceEnvelope, status_code=status.HTTP_201_CREATED)
async def create_place(
    principal: CurrentPrincipal,
    service: PlaceServiceDep,
    admission: AdmissionFilterDep,
    title: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    address: Annotated[Optional[str], Form()] = None,
    image: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Create a place from multipart form data.

    The image is admitted (type/size checked, stored under a fresh name)
    before the text fields are validated.
    """
    if image is None:
        raise ValidationError("An image is required", field="image")

    # One byte past the ceiling is enough to detect an oversized upload
    data = await image.read(admission.max_bytes + 1)
    asset = await admission.admit(image.content_type, image.filename, data)

    try:
        fields = _parse(PlaceCreate, title=title, description=description, address=address)
        place = await service.create_place(
            principal,
            title=fields.title,
            description=fields.description,
            address=fields.address,
            image_path=asset.path,
        )
    except Exception:
        await admission.discard(asset.path)
        raise

    return PlaceEnvelope(place=PlaceResponse.model_validate(place))


@protected.patch("/{place_id}", response_model=PlaceEnvelope)
async def update_place(
    place_id: uuid.UUID,
    data: PlaceUpdate,
    principal: CurrentPrincipal,
    service: PlaceServiceDep,
):
    """Update title and description. Only the creator may do this."""
    place = await service.update_place(
        principal,
        place_id,
        title=data.title,
        description=data.description,
    )
    return PlaceEnvelope(place=PlaceResponse.model_validate(place))


@protected.delete("/{place_id}", response_model=MessageResponse)
async def delete_place(
    place_id: uuid.UUID,
    principal: CurrentPrincipal,
    service: PlaceServiceDep,
):
    await service.delete_place(principal, place_id)
    return MessageResponse(message="Deleted place.")
