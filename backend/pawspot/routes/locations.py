"""
PawSpot API — Location Route Handlers
======================================

What:  HTTP surface for location records under /api/v1/locations.
How:   Extracts the query string / body / upload, delegates to the services,
       wraps results in `{success, data}` envelopes.

Route Table:
    GET    /api/v1/locations              Public   200 paginated list
    GET    /api/v1/locations/{id}         Public   200 single record
    POST   /api/v1/locations              Private  201 created record
    PUT    /api/v1/locations/{id}         Private  200 updated record
    DELETE /api/v1/locations/{id}         Private  200 empty object
    PUT    /api/v1/locations/{id}/photo   Private  200 stored filename

    "Private" routes carry no authentication yet.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from pawspot.config import settings
from pawspot.database import get_db_session
from pawspot.schemas.location import (
    EmptyEnvelope,
    ErrorResponse,
    LocationEnvelope,
    LocationListResponse,
    LocationPayload,
    LocationResponse,
    PhotoEnvelope,
)
from pawspot.services.location_service import LocationService, location_service
from pawspot.services.pagination import compute_pagination
from pawspot.services.photo_service import PhotoService, photo_service
from pawspot.services.query_service import translate_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/locations", tags=["Locations"])


# ── Dependencies ──────────────────────────────────────────────────────────
def get_location_service() -> LocationService:
    return location_service


def get_photo_service() -> PhotoService:
    return photo_service


NOT_FOUND = {"description": "Location not found", "model": ErrorResponse}
BAD_REQUEST = {"description": "Invalid input", "model": ErrorResponse}


@router.get(
    "",
    response_model=LocationListResponse,
    responses={400: BAD_REQUEST},
    summary="List locations",
    description=(
        "Filter with any field (`title=...`, `averageRating[gte]=4`, "
        "`services[in]=Food,Walking`, `location.city=Boston`), choose fields with "
        "`select=title,address`, order with `sort=-averageRating,title` "
        "(default newest first) and page with `page` / `limit` (default 1 / 5)."
    ),
)
async def list_locations(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> LocationListResponse:
    query = translate_query(
        request.query_params.multi_items(),
        default_limit=settings.pagination_default_limit,
        max_limit=settings.pagination_max_limit,
    )

    items, total = await service.list_locations(
        db,
        filter=query.filter,
        projection=query.projection,
        sort=query.sort,
        skip=query.window.start_index,
        limit=query.window.limit,
    )

    return LocationListResponse(
        total=total,
        success=True,
        count=len(items),
        pagination=compute_pagination(query.window, total),
        data=items,
    )


@router.get(
    "/{location_id}",
    response_model=LocationEnvelope,
    responses={404: NOT_FOUND},
    summary="Get a single location",
)
async def get_location(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> LocationEnvelope:
    location = await service.get_location(db, location_id)
    return LocationEnvelope(data=LocationResponse.model_validate(location))


@router.post(
    "",
    status_code=201,
    response_model=LocationEnvelope,
    responses={400: BAD_REQUEST},
    summary="Create a location",
)
async def create_location(
    payload: LocationPayload,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> LocationEnvelope:
    location = await service.create_location(db, payload)
    return LocationEnvelope(data=LocationResponse.model_validate(location))


@router.put(
    "/{location_id}",
    response_model=LocationEnvelope,
    responses={400: BAD_REQUEST, 404: NOT_FOUND},
    summary="Update a location",
    description="Only the fields present in the body change; the full record is re-validated.",
)
async def update_location(
    location_id: str,
    payload: LocationPayload,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> LocationEnvelope:
    location = await service.update_location(db, location_id, payload)
    return LocationEnvelope(data=LocationResponse.model_validate(location))


@router.delete(
    "/{location_id}",
    response_model=EmptyEnvelope,
    responses={404: NOT_FOUND},
    summary="Delete a location",
)
async def delete_location(
    location_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: LocationService = Depends(get_location_service),
) -> EmptyEnvelope:
    await service.delete_location(db, location_id)
    return EmptyEnvelope()


@router.put(
    "/{location_id}/photo",
    response_model=PhotoEnvelope,
    responses={400: BAD_REQUEST, 404: NOT_FOUND, 500: {"model": ErrorResponse}},
    summary="Upload a photo for a location",
    description="Multipart form with a single `file` part; images only, up to MAX_FILE_UPLOAD bytes.",
)
async def upload_location_photo(
    location_id: str,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    db: AsyncSession = Depends(get_db_session),
    photos: PhotoService = Depends(get_photo_service),
) -> PhotoEnvelope:
    # One byte past the limit is enough for the size check to reject
    content = await file.read(photos.max_size + 1) if file is not None else b""
    logger.info(
        "Received photo upload for %s: filename=%s, read=%d bytes",
        location_id,
        file.filename if file is not None else None,
        len(content),
    )

    try:
        stored_name = await photos.upload_photo(
            db,
            location_id,
            filename=file.filename if file is not None else None,
            content_type=file.content_type if file is not None else None,
            content=content,
        )
    finally:
        if file is not None:
            await file.close()

    return PhotoEnvelope(data=stored_name)
