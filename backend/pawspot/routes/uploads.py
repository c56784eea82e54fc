"""
PawSpot API — Uploaded File Route
==================================

Serves stored location photos from FILE_UPLOAD_PATH at /uploads/{filename}.
Names that escape the upload directory or do not exist return 404.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from pawspot.exceptions import NotFoundError
from pawspot.routes.locations import get_photo_service
from pawspot.schemas.location import ErrorResponse
from pawspot.services.photo_service import PhotoService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.get(
    "/{filename}",
    response_class=FileResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Download a stored photo",
)
async def get_upload(
    filename: str,
    photos: PhotoService = Depends(get_photo_service),
) -> FileResponse:
    path = photos.resolve_stored_file(filename)
    if path is None:
        raise NotFoundError(resource="File", resource_id=filename)
    return FileResponse(path)
