"""
Grammable — Picture Files Route
=================================

What:  Serves stored gram pictures at /uploads/{path}.
Who:   Requested by <img> tags built from GramResponse.picture_url.

Security:
    - The path is resolved under STORAGE_ROOT; anything escaping it (../)
      is rejected by FileService.resolve() and answered 404
    - Only files that exist are served
"""

import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from grammable.exceptions import NotFoundError, ValidationError
from grammable.schemas.gram import UPLOADS_PREFIX
from grammable.services.file_service import file_service

router = APIRouter(tags=["Uploads"])


@router.get(
    UPLOADS_PREFIX + "/{file_path:path}",
    summary="Serve an uploaded picture",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_picture(file_path: str) -> FileResponse:
    try:
        full_path = file_service.resolve(file_path)
    except ValidationError:
        # Outside the storage root: answered like any missing file
        raise NotFoundError(resource="file", resource_id=file_path)

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type, _ = mimetypes.guess_type(full_path.name)
    return FileResponse(
        path=str(full_path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},  # stored files never change
    )
