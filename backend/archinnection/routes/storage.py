"""
Archinnection Backend: Object Read Route
==========================================

What:  GET /storage/{bucket}/{key}, the public URL of every stored object.
How:   Resolves the key inside its bucket directory (path traversal is
       refused) and streams the file with a long cache lifetime; keys are
       never reused, so objects are immutable.
Who:   <img> tags for avatars and post images, resume download links.
"""

import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from archinnection.schemas.common import ErrorResponse
from archinnection.services.storage_service import storage_service

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get(
    "/{bucket}/{key:path}",
    responses={
        200: {"description": "Object bytes"},
        400: {"description": "Invalid bucket or key", "model": ErrorResponse},
        404: {"description": "Object not found", "model": ErrorResponse},
    },
    summary="Serve a stored object",
)
async def serve_object(bucket: str, key: str) -> FileResponse:
    path = await storage_service.open_path(bucket, key)
    media_type, _ = mimetypes.guess_type(path.name)
    headers = {"Cache-Control": "public, max-age=31536000, immutable"}
    if bucket == "resumes":
        headers["Content-Disposition"] = f'inline; filename="{path.name}"'
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        headers=headers,
    )
