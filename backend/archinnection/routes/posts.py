"""
Archinnection Backend: Feed Routes
====================================

What:  GET/POST /api/posts, POST /api/posts/{id}/like,
       POST /api/posts/{id}/comments, DELETE /api/posts/{id}.
How:   The create form is multipart (text + optional image) so a post and
       its picture arrive in one request.
Who:   Dashboard post form, like button, comment box.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from archinnection.database import get_db_session
from archinnection.dependencies import get_current_user_id
from archinnection.schemas.common import ErrorResponse
from archinnection.schemas.post import (
    CommentCreateRequest,
    CommentResponse,
    FeedResponse,
    LikeToggleResponse,
    PostResponse,
)
from archinnection.services.post_service import post_service
from archinnection.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Feed"])


@router.get("", response_model=FeedResponse, summary="Feed, newest first")
async def list_feed(
    limit: int = Query(default=20, ge=1, le=50),
    cursor: Optional[str] = Query(
        default=None,
        description="next_cursor from the previous page",
    ),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> FeedResponse:
    return await post_service.list_feed(db, user_id, limit=limit, cursor=cursor)


@router.post(
    "",
    response_model=PostResponse,
    status_code=201,
    responses={
        400: {"description": "Empty post or invalid image", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Publish a post (text, image, or both)",
)
async def create_post(
    content: str = Form(default=""),
    image: Optional[UploadFile] = File(default=None, description="Optional image, max 5MB"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    filename = content_type = None
    image_bytes: Optional[bytes] = None
    # Browsers send an empty part when no file is chosen
    if image is not None and image.filename:
        try:
            image_bytes = await storage_service.read_upload("posts", image)
        finally:
            await image.close()
        filename, content_type = image.filename, image.content_type

    return await post_service.create_post(
        db,
        user_id,
        content,
        image_filename=filename,
        image_content_type=content_type,
        image_content=image_bytes,
    )


@router.post(
    "/{post_id}/like",
    response_model=LikeToggleResponse,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Like the post, or unlike it if already liked",
)
async def toggle_like(
    post_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikeToggleResponse:
    return await post_service.toggle_like(db, user_id, post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=201,
    responses={
        400: {"description": "Empty comment", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
)
async def add_comment(
    post_id: uuid.UUID,
    payload: CommentCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await post_service.add_comment(db, user_id, post_id, payload.content)


@router.delete(
    "/{post_id}",
    status_code=204,
    responses={
        403: {"description": "Not your post", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
)
async def delete_post(
    post_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await post_service.delete_post(db, user_id, post_id, background_tasks)
    return Response(status_code=204)
