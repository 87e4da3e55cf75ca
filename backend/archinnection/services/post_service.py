"""
Archinnection Backend: Post Service
=====================================

What:  Dashboard feed, post creation, like toggling, comments and post deletion.
How:   Async SQLAlchemy with eager-loaded authors, likes and comments;
       post images go through StorageService's `posts` bucket.
Who:   /api/posts routes and the dashboard page.

Feed Query (newest first, cursor-paginated):
    SELECT posts ... WHERE created_at < :ts OR (created_at = :ts AND id < :id)
    ORDER BY created_at DESC, id DESC LIMIT :limit + 1
    + selectin loads for authors, likes, comments and comment authors.
    The extra row tells us whether another page exists without a COUNT.

Like Toggle:
    liked → DELETE the (post, user) row; not liked → INSERT it.
    The unique constraint on (post_id, user_id) absorbs a concurrent
    duplicate insert, which is then reported as "liked".
"""

import base64
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from archinnection.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from archinnection.models.post import Comment, Like, Post
from archinnection.schemas.post import (
    CommentResponse,
    FeedResponse,
    LikeToggleResponse,
    PostResponse,
)
from archinnection.schemas.profile import ProfileSummary
from archinnection.services.storage_service import StoredObject, storage_service

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 5000
MAX_COMMENT_LENGTH = 2000


def _feed_query():
    return (
        select(Post)
        .options(
            selectinload(Post.author),
            selectinload(Post.likes),
            selectinload(Post.comments).selectinload(Comment.author),
        )
        .execution_options(populate_existing=True)
    )


def encode_cursor(post: Post) -> str:
    """Opaque, URL-safe token for the (created_at, id) of a post."""
    raw = f"{post.created_at.isoformat()}|{post.id.hex}"
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def _parse_cursor(cursor: Optional[str]) -> Optional[Tuple[datetime, uuid.UUID]]:
    if not cursor:
        return None
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode()).decode()
        created_at, post_id = raw.split("|", 1)
        parsed = datetime.fromisoformat(created_at)
        last_id = uuid.UUID(hex=post_id)
    except ValueError:
        raise ValidationError(message="Invalid pagination cursor", field="cursor")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed, last_id


class PostService:

    def to_response(self, post: Post, viewer_id: Optional[uuid.UUID]) -> PostResponse:
        liked_by = [like.user_id for like in post.likes]
        return PostResponse(
            id=post.id,
            content=post.content,
            image_url=post.image_url,
            created_at=post.created_at,
            author=ProfileSummary.model_validate(post.author),
            like_count=len(liked_by),
            comment_count=len(post.comments),
            liked_by_me=viewer_id in liked_by,
            liked_by=liked_by,
            comments=[CommentResponse.model_validate(c) for c in post.comments],
        )

    async def _require_post_id(self, db: AsyncSession, post_id: uuid.UUID) -> None:
        result = await db.execute(select(Post.id).where(Post.id == post_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))

    async def get_post(
        self, db: AsyncSession, post_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None
    ) -> PostResponse:
        result = await db.execute(_feed_query().where(Post.id == post_id))
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return self.to_response(post, viewer_id)

    async def list_feed(
        self,
        db: AsyncSession,
        viewer_id: Optional[uuid.UUID],
        limit: int = 20,
        cursor: Optional[str] = None,
    ) -> FeedResponse:
        """
        Newest-first page of posts with authors, likes and comments.

        Args:
            cursor: next_cursor of the previous page
        """
        stmt = _feed_query()
        position = _parse_cursor(cursor)
        if position is not None:
            last_created_at, last_id = position
            stmt = stmt.where(
                or_(
                    Post.created_at < last_created_at,
                    and_(Post.created_at == last_created_at, Post.id < last_id),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit + 1)

        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Database error loading feed: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not load the feed. Please try again.")

        posts = list(result.scalars().all())
        has_more = len(posts) > limit
        posts = posts[:limit]
        next_cursor = encode_cursor(posts[-1]) if has_more and posts else None

        return FeedResponse(
            posts=[self.to_response(p, viewer_id) for p in posts],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def create_post(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        content: Optional[str],
        image_filename: Optional[str] = None,
        image_content_type: Optional[str] = None,
        image_content: Optional[bytes] = None,
    ) -> PostResponse:
        """
        Publish a post with text, an image, or both.

        Raises:
            ValidationError: no text and no image, text too long, or a bad image
        """
        text = (content or "").strip()
        has_image = bool(image_content)

        if not text and not has_image:
            raise ValidationError(
                message="Post must contain text or an image.",
                field="content",
            )
        if len(text) > MAX_POST_LENGTH:
            raise ValidationError(
                message=f"Posts are limited to {MAX_POST_LENGTH} characters.",
                field="content",
            )

        stored: Optional[StoredObject] = None
        if has_image:
            stored = await storage_service.upload(
                "posts", user_id, image_filename or "", image_content_type, image_content
            )

        post = Post(
            user_id=user_id,
            content=text,
            image_url=stored.public_url if stored else None,
            image_key=stored.key if stored else None,
        )
        try:
            db.add(post)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create post for %s: %s", user_id, str(e), exc_info=True)
            if stored:
                await storage_service.delete("posts", stored.key)
            raise DatabaseError(message="Could not publish your post. Please try again.")

        logger.info("Post %s created by %s (image=%s)", post.id, user_id, has_image)
        return await self.get_post(db, post.id, user_id)

    async def toggle_like(
        self, db: AsyncSession, user_id: uuid.UUID, post_id: uuid.UUID
    ) -> LikeToggleResponse:
        await self._require_post_id(db, post_id)

        result = await db.execute(
            delete(Like).where(Like.post_id == post_id, Like.user_id == user_id)
        )
        if result.rowcount:
            liked = False
        else:
            try:
                async with db.begin_nested():
                    db.add(Like(post_id=post_id, user_id=user_id))
            except IntegrityError:
                logger.debug("Concurrent like on post %s by %s", post_id, user_id)
            liked = True

        count = await db.execute(select(func.count(Like.id)).where(Like.post_id == post_id))
        return LikeToggleResponse(post_id=post_id, liked=liked, like_count=count.scalar_one())

    async def add_comment(
        self, db: AsyncSession, user_id: uuid.UUID, post_id: uuid.UUID, content: str
    ) -> CommentResponse:
        text = (content or "").strip()
        if not text:
            raise ValidationError(message="Comment cannot be empty.", field="content")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                message=f"Comments are limited to {MAX_COMMENT_LENGTH} characters.",
                field="content",
            )
        await self._require_post_id(db, post_id)

        comment = Comment(post_id=post_id, user_id=user_id, content=text)
        db.add(comment)
        await db.flush()

        result = await db.execute(
            select(Comment)
            .options(selectinload(Comment.author))
            .where(Comment.id == comment.id)
            .execution_options(populate_existing=True)
        )
        return CommentResponse.model_validate(result.scalar_one())

    async def delete_post(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        post_id: uuid.UUID,
        background_tasks: BackgroundTasks,
    ) -> None:
        """
        Delete an own post with its likes, comments and image.

        Raises:
            NotFoundError: no such post
            PermissionDeniedError: the post belongs to someone else
        """
        result = await db.execute(select(Post.user_id, Post.image_key).where(Post.id == post_id))
        row = result.first()
        if row is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        if row.user_id != user_id:
            raise PermissionDeniedError(message="You can only delete your own posts.")

        await db.execute(delete(Like).where(Like.post_id == post_id))
        await db.execute(delete(Comment).where(Comment.post_id == post_id))
        await db.execute(delete(Post).where(Post.id == post_id))

        if row.image_key:
            background_tasks.add_task(storage_service.delete, "posts", row.image_key)
        logger.info("Post %s deleted by %s", post_id, user_id)


post_service = PostService()
