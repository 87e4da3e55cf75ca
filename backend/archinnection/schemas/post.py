"""
Archinnection Backend: Feed Schemas
=====================================

What:  Post, comment and like payloads for the dashboard feed.

Pagination:
    Cursor-based, newest first. The cursor is an opaque URL-safe token for
    the (created_at, id) of the last post on the previous page, so posts
    sharing a timestamp are neither skipped nor repeated. next_cursor is
    null on the last page.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from archinnection.schemas.profile import ProfileSummary


class CommentCreateRequest(BaseModel):
    # Blank-after-trim is rejected by PostService with a 400
    content: str = Field(max_length=2000)


class CommentResponse(BaseModel):
    id: uuid.UUID
    post_id: uuid.UUID
    content: str
    created_at: datetime
    author: ProfileSummary

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    id: uuid.UUID
    content: str
    image_url: Optional[str] = None
    created_at: datetime
    author: ProfileSummary
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False
    liked_by: List[uuid.UUID] = Field(default_factory=list, description="User ids that liked the post")
    comments: List[CommentResponse] = Field(default_factory=list)


class FeedResponse(BaseModel):
    posts: List[PostResponse]
    next_cursor: Optional[str] = None
    has_more: bool = False


class LikeToggleResponse(BaseModel):
    post_id: uuid.UUID
    liked: bool
    like_count: int
