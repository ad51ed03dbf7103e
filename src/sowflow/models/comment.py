"""Pydantic models for the per-document comment thread."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, max_length=10000)
    parent_id: str | None = None
    is_internal: bool = False


class Comment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    comment_id: str
    document_id: str
    user_id: str
    text: str
    is_internal: bool = False
    parent_id: str | None = None
    version: int = 1
    created_at: datetime


class ThreadedComment(Comment):
    replies: list[Comment] = Field(default_factory=list)
