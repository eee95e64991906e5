"""Schemas for task comments and decisions"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TaskComment(BaseModel):
    """A comment as embedded in a task or a shared discussion."""

    id: str
    author_user_id: str
    author_email: str = ""
    message: str
    created_at: Optional[datetime] = None


class TaskDecision(BaseModel):
    """A recorded decision; same shape as a comment, kept in its own list."""

    id: str
    author_user_id: str
    author_email: str = ""
    message: str
    created_at: Optional[datetime] = None


class TaskCommentCreate(BaseModel):
    message: Optional[str] = Field(default=None, description="Comment text; blank is rejected")


class TaskDecisionCreate(BaseModel):
    message: Optional[str] = None
