"""Schemas for user notifications"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NotificationUpdate(BaseModel):
    is_read: bool = True


class NotificationResponse(BaseModel):
    id: str
    task_id: Optional[str]
    task_title: str
    message: str
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True
