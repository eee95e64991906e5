"""Shared comment/decision thread for group-assigned tasks"""
from sqlalchemy import JSON, Column, String

from taskboard.clock import utcnow
from taskboard.database import Base, UTCDateTime


class TaskDiscussion(Base):
    __tablename__ = "task_discussions"

    id = Column(String(36), primary_key=True)
    comments = Column(JSON, default=list, nullable=False)
    decisions = Column(JSON, default=list, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
