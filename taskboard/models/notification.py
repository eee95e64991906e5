"""Notification model for task assignments"""
from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from taskboard.clock import utcnow
from taskboard.database import Base, UTCDateTime


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    message = Column(String(255), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    read_at = Column(UTCDateTime, nullable=True)

    # Relationships
    task = relationship("Task")
