"""
Task Model
"""
import enum

from sqlalchemy import JSON, Boolean, Column, Date, Enum as SQLEnum, Integer, String, Text
from taskboard.clock import utcnow
from taskboard.database import Base, UTCDateTime

MAX_COMMENTS = 200
MAX_DECISIONS = 200
MAX_ACTIVITY = 400
MAX_TIME_LOGS = 400
MAX_CHECKLIST = 100
MAX_LABELS = 20
MAX_LABEL_LENGTH = 24
MAX_DEPENDENCIES = 20


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskActivityType(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    ASSIGNED = "assigned"
    MOVED = "moved"
    REORDERED = "reordered"
    COMPLETED = "completed"
    COMMENTED = "commented"
    DECISION_ADDED = "decision_added"
    LABELS_UPDATED = "labels_updated"
    CHECKLIST_UPDATED = "checklist_updated"
    FOCUS_UPDATED = "focus_updated"
    TIME_BUDGET_UPDATED = "time_budget_updated"
    RECURRENCE_UPDATED = "recurrence_updated"
    RECURRENCE_NEXT_CREATED = "recurrence_next_created"
    DEPENDENCIES_UPDATED = "dependencies_updated"
    TIMER_STARTED = "timer_started"
    TIMER_STOPPED = "timer_stopped"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(SQLEnum(TaskStatus), default=TaskStatus.TODO, nullable=False, index=True)
    priority = Column(SQLEnum(TaskPriority), default=TaskPriority.MEDIUM, nullable=False)
    due_date = Column(Date, nullable=True)

    # Board ordering: dense per (owner, status, pinned)
    position = Column(Integer, default=0, nullable=False)
    pinned = Column(Boolean, default=False, nullable=False)

    owner_user_id = Column(String(64), nullable=False, index=True)
    created_by_user_id = Column(String(64), nullable=False)

    # Embedded documents, stored as JSON lists of dicts
    labels = Column(JSON, default=list, nullable=False)
    blocked_by_task_ids = Column(JSON, default=list, nullable=False)
    checklist = Column(JSON, default=list, nullable=False)
    recurrence = Column(JSON, nullable=True)
    comments = Column(JSON, default=list, nullable=False)
    decisions = Column(JSON, default=list, nullable=False)
    activity = Column(JSON, default=list, nullable=False)
    time_logs = Column(JSON, default=list, nullable=False)

    focus = Column(Boolean, default=False, nullable=False)
    time_budget_minutes = Column(Integer, nullable=True)
    active_timer_started_at = Column(UTCDateTime, nullable=True)

    completed_at = Column(UTCDateTime, nullable=True)
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(UTCDateTime, nullable=True)

    # When set, comments + decisions live in the shared TaskDiscussion row
    shared_discussion_id = Column(String(36), nullable=True, index=True)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_assigned(self) -> bool:
        """Admin-assigned tasks are the ones whose creator is not their owner."""
        if not self.created_by_user_id or not self.owner_user_id:
            return False
        return self.created_by_user_id != self.owner_user_id

    def __repr__(self) -> str:
        return f"<Task {self.id} {self.status} pinned={self.pinned} pos={self.position}>"
