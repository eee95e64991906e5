"""Schemas for tasks: embedded documents, requests and the board response"""
import enum
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskboard.models.task import TaskActivityType, TaskPriority, TaskStatus
from taskboard.schemas.comment import TaskComment, TaskDecision


class RecurrenceFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurrenceRule(BaseModel):
    frequency: Optional[RecurrenceFrequency] = None
    # Repeat every N units (days/weeks/months)
    interval: int = 1
    weekdays_only: bool = False
    # WEEKLY only: ISO weekdays 1..7 (Mon..Sun)
    days_of_week: List[int] = Field(default_factory=list)
    end_date: Optional[date] = None
    # MONTHLY only: 1 => first business day (Mon-Fri) of the month
    nth_business_day_of_month: Optional[int] = None


class ChecklistItem(BaseModel):
    id: str
    text: str
    done: bool = False
    position: int = 0
    created_at: Optional[datetime] = None


class TaskActivity(BaseModel):
    id: str
    type: TaskActivityType
    actor_user_id: str
    actor_email: str = ""
    created_at: Optional[datetime] = None
    message: str = ""
    from_status: Optional[TaskStatus] = None
    to_status: Optional[TaskStatus] = None


class TaskTimeLog(BaseModel):
    id: str
    started_at: datetime
    ended_at: datetime
    duration_minutes: int
    note: Optional[str] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class MoveTaskRequest(BaseModel):
    task_id: str
    from_status: TaskStatus
    to_status: TaskStatus
    # Index in the rendered (pinned-then-unpinned) destination column
    to_index: int = 0


class BulkTaskActionRequest(BaseModel):
    action: Optional[str] = None
    task_ids: List[str] = Field(default_factory=list)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    label: Optional[str] = None
    focus: Optional[bool] = None


class UpdateArchivedRequest(BaseModel):
    archived: bool


class UpdateFocusRequest(BaseModel):
    focus: bool


class UpdateTimeBudgetRequest(BaseModel):
    time_budget_minutes: Optional[int] = None


class UpdateLabelsRequest(BaseModel):
    labels: List[Optional[str]] = Field(default_factory=list)


class UpdateDependenciesRequest(BaseModel):
    blocked_by_task_ids: List[Optional[str]] = Field(default_factory=list)


class UpdateRecurrenceRequest(BaseModel):
    frequency: Optional[RecurrenceFrequency] = None
    interval: Optional[int] = None
    weekdays_only: Optional[bool] = None
    days_of_week: Optional[List[int]] = None
    end_date: Optional[date] = None
    nth_business_day_of_month: Optional[int] = None


class AddChecklistItemRequest(BaseModel):
    text: Optional[str] = None


class UpdateChecklistItemRequest(BaseModel):
    text: Optional[str] = None
    done: Optional[bool] = None


class ReorderChecklistRequest(BaseModel):
    item_ids: List[Optional[str]] = Field(default_factory=list)


class TimerNoteRequest(BaseModel):
    note: Optional[str] = None


class AssignTaskRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None


class AssignTaskToUserRequest(AssignTaskRequest):
    assignee_user_id: str


class AssignTaskToGroupRequest(AssignTaskRequest):
    member_user_ids: List[str] = Field(default_factory=list)
    shared_discussion: bool = True


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class TaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date]
    position: int
    assigned: bool
    pinned: bool
    archived: bool
    archived_at: Optional[datetime]
    labels: List[str] = Field(default_factory=list)
    blocked_by_task_ids: List[str] = Field(default_factory=list)
    checklist: List[ChecklistItem] = Field(default_factory=list)
    checklist_done: int = 0
    checklist_total: int = 0
    recurrence: Optional[RecurrenceRule] = None
    decisions: List[TaskDecision] = Field(default_factory=list)
    focus: bool = False
    time_budget_minutes: Optional[int] = None
    total_logged_minutes: int = 0
    time_logs: List[TaskTimeLog] = Field(default_factory=list)
    active_timer_started_at: Optional[datetime] = None
    comments: List[TaskComment] = Field(default_factory=list)
    activity: List[TaskActivity] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    owner_user_id: str
    created_by_user_id: str
    shared_discussion_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
