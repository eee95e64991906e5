"""
Pydantic schemas for embedded documents, requests and responses
"""
from taskboard.schemas.comment import TaskComment, TaskCommentCreate, TaskDecision, TaskDecisionCreate
from taskboard.schemas.notification import NotificationResponse, NotificationUpdate
from taskboard.schemas.task import (
    AddChecklistItemRequest,
    AssignTaskToGroupRequest,
    AssignTaskToUserRequest,
    BulkTaskActionRequest,
    ChecklistItem,
    MoveTaskRequest,
    RecurrenceFrequency,
    RecurrenceRule,
    ReorderChecklistRequest,
    TaskActivity,
    TaskCreate,
    TaskResponse,
    TaskTimeLog,
    TaskUpdate,
    TimerNoteRequest,
    UpdateArchivedRequest,
    UpdateChecklistItemRequest,
    UpdateDependenciesRequest,
    UpdateFocusRequest,
    UpdateLabelsRequest,
    UpdateRecurrenceRequest,
    UpdateTimeBudgetRequest,
)

__all__ = [
    "TaskComment",
    "TaskCommentCreate",
    "TaskDecision",
    "TaskDecisionCreate",
    "NotificationResponse",
    "NotificationUpdate",
    "AddChecklistItemRequest",
    "AssignTaskToGroupRequest",
    "AssignTaskToUserRequest",
    "BulkTaskActionRequest",
    "ChecklistItem",
    "MoveTaskRequest",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "ReorderChecklistRequest",
    "TaskActivity",
    "TaskCreate",
    "TaskResponse",
    "TaskTimeLog",
    "TaskUpdate",
    "TimerNoteRequest",
    "UpdateArchivedRequest",
    "UpdateChecklistItemRequest",
    "UpdateDependenciesRequest",
    "UpdateFocusRequest",
    "UpdateLabelsRequest",
    "UpdateRecurrenceRequest",
    "UpdateTimeBudgetRequest",
]
