"""Build TaskResponse objects from ORM rows"""
from typing import List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from taskboard.models import Task, TaskDiscussion
from taskboard.schemas.task import ChecklistItem, RecurrenceRule, TaskActivity, TaskResponse, TaskTimeLog
from taskboard.services.discussions import discussion_view, load_discussions, resolve_discussion


def _serialize_task(task: Task, discussions: Mapping[str, TaskDiscussion]) -> TaskResponse:
    thread = resolve_discussion(discussion_view(task), discussions)
    checklist = sorted(
        (ChecklistItem.model_validate(item) for item in task.checklist or []),
        key=lambda item: item.position,
    )
    time_logs = [TaskTimeLog.model_validate(log) for log in task.time_logs or []]

    return TaskResponse(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        position=task.position,
        assigned=task.is_assigned,
        pinned=bool(task.pinned),
        archived=bool(task.archived),
        archived_at=task.archived_at,
        labels=list(task.labels or []),
        blocked_by_task_ids=list(task.blocked_by_task_ids or []),
        checklist=checklist,
        checklist_done=sum(1 for item in checklist if item.done),
        checklist_total=len(checklist),
        recurrence=RecurrenceRule.model_validate(task.recurrence) if task.recurrence else None,
        decisions=thread.decisions,
        focus=bool(task.focus),
        time_budget_minutes=task.time_budget_minutes,
        total_logged_minutes=sum(log.duration_minutes for log in time_logs),
        time_logs=time_logs,
        active_timer_started_at=task.active_timer_started_at,
        comments=thread.comments,
        activity=[TaskActivity.model_validate(entry) for entry in task.activity or []],
        completed_at=task.completed_at,
        owner_user_id=task.owner_user_id,
        created_by_user_id=task.created_by_user_id,
        shared_discussion_id=task.shared_discussion_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def serialize_task(task: Task, db: Session, discussions: Optional[Mapping[str, TaskDiscussion]] = None) -> TaskResponse:
    if discussions is None:
        discussions = load_discussions([task], db)
    return _serialize_task(task, discussions)


def serialize_tasks(tasks: Sequence[Task], db: Session) -> List[TaskResponse]:
    """Serialize a list, resolving every shared discussion with a single query."""
    discussions = load_discussions(tasks, db)
    return [_serialize_task(task, discussions) for task in tasks]
