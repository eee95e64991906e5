"""Activity log entries appended to a task on every mutation."""
from datetime import datetime
from typing import Optional

from taskboard.models import Task, TaskActivityType, TaskStatus
from taskboard.models.task import MAX_ACTIVITY
from taskboard.schemas.task import TaskActivity
from taskboard.utils.primary_keys import new_id
from taskboard.utils.retention import append_capped


def append_activity(
    task: Task,
    activity_type: TaskActivityType,
    actor_user_id: str,
    message: str,
    at: datetime,
    actor_email: Optional[str] = None,
    from_status: Optional[TaskStatus] = None,
    to_status: Optional[TaskStatus] = None,
) -> TaskActivity:
    entry = TaskActivity(
        id=new_id(),
        type=activity_type,
        actor_user_id=actor_user_id,
        actor_email=actor_email or "",
        created_at=at,
        message=message,
        from_status=from_status,
        to_status=to_status,
    )
    task.activity = append_capped(task.activity, entry.model_dump(mode="json"), MAX_ACTIVITY)
    return entry
