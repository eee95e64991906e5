"""
Task lifecycle: create, read, update, delete, archive, search, list and move.

Every operation takes the caller and a session; operations that stamp times
also take a ``Clock``. Listing is where stale DONE tasks get archived, and a
move into DONE is where the next instance of a recurring task is created.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from taskboard.clock import Clock, system_clock
from taskboard.config import settings
from taskboard.dependencies import CurrentUser
from taskboard.errors import BadRequestError, ConflictError, ForbiddenError
from taskboard.models import Task, TaskActivityType, TaskPriority, TaskStatus
from taskboard.repositories import TaskRepository
from taskboard.schemas.task import (
    ChecklistItem,
    MoveTaskRequest,
    RecurrenceRule,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
    UpdateArchivedRequest,
)
from taskboard.services.access import ensure_task_mover, ensure_task_owner
from taskboard.services.activity import append_activity
from taskboard.services.ordering import (
    board_sort_key,
    column_for,
    insert_into_segment,
    next_position_for,
    reindex_column,
    reindex_segments,
    reorder_within_column,
    segment_index,
)
from taskboard.services.recurrence import next_due_date
from taskboard.services.responses import serialize_task, serialize_tasks
from taskboard.utils.primary_keys import new_id

logger = logging.getLogger(__name__)


def _require_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise BadRequestError("Title is required")
    return title


def create_task(
    task_in: TaskCreate,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    """Create a TODO task for the caller at the end of the unpinned TODO segment."""
    repo = TaskRepository(db)
    task = Task(
        owner_user_id=current_user.id,
        created_by_user_id=current_user.id,
        title=_require_title(task_in.title),
        description=task_in.description,
        priority=task_in.priority or TaskPriority.MEDIUM,
        due_date=task_in.due_date,
        status=TaskStatus.TODO,
        position=next_position_for(repo, current_user.id, TaskStatus.TODO, pinned=False),
        pinned=False,
        labels=[],
        blocked_by_task_ids=[],
        checklist=[],
        comments=[],
        decisions=[],
        activity=[],
        time_logs=[],
    )
    append_activity(task, TaskActivityType.CREATED, current_user.id, "Task created", clock.now())

    repo.save(task)
    logger.info("Task created: task_id=%s owner_user_id=%s", task.id, task.owner_user_id)
    return serialize_task(task, db)


def get_task(task_id: str, current_user: CurrentUser, db: Session) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    return serialize_task(task, db)


def update_task(
    task_id: str,
    task_in: TaskUpdate,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    """Replace the editable fields. Priority is kept when omitted; ordering is untouched."""
    task = ensure_task_owner(task_id, db, current_user)

    task.title = _require_title(task_in.title)
    task.description = task_in.description
    if task_in.priority is not None:
        task.priority = task_in.priority
    task.due_date = task_in.due_date

    append_activity(task, TaskActivityType.UPDATED, current_user.id, "Task updated", clock.now())
    TaskRepository(db).save(task)
    return serialize_task(task, db)


def delete_task(task_id: str, current_user: CurrentUser, db: Session) -> None:
    task = ensure_task_owner(task_id, db, current_user)
    if task.is_assigned:
        raise ForbiddenError("Assigned tasks cannot be deleted")

    # The row expires once deleted
    owner_user_id, status = task.owner_user_id, task.status

    repo = TaskRepository(db)
    repo.delete(task)
    reindex_column(repo, owner_user_id, status)
    logger.info("Task deleted: task_id=%s owner_user_id=%s", task_id, owner_user_id)


def update_archived(
    task_id: str,
    archived_in: UpdateArchivedRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    now = clock.now()

    task.archived = archived_in.archived
    if archived_in.archived:
        if task.archived_at is None:
            task.archived_at = now
    else:
        task.archived_at = None

    message = "Task archived" if archived_in.archived else "Task unarchived"
    append_activity(task, TaskActivityType.UPDATED, current_user.id, message, now)
    TaskRepository(db).save(task)
    return serialize_task(task, db)


def list_tasks(
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
    include_archived: bool = True,
) -> List[TaskResponse]:
    """Return the caller's board: archives stale DONE tasks, then sorts for rendering."""
    return _list_board(current_user.id, db, clock, include_archived)


def _list_board(
    owner_user_id: str,
    db: Session,
    clock: Clock,
    include_archived: bool = True,
) -> List[TaskResponse]:
    tasks = TaskRepository(db).find_by_owner(owner_user_id)
    auto_archive_done_tasks(tasks, db, clock)

    tasks = sorted(tasks, key=board_sort_key)
    if not include_archived:
        tasks = [task for task in tasks if not task.archived]
    return serialize_tasks(tasks, db)


def search_tasks(
    query: Optional[str],
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> List[TaskResponse]:
    """Case-insensitive substring search over text, labels and the resolved thread."""
    needle = (query or "").strip().lower()
    tasks = list_tasks(current_user, db, clock)
    if not needle:
        return tasks
    return [task for task in tasks if _matches(task, needle)]


def _matches(task: TaskResponse, needle: str) -> bool:
    haystacks = [task.title or "", task.description or ""]
    haystacks.extend(task.labels)
    haystacks.extend(comment.message for comment in task.comments)
    haystacks.extend(decision.message for decision in task.decisions)
    return any(needle in (text or "").lower() for text in haystacks)


def move_task(
    move_in: MoveTaskRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> List[TaskResponse]:
    """
    Move a task to ``to_status`` at the combined index ``to_index``.

    ``from_status`` is the status the client last saw. A mismatch with the
    stored status means someone else moved the task first: nothing is
    written and the caller gets a Conflict to refresh on.
    """
    task = ensure_task_mover(move_in.task_id, db, current_user)

    if task.status != move_in.from_status:
        raise ConflictError("Task status changed; refresh and retry")

    repo = TaskRepository(db)
    owner_user_id = task.owner_user_id
    from_status, to_status = move_in.from_status, move_in.to_status
    pinned = bool(task.pinned)
    now = clock.now()

    if from_status == to_status:
        column = reorder_within_column(column_for(repo, owner_user_id, from_status), task, move_in.to_index)
        append_activity(
            task,
            TaskActivityType.REORDERED,
            current_user.id,
            "Task reordered",
            now,
            from_status=from_status,
            to_status=to_status,
        )
        repo.save_all(column)
        return _list_board(owner_user_id, db, clock)

    # Both columns are read before the status flips
    from_column = [t for t in column_for(repo, owner_user_id, from_status) if t.id != task.id]
    to_column = [t for t in column_for(repo, owner_user_id, to_status) if t.id != task.id]

    task.status = to_status
    completed = to_status == TaskStatus.DONE and from_status != TaskStatus.DONE
    if completed:
        task.completed_at = now
        append_activity(
            task,
            TaskActivityType.COMPLETED,
            current_user.id,
            "Task completed",
            now,
            from_status=from_status,
            to_status=to_status,
        )
    elif from_status == TaskStatus.DONE:
        task.completed_at = None

    append_activity(
        task,
        TaskActivityType.MOVED,
        current_user.id,
        "Task moved",
        now,
        from_status=from_status,
        to_status=to_status,
    )

    index = segment_index(to_column, pinned, move_in.to_index)
    to_column = insert_into_segment(to_column, task, index, pinned)

    reindex_segments(from_column)
    reindex_segments(to_column)
    repo.save_all(from_column + to_column)
    logger.debug(
        "Task moved: task_id=%s from=%s to=%s index=%s",
        task.id,
        from_status.value,
        to_status.value,
        task.position,
    )

    if completed:
        create_next_recurring_instance(task, current_user, db, clock)

    return _list_board(owner_user_id, db, clock)


def auto_archive_done_tasks(
    tasks: List[Task],
    db: Session,
    clock: Clock = system_clock,
    archive_after_days: Optional[int] = None,
) -> List[Task]:
    """
    Archive DONE tasks completed at or before ``now - archive_after_days``.

    Runs as a side effect of listing, so failures are logged and rolled back
    instead of raised. Returns the tasks that were archived.
    """
    days = settings.ARCHIVE_DONE_AFTER_DAYS if archive_after_days is None else archive_after_days
    if not tasks or days <= 0:
        return []

    now = clock.now()
    cutoff = now - timedelta(days=days)
    changed = []
    for task in tasks:
        if task.status != TaskStatus.DONE or task.archived or task.completed_at is None:
            continue
        if task.completed_at <= cutoff:
            task.archived = True
            if task.archived_at is None:
                task.archived_at = now
            changed.append(task)

    if not changed:
        return []

    try:
        TaskRepository(db).save_all(changed)
    except Exception:
        logger.exception("Auto-archive failed for %d task(s)", len(changed))
        db.rollback()
        return []

    logger.info("Auto-archived %d done task(s)", len(changed))
    return changed


def create_next_recurring_instance(
    completed_task: Task,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> Optional[Task]:
    """
    Create the next TODO instance of a recurring task that was just completed.

    The due date is computed from the completed task's due date (today when it
    has none). Returns the new task, or None when there is no rule, the rule
    is exhausted, or creation failed.
    """
    if not completed_task.recurrence:
        return None

    try:
        rule = RecurrenceRule.model_validate(completed_task.recurrence)
        base = completed_task.due_date or clock.today()
        next_due = next_due_date(base, rule)
        if next_due is None:
            return None

        now = clock.now()
        repo = TaskRepository(db)
        owner_user_id = completed_task.owner_user_id
        checklist = [
            ChecklistItem(
                id=new_id(),
                text=item.text,
                done=False,
                position=item.position,
                created_at=now,
            ).model_dump(mode="json")
            for item in (ChecklistItem.model_validate(raw) for raw in completed_task.checklist or [])
        ]

        next_task = Task(
            owner_user_id=owner_user_id,
            created_by_user_id=owner_user_id,
            title=completed_task.title,
            description=completed_task.description,
            priority=completed_task.priority,
            due_date=next_due,
            status=TaskStatus.TODO,
            position=next_position_for(repo, owner_user_id, TaskStatus.TODO, pinned=False),
            pinned=False,
            labels=list(completed_task.labels or []),
            blocked_by_task_ids=[],
            checklist=checklist,
            recurrence=rule.model_dump(mode="json"),
            comments=[],
            decisions=[],
            activity=[],
            time_logs=[],
        )
        append_activity(next_task, TaskActivityType.CREATED, current_user.id, "Recurring task created", now)
        append_activity(
            completed_task,
            TaskActivityType.RECURRENCE_NEXT_CREATED,
            current_user.id,
            "Next recurring instance created",
            now,
        )
        repo.save_all([next_task, completed_task])
    except Exception:
        logger.exception("Failed to create next recurring instance for task_id=%s", completed_task.id)
        db.rollback()
        return None

    logger.info("Recurring task created: task_id=%s next_due=%s", next_task.id, next_due.isoformat())
    return next_task
