"""Owner-only edits to a task's details: labels, dependencies, checklist, focus, budget, recurrence and timer"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from taskboard.clock import Clock, system_clock
from taskboard.dependencies import CurrentUser
from taskboard.errors import BadRequestError, ConflictError, NotFoundError
from taskboard.models import Task, TaskActivityType
from taskboard.models.task import MAX_CHECKLIST, MAX_DEPENDENCIES, MAX_LABEL_LENGTH, MAX_LABELS, MAX_TIME_LOGS
from taskboard.repositories import TaskRepository
from taskboard.schemas.task import (
    AddChecklistItemRequest,
    ChecklistItem,
    RecurrenceRule,
    ReorderChecklistRequest,
    TaskResponse,
    TaskTimeLog,
    TimerNoteRequest,
    UpdateChecklistItemRequest,
    UpdateDependenciesRequest,
    UpdateFocusRequest,
    UpdateLabelsRequest,
    UpdateRecurrenceRequest,
    UpdateTimeBudgetRequest,
)
from taskboard.services.access import ensure_task_owner
from taskboard.services.activity import append_activity
from taskboard.services.responses import serialize_task
from taskboard.utils.primary_keys import new_id
from taskboard.utils.retention import append_capped

logger = logging.getLogger(__name__)


def _save(task: Task, db: Session) -> TaskResponse:
    TaskRepository(db).save(task)
    return serialize_task(task, db)


def clean_labels(labels: List[Optional[str]]) -> List[str]:
    """Trim, truncate, drop blanks and case-insensitive duplicates, keep the first MAX_LABELS."""
    cleaned = []
    seen = set()
    for raw in labels or []:
        if raw is None:
            continue
        label = raw.strip()[:MAX_LABEL_LENGTH]
        if not label or label.lower() in seen:
            continue
        seen.add(label.lower())
        cleaned.append(label)
        if len(cleaned) >= MAX_LABELS:
            break
    return cleaned


def update_labels(
    task_id: str,
    labels_in: UpdateLabelsRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    task.labels = clean_labels(labels_in.labels)
    append_activity(task, TaskActivityType.LABELS_UPDATED, current_user.id, "Labels updated", clock.now())
    return _save(task, db)


def update_dependencies(
    task_id: str,
    dependencies_in: UpdateDependenciesRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    """Replace the blocked-by list. Dependencies are informational and never gate moves."""
    task = ensure_task_owner(task_id, db, current_user)

    cleaned = []
    for raw in dependencies_in.blocked_by_task_ids or []:
        dependency_id = (raw or "").strip()
        if not dependency_id or dependency_id == task.id or dependency_id in cleaned:
            continue
        cleaned.append(dependency_id)
        if len(cleaned) >= MAX_DEPENDENCIES:
            break

    if cleaned:
        dependencies = TaskRepository(db).find_all_by_id(cleaned)
        if len(dependencies) != len(cleaned):
            raise BadRequestError("One or more dependency tasks were not found")
        if any(dependency.owner_user_id != task.owner_user_id for dependency in dependencies):
            raise BadRequestError("Dependencies must belong to the same owner")

    task.blocked_by_task_ids = cleaned
    append_activity(task, TaskActivityType.DEPENDENCIES_UPDATED, current_user.id, "Dependencies updated", clock.now())
    return _save(task, db)


def _checklist(task: Task) -> List[ChecklistItem]:
    return [ChecklistItem.model_validate(item) for item in task.checklist or []]


def _store_checklist(task: Task, items: List[ChecklistItem]) -> None:
    task.checklist = [item.model_dump(mode="json") for item in items]


def _require_text(text: Optional[str]) -> str:
    text = (text or "").strip()
    if not text:
        raise BadRequestError("Text is required")
    return text


def add_checklist_item(
    task_id: str,
    item_in: AddChecklistItemRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    text = _require_text(item_in.text)

    items = _checklist(task)
    if len(items) >= MAX_CHECKLIST:
        raise BadRequestError("Checklist limit reached")

    now = clock.now()
    next_position = max((item.position for item in items), default=-1) + 1
    items.append(ChecklistItem(id=new_id(), text=text, done=False, position=next_position, created_at=now))
    _store_checklist(task, items)

    append_activity(task, TaskActivityType.CHECKLIST_UPDATED, current_user.id, "Checklist updated", now)
    return _save(task, db)


def update_checklist_item(
    task_id: str,
    item_id: str,
    item_in: UpdateChecklistItemRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)

    items = _checklist(task)
    item = next((item for item in items if item.id == item_id), None)
    if item is None:
        raise NotFoundError("Checklist item not found")

    if item_in.text is not None:
        item.text = _require_text(item_in.text)
    if item_in.done is not None:
        item.done = item_in.done
    _store_checklist(task, items)

    append_activity(task, TaskActivityType.CHECKLIST_UPDATED, current_user.id, "Checklist updated", clock.now())
    return _save(task, db)


def reorder_checklist(
    task_id: str,
    reorder_in: ReorderChecklistRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    """Listed ids take positions 0.. in request order; the rest follow in their current order."""
    task = ensure_task_owner(task_id, db, current_user)

    items = _checklist(task)
    by_id = {item.id: item for item in items}

    ordered = []
    for item_id in reorder_in.item_ids or []:
        item = by_id.pop(item_id, None) if item_id else None
        if item is not None:
            ordered.append(item)
    ordered.extend(sorted(by_id.values(), key=lambda item: item.position))

    for position, item in enumerate(ordered):
        item.position = position
    _store_checklist(task, ordered)

    append_activity(task, TaskActivityType.CHECKLIST_UPDATED, current_user.id, "Checklist reordered", clock.now())
    return _save(task, db)


def update_focus(
    task_id: str,
    focus_in: UpdateFocusRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    task.focus = focus_in.focus
    message = "Marked as focus" if focus_in.focus else "Unmarked as focus"
    append_activity(task, TaskActivityType.FOCUS_UPDATED, current_user.id, message, clock.now())
    return _save(task, db)


def update_time_budget(
    task_id: str,
    budget_in: UpdateTimeBudgetRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)

    budget = budget_in.time_budget_minutes
    if budget is not None and budget < 0:
        raise BadRequestError("time_budget_minutes must be >= 0")

    task.time_budget_minutes = budget
    append_activity(task, TaskActivityType.TIME_BUDGET_UPDATED, current_user.id, "Time budget updated", clock.now())
    return _save(task, db)


def update_recurrence(
    task_id: str,
    recurrence_in: UpdateRecurrenceRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    """Set or clear the recurrence rule. A missing frequency clears it."""
    task = ensure_task_owner(task_id, db, current_user)
    now = clock.now()

    if recurrence_in.frequency is None:
        task.recurrence = None
        append_activity(task, TaskActivityType.RECURRENCE_UPDATED, current_user.id, "Recurrence cleared", now)
        return _save(task, db)

    nth = recurrence_in.nth_business_day_of_month
    if nth is not None and nth <= 0:
        nth = None

    rule = RecurrenceRule(
        frequency=recurrence_in.frequency,
        interval=max(1, recurrence_in.interval or 1),
        weekdays_only=bool(recurrence_in.weekdays_only),
        days_of_week=list(recurrence_in.days_of_week or []),
        end_date=recurrence_in.end_date,
        nth_business_day_of_month=nth,
    )
    task.recurrence = rule.model_dump(mode="json")
    append_activity(task, TaskActivityType.RECURRENCE_UPDATED, current_user.id, "Recurrence updated", now)
    return _save(task, db)


def start_timer(
    task_id: str,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
    note_in: Optional[TimerNoteRequest] = None,
) -> TaskResponse:
    task = ensure_task_owner(task_id, db, current_user)
    if task.active_timer_started_at is not None:
        raise ConflictError("Timer already running")

    now = clock.now()
    task.active_timer_started_at = now
    note = (note_in.note or "").strip() if note_in is not None else ""
    message = f"Timer started: {note}" if note else "Timer started"
    append_activity(task, TaskActivityType.TIMER_STARTED, current_user.id, message, now)
    return _save(task, db)


def stop_timer(
    task_id: str,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
    note_in: Optional[TimerNoteRequest] = None,
) -> TaskResponse:
    """Stop the running timer and log the elapsed time, never less than one minute."""
    task = ensure_task_owner(task_id, db, current_user)
    started_at = task.active_timer_started_at
    if started_at is None:
        raise ConflictError("Timer is not running")

    ended_at = clock.now()
    minutes = max(1, int((ended_at - started_at).total_seconds() // 60))
    log = TaskTimeLog(
        id=new_id(),
        started_at=started_at,
        ended_at=ended_at,
        duration_minutes=minutes,
        note=note_in.note if note_in is not None else None,
        created_at=ended_at,
    )
    task.time_logs = append_capped(task.time_logs, log.model_dump(mode="json"), MAX_TIME_LOGS)
    task.active_timer_started_at = None

    append_activity(task, TaskActivityType.TIMER_STOPPED, current_user.id, "Timer stopped", ended_at)
    logger.debug("Timer stopped: task_id=%s minutes=%d", task.id, minutes)
    return _save(task, db)
