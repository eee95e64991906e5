"""Bulk actions over a selection of the caller's tasks"""
import logging
from typing import Callable, Dict, List, Optional, Set

from sqlalchemy.orm import Session

from taskboard.clock import Clock, system_clock
from taskboard.dependencies import CurrentUser
from taskboard.errors import BadRequestError
from taskboard.models import TaskActivityType, TaskStatus
from taskboard.models.task import MAX_LABEL_LENGTH, MAX_LABELS
from taskboard.repositories import TaskRepository
from taskboard.schemas.task import BulkTaskActionRequest, TaskResponse
from taskboard.services.activity import append_activity
from taskboard.services.ordering import reindex_column
from taskboard.services.tasks import list_tasks

logger = logging.getLogger(__name__)

# Moved tasks are parked past the end of their new column until it is reindexed
PARKED_POSITION = 999_999

DELETE = "DELETE"
SET_STATUS = "SET_STATUS"
SET_PRIORITY = "SET_PRIORITY"
SET_DUE_DATE = "SET_DUE_DATE"
ADD_LABEL = "ADD_LABEL"
REMOVE_LABEL = "REMOVE_LABEL"
SET_FOCUS = "SET_FOCUS"

SUPPORTED_ACTIONS = (DELETE, SET_STATUS, SET_PRIORITY, SET_DUE_DATE, ADD_LABEL, REMOVE_LABEL, SET_FOCUS)


def _normalize_action(action: Optional[str]) -> str:
    action = (action or "").strip().upper()
    if not action:
        raise BadRequestError("action is required")
    if action not in SUPPORTED_ACTIONS:
        raise BadRequestError("Unsupported bulk action")
    return action


def _clean_label(label: Optional[str]) -> str:
    label = (label or "").strip()
    if not label:
        raise BadRequestError("label is required")
    return label[:MAX_LABEL_LENGTH]


def _validate_parameters(action: str, request: BulkTaskActionRequest) -> None:
    """Reject a request missing its action parameter before any row is touched."""
    if action == SET_STATUS and request.status is None:
        raise BadRequestError("status is required")
    if action == SET_PRIORITY and request.priority is None:
        raise BadRequestError("priority is required")
    if action in (ADD_LABEL, REMOVE_LABEL):
        _clean_label(request.label)


def bulk_update(
    request: BulkTaskActionRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> List[TaskResponse]:
    """
    Apply one action to every selected task the caller owns.

    Tasks owned by someone else and admin-assigned tasks are skipped without
    error. Columns whose membership changed are reindexed once at the end.
    Returns the caller's board.
    """
    action = _normalize_action(request.action)
    _validate_parameters(action, request)

    if not request.task_ids:
        return list_tasks(current_user, db, clock)

    repo = TaskRepository(db)
    selected = [
        task
        for task in repo.find_all_by_id(request.task_ids)
        if task.owner_user_id == current_user.id and not task.is_assigned
    ]

    statuses_to_reindex: Set[TaskStatus] = set()
    now = clock.now()

    if action == DELETE:
        # Deleted rows expire, so their status is read first
        statuses_to_reindex.update(task.status for task in selected)
        repo.delete_all(selected)
    else:
        apply = _ACTIONS[action]
        for task in selected:
            apply(task, request, current_user, now, statuses_to_reindex)
        repo.save_all(selected)

    for status in statuses_to_reindex:
        reindex_column(repo, current_user.id, status)

    logger.info(
        "Bulk %s: user_id=%s requested=%d applied=%d",
        action,
        current_user.id,
        len(request.task_ids),
        len(selected),
    )
    return list_tasks(current_user, db, clock)


def _set_status(task, request, current_user, now, statuses_to_reindex):
    from_status, target = task.status, request.status
    if from_status == target:
        return

    statuses_to_reindex.update((from_status, target))
    task.status = target
    if target == TaskStatus.DONE:
        task.completed_at = now
    elif from_status == TaskStatus.DONE:
        task.completed_at = None

    task.position = PARKED_POSITION
    append_activity(
        task,
        TaskActivityType.MOVED,
        current_user.id,
        "Bulk moved",
        now,
        from_status=from_status,
        to_status=target,
    )


def _set_priority(task, request, current_user, now, statuses_to_reindex):
    task.priority = request.priority
    append_activity(task, TaskActivityType.UPDATED, current_user.id, "Priority updated", now)


def _set_due_date(task, request, current_user, now, statuses_to_reindex):
    task.due_date = request.due_date
    append_activity(task, TaskActivityType.UPDATED, current_user.id, "Due date updated", now)


def _add_label(task, request, current_user, now, statuses_to_reindex):
    label = _clean_label(request.label)
    labels = list(task.labels or [])
    if len(labels) < MAX_LABELS and all(existing.lower() != label.lower() for existing in labels if existing):
        labels.append(label)
    task.labels = labels
    append_activity(task, TaskActivityType.LABELS_UPDATED, current_user.id, "Label added", now)


def _remove_label(task, request, current_user, now, statuses_to_reindex):
    label = _clean_label(request.label).lower()
    task.labels = [existing for existing in task.labels or [] if existing and existing.lower() != label]
    append_activity(task, TaskActivityType.LABELS_UPDATED, current_user.id, "Label removed", now)


def _set_focus(task, request, current_user, now, statuses_to_reindex):
    focus = bool(request.focus)
    task.focus = focus
    message = "Focus enabled" if focus else "Focus disabled"
    append_activity(task, TaskActivityType.UPDATED, current_user.id, message, now)


_ACTIONS: Dict[str, Callable[..., None]] = {
    SET_STATUS: _set_status,
    SET_PRIORITY: _set_priority,
    SET_DUE_DATE: _set_due_date,
    ADD_LABEL: _add_label,
    REMOVE_LABEL: _remove_label,
    SET_FOCUS: _set_focus,
}
