"""Ownership and role checks gating every task operation."""
import logging

from sqlalchemy.orm import Session

from taskboard.dependencies import CurrentUser
from taskboard.errors import ForbiddenError, NotFoundError
from taskboard.models import Task
from taskboard.repositories import TaskRepository

logger = logging.getLogger(__name__)


def get_task_or_404(task_id: str, db: Session) -> Task:
    task = TaskRepository(db).find_by_id(task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def ensure_task_owner(task_id: str, db: Session, user: CurrentUser) -> Task:
    """Content and position changes are reserved to the owner."""
    task = get_task_or_404(task_id, db)
    if task.owner_user_id != user.id:
        raise ForbiddenError("Forbidden")
    return task


def ensure_task_mover(task_id: str, db: Session, user: CurrentUser) -> Task:
    """Moves are allowed to the owner and to admins."""
    task = get_task_or_404(task_id, db)
    if task.owner_user_id != user.id and not user.is_admin:
        logger.warning(
            "Forbidden move attempt: task_id=%s user_id=%s owner_user_id=%s",
            task_id,
            user.id,
            task.owner_user_id,
        )
        raise ForbiddenError("Forbidden")
    return task


def ensure_task_discussant(task_id: str, db: Session, user: CurrentUser) -> Task:
    """Comments and decisions: owner, creator (the assigning admin) or any admin."""
    task = get_task_or_404(task_id, db)
    allowed = user.is_admin or user.id in (task.owner_user_id, task.created_by_user_id)
    if not allowed:
        raise ForbiddenError("Forbidden")
    return task


def ensure_admin(user: CurrentUser) -> None:
    if not user.is_admin:
        raise ForbiddenError("Admin role required")
