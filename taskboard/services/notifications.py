"""In-app notifications for assigned tasks"""
import logging
from typing import Iterable, List

from sqlalchemy.orm import Session, selectinload

from taskboard.clock import Clock, system_clock
from taskboard.dependencies import CurrentUser
from taskboard.errors import NotFoundError
from taskboard.models import Notification, Task
from taskboard.schemas.notification import NotificationResponse, NotificationUpdate

logger = logging.getLogger(__name__)


def _notification_query(db: Session):
    return db.query(Notification).options(selectinload(Notification.task))


def _serialize_notification(notification: Notification) -> NotificationResponse:
    task = notification.task
    return NotificationResponse(
        id=notification.id,
        task_id=notification.task_id,
        task_title=task.title if task is not None else "",
        message=notification.message,
        is_read=notification.is_read,
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


def list_notifications(
    current_user: CurrentUser,
    db: Session,
    unread_only: bool = False,
) -> List[NotificationResponse]:
    """List notifications for the current user, newest first."""
    query = _notification_query(db).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    notifications = query.order_by(Notification.created_at.desc()).all()
    return [_serialize_notification(notification) for notification in notifications]


def update_notification(
    notification_id: str,
    update_data: NotificationUpdate,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> NotificationResponse:
    """Mark a notification as read or unread."""
    notification = (
        _notification_query(db)
        .filter(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
        .first()
    )

    if not notification:
        raise NotFoundError("Notification not found")

    if update_data.is_read:
        notification.is_read = True
        if notification.read_at is None:
            notification.read_at = clock.now()
    else:
        notification.is_read = False
        notification.read_at = None

    db.commit()
    db.refresh(notification)

    return _serialize_notification(notification)


def notify_assignees(tasks: Iterable[Task], assigned_by: CurrentUser, db: Session) -> int:
    """
    Record an "assigned to you" notice per task owner.

    Best effort: a failure is logged and rolled back, the assignment itself
    has already been committed. Returns the number of notifications stored.
    """
    who = assigned_by.email or "An admin"
    notifications = [
        Notification(
            user_id=task.owner_user_id,
            task_id=task.id,
            message=f"{who} assigned you the task '{task.title}'"[:255],
        )
        for task in tasks
    ]
    if not notifications:
        return 0

    try:
        db.add_all(notifications)
        db.commit()
    except Exception:
        logger.exception("Failed to record assignment notifications")
        db.rollback()
        return 0

    return len(notifications)
