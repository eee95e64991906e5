"""Admin assignment of tasks to a user or to a group of users"""
import logging
from typing import List

from sqlalchemy.orm import Session

from taskboard.clock import Clock, system_clock
from taskboard.dependencies import CurrentUser
from taskboard.errors import BadRequestError
from taskboard.models import Task, TaskActivityType, TaskDiscussion, TaskPriority, TaskStatus
from taskboard.repositories import DiscussionRepository, TaskRepository
from taskboard.schemas.task import AssignTaskRequest, AssignTaskToGroupRequest, AssignTaskToUserRequest, TaskResponse
from taskboard.services.access import ensure_admin
from taskboard.services.activity import append_activity
from taskboard.services.notifications import notify_assignees
from taskboard.services.ordering import next_position_for
from taskboard.services.responses import serialize_tasks

logger = logging.getLogger(__name__)


def _build_assigned_task(
    repo: TaskRepository,
    admin: CurrentUser,
    assignee_user_id: str,
    request: AssignTaskRequest,
    clock: Clock,
) -> Task:
    """A pinned TODO task at the tail of the assignee's pinned segment."""
    task = Task(
        owner_user_id=assignee_user_id,
        created_by_user_id=admin.id,
        title=request.title.strip(),
        description=request.description,
        priority=request.priority or TaskPriority.MEDIUM,
        due_date=request.due_date,
        status=TaskStatus.TODO,
        position=next_position_for(repo, assignee_user_id, TaskStatus.TODO, pinned=True),
        pinned=True,
        labels=[],
        blocked_by_task_ids=[],
        checklist=[],
        comments=[],
        decisions=[],
        activity=[],
        time_logs=[],
    )
    append_activity(
        task,
        TaskActivityType.ASSIGNED,
        admin.id,
        "Task assigned",
        clock.now(),
        actor_email=admin.email,
        to_status=TaskStatus.TODO,
    )
    return task


def _validate_request(request: AssignTaskRequest) -> None:
    if not (request.title or "").strip():
        raise BadRequestError("Title is required")


def assign_task_to_user(
    request: AssignTaskToUserRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskResponse:
    ensure_admin(current_user)
    _validate_request(request)

    assignee_user_id = (request.assignee_user_id or "").strip()
    if not assignee_user_id:
        raise BadRequestError("assignee_user_id is required")

    repo = TaskRepository(db)
    task = _build_assigned_task(repo, current_user, assignee_user_id, request, clock)
    repo.save(task)
    logger.info("Task assigned: task_id=%s assignee=%s admin=%s", task.id, assignee_user_id, current_user.id)

    notify_assignees([task], current_user, db)
    return serialize_tasks([task], db)[0]


def assign_task_to_group(
    request: AssignTaskToGroupRequest,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> List[TaskResponse]:
    """
    Create one assigned task per group member.

    With ``shared_discussion`` the tasks point at a single new
    ``TaskDiscussion`` so members see the same comments and decisions.
    """
    ensure_admin(current_user)
    _validate_request(request)

    member_ids = []
    for raw in request.member_user_ids or []:
        member_id = (raw or "").strip()
        if member_id and member_id not in member_ids:
            member_ids.append(member_id)
    if not member_ids:
        raise BadRequestError("member_user_ids is required")

    repo = TaskRepository(db)
    discussion = None
    if request.shared_discussion:
        discussion = TaskDiscussion(comments=[], decisions=[])
        DiscussionRepository(db).save(discussion)

    created = []
    for member_id in member_ids:
        task = _build_assigned_task(repo, current_user, member_id, request, clock)
        if discussion is not None:
            task.shared_discussion_id = discussion.id
        created.append(task)
    repo.save_all(created)
    logger.info(
        "Task assigned to group: members=%d admin=%s shared_discussion=%s",
        len(created),
        current_user.id,
        discussion.id if discussion is not None else None,
    )

    notify_assignees(created, current_user, db)
    return serialize_tasks(created, db)
