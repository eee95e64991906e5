"""
Where a task's comments and decisions live.

A task either keeps its thread locally or points at a shared
``TaskDiscussion`` row (group-assigned tasks). ``discussion_view`` tags the
two cases; ``resolve_discussion`` turns a view into the comment/decision
lists shown to the client, so response code never branches on
``shared_discussion_id`` itself.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

from sqlalchemy.orm import Session

from taskboard.clock import Clock, system_clock
from taskboard.dependencies import CurrentUser
from taskboard.errors import BadRequestError
from taskboard.models import Task, TaskActivityType, TaskDiscussion
from taskboard.models.task import MAX_COMMENTS, MAX_DECISIONS
from taskboard.repositories import DiscussionRepository, TaskRepository
from taskboard.schemas.comment import TaskComment, TaskCommentCreate, TaskDecision, TaskDecisionCreate
from taskboard.services.access import ensure_task_discussant
from taskboard.services.activity import append_activity
from taskboard.utils.primary_keys import new_id
from taskboard.utils.retention import append_capped


@dataclass(frozen=True)
class LocalDiscussion:
    comments: Sequence[Dict[str, Any]]
    decisions: Sequence[Dict[str, Any]]


@dataclass(frozen=True)
class SharedDiscussion:
    discussion_id: str
    # Used when the shared row does not exist (yet)
    fallback: LocalDiscussion


DiscussionView = Union[LocalDiscussion, SharedDiscussion]


class ResolvedDiscussion(NamedTuple):
    comments: List[TaskComment]
    decisions: List[TaskDecision]


def discussion_view(task: Task) -> DiscussionView:
    local = LocalDiscussion(comments=tuple(task.comments or ()), decisions=tuple(task.decisions or ()))
    discussion_id = (task.shared_discussion_id or "").strip()
    if discussion_id:
        return SharedDiscussion(discussion_id=discussion_id, fallback=local)
    return local


def resolve_discussion(view: DiscussionView, discussions: Mapping[str, TaskDiscussion]) -> ResolvedDiscussion:
    if isinstance(view, SharedDiscussion):
        discussion = discussions.get(view.discussion_id)
        if discussion is None:
            return resolve_discussion(view.fallback, discussions)
        comments, decisions = discussion.comments, discussion.decisions
    else:
        comments, decisions = view.comments, view.decisions

    return ResolvedDiscussion(
        comments=_sorted_entries(TaskComment.model_validate(c) for c in comments or ()),
        decisions=_sorted_entries(TaskDecision.model_validate(d) for d in decisions or ()),
    )


def load_discussions(tasks: Iterable[Task], db: Session) -> Dict[str, TaskDiscussion]:
    """Fetch every shared discussion referenced by ``tasks`` in one query."""
    ids = set()
    for task in tasks:
        view = discussion_view(task)
        if isinstance(view, SharedDiscussion):
            ids.add(view.discussion_id)
    return DiscussionRepository(db).find_all_by_id(ids)


def append_to_thread(task: Task, field: str, entry: Dict[str, Any], cap: int, db: Session) -> None:
    """Append a comment/decision to wherever the task's thread lives.

    A shared discussion that has no row yet is created under its id. The
    caller commits.
    """
    view = discussion_view(task)
    if isinstance(view, SharedDiscussion):
        repo = DiscussionRepository(db)
        discussion = repo.find_by_id(view.discussion_id)
        if discussion is None:
            discussion = TaskDiscussion(id=view.discussion_id, comments=[], decisions=[])
        setattr(discussion, field, append_capped(getattr(discussion, field), entry, cap))
        repo.save(discussion, commit=False)
        return

    setattr(task, field, append_capped(getattr(task, field), entry, cap))


def add_comment(
    task_id: str,
    comment_in: TaskCommentCreate,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskComment:
    """Post a comment on the task's thread (shared or local)."""
    task = ensure_task_discussant(task_id, db, current_user)
    now = clock.now()

    comment = TaskComment(
        id=new_id(),
        author_user_id=current_user.id,
        author_email=current_user.email or "",
        message=_require_message(comment_in.message),
        created_at=now,
    )
    append_to_thread(task, "comments", comment.model_dump(mode="json"), MAX_COMMENTS, db)
    append_activity(
        task,
        TaskActivityType.COMMENTED,
        current_user.id,
        "Comment added",
        now,
        actor_email=current_user.email,
    )
    TaskRepository(db).save(task)
    return comment


def add_decision(
    task_id: str,
    decision_in: TaskDecisionCreate,
    current_user: CurrentUser,
    db: Session,
    clock: Clock = system_clock,
) -> TaskDecision:
    """Record a decision on the task's thread (shared or local)."""
    task = ensure_task_discussant(task_id, db, current_user)
    now = clock.now()

    decision = TaskDecision(
        id=new_id(),
        author_user_id=current_user.id,
        author_email=current_user.email or "",
        message=_require_message(decision_in.message),
        created_at=now,
    )
    append_to_thread(task, "decisions", decision.model_dump(mode="json"), MAX_DECISIONS, db)
    append_activity(
        task,
        TaskActivityType.DECISION_ADDED,
        current_user.id,
        "Decision added",
        now,
        actor_email=current_user.email,
    )
    TaskRepository(db).save(task)
    return decision


def _require_message(message: Optional[str]) -> str:
    message = (message or "").strip()
    if not message:
        raise BadRequestError("Message is required")
    return message


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sorted_entries(entries: Iterable[Union[TaskComment, TaskDecision]]) -> List:
    # Entries without a timestamp go last, keeping insertion order among themselves
    return sorted(entries, key=lambda e: (e.created_at is None, _as_aware(e.created_at)))


def _as_aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
