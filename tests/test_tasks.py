from datetime import date, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.orm import Session

from taskboard.models import TaskActivityType, TaskStatus
from taskboard.repositories import TaskRepository
from taskboard.schemas.comment import TaskCommentCreate
from taskboard.schemas.task import (
    AddChecklistItemRequest,
    AssignTaskToUserRequest,
    MoveTaskRequest,
    TaskCreate,
    TaskUpdate,
    UpdateArchivedRequest,
    UpdateChecklistItemRequest,
    UpdateLabelsRequest,
    UpdateRecurrenceRequest,
)
from taskboard.services import tasks as task_service
from taskboard.services.assignments import assign_task_to_user
from taskboard.services.discussions import add_comment
from taskboard.services.task_details import (
    add_checklist_item,
    update_checklist_item,
    update_labels,
    update_recurrence,
)


def _create_task(session: Session, user, clock, title: str, **kwargs):
    return task_service.create_task(TaskCreate(title=title, **kwargs), user, session, clock)


def _move(session: Session, user, clock, task, from_status, to_status, to_index=0):
    request = MoveTaskRequest(task_id=task.id, from_status=from_status, to_status=to_status, to_index=to_index)
    return task_service.move_task(request, user, session, clock)


def _column(board, status):
    return [task for task in board if task.status == status]


def test_create_appends_to_unpinned_todo(db_session: Session, alice, clock):
    first = _create_task(db_session, alice, clock, "  Write report  ")
    second = _create_task(db_session, alice, clock, "Review")

    assert first.title == "Write report"
    assert first.status == TaskStatus.TODO
    assert first.priority.value == "medium"
    assert (first.position, second.position) == (0, 1)
    assert not first.pinned
    assert not first.assigned
    assert first.activity[0].type == TaskActivityType.CREATED
    assert first.activity[0].message == "Task created"


def test_create_requires_title(db_session: Session, alice, clock):
    with pytest.raises(HTTPException) as exc:
        _create_task(db_session, alice, clock, "   ")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Title is required"


def test_get_and_update_are_owner_only(db_session: Session, alice, bob, clock):
    task = _create_task(db_session, alice, clock, "Private")

    with pytest.raises(HTTPException) as exc:
        task_service.get_task(task.id, bob, db_session)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        task_service.get_task("missing", alice, db_session)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Task not found"

    updated = task_service.update_task(
        task.id,
        TaskUpdate(title="Private notes", description="details", due_date=date(2026, 2, 1)),
        alice,
        db_session,
        clock,
    )
    assert updated.title == "Private notes"
    assert updated.description == "details"
    assert updated.priority.value == "medium"
    assert updated.position == task.position
    assert updated.activity[-1].type == TaskActivityType.UPDATED


def test_move_to_other_column_keeps_both_columns_dense(db_session: Session, alice, clock):
    a = _create_task(db_session, alice, clock, "A")
    b = _create_task(db_session, alice, clock, "B")

    board = _move(db_session, alice, clock, b, TaskStatus.TODO, TaskStatus.IN_PROGRESS, 0)

    todo = _column(board, TaskStatus.TODO)
    doing = _column(board, TaskStatus.IN_PROGRESS)
    assert [(t.id, t.position) for t in todo] == [(a.id, 0)]
    assert [(t.id, t.position) for t in doing] == [(b.id, 0)]

    moved = doing[0]
    assert moved.activity[-1].type == TaskActivityType.MOVED
    assert moved.activity[-1].from_status == TaskStatus.TODO
    assert moved.activity[-1].to_status == TaskStatus.IN_PROGRESS


def test_move_from_middle_closes_gap(db_session: Session, alice, clock):
    tasks = [_create_task(db_session, alice, clock, title) for title in ("A", "B", "C")]

    board = _move(db_session, alice, clock, tasks[1], TaskStatus.TODO, TaskStatus.DONE, 0)

    todo = _column(board, TaskStatus.TODO)
    assert [(t.title, t.position) for t in todo] == [("A", 0), ("C", 1)]


def test_reorder_within_column(db_session: Session, alice, clock):
    tasks = [_create_task(db_session, alice, clock, title) for title in ("A", "B", "C")]

    board = _move(db_session, alice, clock, tasks[2], TaskStatus.TODO, TaskStatus.TODO, 0)

    todo = _column(board, TaskStatus.TODO)
    assert [(t.title, t.position) for t in todo] == [("C", 0), ("A", 1), ("B", 2)]
    assert todo[0].activity[-1].type == TaskActivityType.REORDERED


def test_move_with_stale_status_conflicts_and_writes_nothing(db_session: Session, alice, clock):
    a = _create_task(db_session, alice, clock, "A")
    b = _create_task(db_session, alice, clock, "B")
    _move(db_session, alice, clock, a, TaskStatus.TODO, TaskStatus.IN_PROGRESS)

    with pytest.raises(HTTPException) as exc:
        _move(db_session, alice, clock, a, TaskStatus.TODO, TaskStatus.DONE)
    assert exc.value.status_code == 409
    assert exc.value.detail == "Task status changed; refresh and retry"

    board = task_service.list_tasks(alice, db_session, clock)
    assert [(t.id, t.status, t.position) for t in board] == [
        (b.id, TaskStatus.TODO, 0),
        (a.id, TaskStatus.IN_PROGRESS, 0),
    ]


def test_move_by_stranger_is_forbidden(db_session: Session, alice, bob, clock):
    task = _create_task(db_session, alice, clock, "Mine")
    with pytest.raises(HTTPException) as exc:
        _move(db_session, bob, clock, task, TaskStatus.TODO, TaskStatus.DONE)
    assert exc.value.status_code == 403


def test_admin_move_uses_owner_columns(db_session: Session, alice, admin, clock):
    a = _create_task(db_session, alice, clock, "A")
    _create_task(db_session, alice, clock, "B")

    board = _move(db_session, admin, clock, a, TaskStatus.TODO, TaskStatus.IN_PROGRESS)

    assert {t.owner_user_id for t in board} == {alice.id}
    assert [(t.title, t.position) for t in _column(board, TaskStatus.TODO)] == [("B", 0)]
    assert [(t.title, t.position) for t in _column(board, TaskStatus.IN_PROGRESS)] == [("A", 0)]


def test_pinned_task_keeps_pinned_segment_across_columns(db_session: Session, alice, admin, clock):
    a = _create_task(db_session, alice, clock, "A")
    _move(db_session, alice, clock, a, TaskStatus.TODO, TaskStatus.IN_PROGRESS)
    for title in ("P1", "P2"):
        assign_task_to_user(AssignTaskToUserRequest(title=title, assignee_user_id=alice.id), admin, db_session, clock)
    _create_task(db_session, alice, clock, "B")
    p2 = next(t for t in task_service.list_tasks(alice, db_session, clock) if t.title == "P2")

    board = _move(db_session, alice, clock, p2, TaskStatus.TODO, TaskStatus.IN_PROGRESS, to_index=5)

    assert [(t.title, t.status, t.pinned, t.position) for t in board] == [
        ("P1", TaskStatus.TODO, True, 0),
        ("B", TaskStatus.TODO, False, 0),
        ("P2", TaskStatus.IN_PROGRESS, True, 0),
        ("A", TaskStatus.IN_PROGRESS, False, 0),
    ]
    segments = {}
    for task in board:
        segments.setdefault((task.status, task.pinned), []).append(task.position)
    for positions in segments.values():
        assert positions == list(range(len(positions)))


def test_done_bookkeeping(db_session: Session, alice, clock):
    task = _create_task(db_session, alice, clock, "Ship")

    board = _move(db_session, alice, clock, task, TaskStatus.TODO, TaskStatus.DONE)
    done = _column(board, TaskStatus.DONE)[0]
    assert done.completed_at == clock.now()
    assert [entry.type for entry in done.activity[-2:]] == [TaskActivityType.COMPLETED, TaskActivityType.MOVED]

    board = _move(db_session, alice, clock, task, TaskStatus.DONE, TaskStatus.IN_PROGRESS)
    assert _column(board, TaskStatus.IN_PROGRESS)[0].completed_at is None


def test_delete_reindexes_column(db_session: Session, alice, clock):
    tasks = [_create_task(db_session, alice, clock, title) for title in ("A", "B", "C")]

    task_service.delete_task(tasks[0].id, alice, db_session)

    board = task_service.list_tasks(alice, db_session, clock)
    assert [(t.title, t.position) for t in board] == [("B", 0), ("C", 1)]


def test_delete_rejects_assigned_task(db_session: Session, alice, admin, clock):
    task = _create_task(db_session, alice, clock, "Assigned")
    row = TaskRepository(db_session).find_by_id(task.id)
    row.created_by_user_id = admin.id
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        task_service.delete_task(task.id, alice, db_session)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Assigned tasks cannot be deleted"


def test_archive_toggle_stamps_and_clears(db_session: Session, alice, clock):
    task = _create_task(db_session, alice, clock, "Old")

    archived = task_service.update_archived(task.id, UpdateArchivedRequest(archived=True), alice, db_session, clock)
    assert archived.archived
    assert archived.archived_at == clock.now()

    clock.advance(hours=1)
    again = task_service.update_archived(task.id, UpdateArchivedRequest(archived=True), alice, db_session, clock)
    assert again.archived_at == archived.archived_at

    restored = task_service.update_archived(task.id, UpdateArchivedRequest(archived=False), alice, db_session, clock)
    assert not restored.archived
    assert restored.archived_at is None


def test_auto_archive_boundary(db_session: Session, alice, clock):
    at_cutoff = _create_task(db_session, alice, clock, "At cutoff")
    after_cutoff = _create_task(db_session, alice, clock, "After cutoff")

    repo = TaskRepository(db_session)
    cutoff = clock.now() - timedelta(days=1)
    for task_id, completed_at in ((at_cutoff.id, cutoff), (after_cutoff.id, cutoff + timedelta(milliseconds=1))):
        row = repo.find_by_id(task_id)
        row.status = TaskStatus.DONE
        row.completed_at = completed_at
    db_session.commit()

    board = {task.title: task for task in task_service.list_tasks(alice, db_session, clock)}
    assert board["At cutoff"].archived
    assert board["At cutoff"].archived_at == clock.now()
    assert not board["After cutoff"].archived

    visible = task_service.list_tasks(alice, db_session, clock, include_archived=False)
    assert [task.title for task in visible] == ["After cutoff"]


def test_auto_archive_disabled_with_zero_days(db_session: Session, alice, clock):
    task = _create_task(db_session, alice, clock, "Done long ago")
    row = TaskRepository(db_session).find_by_id(task.id)
    row.status = TaskStatus.DONE
    row.completed_at = clock.now() - timedelta(days=30)
    db_session.commit()

    rows = TaskRepository(db_session).find_by_owner(alice.id)
    assert task_service.auto_archive_done_tasks(rows, db_session, clock, archive_after_days=0) == []
    assert not TaskRepository(db_session).find_by_id(task.id).archived


def test_failed_auto_archive_still_returns_board(db_session: Session, alice, clock, monkeypatch):
    task = _create_task(db_session, alice, clock, "Done long ago")
    row = TaskRepository(db_session).find_by_id(task.id)
    row.status = TaskStatus.DONE
    row.completed_at = clock.now() - timedelta(days=30)
    db_session.commit()

    def broken_save_all(self, tasks):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(TaskRepository, "save_all", broken_save_all)

    board = task_service.list_tasks(alice, db_session, clock)
    assert [(t.title, t.status, t.archived) for t in board] == [("Done long ago", TaskStatus.DONE, False)]
    assert board[0].archived_at is None


def test_search_matches_text_labels_and_comments(db_session: Session, alice, clock):

    report = _create_task(db_session, alice, clock, "Quarterly report", description="numbers")
    labelled = _create_task(db_session, alice, clock, "Groceries")
    commented = _create_task(db_session, alice, clock, "Call plumber")
    update_labels(labelled.id, UpdateLabelsRequest(labels=["Errands"]), alice, db_session, clock)
    add_comment(commented.id, TaskCommentCreate(message="Ask about the NUMBERS"), alice, db_session, clock)

    assert [t.id for t in task_service.search_tasks("QUARTERLY", alice, db_session, clock)] == [report.id]
    assert [t.id for t in task_service.search_tasks("errand", alice, db_session, clock)] == [labelled.id]
    assert {t.id for t in task_service.search_tasks("numbers", alice, db_session, clock)} == {report.id, commented.id}
    assert len(task_service.search_tasks("  ", alice, db_session, clock)) == 3


def test_completing_recurring_task_creates_next_instance(db_session: Session, alice, clock):

    task = _create_task(db_session, alice, clock, "Standup notes", due_date=date(2026, 1, 16))
    update_labels(task.id, UpdateLabelsRequest(labels=["team"]), alice, db_session, clock)
    with_item = add_checklist_item(task.id, AddChecklistItemRequest(text="Collect"), alice, db_session, clock)
    update_checklist_item(
        task.id, with_item.checklist[0].id, UpdateChecklistItemRequest(done=True), alice, db_session, clock
    )
    update_recurrence(
        task.id, UpdateRecurrenceRequest(frequency="weekly", days_of_week=[1, 3]), alice, db_session, clock
    )

    board = _move(db_session, alice, clock, task, TaskStatus.TODO, TaskStatus.DONE)

    todo = _column(board, TaskStatus.TODO)
    assert len(todo) == 1
    follow_up = todo[0]
    assert follow_up.id != task.id
    assert follow_up.title == "Standup notes"
    assert follow_up.due_date == date(2026, 1, 19)
    assert follow_up.labels == ["team"]
    assert follow_up.recurrence.days_of_week == [1, 3]
    assert [(item.text, item.done) for item in follow_up.checklist] == [("Collect", False)]
    assert follow_up.checklist[0].id != with_item.checklist[0].id
    assert follow_up.activity[0].message == "Recurring task created"

    done = _column(board, TaskStatus.DONE)[0]
    assert done.activity[-1].type == TaskActivityType.RECURRENCE_NEXT_CREATED


def test_exhausted_recurrence_creates_nothing(db_session: Session, alice, clock):

    task = _create_task(db_session, alice, clock, "Last one", due_date=date(2026, 1, 16))
    update_recurrence(
        task.id,
        UpdateRecurrenceRequest(frequency="daily", end_date=date(2026, 1, 16)),
        alice,
        db_session,
        clock,
    )

    board = _move(db_session, alice, clock, task, TaskStatus.TODO, TaskStatus.DONE)
    assert [t.id for t in board] == [task.id]


def test_failed_recurring_instance_still_completes_task(db_session: Session, alice, clock, monkeypatch):
    task = _create_task(db_session, alice, clock, "Water plants", due_date=date(2026, 1, 16))
    update_recurrence(task.id, UpdateRecurrenceRequest(frequency="daily"), alice, db_session, clock)

    def broken_next_due_date(base, rule):
        raise RuntimeError("calendar unavailable")

    monkeypatch.setattr(task_service, "next_due_date", broken_next_due_date)

    board = _move(db_session, alice, clock, task, TaskStatus.TODO, TaskStatus.DONE)

    assert [(t.id, t.status) for t in board] == [(task.id, TaskStatus.DONE)]
    assert board[0].completed_at == clock.now()
    assert TaskActivityType.RECURRENCE_NEXT_CREATED not in [entry.type for entry in board[0].activity]
