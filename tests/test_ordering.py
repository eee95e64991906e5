from types import SimpleNamespace

from taskboard.models import TaskStatus
from taskboard.services.ordering import (
    board_sort_key,
    column_order,
    insert_into_segment,
    next_position,
    reindex_segments,
    reorder_within_column,
    segment_index,
)


def _task(task_id: str, position: int, pinned: bool = False, status: TaskStatus = TaskStatus.TODO):
    return SimpleNamespace(id=task_id, position=position, pinned=pinned, status=status)


def _ids(tasks):
    return [task.id for task in tasks]


def test_column_order_puts_pinned_segment_first():
    column = column_order([_task("u0", 0), _task("p1", 1, pinned=True), _task("u1", 1), _task("p0", 0, pinned=True)])
    assert _ids(column) == ["p0", "p1", "u0", "u1"]


def test_board_sort_key_orders_status_then_pinned_then_position():
    tasks = [
        _task("done", 0, status=TaskStatus.DONE),
        _task("todo-u", 0),
        _task("doing", 0, status=TaskStatus.IN_PROGRESS),
        _task("todo-p", 5, pinned=True),
    ]
    assert _ids(sorted(tasks, key=board_sort_key)) == ["todo-p", "todo-u", "doing", "done"]


def test_segment_index_conversion():
    column = [_task("p0", 0, pinned=True), _task("p1", 1, pinned=True), _task("u0", 0)]
    assert segment_index(column, pinned=True, combined_index=5) == 2
    assert segment_index(column, pinned=True, combined_index=-3) == 0
    assert segment_index(column, pinned=False, combined_index=3) == 1
    assert segment_index(column, pinned=False, combined_index=1) == 0


def test_insert_into_segment_clamps_index():
    column = [_task("p0", 0, pinned=True), _task("u0", 0), _task("u1", 1)]
    moved = _task("x", 0)
    assert _ids(insert_into_segment(column, moved, 99, pinned=False)) == ["p0", "u0", "u1", "x"]

    pinned = _task("y", 0, pinned=True)
    assert _ids(insert_into_segment(column, pinned, 0, pinned=True)) == ["y", "p0", "u0", "u1"]


def test_reindex_is_dense_and_idempotent():
    tasks = [_task("p", 7, pinned=True), _task("a", 3), _task("b", 10), _task("c", 999_999)]
    reindex_segments(tasks)
    first = [task.position for task in tasks]
    reindex_segments(tasks)
    assert [task.position for task in tasks] == first == [0, 0, 1, 2]


def test_reorder_within_column_keeps_pinned_ahead():
    column = column_order(
        [_task("p0", 0, pinned=True), _task("u0", 0), _task("u1", 1), _task("u2", 2)]
    )
    moving = column[3]

    result = reorder_within_column(column, moving, 0)

    # Combined index 0 falls inside the pinned segment; the unpinned task goes to its segment start
    assert _ids(result) == ["p0", "u2", "u0", "u1"]
    assert [task.position for task in result] == [0, 0, 1, 2]


def test_next_position_per_segment():
    column = [_task("p0", 0, pinned=True), _task("u0", 0), _task("u1", 1)]
    assert next_position(column, pinned=True) == 1
    assert next_position(column, pinned=False) == 2
    assert next_position([], pinned=False) == 0
