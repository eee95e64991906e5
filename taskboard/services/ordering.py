"""
Board ordering model.

A column is every task of one owner in one status. It splits into two
segments, pinned and unpinned, each numbered 0..N-1 on its own. Clients
address drop targets with a *combined* index over the rendered column
(pinned segment first), which is converted to a segment-local index here.

The pure helpers work on any objects exposing ``id``, ``pinned``,
``position`` and ``status``; the ``*_for`` / ``column_for`` helpers read
the column through a ``TaskRepository``.
"""
from typing import List, Sequence, Tuple

from taskboard.models import Task, TaskStatus
from taskboard.repositories import TaskRepository

_STATUS_RANK = {status: rank for rank, status in enumerate(TaskStatus)}


def board_sort_key(task: Task) -> Tuple[int, bool, int]:
    """(status, pinned first, position): the rendered board order."""
    return _STATUS_RANK.get(task.status, len(_STATUS_RANK)), not task.pinned, task.position


def column_order(tasks: Sequence[Task]) -> List[Task]:
    """Pinned segment first, each segment by position; stable for equal positions."""
    return sorted(tasks, key=lambda task: (not task.pinned, task.position))


def split_segments(column: Sequence[Task]) -> Tuple[List[Task], List[Task]]:
    pinned = [task for task in column if task.pinned]
    unpinned = [task for task in column if not task.pinned]
    return pinned, unpinned


def reindex_segments(tasks: Sequence[Task]) -> None:
    """Renumber each segment 0.. in the order the tasks are given."""
    pinned, unpinned = split_segments(tasks)
    for index, task in enumerate(pinned):
        task.position = index
    for index, task in enumerate(unpinned):
        task.position = index


def segment_index(column: Sequence[Task], pinned: bool, combined_index: int) -> int:
    """Convert a combined column index into an index inside the target segment."""
    pinned_count = sum(1 for task in column if task.pinned)
    if pinned:
        return max(0, min(combined_index, pinned_count))
    return max(0, combined_index - pinned_count)


def insert_into_segment(column: Sequence[Task], task: Task, index: int, pinned: bool) -> List[Task]:
    """Return the column with ``task`` inserted at ``index`` of its segment (clamped)."""
    pinned_tasks, unpinned_tasks = split_segments(column)
    segment = pinned_tasks if pinned else unpinned_tasks
    segment.insert(max(0, min(index, len(segment))), task)
    return pinned_tasks + unpinned_tasks


def reorder_within_column(column: Sequence[Task], task: Task, to_index: int) -> List[Task]:
    """Move ``task`` to ``to_index`` (combined) inside its own segment and reindex."""
    pinned = task.pinned
    segment = [t for t in column if t.pinned == pinned and t.id != task.id]

    index = segment_index(column, pinned, to_index)
    index = max(0, min(index, len(segment)))
    segment.insert(index, task)

    other = [t for t in column if t.pinned != pinned]
    result = segment + other if pinned else other + segment
    reindex_segments(result)
    return result


def next_position(tasks: Sequence[Task], pinned: bool) -> int:
    positions = [task.position for task in tasks if task.pinned == pinned]
    return max(positions) + 1 if positions else 0


def column_for(repo: TaskRepository, owner_user_id: str, status: TaskStatus) -> List[Task]:
    return column_order(repo.find_by_owner_and_status(owner_user_id, status))


def next_position_for(repo: TaskRepository, owner_user_id: str, status: TaskStatus, pinned: bool) -> int:
    return next_position(repo.find_by_owner_and_status(owner_user_id, status), pinned)


def reindex_column(repo: TaskRepository, owner_user_id: str, status: TaskStatus) -> List[Task]:
    """Read the column fresh, renumber both segments and write the whole batch back."""
    column = column_for(repo, owner_user_id, status)
    reindex_segments(column)
    repo.save_all(column)
    return column
