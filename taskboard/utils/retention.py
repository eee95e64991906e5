"""Capped, append-only sequences for the task sub-collections."""
from typing import Iterable, List, TypeVar

T = TypeVar("T")


def append_capped(items: Iterable[T], item: T, cap: int) -> List[T]:
    """Return a new list with ``item`` appended and the oldest entries dropped beyond ``cap``.

    JSON columns only track reassignment, so the input is never mutated.
    """
    result = list(items or [])
    result.append(item)
    if len(result) > cap:
        result = result[len(result) - cap:]
    return result
