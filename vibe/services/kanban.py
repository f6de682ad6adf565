"""
Kanban column ordering.

A column is the ordered list of issues sharing (status, custom_status_id).
Positions inside a column are kept contiguous from 0 after every move.
"""
from typing import Dict, List, Sequence, TypeVar

T = TypeVar("T")


def splice(column: Sequence[T], item: T, index: int) -> List[T]:
    """
    Returns ``column`` with ``item`` placed at ``index``.

    ``item`` is removed first if it is already in the column, and the index
    is clamped to the bounds of what is left.
    """
    remaining = [entry for entry in column if entry != item]
    index = max(0, min(index, len(remaining)))
    remaining.insert(index, item)
    return remaining


def renumber(ordered_ids: Sequence[int], current: Dict[int, int]) -> Dict[int, int]:
    """
    New positions for ``ordered_ids`` (0, 1, 2 ...), limited to the ids
    whose position actually changes. ``current`` maps id -> position.
    """
    return {
        issue_id: position
        for position, issue_id in enumerate(ordered_ids)
        if current.get(issue_id) != position
    }


def column_key(status: str, custom_status_id=None) -> str:
    if custom_status_id:
        return f"custom:{custom_status_id}"
    return getattr(status, "value", status)
