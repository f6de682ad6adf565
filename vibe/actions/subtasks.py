"""
Checklist items under an issue. Every mutation leaves both an
IssueChange and an IssueActivity row.
"""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions.common import get_issue_for_member, log_issue_activity, log_issue_change
from vibe.actions.errors import NotFound
from vibe.core.constants import IssueActivityType
from vibe.models.subtask import Subtask
from vibe.models.user import User


def _state(is_completed: bool) -> str:
    return "completed" if is_completed else "incomplete"


async def _subtask_for_member(db: AsyncSession, user: User, subtask_id: int) -> Subtask:
    subtask = await db.get(Subtask, subtask_id)
    if not subtask:
        raise NotFound("Subtask not found")
    await get_issue_for_member(db, user.id, subtask.issue_id)
    return subtask


async def list_subtasks(db: AsyncSession, user: User, issue_id: int) -> list:
    await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        select(Subtask).where(Subtask.issue_id == issue_id).order_by(Subtask.position.asc(), Subtask.id.asc())
    )
    return result.scalars().all()


async def add_subtask(db: AsyncSession, user: User, issue_id: int, title: str) -> Subtask:
    await get_issue_for_member(db, user.id, issue_id)

    last_position = await db.scalar(select(func.max(Subtask.position)).where(Subtask.issue_id == issue_id))
    subtask = Subtask(issue_id=issue_id, title=title, position=0 if last_position is None else last_position + 1)
    db.add(subtask)
    await db.flush()

    log_issue_change(db, issue_id, user.id, "subtask_added", None, title)
    log_issue_activity(db, issue_id, user.id, IssueActivityType.SUBTASK_ADDED.value,
                       {"title": title, "subtask_id": subtask.id})
    await db.commit()
    return subtask


async def toggle_subtask(db: AsyncSession, user: User, subtask_id: int) -> Subtask:
    subtask = await _subtask_for_member(db, user, subtask_id)

    old_state = subtask.is_completed
    subtask.is_completed = not old_state
    log_issue_change(db, subtask.issue_id, user.id, "subtask_toggled", _state(old_state), _state(subtask.is_completed))
    log_issue_activity(db, subtask.issue_id, user.id, IssueActivityType.SUBTASK_TOGGLED.value,
                       {"title": subtask.title, "subtask_id": subtask.id, "is_completed": subtask.is_completed})
    await db.commit()
    return subtask


async def delete_subtask(db: AsyncSession, user: User, subtask_id: int) -> None:
    subtask = await _subtask_for_member(db, user, subtask_id)

    issue_id, title = subtask.issue_id, subtask.title
    log_issue_change(db, issue_id, user.id, "subtask_deleted", title, None)
    log_issue_activity(db, issue_id, user.id, IssueActivityType.SUBTASK_DELETED.value,
                       {"title": title, "subtask_id": subtask_id})
    await db.delete(subtask)
    await db.commit()
