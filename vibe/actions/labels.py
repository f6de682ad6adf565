"""
Per-project labels and custom Kanban statuses.

Any team member may manage labels. Custom statuses (including their WIP
limits) belong to the project owner and team admins.
"""
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions.common import get_active_project, get_project_for_member, require_member
from vibe.actions.errors import Conflict, Forbidden, NotFound
from vibe.actions.project import can_manage_project
from vibe.core.constants import IssueStatus
from vibe.core.permissions import Action
from vibe.models.custom_status import CustomStatus
from vibe.models.issue import Issue
from vibe.models.label import Label
from vibe.models.user import User

CUSTOM_STATUS_FORBIDDEN = "Only project owner or team admin can manage custom statuses"


async def _ensure_unique_label(db: AsyncSession, project_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Label.id).where(Label.project_id == project_id, func.lower(Label.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Label.id != exclude_id)
    if (await db.execute(query)).first():
        raise Conflict("A label with this name already exists")


async def _label_for_member(db: AsyncSession, user: User, label_id: int) -> Label:
    label = await db.get(Label, label_id)
    if not label:
        raise NotFound("Label not found")
    project = await get_active_project(db, label.project_id)
    await require_member(db, user.id, project.team_id)
    return label


async def list_labels(db: AsyncSession, user: User, project_id: int) -> list:
    await get_project_for_member(db, user.id, project_id)
    result = await db.execute(select(Label).where(Label.project_id == project_id).order_by(Label.name.asc()))
    return result.scalars().all()


async def create_label(db: AsyncSession, user: User, project_id: int, name: str, color: str) -> Label:
    await get_project_for_member(db, user.id, project_id)
    await _ensure_unique_label(db, project_id, name)

    label = Label(project_id=project_id, name=name, color=color)
    db.add(label)
    await db.commit()
    return label


async def update_label(db: AsyncSession, user: User, label_id: int, name: Optional[str] = None,
                       color: Optional[str] = None) -> Label:
    label = await _label_for_member(db, user, label_id)
    if name is not None and name != label.name:
        await _ensure_unique_label(db, label.project_id, name, exclude_id=label.id)
        label.name = name
    if color is not None:
        label.color = color
    await db.commit()
    return label


async def delete_label(db: AsyncSession, user: User, label_id: int) -> None:
    label = await _label_for_member(db, user, label_id)
    await db.delete(label)
    await db.commit()


# ---- custom statuses ----

async def _require_status_manager(db: AsyncSession, user: User, project_id: int):
    project, membership = await get_project_for_member(db, user.id, project_id)
    if not can_manage_project(project, membership, Action.UPDATE):
        raise Forbidden(CUSTOM_STATUS_FORBIDDEN)
    return project


async def _status_for_manager(db: AsyncSession, user: User, status_id: int) -> CustomStatus:
    status = await db.get(CustomStatus, status_id)
    if not status:
        raise NotFound("Custom status not found")
    await _require_status_manager(db, user, status.project_id)
    return status


async def create_custom_status(db: AsyncSession, user: User, project_id: int, name: str,
                               color: str = "#6B7280", wip_limit: Optional[int] = None) -> CustomStatus:
    await _require_status_manager(db, user, project_id)

    last_position = await db.scalar(
        select(func.max(CustomStatus.position)).where(CustomStatus.project_id == project_id)
    )
    status = CustomStatus(
        project_id=project_id,
        name=name,
        color=color,
        wip_limit=wip_limit,
        position=0 if last_position is None else last_position + 1,
    )
    db.add(status)
    await db.commit()
    return status


async def update_custom_status(db: AsyncSession, user: User, status_id: int, name: Optional[str] = None,
                               color: Optional[str] = None) -> CustomStatus:
    status = await _status_for_manager(db, user, status_id)
    if name is not None:
        status.name = name
    if color is not None:
        status.color = color
    await db.commit()
    return status


async def delete_custom_status(db: AsyncSession, user: User, status_id: int) -> None:
    """Issues in the deleted column go back to BACKLOG"""
    status = await _status_for_manager(db, user, status_id)
    await db.execute(
        update(Issue)
        .where(Issue.custom_status_id == status_id)
        .values(status=IssueStatus.BACKLOG.value, custom_status_id=None)
    )
    await db.delete(status)
    await db.commit()


async def set_wip_limit(db: AsyncSession, user: User, status_id: int, wip_limit: Optional[int]) -> CustomStatus:
    status = await _status_for_manager(db, user, status_id)
    status.wip_limit = wip_limit
    await db.commit()
    return status
