"""
Projects inside a team: CRUD, archive, favorites and listings.

Editing a project is allowed to its owner and to team admins.
"""
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_active_team, get_project_for_member, require_permission
from vibe.actions.errors import Forbidden
from vibe.core.permissions import Action, Resource, has_permission
from vibe.helpers.dates import utcnow
from vibe.logging import get_logger
from vibe.models.custom_status import CustomStatus
from vibe.models.issue import Issue
from vibe.models.label import Label
from vibe.models.project import Project, UserFavoriteProject
from vibe.models.team import Team
from vibe.models.team_member import TeamMember
from vibe.models.user import User

logger = get_logger(__name__)


def can_manage_project(project: Project, membership: TeamMember, action: Action = Action.UPDATE) -> bool:
    return project.owner_id == membership.user_id or has_permission(membership.role, Resource.PROJECT, action)


async def _require_manage(db: AsyncSession, user: User, project_id: int, action: Action, message: str) -> Project:
    project, membership = await get_project_for_member(db, user.id, project_id)
    if not can_manage_project(project, membership, action):
        raise Forbidden(message)
    return project


async def create_project(db: AsyncSession, user: User, team_id: int, name: str,
                         description: Optional[str] = None) -> Project:
    await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.PROJECT, Action.CREATE)

    project = Project(team_id=team_id, owner_id=user.id, name=name, description=description or None)
    db.add(project)
    await db.commit()
    logger.info("Project created", project_id=project.id, team_id=team_id)
    return project


async def update_project(db: AsyncSession, user: User, project_id: int, **fields) -> Project:
    project = await _require_manage(db, user, project_id, Action.UPDATE,
                                    "You don't have permission to edit this project")
    if fields.get("name") is not None:
        project.name = fields["name"]
    if "description" in fields:
        project.description = fields["description"] or None
    await db.commit()
    return project


async def delete_project(db: AsyncSession, user: User, project_id: int) -> None:
    project = await _require_manage(db, user, project_id, Action.DELETE,
                                    "You don't have permission to delete this project")
    project.deleted_at = utcnow()
    await db.commit()
    logger.warning("Project deleted", project_id=project_id, user_id=user.id)


async def toggle_archive(db: AsyncSession, user: User, project_id: int) -> Project:
    project = await _require_manage(db, user, project_id, Action.UPDATE,
                                    "You don't have permission to archive this project")
    project.is_archived = not project.is_archived
    await db.commit()
    return project


async def toggle_favorite(db: AsyncSession, user: User, project_id: int) -> bool:
    """Returns the new favorite state"""
    await get_project_for_member(db, user.id, project_id)
    result = await db.execute(
        select(UserFavoriteProject).where(
            UserFavoriteProject.user_id == user.id,
            UserFavoriteProject.project_id == project_id,
        )
    )
    favorite = result.scalar_one_or_none()
    if favorite:
        await db.delete(favorite)
        is_favorite = False
    else:
        db.add(UserFavoriteProject(user_id=user.id, project_id=project_id))
        is_favorite = True
    await db.commit()
    return is_favorite


async def _issue_count(db: AsyncSession, project_id: int) -> int:
    return await db.scalar(
        select(func.count(Issue.id)).where(Issue.project_id == project_id, Issue.deleted_at.is_(None))
    ) or 0


async def _favorite_ids(db: AsyncSession, user_id: int) -> set:
    result = await db.execute(select(UserFavoriteProject.project_id).where(UserFavoriteProject.user_id == user_id))
    return set(result.scalars().all())


async def get_project(db: AsyncSession, user: User, project_id: int) -> dict:
    project, membership = await get_project_for_member(db, user.id, project_id)

    labels = await db.execute(select(Label).where(Label.project_id == project_id).order_by(Label.name.asc()))
    statuses = await db.execute(
        select(CustomStatus).where(CustomStatus.project_id == project_id).order_by(CustomStatus.position.asc())
    )
    owner = await db.get(User, project.owner_id)
    return {
        "id": project.id,
        "team_id": project.team_id,
        "owner_id": project.owner_id,
        "owner": owner,
        "name": project.name,
        "description": project.description,
        "is_archived": project.is_archived,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
        "labels": labels.scalars().all(),
        "custom_statuses": statuses.scalars().all(),
        "issue_count": await _issue_count(db, project_id),
        "is_favorite": project_id in await _favorite_ids(db, user.id),
        "current_user_role": membership.role,
    }


async def _list_items(db: AsyncSession, user: User, projects: Iterable[Project]) -> list:
    favorites = await _favorite_ids(db, user.id)
    items = []
    for project in projects:
        items.append({
            "id": project.id,
            "team_id": project.team_id,
            "team_name": project.team.name if project.team else None,
            "owner_id": project.owner_id,
            "name": project.name,
            "description": project.description,
            "is_archived": project.is_archived,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
            "issue_count": await _issue_count(db, project.id),
            "is_favorite": project.id in favorites,
        })
    return items


def _visible_projects():
    return (
        select(Project)
        .join(Team, Team.id == Project.team_id)
        .options(selectinload(Project.team))
        .where(Project.deleted_at.is_(None), Team.deleted_at.is_(None))
    )


async def list_team_projects(db: AsyncSession, user: User, team_id: int, include_archived: bool = False) -> list:
    await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.PROJECT, Action.READ)

    query = _visible_projects().where(Project.team_id == team_id)
    if not include_archived:
        query = query.where(Project.is_archived.is_(False))
    result = await db.execute(query.order_by(Project.updated_at.desc(), Project.id.desc()))
    return await _list_items(db, user, result.scalars().all())


async def list_user_projects(db: AsyncSession, user: User) -> list:
    """Non-archived projects across every team the user belongs to"""
    team_ids = select(TeamMember.team_id).where(TeamMember.user_id == user.id)
    result = await db.execute(
        _visible_projects()
        .where(Project.team_id.in_(team_ids), Project.is_archived.is_(False))
        .order_by(Project.updated_at.desc(), Project.id.desc())
    )
    return await _list_items(db, user, result.scalars().all())


async def list_favorite_projects(db: AsyncSession, user: User) -> list:
    team_ids = select(TeamMember.team_id).where(TeamMember.user_id == user.id)
    favorite_ids = select(UserFavoriteProject.project_id).where(UserFavoriteProject.user_id == user.id)
    result = await db.execute(
        _visible_projects()
        .where(Project.id.in_(favorite_ids), Project.team_id.in_(team_ids))
        .order_by(Project.updated_at.desc(), Project.id.desc())
    )
    return await _list_items(db, user, result.scalars().all())
