"""
Team lifecycle: create, rename, soft delete, leave, and the read side
(team list, team detail, activity feed).
"""
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_active_team, log_team_activity, require_member, require_permission
from vibe.actions.errors import ActionError
from vibe.core.constants import TeamActivityAction
from vibe.core.permissions import Action, Resource, TeamRole
from vibe.helpers.dates import utcnow
from vibe.logging import get_logger
from vibe.models.project import Project
from vibe.models.team import Team
from vibe.models.team_activity_log import TeamActivityLog
from vibe.models.team_member import TeamMember
from vibe.models.user import User

logger = get_logger(__name__)


async def create_team(db: AsyncSession, user: User, name: str) -> Team:
    team = Team(name=name, owner_id=user.id)
    db.add(team)
    await db.flush()

    db.add(TeamMember(team_id=team.id, user_id=user.id, role=TeamRole.OWNER.value))
    log_team_activity(db, team.id, user.id, TeamActivityAction.TEAM_CREATED.value, details={"team_name": name})
    await db.commit()

    logger.info("Team created", team_id=team.id, user_id=user.id)
    return team


async def update_team(db: AsyncSession, user: User, team_id: int, name: str) -> Team:
    team = await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.TEAM, Action.UPDATE,
                             "You don't have permission to update this team")

    old_name = team.name
    team.name = name
    log_team_activity(db, team_id, user.id, TeamActivityAction.TEAM_UPDATED.value,
                      details={"old_name": old_name, "new_name": name})
    await db.commit()
    return team


async def delete_team(db: AsyncSession, user: User, team_id: int) -> None:
    """Soft-deletes the team together with all of its projects"""
    team = await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.TEAM, Action.DELETE,
                             "Only the team owner can delete the team")

    now = utcnow()
    team.deleted_at = now
    await db.execute(
        update(Project)
        .where(Project.team_id == team_id, Project.deleted_at.is_(None))
        .values(deleted_at=now)
    )
    await db.commit()
    logger.warning("Team deleted", team_id=team_id, user_id=user.id)


async def leave_team(db: AsyncSession, user: User, team_id: int) -> None:
    await get_active_team(db, team_id)
    membership = await require_member(db, user.id, team_id)
    if membership.role == TeamRole.OWNER.value:
        raise ActionError("Owner cannot leave the team. Transfer ownership first or delete the team.")

    await db.delete(membership)
    log_team_activity(db, team_id, user.id, TeamActivityAction.MEMBER_LEFT.value)
    await db.commit()


async def _member_count(db: AsyncSession, team_id: int) -> int:
    return await db.scalar(select(func.count(TeamMember.id)).where(TeamMember.team_id == team_id)) or 0


async def _project_count(db: AsyncSession, team_id: int) -> int:
    return await db.scalar(
        select(func.count(Project.id)).where(Project.team_id == team_id, Project.deleted_at.is_(None))
    ) or 0


async def list_user_teams(db: AsyncSession, user: User) -> list:
    """Teams the user belongs to, most recently joined first"""
    result = await db.execute(
        select(TeamMember, Team)
        .join(Team, Team.id == TeamMember.team_id)
        .options(selectinload(Team.owner))
        .where(TeamMember.user_id == user.id, Team.deleted_at.is_(None))
        .order_by(TeamMember.joined_at.desc(), TeamMember.id.desc())
    )

    teams = []
    for membership, team in result.all():
        teams.append({
            "id": team.id,
            "name": team.name,
            "owner_id": team.owner_id,
            "owner_name": team.owner.name if team.owner else None,
            "created_at": team.created_at,
            "updated_at": team.updated_at,
            "role": membership.role,
            "joined_at": membership.joined_at,
            "member_count": await _member_count(db, team.id),
            "project_count": await _project_count(db, team.id),
        })
    return teams


async def get_team(db: AsyncSession, user: User, team_id: int) -> dict:
    team = await get_active_team(db, team_id)
    membership = await require_member(db, user.id, team_id)

    members = await db.execute(
        select(TeamMember)
        .options(selectinload(TeamMember.user))
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at.asc(), TeamMember.id.asc())
    )
    return {
        "id": team.id,
        "name": team.name,
        "owner_id": team.owner_id,
        "created_at": team.created_at,
        "updated_at": team.updated_at,
        "members": members.scalars().all(),
        "project_count": await _project_count(db, team_id),
        "current_user_role": membership.role,
    }


async def get_team_activity(db: AsyncSession, user: User, team_id: int, page: int = 1, limit: int = 20) -> dict:
    await get_active_team(db, team_id)
    await require_member(db, user.id, team_id)

    result = await db.execute(
        select(TeamActivityLog)
        .options(selectinload(TeamActivityLog.user), selectinload(TeamActivityLog.target_user))
        .where(TeamActivityLog.team_id == team_id)
        .order_by(TeamActivityLog.created_at.desc(), TeamActivityLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await db.scalar(select(func.count(TeamActivityLog.id)).where(TeamActivityLog.team_id == team_id))
    return {"activities": result.scalars().all(), "total": total or 0}
