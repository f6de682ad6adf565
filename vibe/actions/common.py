"""
Lookups and audit helpers shared by the actions.

Every loader here filters out soft-deleted rows and raises NotFound, and
the require_* helpers raise Forbidden when the user is not a member of
the owning team.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions.errors import Forbidden, NotFound
from vibe.core.permissions import Action, Resource, has_permission
from vibe.models.issue import Issue
from vibe.models.issue_log import IssueActivity, IssueChange
from vibe.models.project import Project
from vibe.models.team import Team
from vibe.models.team_activity_log import TeamActivityLog
from vibe.models.team_member import TeamMember


async def get_membership(db: AsyncSession, user_id: int, team_id: int) -> Optional[TeamMember]:
    result = await db.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def is_team_member(db: AsyncSession, user_id: int, team_id: int) -> bool:
    return await get_membership(db, user_id, team_id) is not None


async def get_active_team(db: AsyncSession, team_id: int) -> Team:
    result = await db.execute(select(Team).where(Team.id == team_id, Team.deleted_at.is_(None)))
    team = result.scalar_one_or_none()
    if not team:
        raise NotFound("Team not found")
    return team


async def require_member(db: AsyncSession, user_id: int, team_id: int, message: str = "You are not a member of this team") -> TeamMember:
    membership = await get_membership(db, user_id, team_id)
    if not membership:
        raise Forbidden(message)
    return membership


async def require_permission(
    db: AsyncSession,
    user_id: int,
    team_id: int,
    resource: Resource,
    action: Action,
    message: str = "You don't have permission to perform this action",
) -> TeamMember:
    membership = await require_member(db, user_id, team_id)
    if not has_permission(membership.role, resource, action):
        raise Forbidden(message)
    return membership


async def get_active_project(db: AsyncSession, project_id: int) -> Project:
    """Non-deleted project whose team is not deleted either"""
    result = await db.execute(
        select(Project)
        .join(Team, Team.id == Project.team_id)
        .where(Project.id == project_id, Project.deleted_at.is_(None), Team.deleted_at.is_(None))
    )
    project = result.scalar_one_or_none()
    if not project:
        raise NotFound("Project not found")
    return project


async def get_project_for_member(db: AsyncSession, user_id: int, project_id: int):
    project = await get_active_project(db, project_id)
    membership = await require_member(db, user_id, project.team_id, "You don't have access to this project")
    return project, membership


async def get_issue_for_member(db: AsyncSession, user_id: int, issue_id: int):
    result = await db.execute(
        select(Issue)
        .join(Project, Project.id == Issue.project_id)
        .where(Issue.id == issue_id, Issue.deleted_at.is_(None), Project.deleted_at.is_(None))
    )
    issue = result.scalar_one_or_none()
    if not issue:
        raise NotFound("Issue not found")
    project = await get_active_project(db, issue.project_id)
    await require_member(db, user_id, project.team_id, "You don't have access to this issue")
    return issue, project


def log_issue_change(db: AsyncSession, issue_id: int, user_id: int, field: str,
                     old_value: Optional[str], new_value: Optional[str]) -> IssueChange:
    """Stages an IssueChange; committed with the caller's transaction"""
    change = IssueChange(
        issue_id=issue_id,
        user_id=user_id,
        field=field,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
    )
    db.add(change)
    return change


def log_issue_activity(db: AsyncSession, issue_id: int, user_id: int, type: str,
                       details: Optional[dict] = None) -> IssueActivity:
    activity = IssueActivity(issue_id=issue_id, user_id=user_id, type=type, details=details or {})
    db.add(activity)
    return activity


def log_team_activity(db: AsyncSession, team_id: int, user_id: int, action: str,
                      target_user_id: Optional[int] = None, details: Optional[dict] = None) -> TeamActivityLog:
    entry = TeamActivityLog(
        team_id=team_id,
        user_id=user_id,
        target_user_id=target_user_id,
        action=action,
        details=details or {},
    )
    db.add(entry)
    return entry


