from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.models.issue import Issue
from vibe.models.project import Project
from vibe.models.team import Team
from vibe.models.team_member import TeamMember
from vibe.models.user import User

ISSUE_LIMIT = 10
PROJECT_LIMIT = 5
TEAM_LIMIT = 5


def _contains(column, term: str):
    """Case-insensitive substring match; % and _ in `term` are literal"""
    return column.icontains(term, autoescape=True)


async def search(db: AsyncSession, user: User, q: str) -> list:
    """
    Case-insensitive search over issues, projects and teams the user can
    see. Results are flat rows tagged with their type, issues first.
    """
    term = (q or "").strip()
    if not term:
        return []
    team_ids = select(TeamMember.team_id).where(TeamMember.user_id == user.id)

    issues = await db.execute(
        select(Issue)
        .join(Project, Project.id == Issue.project_id)
        .join(Team, Team.id == Project.team_id)
        .where(
            Issue.deleted_at.is_(None),
            Project.deleted_at.is_(None),
            Team.deleted_at.is_(None),
            Project.team_id.in_(team_ids),
            or_(_contains(Issue.title, term), _contains(Issue.description, term)),
        )
        .order_by(Issue.updated_at.desc(), Issue.id.desc())
        .limit(ISSUE_LIMIT)
    )
    projects = await db.execute(
        select(Project)
        .join(Team, Team.id == Project.team_id)
        .where(
            Project.deleted_at.is_(None),
            Team.deleted_at.is_(None),
            Project.team_id.in_(team_ids),
            or_(_contains(Project.name, term), _contains(Project.description, term)),
        )
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .limit(PROJECT_LIMIT)
    )
    teams = await db.execute(
        select(Team)
        .where(Team.deleted_at.is_(None), Team.id.in_(team_ids), _contains(Team.name, term))
        .order_by(Team.updated_at.desc(), Team.id.desc())
        .limit(TEAM_LIMIT)
    )

    results = [
        {"id": issue.id, "title": issue.title, "type": "issue", "project_id": issue.project_id, "status": issue.status}
        for issue in issues.scalars().all()
    ]
    results += [{"id": project.id, "title": project.name, "type": "project"} for project in projects.scalars().all()]
    results += [{"id": team.id, "title": team.name, "type": "team"} for team in teams.scalars().all()]
    return results
