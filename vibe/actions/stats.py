"""
Dashboard statistics. Everything is recomputed from the issue table on
each request; nothing is cached.
"""
from datetime import timedelta
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_active_team, get_project_for_member, require_member
from vibe.core.constants import IssueStatus, PRIORITY_ORDER
from vibe.helpers.dates import day_bounds, utcnow
from vibe.models.comment import Comment
from vibe.models.issue import Issue
from vibe.models.project import Project
from vibe.models.team_member import TeamMember
from vibe.models.user import User

DUE_SOON_DAYS = 7


def format_status(status: str) -> str:
    """BACKLOG -> Backlog, IN_PROGRESS -> In Progress"""
    return status.replace("_", " ").title()


def format_priority(priority: str) -> str:
    return priority.title()


def completion_rate(done: int, total: int) -> int:
    return round(done / total * 100) if total else 0


def _chart(counts: Dict[str, int], order, formatter) -> List[dict]:
    """Chart rows in enum order, skipping empty buckets"""
    keys = [item.value for item in order]
    keys += [key for key in counts if key not in keys]
    return [
        {"name": formatter(key), "value": counts[key], "key": key}
        for key in keys
        if counts.get(key)
    ]


async def _count_by(db: AsyncSession, column, *filters) -> Dict[str, int]:
    result = await db.execute(select(column, func.count(Issue.id)).where(*filters).group_by(column))
    return {key: count for key, count in result.all()}


def _issue_row(issue: Issue) -> dict:
    return {
        "id": issue.id,
        "title": issue.title,
        "status": issue.status,
        "priority": issue.priority,
        "project_id": issue.project_id,
        "due_date": issue.due_date,
        "created_at": issue.created_at,
        "assignee": {"id": issue.assignee.id, "name": issue.assignee.name, "image": issue.assignee.image}
        if issue.assignee else None,
    }


async def get_project_stats(db: AsyncSession, user: User, project_id: int) -> dict:
    await get_project_for_member(db, user.id, project_id)
    base = (Issue.project_id == project_id, Issue.deleted_at.is_(None))

    by_status = await _count_by(db, Issue.status, *base)
    by_priority = await _count_by(db, Issue.priority, *base)
    total = sum(by_status.values())
    done = by_status.get(IssueStatus.DONE.value, 0)

    recent = await db.execute(
        select(Issue).options(selectinload(Issue.assignee)).where(*base)
        .order_by(Issue.created_at.desc(), Issue.id.desc()).limit(5)
    )
    now = utcnow()
    due_soon = await db.execute(
        select(Issue).options(selectinload(Issue.assignee))
        .where(
            *base,
            Issue.status != IssueStatus.DONE.value,
            Issue.due_date >= now,
            Issue.due_date <= now + timedelta(days=DUE_SOON_DAYS),
        )
        .order_by(Issue.due_date.asc()).limit(5)
    )

    return {
        "total_issues": total,
        "done_count": done,
        "completion_rate": completion_rate(done, total),
        "status_chart": _chart(by_status, (IssueStatus.BACKLOG, IssueStatus.IN_PROGRESS, IssueStatus.DONE), format_status),
        "priority_chart": _chart(by_priority, PRIORITY_ORDER, format_priority),
        "recent_issues": [_issue_row(issue) for issue in recent.scalars().all()],
        "due_soon_issues": [_issue_row(issue) for issue in due_soon.scalars().all()],
    }


async def get_personal_stats(db: AsyncSession, user: User) -> dict:
    mine = (Issue.assignee_id == user.id, Issue.deleted_at.is_(None))
    open_issues = (*mine, Issue.status != IssueStatus.DONE.value)

    by_status = await _count_by(db, Issue.status, *mine)
    today_start, today_end = day_bounds(utcnow())

    due_today = await db.execute(
        select(Issue).options(selectinload(Issue.assignee))
        .where(*open_issues, Issue.due_date >= today_start, Issue.due_date < today_end)
        .order_by(Issue.due_date.asc())
    )
    due_soon = await db.execute(
        select(Issue).options(selectinload(Issue.assignee))
        .where(*open_issues, Issue.due_date >= today_end,
               Issue.due_date <= utcnow() + timedelta(days=DUE_SOON_DAYS))
        .order_by(Issue.due_date.asc()).limit(5)
    )
    comments = await db.execute(
        select(Comment).options(selectinload(Comment.issue))
        .where(Comment.author_id == user.id, Comment.deleted_at.is_(None))
        .order_by(Comment.created_at.desc(), Comment.id.desc()).limit(5)
    )

    return {
        "total_assigned": sum(by_status.values()),
        "status_chart": _chart(by_status, (IssueStatus.BACKLOG, IssueStatus.IN_PROGRESS, IssueStatus.DONE), format_status),
        "due_today": [_issue_row(issue) for issue in due_today.scalars().all()],
        "due_soon": [_issue_row(issue) for issue in due_soon.scalars().all()],
        "recent_comments": [
            {
                "id": comment.id,
                "content": comment.content,
                "created_at": comment.created_at,
                "issue_id": comment.issue_id,
                "issue_title": comment.issue.title if comment.issue else None,
                "project_id": comment.issue.project_id if comment.issue else None,
            }
            for comment in comments.scalars().all()
        ],
    }


async def get_team_stats(db: AsyncSession, user: User, team_id: int, period_days: int = 7) -> dict:
    """
    Per-day trends over the last ``period_days`` days (today included),
    per-member workload and per-project status counts.
    """
    await get_active_team(db, team_id)
    await require_member(db, user.id, team_id)

    projects = (await db.execute(
        select(Project).where(Project.team_id == team_id, Project.deleted_at.is_(None)).order_by(Project.name.asc())
    )).scalars().all()
    project_ids = [project.id for project in projects]
    in_team = (Issue.project_id.in_(project_ids), Issue.deleted_at.is_(None))

    today_start, _ = day_bounds(utcnow())
    created_trend, completed_trend = [], []
    for offset in range(period_days - 1, -1, -1):
        day_start = today_start - timedelta(days=offset)
        day_end = day_start + timedelta(days=1)
        created = await db.scalar(
            select(func.count(Issue.id)).where(*in_team, Issue.created_at >= day_start, Issue.created_at < day_end)
        )
        # Approximation: DONE issues last touched that day
        completed = await db.scalar(
            select(func.count(Issue.id)).where(
                *in_team,
                Issue.status == IssueStatus.DONE.value,
                Issue.updated_at >= day_start,
                Issue.updated_at < day_end,
            )
        )
        created_trend.append({"date": day_start.date(), "count": created or 0})
        completed_trend.append({"date": day_start.date(), "count": completed or 0})

    members = (await db.execute(
        select(TeamMember).options(selectinload(TeamMember.user))
        .where(TeamMember.team_id == team_id).order_by(TeamMember.joined_at.asc(), TeamMember.id.asc())
    )).scalars().all()
    member_stats = []
    for member in members:
        assigned = await _count_by(db, Issue.status, *in_team, Issue.assignee_id == member.user_id)
        member_stats.append({
            "user_id": member.user_id,
            "name": member.user.name or member.user.email,
            "assigned": sum(assigned.values()),
            "completed": assigned.get(IssueStatus.DONE.value, 0),
        })

    project_stats = []
    for project in projects:
        counts = await _count_by(db, Issue.status, Issue.project_id == project.id, Issue.deleted_at.is_(None))
        project_stats.append({
            "project_id": project.id,
            "name": project.name,
            "backlog": counts.get(IssueStatus.BACKLOG.value, 0),
            "in_progress": counts.get(IssueStatus.IN_PROGRESS.value, 0),
            "done": counts.get(IssueStatus.DONE.value, 0),
            "total": sum(counts.values()),
        })

    return {
        "period_days": period_days,
        "created_trend": created_trend,
        "completed_trend": completed_trend,
        "members": member_stats,
        "projects": project_stats,
    }
