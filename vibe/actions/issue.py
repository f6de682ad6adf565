"""
Issues: CRUD, assignment, status changes, Kanban moves, labels and the
board/history queries.

Every change to a tracked field is written to issue_changes in the same
transaction as the change itself.
"""
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import (
    get_issue_for_member,
    get_project_for_member,
    is_team_member,
    log_issue_activity,
    log_issue_change,
)
from vibe.actions.errors import ActionError, NotFound
from vibe.actions.notification import notify_issue_assigned
from vibe.core.config import settings
from vibe.core.constants import DEFAULT_STATUS_ORDER, IssueActivityType, IssuePriority, IssueStatus
from vibe.helpers.dates import ensure_aware, utcnow
from vibe.logging import get_logger
from vibe.models.comment import Comment
from vibe.models.custom_status import CustomStatus
from vibe.models.issue import Issue
from vibe.models.issue_log import IssueActivity, IssueChange
from vibe.models.label import Label, issue_labels
from vibe.models.project import Project
from vibe.models.subtask import Subtask
from vibe.models.user import User
from vibe.mycelery.worker import dispatch_email
from vibe.services.email import issue_assigned_email
from vibe.services.kanban import column_key, renumber, splice

logger = get_logger(__name__)

STATUS_LABELS = {
    IssueStatus.BACKLOG.value: "Backlog",
    IssueStatus.IN_PROGRESS.value: "In Progress",
    IssueStatus.DONE.value: "Done",
}


def _value(enum_or_str):
    return getattr(enum_or_str, "value", enum_or_str)


def _card_query():
    return (
        select(Issue)
        .options(selectinload(Issue.assignee), selectinload(Issue.labels))
        .execution_options(populate_existing=True)
    )


async def load_issue_card(db: AsyncSession, issue_id: int) -> Issue:
    issue = (await db.execute(_card_query().where(Issue.id == issue_id))).scalar_one_or_none()
    if not issue:
        raise NotFound("Issue not found")
    return issue


async def _validate_assignee(db: AsyncSession, project: Project, assignee_id: Optional[int]) -> Optional[User]:
    if assignee_id is None:
        return None
    if not await is_team_member(db, assignee_id, project.team_id):
        raise ActionError("Assignee is not a team member")
    return await db.get(User, assignee_id)


async def _project_labels(db: AsyncSession, project_id: int, label_ids: List[int]) -> List[Label]:
    if not label_ids:
        return []
    unique_ids = set(label_ids)
    result = await db.execute(select(Label).where(Label.id.in_(unique_ids), Label.project_id == project_id))
    labels = result.scalars().all()
    if len(labels) != len(unique_ids):
        raise ActionError("Invalid labels for this project")
    return sorted(labels, key=lambda label: label.name.lower())


async def _validate_custom_status(db: AsyncSession, project_id: int, custom_status_id: Optional[int]) -> Optional[CustomStatus]:
    if custom_status_id is None:
        return None
    status = await db.get(CustomStatus, custom_status_id)
    if not status or status.project_id != project_id:
        raise NotFound("Custom status not found")
    return status


async def _announce_assignment(db: AsyncSession, issue: Issue, project: Project, assignee: User, assigner: User) -> None:
    """In-app notification plus email; skipped when people assign themselves"""
    if assignee is None or assignee.id == assigner.id:
        return
    assigner_name = assigner.name or "Someone"
    await notify_issue_assigned(db, assignee.id, issue.id, issue.title, project.id, assigner_name)

    issue_url = f"{settings.APP_URL}/projects/{project.id}/issues/{issue.id}"
    subject, html = issue_assigned_email(issue.title, project.name, assigner_name, issue_url)
    dispatch_email(assignee.email, subject, html)


def _column_filter(project_id: int, status, custom_status_id: Optional[int]):
    filters = [Issue.project_id == project_id, Issue.deleted_at.is_(None)]
    if custom_status_id:
        filters.append(Issue.custom_status_id == custom_status_id)
    else:
        filters.extend([Issue.status == _value(status), Issue.custom_status_id.is_(None)])
    return filters


async def _next_position(db: AsyncSession, project_id: int, status, custom_status_id: Optional[int] = None) -> int:
    last = await db.scalar(select(func.max(Issue.position)).where(*_column_filter(project_id, status, custom_status_id)))
    return 0 if last is None else last + 1


async def create_issue(db: AsyncSession, user: User, project_id: int, title: str, description: Optional[str] = None,
                       priority: IssuePriority = IssuePriority.MEDIUM, assignee_id: Optional[int] = None,
                       due_date=None, label_ids: Optional[List[int]] = None) -> Issue:
    project, _ = await get_project_for_member(db, user.id, project_id)
    assignee = await _validate_assignee(db, project, assignee_id)
    labels = await _project_labels(db, project_id, label_ids or [])

    issue = Issue(
        project_id=project_id,
        creator_id=user.id,
        assignee_id=assignee_id,
        title=title,
        description=description or None,
        status=IssueStatus.BACKLOG.value,
        priority=_value(priority),
        position=await _next_position(db, project_id, IssueStatus.BACKLOG),
        due_date=due_date,
        labels=labels,
    )
    db.add(issue)
    await db.flush()
    log_issue_change(db, issue.id, user.id, "created", None, title)
    await db.commit()
    logger.info("Issue created", issue_id=issue.id, project_id=project_id)

    await _announce_assignment(db, issue, project, assignee, user)
    return await load_issue_card(db, issue.id)


async def update_issue(db: AsyncSession, user: User, issue_id: int, **fields) -> Issue:
    """Updates title, description, priority and/or due_date; one change row per modified field"""
    issue, _ = await get_issue_for_member(db, user.id, issue_id)

    if fields.get("title") is not None and fields["title"] != issue.title:
        log_issue_change(db, issue.id, user.id, "title", issue.title, fields["title"])
        issue.title = fields["title"]

    if "description" in fields:
        description = fields["description"] or None
        if description != issue.description:
            log_issue_change(db, issue.id, user.id, "description", issue.description, description)
            issue.description = description
            # Cached AI output describes the old text
            issue.ai_summary = None
            issue.ai_summary_generated_at = None
            issue.ai_suggestion = None
            issue.ai_suggestion_generated_at = None

    if fields.get("priority") is not None:
        priority = _value(fields["priority"])
        if priority != issue.priority:
            log_issue_change(db, issue.id, user.id, "priority", issue.priority, priority)
            issue.priority = priority

    if "due_date" in fields:
        old, new = ensure_aware(issue.due_date), ensure_aware(fields["due_date"])
        if old != new:
            log_issue_change(db, issue.id, user.id, "due_date",
                             old.isoformat() if old else None, new.isoformat() if new else None)
            issue.due_date = new

    await db.commit()
    return await load_issue_card(db, issue.id)


async def delete_issue(db: AsyncSession, user: User, issue_id: int) -> None:
    issue, _ = await get_issue_for_member(db, user.id, issue_id)
    issue.deleted_at = utcnow()
    await db.commit()
    logger.info("Issue deleted", issue_id=issue_id, user_id=user.id)


async def assign_issue(db: AsyncSession, user: User, issue_id: int, assignee_id: Optional[int]) -> Issue:
    issue, project = await get_issue_for_member(db, user.id, issue_id)
    new_assignee = await _validate_assignee(db, project, assignee_id)
    old_assignee = await db.get(User, issue.assignee_id) if issue.assignee_id else None

    issue.assignee_id = assignee_id
    log_issue_change(db, issue.id, user.id, "assignee",
                     old_assignee.name if old_assignee else None,
                     new_assignee.name if new_assignee else None)
    await db.commit()

    if assignee_id != (old_assignee.id if old_assignee else None):
        await _announce_assignment(db, issue, project, new_assignee, user)
    return await load_issue_card(db, issue.id)


def _status_details(issue: Issue, old_status: str, old_custom_status_id: Optional[int]) -> dict:
    return {
        "from": old_status,
        "to": issue.status,
        "from_custom_status_id": old_custom_status_id,
        "to_custom_status_id": issue.custom_status_id,
    }


async def change_status(db: AsyncSession, user: User, issue_id: int, status: IssueStatus,
                        custom_status_id: Optional[int] = None) -> Issue:
    """Moves the issue to the end of the destination column"""
    issue, project = await get_issue_for_member(db, user.id, issue_id)
    await _validate_custom_status(db, project.id, custom_status_id)

    old_status, old_custom = issue.status, issue.custom_status_id
    if old_status == _value(status) and old_custom == custom_status_id:
        return await load_issue_card(db, issue.id)

    issue.position = await _next_position(db, project.id, status, custom_status_id)
    issue.status = _value(status)
    issue.custom_status_id = custom_status_id
    log_issue_change(db, issue.id, user.id, "status", old_status, issue.status)
    log_issue_activity(db, issue.id, user.id, IssueActivityType.STATUS_CHANGED.value,
                       _status_details(issue, old_status, old_custom))
    await db.commit()
    return await load_issue_card(db, issue.id)


async def move_issue(db: AsyncSession, user: User, issue_id: int, status: IssueStatus,
                     custom_status_id: Optional[int], position: int) -> Issue:
    """
    Kanban drag and drop.

    The destination column is read in position order, the issue is spliced
    in at ``position`` (clamped), and the column is renumbered 0..n-1. Only
    rows whose position changed are written, all in one commit.
    """
    issue, project = await get_issue_for_member(db, user.id, issue_id)
    await _validate_custom_status(db, project.id, custom_status_id)

    old_status, old_custom = issue.status, issue.custom_status_id
    column_changed = old_status != _value(status) or old_custom != custom_status_id

    result = await db.execute(
        select(Issue)
        .where(*_column_filter(project.id, status, custom_status_id))
        .order_by(Issue.position.asc(), Issue.id.asc())
    )
    column = result.scalars().all()
    by_id = {entry.id: entry for entry in column}
    by_id[issue.id] = issue

    ordered_ids = splice([entry.id for entry in column], issue.id, position)
    current = {entry_id: entry.position for entry_id, entry in by_id.items()}
    if column_changed:
        # Its old position belongs to another column
        current[issue.id] = None
    for entry_id, new_position in renumber(ordered_ids, current).items():
        by_id[entry_id].position = new_position

    issue.status = _value(status)
    issue.custom_status_id = custom_status_id
    if column_changed:
        log_issue_change(db, issue.id, user.id, "status", old_status, issue.status)
        log_issue_activity(db, issue.id, user.id, IssueActivityType.STATUS_CHANGED.value,
                           _status_details(issue, old_status, old_custom))
    else:
        log_issue_activity(db, issue.id, user.id, IssueActivityType.ISSUE_MOVED.value,
                           {"position": ordered_ids.index(issue.id)})
    await db.commit()
    return await load_issue_card(db, issue.id)


async def update_labels(db: AsyncSession, user: User, issue_id: int, label_ids: List[int]) -> Issue:
    issue, project = await get_issue_for_member(db, user.id, issue_id)
    issue = await load_issue_card(db, issue.id)
    labels = await _project_labels(db, project.id, label_ids)

    old_names = ", ".join(label.name for label in sorted(issue.labels, key=lambda label: label.name.lower()))
    new_names = ", ".join(label.name for label in labels)
    issue.labels = labels
    log_issue_change(db, issue.id, user.id, "labels", old_names or None, new_names or None)
    await db.commit()
    return await load_issue_card(db, issue.id)


# ---- queries ----

async def get_issue(db: AsyncSession, user: User, issue_id: int) -> dict:
    await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        _card_query().options(selectinload(Issue.creator)).where(Issue.id == issue_id)
    )
    issue = result.scalar_one()

    subtask_total = await db.scalar(select(func.count(Subtask.id)).where(Subtask.issue_id == issue_id)) or 0
    subtask_done = await db.scalar(
        select(func.count(Subtask.id)).where(Subtask.issue_id == issue_id, Subtask.is_completed.is_(True))
    ) or 0
    comment_count = await db.scalar(
        select(func.count(Comment.id)).where(Comment.issue_id == issue_id, Comment.deleted_at.is_(None))
    ) or 0

    data = {column.name: getattr(issue, column.name) for column in Issue.__table__.columns}
    data.update({
        "assignee": issue.assignee,
        "creator": issue.creator,
        "labels": issue.labels,
        "subtask_count": subtask_total,
        "completed_subtask_count": subtask_done,
        "comment_count": comment_count,
    })
    return data


async def list_project_issues(db: AsyncSession, user: User, project_id: int, status: Optional[IssueStatus] = None,
                              priority: Optional[IssuePriority] = None, assignee_id: Optional[int] = None,
                              label_ids: Optional[List[int]] = None, search: Optional[str] = None) -> list:
    await get_project_for_member(db, user.id, project_id)

    query = _card_query().where(Issue.project_id == project_id, Issue.deleted_at.is_(None))
    if status:
        query = query.where(Issue.status == _value(status))
    if priority:
        query = query.where(Issue.priority == _value(priority))
    if assignee_id:
        query = query.where(Issue.assignee_id == assignee_id)
    if label_ids:
        labelled = select(issue_labels.c.issue_id).where(issue_labels.c.label_id.in_(label_ids))
        query = query.where(Issue.id.in_(labelled))
    if search and search.strip():
        term = search.strip()
        query = query.where(or_(
            Issue.title.icontains(term, autoescape=True),
            Issue.description.icontains(term, autoescape=True),
        ))

    result = await db.execute(query.order_by(Issue.created_at.desc(), Issue.id.desc()))
    return result.scalars().all()


async def get_issue_changes(db: AsyncSession, user: User, issue_id: int) -> list:
    await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        select(IssueChange)
        .options(selectinload(IssueChange.user))
        .where(IssueChange.issue_id == issue_id)
        .order_by(IssueChange.created_at.desc(), IssueChange.id.desc())
    )
    return result.scalars().all()


async def get_issue_activity(db: AsyncSession, user: User, issue_id: int) -> list:
    await get_issue_for_member(db, user.id, issue_id)
    result = await db.execute(
        select(IssueActivity)
        .options(selectinload(IssueActivity.user))
        .where(IssueActivity.issue_id == issue_id)
        .order_by(IssueActivity.created_at.desc(), IssueActivity.id.desc())
    )
    return result.scalars().all()


def _column(key: str, name: str, status: str, issues: list, custom_status: Optional[CustomStatus] = None) -> dict:
    wip_limit = custom_status.wip_limit if custom_status else None
    return {
        "id": key,
        "name": name,
        "status": status,
        "custom_status_id": custom_status.id if custom_status else None,
        "color": custom_status.color if custom_status else None,
        "wip_limit": wip_limit,
        "count": len(issues),
        "wip_exceeded": wip_limit is not None and len(issues) > wip_limit,
        "issues": issues,
    }


async def get_kanban_board(db: AsyncSession, user: User, project_id: int) -> dict:
    """
    One column per default status followed by the project's custom
    statuses. WIP limits only flag a column, they never block moves.
    """
    await get_project_for_member(db, user.id, project_id)

    result = await db.execute(
        _card_query()
        .where(Issue.project_id == project_id, Issue.deleted_at.is_(None))
        .order_by(Issue.position.asc(), Issue.id.asc())
    )
    grouped = {}
    for issue in result.scalars().all():
        grouped.setdefault(column_key(issue.status, issue.custom_status_id), []).append(issue)

    statuses = await db.execute(
        select(CustomStatus).where(CustomStatus.project_id == project_id).order_by(CustomStatus.position.asc())
    )

    columns = [
        _column(status.value, STATUS_LABELS[status.value], status.value, grouped.get(status.value, []))
        for status in DEFAULT_STATUS_ORDER
    ]
    for custom in statuses.scalars().all():
        key = column_key(None, custom.id)
        issues = grouped.get(key, [])
        # Custom columns carry the default status their issues were moved with
        status = issues[0].status if issues else IssueStatus.IN_PROGRESS.value
        columns.append(_column(key, custom.name, status, issues, custom))
        if custom.wip_limit is not None and len(issues) > custom.wip_limit:
            logger.warning("WIP limit exceeded", project_id=project_id, custom_status_id=custom.id,
                           count=len(issues), wip_limit=custom.wip_limit)

    return {"project_id": project_id, "columns": columns}
