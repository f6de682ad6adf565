"""
Notification inbox and the helpers other actions call to fill it.

The notify_* helpers run after the triggering action has committed and
commit on their own, so a failed notification never undoes the action.
"""
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions.errors import NotFound
from vibe.core.constants import NotificationType
from vibe.logging import get_logger
from vibe.models.notification import Notification

logger = get_logger(__name__)


async def list_notifications(db: AsyncSession, user_id: int, page: int = 1, limit: int = 20,
                             unread_only: bool = False) -> dict:
    filters = [Notification.user_id == user_id]
    if unread_only:
        filters.append(Notification.is_read.is_(False))

    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total = await db.scalar(select(func.count(Notification.id)).where(*filters))
    return {
        "notifications": result.scalars().all(),
        "total": total or 0,
        "unread_count": await unread_count(db, user_id),
    }


async def unread_count(db: AsyncSession, user_id: int) -> int:
    count = await db.scalar(
        select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return count or 0


async def _get_own_notification(db: AsyncSession, user_id: int, notification_id: int) -> Notification:
    notification = await db.get(Notification, notification_id)
    # Someone else's notification is reported as missing
    if not notification or notification.user_id != user_id:
        raise NotFound("Notification not found")
    return notification


async def mark_as_read(db: AsyncSession, user_id: int, notification_id: int) -> Notification:
    notification = await _get_own_notification(db, user_id, notification_id)
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount


async def delete_notification(db: AsyncSession, user_id: int, notification_id: int) -> None:
    notification = await _get_own_notification(db, user_id, notification_id)
    await db.delete(notification)
    await db.commit()


async def clear_read_notifications(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        delete(Notification).where(Notification.user_id == user_id, Notification.is_read.is_(True))
    )
    await db.commit()
    return result.rowcount


# ---- creation helpers ----

async def create_notification(db: AsyncSession, user_id: int, type: NotificationType, title: str,
                              message: str, link: Optional[str] = None) -> Optional[Notification]:
    """Creates and commits one notification; failures are logged, never raised"""
    notification = Notification(
        user_id=user_id,
        type=getattr(type, "value", type),
        title=title,
        message=message,
        link=link,
    )
    try:
        db.add(notification)
        await db.commit()
        return notification
    except SQLAlchemyError:
        await db.rollback()
        logger.error("Failed to create notification", user_id=user_id, type=str(type))
        return None


def issue_link(project_id: int, issue_id: int) -> str:
    return f"/projects/{project_id}/issues/{issue_id}"


async def notify_issue_assigned(db: AsyncSession, assignee_id: int, issue_id: int, issue_title: str,
                                project_id: int, assigner_name: str):
    return await create_notification(
        db,
        assignee_id,
        NotificationType.ISSUE_ASSIGNED,
        "Issue Assigned to You",
        f"{assigner_name} assigned you to: {issue_title}",
        issue_link(project_id, issue_id),
    )


async def notify_comment_added(db: AsyncSession, user_ids: Iterable[Optional[int]], exclude_user_id: int,
                               issue_id: int, issue_title: str, project_id: int, commenter_name: str) -> int:
    """Notifies each distinct user except the commenter; returns how many were created"""
    recipients = []
    for user_id in user_ids:
        if user_id and user_id != exclude_user_id and user_id not in recipients:
            recipients.append(user_id)

    created = 0
    for user_id in recipients:
        notification = await create_notification(
            db,
            user_id,
            NotificationType.COMMENT_ADDED,
            "New Comment",
            f"{commenter_name} commented on: {issue_title}",
            issue_link(project_id, issue_id),
        )
        if notification:
            created += 1
    return created


async def notify_role_changed(db: AsyncSession, user_id: int, team_name: str, new_role: str, team_id: int):
    return await create_notification(
        db,
        user_id,
        NotificationType.ROLE_CHANGED,
        "Role Updated",
        f"Your role in {team_name} has been changed to {new_role}",
        f"/teams/{team_id}",
    )


async def notify_team_invite(db: AsyncSession, user_id: int, team_name: str, inviter_name: str, team_id: int):
    return await create_notification(
        db,
        user_id,
        NotificationType.TEAM_INVITE,
        "Team Invitation",
        f"{inviter_name} invited you to join {team_name}",
        f"/teams/{team_id}",
    )


async def notify_due_date_approaching(db: AsyncSession, user_id: int, issue_id: int, issue_title: str,
                                      project_id: int, days_remaining: int):
    plural = "s" if days_remaining > 1 else ""
    return await create_notification(
        db,
        user_id,
        NotificationType.DUE_DATE_APPROACHING,
        "Due Date Approaching",
        f'"{issue_title}" is due in {days_remaining} day{plural}',
        issue_link(project_id, issue_id),
    )


async def notify_due_date_today(db: AsyncSession, user_id: int, issue_id: int, issue_title: str, project_id: int):
    return await create_notification(
        db,
        user_id,
        NotificationType.DUE_DATE_TODAY,
        "Due Today",
        f'"{issue_title}" is due today!',
        issue_link(project_id, issue_id),
    )
