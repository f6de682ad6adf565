from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import notification as notification_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.notification import NotificationOut, NotificationPage

router = APIRouter()


@router.get("/", response_model=ActionResult)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first, with the total and unread counters"""
    notifications = await notification_actions.list_notifications(db, current_user.id, page, limit, unread_only)
    return ActionResult(data=NotificationPage.model_validate(notifications))


@router.get("/unread-count", response_model=ActionResult)
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await notification_actions.unread_count(db, current_user.id)
    return ActionResult(data={"count": count})


@router.post("/read-all", response_model=ActionResult)
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await notification_actions.mark_all_as_read(db, current_user.id)
    return ActionResult(data={"updated": updated})


@router.delete("/read", response_model=ActionResult)
async def clear_read_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    deleted = await notification_actions.clear_read_notifications(db, current_user.id)
    return ActionResult(data={"deleted": deleted})


@router.post("/{notification_id}/read", response_model=ActionResult)
async def mark_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await notification_actions.mark_as_read(db, current_user.id, notification_id)
    return ActionResult(data=NotificationOut.model_validate(notification))


@router.delete("/{notification_id}", response_model=ActionResult)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await notification_actions.delete_notification(db, current_user.id, notification_id)
    return ActionResult()
