"""
Label and custom status endpoints addressed by their own id.

Creation and listing live under /api/projects/{project_id}.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import labels as label_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.project import CustomStatusOut, CustomStatusUpdate, LabelOut, LabelUpdate, WipLimitUpdate

router = APIRouter()


@router.patch("/labels/{label_id}", response_model=ActionResult)
async def update_label(
    label_id: int,
    label_in: LabelUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    label = await label_actions.update_label(db, current_user, label_id, label_in.name, label_in.color)
    return ActionResult(data=LabelOut.model_validate(label))


@router.delete("/labels/{label_id}", response_model=ActionResult)
async def delete_label(
    label_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await label_actions.delete_label(db, current_user, label_id)
    return ActionResult()


@router.patch("/statuses/{status_id}", response_model=ActionResult)
async def update_custom_status(
    status_id: int,
    status_in: CustomStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    custom_status = await label_actions.update_custom_status(db, current_user, status_id,
                                                             status_in.name, status_in.color)
    return ActionResult(data=CustomStatusOut.model_validate(custom_status))


@router.put("/statuses/{status_id}/wip-limit", response_model=ActionResult)
async def set_wip_limit(
    status_id: int,
    payload: WipLimitUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """null removes the limit"""
    custom_status = await label_actions.set_wip_limit(db, current_user, status_id, payload.wip_limit)
    return ActionResult(data=CustomStatusOut.model_validate(custom_status))


@router.delete("/statuses/{status_id}", response_model=ActionResult)
async def delete_custom_status(
    status_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issues in the removed column go back to BACKLOG"""
    await label_actions.delete_custom_status(db, current_user, status_id)
    return ActionResult()
