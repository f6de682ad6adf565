"""
Comment and subtask endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import comments as comment_actions
from vibe.actions import subtasks as subtask_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.comment import CommentCreate, CommentOut, CommentUpdate, SubtaskCreate, SubtaskOut
from vibe.schemas.common import ActionResult

router = APIRouter()


@router.get("/issues/{issue_id}/comments", response_model=ActionResult)
async def list_comments(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comments = await comment_actions.list_comments(db, current_user, issue_id)
    return ActionResult(data=[CommentOut.model_validate(comment) for comment in comments])


@router.post("/issues/{issue_id}/comments", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def add_comment(
    issue_id: int,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Notifies the issue's creator and assignee, never the commenter"""
    comment = await comment_actions.add_comment(db, current_user, issue_id, comment_in.content)
    return ActionResult(data=CommentOut.model_validate(comment))


@router.patch("/comments/{comment_id}", response_model=ActionResult)
async def update_comment(
    comment_id: int,
    comment_in: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comment = await comment_actions.update_comment(db, current_user, comment_id, comment_in.content)
    return ActionResult(data=CommentOut.model_validate(comment))


@router.delete("/comments/{comment_id}", response_model=ActionResult)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await comment_actions.delete_comment(db, current_user, comment_id)
    return ActionResult()


@router.get("/issues/{issue_id}/subtasks", response_model=ActionResult)
async def list_subtasks(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    subtasks = await subtask_actions.list_subtasks(db, current_user, issue_id)
    return ActionResult(data=[SubtaskOut.model_validate(subtask) for subtask in subtasks])


@router.post("/issues/{issue_id}/subtasks", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    issue_id: int,
    subtask_in: SubtaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    subtask = await subtask_actions.add_subtask(db, current_user, issue_id, subtask_in.title)
    return ActionResult(data=SubtaskOut.model_validate(subtask))


@router.post("/subtasks/{subtask_id}/toggle", response_model=ActionResult)
async def toggle_subtask(
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    subtask = await subtask_actions.toggle_subtask(db, current_user, subtask_id)
    return ActionResult(data=SubtaskOut.model_validate(subtask))


@router.delete("/subtasks/{subtask_id}", response_model=ActionResult)
async def delete_subtask(
    subtask_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await subtask_actions.delete_subtask(db, current_user, subtask_id)
    return ActionResult()
