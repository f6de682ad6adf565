"""
Issue endpoints: CRUD, assignment, status changes, Kanban moves, labels
and the per-issue change / activity history.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import issue as issue_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.core.constants import IssuePriority, IssueStatus
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.issue import (
    IssueActivityOut,
    IssueAssign,
    IssueCard,
    IssueChangeOut,
    IssueCreate,
    IssueDetail,
    IssueLabelsUpdate,
    IssueMove,
    IssueStatusChange,
    IssueUpdate,
)

router = APIRouter()


@router.get("/project/{project_id}", response_model=ActionResult)
async def list_project_issues(
    project_id: int,
    status_filter: Optional[IssueStatus] = Query(None, alias="status"),
    priority: Optional[IssuePriority] = Query(None),
    assignee_id: Optional[int] = Query(None),
    label_ids: Optional[List[int]] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first; every filter is optional"""
    issues = await issue_actions.list_project_issues(db, current_user, project_id, status_filter, priority,
                                                     assignee_id, label_ids, search)
    return ActionResult(data=[IssueCard.model_validate(issue) for issue in issues])


@router.post("/project/{project_id}", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def create_issue(
    project_id: int,
    issue_in: IssueCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Creates an issue at the bottom of the BACKLOG column.

    The assignee must belong to the project's team and every label must
    belong to the project.
    """
    issue = await issue_actions.create_issue(
        db, current_user, project_id,
        title=issue_in.title,
        description=issue_in.description,
        priority=issue_in.priority,
        assignee_id=issue_in.assignee_id,
        due_date=issue_in.due_date,
        label_ids=issue_in.label_ids,
    )
    return ActionResult(data=IssueCard.model_validate(issue))


@router.get("/{issue_id}", response_model=ActionResult)
async def get_issue(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_actions.get_issue(db, current_user, issue_id)
    return ActionResult(data=IssueDetail.model_validate(issue))


@router.patch("/{issue_id}", response_model=ActionResult)
async def update_issue(
    issue_id: int,
    issue_in: IssueUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_actions.update_issue(db, current_user, issue_id, **issue_in.model_dump(exclude_unset=True))
    return ActionResult(data=IssueCard.model_validate(issue))


@router.delete("/{issue_id}", response_model=ActionResult)
async def delete_issue(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await issue_actions.delete_issue(db, current_user, issue_id)
    return ActionResult()


@router.put("/{issue_id}/assignee", response_model=ActionResult)
async def assign_issue(
    issue_id: int,
    payload: IssueAssign,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """null unassigns"""
    issue = await issue_actions.assign_issue(db, current_user, issue_id, payload.assignee_id)
    return ActionResult(data=IssueCard.model_validate(issue))


@router.put("/{issue_id}/status", response_model=ActionResult)
async def change_status(
    issue_id: int,
    payload: IssueStatusChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_actions.change_status(db, current_user, issue_id, payload.status, payload.custom_status_id)
    return ActionResult(data=IssueCard.model_validate(issue))


@router.put("/{issue_id}/move", response_model=ActionResult)
async def move_issue(
    issue_id: int,
    payload: IssueMove,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Kanban drag and drop.

    `position` is the zero-based index inside the destination column; larger
    values drop the issue at the end.
    """
    issue = await issue_actions.move_issue(db, current_user, issue_id, payload.status,
                                           payload.custom_status_id, payload.position)
    return ActionResult(data=IssueCard.model_validate(issue))


@router.put("/{issue_id}/labels", response_model=ActionResult)
async def update_labels(
    issue_id: int,
    payload: IssueLabelsUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_actions.update_labels(db, current_user, issue_id, payload.label_ids)
    return ActionResult(data=IssueCard.model_validate(issue))


@router.get("/{issue_id}/changes", response_model=ActionResult)
async def get_issue_changes(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    changes = await issue_actions.get_issue_changes(db, current_user, issue_id)
    return ActionResult(data=[IssueChangeOut.model_validate(change) for change in changes])


@router.get("/{issue_id}/activity", response_model=ActionResult)
async def get_issue_activity(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    activities = await issue_actions.get_issue_activity(db, current_user, issue_id)
    return ActionResult(data=[IssueActivityOut.model_validate(activity) for activity in activities])
