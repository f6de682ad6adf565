"""
Project endpoints: project CRUD, archive / favorite toggles, labels,
custom statuses and the Kanban board.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import issue as issue_actions
from vibe.actions import labels as label_actions
from vibe.actions import project as project_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.issue import KanbanBoard
from vibe.schemas.project import (
    CustomStatusCreate,
    CustomStatusOut,
    LabelCreate,
    LabelOut,
    ProjectCreate,
    ProjectDetail,
    ProjectListItem,
    ProjectOut,
    ProjectUpdate,
)

router = APIRouter()


@router.get("/", response_model=ActionResult)
async def list_my_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Non-archived projects across all of the user's teams"""
    projects = await project_actions.list_user_projects(db, current_user)
    return ActionResult(data=[ProjectListItem.model_validate(p) for p in projects])


@router.get("/favorites", response_model=ActionResult)
async def list_favorite_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    projects = await project_actions.list_favorite_projects(db, current_user)
    return ActionResult(data=[ProjectListItem.model_validate(p) for p in projects])


@router.get("/team/{team_id}", response_model=ActionResult)
async def list_team_projects(
    team_id: int,
    include_archived: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    projects = await project_actions.list_team_projects(db, current_user, team_id, include_archived)
    return ActionResult(data=[ProjectListItem.model_validate(p) for p in projects])


@router.post("/team/{team_id}", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def create_project(
    team_id: int,
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Any team member can create a project and becomes its owner"""
    project = await project_actions.create_project(db, current_user, team_id, project_in.name,
                                                   project_in.description)
    return ActionResult(data=ProjectOut.model_validate(project))


@router.get("/{project_id}", response_model=ActionResult)
async def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    project = await project_actions.get_project(db, current_user, project_id)
    return ActionResult(data=ProjectDetail.model_validate(project))


@router.patch("/{project_id}", response_model=ActionResult)
async def update_project(
    project_id: int,
    project_in: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Project owner or team OWNER / ADMIN"""
    project = await project_actions.update_project(db, current_user, project_id,
                                                   **project_in.model_dump(exclude_unset=True))
    return ActionResult(data=ProjectOut.model_validate(project))


@router.delete("/{project_id}", response_model=ActionResult)
async def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await project_actions.delete_project(db, current_user, project_id)
    return ActionResult()


@router.post("/{project_id}/archive", response_model=ActionResult)
async def toggle_archive(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    project = await project_actions.toggle_archive(db, current_user, project_id)
    return ActionResult(data=ProjectOut.model_validate(project))


@router.post("/{project_id}/favorite", response_model=ActionResult)
async def toggle_favorite(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    is_favorite = await project_actions.toggle_favorite(db, current_user, project_id)
    return ActionResult(data={"is_favorite": is_favorite})


@router.get("/{project_id}/board", response_model=ActionResult)
async def get_board(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Kanban board: default status columns followed by custom statuses"""
    board = await issue_actions.get_kanban_board(db, current_user, project_id)
    return ActionResult(data=KanbanBoard.model_validate(board))


@router.get("/{project_id}/labels", response_model=ActionResult)
async def list_labels(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    labels = await label_actions.list_labels(db, current_user, project_id)
    return ActionResult(data=[LabelOut.model_validate(label) for label in labels])


@router.post("/{project_id}/labels", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def create_label(
    project_id: int,
    label_in: LabelCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    label = await label_actions.create_label(db, current_user, project_id, label_in.name, label_in.color)
    return ActionResult(data=LabelOut.model_validate(label))


@router.post("/{project_id}/statuses", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def create_custom_status(
    project_id: int,
    status_in: CustomStatusCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    custom_status = await label_actions.create_custom_status(db, current_user, project_id, status_in.name,
                                                             status_in.color, status_in.wip_limit)
    return ActionResult(data=CustomStatusOut.model_validate(custom_status))
