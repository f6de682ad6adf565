"""
Dashboard statistics. Everything is recomputed on each request.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import stats as stats_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.stats import TeamStats

router = APIRouter()


@router.get("/me", response_model=ActionResult)
async def get_personal_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await stats_actions.get_personal_stats(db, current_user)
    return ActionResult(data=stats)


@router.get("/projects/{project_id}", response_model=ActionResult)
async def get_project_stats(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await stats_actions.get_project_stats(db, current_user, project_id)
    return ActionResult(data=stats)


@router.get("/teams/{team_id}", response_model=ActionResult)
async def get_team_stats(
    team_id: int,
    period_days: int = Query(7, ge=1, le=90),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    stats = await stats_actions.get_team_stats(db, current_user, team_id, period_days)
    return ActionResult(data=TeamStats.model_validate(stats))
