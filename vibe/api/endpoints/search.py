from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions.search import search as run_search
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult

router = APIRouter()


@router.get("/", response_model=ActionResult)
async def search(
    q: str = Query("", max_length=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issues, projects and teams of the user's teams matching `q`"""
    results = await run_search(db, current_user, q)
    return ActionResult(data=results)
