"""
AI endpoints. Every call that reaches the provider counts against the
caller's per-minute and per-day limits; provider failures come back as a
single error string with status 502.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import ai as ai_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.ai import AIGenerateRequest, DuplicateCheckRequest, DuplicateOut, LabelSuggestRequest
from vibe.schemas.common import ActionResult
from vibe.schemas.project import LabelOut
from vibe.services.ai_client import AIClient, get_ai_client

router = APIRouter()


@router.post("/issues/{issue_id}/summary", response_model=ActionResult)
async def generate_summary(
    issue_id: int,
    payload: AIGenerateRequest = AIGenerateRequest(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIClient = Depends(get_ai_client)
):
    """Returns the cached summary unless `regenerate` is set"""
    result = await ai_actions.generate_summary(db, current_user, client, issue_id, payload.regenerate)
    return ActionResult(data=result)


@router.post("/issues/{issue_id}/suggestion", response_model=ActionResult)
async def generate_suggestion(
    issue_id: int,
    payload: AIGenerateRequest = AIGenerateRequest(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIClient = Depends(get_ai_client)
):
    result = await ai_actions.generate_suggestion(db, current_user, client, issue_id, payload.regenerate)
    return ActionResult(data=result)


@router.post("/issues/{issue_id}/comment-summary", response_model=ActionResult)
async def generate_comment_summary(
    issue_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIClient = Depends(get_ai_client)
):
    result = await ai_actions.generate_comment_summary(db, current_user, client, issue_id)
    return ActionResult(data=result)


@router.post("/projects/{project_id}/suggest-labels", response_model=ActionResult)
async def suggest_labels(
    project_id: int,
    payload: LabelSuggestRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIClient = Depends(get_ai_client)
):
    labels = await ai_actions.suggest_labels(db, current_user, client, project_id, payload.title, payload.description)
    return ActionResult(data=[LabelOut.model_validate(label) for label in labels])


@router.post("/projects/{project_id}/duplicates", response_model=ActionResult)
async def detect_duplicates(
    project_id: int,
    payload: DuplicateCheckRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: AIClient = Depends(get_ai_client)
):
    duplicates = await ai_actions.detect_duplicates(db, current_user, client, project_id, payload.title)
    return ActionResult(data=[DuplicateOut.model_validate(duplicate) for duplicate in duplicates])
