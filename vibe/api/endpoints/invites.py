from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import members as member_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.team_member import InviteOut, InviteResponse

router = APIRouter()


@router.get("/", response_model=ActionResult)
async def list_my_invites(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending invitations addressed to the current user's email"""
    invites = await member_actions.list_my_invites(db, current_user)
    return ActionResult(data=[InviteOut.model_validate(invite) for invite in invites])


@router.post("/{invite_id}/respond", response_model=ActionResult)
async def respond_to_invite(
    invite_id: int,
    payload: InviteResponse,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invite = await member_actions.respond_to_invite(db, current_user, invite_id, payload.accept)
    return ActionResult(data=InviteOut.model_validate(invite))


@router.delete("/{invite_id}", response_model=ActionResult)
async def cancel_invite(
    invite_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await member_actions.cancel_invite(db, current_user, invite_id)
    return ActionResult()
