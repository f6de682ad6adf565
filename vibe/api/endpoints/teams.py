"""
Team endpoints: team CRUD, membership management, invitations and the
team activity log.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vibe.actions import members as member_actions
from vibe.actions import team as team_actions
from vibe.api.dependencies import get_current_user, get_db
from vibe.models.user import User
from vibe.schemas.common import ActionResult
from vibe.schemas.team import TeamActivityPage, TeamCreate, TeamDetail, TeamListItem, TeamOut, TeamUpdate
from vibe.schemas.team_member import InviteCreate, InviteOut, RoleChange, TeamMemberOut

router = APIRouter()


@router.post("/", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def create_team(
    team_in: TeamCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Creates a new team.

    The creator becomes its OWNER.
    """
    team = await team_actions.create_team(db, current_user, team_in.name)
    return ActionResult(data=TeamOut.model_validate(team))


@router.get("/", response_model=ActionResult)
async def list_teams(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Teams the current user belongs to"""
    teams = await team_actions.list_user_teams(db, current_user)
    return ActionResult(data=[TeamListItem.model_validate(team) for team in teams])


@router.get("/{team_id}", response_model=ActionResult)
async def get_team(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    team = await team_actions.get_team(db, current_user, team_id)
    return ActionResult(data=TeamDetail.model_validate(team))


@router.put("/{team_id}", response_model=ActionResult)
async def update_team(
    team_id: int,
    team_in: TeamUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Renames a team (OWNER or ADMIN)"""
    team = await team_actions.update_team(db, current_user, team_id, team_in.name)
    return ActionResult(data=TeamOut.model_validate(team))


@router.delete("/{team_id}", response_model=ActionResult)
async def delete_team(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Soft-deletes a team and every project in it.

    Only the OWNER can delete a team.
    """
    await team_actions.delete_team(db, current_user, team_id)
    return ActionResult()


@router.post("/{team_id}/leave", response_model=ActionResult)
async def leave_team(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await team_actions.leave_team(db, current_user, team_id)
    return ActionResult()


@router.get("/{team_id}/activity", response_model=ActionResult)
async def get_team_activity(
    team_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    activity = await team_actions.get_team_activity(db, current_user, team_id, page, limit)
    return ActionResult(data=TeamActivityPage.model_validate(activity))


@router.delete("/{team_id}/members/{member_id}", response_model=ActionResult)
async def kick_member(
    team_id: int,
    member_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Removes a member from the team.

    The OWNER can never be removed and an ADMIN cannot remove another ADMIN.
    """
    await member_actions.kick_member(db, current_user, team_id, member_id)
    return ActionResult()


@router.patch("/{team_id}/members/{member_id}/role", response_model=ActionResult)
async def change_member_role(
    team_id: int,
    member_id: int,
    payload: RoleChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Changes a member's role (OWNER only).

    Choosing OWNER transfers ownership; the previous owner becomes ADMIN.
    """
    member = await member_actions.change_role(db, current_user, team_id, member_id, payload.role)
    return ActionResult(data=TeamMemberOut.model_validate(member))


@router.post("/{team_id}/invites", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def invite_member(
    team_id: int,
    payload: InviteCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    invite = await member_actions.invite_member(db, current_user, team_id, payload.email, payload.role)
    return ActionResult(data=InviteOut.model_validate(invite))


@router.get("/{team_id}/invites", response_model=ActionResult)
async def list_team_invites(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending, unexpired invitations of the team (OWNER or ADMIN)"""
    invites = await member_actions.list_team_invites(db, current_user, team_id)
    return ActionResult(data=[InviteOut.model_validate(invite) for invite in invites])
