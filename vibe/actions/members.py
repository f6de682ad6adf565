"""
Team membership: invitations, removal and role changes.
"""
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibe.actions.common import get_active_team, get_membership, log_team_activity, require_member, require_permission
from vibe.actions.errors import ActionError, Conflict, Forbidden, NotFound
from vibe.actions.notification import notify_role_changed, notify_team_invite
from vibe.core.config import settings
from vibe.core.constants import InviteStatus, TeamActivityAction
from vibe.core.permissions import Action, Resource, TeamRole, can_change_roles
from vibe.helpers.dates import ensure_aware, utcnow
from vibe.logging import get_logger
from vibe.models.team import Team
from vibe.models.team_invite import TeamInvite
from vibe.models.team_member import TeamMember
from vibe.models.user import User
from vibe.mycelery.worker import dispatch_email
from vibe.services.email import team_invite_email

logger = get_logger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def _load_invite(db: AsyncSession, invite_id: int) -> TeamInvite:
    result = await db.execute(
        select(TeamInvite)
        .options(selectinload(TeamInvite.team), selectinload(TeamInvite.sender))
        .where(TeamInvite.id == invite_id)
    )
    invite = result.scalar_one_or_none()
    if not invite:
        raise NotFound("Invitation not found")
    return invite


async def invite_member(db: AsyncSession, user: User, team_id: int, email: str, role: str = "MEMBER") -> TeamInvite:
    team = await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.TEAM_MEMBER, Action.INVITE,
                             "You don't have permission to invite members")
    email = _normalize_email(email)

    invited_user = (await db.execute(select(User).where(func.lower(User.email) == email))).scalar_one_or_none()
    if invited_user and await get_membership(db, invited_user.id, team_id):
        raise Conflict("This user is already a team member")

    pending = await db.execute(
        select(TeamInvite).where(
            TeamInvite.team_id == team_id,
            TeamInvite.email == email,
            TeamInvite.status == InviteStatus.PENDING.value,
            TeamInvite.expires_at > utcnow(),
        )
    )
    if pending.scalars().first():
        raise Conflict("An invitation has already been sent to this email")

    invite = TeamInvite(
        team_id=team_id,
        email=email,
        role=role,
        status=InviteStatus.PENDING.value,
        sender_id=user.id,
        recipient_id=invited_user.id if invited_user else None,
        expires_at=utcnow() + timedelta(days=settings.INVITE_EXPIRE_DAYS),
    )
    db.add(invite)
    log_team_activity(db, team_id, user.id, TeamActivityAction.MEMBER_INVITED.value,
                      details={"invited_email": email, "role": role})
    await db.commit()
    invite_id = invite.id

    inviter_name = user.name or "Someone"
    if invited_user:
        await notify_team_invite(db, invited_user.id, team.name, inviter_name, team_id)

    subject, html = team_invite_email(team.name, inviter_name, role)
    dispatch_email(email, subject, html)

    logger.info("Member invited", team_id=team_id, invite_id=invite_id)
    return await _load_invite(db, invite_id)


async def respond_to_invite(db: AsyncSession, user: User, invite_id: int, accept: bool) -> TeamInvite:
    invite = await _load_invite(db, invite_id)

    if invite.email != _normalize_email(user.email):
        raise Forbidden("This invitation is not for you")
    if invite.status != InviteStatus.PENDING.value:
        raise ActionError("This invitation has already been processed")
    if ensure_aware(invite.expires_at) < utcnow():
        invite.status = InviteStatus.EXPIRED.value
        await db.commit()
        raise ActionError("This invitation has expired")
    if invite.team is None or invite.team.deleted_at is not None:
        raise NotFound("Team not found")

    if accept:
        if await get_membership(db, user.id, invite.team_id):
            raise Conflict("You are already a member of this team")
        invite.status = InviteStatus.ACCEPTED.value
        invite.accepted_at = utcnow()
        invite.recipient_id = user.id
        db.add(TeamMember(team_id=invite.team_id, user_id=user.id, role=invite.role))
        log_team_activity(db, invite.team_id, user.id, TeamActivityAction.MEMBER_JOINED.value,
                          details={"role": invite.role})
    else:
        invite.status = InviteStatus.DECLINED.value
    await db.commit()

    logger.info("Invite answered", invite_id=invite_id, accepted=accept)
    return invite


async def cancel_invite(db: AsyncSession, user: User, invite_id: int) -> None:
    invite = await _load_invite(db, invite_id)
    await require_permission(db, user.id, invite.team_id, Resource.INVITE, Action.DELETE,
                             "You don't have permission to cancel invitations")
    if invite.status != InviteStatus.PENDING.value:
        raise ActionError("Only pending invitations can be cancelled")

    team_id, email = invite.team_id, invite.email
    await db.delete(invite)
    log_team_activity(db, team_id, user.id, TeamActivityAction.INVITE_CANCELLED.value,
                      details={"invited_email": email})
    await db.commit()


def _pending_filter():
    return (TeamInvite.status == InviteStatus.PENDING.value, TeamInvite.expires_at > utcnow())


async def list_my_invites(db: AsyncSession, user: User) -> list:
    result = await db.execute(
        select(TeamInvite)
        .join(Team, Team.id == TeamInvite.team_id)
        .options(selectinload(TeamInvite.team), selectinload(TeamInvite.sender))
        .where(TeamInvite.email == _normalize_email(user.email), Team.deleted_at.is_(None), *_pending_filter())
        .order_by(TeamInvite.created_at.desc())
    )
    return result.scalars().all()


async def list_team_invites(db: AsyncSession, user: User, team_id: int) -> list:
    await get_active_team(db, team_id)
    await require_permission(db, user.id, team_id, Resource.INVITE, Action.READ,
                             "You don't have permission to view invitations")
    result = await db.execute(
        select(TeamInvite)
        .options(selectinload(TeamInvite.team), selectinload(TeamInvite.sender))
        .where(TeamInvite.team_id == team_id, *_pending_filter())
        .order_by(TeamInvite.created_at.desc())
    )
    return result.scalars().all()


async def _load_member(db: AsyncSession, team_id: int, member_id: int) -> TeamMember:
    result = await db.execute(
        select(TeamMember).options(selectinload(TeamMember.user)).where(TeamMember.id == member_id)
    )
    member = result.scalar_one_or_none()
    if not member or member.team_id != team_id:
        raise NotFound("Member not found")
    return member


async def kick_member(db: AsyncSession, user: User, team_id: int, member_id: int) -> None:
    await get_active_team(db, team_id)
    current = await require_permission(db, user.id, team_id, Resource.TEAM_MEMBER, Action.REMOVE,
                                       "You don't have permission to remove members")
    target = await _load_member(db, team_id, member_id)

    if target.role == TeamRole.OWNER.value:
        raise Forbidden("Cannot remove the team owner")
    if current.role == TeamRole.ADMIN.value and target.role == TeamRole.ADMIN.value:
        raise Forbidden("Admins cannot remove other admins")

    target_user_id = target.user_id
    member_name = target.user.name if target.user else None
    await db.delete(target)
    log_team_activity(db, team_id, user.id, TeamActivityAction.MEMBER_REMOVED.value,
                      target_user_id=target_user_id, details={"member_name": member_name})
    await db.commit()
    logger.info("Member removed", team_id=team_id, user_id=target_user_id)


async def change_role(db: AsyncSession, user: User, team_id: int, member_id: int, new_role: str) -> TeamMember:
    """
    Owner-only. Choosing OWNER hands the team over: the target becomes
    OWNER, the previous owner becomes ADMIN and Team.owner_id follows.
    """
    team = await get_active_team(db, team_id)
    current = await require_member(db, user.id, team_id)
    if not can_change_roles(current.role):
        raise Forbidden("Only the team owner can change roles")

    target = await _load_member(db, team_id, member_id)
    if target.id == current.id:
        raise ActionError("You cannot change your own role")

    old_role = target.role
    member_name = target.user.name if target.user else None
    if new_role == TeamRole.OWNER.value:
        current.role = TeamRole.ADMIN.value
        target.role = TeamRole.OWNER.value
        team.owner_id = target.user_id
        log_team_activity(db, team_id, user.id, TeamActivityAction.OWNERSHIP_TRANSFERRED.value,
                          target_user_id=target.user_id, details={"new_owner_name": member_name})
    else:
        target.role = new_role
        log_team_activity(db, team_id, user.id, TeamActivityAction.ROLE_CHANGED.value,
                          target_user_id=target.user_id,
                          details={"member_name": member_name, "old_role": old_role, "new_role": new_role})
    await db.commit()

    await notify_role_changed(db, target.user_id, team.name, new_role, team_id)
    return target
