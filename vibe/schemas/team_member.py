"""
Pydantic schemas for Team Members and invitations.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from vibe.schemas.common import UserBrief


class TeamMemberOut(BaseModel):
    id: int
    team_id: int
    user_id: int
    role: str
    joined_at: Optional[datetime] = None
    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class RoleChange(BaseModel):
    """OWNER transfers ownership"""
    role: str = Field(..., pattern="^(OWNER|ADMIN|MEMBER)$")


class InviteCreate(BaseModel):
    email: EmailStr
    role: str = Field("MEMBER", pattern="^(ADMIN|MEMBER)$")


class InviteResponse(BaseModel):
    accept: bool


class InviteTeam(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class InviteOut(BaseModel):
    id: int
    team_id: int
    email: str
    role: str
    status: str
    expires_at: datetime
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    team: Optional[InviteTeam] = None
    sender: Optional[UserBrief] = None

    class Config:
        from_attributes = True
