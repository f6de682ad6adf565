"""
Pydantic schemas for Team entities.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from vibe.schemas.common import UserBrief
from vibe.schemas.team_member import TeamMemberOut


class TeamCreate(BaseModel):
    """Schema for creating a new team"""
    name: str = Field(..., min_length=1, max_length=50)

    class Config:
        str_strip_whitespace = True


class TeamUpdate(TeamCreate):
    """Schema for renaming a team"""


class TeamOut(BaseModel):
    id: int
    name: str
    owner_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamListItem(TeamOut):
    """Entry of the current user's team list"""
    role: str
    owner_name: Optional[str] = None
    member_count: int = 0
    project_count: int = 0
    joined_at: Optional[datetime] = None


class TeamDetail(TeamOut):
    members: List[TeamMemberOut] = []
    project_count: int = 0
    current_user_role: str


class TeamActivityOut(BaseModel):
    id: int
    action: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime
    user: Optional[UserBrief] = None
    target_user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class TeamActivityPage(BaseModel):
    activities: List[TeamActivityOut]
    total: int
