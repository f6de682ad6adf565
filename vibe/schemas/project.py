"""
Pydantic schemas for projects, labels and custom statuses.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from vibe.schemas.common import UserBrief

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    class Config:
        str_strip_whitespace = True


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)

    class Config:
        str_strip_whitespace = True


class ProjectOut(BaseModel):
    id: int
    team_id: int
    owner_id: int
    name: str
    description: Optional[str] = None
    is_archived: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProjectListItem(ProjectOut):
    team_name: Optional[str] = None
    issue_count: int = 0
    is_favorite: bool = False


class LabelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., pattern=HEX_COLOR)

    class Config:
        str_strip_whitespace = True


class LabelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    class Config:
        str_strip_whitespace = True


class LabelOut(BaseModel):
    id: int
    project_id: int
    name: str
    color: str

    class Config:
        from_attributes = True


class CustomStatusCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)
    color: str = Field("#6B7280", pattern=HEX_COLOR)
    wip_limit: Optional[int] = Field(None, ge=1)

    class Config:
        str_strip_whitespace = True


class CustomStatusUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=30)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)

    class Config:
        str_strip_whitespace = True


class WipLimitUpdate(BaseModel):
    """null removes the limit"""
    wip_limit: Optional[int] = Field(None, ge=1)


class CustomStatusOut(BaseModel):
    id: int
    project_id: int
    name: str
    color: str
    position: int
    wip_limit: Optional[int] = None

    class Config:
        from_attributes = True


class ProjectDetail(ProjectOut):
    owner: Optional[UserBrief] = None
    labels: List[LabelOut] = []
    custom_statuses: List[CustomStatusOut] = []
    issue_count: int = 0
    is_favorite: bool = False
    current_user_role: str
