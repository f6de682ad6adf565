from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from vibe.schemas.common import UserBrief


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)

    class Config:
        str_strip_whitespace = True


class CommentUpdate(CommentCreate):
    pass


class CommentOut(BaseModel):
    id: int
    issue_id: int
    author_id: int
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class SubtaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)

    class Config:
        str_strip_whitespace = True


class SubtaskOut(BaseModel):
    id: int
    issue_id: int
    title: str
    is_completed: bool
    position: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
