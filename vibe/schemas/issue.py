"""
Pydantic schemas for issues, their history and the Kanban board.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from vibe.core.constants import IssuePriority, IssueStatus
from vibe.schemas.common import UserBrief
from vibe.schemas.project import LabelOut


class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    priority: IssuePriority = IssuePriority.MEDIUM
    assignee_id: Optional[int] = None
    due_date: Optional[datetime] = None
    label_ids: List[int] = []

    class Config:
        str_strip_whitespace = True


class IssueUpdate(BaseModel):
    """Only the fields present in the payload are changed"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    priority: Optional[IssuePriority] = None
    due_date: Optional[datetime] = None

    class Config:
        str_strip_whitespace = True


class IssueAssign(BaseModel):
    assignee_id: Optional[int] = None


class IssueStatusChange(BaseModel):
    status: IssueStatus
    custom_status_id: Optional[int] = None


class IssueMove(IssueStatusChange):
    """Kanban drop: target column and zero-based index inside it"""
    position: int = Field(..., ge=0)


class IssueLabelsUpdate(BaseModel):
    label_ids: List[int] = []


class IssueOut(BaseModel):
    id: int
    project_id: int
    creator_id: int
    assignee_id: Optional[int] = None
    custom_status_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    status: IssueStatus
    priority: IssuePriority
    position: int
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class IssueCard(IssueOut):
    """Issue with the related rows a list or board renders"""
    assignee: Optional[UserBrief] = None
    labels: List[LabelOut] = []


class IssueDetail(IssueCard):
    creator: Optional[UserBrief] = None
    ai_summary: Optional[str] = None
    ai_suggestion: Optional[str] = None
    subtask_count: int = 0
    completed_subtask_count: int = 0
    comment_count: int = 0


class IssueChangeOut(BaseModel):
    id: int
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: datetime
    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class IssueActivityOut(BaseModel):
    id: int
    type: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime
    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class KanbanColumn(BaseModel):
    id: str  # status key, or "custom:<id>"
    name: str
    status: IssueStatus
    custom_status_id: Optional[int] = None
    color: Optional[str] = None
    wip_limit: Optional[int] = None
    count: int
    wip_exceeded: bool
    issues: List[IssueCard]


class KanbanBoard(BaseModel):
    project_id: int
    columns: List[KanbanColumn]
