from datetime import date
from typing import List
from pydantic import BaseModel


class ChartDatum(BaseModel):
    """One slice or bar: display name, count and enum key"""
    name: str
    value: int
    key: str


class TrendPoint(BaseModel):
    date: date
    count: int


class MemberStat(BaseModel):
    user_id: int
    name: str
    assigned: int
    completed: int


class ProjectStatusCounts(BaseModel):
    project_id: int
    name: str
    backlog: int = 0
    in_progress: int = 0
    done: int = 0
    total: int = 0


class TeamStats(BaseModel):
    period_days: int
    created_trend: List[TrendPoint]
    completed_trend: List[TrendPoint]
    members: List[MemberStat]
    projects: List[ProjectStatusCounts]
