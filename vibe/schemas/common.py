from typing import Any, Optional
from pydantic import BaseModel


class ActionResult(BaseModel):
    """Envelope returned by every endpoint"""
    success: bool = True
    error: Optional[str] = None
    data: Optional[Any] = None


class UserBrief(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None

    class Config:
        from_attributes = True
