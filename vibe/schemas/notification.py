from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationPage(BaseModel):
    notifications: List[NotificationOut]
    total: int
    unread_count: int
