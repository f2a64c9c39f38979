# achievement_tracker/schemas/notification.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from achievement_tracker.models.notification import NotificationKind

class NotificationResponse(BaseModel):
    id: str
    faculty_id: str
    submission_id: Optional[str]
    kind: NotificationKind
    title: str
    message: str
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int

class NotificationPage(BaseModel):
    success: bool = True
    data: List[NotificationResponse]
    pagination: Pagination
