# achievement_tracker/models/notification.py
from sqlalchemy import Column, String, DateTime, Boolean, Enum as SQLEnum
import uuid
import enum
from datetime import datetime

from achievement_tracker.core.database import Base
from achievement_tracker.models.achievement import enum_values

class NotificationKind(str, enum.Enum):
    ACHIEVEMENT_SUBMITTED = "achievement_submitted"
    ACHIEVEMENT_APPROVED = "achievement_approved"
    ACHIEVEMENT_REJECTED = "achievement_rejected"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    faculty_id = Column(String, nullable=False, index=True)
    submission_id = Column(String(36), nullable=True, index=True)
    kind = Column(SQLEnum(NotificationKind, native_enum=False, values_callable=enum_values), nullable=False)

    title = Column(String, nullable=False)
    message = Column(String, nullable=False)

    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    read_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Notification {self.kind.value if self.kind else None} for {self.faculty_id}>"
