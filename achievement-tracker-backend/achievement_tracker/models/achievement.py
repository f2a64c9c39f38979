# achievement_tracker/models/achievement.py
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum
import uuid
import enum
from datetime import datetime

from achievement_tracker.core.database import Base

def enum_values(enum_class):
    """Store enum values rather than member names"""
    return [member.value for member in enum_class]

class AchievementCategory(str, enum.Enum):
    RESEARCH_DEV = "research_dev"
    PUBLICATION = "publication"
    INNOVATION_PATENTS = "innovation_patents"
    STUDENT_ENGAGEMENT = "student_engagement"
    PROFESSIONAL_DEV = "professional_dev"
    INDUSTRY_OTHERS = "industry_others"

class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    # Claimed for approval; counter increment in flight or not yet recorded
    APPROVING = "approving"
    APPROVED = "approved"
    REJECTED = "rejected"

class ReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"

class Submission(Base):
    __tablename__ = "achievement_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    faculty_id = Column(String, ForeignKey("faculty.id"), nullable=False, index=True)
    faculty_name = Column(String, nullable=True)
    department = Column(String, nullable=True)

    category = Column(SQLEnum(AchievementCategory, native_enum=False, values_callable=enum_values), nullable=False, index=True)
    achievement_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)

    pdf_url = Column(String, nullable=True)
    pdf_name = Column(String, nullable=True)

    status = Column(
        SQLEnum(SubmissionStatus, native_enum=False, values_callable=enum_values),
        nullable=False,
        default=SubmissionStatus.PENDING,
        index=True
    )
    requested_increase = Column(Integer, nullable=False, default=1)
    current_count_at_submission = Column(Integer, nullable=False, default=0)
    actual_increase_applied = Column(Integer, nullable=True)

    academic_year = Column(String, nullable=True)
    semester = Column(String, nullable=True)

    submitted_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    review_notes = Column(String, nullable=True)
    rejection_reason = Column(String, nullable=True)

    def __repr__(self):
        return f"<Submission {self.id} {self.status.value if self.status else None}>"
