# achievement_tracker/schemas/achievement.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from achievement_tracker.models.achievement import AchievementCategory, SubmissionStatus

class SubmissionCreate(BaseModel):
    # category and achievement_type stay plain strings; the workflow validates them
    faculty_id: str = Field(..., min_length=1)
    category: str
    achievement_type: str
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    requested_increase: int = 1

    @field_validator('faculty_id', 'category', 'achievement_type')
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip()

class ReviewRequest(BaseModel):
    action: str
    reviewer_id: str
    reason: Optional[str] = None

class ReconcileRequest(BaseModel):
    operator_id: str
    increment_applied: bool = True

class SubmissionResponse(BaseModel):
    id: str
    faculty_id: str
    faculty_name: Optional[str]
    department: Optional[str]
    category: AchievementCategory
    achievement_type: str
    title: str
    description: Optional[str]
    pdf_url: Optional[str]
    pdf_name: Optional[str]
    status: SubmissionStatus
    requested_increase: int
    current_count_at_submission: int
    actual_increase_applied: Optional[int]
    academic_year: Optional[str]
    semester: Optional[str]
    submitted_at: datetime
    reviewed_by: Optional[str]
    reviewed_at: Optional[datetime]
    review_notes: Optional[str]
    rejection_reason: Optional[str]

    class Config:
        from_attributes = True

class StatusCountsResponse(BaseModel):
    pending: int
    approving: int
    approved: int
    rejected: int
    total: int
