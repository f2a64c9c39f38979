# achievement_tracker/schemas/faculty.py
from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime

class FacultyCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=2, max_length=200)
    department: str = Field(..., min_length=2, max_length=200)
    designation: Optional[str] = None
    email: Optional[str] = None
    # Counts carried over from existing records, keyed by achievement type
    counters: Dict[str, int] = {}

class FacultyResponse(BaseModel):
    id: str
    name: str
    department: str
    designation: Optional[str]
    email: Optional[str]
    counters: Dict[str, int]
    created_at: Optional[datetime]

    @classmethod
    def from_faculty(cls, faculty) -> "FacultyResponse":
        return cls(
            id=faculty.id,
            name=faculty.name,
            department=faculty.department,
            designation=faculty.designation,
            email=faculty.email,
            counters=faculty.counters(),
            created_at=faculty.created_at
        )

class CategorySummary(BaseModel):
    counters: Dict[str, int]
    total: int

class FacultyRanking(BaseModel):
    rank: int
    id: str
    name: str
    department: str
    designation: Optional[str]
    total: int

class FacultyDeleted(BaseModel):
    id: str
    name: str
    department: str
    designation: Optional[str]
    submissions_deleted: int
    notifications_deleted: int
