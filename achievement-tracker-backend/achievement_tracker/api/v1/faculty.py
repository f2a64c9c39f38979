# achievement_tracker/api/v1/faculty.py
from fastapi import APIRouter, Depends, Query
from typing import Any, Dict, List

from achievement_tracker.api.deps import get_faculty_directory
from achievement_tracker.schemas.faculty import (
    CategorySummary,
    FacultyCreate,
    FacultyDeleted,
    FacultyRanking,
    FacultyResponse,
)
from achievement_tracker.services.faculty_directory import FacultyDirectory

router = APIRouter()

@router.get("/faculty", response_model=List[FacultyResponse])
async def list_faculty(directory: FacultyDirectory = Depends(get_faculty_directory)):
    """All faculty members ordered by name"""
    return [FacultyResponse.from_faculty(f) for f in await directory.list_all()]

@router.post("/faculty", response_model=FacultyResponse, status_code=201)
async def create_faculty(
    faculty_data: FacultyCreate,
    directory: FacultyDirectory = Depends(get_faculty_directory)
):
    faculty = await directory.create(
        faculty_id=faculty_data.id,
        name=faculty_data.name,
        department=faculty_data.department,
        designation=faculty_data.designation,
        email=faculty_data.email,
        counters=faculty_data.counters
    )
    return FacultyResponse.from_faculty(faculty)

@router.get("/faculty/rankings", response_model=List[FacultyRanking])
async def faculty_rankings(directory: FacultyDirectory = Depends(get_faculty_directory)):
    """Top performers: faculty ranked by total achievements"""
    return await directory.rankings()

@router.get("/faculty/{faculty_id}", response_model=FacultyResponse)
async def get_faculty(
    faculty_id: str,
    directory: FacultyDirectory = Depends(get_faculty_directory)
):
    return FacultyResponse.from_faculty(await directory.get(faculty_id))

@router.patch("/faculty/{faculty_id}", response_model=FacultyResponse)
async def update_faculty(
    faculty_id: str,
    update_data: Dict[str, Any],
    directory: FacultyDirectory = Depends(get_faculty_directory)
):
    """
    Update profile fields. Achievement counts only change through
    approved submissions and are rejected here.
    """
    faculty = await directory.update_profile(faculty_id, update_data)
    return FacultyResponse.from_faculty(faculty)

@router.get("/faculty/{faculty_id}/summary", response_model=Dict[str, CategorySummary])
async def faculty_summary(
    faculty_id: str,
    directory: FacultyDirectory = Depends(get_faculty_directory)
):
    """Achievement totals grouped by category"""
    return await directory.category_summary(faculty_id)

@router.delete("/faculty/{faculty_id}", response_model=FacultyDeleted)
async def delete_faculty(
    faculty_id: str,
    confirmation: str = Query(...),
    deleted_by: str = Query(...),
    directory: FacultyDirectory = Depends(get_faculty_directory)
):
    """
    Permanently remove a faculty member with their submissions and
    notifications. `confirmation` must be DELETE_FACULTY_DETAILS.
    """
    return await directory.delete(faculty_id, confirmation=confirmation, deleted_by=deleted_by)
