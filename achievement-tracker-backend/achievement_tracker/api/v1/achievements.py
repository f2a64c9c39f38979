# achievement_tracker/api/v1/achievements.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from typing import List, Optional
from PyPDF2 import PdfReader
import io
import logging

from achievement_tracker.api.deps import get_achievement_service
from achievement_tracker.config import settings
from achievement_tracker.schemas.achievement import (
    ReconcileRequest,
    ReviewRequest,
    StatusCountsResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from achievement_tracker.services.achievement_service import AchievementService

router = APIRouter()
logger = logging.getLogger(__name__)

async def read_pdf_upload(pdf: UploadFile) -> bytes:
    """Validate an uploaded achievement PDF and return its bytes"""
    if pdf.content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    content = await pdf.read()
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size must be less than {settings.MAX_FILE_SIZE // (1024 * 1024)}MB"
        )

    try:
        reader = PdfReader(io.BytesIO(content))
        page_count = len(reader.pages)
    except Exception as e:
        logger.warning(f"Rejected unreadable PDF {pdf.filename}: {str(e)}")
        raise HTTPException(status_code=400, detail="Uploaded file is not a readable PDF")

    if page_count == 0:
        raise HTTPException(status_code=400, detail="Uploaded PDF has no pages")

    return content

@router.post("/achievements/submit", response_model=SubmissionResponse, status_code=201)
async def submit_achievement(
    faculty_id: str = Form(..., min_length=1),
    category: str = Form(...),
    achievement_type: str = Form(...),
    title: str = Form(..., max_length=200),
    description: Optional[str] = Form(None, max_length=2000),
    requested_increase: int = Form(1),
    pdf: UploadFile = File(...),
    service: AchievementService = Depends(get_achievement_service)
):
    """
    Submit an achievement with its supporting PDF for HOD review
    """
    content = await read_pdf_upload(pdf)

    candidate = SubmissionCreate(
        faculty_id=faculty_id,
        category=category,
        achievement_type=achievement_type,
        title=title,
        description=description,
        requested_increase=requested_increase
    )

    return await service.submit(
        candidate,
        pdf=content,
        pdf_name=pdf.filename,
        content_type=pdf.content_type
    )

@router.get("/achievements", response_model=List[SubmissionResponse])
async def list_submissions(
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: AchievementService = Depends(get_achievement_service)
):
    """
    List submissions newest first, optionally filtered by status
    """
    return await service.list_by_status(status, skip=skip, limit=limit)

@router.get("/achievements/counts", response_model=StatusCountsResponse)
async def submission_counts(service: AchievementService = Depends(get_achievement_service)):
    """Submission totals per status"""
    return await service.status_counts()

@router.get("/achievements/faculty/{faculty_id}", response_model=List[SubmissionResponse])
async def list_faculty_submissions(
    faculty_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: AchievementService = Depends(get_achievement_service)
):
    """A faculty member's own submissions, newest first"""
    return await service.list_by_faculty(faculty_id, skip=skip, limit=limit)

@router.get("/achievements/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    service: AchievementService = Depends(get_achievement_service)
):
    return await service.get(submission_id)

@router.post("/achievements/{submission_id}/review", response_model=SubmissionResponse)
async def review_submission(
    submission_id: str,
    review: ReviewRequest,
    service: AchievementService = Depends(get_achievement_service)
):
    """
    Approve or reject a pending submission. Approval increases the
    faculty counter by the requested amount.
    """
    return await service.review(
        submission_id,
        action=review.action,
        reviewer_id=review.reviewer_id,
        reason=review.reason
    )

@router.post("/achievements/{submission_id}/reconcile", response_model=SubmissionResponse)
async def reconcile_submission(
    submission_id: str,
    request: ReconcileRequest,
    service: AchievementService = Depends(get_achievement_service)
):
    """Operator repair for an approval left half-recorded"""
    return await service.reconcile(
        submission_id,
        operator_id=request.operator_id,
        increment_applied=request.increment_applied
    )
