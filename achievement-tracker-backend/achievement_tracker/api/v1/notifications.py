# achievement_tracker/api/v1/notifications.py
from fastapi import APIRouter, Depends, Query

from achievement_tracker.api.deps import get_notification_service
from achievement_tracker.schemas.notification import NotificationPage, NotificationResponse
from achievement_tracker.services.notification_service import NotificationService

router = APIRouter()

@router.get("/notifications/{faculty_id}", response_model=NotificationPage)
async def list_notifications(
    faculty_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Notifications for a faculty member, newest first"""
    notifications, total = await notification_service.list_for_faculty(faculty_id, page, limit)
    return {
        "success": True,
        "data": [NotificationResponse.model_validate(n) for n in notifications],
        "pagination": {"page": page, "limit": limit, "total": total}
    }

@router.get("/notifications/{faculty_id}/unread-count")
async def unread_count(
    faculty_id: str,
    notification_service: NotificationService = Depends(get_notification_service)
):
    count = await notification_service.unread_count(faculty_id)
    return {"success": True, "count": count}

@router.put("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    notification_service: NotificationService = Depends(get_notification_service)
):
    return await notification_service.mark_read(notification_id)

@router.put("/notifications/{faculty_id}/read-all")
async def mark_all_read(
    faculty_id: str,
    notification_service: NotificationService = Depends(get_notification_service)
):
    updated = await notification_service.mark_all_read(faculty_id)
    return {"success": True, "updated": updated}
