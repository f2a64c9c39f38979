# achievement_tracker/api/deps.py
from functools import lru_cache

from achievement_tracker.config import settings
from achievement_tracker.services.achievement_service import AchievementService
from achievement_tracker.services.blob_store import FirebaseBlobStore
from achievement_tracker.services.faculty_directory import FacultyDirectory
from achievement_tracker.services.notification_service import NotificationService
from achievement_tracker.services.submission_store import SubmissionStore

@lru_cache
def get_faculty_directory() -> FacultyDirectory:
    return FacultyDirectory()

@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService()

@lru_cache
def get_achievement_service() -> AchievementService:
    return AchievementService(
        faculty_directory=get_faculty_directory(),
        submission_store=SubmissionStore(),
        blob_store=FirebaseBlobStore(),
        notification_service=get_notification_service() if settings.NOTIFICATIONS_ENABLED else None
    )
