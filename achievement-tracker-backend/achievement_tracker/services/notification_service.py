# achievement_tracker/services/notification_service.py
from datetime import datetime
from typing import List, Tuple
from sqlalchemy import desc, func, select, update
import logging

from achievement_tracker.core.database import SessionLocal
from achievement_tracker.core.exceptions import NotFoundError
from achievement_tracker.models.achievement import Submission
from achievement_tracker.models.notification import Notification, NotificationKind

logger = logging.getLogger(__name__)

class NotificationService:
    def __init__(self, session_factory=SessionLocal, clock=datetime.utcnow):
        self.session_factory = session_factory
        self.clock = clock

    async def notify(self, submission: Submission, kind: NotificationKind) -> Notification:
        """Record a notification for the faculty member who owns the submission"""
        title, message = self._render(submission, kind)
        notification = Notification(
            faculty_id=submission.faculty_id,
            submission_id=submission.id,
            kind=kind,
            title=title,
            message=message,
            created_at=self.clock()
        )

        with self.session_factory() as session:
            session.add(notification)
            session.commit()
            session.refresh(notification)

        return notification

    def _render(self, submission: Submission, kind: NotificationKind) -> Tuple[str, str]:
        if kind == NotificationKind.ACHIEVEMENT_APPROVED:
            return (
                "Achievement approved",
                f"Your submission '{submission.title}' was approved. "
                f"{submission.achievement_type} increased by {submission.actual_increase_applied}."
            )
        if kind == NotificationKind.ACHIEVEMENT_REJECTED:
            return (
                "Achievement rejected",
                f"Your submission '{submission.title}' was rejected: {submission.rejection_reason}"
            )
        return (
            "Achievement submitted",
            f"Your submission '{submission.title}' is awaiting review."
        )

    async def list_for_faculty(
        self,
        faculty_id: str,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Notification], int]:
        """Get one page of notifications, newest first, with the total count"""
        page = max(page, 1)

        with self.session_factory() as session:
            total = session.scalar(
                select(func.count(Notification.id)).where(Notification.faculty_id == faculty_id)
            )
            notifications = list(session.scalars(
                select(Notification)
                .where(Notification.faculty_id == faculty_id)
                .order_by(desc(Notification.created_at))
                .offset((page - 1) * limit)
                .limit(limit)
            ))

        return notifications, total or 0

    async def unread_count(self, faculty_id: str) -> int:
        with self.session_factory() as session:
            return session.scalar(
                select(func.count(Notification.id)).where(
                    Notification.faculty_id == faculty_id,
                    Notification.is_read.is_(False)
                )
            ) or 0

    async def mark_read(self, notification_id: str) -> Notification:
        with self.session_factory() as session:
            notification = session.get(Notification, notification_id)
            if notification is None:
                raise NotFoundError(f"Notification '{notification_id}' not found")

            if not notification.is_read:
                notification.is_read = True
                notification.read_at = self.clock()
                session.commit()
                session.refresh(notification)

        return notification

    async def mark_all_read(self, faculty_id: str) -> int:
        """Mark every unread notification as read; returns how many changed"""
        with self.session_factory() as session:
            result = session.execute(
                update(Notification)
                .where(
                    Notification.faculty_id == faculty_id,
                    Notification.is_read.is_(False)
                )
                .values(is_read=True, read_at=self.clock())
                .execution_options(synchronize_session=False)
            )
            session.commit()

        return result.rowcount
