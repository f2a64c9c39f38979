# achievement_tracker/services/faculty_directory.py
from typing import Dict, List, Optional, Union
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
import logging

from achievement_tracker.core.database import SessionLocal
from achievement_tracker.core.exceptions import NotFoundError, ValidationError
from achievement_tracker.models.achievement import Submission
from achievement_tracker.models.faculty import (
    AchievementType,
    CATEGORY_COUNTERS,
    COUNTER_FIELDS,
    Faculty,
    IDENTITY_FIELDS,
)
from achievement_tracker.models.notification import Notification

logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "DELETE_FACULTY_DETAILS"

def resolve_achievement_type(value: Union[str, AchievementType]) -> AchievementType:
    """Map a raw achievement type string onto the counter enum"""
    try:
        return AchievementType(value)
    except ValueError:
        raise ValidationError(
            f"Achievement type '{value}' is not a faculty counter. "
            f"Valid types: {', '.join(t.value for t in AchievementType)}"
        )

class FacultyDirectory:
    """
    Faculty records and their achievement counters.

    Counters are written only through increment_field, a single atomic
    UPDATE against the faculty row. Profile edits are limited to identity
    fields.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    async def get(self, faculty_id: str) -> Faculty:
        """Get a faculty record or raise NotFoundError"""
        with self.session_factory() as session:
            faculty = session.get(Faculty, faculty_id)

        if faculty is None:
            raise NotFoundError(f"Faculty with ID '{faculty_id}' not found")
        return faculty

    async def list_all(self) -> List[Faculty]:
        with self.session_factory() as session:
            return list(session.scalars(select(Faculty).order_by(Faculty.name)))

    async def create(
        self,
        faculty_id: str,
        name: str,
        department: str,
        designation: Optional[str] = None,
        email: Optional[str] = None,
        counters: Optional[Dict[str, int]] = None
    ) -> Faculty:
        """Add a faculty member, optionally seeding counters carried over from existing records"""
        if not faculty_id or not faculty_id.strip():
            raise ValidationError("Faculty ID is required")

        initial = {}
        for key, value in (counters or {}).items():
            achievement_type = resolve_achievement_type(key)
            if value is None or value < 0:
                raise ValidationError(f"Initial count for '{key}' must be zero or positive")
            initial[achievement_type.value] = value

        faculty = Faculty(
            id=faculty_id.strip(),
            name=name,
            department=department,
            designation=designation,
            email=email,
            **initial
        )

        with self.session_factory() as session:
            session.add(faculty)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ValidationError(f"Faculty with ID '{faculty_id}' already exists")
            session.refresh(faculty)

        logger.info(f"Faculty {faculty.id} created in {faculty.department}")
        return faculty

    async def update_profile(self, faculty_id: str, changes: Dict[str, Optional[str]]) -> Faculty:
        """Update identity fields. Achievement counters are rejected here."""
        counter_fields = [key for key in changes if key in COUNTER_FIELDS]
        if counter_fields:
            raise ValidationError(
                f"Achievement counters cannot be edited directly ({', '.join(counter_fields)}); "
                "submit an achievement for review instead"
            )

        unknown = [key for key in changes if key not in IDENTITY_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown faculty fields: {', '.join(unknown)}")

        with self.session_factory() as session:
            faculty = session.get(Faculty, faculty_id)
            if faculty is None:
                raise NotFoundError(f"Faculty with ID '{faculty_id}' not found")

            for field, value in changes.items():
                setattr(faculty, field, value)

            session.commit()
            session.refresh(faculty)

        return faculty

    async def increment_field(
        self,
        faculty_id: str,
        achievement_type: Union[str, AchievementType],
        amount: int
    ) -> Faculty:
        """
        Atomically add `amount` to one achievement counter.

        Runs as a single UPDATE ... SET col = col + :amount so concurrent
        increments never read a stale value.
        """
        achievement_type = resolve_achievement_type(achievement_type)
        if amount < 1:
            raise ValidationError("Increment amount must be a positive integer")

        column = getattr(Faculty, achievement_type.value)

        with self.session_factory() as session:
            result = session.execute(
                update(Faculty)
                .where(Faculty.id == faculty_id)
                .values({column: column + amount})
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFoundError(f"Faculty with ID '{faculty_id}' not found")

            session.commit()
            faculty = session.get(Faculty, faculty_id)

        logger.info(
            f"Faculty {faculty_id}: {achievement_type.value} +{amount} -> {faculty.counter(achievement_type)}"
        )
        return faculty

    async def category_summary(self, faculty_id: str) -> Dict[str, Dict]:
        """Per-category counter totals for the faculty detail view"""
        faculty = await self.get(faculty_id)

        summary = {}
        for category, types in CATEGORY_COUNTERS.items():
            counts = {t.value: faculty.counter(t) for t in types}
            summary[category.value] = {
                "counters": counts,
                "total": sum(counts.values())
            }
        return summary

    async def rankings(self) -> List[Dict]:
        """Faculty ordered by total achievements, highest first; ties keep name order"""
        ranked = sorted(
            await self.list_all(),
            key=lambda f: sum(f.counters().values()),
            reverse=True
        )
        return [
            {
                "rank": position,
                "id": faculty.id,
                "name": faculty.name,
                "department": faculty.department,
                "designation": faculty.designation,
                "total": sum(faculty.counters().values())
            }
            for position, faculty in enumerate(ranked, start=1)
        ]

    async def delete(self, faculty_id: str, confirmation: str, deleted_by: str) -> Dict:
        """
        Remove a faculty member together with their submissions and
        notifications, in one transaction.

        `confirmation` must be exactly DELETE_CONFIRMATION. Stored PDFs are
        left in the blob store.
        """
        if confirmation != DELETE_CONFIRMATION:
            raise ValidationError(f"Confirmation text must be exactly: {DELETE_CONFIRMATION}")
        if not deleted_by or not deleted_by.strip():
            raise ValidationError("Deleting faculty requires the ID of who is deleting")

        with self.session_factory() as session:
            faculty = session.get(Faculty, faculty_id)
            if faculty is None:
                raise NotFoundError(f"Faculty with ID '{faculty_id}' not found")

            deleted = {
                "id": faculty.id,
                "name": faculty.name,
                "department": faculty.department,
                "designation": faculty.designation
            }
            notifications = session.execute(
                delete(Notification).where(Notification.faculty_id == faculty_id)
            ).rowcount
            submissions = session.execute(
                delete(Submission).where(Submission.faculty_id == faculty_id)
            ).rowcount
            session.delete(faculty)
            session.commit()

        logger.warning(
            f"Faculty {faculty_id} deleted by {deleted_by}: "
            f"{submissions} submissions, {notifications} notifications removed"
        )
        deleted.update({"submissions_deleted": submissions, "notifications_deleted": notifications})
        return deleted
