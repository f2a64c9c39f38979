# achievement_tracker/services/submission_store.py
from typing import Any, Dict, List, Optional
from sqlalchemy import desc, func, select, update
import logging

from achievement_tracker.core.database import SessionLocal
from achievement_tracker.core.exceptions import ConflictError, NotFoundError
from achievement_tracker.models.achievement import Submission, SubmissionStatus

logger = logging.getLogger(__name__)

class SubmissionStore:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    async def insert(self, submission: Submission) -> Submission:
        with self.session_factory() as session:
            session.add(submission)
            session.commit()
            session.refresh(submission)
        return submission

    async def get(self, submission_id: str) -> Submission:
        with self.session_factory() as session:
            submission = session.get(Submission, submission_id)

        if submission is None:
            raise NotFoundError(f"Submission '{submission_id}' not found")
        return submission

    async def update_status(
        self,
        submission_id: str,
        expected_status: SubmissionStatus,
        fields: Dict[str, Any]
    ) -> Submission:
        """
        Compare-and-set on status.

        The UPDATE only matches while the row is still in `expected_status`.
        Zero rows affected means either the submission is gone (NotFoundError)
        or another writer moved it first (ConflictError).
        """
        with self.session_factory() as session:
            result = session.execute(
                update(Submission)
                .where(
                    Submission.id == submission_id,
                    Submission.status == expected_status
                )
                .values(**fields)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                session.rollback()
                current = session.get(Submission, submission_id)
                if current is None:
                    raise NotFoundError(f"Submission '{submission_id}' not found")
                raise ConflictError(
                    f"Submission '{submission_id}' is {current.status.value}, "
                    f"expected {expected_status.value}"
                )

            session.commit()
            return session.get(Submission, submission_id)

    async def list_by_status(
        self,
        status: Optional[SubmissionStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Submission]:
        query = select(Submission)
        if status is not None:
            query = query.where(Submission.status == status)
        return self._page(query, skip, limit)

    async def list_by_faculty(
        self,
        faculty_id: str,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Submission]:
        query = select(Submission).where(Submission.faculty_id == faculty_id)
        return self._page(query, skip, limit)

    async def count_by_status(self) -> Dict[SubmissionStatus, int]:
        with self.session_factory() as session:
            rows = session.execute(
                select(Submission.status, func.count(Submission.id)).group_by(Submission.status)
            ).all()

        counts = {status: 0 for status in SubmissionStatus}
        for status, count in rows:
            counts[status] = count
        return counts

    def _page(self, query, skip: int, limit: Optional[int]) -> List[Submission]:
        query = query.order_by(desc(Submission.submitted_at)).offset(skip)
        if limit is not None:
            query = query.limit(limit)

        with self.session_factory() as session:
            return list(session.scalars(query))
