# achievement_tracker/services/achievement_service.py
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union
import logging
import uuid

from achievement_tracker.core.exceptions import (
    InvalidStateError,
    PartialFailureError,
    ValidationError,
)
from achievement_tracker.models.achievement import (
    AchievementCategory,
    ReviewAction,
    Submission,
    SubmissionStatus,
)
from achievement_tracker.models.notification import NotificationKind
from achievement_tracker.schemas.achievement import SubmissionCreate
from achievement_tracker.services.faculty_directory import FacultyDirectory, resolve_achievement_type
from achievement_tracker.services.submission_store import SubmissionStore
from achievement_tracker.utils.academic_calendar import academic_year, semester

logger = logging.getLogger(__name__)

class AchievementService:
    """
    Achievement submission and review workflow.

    A submission starts ``pending`` and ends ``approved`` or ``rejected``.
    Approval first claims the submission with a compare-and-set
    (``pending -> approving``), then increments the faculty counter, then
    records ``approved``. Only the caller that wins the claim touches the
    counter, so each submission increments it at most once.
    """

    def __init__(
        self,
        faculty_directory: Optional[FacultyDirectory] = None,
        submission_store: Optional[SubmissionStore] = None,
        blob_store=None,
        notification_service=None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.faculty_directory = faculty_directory or FacultyDirectory()
        self.submission_store = submission_store or SubmissionStore()
        self.blob_store = blob_store
        self.notification_service = notification_service
        self.clock = clock

    async def submit(
        self,
        candidate: SubmissionCreate,
        pdf: Optional[bytes] = None,
        pdf_name: Optional[str] = None,
        content_type: str = "application/pdf"
    ) -> Submission:
        """
        Create a pending submission.

        Faculty and achievement type are validated before the PDF is stored,
        so a rejected candidate never leaves a blob behind. If the insert
        fails after the upload, the blob is deleted best-effort and the
        insert error is raised.
        """
        category = self._resolve_category(candidate.category)
        if candidate.requested_increase is None or candidate.requested_increase < 1:
            raise ValidationError("Requested increase must be a positive integer")

        title = (candidate.title or "").strip()
        if not title:
            raise ValidationError("Title is required")

        achievement_type = resolve_achievement_type(candidate.achievement_type)
        faculty = await self.faculty_directory.get(candidate.faculty_id)

        pdf_url = None
        if pdf is not None:
            if self.blob_store is None:
                raise RuntimeError("No blob store configured for PDF uploads")
            pdf_url = await self.blob_store.put(pdf, content_type, pdf_name)

        now = self.clock()
        submission = Submission(
            id=str(uuid.uuid4()),
            faculty_id=faculty.id,
            faculty_name=faculty.name,
            department=faculty.department,
            category=category,
            achievement_type=achievement_type.value,
            title=title,
            description=candidate.description,
            pdf_url=pdf_url,
            pdf_name=pdf_name,
            status=SubmissionStatus.PENDING,
            requested_increase=candidate.requested_increase,
            current_count_at_submission=faculty.counter(achievement_type),
            academic_year=academic_year(now),
            semester=semester(now),
            submitted_at=now
        )

        try:
            submission = await self.submission_store.insert(submission)
        except Exception as e:
            logger.error(f"Submission insert failed for faculty {faculty.id}: {str(e)}")
            if pdf_url:
                await self._discard_blob(pdf_url)
            raise

        logger.info(
            f"Submission {submission.id} created: faculty={faculty.id} "
            f"type={achievement_type.value} current={submission.current_count_at_submission}"
        )
        await self._notify(submission, NotificationKind.ACHIEVEMENT_SUBMITTED)
        return submission

    async def review(
        self,
        submission_id: str,
        action: Union[str, ReviewAction],
        reviewer_id: str,
        reason: Optional[str] = None
    ) -> Submission:
        """Approve or reject a pending submission"""
        action = self._resolve_action(action)
        if not reviewer_id or not reviewer_id.strip():
            raise ValidationError("Reviewer ID is required")

        reason = reason.strip() if reason else None
        if action == ReviewAction.REJECT and not reason:
            raise ValidationError("A reason is required to reject a submission")

        submission = await self.submission_store.get(submission_id)
        if submission.status != SubmissionStatus.PENDING:
            raise InvalidStateError(
                f"Submission '{submission_id}' is already {submission.status.value}"
            )

        if action == ReviewAction.REJECT:
            return await self._reject(submission, reviewer_id, reason)
        return await self._approve(submission, reviewer_id, reason)

    async def _reject(self, submission: Submission, reviewer_id: str, reason: str) -> Submission:
        rejected = await self.submission_store.update_status(
            submission.id,
            SubmissionStatus.PENDING,
            {
                "status": SubmissionStatus.REJECTED,
                "reviewed_by": reviewer_id,
                "reviewed_at": self.clock(),
                "rejection_reason": reason
            }
        )

        logger.info(f"Submission {submission.id} rejected by {reviewer_id}")
        await self._notify(rejected, NotificationKind.ACHIEVEMENT_REJECTED)
        return rejected

    async def _approve(self, submission: Submission, reviewer_id: str, notes: Optional[str]) -> Submission:
        # The faculty record may have changed since submission; check against it now
        achievement_type = resolve_achievement_type(submission.achievement_type)
        faculty = await self.faculty_directory.get(submission.faculty_id)
        before = faculty.counter(achievement_type)

        await self.submission_store.update_status(
            submission.id,
            SubmissionStatus.PENDING,
            {
                "status": SubmissionStatus.APPROVING,
                "reviewed_by": reviewer_id,
                "reviewed_at": self.clock(),
                "review_notes": notes
            }
        )

        try:
            faculty = await self.faculty_directory.increment_field(
                submission.faculty_id,
                achievement_type,
                submission.requested_increase
            )
        except Exception as e:
            logger.error(f"Counter increment failed for submission {submission.id}: {str(e)}")
            await self._release_claim(submission.id)
            raise

        try:
            approved = await self.submission_store.update_status(
                submission.id,
                SubmissionStatus.APPROVING,
                {
                    "status": SubmissionStatus.APPROVED,
                    "actual_increase_applied": submission.requested_increase
                }
            )
        except Exception as e:
            logger.error(
                f"PARTIAL FAILURE: faculty {submission.faculty_id} {achievement_type.value} "
                f"was increased by {submission.requested_increase} but submission {submission.id} "
                f"could not be marked approved: {str(e)}"
            )
            raise PartialFailureError(
                f"Counter was incremented but submission '{submission.id}' was not marked approved; "
                "operator reconciliation required",
                submission_id=submission.id,
                faculty_id=submission.faculty_id,
                increase_applied=submission.requested_increase
            ) from e

        logger.info(
            f"Submission {submission.id} approved by {reviewer_id}: "
            f"{achievement_type.value} {before} -> {faculty.counter(achievement_type)}"
        )
        await self._notify(approved, NotificationKind.ACHIEVEMENT_APPROVED)
        return approved

    async def _release_claim(self, submission_id: str):
        try:
            await self.submission_store.update_status(
                submission_id,
                SubmissionStatus.APPROVING,
                {
                    "status": SubmissionStatus.PENDING,
                    "reviewed_by": None,
                    "reviewed_at": None,
                    "review_notes": None
                }
            )
        except Exception as e:
            logger.error(f"Could not return submission {submission_id} to pending: {str(e)}")

    async def reconcile(
        self,
        submission_id: str,
        operator_id: str,
        increment_applied: bool = True
    ) -> Submission:
        """
        Resolve a submission left in ``approving``.

        When the operator confirms the counter was incremented the submission
        is recorded as approved without touching the counter again; otherwise
        it goes back to pending for a fresh review.
        """
        if not operator_id or not operator_id.strip():
            raise ValidationError("Operator ID is required")

        submission = await self.submission_store.get(submission_id)
        if submission.status != SubmissionStatus.APPROVING:
            raise InvalidStateError(
                f"Submission '{submission_id}' is {submission.status.value}, nothing to reconcile"
            )

        if not increment_applied:
            reopened = await self.submission_store.update_status(
                submission_id,
                SubmissionStatus.APPROVING,
                {
                    "status": SubmissionStatus.PENDING,
                    "reviewed_by": None,
                    "reviewed_at": None,
                    "review_notes": None
                }
            )
            logger.warning(f"Submission {submission_id} returned to pending by operator {operator_id}")
            return reopened

        approved = await self.submission_store.update_status(
            submission_id,
            SubmissionStatus.APPROVING,
            {
                "status": SubmissionStatus.APPROVED,
                "actual_increase_applied": submission.requested_increase
            }
        )
        logger.warning(f"Submission {submission_id} reconciled as approved by operator {operator_id}")
        await self._notify(approved, NotificationKind.ACHIEVEMENT_APPROVED)
        return approved

    async def get(self, submission_id: str) -> Submission:
        return await self.submission_store.get(submission_id)

    async def list_by_status(
        self,
        status: Optional[Union[str, SubmissionStatus]] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Submission]:
        """Submissions newest first, optionally filtered by status"""
        if status is not None:
            status = self._resolve_status(status)
        return await self.submission_store.list_by_status(status, skip=skip, limit=limit)

    async def list_by_faculty(
        self,
        faculty_id: str,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Submission]:
        return await self.submission_store.list_by_faculty(faculty_id, skip=skip, limit=limit)

    async def status_counts(self) -> Dict[str, int]:
        counts = await self.submission_store.count_by_status()
        result = {status.value: count for status, count in counts.items()}
        result["total"] = sum(counts.values())
        return result

    async def _discard_blob(self, url: str):
        try:
            await self.blob_store.delete(url)
            logger.info(f"Cleaned up orphaned blob {url}")
        except Exception as e:
            logger.warning(f"Could not clean up orphaned blob {url}: {str(e)}")

    async def _notify(self, submission: Submission, kind: NotificationKind):
        if self.notification_service is None:
            return
        try:
            await self.notification_service.notify(submission, kind)
        except Exception as e:
            logger.warning(f"Notification {kind.value} for submission {submission.id} failed: {str(e)}")

    @staticmethod
    def _resolve_category(value) -> AchievementCategory:
        try:
            return AchievementCategory(value)
        except ValueError:
            raise ValidationError(
                f"Category '{value}' is not valid. "
                f"Valid categories: {', '.join(c.value for c in AchievementCategory)}"
            )

    @staticmethod
    def _resolve_action(value) -> ReviewAction:
        try:
            return ReviewAction(value)
        except ValueError:
            raise ValidationError(f"Action must be 'approve' or 'reject', got '{value}'")

    @staticmethod
    def _resolve_status(value) -> SubmissionStatus:
        try:
            return SubmissionStatus(value)
        except ValueError:
            raise ValidationError(
                f"Status '{value}' is not valid. "
                f"Valid statuses: {', '.join(s.value for s in SubmissionStatus)}"
            )
