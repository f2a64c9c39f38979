# achievement_tracker/core/exceptions.py
from typing import Optional


class AchievementTrackerError(Exception):
    """Base error carrying the HTTP status and machine-readable code for the API layer"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, detail: str, code: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        if code:
            self.code = code


class NotFoundError(AchievementTrackerError):
    """Unknown faculty, submission or notification"""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(AchievementTrackerError):
    """Bad category, achievement type, increase, or missing rejection reason"""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidStateError(AchievementTrackerError):
    """Operation not allowed in the submission's current status"""

    status_code = 409
    code = "INVALID_STATE"


class ConflictError(AchievementTrackerError):
    """A compare-and-set on submission status matched zero rows.

    Another writer moved the submission first. The caller should reload;
    the engine never retries.
    """

    status_code = 409
    code = "CONFLICT"


class PartialFailureError(AchievementTrackerError):
    """The faculty counter was incremented but the approval was not recorded.

    The submission is left in ``approving`` and needs operator reconciliation.
    """

    status_code = 500
    code = "PARTIAL_FAILURE"

    def __init__(self, detail: str, submission_id: str, faculty_id: str, increase_applied: int):
        super().__init__(detail)
        self.submission_id = submission_id
        self.faculty_id = faculty_id
        self.increase_applied = increase_applied
