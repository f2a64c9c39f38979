import asyncio
import threading

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from achievement_tracker.core.database import Base
from achievement_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from achievement_tracker.models.achievement import Submission, SubmissionStatus
from achievement_tracker.models.faculty import Faculty
from achievement_tracker.models.notification import NotificationKind
from achievement_tracker.services.achievement_service import AchievementService
from achievement_tracker.services.faculty_directory import FacultyDirectory
from achievement_tracker.services.notification_service import NotificationService
from achievement_tracker.services.submission_store import SubmissionStore

from conftest import InMemoryBlobStore, make_candidate


def patents_of(directory, faculty_id="CSE002") -> int:
    return asyncio.run(directory.get(faculty_id)).patents


def submit(service, **overrides):
    return asyncio.run(service.submit(make_candidate(**overrides), pdf=b"%PDF-1.4", pdf_name="patent.pdf"))


def test_submit_snapshots_current_count_and_stays_pending(service, blob_store) -> None:
    submission = submit(service)

    assert submission.status == SubmissionStatus.PENDING
    assert submission.current_count_at_submission == 3
    assert submission.requested_increase == 1
    assert submission.reviewed_by is None
    assert submission.reviewed_at is None
    assert submission.faculty_name == "Dr.A.M.Rajeshwari"
    assert submission.department == "Computer Science"
    assert submission.pdf_url in blob_store.blobs
    assert submission.academic_year == "2025"
    assert submission.semester == "1"


def test_submit_then_get_preserves_input_fields(service) -> None:
    created = submit(service, description=None, requested_increase=2)
    fetched = asyncio.run(service.get(created.id))

    assert fetched.status == SubmissionStatus.PENDING
    assert fetched.faculty_id == "CSE002"
    assert fetched.category.value == "innovation_patents"
    assert fetched.achievement_type == "patents"
    assert fetched.title == "Patent: Adaptive crop irrigation controller"
    assert fetched.description is None
    assert fetched.pdf_name == "patent.pdf"
    assert fetched.pdf_url == created.pdf_url
    assert fetched.requested_increase == 2
    assert fetched.submitted_at == created.submitted_at


def test_approve_increments_counter_by_requested_increase(service, faculty_directory) -> None:
    submission = submit(service)

    approved = asyncio.run(service.review(submission.id, "approve", "HOD1"))

    assert approved.status == SubmissionStatus.APPROVED
    assert approved.reviewed_by == "HOD1"
    assert approved.reviewed_at is not None
    assert approved.actual_increase_applied == 1
    assert patents_of(faculty_directory) == 4


def test_second_approval_is_rejected_without_touching_counter(service, faculty_directory) -> None:
    submission = submit(service)
    asyncio.run(service.review(submission.id, "approve", "HOD1"))

    with pytest.raises(InvalidStateError):
        asyncio.run(service.review(submission.id, "approve", "HOD1"))

    assert patents_of(faculty_directory) == 4


def test_reviewing_rejected_submission_is_invalid(service, faculty_directory) -> None:
    submission = submit(service)
    asyncio.run(service.review(submission.id, "reject", "HOD1", reason="Certificate missing"))

    for action in ("approve", "reject"):
        with pytest.raises(InvalidStateError):
            asyncio.run(service.review(submission.id, action, "HOD1", reason="again"))

    assert patents_of(faculty_directory) == 3


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_without_reason_leaves_submission_pending(service, reason) -> None:
    submission = submit(service)

    with pytest.raises(ValidationError):
        asyncio.run(service.review(submission.id, "reject", "HOD1", reason=reason))

    assert asyncio.run(service.get(submission.id)).status == SubmissionStatus.PENDING


def test_reject_records_reason_and_reviewer(service, faculty_directory) -> None:
    submission = submit(service)

    rejected = asyncio.run(service.review(submission.id, "reject", "HOD1", reason="  Duplicate entry "))

    assert rejected.status == SubmissionStatus.REJECTED
    assert rejected.rejection_reason == "Duplicate entry"
    assert rejected.reviewed_by == "HOD1"
    assert rejected.reviewed_at is not None
    assert rejected.actual_increase_applied is None
    assert patents_of(faculty_directory) == 3


def test_approval_uses_counter_value_at_approval_time(service, faculty_directory) -> None:
    first = submit(service)
    second = submit(service, requested_increase=2)
    assert second.current_count_at_submission == 3

    asyncio.run(service.review(first.id, "approve", "HOD1"))
    approved = asyncio.run(service.review(second.id, "approve", "HOD1"))

    assert approved.actual_increase_applied == 2
    assert approved.current_count_at_submission == 3
    assert patents_of(faculty_directory) == 6


def test_submit_for_unknown_faculty_stores_no_blob(service, blob_store) -> None:
    with pytest.raises(NotFoundError):
        submit(service, faculty_id="UNKNOWN")

    assert blob_store.blobs == {}
    assert asyncio.run(service.list_by_status()) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"category": "sports"},
        {"achievement_type": "hackathons"},
        {"achievement_type": "name"},
        {"requested_increase": 0},
        {"requested_increase": -3},
        {"title": "   "},
    ],
)
def test_submit_validation_errors_store_no_blob(service, blob_store, overrides) -> None:
    with pytest.raises(ValidationError):
        submit(service, **overrides)

    assert blob_store.blobs == {}


def test_insert_failure_removes_uploaded_blob(service, blob_store, submission_store, monkeypatch) -> None:
    async def failing_insert(submission):
        raise RuntimeError("insert rejected by database")

    monkeypatch.setattr(submission_store, "insert", failing_insert)

    with pytest.raises(RuntimeError, match="insert rejected"):
        submit(service)

    assert blob_store.blobs == {}
    assert len(blob_store.deleted) == 1


def test_failed_blob_cleanup_still_reports_insert_error(service, blob_store, submission_store, monkeypatch) -> None:
    async def failing_insert(submission):
        raise RuntimeError("insert rejected by database")

    monkeypatch.setattr(submission_store, "insert", failing_insert)
    blob_store.fail_delete = True

    with pytest.raises(RuntimeError, match="insert rejected"):
        submit(service)

    assert len(blob_store.blobs) == 1


@pytest.fixture
def file_backed_service(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'achievements.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    with factory() as session:
        session.add(Faculty(id="CSE002", name="Dr.A.M.Rajeshwari", department="Computer Science", patents=3))
        session.commit()

    directory = FacultyDirectory(factory)
    store = SubmissionStore(factory)
    yield AchievementService(
        faculty_directory=directory,
        submission_store=store,
        blob_store=InMemoryBlobStore(),
        notification_service=NotificationService(factory),
    )
    engine.dispose()


def test_concurrent_approvals_increment_counter_once(file_backed_service) -> None:
    service = file_backed_service
    submission = submit(service)
    reviewers = 20

    # Every reviewer reads the submission while it is still pending
    # before any of them tries to claim it.
    read_barrier = threading.Barrier(reviewers, timeout=30)
    store_get = service.submission_store.get

    async def get_then_wait(submission_id):
        current = await store_get(submission_id)
        read_barrier.wait()
        return current

    service.submission_store.get = get_then_wait

    start = threading.Barrier(reviewers, timeout=30)
    results = []
    lock = threading.Lock()

    def approve(reviewer_id):
        start.wait()
        try:
            outcome = asyncio.run(service.review(submission.id, "approve", reviewer_id))
        except Exception as e:
            outcome = e
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=approve, args=(f"HOD{i}",)) for i in range(reviewers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(results) == reviewers
    assert len(successes) == 1
    assert successes[0].status == SubmissionStatus.APPROVED
    assert all(isinstance(f, ConflictError) for f in failures)
    assert len(failures) == reviewers - 1
    assert patents_of(service.faculty_directory) == 4


def test_approve_refuses_type_that_no_longer_names_a_counter(service, seeded, faculty_directory) -> None:
    submission = submit(service)
    before = asyncio.run(faculty_directory.get("CSE002")).counters()
    with seeded() as session:
        session.execute(
            update(Submission)
            .where(Submission.id == submission.id)
            .values(achievement_type="awards")
        )
        session.commit()

    with pytest.raises(ValidationError, match="awards"):
        asyncio.run(service.review(submission.id, "approve", "HOD1"))

    stored = asyncio.run(service.get(submission.id))
    assert stored.status == SubmissionStatus.PENDING
    assert stored.reviewed_by is None
    assert asyncio.run(faculty_directory.get("CSE002")).counters() == before


def test_losing_the_claim_raises_conflict_without_increment(service, submission_store, faculty_directory, monkeypatch) -> None:
    submission = submit(service)
    stale = asyncio.run(submission_store.get(submission.id))
    asyncio.run(service.review(submission.id, "approve", "HOD1"))

    # A second reviewer read the row while it was still pending
    async def stale_get(submission_id):
        return stale

    monkeypatch.setattr(submission_store, "get", stale_get)

    with pytest.raises(ConflictError):
        asyncio.run(service.review(submission.id, "approve", "HOD2"))

    assert patents_of(faculty_directory) == 4


def test_status_write_failure_is_partial_failure_and_reconcilable(service, submission_store, faculty_directory, monkeypatch) -> None:
    submission = submit(service)
    original_update = submission_store.update_status

    async def flaky_update(submission_id, expected_status, fields):
        if fields.get("status") == SubmissionStatus.APPROVED:
            raise RuntimeError("connection reset")
        return await original_update(submission_id, expected_status, fields)

    monkeypatch.setattr(submission_store, "update_status", flaky_update)

    with pytest.raises(PartialFailureError) as excinfo:
        asyncio.run(service.review(submission.id, "approve", "HOD1"))

    assert excinfo.value.submission_id == submission.id
    assert excinfo.value.increase_applied == 1
    assert patents_of(faculty_directory) == 4

    stuck = asyncio.run(service.get(submission.id))
    assert stuck.status == SubmissionStatus.APPROVING
    assert stuck.reviewed_by == "HOD1"

    # A client retry must not apply the increment again
    with pytest.raises(InvalidStateError):
        asyncio.run(service.review(submission.id, "approve", "HOD1"))

    monkeypatch.setattr(submission_store, "update_status", original_update)
    reconciled = asyncio.run(service.reconcile(submission.id, "ops-admin"))

    assert reconciled.status == SubmissionStatus.APPROVED
    assert reconciled.actual_increase_applied == 1
    assert patents_of(faculty_directory) == 4


def test_increment_failure_returns_submission_to_pending(service, faculty_directory, monkeypatch) -> None:
    submission = submit(service)

    async def failing_increment(faculty_id, achievement_type, amount):
        raise RuntimeError("faculty table locked")

    monkeypatch.setattr(faculty_directory, "increment_field", failing_increment)

    with pytest.raises(RuntimeError):
        asyncio.run(service.review(submission.id, "approve", "HOD1"))

    released = asyncio.run(service.get(submission.id))
    assert released.status == SubmissionStatus.PENDING
    assert released.reviewed_by is None
    assert released.reviewed_at is None


def test_reconcile_can_reopen_when_increment_was_not_applied(service, submission_store, faculty_directory, monkeypatch) -> None:
    submission = submit(service)
    original_update = submission_store.update_status

    async def flaky_update(submission_id, expected_status, fields):
        if fields.get("status") == SubmissionStatus.APPROVED:
            raise RuntimeError("connection reset")
        return await original_update(submission_id, expected_status, fields)

    monkeypatch.setattr(submission_store, "update_status", flaky_update)
    with pytest.raises(PartialFailureError):
        asyncio.run(service.review(submission.id, "approve", "HOD1"))
    monkeypatch.setattr(submission_store, "update_status", original_update)

    reopened = asyncio.run(service.reconcile(submission.id, "ops-admin", increment_applied=False))

    assert reopened.status == SubmissionStatus.PENDING
    assert reopened.reviewed_by is None


def test_reconcile_requires_approving_submission(service) -> None:
    submission = submit(service)

    with pytest.raises(InvalidStateError):
        asyncio.run(service.reconcile(submission.id, "ops-admin"))


def test_review_unknown_submission_is_not_found(service) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(service.review("does-not-exist", "approve", "HOD1"))


@pytest.mark.parametrize("action,reviewer", [("publish", "HOD1"), ("approve", ""), ("approve", "  ")])
def test_review_rejects_bad_action_or_reviewer(service, action, reviewer) -> None:
    submission = submit(service)

    with pytest.raises(ValidationError):
        asyncio.run(service.review(submission.id, action, reviewer))


def test_reviewed_fields_set_only_outside_pending(service) -> None:
    pending = submit(service)
    approved = submit(service)
    rejected = submit(service)
    asyncio.run(service.review(approved.id, "approve", "HOD1"))
    asyncio.run(service.review(rejected.id, "reject", "HOD1", reason="Not relevant"))

    for submission in asyncio.run(service.list_by_status()):
        reviewed = submission.reviewed_by is not None and submission.reviewed_at is not None
        unreviewed = submission.reviewed_by is None and submission.reviewed_at is None
        if submission.status == SubmissionStatus.PENDING:
            assert unreviewed
        else:
            assert reviewed

    assert {s.id for s in asyncio.run(service.list_by_status("pending"))} == {pending.id}


def test_lists_are_newest_first(service) -> None:
    first = submit(service)
    second = submit(service, achievement_type="journalpublications", category="publication")
    third = submit(service)
    asyncio.run(service.review(second.id, "approve", "HOD1"))

    assert [s.id for s in asyncio.run(service.list_by_status())] == [third.id, second.id, first.id]
    assert [s.id for s in asyncio.run(service.list_by_status(SubmissionStatus.PENDING))] == [third.id, first.id]
    assert [s.id for s in asyncio.run(service.list_by_faculty("CSE002", limit=2))] == [third.id, second.id]
    assert [s.id for s in asyncio.run(service.list_by_faculty("CSE002", skip=2))] == [first.id]
    assert asyncio.run(service.list_by_faculty("HOD1")) == []


def test_list_by_unknown_status_is_validation_error(service) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(service.list_by_status("archived"))


def test_status_counts(service) -> None:
    a = submit(service)
    b = submit(service)
    submit(service)
    asyncio.run(service.review(a.id, "approve", "HOD1"))
    asyncio.run(service.review(b.id, "reject", "HOD1", reason="Blurry scan"))

    assert asyncio.run(service.status_counts()) == {
        "pending": 1,
        "approving": 0,
        "approved": 1,
        "rejected": 1,
        "total": 3,
    }


def test_state_changes_are_recorded_as_notifications(service, notification_service) -> None:
    approved = submit(service)
    rejected = submit(service)
    asyncio.run(service.review(approved.id, "approve", "HOD1"))
    asyncio.run(service.review(rejected.id, "reject", "HOD1", reason="Wrong category"))

    notifications, total = asyncio.run(notification_service.list_for_faculty("CSE002"))

    assert total == 4
    assert [n.kind for n in notifications] == [
        NotificationKind.ACHIEVEMENT_REJECTED,
        NotificationKind.ACHIEVEMENT_APPROVED,
        NotificationKind.ACHIEVEMENT_SUBMITTED,
        NotificationKind.ACHIEVEMENT_SUBMITTED,
    ]
    assert "Wrong category" in notifications[0].message


def test_notification_failure_does_not_fail_review(service, notification_service, faculty_directory, monkeypatch) -> None:
    submission = submit(service)

    async def broken_notify(submission, kind):
        raise RuntimeError("notifications table missing")

    monkeypatch.setattr(notification_service, "notify", broken_notify)

    approved = asyncio.run(service.review(submission.id, "approve", "HOD1"))

    assert approved.status == SubmissionStatus.APPROVED
    assert patents_of(faculty_directory) == 4
