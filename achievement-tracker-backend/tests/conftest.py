import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from achievement_tracker.core.database import Base
from achievement_tracker.models.achievement import Submission  # noqa: F401
from achievement_tracker.models.faculty import Faculty
from achievement_tracker.models.notification import Notification  # noqa: F401
from achievement_tracker.schemas.achievement import SubmissionCreate
from achievement_tracker.services.achievement_service import AchievementService
from achievement_tracker.services.faculty_directory import FacultyDirectory
from achievement_tracker.services.notification_service import NotificationService
from achievement_tracker.services.submission_store import SubmissionStore


class InMemoryBlobStore:
    def __init__(self) -> None:
        self.blobs = {}
        self.deleted = []
        self.fail_delete = False

    async def put(self, data: bytes, content_type: str, filename=None) -> str:
        url = f"memory://achievement-pdfs/{len(self.blobs) + len(self.deleted) + 1}_{filename}"
        self.blobs[url] = (data, content_type)
        return url

    async def delete(self, url: str) -> None:
        if self.fail_delete:
            raise RuntimeError("storage unavailable")
        del self.blobs[url]
        self.deleted.append(url)


class FakeClock:
    """Advances one second per call so submitted_at values are strictly ordered."""

    def __init__(self, start: datetime = datetime(2025, 3, 10, 9, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def seeded(session_factory):
    with session_factory() as session:
        session.add_all([
            Faculty(
                id="CSE002",
                name="Dr.A.M.Rajeshwari",
                department="Computer Science",
                designation="Assistant Professor",
                patents=3,
                journalpublications=7,
            ),
            Faculty(
                id="HOD1",
                name="Dr. K. Srinivasan",
                department="Computer Science",
                designation="Head of Department",
            ),
        ])
        session.commit()
    return session_factory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def faculty_directory(seeded):
    return FacultyDirectory(seeded)


@pytest.fixture
def submission_store(seeded):
    return SubmissionStore(seeded)


@pytest.fixture
def notification_service(seeded, clock):
    return NotificationService(seeded, clock=clock)


@pytest.fixture
def service(faculty_directory, submission_store, blob_store, notification_service, clock):
    return AchievementService(
        faculty_directory=faculty_directory,
        submission_store=submission_store,
        blob_store=blob_store,
        notification_service=notification_service,
        clock=clock,
    )


def make_candidate(**overrides) -> SubmissionCreate:
    data = {
        "faculty_id": "CSE002",
        "category": "innovation_patents",
        "achievement_type": "patents",
        "title": "Patent: Adaptive crop irrigation controller",
        "description": "Filed with the Indian Patent Office",
        "requested_increase": 1,
    }
    data.update(overrides)
    return SubmissionCreate(**data)
