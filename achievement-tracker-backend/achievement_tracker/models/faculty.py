# achievement_tracker/models/faculty.py
from sqlalchemy import Column, String, DateTime, Integer, Numeric, Float
import enum
from datetime import datetime
from typing import Dict, List

from achievement_tracker.core.database import Base
from achievement_tracker.models.achievement import AchievementCategory

class AchievementType(str, enum.Enum):
    """Achievement counters on the faculty record; each value is a column name"""
    RD_PROPOSALS_SANCTIONED = "rdproposalssangsation"
    RD_PROPOSALS_SUBMITTED = "rdproposalssubmition"
    RD_FUNDING = "rdfunding"
    JOURNAL_PUBLICATIONS = "journalpublications"
    JOURNALS_COAUTHOR = "journalscoauthor"
    BOOK_PUBLICATIONS = "bookpublications"
    STUDENT_PUBLICATIONS = "studentpublications"
    PATENTS = "patents"
    ONLINE_CERTIFICATIONS = "onlinecertifications"
    STUDENT_PROJECTS = "studentprojects"
    FDP_WORKS = "fdpworks"
    FDP_WORPS = "fdpworps"
    INDUSTRY_COLLABS = "industrycollabs"
    OTHER_ACTIVITIES = "otheractivities"

CATEGORY_COUNTERS: Dict[AchievementCategory, List[AchievementType]] = {
    AchievementCategory.RESEARCH_DEV: [
        AchievementType.RD_PROPOSALS_SANCTIONED,
        AchievementType.RD_PROPOSALS_SUBMITTED,
        AchievementType.RD_FUNDING,
    ],
    AchievementCategory.PUBLICATION: [
        AchievementType.JOURNAL_PUBLICATIONS,
        AchievementType.JOURNALS_COAUTHOR,
        AchievementType.BOOK_PUBLICATIONS,
        AchievementType.STUDENT_PUBLICATIONS,
    ],
    AchievementCategory.INNOVATION_PATENTS: [
        AchievementType.PATENTS,
        AchievementType.ONLINE_CERTIFICATIONS,
    ],
    AchievementCategory.STUDENT_ENGAGEMENT: [
        AchievementType.STUDENT_PROJECTS,
    ],
    AchievementCategory.PROFESSIONAL_DEV: [
        AchievementType.FDP_WORKS,
        AchievementType.FDP_WORPS,
    ],
    AchievementCategory.INDUSTRY_OTHERS: [
        AchievementType.INDUSTRY_COLLABS,
        AchievementType.OTHER_ACTIVITIES,
    ],
}

IDENTITY_FIELDS = ("name", "department", "designation", "email")
COUNTER_FIELDS = frozenset(t.value for t in AchievementType)

class Faculty(Base):
    __tablename__ = "faculty"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    department = Column(String, nullable=False)
    designation = Column(String, nullable=True)
    email = Column(String, nullable=True)

    # Research & Development
    rdproposalssangsation = Column(Integer, nullable=False, default=0)
    rdproposalssubmition = Column(Integer, nullable=False, default=0)
    rdfunding = Column(Integer, nullable=False, default=0)  # in lakhs

    # Publications
    journalpublications = Column(Integer, nullable=False, default=0)
    journalscoauthor = Column(Integer, nullable=False, default=0)
    bookpublications = Column(Integer, nullable=False, default=0)
    studentpublications = Column(Integer, nullable=False, default=0)

    # Innovation & Patents
    patents = Column(Integer, nullable=False, default=0)
    onlinecertifications = Column(Integer, nullable=False, default=0)

    # Student Engagement
    studentprojects = Column(Integer, nullable=False, default=0)

    # Professional Development
    fdpworks = Column(Integer, nullable=False, default=0)
    fdpworps = Column(Integer, nullable=False, default=0)

    # Industry & Others
    industrycollabs = Column(Integer, nullable=False, default=0)
    otheractivities = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    def counter(self, achievement_type: AchievementType) -> int:
        return getattr(self, achievement_type.value) or 0

    def counters(self) -> Dict[str, int]:
        return {t.value: self.counter(t) for t in AchievementType}

    def __repr__(self):
        return f"<Faculty {self.id} {self.name}>"

def validate_counter_columns(table=None):
    """
    Check every AchievementType against the faculty table.

    Raises RuntimeError naming the offending types when a member has no
    column or the column is not numeric.
    """
    table = table if table is not None else Faculty.__table__
    problems = []

    for achievement_type in AchievementType:
        column = table.columns.get(achievement_type.value)
        if column is None:
            problems.append(f"{achievement_type.value} (missing)")
        elif not isinstance(column.type, (Integer, Numeric, Float)):
            problems.append(f"{achievement_type.value} (not numeric: {column.type})")

    if problems:
        raise RuntimeError(
            "Faculty table does not match achievement types: " + ", ".join(problems)
        )
