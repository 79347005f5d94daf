"""
Subject model - a course taught to a branch in a given semester.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, String, CheckConstraint
from marksboard.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Subject(Base):
    """SQLAlchemy model for the subjects table. Subject codes are unique."""
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="System-assigned subject identifier")
    subject_name = Column(Text, nullable=False)
    branch = Column(Text, nullable=False, index=True)
    semester = Column(Integer, nullable=False,
                      doc="Semester the subject is taught in (1-8)")
    subject_code = Column(String(32), nullable=False, unique=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("semester BETWEEN 1 AND 8", name="ck_subjects_semester_range"),
    )

    def __repr__(self):
        return f"<Subject(id={self.id}, code='{self.subject_code}', semester={self.semester})>"
