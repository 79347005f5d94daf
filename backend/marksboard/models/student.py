"""
Student model - a student enrolled in a branch.

Registration number and roll number are unique across students. The
current semester is not stored; it is derived from the graduation year.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, String
from marksboard.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Student(Base):
    """
    SQLAlchemy model for the students table.

    Marks are stored separately in student_marks and reference students by
    id without a foreign key, so deleting a student leaves its marks
    orphaned rather than cascading.
    """
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="System-assigned student identifier")
    student_reg = Column(String(64), nullable=False, unique=True,
                         doc="Registration number (unique)")
    student_name = Column(Text, nullable=False,
                          doc="Student's full name")
    student_branch = Column(Text, nullable=False, index=True,
                            doc="Academic branch/department")
    student_graduation_year = Column(Integer, nullable=False,
                                     doc="Expected graduation year, drives the current semester")
    student_batch = Column(String(16), nullable=False,
                           doc="Cohort label, e.g. B1")
    student_rollno = Column(Integer, nullable=False, unique=True,
                            doc="Roll number (unique)")
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Student(id={self.id}, reg='{self.student_reg}', branch='{self.student_branch}')>"
