"""
MarksRecord and ScoreEntry models.

A MarksRecord groups every exam score of one student in one subject; each
score is a ScoreEntry row. Score entries carry the (student, subject) pair
so the store itself rejects a second score of the same exam type for that
pair, even when two writers pass the application pre-check concurrently.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Index, String,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from marksboard.database import Base
from marksboard.services.scores import score_check_sql


def _utcnow():
    return datetime.now(timezone.utc)


class MarksRecord(Base):
    """
    SQLAlchemy model for the student_marks table.

    student_id/subject_id are plain references (no foreign keys): deleting
    a student or subject does not cascade and leaves the record orphaned.
    """
    __tablename__ = "student_marks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique marks record identifier")
    student_id = Column(String(36), nullable=False,
                        doc="Referenced student id")
    subject_id = Column(String(36), nullable=False,
                        doc="Referenced subject id")
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    scores = relationship(
        "ScoreEntry",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="ScoreEntry.position",
    )
    # Resolved without a foreign key; None once the subject is deleted
    subject = relationship(
        "Subject",
        primaryjoin="foreign(MarksRecord.subject_id) == Subject.id",
        viewonly=True,
    )

    __table_args__ = (
        Index("ix_student_marks_student_subject", "student_id", "subject_id"),
    )

    def __repr__(self):
        return f"<MarksRecord(id={self.id}, student={self.student_id}, subject={self.subject_id})>"


class ScoreEntry(Base):
    """One exam score inside a MarksRecord."""
    __tablename__ = "score_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    marks_id = Column(String(36), ForeignKey("student_marks.id", ondelete="CASCADE"),
                      nullable=False)
    student_id = Column(String(36), nullable=False)
    subject_id = Column(String(36), nullable=False)
    exam_type = Column(String(16), nullable=False)
    score = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0,
                      doc="Order of the entry inside its record")
    recorded_at = Column(DateTime, default=_utcnow, nullable=False)

    record = relationship("MarksRecord", back_populates="scores")

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "exam_type",
                         name="uq_score_entries_student_subject_exam"),
        CheckConstraint(score_check_sql(), name="ck_score_entries_bounds"),
        Index("ix_score_entries_marks_id", "marks_id"),
    )

    def __repr__(self):
        return f"<ScoreEntry(exam={self.exam_type}, score={self.score})>"
