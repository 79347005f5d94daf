"""
Marks Service - write workflow for student marks.

Responsibilities:
1. Validate score entries against the exam-type rule table
2. Check that referenced students and subjects exist
3. Refuse a second score of the same exam type for a (student, subject) pair
4. Group every score of a pair into a single MarksRecord

The duplicate pre-check only produces a friendly message. The actual
guarantee is the unique constraint on score_entries: a concurrent writer
that slips past the pre-check fails at commit with IntegrityError and is
reported the same way.

Multi-subject submissions (submit_exam_scores) run in one transaction:
either every subject's score is stored or none is.
"""

import time
from datetime import datetime, timezone
from typing import Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from marksboard.models.student import Student
from marksboard.models.subject import Subject
from marksboard.models.marks import MarksRecord, ScoreEntry
from marksboard.services.scores import ExamType, is_valid_score, score_error_message
from marksboard.logging_config import get_logger, log_with_context

logger = get_logger("marks")


class MarksError(Exception):
    """Base class for workflow errors; carries the HTTP status to report."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidMarksError(MarksError):
    status_code = 400


class ReferenceNotFoundError(MarksError):
    status_code = 404


class DuplicateMarksError(MarksError):
    status_code = 409


class ScoreInput(NamedTuple):
    exam_type: str
    score: int
    recorded_at: Optional[datetime] = None


def _exam_key(exam_type) -> str:
    return exam_type.value if isinstance(exam_type, ExamType) else exam_type


def validate_entries(entries: Iterable[ScoreInput]) -> List[ScoreInput]:
    """Check bounds and reject repeated exam types inside one submission."""
    entries = [ScoreInput(_exam_key(e.exam_type), e.score, e.recorded_at) for e in entries]
    if not entries:
        raise InvalidMarksError("At least one score entry is required.")

    seen = set()
    for entry in entries:
        if not is_valid_score(entry.exam_type, entry.score):
            raise InvalidMarksError(score_error_message(entry.exam_type, entry.score))
        if entry.exam_type in seen:
            raise InvalidMarksError(
                "Exam type {} appears more than once in the submission.".format(entry.exam_type))
        seen.add(entry.exam_type)
    return entries


def _require_student(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise ReferenceNotFoundError("Student not found")
    return student


def _require_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ReferenceNotFoundError("Subject not found: {}".format(subject_id))
    return subject


def _existing_exam_types(db: Session, student_id: str, subject_id: str,
                         exam_types: Iterable[str],
                         exclude_marks_id: Optional[str] = None) -> List[str]:
    query = db.query(ScoreEntry.exam_type).filter(
        ScoreEntry.student_id == student_id,
        ScoreEntry.subject_id == subject_id,
        ScoreEntry.exam_type.in_(list(exam_types))
    )
    if exclude_marks_id:
        query = query.filter(ScoreEntry.marks_id != exclude_marks_id)
    return sorted({row[0] for row in query.all()})


def _find_record(db: Session, student_id: str, subject_id: str) -> Optional[MarksRecord]:
    return db.query(MarksRecord).options(
        selectinload(MarksRecord.scores)
    ).filter(
        MarksRecord.student_id == student_id,
        MarksRecord.subject_id == subject_id
    ).order_by(MarksRecord.created_at).first()


def _append_entries(record: MarksRecord, entries: List[ScoreInput]):
    for entry in entries:
        record.scores.append(ScoreEntry(
            student_id=record.student_id,
            subject_id=record.subject_id,
            exam_type=entry.exam_type,
            score=entry.score,
            position=len(record.scores),
            recorded_at=entry.recorded_at or datetime.now(timezone.utc)
        ))


def _commit(db: Session, context: dict):
    """Commit, translating a uniqueness violation into DuplicateMarksError."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log_with_context(logger, "WARNING", "Marks write rejected by store constraint",
                         context=context, extra_data={"error": str(e.orig)})
        raise DuplicateMarksError(
            "Marks for this exam type already exist for this student and subject.")


def create_marks(db: Session, student_id: str, subject_id: str,
                 entries: Iterable[ScoreInput]) -> MarksRecord:
    """
    Record one or more exam scores for a (student, subject) pair.

    Scores are appended to the pair's existing MarksRecord, or a new record
    is created when the pair has none yet.
    """
    start_time = time.time()
    entries = validate_entries(entries)
    _require_student(db, student_id)
    _require_subject(db, subject_id)

    existing = _existing_exam_types(db, student_id, subject_id, [e.exam_type for e in entries])
    if existing:
        raise DuplicateMarksError(
            "Marks for {} already exist for this student and subject.".format(", ".join(existing)))

    record = _find_record(db, student_id, subject_id)
    if record is None:
        record = MarksRecord(student_id=student_id, subject_id=subject_id)
        db.add(record)
    _append_entries(record, entries)

    context = {"student_id": student_id, "subject_id": subject_id}
    _commit(db, context)
    db.refresh(record)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Recorded {} score(s) in marks record {}".format(len(entries), record.id),
        context={**context, "marks_id": record.id},
        extra_data={"duration_ms": round(duration_ms, 2),
                    "exam_types": [e.exam_type for e in entries]})
    return record


def submit_exam_scores(db: Session, student_id: str, exam_type,
                       scores: Iterable[Tuple[str, int]]) -> List[MarksRecord]:
    """
    Record one exam type's score for several subjects at once, atomically.

    Args:
        db: Database session
        student_id: Student receiving the scores
        exam_type: IA1, IA2 or Semester
        scores: (subject_id, score) pairs, one per subject

    Returns:
        The touched MarksRecord objects, in submission order
    """
    start_time = time.time()
    exam_key = _exam_key(exam_type)
    scores = list(scores)
    if not scores:
        raise InvalidMarksError("At least one subject score is required.")

    subject_ids = [subject_id for subject_id, _ in scores]
    if len(set(subject_ids)) != len(subject_ids):
        raise InvalidMarksError("Each subject may appear only once in the submission.")
    for _, score in scores:
        if not is_valid_score(exam_key, score):
            raise InvalidMarksError(score_error_message(exam_key, score))

    _require_student(db, student_id)
    for subject_id in subject_ids:
        _require_subject(db, subject_id)

    conflicts = [
        subject_id for subject_id in subject_ids
        if _existing_exam_types(db, student_id, subject_id, [exam_key])
    ]
    if conflicts:
        raise DuplicateMarksError(
            "Marks for {} already exist for this student in {} subject(s).".format(
                exam_key, len(conflicts)))

    records = []
    for subject_id, score in scores:
        record = _find_record(db, student_id, subject_id)
        if record is None:
            record = MarksRecord(student_id=student_id, subject_id=subject_id)
            db.add(record)
        _append_entries(record, [ScoreInput(exam_key, score)])
        records.append(record)

    _commit(db, {"student_id": student_id, "exam_type": exam_key})
    for record in records:
        db.refresh(record)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Stored {} scores across {} subjects".format(exam_key, len(records)),
        context={"student_id": student_id, "exam_type": exam_key},
        extra_data={"duration_ms": round(duration_ms, 2)})
    return records


def replace_marks(db: Session, record: MarksRecord, subject_id: Optional[str] = None,
                  entries: Optional[Iterable[ScoreInput]] = None) -> MarksRecord:
    """
    Update a MarksRecord in place.

    ``subject_id`` moves the record to another subject; ``entries`` replaces
    its whole score list. Either may be omitted.
    """
    if entries is not None:
        entries = validate_entries(entries)

    target_subject = record.subject_id
    if subject_id is not None and subject_id != record.subject_id:
        _require_subject(db, subject_id)
        target_subject = subject_id

    exam_types = [e.exam_type for e in entries] if entries is not None \
        else [s.exam_type for s in record.scores]
    existing = _existing_exam_types(db, record.student_id, target_subject, exam_types,
                                    exclude_marks_id=record.id)
    if existing:
        raise DuplicateMarksError(
            "Marks for {} already exist for this student and subject.".format(", ".join(existing)))

    record.subject_id = target_subject
    if entries is not None:
        record.scores.clear()
        # Old rows must be gone before the new ones hit the unique constraint
        db.flush()
        _append_entries(record, entries)
    else:
        for entry in record.scores:
            entry.subject_id = target_subject
    record.updated_at = datetime.now(timezone.utc)

    _commit(db, {"marks_id": record.id})
    db.refresh(record)

    log_with_context(logger, "INFO", "Marks record {} updated".format(record.id),
                     context={"marks_id": record.id, "subject_id": record.subject_id},
                     extra_data={"scores": len(record.scores)})
    return record


def delete_marks(db: Session, record: MarksRecord):
    marks_id = record.id
    db.delete(record)
    db.commit()
    log_with_context(logger, "INFO", "Marks record {} deleted".format(marks_id),
                     context={"marks_id": marks_id})
