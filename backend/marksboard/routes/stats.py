"""
Statistics API routes - dashboard figures and the exam results grid.

Both endpoints fetch a fresh snapshot and hand it to the pure functions in
services/aggregation.py. Presentation defaults (subject names, the "N/A"
marker for missing scores) are applied here, not in the aggregator.
"""

import time
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from marksboard.database import get_db
from marksboard.models.student import Student
from marksboard.models.subject import Subject
from marksboard.models.marks import MarksRecord
from marksboard.routes.subjects import serialize_subject
from marksboard.services.aggregation import (
    build_dashboard, filter_students, per_student_subject_score
)
from marksboard.services.scores import ExamType, max_score
from marksboard.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")

NOT_AVAILABLE = "N/A"


@router.get("/api/stats/dashboard")
def dashboard(db: Session = Depends(get_db)):
    """Totals, distributions, averages and per-branch performance."""
    start_time = time.time()

    students = db.query(Student).all()
    subjects = db.query(Subject).all()
    marks = db.query(MarksRecord).options(selectinload(MarksRecord.scores)).all()

    stats = build_dashboard(students, subjects, marks)

    by_id = {subject.id: subject for subject in subjects}
    stats["subject_average"] = [
        {
            "subject_id": subject_id,
            "subject_name": by_id[subject_id].subject_name,
            "subject_code": by_id[subject_id].subject_code,
            "average": average
        }
        for subject_id, average in stats["subject_average"].items()
    ]

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Dashboard statistics generated",
                     extra_data={"duration_ms": round(duration_ms, 2),
                                 "students": stats["total_students"],
                                 "marks_records": stats["total_marks_records"]})
    return stats


@router.get("/api/stats/results")
def results_grid(
    branch: str = Query(..., min_length=1, description="Branch to report on"),
    semester: int = Query(..., ge=1, le=8, description="Current semester of the students"),
    exam_type: ExamType = Query(..., description="IA1, IA2 or Semester"),
    batch: Optional[str] = Query(None, description="Optional batch filter"),
    db: Session = Depends(get_db)
):
    """
    Score of every selected student in every subject of the branch/semester
    for one exam type. Missing scores are reported as "N/A", never 0.
    """
    start_time = time.time()
    today = date.today()

    subjects = db.query(Subject).filter(
        Subject.branch == branch,
        Subject.semester == semester
    ).order_by(Subject.subject_code).all()

    candidates = db.query(Student).filter(Student.student_branch == branch)
    if batch:
        candidates = candidates.filter(Student.student_batch == batch)
    students = filter_students(candidates.order_by(Student.student_rollno).all(),
                               semester=semester, today=today)

    scores = {}
    if students and subjects:
        marks = db.query(MarksRecord).options(
            selectinload(MarksRecord.scores)
        ).filter(
            MarksRecord.student_id.in_([s.id for s in students]),
            MarksRecord.subject_id.in_([s.id for s in subjects])
        ).order_by(MarksRecord.created_at).all()
        scores = per_student_subject_score(marks, exam_type)

    rows = [
        {
            "student_id": student.id,
            "student_name": student.student_name,
            "student_rollno": student.student_rollno,
            "student_batch": student.student_batch,
            "scores": {
                subject.id: scores.get((student.id, subject.id), NOT_AVAILABLE)
                for subject in subjects
            }
        }
        for student in students
    ]

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Results grid: {} students x {} subjects".format(len(rows), len(subjects)),
        extra_data={"duration_ms": round(duration_ms, 2), "branch": branch,
                    "semester": semester, "exam_type": exam_type.value})

    return {
        "filters": {"branch": branch, "semester": semester,
                    "exam_type": exam_type.value, "batch": batch},
        "max_score": max_score(exam_type),
        "subjects": [serialize_subject(s) for s in subjects],
        "rows": rows
    }
