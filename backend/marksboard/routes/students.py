"""
Student API routes - CRUD over student records.

Registration and roll numbers are unique; a conflicting create or update
is answered with 409. Deleting a student leaves its marks in place.
"""

import time
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marksboard.config import MIN_GRADUATION_YEAR, GRADUATION_YEAR_SPAN, STUDENT_BATCHES
from marksboard.database import get_db
from marksboard.models.student import Student
from marksboard.services.aggregation import filter_students
from marksboard.services.semester import current_semester
from marksboard.validation import require_valid_id
from marksboard.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")
db_logger = get_logger("db")


# ── Pydantic schemas ─────────────────────────────────────────

def _check_graduation_year(value):
    if value is None:
        return value
    max_year = date.today().year + GRADUATION_YEAR_SPAN
    if not MIN_GRADUATION_YEAR <= value <= max_year:
        raise ValueError("graduation year must be between {} and {}".format(
            MIN_GRADUATION_YEAR, max_year))
    return value


def _check_batch(value):
    if value is not None and value not in STUDENT_BATCHES:
        raise ValueError("batch must be one of {}".format(", ".join(STUDENT_BATCHES)))
    return value


class StudentCreate(BaseModel):
    """Body of POST /api/students."""
    model_config = ConfigDict(str_strip_whitespace=True)

    student_reg: str = Field(..., min_length=1, description="Registration number")
    student_name: str = Field(..., min_length=1)
    student_branch: str = Field(..., min_length=1)
    student_graduation_year: int
    student_batch: str
    student_rollno: int = Field(..., ge=0)

    @field_validator("student_graduation_year")
    @classmethod
    def graduation_year_in_window(cls, value):
        return _check_graduation_year(value)

    @field_validator("student_batch")
    @classmethod
    def batch_is_known(cls, value):
        return _check_batch(value)


class StudentUpdate(BaseModel):
    """Body of PUT /api/students/{id}; every field optional."""
    model_config = ConfigDict(str_strip_whitespace=True)

    student_reg: Optional[str] = Field(None, min_length=1)
    student_name: Optional[str] = Field(None, min_length=1)
    student_branch: Optional[str] = Field(None, min_length=1)
    student_graduation_year: Optional[int] = None
    student_batch: Optional[str] = None
    student_rollno: Optional[int] = Field(None, ge=0)

    @field_validator("student_graduation_year")
    @classmethod
    def graduation_year_in_window(cls, value):
        return _check_graduation_year(value)

    @field_validator("student_batch")
    @classmethod
    def batch_is_known(cls, value):
        return _check_batch(value)


def serialize_student(student: Student, today: Optional[date] = None) -> dict:
    return {
        "id": student.id,
        "student_reg": student.student_reg,
        "student_name": student.student_name,
        "student_branch": student.student_branch,
        "student_graduation_year": student.student_graduation_year,
        "student_batch": student.student_batch,
        "student_rollno": student.student_rollno,
        "current_semester": current_semester(student.student_graduation_year, today),
        "createdAt": student.created_at.isoformat() if student.created_at else None,
        "updatedAt": student.updated_at.isoformat() if student.updated_at else None
    }


def _get_student_or_404(db: Session, student_id: str) -> Student:
    student_id = require_valid_id(student_id, "student")
    student = db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


def _uniqueness_conflict(db: Session, reg: Optional[str], rollno: Optional[int],
                         exclude_id: Optional[str] = None) -> Optional[str]:
    """Return a message naming the taken unique field, if any."""
    checks = (
        (reg, Student.student_reg, "registration number"),
        (rollno, Student.student_rollno, "roll number"),
    )
    for value, column, label in checks:
        if value is None:
            continue
        query = db.query(Student.id).filter(column == value)
        if exclude_id:
            query = query.filter(Student.id != exclude_id)
        if query.first():
            return "A student with {} {} already exists.".format(label, value)
    return None


def _commit_or_409(db: Session, context: dict):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log_with_context(db_logger, "WARNING", "Student write violated a unique constraint",
                         context=context, extra_data={"error": str(e.orig)})
        raise HTTPException(status_code=409,
                            detail="Student registration number or roll number already exists.")


@router.post("/api/students", status_code=201)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    """Create a student record."""
    conflict = _uniqueness_conflict(db, payload.student_reg, payload.student_rollno)
    if conflict:
        raise HTTPException(status_code=409, detail=conflict)

    student = Student(**payload.model_dump())
    db.add(student)
    _commit_or_409(db, {"student_reg": payload.student_reg})
    db.refresh(student)

    log_with_context(db_logger, "INFO", "Created student {}".format(student.student_reg),
                     context={"student_id": student.id})
    return {"message": "Student created successfully", "student": serialize_student(student)}


@router.get("/api/students")
def list_students(
    branch: Optional[str] = Query(None, description="Filter by branch"),
    batch: Optional[str] = Query(None, description="Filter by batch"),
    semester: Optional[int] = Query(None, ge=1, le=8, description="Filter by derived current semester"),
    db: Session = Depends(get_db)
):
    """List students, optionally filtered by branch, batch and current semester."""
    start_time = time.time()

    query = db.query(Student)
    if branch:
        query = query.filter(Student.student_branch == branch)
    if batch:
        query = query.filter(Student.student_batch == batch)
    students = query.order_by(Student.student_rollno).all()

    today = date.today()
    if semester is not None:
        students = filter_students(students, semester=semester, today=today)

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Listed {} students".format(len(students)),
                     extra_data={"duration_ms": round(duration_ms, 2),
                                 "branch": branch, "batch": batch, "semester": semester})
    return {"students": [serialize_student(s, today) for s in students]}


@router.get("/api/students/{student_id}")
def get_student(student_id: str, db: Session = Depends(get_db)):
    student = _get_student_or_404(db, student_id)
    return {"student": serialize_student(student)}


@router.put("/api/students/{student_id}")
def update_student(student_id: str, payload: StudentUpdate, db: Session = Depends(get_db)):
    """Apply a partial update to a student."""
    student_id = require_valid_id(student_id, "student")
    updates = payload.model_dump(exclude_unset=True)
    nulls = sorted(field for field, value in updates.items() if value is None)
    if nulls:
        raise HTTPException(status_code=400, detail="Fields cannot be null: {}".format(", ".join(nulls)))

    student = _get_student_or_404(db, student_id)
    conflict = _uniqueness_conflict(db, updates.get("student_reg"), updates.get("student_rollno"),
                                    exclude_id=student.id)
    if conflict:
        raise HTTPException(status_code=409, detail=conflict)

    for field, value in updates.items():
        setattr(student, field, value)
    _commit_or_409(db, {"student_id": student.id})
    db.refresh(student)

    log_with_context(db_logger, "INFO", "Updated student {}".format(student.id),
                     context={"student_id": student.id},
                     extra_data={"fields": sorted(updates)})
    return {"message": "Student updated successfully", "student": serialize_student(student)}


@router.delete("/api/students/{student_id}")
def delete_student(student_id: str, db: Session = Depends(get_db)):
    """Delete a student. Marks referencing the student are not removed."""
    student = _get_student_or_404(db, student_id)
    db.delete(student)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted student {}".format(student_id),
                     context={"student_id": student_id})
    return {"message": "Student deleted successfully"}
