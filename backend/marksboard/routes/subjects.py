"""
Subject API routes - CRUD over subjects, filterable by branch and semester.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marksboard.database import get_db
from marksboard.models.subject import Subject
from marksboard.validation import require_valid_id
from marksboard.logging_config import get_logger, log_with_context

router = APIRouter()
db_logger = get_logger("db")


class SubjectCreate(BaseModel):
    """Body of POST /api/subjects."""
    model_config = ConfigDict(str_strip_whitespace=True)

    subject_name: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=1)
    semester: int = Field(..., ge=1, le=8)
    subject_code: str = Field(..., min_length=1)


class SubjectUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject_name: Optional[str] = Field(None, min_length=1)
    branch: Optional[str] = Field(None, min_length=1)
    semester: Optional[int] = Field(None, ge=1, le=8)
    subject_code: Optional[str] = Field(None, min_length=1)


def serialize_subject(subject: Subject) -> dict:
    return {
        "id": subject.id,
        "subject_name": subject.subject_name,
        "branch": subject.branch,
        "semester": subject.semester,
        "subject_code": subject.subject_code,
        "createdAt": subject.created_at.isoformat() if subject.created_at else None,
        "updatedAt": subject.updated_at.isoformat() if subject.updated_at else None
    }


def _get_subject_or_404(db: Session, subject_id: str) -> Subject:
    subject_id = require_valid_id(subject_id, "subject")
    subject = db.get(Subject, subject_id)
    if not subject:
        raise HTTPException(status_code=404, detail="Subject not found")
    return subject


def _code_taken(db: Session, code: Optional[str], exclude_id: Optional[str] = None) -> bool:
    if code is None:
        return False
    query = db.query(Subject.id).filter(Subject.subject_code == code)
    if exclude_id:
        query = query.filter(Subject.id != exclude_id)
    return query.first() is not None


def _commit_or_409(db: Session, code: Optional[str]):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        log_with_context(db_logger, "WARNING", "Subject write violated a unique constraint",
                         context={"subject_code": code}, extra_data={"error": str(e.orig)})
        raise HTTPException(status_code=409, detail="Subject code already exists.")


@router.post("/api/subjects", status_code=201)
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)):
    if _code_taken(db, payload.subject_code):
        raise HTTPException(status_code=409,
                            detail="A subject with code {} already exists.".format(payload.subject_code))

    subject = Subject(**payload.model_dump())
    db.add(subject)
    _commit_or_409(db, payload.subject_code)
    db.refresh(subject)

    log_with_context(db_logger, "INFO", "Created subject {}".format(subject.subject_code),
                     context={"subject_id": subject.id})
    return {"message": "Subject created successfully", "subject": serialize_subject(subject)}


@router.get("/api/subjects")
def list_subjects(
    branch: Optional[str] = Query(None, description="Filter by branch"),
    semester: Optional[int] = Query(None, ge=1, le=8, description="Filter by semester"),
    db: Session = Depends(get_db)
):
    query = db.query(Subject)
    if branch:
        query = query.filter(Subject.branch == branch)
    if semester is not None:
        query = query.filter(Subject.semester == semester)
    subjects = query.order_by(Subject.semester, Subject.subject_code).all()
    return {"subjects": [serialize_subject(s) for s in subjects]}


@router.put("/api/subjects/{subject_id}")
def update_subject(subject_id: str, payload: SubjectUpdate, db: Session = Depends(get_db)):
    subject_id = require_valid_id(subject_id, "subject")
    updates = payload.model_dump(exclude_unset=True)
    nulls = sorted(field for field, value in updates.items() if value is None)
    if nulls:
        raise HTTPException(status_code=400, detail="Fields cannot be null: {}".format(", ".join(nulls)))

    subject = _get_subject_or_404(db, subject_id)
    if _code_taken(db, updates.get("subject_code"), exclude_id=subject.id):
        raise HTTPException(status_code=409,
                            detail="A subject with code {} already exists.".format(updates["subject_code"]))

    for field, value in updates.items():
        setattr(subject, field, value)
    _commit_or_409(db, subject.subject_code)
    db.refresh(subject)

    log_with_context(db_logger, "INFO", "Updated subject {}".format(subject.id),
                     context={"subject_id": subject.id}, extra_data={"fields": sorted(updates)})
    return {"message": "Subject updated successfully", "subject": serialize_subject(subject)}


@router.delete("/api/subjects/{subject_id}")
def delete_subject(subject_id: str, db: Session = Depends(get_db)):
    """Delete a subject. Marks recorded against it are left orphaned."""
    subject = _get_subject_or_404(db, subject_id)
    db.delete(subject)
    db.commit()

    log_with_context(db_logger, "INFO", "Deleted subject {}".format(subject_id),
                     context={"subject_id": subject_id})
    return {"message": "Subject deleted successfully"}
