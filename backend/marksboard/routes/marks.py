"""
Marks API routes - recording, listing, updating and deleting student marks.

Wire format follows the frontend contract:
    {"studentId": ..., "subjectId": ..., "marks": [{"examType": "IA1", "score": 18}]}

Score bounds are checked on every write path before the workflow in
services/marks.py runs; the workflow and the table constraint check again.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, StrictInt, model_validator
from sqlalchemy.orm import Session, joinedload, selectinload

from marksboard.database import get_db
from marksboard.models.marks import MarksRecord
from marksboard.routes.subjects import serialize_subject
from marksboard.services.marks import (
    ScoreInput, create_marks, submit_exam_scores, replace_marks, delete_marks
)
from marksboard.services.scores import ExamType, is_valid_score, score_error_message
from marksboard.validation import require_valid_id
from marksboard.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


# ── Pydantic schemas ─────────────────────────────────────────

class ScoreEntryIn(BaseModel):
    """One exam score in a request body."""
    model_config = ConfigDict(populate_by_name=True)

    exam_type: ExamType = Field(..., alias="examType")
    score: StrictInt
    recorded_at: Optional[datetime] = Field(None, alias="date")

    @model_validator(mode="after")
    def score_within_bounds(self):
        if not is_valid_score(self.exam_type, self.score):
            raise ValueError(score_error_message(self.exam_type, self.score))
        return self

    def to_input(self) -> ScoreInput:
        return ScoreInput(self.exam_type.value, self.score, self.recorded_at)


class MarksCreate(BaseModel):
    """Body of POST /api/marks."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    subject_id: str = Field(..., alias="subjectId")
    marks: List[ScoreEntryIn] = Field(..., min_length=1)


class SubjectScoreIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(..., alias="subjectId")
    score: StrictInt


class MarksBatchCreate(BaseModel):
    """Body of POST /api/marks/batch: one exam type, one score per subject."""
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    exam_type: ExamType = Field(..., alias="examType")
    scores: List[SubjectScoreIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def scores_within_bounds(self):
        for item in self.scores:
            if not is_valid_score(self.exam_type, item.score):
                raise ValueError(score_error_message(self.exam_type, item.score))
        return self


class MarksUpdate(BaseModel):
    """Body of PUT /api/marks/{id}; ``marks`` replaces the whole score list."""
    model_config = ConfigDict(populate_by_name=True)

    subject_id: Optional[str] = Field(None, alias="subjectId")
    marks: Optional[List[ScoreEntryIn]] = Field(None, min_length=1)


def serialize_entry(entry) -> dict:
    return {
        "id": entry.id,
        "examType": entry.exam_type,
        "score": entry.score,
        "date": entry.recorded_at.isoformat() if entry.recorded_at else None
    }


def serialize_marks(record: MarksRecord, expand_subject: bool = False) -> dict:
    """Serialize a MarksRecord; optionally embed the referenced subject."""
    result = {
        "id": record.id,
        "studentId": record.student_id,
        "subjectId": record.subject_id,
        "marks": [serialize_entry(e) for e in record.scores],
        "createdAt": record.created_at.isoformat() if record.created_at else None,
        "updatedAt": record.updated_at.isoformat() if record.updated_at else None
    }
    if expand_subject:
        # None when the subject was deleted after the marks were recorded
        result["subject"] = serialize_subject(record.subject) if record.subject else None
    return result


def _get_marks_or_404(db: Session, marks_id: str) -> MarksRecord:
    marks_id = require_valid_id(marks_id, "marks")
    record = db.query(MarksRecord).options(
        selectinload(MarksRecord.scores)
    ).filter(MarksRecord.id == marks_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Marks not found")
    return record


@router.post("/api/marks", status_code=201)
def add_marks(payload: MarksCreate, db: Session = Depends(get_db)):
    """Record scores for one student in one subject."""
    student_id = require_valid_id(payload.student_id, "student")
    subject_id = require_valid_id(payload.subject_id, "subject")

    record = create_marks(db, student_id, subject_id,
                          [entry.to_input() for entry in payload.marks])
    return {"message": "Marks added successfully", "marks": serialize_marks(record)}


@router.post("/api/marks/batch", status_code=201)
def add_exam_marks(payload: MarksBatchCreate, db: Session = Depends(get_db)):
    """Record one exam's scores for every listed subject; all or nothing."""
    student_id = require_valid_id(payload.student_id, "student")
    scores = [(require_valid_id(item.subject_id, "subject"), item.score) for item in payload.scores]

    records = submit_exam_scores(db, student_id, payload.exam_type, scores)
    return {
        "message": "Marks added successfully",
        "marks": [serialize_marks(r) for r in records]
    }


@router.get("/api/marks/{student_id}")
def get_marks_by_student(student_id: str, db: Session = Depends(get_db)):
    """All marks records of a student, with the subject expanded."""
    student_id = require_valid_id(student_id, "student")
    records = db.query(MarksRecord).options(
        selectinload(MarksRecord.scores),
        joinedload(MarksRecord.subject)
    ).filter(
        MarksRecord.student_id == student_id
    ).order_by(MarksRecord.created_at).all()

    log_with_context(logger, "INFO", "Fetched {} marks records".format(len(records)),
                     context={"student_id": student_id})
    return {"marks": [serialize_marks(r, expand_subject=True) for r in records]}


@router.put("/api/marks/{marks_id}")
def update_marks(marks_id: str, payload: MarksUpdate, db: Session = Depends(get_db)):
    marks_id = require_valid_id(marks_id, "marks")
    updates = payload.model_dump(exclude_unset=True)
    if "subject_id" in updates and payload.subject_id is None:
        raise HTTPException(status_code=400, detail="subjectId cannot be null")
    if "marks" in updates and payload.marks is None:
        raise HTTPException(status_code=400, detail="marks cannot be null")
    subject_id = None
    if payload.subject_id is not None:
        subject_id = require_valid_id(payload.subject_id, "subject")

    record = _get_marks_or_404(db, marks_id)
    entries = [entry.to_input() for entry in payload.marks] if payload.marks is not None else None
    record = replace_marks(db, record, subject_id=subject_id, entries=entries)
    return {"message": "Marks updated successfully", "marks": serialize_marks(record)}


@router.delete("/api/marks/{marks_id}")
def remove_marks(marks_id: str, db: Session = Depends(get_db)):
    record = _get_marks_or_404(db, marks_id)
    delete_marks(db, record)
    return {"message": "Marks deleted successfully"}
